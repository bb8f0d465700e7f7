"""Authenticators for providers that take an API key and optional base URL."""

from __future__ import annotations

import urllib.parse
from typing import Any, Dict, Optional, Type

from pydantic import ValidationError
from rich.console import Console

from keysmith.auth.base import AuthResult, ProviderAuthenticator, ProviderDescriptor
from keysmith.core.config import ProviderConfig
from keysmith.core.errors import AuthenticationFailed
from keysmith.utils.prompt import prompt_secret, prompt_text

console = Console()


def normalize_base_url(raw: str) -> str:
    """Validate an http(s) URL and strip trailing slashes."""
    value = (raw or "").strip()
    parsed = urllib.parse.urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise AuthenticationFailed(f"Invalid base URL: {value or '(empty)'}")
    return value.rstrip("/")


def build_provider_config(config_type: Type[ProviderConfig], fields: Dict[str, Any]) -> ProviderConfig:
    """Instantiate ``config_type``, reporting schema errors as auth failures."""
    try:
        return config_type(**fields)
    except ValidationError as exc:
        raise AuthenticationFailed(f"Invalid provider settings: {exc}") from exc


class ApiKeyAuthenticator(ProviderAuthenticator):
    """Prompts for an API key and, optionally, a base URL."""

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        config_type: Type[ProviderConfig],
        key_field: str,
        *,
        key_prefix: Optional[str] = None,
        key_required: bool = True,
        base_url_field: Optional[str] = None,
        default_base_url: Optional[str] = None,
        base_url_required: bool = False,
        ask_model_id: bool = False,
    ) -> None:
        self.descriptor = descriptor
        self.config_type = config_type
        self.key_field = key_field
        self.key_prefix = key_prefix
        self.key_required = key_required
        self.base_url_field = base_url_field
        self.default_base_url = default_base_url
        self.base_url_required = base_url_required
        self.ask_model_id = ask_model_id

    def _prompt_base_url(self) -> Optional[str]:
        raw = prompt_text("API base URL", default=self.default_base_url)
        if not raw:
            if self.base_url_required:
                raise AuthenticationFailed("A base URL is required for this provider.")
            return None
        return normalize_base_url(raw)

    def _prompt_api_key(self) -> str:
        suffix = "" if self.key_required else " (optional)"
        api_key = prompt_secret(f"{self.label} API key{suffix}").strip()
        while self.key_required and not api_key:
            console.print("[red]API key is required.[/red]")
            api_key = prompt_secret(f"{self.label} API key").strip()
        if api_key and self.key_prefix and not api_key.startswith(self.key_prefix):
            raise AuthenticationFailed(
                f"{self.label} API keys start with '{self.key_prefix}'."
            )
        return api_key

    def authenticate(self) -> AuthResult:
        console.print(f"\n[bold]{self.label}[/bold]")
        fields: Dict[str, Any] = {}
        if self.base_url_field:
            base_url = self._prompt_base_url()
            if base_url:
                fields[self.base_url_field] = base_url

        api_key = self._prompt_api_key()
        if api_key:
            fields[self.key_field] = api_key

        provider_config = build_provider_config(self.config_type, fields)
        if self.ask_model_id:
            model_id = prompt_text("Model ID (optional)")
            if model_id:
                provider_config.set_selected_model(model_id)
        return AuthResult(provider_config=provider_config)


class LocalServerAuthenticator(ProviderAuthenticator):
    """Asks for the address of a locally running model server."""

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        config_type: Type[ProviderConfig],
        base_url_field: str,
        default_base_url: str,
    ) -> None:
        self.descriptor = descriptor
        self.config_type = config_type
        self.base_url_field = base_url_field
        self.default_base_url = default_base_url

    def authenticate(self) -> AuthResult:
        console.print(f"\n[bold]{self.label}[/bold]")
        console.print(f"[dim]Make sure {self.label} is running before continuing.[/dim]")
        base_url = normalize_base_url(prompt_text("Server URL", default=self.default_base_url))
        provider_config = build_provider_config(self.config_type, {self.base_url_field: base_url})
        return AuthResult(provider_config=provider_config)
