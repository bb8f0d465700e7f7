"""Configuration management for Keysmith.

The CLI configuration lives in ``~/.keysmith/config.json`` (or
``$KEYSMITH_CONFIG_DIR/config.json``) and holds every configured provider
together with a handful of top-level preferences.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Literal, Optional, Type

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializeAsAny,
    ValidationError,
    field_validator,
    model_validator,
)

from keysmith.core.errors import PersistenceFailed
from keysmith.utils.log import get_logger


logger = get_logger()

CONFIG_DIR_ENV = "KEYSMITH_CONFIG_DIR"
USER_CONFIG_DIR_NAME = ".keysmith"
CONFIG_FILE_NAME = "config.json"


class ProviderConfig(BaseModel):
    """One configured provider.

    Subclasses declare the provider's credential fields and name the field that
    stores the selected model in ``model_field``. Unknown keys are kept so
    configs written by newer versions survive a load/save cycle.
    """

    model_config = ConfigDict(extra="allow", protected_namespaces=())

    model_field: ClassVar[Optional[str]] = None

    id: str = ""
    provider: str

    @property
    def selected_model(self) -> Optional[str]:
        """Return the selected model id, if the provider has one."""
        if self.model_field is None:
            return None
        return getattr(self, self.model_field, None)

    def set_selected_model(self, model_id: str) -> None:
        """Store ``model_id`` in this provider's model field."""
        if self.model_field is None:
            raise ValueError(f"Provider '{self.provider}' has no model field.")
        setattr(self, self.model_field, model_id)


class KilocodeProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "kilocode_model"

    provider: Literal["kilocode"] = "kilocode"
    kilocode_token: str
    kilocode_organization_id: Optional[str] = None
    kilocode_model: Optional[str] = None


class AnthropicProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "api_model_id"

    provider: Literal["anthropic"] = "anthropic"
    api_key: str
    anthropic_base_url: Optional[str] = None
    api_model_id: Optional[str] = None


class OpenAINativeProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "api_model_id"

    provider: Literal["openai-native"] = "openai-native"
    openai_native_api_key: str
    openai_native_base_url: Optional[str] = None
    api_model_id: Optional[str] = None


class OpenAIProviderConfig(ProviderConfig):
    """OpenAI-compatible endpoint with a custom base URL."""

    model_field: ClassVar[Optional[str]] = "openai_model_id"

    provider: Literal["openai"] = "openai"
    openai_api_key: str
    openai_base_url: str
    openai_model_id: Optional[str] = None


class OpenRouterProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "openrouter_model_id"

    provider: Literal["openrouter"] = "openrouter"
    openrouter_api_key: str
    openrouter_base_url: Optional[str] = None
    openrouter_model_id: Optional[str] = None


class GeminiProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "api_model_id"

    provider: Literal["gemini"] = "gemini"
    gemini_api_key: str
    api_model_id: Optional[str] = None


class DeepSeekProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "api_model_id"

    provider: Literal["deepseek"] = "deepseek"
    deepseek_api_key: str
    deepseek_base_url: Optional[str] = None
    api_model_id: Optional[str] = None


class MistralProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "api_model_id"

    provider: Literal["mistral"] = "mistral"
    mistral_api_key: str
    api_model_id: Optional[str] = None


class OllamaProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "ollama_model_id"

    provider: Literal["ollama"] = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model_id: Optional[str] = None


class LMStudioProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "lmstudio_model_id"

    provider: Literal["lmstudio"] = "lmstudio"
    lmstudio_base_url: str = "http://localhost:1234"
    lmstudio_model_id: Optional[str] = None


class LiteLLMProviderConfig(ProviderConfig):
    model_field: ClassVar[Optional[str]] = "litellm_model_id"

    provider: Literal["litellm"] = "litellm"
    litellm_base_url: str
    litellm_api_key: Optional[str] = None
    litellm_model_id: Optional[str] = None


PROVIDER_CONFIG_TYPES: Dict[str, Type[ProviderConfig]] = {
    "kilocode": KilocodeProviderConfig,
    "anthropic": AnthropicProviderConfig,
    "openai-native": OpenAINativeProviderConfig,
    "openai": OpenAIProviderConfig,
    "openrouter": OpenRouterProviderConfig,
    "gemini": GeminiProviderConfig,
    "deepseek": DeepSeekProviderConfig,
    "mistral": MistralProviderConfig,
    "ollama": OllamaProviderConfig,
    "lmstudio": LMStudioProviderConfig,
    "litellm": LiteLLMProviderConfig,
}


def provider_config_type(provider: str) -> Type[ProviderConfig]:
    """Return the config model for ``provider`` (the base model if unknown)."""
    return PROVIDER_CONFIG_TYPES.get(provider, ProviderConfig)


def provider_config_from_dict(data: Dict[str, Any]) -> ProviderConfig:
    """Validate a raw provider dict against the model for its provider."""
    provider = str(data.get("provider") or "")
    return provider_config_type(provider).model_validate(data)


class CLIConfig(BaseModel):
    """Top-level configuration stored in ~/.keysmith/config.json."""

    model_config = ConfigDict(extra="allow")

    version: str = "1.0.0"
    mode: str = "code"
    telemetry: bool = True
    # Id of the provider used by default.
    provider: str = "default"
    providers: List[SerializeAsAny[ProviderConfig]] = Field(default_factory=list)
    theme: Optional[str] = None

    @field_validator("providers", mode="before")
    @classmethod
    def _dispatch_provider_types(cls, value: Any) -> Any:
        """Load each provider entry with the model registered for it."""
        if not isinstance(value, list):
            return value
        providers = []
        for index, item in enumerate(value):
            if not isinstance(item, dict):
                providers.append(item)
                continue
            try:
                providers.append(provider_config_from_dict(item))
            except ValidationError as exc:
                raise ValueError(f"providers[{index}]: {exc}") from exc
        return providers

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "CLIConfig":
        seen: set[str] = set()
        for provider in self.providers:
            if provider.id in seen:
                raise ValueError(f"Duplicate provider id '{provider.id}'")
            seen.add(provider.id)
        return self

    def provider_ids(self) -> set[str]:
        """Return the ids of every configured provider."""
        return {provider.id for provider in self.providers}

    def get_provider(self, provider_id: str) -> Optional[ProviderConfig]:
        """Look up a configured provider by id."""
        for provider in self.providers:
            if provider.id == provider_id:
                return provider
        return None


@dataclass
class LoadedConfig:
    """Result of loading the configuration file."""

    config: CLIConfig
    path: Path


def default_config_path() -> Path:
    """Return the configuration path, honouring ``KEYSMITH_CONFIG_DIR``."""
    base = os.getenv(CONFIG_DIR_ENV)
    root = Path(base).expanduser() if base else Path.home() / USER_CONFIG_DIR_NAME
    return root / CONFIG_FILE_NAME


class ConfigManager:
    """Loads and saves the CLI configuration file."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self._config_path = config_path

    @property
    def config_path(self) -> Path:
        return self._config_path or default_config_path()

    def load(self) -> LoadedConfig:
        """Load the configuration; a missing file yields the defaults.

        Raises:
            PersistenceFailed: The file exists but cannot be read or parsed.
        """
        path = self.config_path
        if not path.exists():
            logger.debug(
                "[config] Config not found; using defaults",
                extra={"path": str(path)},
            )
            return LoadedConfig(config=CLIConfig(), path=path)

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            config = CLIConfig.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning(
                "[config] Error loading config: %s: %s",
                type(exc).__name__,
                exc,
                extra={"path": str(path)},
            )
            raise PersistenceFailed(f"Could not load {path}: {exc}", path=path) from exc

        logger.debug(
            "[config] Loaded configuration",
            extra={"path": str(path), "provider_count": len(config.providers)},
        )
        return LoadedConfig(config=config, path=path)

    def save(self, config: CLIConfig) -> None:
        """Write ``config`` to disk with owner-only permissions.

        Raises:
            PersistenceFailed: The file cannot be written.
        """
        path = self.config_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(config.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailed(f"Could not save {path}: {exc}", path=path) from exc
        try:
            path.chmod(0o600)
        except OSError:
            logger.debug("[config] Failed to set strict permissions", extra={"path": str(path)})
        logger.debug(
            "[config] Saved configuration",
            extra={"path": str(path), "provider_count": len(config.providers)},
        )

    def add_provider(self, provider_config: ProviderConfig, *, activate: bool = False) -> CLIConfig:
        """Append a provider to the stored configuration and save it."""
        config = self.load().config
        if provider_config.id in config.provider_ids():
            raise ValueError(f"Provider id '{provider_config.id}' already exists.")
        config.providers.append(provider_config)
        if activate or config.get_provider(config.provider) is None:
            config.provider = provider_config.id
        self.save(config)
        return config

    def remove_provider(self, provider_id: str) -> CLIConfig:
        """Delete a provider and repoint the active provider if needed."""
        config = self.load().config
        if config.get_provider(provider_id) is None:
            raise KeyError(f"Provider '{provider_id}' does not exist.")
        config.providers = [p for p in config.providers if p.id != provider_id]
        if config.provider == provider_id:
            config.provider = config.providers[0].id if config.providers else "default"
        self.save(config)
        return config

    def set_active_provider(self, provider_id: str) -> CLIConfig:
        """Make ``provider_id`` the default provider."""
        config = self.load().config
        if config.get_provider(provider_id) is None:
            raise KeyError(f"Provider '{provider_id}' does not exist.")
        config.provider = provider_id
        self.save(config)
        return config


config_manager = ConfigManager()


def load_config() -> LoadedConfig:
    """Load the CLI configuration."""
    return config_manager.load()


def save_config(config: CLIConfig) -> None:
    """Save the CLI configuration."""
    config_manager.save(config)
