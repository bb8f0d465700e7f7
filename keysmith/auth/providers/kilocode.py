"""Kilo Code login via browser device authorization or a pasted token."""

from __future__ import annotations

import time
import webbrowser
from typing import Any, Callable, Dict, List, Optional

import httpx
from rich.console import Console

from keysmith.auth.base import AuthResult, ProviderAuthenticator, ProviderDescriptor
from keysmith.cli.ui.choice import SelectChoice, prompt_select
from keysmith.core.config import KilocodeProviderConfig
from keysmith.core.errors import AuthenticationFailed
from keysmith.core.model_fetcher import kilocode_api_url
from keysmith.utils.log import get_logger
from keysmith.utils.prompt import prompt_secret
from keysmith.utils.user_agent import build_user_agent

console = Console()
logger = get_logger()

DEVICE_POLL_INTERVAL_SEC = 3
DEFAULT_DEVICE_TIMEOUT_SEC = 600
_PERSONAL_ACCOUNT = ""


class KilocodeAuthError(AuthenticationFailed):
    """Raised for Kilo Code login failures."""


def _extract_error_message(response: httpx.Response) -> str:
    text = response.text
    try:
        payload = response.json()
    except ValueError:
        return text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        for field in ("error_description", "error", "message"):
            value = payload.get(field)
            if isinstance(value, str) and value:
                return value
    return text or f"HTTP {response.status_code}"


def _headers(token: Optional[str] = None) -> Dict[str, str]:
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": build_user_agent(),
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def login_kilocode_with_device_code(
    *,
    api_url: Optional[str] = None,
    timeout_sec: int = DEFAULT_DEVICE_TIMEOUT_SEC,
    open_browser: bool = True,
    notify: Optional[Callable[[str], None]] = None,
) -> str:
    """Run the device authorization flow and return the issued API token."""
    base_url = (api_url or kilocode_api_url()).rstrip("/")
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(f"{base_url}/api/device-auth/codes", headers=_headers())
    except httpx.HTTPError as exc:
        raise KilocodeAuthError(f"Could not start device authorization: {exc}") from exc
    if response.status_code >= 400:
        raise KilocodeAuthError(
            f"Device authorization failed ({response.status_code}): {_extract_error_message(response)}"
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise KilocodeAuthError("Device authorization returned invalid JSON.") from exc
    if not isinstance(payload, dict):
        raise KilocodeAuthError("Device authorization returned unexpected payload.")

    code = payload.get("code")
    verification_url = payload.get("verificationUrl")
    expires_in = payload.get("expiresIn")
    if not isinstance(code, str) or not code:
        raise KilocodeAuthError("Device authorization response missing code.")
    if not isinstance(verification_url, str) or not verification_url:
        raise KilocodeAuthError("Device authorization response missing verificationUrl.")
    if isinstance(expires_in, (int, float)) and not isinstance(expires_in, bool) and expires_in > 0:
        timeout_sec = min(timeout_sec, int(expires_in))

    if notify:
        notify(f"Open {verification_url} and confirm code: {code}")
    if open_browser:
        try:
            webbrowser.open(verification_url, new=2)
        except webbrowser.Error:
            logger.debug("[auth] Could not open browser", extra={"url": verification_url})

    deadline = time.time() + timeout_sec
    try:
        with httpx.Client(timeout=30.0) as client:
            while time.time() < deadline:
                poll = client.get(f"{base_url}/api/device-auth/codes/{code}", headers=_headers())
                if poll.status_code == 202:
                    time.sleep(DEVICE_POLL_INTERVAL_SEC)
                    continue
                if poll.status_code == 403:
                    raise KilocodeAuthError("Authorization was denied in the browser.")
                if poll.status_code == 410:
                    raise KilocodeAuthError("Authorization code expired. Please try again.")
                if poll.status_code >= 400:
                    raise KilocodeAuthError(
                        f"Device polling failed ({poll.status_code}): {_extract_error_message(poll)}"
                    )
                try:
                    poll_payload = poll.json()
                except ValueError as exc:
                    raise KilocodeAuthError("Device polling returned invalid JSON.") from exc
                token = poll_payload.get("token") if isinstance(poll_payload, dict) else None
                if isinstance(token, str) and token:
                    return token
                time.sleep(DEVICE_POLL_INTERVAL_SEC)
    except httpx.HTTPError as exc:
        raise KilocodeAuthError(f"Device polling failed: {exc}") from exc

    raise KilocodeAuthError("Device authorization timed out.")


def fetch_kilocode_profile(token: str, *, api_url: Optional[str] = None) -> Dict[str, Any]:
    """Return the profile for ``token``; an invalid token is an auth failure."""
    base_url = (api_url or kilocode_api_url()).rstrip("/")
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.get(f"{base_url}/api/profile", headers=_headers(token))
    except httpx.HTTPError as exc:
        raise KilocodeAuthError(f"Could not load Kilo Code profile: {exc}") from exc
    if response.status_code in (401, 403):
        raise KilocodeAuthError("Kilo Code rejected the API token.")
    if response.status_code >= 400:
        raise KilocodeAuthError(
            f"Profile request failed ({response.status_code}): {_extract_error_message(response)}"
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise KilocodeAuthError("Profile response is not valid JSON.") from exc
    if not isinstance(payload, dict):
        raise KilocodeAuthError("Profile response has an unexpected shape.")
    return payload


def _organizations(profile: Dict[str, Any]) -> List[Dict[str, str]]:
    organizations = profile.get("organizations")
    if not isinstance(organizations, list):
        return []
    return [
        {"id": str(org["id"]), "name": str(org.get("name") or org["id"])}
        for org in organizations
        if isinstance(org, dict) and org.get("id")
    ]


class KilocodeAuthenticator(ProviderAuthenticator):
    """Logs in to Kilo Code and picks the account to bill."""

    descriptor = ProviderDescriptor(key="kilocode", label="Kilo Code")

    def __init__(
        self,
        *,
        open_browser: bool = True,
        timeout_sec: int = DEFAULT_DEVICE_TIMEOUT_SEC,
    ) -> None:
        self.open_browser = open_browser
        self.timeout_sec = timeout_sec

    def _obtain_token(self) -> str:
        method = prompt_select(
            "How would you like to sign in to Kilo Code?",
            [
                SelectChoice("Sign in with your browser", "device"),
                SelectChoice("Paste an existing API token", "token"),
            ],
        )
        if method == "token":
            token = prompt_secret("Kilo Code API token").strip()
            if not token:
                raise KilocodeAuthError("An API token is required.")
            return token

        console.print("\n[dim]Waiting for browser authorization...[/dim]")
        return login_kilocode_with_device_code(
            timeout_sec=self.timeout_sec,
            open_browser=self.open_browser,
            notify=lambda message: console.print(f"[cyan]{message}[/cyan]"),
        )

    def _choose_organization(self, profile: Dict[str, Any]) -> Optional[str]:
        organizations = _organizations(profile)
        if not organizations:
            return None
        choices = [SelectChoice("Personal account", _PERSONAL_ACCOUNT)]
        choices.extend(SelectChoice(org["name"], org["id"]) for org in organizations)
        selected = prompt_select("Which account should Kilo Code use?", choices)
        return selected or None

    def authenticate(self) -> AuthResult:
        token = self._obtain_token()
        profile = fetch_kilocode_profile(token)
        user = profile.get("user")
        if isinstance(user, dict) and user.get("email"):
            console.print(f"[green]Signed in as {user['email']}[/green]")
        organization_id = self._choose_organization(profile)
        return AuthResult(
            provider_config=KilocodeProviderConfig(
                kilocode_token=token,
                kilocode_organization_id=organization_id,
            )
        )
