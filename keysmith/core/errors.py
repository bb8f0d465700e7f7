"""Error types shared by the auth wizard and its collaborators."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class KeysmithError(Exception):
    """Base exception with a stable error code."""

    def __init__(self, error_code: str, message: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class UserCancelled(KeysmithError):
    """The user aborted an interactive prompt."""

    def __init__(self, message: str = "Cancelled by user.") -> None:
        super().__init__("user_cancelled", message)


class ProviderNotFound(KeysmithError):
    """A provider key was selected that the registry does not know."""

    def __init__(self, key: str) -> None:
        super().__init__("provider_not_found", f"Provider not found: {key}")
        self.key = key


class AuthenticationFailed(KeysmithError):
    """Provider-specific authentication failed."""

    def __init__(self, message: str) -> None:
        super().__init__("authentication_failed", message)


class ModelFetchFailed(KeysmithError):
    """The remote model catalog could not be fetched."""

    def __init__(self, message: str) -> None:
        super().__init__("model_fetch_failed", message)


class PersistenceFailed(KeysmithError):
    """Loading or saving the configuration file failed."""

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__("persistence_failed", message)
        self.path = path


__all__ = [
    "AuthenticationFailed",
    "KeysmithError",
    "ModelFetchFailed",
    "PersistenceFailed",
    "ProviderNotFound",
    "UserCancelled",
]
