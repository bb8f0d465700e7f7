"""Provider authenticator contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from keysmith.core.config import ProviderConfig


@dataclass(frozen=True)
class ProviderDescriptor:
    """Menu entry for one provider."""

    key: str
    label: str


@dataclass
class AuthResult:
    """Outcome of a successful authentication."""

    provider_config: ProviderConfig


class ProviderAuthenticator(ABC):
    """Runs one provider's authentication procedure.

    ``authenticate`` may prompt, open a browser or poll remote endpoints. It
    returns an :class:`AuthResult` whose config carries ``provider ==
    descriptor.key``, raises :class:`~keysmith.core.errors.UserCancelled` when
    the user aborts and :class:`~keysmith.core.errors.AuthenticationFailed`
    for anything else that goes wrong.
    """

    descriptor: ProviderDescriptor

    @property
    def key(self) -> str:
        return self.descriptor.key

    @property
    def label(self) -> str:
        return self.descriptor.label

    @abstractmethod
    def authenticate(self) -> AuthResult:
        """Authenticate with the provider."""
