"""Built-in provider authenticators."""

from .api_key import ApiKeyAuthenticator, LocalServerAuthenticator
from .kilocode import KilocodeAuthenticator

__all__ = [
    "ApiKeyAuthenticator",
    "KilocodeAuthenticator",
    "LocalServerAuthenticator",
]
