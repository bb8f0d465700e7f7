"""Registry of providers offered by the auth wizard."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from keysmith.auth.base import ProviderAuthenticator, ProviderDescriptor
from keysmith.auth.providers import (
    ApiKeyAuthenticator,
    KilocodeAuthenticator,
    LocalServerAuthenticator,
)
from keysmith.core.config import (
    AnthropicProviderConfig,
    DeepSeekProviderConfig,
    GeminiProviderConfig,
    LiteLLMProviderConfig,
    LMStudioProviderConfig,
    MistralProviderConfig,
    OllamaProviderConfig,
    OpenAINativeProviderConfig,
    OpenAIProviderConfig,
    OpenRouterProviderConfig,
)
from keysmith.core.errors import ProviderNotFound


class AuthProviderRegistry:
    """Ordered authenticators keyed by provider key."""

    def __init__(self, providers: Sequence[ProviderAuthenticator]) -> None:
        self._providers: Dict[str, ProviderAuthenticator] = {}
        for provider in providers:
            if provider.key in self._providers:
                raise ValueError(f"Duplicate provider key '{provider.key}'")
            self._providers[provider.key] = provider

    @property
    def providers(self) -> List[ProviderAuthenticator]:
        return list(self._providers.values())

    def descriptors(self) -> List[ProviderDescriptor]:
        return [provider.descriptor for provider in self._providers.values()]

    def keys(self) -> List[str]:
        return list(self._providers)

    def get(self, key: str) -> Optional[ProviderAuthenticator]:
        return self._providers.get(key)

    def require(self, key: str) -> ProviderAuthenticator:
        """Return the authenticator for ``key`` or raise ProviderNotFound."""
        provider = self.get(key)
        if provider is None:
            raise ProviderNotFound(key)
        return provider


def _api_key(key: str, label: str, config_type, key_field: str, **kwargs) -> ApiKeyAuthenticator:
    return ApiKeyAuthenticator(ProviderDescriptor(key=key, label=label), config_type, key_field, **kwargs)


AUTH_PROVIDERS = AuthProviderRegistry(
    [
        KilocodeAuthenticator(),
        _api_key("anthropic", "Anthropic", AnthropicProviderConfig, "api_key", key_prefix="sk-ant-"),
        _api_key("openai-native", "OpenAI", OpenAINativeProviderConfig, "openai_native_api_key"),
        _api_key(
            "openai",
            "OpenAI Compatible",
            OpenAIProviderConfig,
            "openai_api_key",
            base_url_field="openai_base_url",
            base_url_required=True,
            ask_model_id=True,
        ),
        _api_key("openrouter", "OpenRouter", OpenRouterProviderConfig, "openrouter_api_key"),
        _api_key("gemini", "Google Gemini", GeminiProviderConfig, "gemini_api_key"),
        _api_key("deepseek", "DeepSeek", DeepSeekProviderConfig, "deepseek_api_key"),
        _api_key("mistral", "Mistral", MistralProviderConfig, "mistral_api_key"),
        LocalServerAuthenticator(
            ProviderDescriptor(key="ollama", label="Ollama"),
            OllamaProviderConfig,
            "ollama_base_url",
            "http://localhost:11434",
        ),
        LocalServerAuthenticator(
            ProviderDescriptor(key="lmstudio", label="LM Studio"),
            LMStudioProviderConfig,
            "lmstudio_base_url",
            "http://localhost:1234",
        ),
        _api_key(
            "litellm",
            "LiteLLM",
            LiteLLMProviderConfig,
            "litellm_api_key",
            key_required=False,
            base_url_field="litellm_base_url",
            base_url_required=True,
        ),
    ]
)
