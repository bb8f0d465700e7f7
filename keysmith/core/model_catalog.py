"""Built-in model catalogs and model resolution for configured providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from keysmith.core.config import ProviderConfig, provider_config_type
from keysmith.utils.log import get_logger

logger = get_logger()


class ModelCatalogEntry(BaseModel):
    """Metadata for one selectable model."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    context_window: Optional[int] = None
    max_output_tokens: Optional[int] = None
    supports_images: Optional[bool] = None
    supports_reasoning: Optional[bool] = None
    # USD per 1M tokens.
    input_price: Optional[float] = None
    output_price: Optional[float] = None
    # Lower is more preferred; None means no recommendation.
    preferred_index: Optional[int] = None

    @property
    def label(self) -> str:
        return self.display_name or self.id


ModelCatalog = Dict[str, ModelCatalogEntry]
RouterModelsFetcher = Callable[[ProviderConfig], Optional[ModelCatalog]]


def _catalog(*entries: ModelCatalogEntry) -> ModelCatalog:
    return {entry.id: entry for entry in entries}


_ANTHROPIC_MODELS = _catalog(
    ModelCatalogEntry(
        id="claude-sonnet-4-20250514",
        display_name="Claude Sonnet 4",
        context_window=200_000,
        max_output_tokens=64_000,
        supports_images=True,
        supports_reasoning=True,
        input_price=3.0,
        output_price=15.0,
        preferred_index=0,
    ),
    ModelCatalogEntry(
        id="claude-opus-4-1-20250805",
        display_name="Claude Opus 4.1",
        context_window=200_000,
        max_output_tokens=32_000,
        supports_images=True,
        supports_reasoning=True,
        input_price=15.0,
        output_price=75.0,
        preferred_index=1,
    ),
    ModelCatalogEntry(
        id="claude-3-7-sonnet-20250219",
        display_name="Claude 3.7 Sonnet",
        context_window=200_000,
        max_output_tokens=8_192,
        supports_images=True,
        supports_reasoning=True,
        input_price=3.0,
        output_price=15.0,
    ),
    ModelCatalogEntry(
        id="claude-3-5-haiku-20241022",
        display_name="Claude 3.5 Haiku",
        context_window=200_000,
        max_output_tokens=8_192,
        supports_images=False,
        input_price=0.8,
        output_price=4.0,
    ),
)

_OPENAI_NATIVE_MODELS = _catalog(
    ModelCatalogEntry(
        id="gpt-5",
        display_name="GPT-5",
        context_window=400_000,
        max_output_tokens=128_000,
        supports_images=True,
        supports_reasoning=True,
        input_price=1.25,
        output_price=10.0,
        preferred_index=0,
    ),
    ModelCatalogEntry(
        id="gpt-5-mini",
        display_name="GPT-5 mini",
        context_window=400_000,
        max_output_tokens=128_000,
        supports_images=True,
        supports_reasoning=True,
        input_price=0.25,
        output_price=2.0,
        preferred_index=1,
    ),
    ModelCatalogEntry(
        id="gpt-4.1",
        display_name="GPT-4.1",
        context_window=1_047_576,
        max_output_tokens=32_768,
        supports_images=True,
        input_price=2.0,
        output_price=8.0,
    ),
    ModelCatalogEntry(
        id="gpt-4o",
        display_name="GPT-4o",
        context_window=128_000,
        max_output_tokens=16_384,
        supports_images=True,
        input_price=2.5,
        output_price=10.0,
    ),
    ModelCatalogEntry(
        id="o4-mini",
        display_name="o4-mini",
        context_window=200_000,
        max_output_tokens=100_000,
        supports_images=True,
        supports_reasoning=True,
        input_price=1.1,
        output_price=4.4,
    ),
)

_GEMINI_MODELS = _catalog(
    ModelCatalogEntry(
        id="gemini-2.5-pro",
        display_name="Gemini 2.5 Pro",
        context_window=1_048_576,
        max_output_tokens=65_536,
        supports_images=True,
        supports_reasoning=True,
        preferred_index=0,
    ),
    ModelCatalogEntry(
        id="gemini-2.5-flash",
        display_name="Gemini 2.5 Flash",
        context_window=1_048_576,
        max_output_tokens=65_536,
        supports_images=True,
        supports_reasoning=True,
    ),
    ModelCatalogEntry(
        id="gemini-2.0-flash",
        display_name="Gemini 2.0 Flash",
        context_window=1_048_576,
        max_output_tokens=8_192,
        supports_images=True,
    ),
)

_DEEPSEEK_MODELS = _catalog(
    ModelCatalogEntry(
        id="deepseek-chat",
        display_name="DeepSeek V3",
        context_window=128_000,
        max_output_tokens=8_192,
        input_price=0.27,
        output_price=1.1,
        preferred_index=0,
    ),
    ModelCatalogEntry(
        id="deepseek-reasoner",
        display_name="DeepSeek R1",
        context_window=128_000,
        max_output_tokens=65_536,
        supports_reasoning=True,
        input_price=0.55,
        output_price=2.19,
    ),
)

_MISTRAL_MODELS = _catalog(
    ModelCatalogEntry(
        id="codestral-latest",
        display_name="Codestral",
        context_window=256_000,
        preferred_index=0,
    ),
    ModelCatalogEntry(id="devstral-medium-latest", display_name="Devstral Medium", context_window=128_000),
    ModelCatalogEntry(id="mistral-large-latest", display_name="Mistral Large", context_window=131_000),
)

_ROUTER_DEFAULT_MODEL = ModelCatalogEntry(
    id="anthropic/claude-sonnet-4",
    display_name="Anthropic: Claude Sonnet 4",
    context_window=200_000,
    max_output_tokens=64_000,
    supports_images=True,
    supports_reasoning=True,
    input_price=3.0,
    output_price=15.0,
)

DEFAULT_MODELS: Dict[str, ModelCatalog] = {
    "anthropic": _ANTHROPIC_MODELS,
    "openai-native": _OPENAI_NATIVE_MODELS,
    "gemini": _GEMINI_MODELS,
    "deepseek": _DEEPSEEK_MODELS,
    "mistral": _MISTRAL_MODELS,
    "kilocode": _catalog(_ROUTER_DEFAULT_MODEL),
    "openrouter": _catalog(_ROUTER_DEFAULT_MODEL),
}

DEFAULT_MODEL_IDS: Dict[str, str] = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai-native": "gpt-5",
    "gemini": "gemini-2.5-pro",
    "deepseek": "deepseek-chat",
    "mistral": "codestral-latest",
    "kilocode": "anthropic/claude-sonnet-4",
    "openrouter": "anthropic/claude-sonnet-4",
    "litellm": "claude-3-7-sonnet-20250219",
}

# Providers whose model list comes from a remote router or local server.
ROUTER_PROVIDERS = frozenset({"kilocode", "openrouter", "ollama", "lmstudio", "litellm"})


@dataclass(frozen=True)
class ResolvedModels:
    """Merged model mapping plus the provider's default model id."""

    models: ModelCatalog = field(default_factory=dict)
    default_model: Optional[str] = None


def provider_supports_model_list(provider: str) -> bool:
    """Whether a remote model list applies to ``provider``."""
    return provider in ROUTER_PROVIDERS


def model_id_field(provider: str) -> Optional[str]:
    """Name of the config field holding the selected model for ``provider``."""
    return provider_config_type(provider).model_field


def get_models_by_provider(
    provider: str,
    router_models: Optional[Mapping[str, ModelCatalogEntry]] = None,
    kilocode_default_model: str = "",
) -> ResolvedModels:
    """Merge built-in defaults with a remote snapshot.

    Remote entries replace defaults sharing the same id. The result depends
    only on the arguments.
    """
    models: ModelCatalog = dict(DEFAULT_MODELS.get(provider, {}))
    if router_models:
        models.update(router_models)

    default_model = DEFAULT_MODEL_IDS.get(provider)
    if provider == "kilocode" and kilocode_default_model:
        default_model = kilocode_default_model
    return ResolvedModels(models=models, default_model=default_model)


def sort_models_by_preference(models: Mapping[str, ModelCatalogEntry]) -> List[str]:
    """Order model ids: recommended first, then alphabetically by label."""

    def _key(model_id: str) -> tuple:
        entry = models[model_id]
        if entry.preferred_index is not None:
            return (0, entry.preferred_index, "", model_id)
        return (1, 0, (entry.display_name or model_id).casefold(), model_id)

    return sorted(models, key=_key)


def resolve_models(
    provider_config: ProviderConfig,
    fetcher: Optional[RouterModelsFetcher] = None,
    on_fetch_error: Optional[Callable[[Exception], None]] = None,
) -> ResolvedModels:
    """Resolve the selectable models for a freshly authenticated provider.

    Fetch errors are logged, reported to ``on_fetch_error`` and the built-in
    defaults are used instead.
    """
    provider = provider_config.provider
    router_models: Optional[ModelCatalog] = None
    if provider_supports_model_list(provider):
        if fetcher is None:
            from keysmith.core.model_fetcher import fetch_router_models

            fetcher = fetch_router_models
        try:
            router_models = fetcher(provider_config)
        except Exception as exc:  # noqa: BLE001 - any fetch failure falls back to defaults
            logger.warning(
                "[models] Failed to fetch models: %s: %s",
                type(exc).__name__,
                exc,
                extra={"provider": provider},
            )
            router_models = None
            if on_fetch_error is not None:
                on_fetch_error(exc)

    return get_models_by_provider(provider, router_models)
