"""Fetch model lists from router providers and local model servers."""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from keysmith.core.config import ProviderConfig
from keysmith.core.errors import ModelFetchFailed
from keysmith.core.model_catalog import ModelCatalog, ModelCatalogEntry
from keysmith.utils.log import get_logger
from keysmith.utils.user_agent import build_user_agent

logger = get_logger()

DEFAULT_FETCH_TIMEOUT_SEC = 10.0
KILOCODE_API_URL_ENV = "KEYSMITH_API_URL"
KILOCODE_DEFAULT_API_URL = "https://api.kilocode.ai"
OPENROUTER_DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


def kilocode_api_url() -> str:
    return (os.getenv(KILOCODE_API_URL_ENV) or KILOCODE_DEFAULT_API_URL).rstrip("/")


def _fetch_timeout() -> float:
    raw = os.getenv("KEYSMITH_MODELS_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_FETCH_TIMEOUT_SEC
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_FETCH_TIMEOUT_SEC
    return value if value > 0 else DEFAULT_FETCH_TIMEOUT_SEC


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        parsed = int(value)
        return parsed if parsed > 0 else None
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _per_million(value: Any) -> Optional[float]:
    per_token = _to_float(value)
    if per_token is None:
        return None
    return round(per_token * 1_000_000, 6)


def _bearer(token: Optional[str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


def _rows(payload: Any, key: str) -> list:
    if not isinstance(payload, dict) or not isinstance(payload.get(key), list):
        raise ModelFetchFailed(f"Model list response missing '{key}'.")
    return [row for row in payload[key] if isinstance(row, dict)]


def _parse_openrouter_models(payload: Any) -> ModelCatalog:
    models: ModelCatalog = {}
    for row in _rows(payload, "data"):
        model_id = row.get("id")
        if not isinstance(model_id, str) or not model_id:
            continue
        architecture = row.get("architecture") or {}
        modalities = architecture.get("input_modalities") if isinstance(architecture, dict) else None
        pricing = row.get("pricing") or {}
        top_provider = row.get("top_provider") or {}
        parameters = row.get("supported_parameters") or []
        preferred = row.get("preferredIndex")
        models[model_id] = ModelCatalogEntry(
            id=model_id,
            display_name=row.get("name") or None,
            description=row.get("description") or None,
            context_window=_to_int(row.get("context_length")),
            max_output_tokens=_to_int(top_provider.get("max_completion_tokens"))
            if isinstance(top_provider, dict)
            else None,
            supports_images="image" in modalities if isinstance(modalities, list) else None,
            supports_reasoning="reasoning" in parameters if isinstance(parameters, list) else None,
            input_price=_per_million(pricing.get("prompt")) if isinstance(pricing, dict) else None,
            output_price=_per_million(pricing.get("completion")) if isinstance(pricing, dict) else None,
            preferred_index=preferred if isinstance(preferred, int) and not isinstance(preferred, bool) else None,
        )
    return models


def _parse_ollama_models(payload: Any) -> ModelCatalog:
    models: ModelCatalog = {}
    for row in _rows(payload, "models"):
        name = row.get("name") or row.get("model")
        if isinstance(name, str) and name:
            models[name] = ModelCatalogEntry(id=name)
    return models


def _parse_openai_style_models(payload: Any) -> ModelCatalog:
    models: ModelCatalog = {}
    for row in _rows(payload, "data"):
        model_id = row.get("id")
        if isinstance(model_id, str) and model_id:
            models[model_id] = ModelCatalogEntry(
                id=model_id,
                context_window=_to_int(row.get("max_context_length")),
            )
    return models


def _parse_litellm_models(payload: Any) -> ModelCatalog:
    models: ModelCatalog = {}
    for row in _rows(payload, "data"):
        name = row.get("model_name")
        if not isinstance(name, str) or not name:
            continue
        info = row.get("model_info") or {}
        if not isinstance(info, dict):
            info = {}
        vision = info.get("supports_vision")
        models[name] = ModelCatalogEntry(
            id=name,
            context_window=_to_int(info.get("max_input_tokens")),
            max_output_tokens=_to_int(info.get("max_output_tokens")),
            supports_images=vision if isinstance(vision, bool) else None,
            input_price=_per_million(info.get("input_cost_per_token")),
            output_price=_per_million(info.get("output_cost_per_token")),
        )
    return models


def _kilocode_request(config: ProviderConfig) -> Tuple[str, Dict[str, str]]:
    headers = _bearer(getattr(config, "kilocode_token", None))
    organization_id = getattr(config, "kilocode_organization_id", None)
    if organization_id:
        headers["X-KiloCode-OrganizationId"] = organization_id
    return f"{kilocode_api_url()}/api/openrouter/models", headers


def _openrouter_request(config: ProviderConfig) -> Tuple[str, Dict[str, str]]:
    base_url = getattr(config, "openrouter_base_url", None) or OPENROUTER_DEFAULT_BASE_URL
    return f"{base_url.rstrip('/')}/models", _bearer(getattr(config, "openrouter_api_key", None))


def _ollama_request(config: ProviderConfig) -> Tuple[str, Dict[str, str]]:
    base_url = getattr(config, "ollama_base_url", None) or "http://localhost:11434"
    return f"{base_url.rstrip('/')}/api/tags", {}


def _lmstudio_request(config: ProviderConfig) -> Tuple[str, Dict[str, str]]:
    base_url = getattr(config, "lmstudio_base_url", None) or "http://localhost:1234"
    return f"{base_url.rstrip('/')}/v1/models", {}


def _litellm_request(config: ProviderConfig) -> Tuple[str, Dict[str, str]]:
    base_url = getattr(config, "litellm_base_url", None)
    if not base_url:
        raise ModelFetchFailed("LiteLLM base URL is not configured.")
    return f"{base_url.rstrip('/')}/v1/model/info", _bearer(getattr(config, "litellm_api_key", None))


_ROUTER_ENDPOINTS: Dict[
    str,
    Tuple[Callable[[ProviderConfig], Tuple[str, Dict[str, str]]], Callable[[Any], ModelCatalog]],
] = {
    "kilocode": (_kilocode_request, _parse_openrouter_models),
    "openrouter": (_openrouter_request, _parse_openrouter_models),
    "ollama": (_ollama_request, _parse_ollama_models),
    "lmstudio": (_lmstudio_request, _parse_openai_style_models),
    "litellm": (_litellm_request, _parse_litellm_models),
}


def fetch_router_models(
    provider_config: ProviderConfig,
    *,
    timeout: Optional[float] = None,
) -> ModelCatalog:
    """Fetch the model list published by a router provider.

    Raises:
        ModelFetchFailed: The provider has no model endpoint, the request
            failed or timed out, or the response could not be parsed.
    """
    endpoint = _ROUTER_ENDPOINTS.get(provider_config.provider)
    if endpoint is None:
        raise ModelFetchFailed(f"Provider '{provider_config.provider}' does not publish a model list.")
    build_request, parse = endpoint
    url, headers = build_request(provider_config)
    headers = {"Accept": "application/json", "User-Agent": build_user_agent(), **headers}

    effective_timeout = timeout if timeout is not None else _fetch_timeout()
    try:
        with httpx.Client(timeout=effective_timeout) as client:
            response = client.get(url, headers=headers)
    except httpx.HTTPError as exc:
        raise ModelFetchFailed(f"Model list request failed: {type(exc).__name__}: {exc}") from exc

    if response.status_code >= 400:
        raise ModelFetchFailed(f"Model list request failed ({response.status_code}).")
    try:
        payload = response.json()
    except ValueError as exc:
        raise ModelFetchFailed("Model list response is not valid JSON.") from exc

    models = parse(payload)
    logger.debug(
        "[models] Fetched router models",
        extra={"provider": provider_config.provider, "count": len(models)},
    )
    return models
