"""Tests for remote model list fetching."""

from __future__ import annotations

import httpx
import pytest

from keysmith.core.config import (
    AnthropicProviderConfig,
    KilocodeProviderConfig,
    LiteLLMProviderConfig,
    LMStudioProviderConfig,
    OllamaProviderConfig,
    OpenRouterProviderConfig,
)
from keysmith.core.errors import ModelFetchFailed
from keysmith.core.model_fetcher import fetch_router_models


def _install_client(monkeypatch, responder, captured: dict) -> None:
    class _FakeClient:
        def __init__(self, timeout: float = 0.0) -> None:
            captured["timeout"] = timeout

        def __enter__(self) -> "_FakeClient":
            return self

        def __exit__(self, exc_type, exc, tb) -> bool:  # noqa: ANN001
            return False

        def get(self, url: str, *, headers: dict) -> httpx.Response:
            captured["url"] = url
            captured["headers"] = headers
            return responder(url)

    monkeypatch.setattr("keysmith.core.model_fetcher.httpx.Client", _FakeClient)


def _json_response(url: str, payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code=status_code, request=httpx.Request("GET", url), json=payload)


def test_kilocode_models_use_profile_headers_and_openrouter_shape(monkeypatch):
    monkeypatch.setenv("KEYSMITH_API_URL", "https://kilo.test/")
    captured: dict = {}
    payload = {
        "data": [
            {
                "id": "anthropic/claude-sonnet-4",
                "name": "Anthropic: Claude Sonnet 4",
                "context_length": 200000,
                "architecture": {"input_modalities": ["text", "image"]},
                "pricing": {"prompt": "0.000003", "completion": "0.000015"},
                "top_provider": {"max_completion_tokens": 64000},
                "supported_parameters": ["reasoning", "tools"],
                "preferredIndex": 0,
            },
            {"id": "x-ai/grok-code-fast-1"},
            {"name": "missing id"},
        ]
    }
    _install_client(monkeypatch, lambda url: _json_response(url, payload), captured)

    config = KilocodeProviderConfig(kilocode_token="tok", kilocode_organization_id="org-1")
    models = fetch_router_models(config, timeout=3.0)

    assert captured["url"] == "https://kilo.test/api/openrouter/models"
    assert captured["timeout"] == 3.0
    assert captured["headers"]["Authorization"] == "Bearer tok"
    assert captured["headers"]["X-KiloCode-OrganizationId"] == "org-1"
    assert captured["headers"]["User-Agent"].startswith("keysmith-cli/")

    assert set(models) == {"anthropic/claude-sonnet-4", "x-ai/grok-code-fast-1"}
    sonnet = models["anthropic/claude-sonnet-4"]
    assert sonnet.display_name == "Anthropic: Claude Sonnet 4"
    assert sonnet.context_window == 200000
    assert sonnet.max_output_tokens == 64000
    assert sonnet.supports_images is True
    assert sonnet.supports_reasoning is True
    assert sonnet.input_price == pytest.approx(3.0)
    assert sonnet.output_price == pytest.approx(15.0)
    assert sonnet.preferred_index == 0
    assert models["x-ai/grok-code-fast-1"].preferred_index is None


def test_openrouter_uses_custom_base_url(monkeypatch):
    captured: dict = {}
    _install_client(monkeypatch, lambda url: _json_response(url, {"data": []}), captured)
    config = OpenRouterProviderConfig(
        openrouter_api_key="or-key",
        openrouter_base_url="https://proxy.example.com/api/v1/",
    )
    assert fetch_router_models(config) == {}
    assert captured["url"] == "https://proxy.example.com/api/v1/models"
    assert captured["headers"]["Authorization"] == "Bearer or-key"


def test_ollama_tags_are_parsed(monkeypatch):
    captured: dict = {}
    payload = {"models": [{"name": "llama3:8b"}, {"model": "qwen2.5-coder"}, {}]}
    _install_client(monkeypatch, lambda url: _json_response(url, payload), captured)

    models = fetch_router_models(OllamaProviderConfig())
    assert captured["url"] == "http://localhost:11434/api/tags"
    assert "Authorization" not in captured["headers"]
    assert set(models) == {"llama3:8b", "qwen2.5-coder"}


def test_lmstudio_models_are_parsed(monkeypatch):
    captured: dict = {}
    payload = {"data": [{"id": "qwen/qwen3-coder-30b", "max_context_length": 32768}]}
    _install_client(monkeypatch, lambda url: _json_response(url, payload), captured)

    models = fetch_router_models(LMStudioProviderConfig(lmstudio_base_url="http://127.0.0.1:9999"))
    assert captured["url"] == "http://127.0.0.1:9999/v1/models"
    assert models["qwen/qwen3-coder-30b"].context_window == 32768


def test_litellm_model_info_is_parsed(monkeypatch):
    captured: dict = {}
    payload = {
        "data": [
            {
                "model_name": "claude-3-7-sonnet-20250219",
                "model_info": {
                    "max_input_tokens": 200000,
                    "max_output_tokens": 8192,
                    "supports_vision": True,
                    "input_cost_per_token": 0.000003,
                    "output_cost_per_token": 0.000015,
                },
            }
        ]
    }
    _install_client(monkeypatch, lambda url: _json_response(url, payload), captured)

    config = LiteLLMProviderConfig(litellm_base_url="http://litellm:4000", litellm_api_key="sk-1")
    models = fetch_router_models(config)
    assert captured["url"] == "http://litellm:4000/v1/model/info"
    entry = models["claude-3-7-sonnet-20250219"]
    assert entry.context_window == 200000
    assert entry.supports_images is True
    assert entry.input_price == pytest.approx(3.0)


def test_timeout_defaults_from_environment(monkeypatch):
    monkeypatch.setenv("KEYSMITH_MODELS_TIMEOUT", "2.5")
    captured: dict = {}
    _install_client(monkeypatch, lambda url: _json_response(url, {"models": []}), captured)
    fetch_router_models(OllamaProviderConfig())
    assert captured["timeout"] == 2.5


def test_non_router_provider_raises():
    with pytest.raises(ModelFetchFailed):
        fetch_router_models(AnthropicProviderConfig(api_key="sk-ant-1"))


def test_http_error_status_raises(monkeypatch):
    _install_client(monkeypatch, lambda url: _json_response(url, {"error": "nope"}, 401), {})
    with pytest.raises(ModelFetchFailed, match="401"):
        fetch_router_models(KilocodeProviderConfig(kilocode_token="bad"))


def test_timeout_raises_model_fetch_failed(monkeypatch):
    def _timeout(url):
        raise httpx.ReadTimeout("timed out", request=httpx.Request("GET", url))

    _install_client(monkeypatch, _timeout, {})
    with pytest.raises(ModelFetchFailed, match="ReadTimeout"):
        fetch_router_models(OllamaProviderConfig())


def test_malformed_payload_raises(monkeypatch):
    def _text(url):
        return httpx.Response(status_code=200, request=httpx.Request("GET", url), text="<html>")

    _install_client(monkeypatch, _text, {})
    with pytest.raises(ModelFetchFailed):
        fetch_router_models(OllamaProviderConfig())

    _install_client(monkeypatch, lambda url: _json_response(url, {"unexpected": []}), {})
    with pytest.raises(ModelFetchFailed, match="models"):
        fetch_router_models(OllamaProviderConfig())
