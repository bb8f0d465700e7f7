"""Tests for the `keysmith` command line."""

from __future__ import annotations

from click.testing import CliRunner

from keysmith import __version__
from keysmith.cli import cli as cli_module
from keysmith.core.config import (
    AnthropicProviderConfig,
    ConfigManager,
    OllamaProviderConfig,
)
from keysmith.core.errors import PersistenceFailed, ProviderNotFound


def _run_cli(args: list[str], manager: ConfigManager):
    runner = CliRunner()
    return runner.invoke(cli_module.cli, args, obj={"config_manager": manager})


def _seeded_manager(tmp_path) -> ConfigManager:
    manager = ConfigManager(tmp_path / "config.json")
    manager.add_provider(OllamaProviderConfig(id="ollama", ollama_model_id="llama3"))
    manager.add_provider(AnthropicProviderConfig(id="anthropic", api_key="sk-ant-secret"))
    return manager


def test_version_option(tmp_path):
    result = _run_cli(["--version"], ConfigManager(tmp_path / "config.json"))
    assert result.exit_code == 0
    assert __version__ in result.output


def test_providers_list_empty(tmp_path):
    result = _run_cli(["providers", "list"], ConfigManager(tmp_path / "config.json"))
    assert result.exit_code == 0
    assert "No providers configured" in result.output


def test_providers_list_shows_ids_without_secrets(tmp_path):
    result = _run_cli(["providers", "list"], _seeded_manager(tmp_path))
    assert result.exit_code == 0
    assert "ollama" in result.output
    assert "llama3" in result.output
    assert "anthropic" in result.output
    assert "sk-ant-secret" not in result.output


def test_providers_use_and_remove(tmp_path):
    manager = _seeded_manager(tmp_path)

    result = _run_cli(["providers", "use", "anthropic"], manager)
    assert result.exit_code == 0
    assert manager.load().config.provider == "anthropic"

    result = _run_cli(["providers", "remove", "anthropic"], manager)
    assert result.exit_code == 0
    config = manager.load().config
    assert [p.id for p in config.providers] == ["ollama"]
    assert config.provider == "ollama"


def test_unknown_provider_id_exits_with_error(tmp_path):
    manager = _seeded_manager(tmp_path)
    for command in ("use", "remove"):
        result = _run_cli(["providers", command, "ghost"], manager)
        assert result.exit_code == 1
        assert "does not exist" in result.output


def test_corrupt_config_exits_with_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken", encoding="utf-8")
    result = _run_cli(["providers", "list"], ConfigManager(path))
    assert result.exit_code == 1
    assert "Could not load" in result.output


def test_auth_replace_mode_runs_wizard(tmp_path, monkeypatch):
    calls = []

    def _fake_wizard(append_to_existing=False, **kwargs):
        calls.append((append_to_existing, kwargs))
        return None

    monkeypatch.setattr(cli_module, "run_auth_wizard", _fake_wizard)
    manager = ConfigManager(tmp_path / "config.json")

    result = _run_cli(["auth"], manager)

    assert result.exit_code == 0
    assert calls == [(False, {"config_manager": manager})]


def test_auth_add_appends_and_activates(tmp_path, monkeypatch):
    manager = _seeded_manager(tmp_path)

    def _fake_wizard(append_to_existing=False, **kwargs):  # noqa: ARG001
        assert append_to_existing is True
        return OllamaProviderConfig(id="ollama-1")

    monkeypatch.setattr(cli_module, "run_auth_wizard", _fake_wizard)

    result = _run_cli(["auth", "--add", "--activate"], manager)

    assert result.exit_code == 0
    assert "Added provider 'ollama-1'" in result.output
    config = manager.load().config
    assert [p.id for p in config.providers] == ["ollama", "anthropic", "ollama-1"]
    assert config.provider == "ollama-1"


def test_auth_add_cancelled_changes_nothing(tmp_path, monkeypatch):
    manager = _seeded_manager(tmp_path)
    before = manager.config_path.read_text(encoding="utf-8")
    monkeypatch.setattr(cli_module, "run_auth_wizard", lambda append_to_existing=False, **kwargs: None)

    result = _run_cli(["auth", "--add"], manager)

    assert result.exit_code == 0
    assert manager.config_path.read_text(encoding="utf-8") == before


def test_auth_errors_exit_with_code_one(tmp_path, monkeypatch):
    errors = iter([ProviderNotFound("ghost"), PersistenceFailed("disk full")])

    def _failing_wizard(append_to_existing=False, **kwargs):  # noqa: ARG001
        raise next(errors)

    monkeypatch.setattr(cli_module, "run_auth_wizard", _failing_wizard)
    manager = ConfigManager(tmp_path / "config.json")

    result = _run_cli(["auth"], manager)
    assert result.exit_code == 1
    assert "Provider not found: ghost" in result.output

    result = _run_cli(["auth"], manager)
    assert result.exit_code == 1
    assert "disk full" in result.output
