"""Tests for prompt, logging and User-Agent helpers."""

import json
import logging

import pytest

from keysmith import __version__
from keysmith.core.errors import UserCancelled
from keysmith.utils import prompt as prompt_module
from keysmith.utils.log import StructuredFormatter, init_logger
from keysmith.utils.user_agent import build_user_agent, get_client_source


def test_prompt_secret_masks_input(monkeypatch):
    captured = {}

    def _fake_prompt(message, **kwargs):
        captured["message"] = message
        captured.update(kwargs)
        return "s3cret"

    monkeypatch.setattr(prompt_module, "pt_prompt", _fake_prompt)
    assert prompt_module.prompt_secret("API key") == "s3cret"
    assert captured["message"] == "API key: "
    assert captured["is_password"] is True


def test_prompt_text_uses_default_for_blank_input(monkeypatch):
    messages = []

    def _fake_prompt(message, **kwargs):  # noqa: ARG001
        messages.append(message)
        return "   "

    monkeypatch.setattr(prompt_module, "pt_prompt", _fake_prompt)
    assert prompt_module.prompt_text("Server URL", default="http://localhost:1234") == "http://localhost:1234"
    assert messages == ["Server URL [http://localhost:1234]: "]
    assert prompt_module.prompt_text("Model ID") == ""


@pytest.mark.parametrize("interrupt", [KeyboardInterrupt, EOFError])
def test_prompts_map_interrupts_to_user_cancelled(monkeypatch, interrupt):
    def _fake_prompt(message, **kwargs):  # noqa: ARG001
        raise interrupt()

    monkeypatch.setattr(prompt_module, "pt_prompt", _fake_prompt)
    with pytest.raises(UserCancelled):
        prompt_module.prompt_secret("API key")
    with pytest.raises(UserCancelled):
        prompt_module.prompt_text("Server URL")


def test_user_agent_defaults_to_cli():
    assert get_client_source() == "cli"
    assert build_user_agent() == f"keysmith-cli/{__version__} (external, cli)"


def test_user_agent_source_from_environment(monkeypatch):
    monkeypatch.setenv("KEYSMITH_CLIENT_SOURCE", "CI")
    assert build_user_agent() == f"keysmith-cli/{__version__} (external, ci)"
    monkeypatch.setenv("KEYSMITH_CLIENT_SOURCE", "toaster")
    assert get_client_source() == "cli"


def test_structured_formatter_appends_extra_fields():
    formatter = StructuredFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("keysmith", logging.WARNING, __file__, 1, "[models] failed", None, None)
    record.provider = "kilocode"
    line = formatter.format(record)
    assert line.startswith("WARNING [models] failed")
    payload = json.loads(line.split(" | ", 1)[1])
    assert payload == {"provider": "kilocode"}


def test_init_logger_writes_file(tmp_path):
    logger = init_logger(tmp_path / "logs")
    logger.warning("[wizard] something happened", extra={"provider": "ollama"})
    log_files = list((tmp_path / "logs").glob("keysmith_*.log"))
    assert len(log_files) == 1
    contents = log_files[0].read_text(encoding="utf-8")
    assert "[wizard] something happened" in contents
    assert '"provider": "ollama"' in contents


def test_reinitialising_logger_moves_file_output(tmp_path):
    init_logger(tmp_path / "first")
    logger = init_logger(tmp_path / "second")
    logger.info("[wizard] after move")

    first = next((tmp_path / "first").glob("keysmith_*.log")).read_text(encoding="utf-8")
    second = next((tmp_path / "second").glob("keysmith_*.log")).read_text(encoding="utf-8")
    assert "[wizard] after move" not in first
    assert "[wizard] after move" in second
    assert len([h for h in logger.logger.handlers if isinstance(h, logging.FileHandler)]) == 1
