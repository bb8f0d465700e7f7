"""Pytest configuration and fixtures for all tests."""

import pytest

from keysmith.core.config import CLIConfig, ConfigManager, LoadedConfig


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Point every test at a private configuration directory.

    Keeps tests from reading or writing ``~/.keysmith`` and from picking up
    environment overrides set on the developer's machine.
    """
    config_dir = tmp_path / "keysmith-home"
    monkeypatch.setenv("KEYSMITH_CONFIG_DIR", str(config_dir))
    for name in ("KEYSMITH_API_URL", "KEYSMITH_MODELS_TIMEOUT", "KEYSMITH_CLIENT_SOURCE"):
        monkeypatch.delenv(name, raising=False)
    return config_dir


class RecordingConfigManager(ConfigManager):
    """ConfigManager that serves a fixed config and records saves."""

    def __init__(self, config=None, path=None):
        super().__init__(path)
        self.config = config or CLIConfig()
        self.saved = []

    def load(self) -> LoadedConfig:
        return LoadedConfig(config=self.config.model_copy(deep=True), path=self.config_path)

    def save(self, config: CLIConfig) -> None:
        self.saved.append(config)


@pytest.fixture
def recording_manager():
    return RecordingConfigManager()


@pytest.fixture
def manager_factory():
    return RecordingConfigManager
