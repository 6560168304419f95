from __future__ import annotations

import pytest

from fodder.server.settings import DEFAULT_BIND_PORT, load_server_settings


def test_defaults(monkeypatch):
    for key in (
        "FODDER_BIND_PORT",
        "FODDER_BASE_PATH",
        "FODDER_ROLE",
        "FODDER_CONFIG_FILENAME",
        "FODDER_REPLICAS",
        "FODDER_PERSIST_ON_SHUTDOWN",
    ):
        monkeypatch.delenv(key, raising=False)

    settings = load_server_settings()

    assert settings.bind_port == DEFAULT_BIND_PORT
    assert settings.base_path == "/fodder"
    assert settings.role == "server"
    assert settings.config_path.name == "animal_food.json"
    assert settings.persist_on_shutdown is True


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("FODDER_BIND_PORT", "70000")
    monkeypatch.setenv("FODDER_BASE_PATH", "feed/")
    monkeypatch.setenv("FODDER_SAVEGAME_DIR", str(tmp_path))
    monkeypatch.setenv("FODDER_REPLICAS", "http://a:1/sync, http://b:2/sync")

    settings = load_server_settings()

    assert settings.bind_port == 65535
    assert settings.base_path == "/feed"
    assert settings.config_path == tmp_path.resolve() / "animal_food.json"
    assert settings.replicas == ("http://a:1/sync", "http://b:2/sync")


@pytest.mark.parametrize(
    "key,value",
    [("FODDER_ROLE", "observer"), ("FODDER_CONFIG_FILENAME", "../escape.json"), ("FODDER_PERSIST_ON_SHUTDOWN", "maybe")],
)
def test_invalid_settings_raise(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(RuntimeError):
        load_server_settings()
