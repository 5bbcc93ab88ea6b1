"""Tests for configuration loading and client construction."""

import json

import pydantic
import pytest
import structlog

from twitch_client import auth, config
from twitch_client.errors import ConfigError


@pytest.fixture
def write_config(tmp_path):
    def write(data: dict) -> str:
        path = tmp_path / "twitch.json"
        path.write_text(json.dumps(data))
        return str(path)

    return write


def test_load_config_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        config.load_config(str(tmp_path / "missing.json"))


def test_load_config_applies_defaults(write_config):
    loaded = config.load_config(write_config({"client_id": "abc"}))

    assert loaded.client_id == "abc"
    assert loaded.timeout == 30.0
    assert loaded.token_type == "user"
    assert loaded.log_level == "INFO"
    assert not loaded.pre_auth


def test_config_rejects_invalid_values():
    with pytest.raises(pydantic.ValidationError):
        config.ClientConfig(client_id="abc", timeout=0)
    with pytest.raises(pydantic.ValidationError):
        config.ClientConfig(client_id="")
    with pytest.raises(pydantic.ValidationError):
        config.ClientConfig(client_id="abc", token_type="bot")


def test_config_normalizes_log_level():
    assert config.ClientConfig(client_id="abc", log_level="debug").log_level == "DEBUG"
    with pytest.raises(pydantic.ValidationError):
        config.ClientConfig(client_id="abc", log_level="verbose")


@pytest.mark.parametrize(
    "data",
    [
        {"client_id": ""},
        {"client_id": "abc", "timeout": 0},
        {"client_id": "abc", "log_level": "verbose"},
        {"client_secret": "s"},
    ],
)
def test_load_config_invalid_content_raises_config_error(write_config, data):
    path = write_config(data)
    with pytest.raises(ConfigError, match="Invalid configuration") as exc_info:
        config.load_config(path)
    assert isinstance(exc_info.value.__cause__, pydantic.ValidationError)


def test_configure_logging_writes_logfmt_to_stderr(capsys):
    config.configure_logging("warning")
    try:
        log = structlog.get_logger("twitch_client.test")
        log.info("hidden")
        log.warning("Token refreshed", attempt=1)
    finally:
        structlog.reset_defaults()

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "hidden" not in captured.err
    assert "level=warning" in captured.err
    assert 'msg="Token refreshed"' in captured.err
    assert "module=test_config" in captured.err
    assert "attempt=1" in captured.err


def test_secret_without_token_uses_client_credentials():
    client = config.create_client(config.ClientConfig(client_id="abc", client_secret="s"))
    assert isinstance(client.auth_provider, auth.ClientCredentialsAuthProvider)


def test_refresh_token_with_secret_uses_refreshable_provider():
    client = config.create_client(
        config.ClientConfig(client_id="abc", client_secret="s", access_token="t", refresh_token="r"),
    )
    assert isinstance(client.auth_provider, auth.RefreshableAuthProvider)


def test_access_token_only_uses_static_provider():
    client = config.create_client(config.ClientConfig(client_id="abc", access_token="t", scopes=["a"]))
    provider = client.auth_provider
    assert isinstance(provider, auth.StaticAuthProvider)
    assert provider.current_scopes == ["a"]


def test_create_client_from_env(write_config, monkeypatch):
    path = write_config({"client_id": "abc", "access_token": "t", "log_level": "WARNING"})
    monkeypatch.setenv(config.CONFIG_ENV_VAR, path)

    client = config.create_client_from_env()

    assert client.auth_provider.client_id == "abc"
