import json
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from graphai import config, paths
from graphai.generation import DEFAULT_MODEL, DEFAULT_TEMPERATURE


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    for name in ("OPENAI_API_KEY", "GRAPHAI_MODEL", "GRAPHAI_TEMPERATURE"):
        # setenv first so teardown restores whatever set_api_key writes
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path / "config.json"


def test_defaults_without_file(config_path):
    assert config.load_config(config_path) == {}
    assert config.get_api_key(config_path) is None
    assert config.get_model(config_path) == DEFAULT_MODEL
    assert config.get_temperature(config_path) == DEFAULT_TEMPERATURE


def test_values_from_file(config_path):
    config_path.write_text(json.dumps({"openai_api_key": "sk-file", "model": "gpt-x", "temperature": 0.1}))

    assert config.get_api_key(config_path) == "sk-file"
    assert config.get_model(config_path) == "gpt-x"
    assert config.get_temperature(config_path) == 0.1


def test_environment_wins(config_path, monkeypatch):
    config_path.write_text(json.dumps({"openai_api_key": "sk-file", "model": "gpt-x"}))
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("GRAPHAI_MODEL", "gpt-env")
    monkeypatch.setenv("GRAPHAI_TEMPERATURE", "0.3")

    assert config.get_api_key(config_path) == "sk-env"
    assert config.get_model(config_path) == "gpt-env"
    assert config.get_temperature(config_path) == 0.3


def test_bad_temperature_falls_back(config_path, monkeypatch):
    monkeypatch.setenv("GRAPHAI_TEMPERATURE", "warm")
    assert config.get_temperature(config_path) == DEFAULT_TEMPERATURE


def test_corrupt_config_is_ignored(config_path):
    config_path.write_text("{oops")
    assert config.load_config(config_path) == {}


def test_set_api_key_persists(config_path, monkeypatch):
    config_path.write_text(json.dumps({"model": "gpt-x"}))

    config.set_api_key("sk-new", config_path)

    assert json.loads(config_path.read_text()) == {"model": "gpt-x", "openai_api_key": "sk-new"}
    assert config.get_api_key(config_path) == "sk-new"


@pytest.mark.parametrize("key, message", [("", "API key is empty"), ("abc", "API key should start with 'sk-'")])
def test_validate_rejects_obvious_garbage(key, message):
    assert config.validate_api_key(key) == (False, message)


def test_validate_reports_auth_failure():
    request = httpx.Request("GET", "https://api.openai.com/v1/models")
    error = openai.AuthenticationError("bad key", response=httpx.Response(401, request=request), body=None)
    client = MagicMock()
    client.models.list.side_effect = error

    with patch.object(config, "OpenAI", return_value=client):
        assert config.validate_api_key("sk-bad") == (False, "Invalid API key")


def test_validate_accepts_working_key():
    client = MagicMock()
    client.models.list.return_value = ["gpt-4o-mini", "gpt-4o"]

    with patch.object(config, "OpenAI", return_value=client):
        valid, message = config.validate_api_key("sk-good")

    assert valid
    assert "2 models" in message


def test_paths_follow_graphai_home(tmp_path, monkeypatch):
    monkeypatch.setenv("GRAPHAI_HOME", str(tmp_path))

    assert paths.get_config_path() == tmp_path / "config.json"
    assert paths.get_saved_graphs_path() == tmp_path / "db" / "saved_graphs.json"
