"""Tests for configuration loading and validation."""

import pytest

from lookup_flow import config as config_module
from lookup_flow.config import (
    config_defaults,
    load_config,
    resolve_config_path,
    validate_config_dict,
    validate_config_file,
)
from lookup_flow.core import ConfigurationError


def test_defaults_without_config_file():
    config = load_config()
    assert config == config_defaults()
    assert config["search"]["url"] == "http://localhost:9200"
    assert config["server"]["port"] == 9848
    assert config["pipeline"] is None


def test_file_deep_merged_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("search:\n  url: https://search.example.com\n  max_hits: 3\npipeline: people.yaml\n")

    config = load_config(path)

    assert config["search"]["url"] == "https://search.example.com"
    assert config["search"]["max_hits"] == 3
    assert config["search"]["timeout"] == 10.0
    assert config["pipeline"] == "people.yaml"


def test_defaults_not_mutated(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("search:\n  url: https://other\n")
    load_config(path)
    assert config_module.DEFAULT_CONFIG["search"]["url"] == "http://localhost:9200"


def test_environment_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("search:\n  url: https://from-file\n")
    monkeypatch.setenv("LOOKUP_FLOW_SEARCH_URL", "http://from-env:9200")
    monkeypatch.setenv("LOOKUP_FLOW_PIPELINE", "env.yaml")

    config = load_config(path)

    assert config["search"]["url"] == "http://from-env:9200"
    assert config["pipeline"] == "env.yaml"


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("server:\n  port: 8000\n")
    monkeypatch.setenv("LOOKUP_FLOW_CONFIG", str(path))

    assert resolve_config_path() == path
    assert load_config()["server"]["port"] == 8000


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("search: [unclosed\n")
    with pytest.raises(ConfigurationError, match="Invalid config file"):
        load_config(path)


def test_non_mapping_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ConfigurationError, match="must contain a mapping"):
        load_config(path)


def test_validation_errors_joined(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("search:\n  url: ftp://nope\n  timeout: 0\nextra: 1\n")
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(path)
    message = str(exc_info.value)
    assert "Unknown config key: extra" in message
    assert "search.url must be an http(s) URL" in message
    assert "search.timeout must be a positive number" in message


@pytest.mark.parametrize("data,error", [
    ({"search": {"bogus": 1}}, "Unknown search key: bogus"),
    ({"search": {"max_hits": 1}}, "search.max_hits must be an integer of at least 2"),
    ({"search": {"max_hits": True}}, "search.max_hits must be an integer of at least 2"),
    ({"search": {"verify_tls": "yes"}}, "search.verify_tls must be a boolean"),
    ({"search": {"use_mapping_types": 1}}, "search.use_mapping_types must be a boolean"),
    ({"search": "http://x"}, "search must be an object"),
    ({"server": {"port": 70000}}, "server.port must be between 1 and 65535"),
    ({"server": {"workers": 2}}, "Unknown server key: workers"),
    ({"pipeline": ["a"]}, "pipeline must be a path string"),
])
def test_validate_config_dict(data, error):
    assert error in validate_config_dict(data)


def test_validate_config_dict_accepts_valid():
    assert validate_config_dict({
        "search": {"url": "https://x", "timeout": 5, "username": "u", "password": "p",
                   "verify_tls": False, "use_mapping_types": True, "max_hits": 2},
        "server": {"host": "0.0.0.0", "port": 80},
        "pipeline": "p.yaml",
    }) == []
    assert validate_config_dict([]) == ["Config must be a mapping/object"]


def test_validate_config_file(tmp_path):
    assert validate_config_file(tmp_path / "absent.yaml") == []

    path = tmp_path / "config.yaml"
    path.write_text("server:\n  port: 0\n")
    assert validate_config_file(path) == ["server.port must be between 1 and 65535"]
