"""Configuration helpers for lookup-flow."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from . import settings
from .core.errors import ConfigurationError

ENV_SEARCH_URL = "LOOKUP_FLOW_SEARCH_URL"
ENV_PIPELINE = "LOOKUP_FLOW_PIPELINE"
ENV_CONFIG = "LOOKUP_FLOW_CONFIG"

DEFAULT_CONFIG = {
    "search": {
        "url": settings.search_url,
        "timeout": settings.search_timeout,
        "username": None,
        "password": None,
        "verify_tls": settings.search_verify_tls,
        "use_mapping_types": settings.search_use_mapping_types,
        "max_hits": settings.search_max_hits,
    },
    "server": {
        "host": settings.server_host,
        "port": settings.server_port,
    },
    "pipeline": None,
}

_SEARCH_KEYS = set(DEFAULT_CONFIG["search"])
_SERVER_KEYS = set(DEFAULT_CONFIG["server"])


def config_defaults() -> dict:
    """Return default configuration values."""
    return copy.deepcopy(DEFAULT_CONFIG)


def _deep_merge(base: dict, update: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping/object")
    return data


def _apply_environment(config: dict) -> dict:
    if os.environ.get(ENV_SEARCH_URL):
        config["search"]["url"] = os.environ[ENV_SEARCH_URL]
    if os.environ.get(ENV_PIPELINE):
        config["pipeline"] = os.environ[ENV_PIPELINE]
    return config


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    """Explicit path, then $LOOKUP_FLOW_CONFIG, then the user config file."""
    if config_path is not None:
        return Path(config_path)
    if os.environ.get(ENV_CONFIG):
        return Path(os.environ[ENV_CONFIG])
    return settings.config_file


def load_config(config_path: Optional[Path] = None) -> dict:
    """
    Load resolved configuration: defaults, merged with the config file,
    overridden by environment variables.

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    path = resolve_config_path(config_path)
    file_config = _load_config_file(path)
    errors = validate_config_dict(file_config)
    if errors:
        raise ConfigurationError(f"Invalid config file {path}: " + "; ".join(errors))
    return _apply_environment(_deep_merge(config_defaults(), file_config))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config_dict(data: Any) -> list[str]:
    """Validate a config dict. Returns list of errors (empty = valid)."""
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Config must be a mapping/object"]

    allowed_top = {"search", "server", "pipeline"}
    for key in data:
        if key not in allowed_top:
            errors.append(f"Unknown config key: {key}")

    if "search" in data and isinstance(data["search"], dict):
        search = data["search"]
        for key in search:
            if key not in _SEARCH_KEYS:
                errors.append(f"Unknown search key: {key}")
        if "url" in search and not (isinstance(search["url"], str) and search["url"].startswith(("http://", "https://"))):
            errors.append("search.url must be an http(s) URL")
        timeout = search.get("timeout")
        if timeout is not None and (not _is_number(timeout) or timeout <= 0):
            errors.append("search.timeout must be a positive number")
        max_hits = search.get("max_hits")
        if max_hits is not None and (not _is_int(max_hits) or max_hits < 2):
            errors.append("search.max_hits must be an integer of at least 2")
        for key in ("verify_tls", "use_mapping_types"):
            if key in search and not isinstance(search[key], bool):
                errors.append(f"search.{key} must be a boolean")
    elif "search" in data:
        errors.append("search must be an object")

    if "server" in data and isinstance(data["server"], dict):
        for key in data["server"]:
            if key not in _SERVER_KEYS:
                errors.append(f"Unknown server key: {key}")
        port = data["server"].get("port")
        if port is not None and not (_is_int(port) and 1 <= port <= 65535):
            errors.append("server.port must be between 1 and 65535")
    elif "server" in data:
        errors.append("server must be an object")

    pipeline = data.get("pipeline")
    if pipeline is not None and not isinstance(pipeline, str):
        errors.append("pipeline must be a path string")

    return errors


def validate_config_file(config_path: Optional[Path] = None) -> list[str]:
    """Validate the config file. Returns list of errors (empty = valid)."""
    path = resolve_config_path(config_path)
    if not path.exists():
        return []
    try:
        data = _load_config_file(path)
    except ConfigurationError as e:
        return [str(e)]
    return validate_config_dict(data)
