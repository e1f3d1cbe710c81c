"""
Shared test fixtures: in-memory search backends and environment isolation.
"""

from typing import Any

import pytest

from lookup_flow import settings
from tests.helpers import FakeSearchClient


@pytest.fixture(autouse=True)
def isolate_lookup_flow_env(request, monkeypatch, tmp_path):
    """Clear LOOKUP_FLOW_* variables and point the user config file at a temp path.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the environment.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in ("LOOKUP_FLOW_SEARCH_URL", "LOOKUP_FLOW_PIPELINE", "LOOKUP_FLOW_CONFIG"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(settings, "config_file", tmp_path / "no-such-dir" / "config.yaml")


@pytest.fixture
def search_client() -> FakeSearchClient:
    return FakeSearchClient()


@pytest.fixture
def people_client() -> FakeSearchClient:
    """Backend with a small people index."""
    client = FakeSearchClient()
    client.add("user_name", "jdoe", {"user_name": "jdoe", "full_name": "John Doe", "email": "jdoe@example.com"})
    client.add("user_name", "asmith", {"user_name": "asmith", "full_name": "Anna Smith"})
    client.add("email", "bob@example.com", {"user_name": "bob", "full_name": "Bob Builder"})
    return client


@pytest.fixture
def people_settings() -> dict[str, Any]:
    return {
        "index_name": "people",
        "index_type": "person",
        "source_field": "username",
        "idx_search_field": ["user_name", "email"],
        "result_mapping": [
            {"idx_result_field": "full_name", "target_field": "name", "value_default": "unknown user {__original}"},
        ],
    }
