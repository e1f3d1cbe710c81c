"""Tests for the HTTP service."""

import pytest
from fastapi.testclient import TestClient

from lookup_flow.core import EnrichmentPipeline
from lookup_flow.server import create_app


@pytest.fixture
def pipeline(people_client, people_settings):
    pipeline = EnrichmentPipeline(search_client=people_client)
    pipeline.load({
        "name": "people",
        "stages": [{"name": "Author lookup", "type": "enrich/search_lookup", "settings": people_settings}],
    })
    return pipeline


@pytest.fixture
def client(pipeline):
    with TestClient(create_app(pipeline=pipeline)) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["pipeline"] == "people"
    assert data["stage_count"] == 1


def test_list_stages(client):
    data = client.get("/stages").json()
    assert "search_lookup" in data["stages"]["enrich"]
    assert "value_map" in data["stages"]["enrich"]
    assert data["total"] >= 2


def test_stage_schema(client):
    response = client.get("/stages/enrich/search_lookup")
    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "enrich/search_lookup"
    assert data["requires_search_client"] is True
    assert data["options"]["idx_search_field"]["required"] is True


def test_unknown_stage_schema(client):
    response = client.get("/stages/enrich/nope")
    assert response.status_code == 404


def test_enrich(client):
    response = client.post("/enrich", json={"record": {"username": "jdoe"}})
    assert response.status_code == 200
    data = response.json()
    assert data["record"] == {"username": "jdoe", "name": "John Doe"}
    assert data["warnings"] == []
    assert data["duration_seconds"] >= 0


def test_enrich_with_warnings(client):
    data = client.post("/enrich", json={"record": {"username": "zz"}}).json()
    assert data["record"]["name"] == "unknown user zz"
    assert data["warnings"][0] == {
        "message": "No result found during lookup for value 'zz' using index field 'user_name'.",
        "kind": "no_result",
        "stage": "Author lookup",
    }


def test_enrich_batch(client):
    response = client.post("/enrich/batch", json={"records": [{"username": "jdoe"}, {"username": "zz"}]})
    assert response.status_code == 200
    data = response.json()
    assert [r["record"]["name"] for r in data["results"]] == ["John Doe", "unknown user zz"]
    assert data["total"] == 2
    assert data["warnings"] == 2


def test_enrich_contract_violation_is_422(people_client):
    pipeline = EnrichmentPipeline(search_client=people_client)
    pipeline.load([{
        "name": "nested",
        "type": "enrich/search_lookup",
        "settings": {
            "index_name": "people",
            "index_type": "person",
            "source_field": "username",
            "idx_search_field": "user_name",
            "result_mapping": [{"idx_result_field": "full_name", "target_field": "person.name"}],
        },
    }])
    with TestClient(create_app(pipeline=pipeline)) as test_client:
        response = test_client.post("/enrich", json={"record": {"username": "jdoe", "person": "text"}})
        batch = test_client.post("/enrich/batch", json={"records": [{"username": "jdoe"}, {"username": "jdoe", "person": 1}]})

    assert response.status_code == 422
    assert "person.name" in response.json()["detail"]
    assert batch.status_code == 422
    assert batch.json()["detail"].startswith("Record 1:")


def test_enrich_requires_record(client):
    assert client.post("/enrich", json={"wrong": {}}).status_code == 422


def test_no_pipeline_configured(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("server:\n  port: 9000\n")

    with TestClient(create_app(config_path=config_path)) as test_client:
        assert test_client.get("/health").json()["pipeline"] is None
        response = test_client.post("/enrich", json={"record": {}})

    assert response.status_code == 503


def test_pipeline_loaded_from_config(tmp_path):
    pipeline_path = tmp_path / "pipeline.yaml"
    pipeline_path.write_text(
        "name: statuses\n"
        "stages:\n"
        "  - type: enrich/value_map\n"
        "    settings: {source_field: status, target_field: label, value_mapping: {open: Open}}\n"
    )
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"search:\n  url: http://search.test:9200\npipeline: {pipeline_path}\n")

    app = create_app(config_path=config_path)
    with TestClient(app) as test_client:
        assert test_client.get("/health").json()["pipeline"] == "statuses"
        data = test_client.post("/enrich", json={"record": {"status": "open"}}).json()

    assert data["record"] == {"status": "open", "label": "Open"}
    assert app.state.pipeline is None
