"""Tests for the search lookup stage over whole records."""

import copy

import pytest

from lookup_flow.core import PathError, WarningKind
from tests.helpers import FakeSearchClient, make_lookup_stage, run_stage


@pytest.fixture
def projects_client():
    client = FakeSearchClient()
    client.add("code", "ORG", {"code": "ORG", "name": "jbossorg"})
    client.add("code", "ISPN", {"code": "ISPN", "name": "infinispan"})
    return client


def project_settings(default=None):
    rule = {"idx_result_field": "name", "target_field": "project_names"}
    if default is not None:
        rule["value_default"] = default
    return {
        "index_name": "projects",
        "index_type": "project",
        "source_field": "project_codes",
        "idx_search_field": "code",
        "result_mapping": [rule],
    }


@pytest.mark.asyncio
async def test_enriches_record(people_client, people_settings):
    stage = make_lookup_stage(people_settings, people_client)
    record = {"username": "jdoe"}

    context = await run_stage(stage, record)

    assert record == {"username": "jdoe", "name": "John Doe"}
    assert context.collected_warnings() == []


@pytest.mark.asyncio
async def test_missing_key_writes_nothing(people_client, people_settings):
    stage = make_lookup_stage(people_settings, people_client)
    record = {"other": 1}

    await run_stage(stage, record)

    assert record == {"other": 1}
    assert people_client.calls == []


@pytest.mark.asyncio
async def test_null_result_clears_stale_target(search_client):
    stage = make_lookup_stage({
        "index_name": "people",
        "index_type": "person",
        "source_field": "username",
        "idx_search_field": "user_name",
        "result_mapping": [{"idx_result_field": "full_name", "target_field": "name"}],
    }, search_client)
    record = {"username": "zz", "name": "stale"}

    await run_stage(stage, record)

    assert record == {"username": "zz", "name": None}


@pytest.mark.asyncio
async def test_nested_target_field(people_client, people_settings):
    people_settings["result_mapping"] = [{"idx_result_field": "full_name", "target_field": "person.name"}]
    stage = make_lookup_stage(people_settings, people_client)
    record = {"username": "jdoe"}

    await run_stage(stage, record)

    assert record["person"] == {"name": "John Doe"}


@pytest.mark.asyncio
async def test_target_through_scalar_is_an_error(people_client, people_settings):
    people_settings["result_mapping"] = [{"idx_result_field": "full_name", "target_field": "person.name"}]
    stage = make_lookup_stage(people_settings, people_client)

    with pytest.raises(PathError):
        await run_stage(stage, {"username": "jdoe", "person": "text"})


@pytest.mark.asyncio
async def test_source_value_pattern(search_client):
    search_client.add("key", "ISPN-7", {"title": "Fix it"})
    stage = make_lookup_stage({
        "index_name": "issues",
        "index_type": "issue",
        "source_value": "{project.code}-{number}",
        "idx_search_field": "key",
        "result_mapping": [{"idx_result_field": "title", "target_field": "title"}],
    }, search_client)
    record = {"project": {"code": "ISPN"}, "number": 7}

    await run_stage(stage, record)

    assert record["title"] == "Fix it"


@pytest.mark.asyncio
async def test_source_bases(people_client, people_settings):
    people_settings["result_mapping"].append({"idx_result_field": "_source", "target_field": "person"})
    people_settings["source_bases"] = ["author", "editor", "comments.author"]
    stage = make_lookup_stage(people_settings, people_client)
    record = {
        "author": {"username": "jdoe"},
        "editor": {"username": "asmith"},
        "comments": [
            {"text": "one", "author": {"username": "jdoe"}},
            {"text": "two", "author": {"username": "zz"}},
        ],
    }

    await run_stage(stage, record)

    assert record["author"]["name"] == "John Doe"
    assert record["editor"]["name"] == "Anna Smith"
    assert record["comments"][0]["author"]["name"] == "John Doe"
    assert record["comments"][1]["author"] == {"username": "zz", "name": "unknown user zz", "person": None}
    assert "name" not in record
    # jdoe appears twice but is looked up once
    assert people_client.queried_values().count("jdoe") == 1


@pytest.mark.asyncio
async def test_bases_receive_independent_values(people_client, people_settings):
    people_settings["result_mapping"] = [{"idx_result_field": "_source", "target_field": "person"}]
    people_settings["source_bases"] = ["author", "editor"]
    stage = make_lookup_stage(people_settings, people_client)
    record = {"author": {"username": "jdoe"}, "editor": {"username": "jdoe"}}

    await run_stage(stage, record)
    record["author"]["person"]["full_name"] = "Changed"

    assert record["editor"]["person"]["full_name"] == "John Doe"


@pytest.mark.asyncio
async def test_invalid_and_missing_bases(people_client, people_settings):
    people_settings["source_bases"] = ["author", "editor", "reviewer"]
    stage = make_lookup_stage(people_settings, people_client)
    record = {"author": "jdoe", "editor": {"username": "asmith"}}

    context = await run_stage(stage, record)

    assert record == {"author": "jdoe", "editor": {"username": "asmith", "name": "Anna Smith"}}
    warnings = context.collected_warnings()
    assert [w.kind for w in warnings] == [WarningKind.INVALID_BASE]
    assert warnings[0].message == "Source base 'author' does not contain an object or list of objects, so it is skipped."
    assert warnings[0].stage == "lookup"


@pytest.mark.asyncio
async def test_collection_key_with_default(projects_client):
    stage = make_lookup_stage(project_settings(default="unknown"), projects_client)
    record = {"project_codes": ["ORG", "ISPN", "AAA"]}

    await run_stage(stage, record)

    assert record["project_names"] == ["jbossorg", "infinispan", "unknown"]


@pytest.mark.asyncio
async def test_collection_key_without_default(projects_client):
    stage = make_lookup_stage(project_settings(), projects_client)
    record = {"project_codes": ["ORG", "AAA", "ISPN"]}

    context = await run_stage(stage, record)

    assert record["project_names"] == ["jbossorg", "infinispan"]
    assert len(context.warnings.of_kind(WarningKind.NO_RESULT)) == 1


@pytest.mark.asyncio
async def test_collection_without_any_value_is_not_written(projects_client):
    stage = make_lookup_stage(project_settings(), projects_client)
    record = {"project_codes": ["AAA", "BBB"], "project_names": ["stale"]}

    await run_stage(stage, record)

    assert record["project_names"] == ["stale"]


@pytest.mark.asyncio
async def test_collection_duplicates_queried_once(projects_client):
    stage = make_lookup_stage(project_settings(), projects_client)
    record = {"project_codes": ["ORG", "ORG", "ISPN"]}

    await run_stage(stage, record)

    assert record["project_names"] == ["jbossorg", "jbossorg", "infinispan"]
    assert projects_client.queried_values() == ["ORG", "ISPN"]


@pytest.mark.asyncio
async def test_idempotent_across_invocations(people_client, people_settings):
    people_settings["source_bases"] = ["author", "comments.author"]
    stage = make_lookup_stage(people_settings, people_client)
    initial = {
        "author": {"username": "jdoe"},
        "comments": [{"author": {"username": "zz"}}, {"author": {"username": "jdoe"}}],
    }

    first = copy.deepcopy(initial)
    await run_stage(stage, first)
    calls_after_first = len(people_client.calls)
    second = copy.deepcopy(initial)
    await run_stage(stage, second)

    assert first == second
    assert len(people_client.calls) == 2 * calls_after_first


@pytest.mark.asyncio
async def test_backend_down_for_every_field(people_client, people_settings):
    people_client.fail_all = True
    people_settings["result_mapping"].append({"idx_result_field": "email", "target_field": "email"})
    people_settings["source_bases"] = ["author", "editor"]
    stage = make_lookup_stage(people_settings, people_client)
    record = {"author": {"username": "jdoe"}, "editor": {"username": "asmith", "email": "stale"}}

    context = await run_stage(stage, record)

    assert record["author"] == {"username": "jdoe", "name": "unknown user jdoe", "email": None}
    assert record["editor"] == {"username": "asmith", "name": "unknown user asmith", "email": None}
    assert len(context.warnings.of_kind(WarningKind.BACKEND_FAILURE)) == 1


@pytest.mark.asyncio
async def test_pattern_rendering_empty_key_applies_default(search_client):
    stage = make_lookup_stage({
        "index_name": "projects",
        "index_type": "project",
        "source_value": "{code}",
        "idx_search_field": "code",
        "result_mapping": [{"idx_result_field": "name", "target_field": "name", "value_default": "unknown"}],
    }, search_client)
    record = {"name": "stale"}

    await run_stage(stage, record)

    assert record["name"] == "unknown"
    assert search_client.queried_values() == [""]
