import json

import pytest

from kicktipp_agent.src.utils.context_repository import (
    InMemoryContextRepository,
    JsonFileContextRepository,
)

COMMUNITY = "ehonda-test-buli"


@pytest.fixture(params=["memory", "json"])
def repository(request, tmp_path):
    if request.param == "memory":
        return InMemoryContextRepository()
    return JsonFileContextRepository(tmp_path)


@pytest.mark.asyncio
async def test_versions_start_at_zero_and_increment(repository):
    assert await repository.save_context_document("standings", "v0", COMMUNITY) == 0
    assert await repository.save_context_document("standings", "v1", COMMUNITY) == 1

    latest = await repository.get_latest_context_document("standings", COMMUNITY)
    assert latest.version == 1
    assert latest.content == "v1"
    assert latest.document_name == "standings"


@pytest.mark.asyncio
async def test_unchanged_content_is_not_saved(repository):
    await repository.save_context_document("standings", "same", COMMUNITY)

    assert await repository.save_context_document("standings", "same", COMMUNITY) is None
    latest = await repository.get_latest_context_document("standings", COMMUNITY)
    assert latest.version == 0


@pytest.mark.asyncio
async def test_get_specific_version(repository):
    await repository.save_context_document("standings", "v0", COMMUNITY)
    await repository.save_context_document("standings", "v1", COMMUNITY)

    document = await repository.get_context_document("standings", 0, COMMUNITY)

    assert document.content == "v0"
    assert await repository.get_context_document("standings", 5, COMMUNITY) is None


@pytest.mark.asyncio
async def test_missing_document_returns_none(repository):
    assert await repository.get_latest_context_document("unknown", COMMUNITY) is None


@pytest.mark.asyncio
async def test_documents_are_kept_per_community(repository):
    await repository.save_context_document("standings", "a", COMMUNITY)
    await repository.save_context_document("standings", "b", "other-community")
    await repository.save_context_document("recent-history-fcb", "c", COMMUNITY)

    assert await repository.get_context_document_names(COMMUNITY) == [
        "recent-history-fcb",
        "standings",
    ]
    other = await repository.get_latest_context_document("standings", "other-community")
    assert other.content == "b"
    assert other.version == 0


@pytest.mark.asyncio
async def test_json_repository_persists_between_instances(tmp_path):
    first = JsonFileContextRepository(tmp_path)
    await first.save_context_document("standings", "v0", COMMUNITY)

    second = JsonFileContextRepository(tmp_path)
    latest = await second.get_latest_context_document("standings", COMMUNITY)

    assert latest.content == "v0"
    assert await second.save_context_document("standings", "v0", COMMUNITY) is None
    assert await second.save_context_document("standings", "v1", COMMUNITY) == 1

    stored = json.loads((tmp_path / f"{COMMUNITY}.json").read_text(encoding="utf-8"))
    assert [version["version"] for version in stored["standings"]] == [0, 1]
    assert not (tmp_path / f"{COMMUNITY}.json.tmp").exists()
