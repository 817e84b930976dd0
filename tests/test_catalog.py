"""Tests for catalog storage and ID generation."""

import pytest

from core.errors import DuplicateFile
from modules.catalog.models import FileRecord
from modules.catalog.service import CatalogStore, SequenceGenerator
from tests.conftest import ADMIN_ID


def make_record(catalog_id: str, source: str, title: str, kind: str = "video") -> FileRecord:
    return FileRecord(
        catalog_id=catalog_id,
        source_file_ref=source,
        display_name=title,
        clean_title=title,
        kind=kind,
        uploader_id=ADMIN_ID,
        size_label="1.0 GB",
    )


async def add(store: CatalogStore, catalog_id: str, source: str, title: str, tokens=None) -> FileRecord:
    tokens = tokens if tokens is not None else title.lower().split()
    return await store.insert(make_record(catalog_id, source, title), tokens)


@pytest.mark.asyncio
async def test_sequence_ids_are_padded_and_increasing(session):
    generator = SequenceGenerator(session)

    ids = [await generator.next("file") for _ in range(3)]

    assert ids == ["F0001", "F0002", "F0003"]


@pytest.mark.asyncio
async def test_sequence_counters_are_independent_by_name(session):
    generator = SequenceGenerator(session)

    assert await generator.next("file") == "F0001"
    assert await generator.next("other") == "F0001"
    assert await generator.next("file") == "F0002"


@pytest.mark.asyncio
async def test_sequence_not_reused_after_delete(session):
    generator = SequenceGenerator(session)
    store = CatalogStore(session)

    first = await generator.next()
    await add(store, first, "src-1", "First")
    assert await store.delete(first)

    second = await generator.next()
    assert second != first
    assert second > first


@pytest.mark.asyncio
async def test_insert_duplicate_source_rejected(session):
    store = CatalogStore(session)
    await add(store, "F0001", "same-file", "Iron Man")

    with pytest.raises(DuplicateFile):
        await add(store, "F0002", "same-file", "Iron Man again")

    assert await store.count() == 1
    assert await store.find_by_id("F0002") is None


@pytest.mark.asyncio
async def test_find_by_tokens_requires_all_tokens(session):
    store = CatalogStore(session)
    await add(store, "F0001", "src-1", "Iron Man 2008", ["iron", "man", "2008"])
    await add(store, "F0002", "src-2", "Ironman", ["ironman"])
    await add(store, "F0003", "src-3", "Iron Sky", ["iron", "sky"])

    found = await store.find_by_tokens(["iron", "man"])

    assert [f.catalog_id for f in found] == ["F0001"]
    assert await store.count(["iron", "man"]) == 1
    assert await store.count(["iron"]) == 2
    assert await store.find_by_tokens(["iron", "missing"]) == []


@pytest.mark.asyncio
async def test_find_by_tokens_ignores_repeated_query_tokens(session):
    store = CatalogStore(session)
    await add(store, "F0001", "src-1", "Iron Man", ["iron", "man"])

    assert await store.count(["iron", "iron"]) == 1


@pytest.mark.asyncio
async def test_find_by_tokens_newest_first_with_paging(session):
    store = CatalogStore(session)
    for n in range(1, 6):
        await add(store, f"F000{n}", f"src-{n}", f"Show part {n}", ["show", "part", str(n)])

    first = await store.find_by_tokens(["show"], offset=0, limit=2)
    second = await store.find_by_tokens(["show"], offset=2, limit=2)
    beyond = await store.find_by_tokens(["show"], offset=10, limit=2)

    assert [f.catalog_id for f in first] == ["F0005", "F0004"]
    assert [f.catalog_id for f in second] == ["F0003", "F0002"]
    assert beyond == []


@pytest.mark.asyncio
async def test_find_by_id_is_case_insensitive(session):
    store = CatalogStore(session)
    await add(store, "F0001", "src-1", "Iron Man")

    record = await store.find_by_id("f0001")

    assert record is not None
    assert record.token_set == {"iron", "man"}


@pytest.mark.asyncio
async def test_increment_download_and_trending(session):
    store = CatalogStore(session)
    await add(store, "F0001", "src-1", "Quiet")
    await add(store, "F0002", "src-2", "Popular")

    await store.increment_download("F0002")
    await store.increment_download("F0002")
    await store.increment_download("F0001")

    trending = await store.list_trending(10)
    assert [f.catalog_id for f in trending] == ["F0002", "F0001"]
    assert trending[0].download_count == 2


@pytest.mark.asyncio
async def test_list_recent_newest_first(session):
    store = CatalogStore(session)
    await add(store, "F0001", "src-1", "Old")
    await add(store, "F0002", "src-2", "New")

    recent = await store.list_recent(1)

    assert [f.catalog_id for f in recent] == ["F0002"]


@pytest.mark.asyncio
async def test_delete_removes_tokens(session):
    store = CatalogStore(session)
    await add(store, "F0001", "src-1", "Iron Man")

    assert await store.delete("F0001")
    assert not await store.delete("F0001")
    assert await store.count(["iron"]) == 0
    assert not await store.exists_source("src-1")


@pytest.mark.asyncio
async def test_find_many_keeps_order_and_skips_missing(session):
    store = CatalogStore(session)
    await add(store, "F0001", "src-1", "One")
    await add(store, "F0002", "src-2", "Two")

    found = await store.find_many(["F0002", "F0009", "F0001"])

    assert [f.catalog_id for f in found] == ["F0002", "F0001"]
