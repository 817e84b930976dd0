"""Tests for the upload review workflow."""

from datetime import timedelta

import pytest
from sqlalchemy import select, func

from core.database import utcnow
from core.errors import DuplicateFile, NotAuthorized, NotFound
from modules.catalog.models import PendingUpload
from modules.catalog.moderation import ModerationWorkflow
from modules.catalog.service import CatalogStore
from tests.conftest import ADMIN_ID, USER_ID

OTHER_ADMIN_ID = 1001


async def pending_count(session) -> int:
    result = await session.execute(select(func.count(PendingUpload.id)))
    return int(result.scalar_one())


async def submit(workflow, source="file-1", name="Iron.Man.2008.mkv", submitter=ADMIN_ID):
    return await workflow.submit(
        submitter_id=submitter,
        chat_id=submitter,
        message_id=10,
        source_file_ref=source,
        raw_name=name,
        kind="video",
        size_bytes=1_500_000_000,
    )


@pytest.fixture
def workflow(session, admins):
    return ModerationWorkflow(session, admins | {OTHER_ADMIN_ID}, ttl=600)


@pytest.mark.asyncio
async def test_submit_by_non_admin_creates_nothing(session, workflow):
    with pytest.raises(NotAuthorized):
        await submit(workflow, submitter=USER_ID)

    assert await pending_count(session) == 0


@pytest.mark.asyncio
async def test_submit_prepares_title_tokens_and_size(workflow):
    pending = await submit(workflow)

    assert pending.clean_title == "Iron Man 2008"
    assert pending.token_list == ["iron", "man", "2008"]
    assert pending.size_label == "1.5 GB"


@pytest.mark.asyncio
async def test_submit_without_name_uses_unknown(workflow):
    pending = await submit(workflow, name=None)

    assert pending.display_name == "Unknown"
    assert pending.clean_title == "Unknown"


@pytest.mark.asyncio
async def test_submit_rejects_unknown_kind(workflow):
    with pytest.raises(ValueError):
        await workflow.submit(ADMIN_ID, ADMIN_ID, 1, "ref", "a.mp3", "audio", 10)


@pytest.mark.asyncio
async def test_confirm_publishes_with_next_id(session, workflow):
    pending = await submit(workflow)

    record = await workflow.confirm(pending.id, ADMIN_ID)

    assert record.catalog_id == "F0001"
    assert record.uploader_id == ADMIN_ID
    assert await pending_count(session) == 0
    stored = await CatalogStore(session).find_by_id("F0001")
    assert stored is not None
    assert stored.token_set == {"iron", "man", "2008"}


@pytest.mark.asyncio
async def test_confirm_duplicate_discards_pending(session, workflow):
    first = await submit(workflow, source="same")
    await workflow.confirm(first.id, ADMIN_ID)
    second = await submit(workflow, source="same", name="Copy.mkv")

    with pytest.raises(DuplicateFile):
        await workflow.confirm(second.id, ADMIN_ID)

    assert await pending_count(session) == 0
    assert await CatalogStore(session).count() == 1


@pytest.mark.asyncio
async def test_confirm_twice_is_not_found(workflow):
    pending = await submit(workflow)
    await workflow.confirm(pending.id, ADMIN_ID)

    with pytest.raises(NotFound):
        await workflow.confirm(pending.id, ADMIN_ID)


@pytest.mark.asyncio
async def test_only_submitting_admin_may_act(session, workflow):
    pending = await submit(workflow)

    with pytest.raises(NotAuthorized):
        await workflow.confirm(pending.id, OTHER_ADMIN_ID)
    with pytest.raises(NotAuthorized):
        await workflow.cancel(pending.id, USER_ID)

    assert await pending_count(session) == 1


@pytest.mark.asyncio
async def test_cancel_leaves_catalog_untouched(session, workflow):
    pending = await submit(workflow)

    await workflow.cancel(pending.id, ADMIN_ID)

    assert await pending_count(session) == 0
    assert await CatalogStore(session).count() == 0
    with pytest.raises(NotFound):
        await workflow.confirm(pending.id, ADMIN_ID)


@pytest.mark.asyncio
async def test_expired_upload_cannot_be_confirmed(session, workflow):
    pending = await submit(workflow)
    pending.created_at = utcnow() - timedelta(seconds=601)
    await session.flush()

    with pytest.raises(NotFound):
        await workflow.confirm(pending.id, ADMIN_ID)

    assert await CatalogStore(session).count() == 0


@pytest.mark.asyncio
async def test_sweep_removes_only_expired(session, workflow):
    old = await submit(workflow, source="old")
    await submit(workflow, source="fresh")
    old.created_at = utcnow() - timedelta(seconds=900)
    await session.flush()

    removed = await workflow.sweep()

    assert removed == 1
    assert await pending_count(session) == 1
