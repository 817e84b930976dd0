"""Review of admin uploads before they join the catalog.

A pending upload ends in exactly one way: confirmed (published or rejected
as duplicate), cancelled, or expired after its TTL.
"""

import logging
from datetime import datetime, timedelta
from typing import FrozenSet, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import utcnow
from core.errors import DuplicateFile, NotAuthorized, NotFound
from .models import FileRecord, PendingUpload
from .service import CatalogStore, SequenceGenerator
from .utils import clean_file_name, generate_tokens, format_size

logger = logging.getLogger(__name__)

KINDS = ("video", "document")


class ModerationWorkflow:
    """Submit, confirm, cancel and expire pending uploads."""

    def __init__(self, session: AsyncSession, admins: FrozenSet[int], ttl: int = 600):
        self.session = session
        self.admins = admins
        self.ttl = timedelta(seconds=ttl)

    def is_expired(self, pending: PendingUpload, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return pending.created_at <= now - self.ttl

    async def submit(
        self,
        submitter_id: int,
        chat_id: int,
        message_id: int,
        source_file_ref: str,
        raw_name: Optional[str],
        kind: str,
        size_bytes: Optional[int],
    ) -> PendingUpload:
        """Create a pending upload for admin review.

        Raises:
            NotAuthorized: If submitter is not an admin
        """
        if submitter_id not in self.admins:
            raise NotAuthorized()
        if kind not in KINDS:
            raise ValueError(f"Unsupported file kind: {kind}")

        display_name = raw_name or "Unknown"
        clean_title = clean_file_name(display_name)
        pending = PendingUpload(
            submitter_id=submitter_id,
            origin_chat_id=chat_id,
            origin_message_id=message_id,
            source_file_ref=source_file_ref,
            display_name=display_name,
            clean_title=clean_title,
            kind=kind,
            size_label=format_size(size_bytes),
            tokens=" ".join(generate_tokens(clean_title)),
        )
        self.session.add(pending)
        await self.session.flush()

        logger.info(f"Pending upload {pending.id} created by {submitter_id}: '{clean_title}'")
        return pending

    async def get_active(self, pending_id: int) -> PendingUpload:
        """Return an unexpired pending upload.

        Raises:
            NotFound: If it never existed, was resolved, or expired
        """
        pending = await self.session.get(PendingUpload, pending_id)
        if pending is None or self.is_expired(pending):
            raise NotFound("⌛ Expired")
        return pending

    def _authorize(self, pending: PendingUpload, actor_id: int) -> None:
        if actor_id not in self.admins or actor_id != pending.submitter_id:
            logger.warning(f"User {actor_id} tried to act on pending upload {pending.id}")
            raise NotAuthorized()

    async def _discard(self, pending_id: int) -> None:
        await self.session.execute(delete(PendingUpload).where(PendingUpload.id == pending_id))

    async def confirm(self, pending_id: int, actor_id: int) -> FileRecord:
        """Publish a pending upload.

        Raises:
            NotFound: If the pending upload is gone or expired
            NotAuthorized: If actor is not the submitting admin
            DuplicateFile: If the file is already published (pending is discarded)
        """
        pending = await self.get_active(pending_id)
        self._authorize(pending, actor_id)

        catalog = CatalogStore(self.session)
        if await catalog.exists_source(pending.source_file_ref):
            await self._discard(pending_id)
            logger.info(f"Pending upload {pending_id} rejected: file already published")
            raise DuplicateFile()

        catalog_id = await SequenceGenerator(self.session).next("file")
        record = FileRecord(
            catalog_id=catalog_id,
            source_file_ref=pending.source_file_ref,
            display_name=pending.display_name,
            clean_title=pending.clean_title,
            kind=pending.kind,
            uploader_id=pending.submitter_id,
            size_label=pending.size_label,
        )
        try:
            await catalog.insert(record, pending.token_list)
        except DuplicateFile:
            # Flush failed; the transaction is unusable until rolled back
            await self.session.rollback()
            await self._discard(pending_id)
            raise

        await self._discard(pending_id)
        logger.info(f"Pending upload {pending_id} published as {catalog_id}")
        return record

    async def cancel(self, pending_id: int, actor_id: int) -> None:
        """Drop a pending upload without touching the catalog.

        Raises:
            NotFound: If the pending upload is gone or expired
            NotAuthorized: If actor is not the submitting admin
        """
        pending = await self.get_active(pending_id)
        self._authorize(pending, actor_id)
        await self._discard(pending_id)
        logger.info(f"Pending upload {pending_id} cancelled by {actor_id}")

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """Delete expired pending uploads. Returns number removed."""
        cutoff = (now or utcnow()) - self.ttl
        result = await self.session.execute(
            delete(PendingUpload).where(PendingUpload.created_at <= cutoff)
        )
        removed = int(result.rowcount or 0)
        if removed:
            logger.info(f"Expired {removed} pending uploads")
        return removed

