"""Catalog storage access.

Every method works inside the caller's session; committing is left to
core.database.get_session().
"""

import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import upsert_insert
from core.errors import DuplicateFile
from .models import FileRecord, FileToken, SequenceCounter

logger = logging.getLogger(__name__)


class SequenceGenerator:
    """Generates catalog IDs from a durable counter.

    The increment happens in a single INSERT .. ON CONFLICT DO UPDATE ..
    RETURNING statement, so replicas sharing the database never receive
    the same number.
    """

    PREFIX = "F"
    WIDTH = 4

    def __init__(self, session: AsyncSession):
        self.session = session

    async def next_value(self, name: str = "file") -> int:
        stmt = upsert_insert(self.session, SequenceCounter).values(name=name, seq=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SequenceCounter.name],
            set_={"seq": SequenceCounter.seq + 1},
        ).returning(SequenceCounter.seq)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def next(self, name: str = "file") -> str:
        """Return the next catalog ID, e.g. 'F0001'."""
        value = await self.next_value(name)
        return f"{self.PREFIX}{value:0{self.WIDTH}d}"


def _token_filter(tokens: Sequence[str]):
    """Subquery of file ids whose token set contains every query token."""
    unique_tokens = list(dict.fromkeys(tokens))
    return (
        select(FileToken.file_id)
        .where(FileToken.token.in_(unique_tokens))
        .group_by(FileToken.file_id)
        .having(func.count(func.distinct(FileToken.token)) == len(unique_tokens))
    )


class CatalogStore:
    """CRUD and query operations over published files."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists_source(self, source_file_ref: str) -> bool:
        result = await self.session.execute(
            select(FileRecord.id).where(FileRecord.source_file_ref == source_file_ref).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def insert(self, record: FileRecord, tokens: Iterable[str]) -> FileRecord:
        """Add a file to the catalog.

        Raises:
            DuplicateFile: If the same source file is already published
        """
        if await self.exists_source(record.source_file_ref):
            raise DuplicateFile()

        record.tokens = [FileToken(token=token) for token in dict.fromkeys(tokens)]
        self.session.add(record)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost a race with another publisher of the same file
            logger.warning(f"Unique constraint violated while inserting {record.catalog_id}: {e.orig}")
            raise DuplicateFile() from e

        logger.info(f"Catalog file added: {record.catalog_id} '{record.clean_title}'")
        return record

    async def find_by_id(self, catalog_id: str) -> Optional[FileRecord]:
        result = await self.session.execute(
            select(FileRecord).where(FileRecord.catalog_id == catalog_id.strip().upper())
        )
        return result.scalar_one_or_none()

    async def find_many(self, catalog_ids: Sequence[str]) -> List[FileRecord]:
        """Files for the given IDs in the same order; missing IDs are skipped."""
        if not catalog_ids:
            return []
        result = await self.session.execute(
            select(FileRecord).where(FileRecord.catalog_id.in_(list(catalog_ids)))
        )
        by_id = {f.catalog_id: f for f in result.scalars().all()}
        return [by_id[cid] for cid in catalog_ids if cid in by_id]

    async def find_by_tokens(
        self,
        tokens: Sequence[str],
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[FileRecord]:
        """Files matching ALL tokens, newest first."""
        if not tokens:
            return []
        query = (
            select(FileRecord)
            .where(FileRecord.id.in_(_token_filter(tokens)))
            .order_by(FileRecord.created_at.desc(), FileRecord.id.desc())
            .offset(max(offset, 0))
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, tokens: Optional[Sequence[str]] = None) -> int:
        """Number of files, or of files matching ALL tokens."""
        query = select(func.count(FileRecord.id))
        if tokens:
            query = query.where(FileRecord.id.in_(_token_filter(tokens)))
        result = await self.session.execute(query)
        return int(result.scalar_one())

    async def increment_download(self, catalog_id: str) -> None:
        await self.session.execute(
            update(FileRecord)
            .where(FileRecord.catalog_id == catalog_id)
            .values(download_count=FileRecord.download_count + 1)
        )

    async def delete(self, catalog_id: str) -> bool:
        """Remove a file. Returns False if it did not exist."""
        record = await self.find_by_id(catalog_id)
        if record is None:
            return False
        await self.session.execute(delete(FileToken).where(FileToken.file_id == record.id))
        await self.session.execute(delete(FileRecord).where(FileRecord.id == record.id))
        logger.info(f"Catalog file deleted: {record.catalog_id}")
        return True

    async def list_recent(self, limit: int = 10) -> List[FileRecord]:
        result = await self.session.execute(
            select(FileRecord)
            .order_by(FileRecord.created_at.desc(), FileRecord.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_trending(self, limit: int = 10) -> List[FileRecord]:
        result = await self.session.execute(
            select(FileRecord)
            .order_by(FileRecord.download_count.desc(), FileRecord.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
