"""User registry, daily quota and favorites ledgers."""

import enum
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import upsert_insert
from core.errors import FavoritesFull
from .models import UserRecord, QuotaRecord, FavoriteRecord

logger = logging.getLogger(__name__)


def today_utc() -> date:
    """Calendar date used for quota accounting."""
    return datetime.now(timezone.utc).date()


class UserRegistry:
    """Tracks everyone who talks to the bot."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def touch(self, user_id: int, first_name: Optional[str], handle: Optional[str]) -> None:
        """Insert user or refresh names; joined_at is written only on insert."""
        stmt = upsert_insert(self.session, UserRecord).values(
            user_id=user_id,
            first_name=first_name,
            handle=handle,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserRecord.user_id],
            set_={"first_name": first_name, "handle": handle},
        )
        await self.session.execute(stmt)

    async def all_ids(self) -> List[int]:
        result = await self.session.execute(select(UserRecord.user_id).order_by(UserRecord.joined_at))
        return [int(user_id) for user_id in result.scalars().all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(UserRecord.user_id)))
        return int(result.scalar_one())


class QuotaLedger:
    """Per-user, per-day download counters.

    The ledger does not enforce the limit: callers peek() first and
    increment() only after the download is allowed.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def peek(self, user_id: int, day: Optional[date] = None) -> int:
        day = day or today_utc()
        result = await self.session.execute(
            select(QuotaRecord.count).where(
                QuotaRecord.user_id == user_id,
                QuotaRecord.day == day.isoformat(),
            )
        )
        return int(result.scalar_one_or_none() or 0)

    async def increment(self, user_id: int, day: Optional[date] = None) -> int:
        """Atomically add one to today's counter. Returns the new value."""
        day = day or today_utc()
        stmt = upsert_insert(self.session, QuotaRecord).values(
            user_id=user_id,
            day=day.isoformat(),
            count=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[QuotaRecord.user_id, QuotaRecord.day],
            set_={"count": QuotaRecord.count + 1},
        ).returning(QuotaRecord.count)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def count_active(self, day: Optional[date] = None) -> int:
        """Number of users who downloaded something on the given day."""
        day = day or today_utc()
        result = await self.session.execute(
            select(func.count(QuotaRecord.id)).where(QuotaRecord.day == day.isoformat())
        )
        return int(result.scalar_one())


class ToggleResult(str, enum.Enum):
    ADDED = "added"
    REMOVED = "removed"


class FavoritesLedger:
    """Bounded set of saved files per user.

    toggle() checks the size and inserts in two statements. Two concurrent
    toggles by the same user can both pass the check, so the bound is exact
    only for sequential requests; the unique constraint still prevents
    duplicate entries.
    """

    def __init__(self, session: AsyncSession, limit: int = 50):
        self.session = session
        self.limit = limit

    async def _find(self, user_id: int, catalog_id: str) -> Optional[FavoriteRecord]:
        result = await self.session.execute(
            select(FavoriteRecord).where(
                FavoriteRecord.user_id == user_id,
                FavoriteRecord.catalog_id == catalog_id,
            )
        )
        return result.scalar_one_or_none()

    async def count(self, user_id: int) -> int:
        result = await self.session.execute(
            select(func.count(FavoriteRecord.id)).where(FavoriteRecord.user_id == user_id)
        )
        return int(result.scalar_one())

    async def toggle(self, user_id: int, catalog_id: str) -> ToggleResult:
        """Add the file to favorites, or remove it if already saved.

        Raises:
            FavoritesFull: If the user already has `limit` favorites
        """
        existing = await self._find(user_id, catalog_id)
        if existing is not None:
            await self.session.execute(
                delete(FavoriteRecord).where(FavoriteRecord.id == existing.id)
            )
            return ToggleResult.REMOVED

        if await self.count(user_id) >= self.limit:
            raise FavoritesFull(f"⚠️ Max {self.limit} favorites.")

        self.session.add(FavoriteRecord(user_id=user_id, catalog_id=catalog_id))
        try:
            await self.session.flush()
        except IntegrityError:
            # Same pair inserted concurrently: it is saved either way
            await self.session.rollback()
            logger.debug(f"Favorite {catalog_id} for user {user_id} already saved concurrently")
        return ToggleResult.ADDED

    async def list(self, user_id: int) -> List[str]:
        """Saved catalog IDs in the order they were added."""
        result = await self.session.execute(
            select(FavoriteRecord.catalog_id)
            .where(FavoriteRecord.user_id == user_id)
            .order_by(FavoriteRecord.saved_at, FavoriteRecord.id)
        )
        return list(result.scalars().all())

    async def remove_everywhere(self, catalog_id: str) -> int:
        """Drop a deleted file from every user's favorites."""
        result = await self.session.execute(
            delete(FavoriteRecord).where(FavoriteRecord.catalog_id == catalog_id)
        )
        return int(result.rowcount or 0)
