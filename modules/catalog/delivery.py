"""Quota-gated file downloads."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFound, QuotaExceeded
from modules.accounts.service import QuotaLedger
from .models import FileRecord
from .service import CatalogStore

logger = logging.getLogger(__name__)


class DeliveryService:
    """Checks and records downloads of catalog files.

    prepare() only reads; commit() records a successful delivery.
    """

    def __init__(self, session: AsyncSession, daily_limit: int):
        self.session = session
        self.daily_limit = daily_limit
        self.catalog = CatalogStore(session)
        self.quota = QuotaLedger(session)

    async def prepare(self, user_id: int, catalog_id: str) -> FileRecord:
        """Look up a file and check the user's daily quota.

        Raises:
            NotFound: If the file does not exist
            QuotaExceeded: If the user used up today's downloads
        """
        record = await self.catalog.find_by_id(catalog_id)
        if record is None:
            raise NotFound("❌ File not found.")

        used = await self.quota.peek(user_id)
        if used >= self.daily_limit:
            logger.info(f"User {user_id} hit daily limit ({used}/{self.daily_limit})")
            raise QuotaExceeded("⚠️ Daily limit reached.")
        return record

    async def commit(self, user_id: int, catalog_id: str) -> int:
        """Count a delivered file. Returns the user's new count for today."""
        used = await self.quota.increment(user_id)
        await self.catalog.increment_download(catalog_id)
        return used
