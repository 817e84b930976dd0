"""Keyword search with cached pagination sessions."""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFound
from .models import FileRecord
from .service import CatalogStore
from .utils import parse_query

logger = logging.getLogger(__name__)


@dataclass
class SearchPage:
    """One page of search results."""

    tokens: List[str]
    total: int
    page_index: int
    page_size: int
    items: List[FileRecord] = field(default_factory=list)

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    @property
    def has_prev(self) -> bool:
        return 0 < self.page_index <= self.pages

    @property
    def has_next(self) -> bool:
        return self.page_index < self.pages - 1


class SearchEngine:
    """Strict AND keyword search.

    The token list of the last query is cached per user, so page buttons
    only carry a page number.
    """

    KEY_PREFIX = "search:"

    def __init__(self, cache, page_size: int = 10, session_ttl: int = 300):
        self.cache = cache
        self.page_size = page_size
        self.session_ttl = session_ttl

    def _key(self, user_id: int) -> str:
        return f"{self.KEY_PREFIX}{user_id}"

    async def _fetch(self, session: AsyncSession, tokens: List[str], page_index: int) -> SearchPage:
        catalog = CatalogStore(session)
        total = await catalog.count(tokens)
        items = []
        if total:
            items = await catalog.find_by_tokens(
                tokens,
                offset=page_index * self.page_size,
                limit=self.page_size,
            )
        return SearchPage(
            tokens=tokens,
            total=total,
            page_index=page_index,
            page_size=self.page_size,
            items=items,
        )

    async def search(self, session: AsyncSession, user_id: int, text: str) -> Optional[SearchPage]:
        """Run a new search and remember it for pagination.

        Returns:
            First page, or None if text has no tokens. A page with
            total == 0 means nothing matched (no session is stored).
        """
        tokens = parse_query(text)
        if not tokens:
            return None

        page = await self._fetch(session, tokens, 0)
        logger.info(f"Search by {user_id} for {tokens}: {page.total} results")
        if page.total:
            await self.cache.set(self._key(user_id), tokens, self.session_ttl)
        return page

    async def page(self, session: AsyncSession, user_id: int, page_index: int) -> SearchPage:
        """Fetch another page of the user's last search.

        Raises:
            NotFound: If the search session expired
        """
        tokens = await self.cache.get(self._key(user_id))
        if not tokens:
            raise NotFound("⌛ Search expired.")
        return await self._fetch(session, list(tokens), max(page_index, 0))
