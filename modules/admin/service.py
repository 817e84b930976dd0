"""Admin operations: broadcast fan-out and statistics."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from aiogram import Bot
from aiogram.exceptions import TelegramForbiddenError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import DeliveryBlocked, DeliveryFailed
from modules.accounts.service import QuotaLedger, UserRegistry
from modules.catalog.service import CatalogStore

logger = logging.getLogger(__name__)


@dataclass
class BroadcastReport:
    sent: int = 0
    blocked: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.sent + self.blocked + self.failed


@dataclass
class Stats:
    files: int
    users: int
    active_today: int


async def deliver_one(
    bot: Bot,
    user_id: int,
    text: Optional[str] = None,
    source: Optional[Tuple[int, int]] = None,
) -> None:
    """Send broadcast text or copy of source message to one user.

    Raises:
        DeliveryBlocked: If the user blocked the bot
        DeliveryFailed: On any other error
    """
    try:
        if source is not None:
            from_chat_id, message_id = source
            await bot.copy_message(user_id, from_chat_id, message_id)
        else:
            await bot.send_message(user_id, text)
    except TelegramForbiddenError as e:
        raise DeliveryBlocked(str(e)) from e
    except Exception as e:
        raise DeliveryFailed(str(e)) from e


async def broadcast(
    bot: Bot,
    user_ids: Iterable[int],
    text: Optional[str] = None,
    source: Optional[Tuple[int, int]] = None,
    delay: float = 0.05,
) -> BroadcastReport:
    """Send to every user one by one, sleeping `delay` between sends.

    Per-user failures are counted, never raised.

    Args:
        bot: Telegram Bot instance
        user_ids: Recipients
        text: HTML text to send (ignored when source is given)
        source: (chat_id, message_id) of a message to copy
        delay: Seconds between sends to stay under Telegram flood limits

    Returns:
        Tallies of sent, blocked and failed deliveries
    """
    if text is None and source is None:
        raise ValueError("Either text or source message is required")

    report = BroadcastReport()
    for user_id in user_ids:
        try:
            await deliver_one(bot, user_id, text=text, source=source)
            report.sent += 1
        except DeliveryBlocked:
            report.blocked += 1
        except DeliveryFailed as e:
            report.failed += 1
            logger.warning(f"Broadcast to {user_id} failed: {e.message}")
        await asyncio.sleep(delay)

    logger.info(f"Broadcast finished: sent={report.sent}, blocked={report.blocked}, failed={report.failed}")
    return report


async def collect_stats(session: AsyncSession) -> Stats:
    return Stats(
        files=await CatalogStore(session).count(),
        users=await UserRegistry(session).count(),
        active_today=await QuotaLedger(session).count_active(),
    )
