"""Fire-and-forget background helpers."""

import asyncio
import logging
from typing import Set

logger = logging.getLogger(__name__)

# Strong references so pending tasks are not garbage collected mid-sleep
_background_tasks: Set[asyncio.Task] = set()


async def _delete_later(bot, chat_id: int, message_id: int, delay: float) -> None:
    await asyncio.sleep(delay)
    try:
        await bot.delete_message(chat_id, message_id)
    except Exception as e:
        # Message already gone or chat unavailable
        logger.debug(f"Auto-delete of message {message_id} in {chat_id} skipped: {e}")


def schedule_delete(bot, chat_id: int, message_id: int, delay: float = 60) -> asyncio.Task:
    """Delete a message after `delay` seconds without blocking the caller.

    Args:
        bot: Telegram Bot instance
        chat_id: Chat containing the message
        message_id: Message to delete
        delay: Seconds to wait before deleting

    Returns:
        The scheduled task (callers normally ignore it)
    """
    task = asyncio.create_task(_delete_later(bot, chat_id, message_id, delay))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


async def cancel_pending_tasks() -> None:
    """Cancel scheduled deletions (used on shutdown)."""
    tasks = list(_background_tasks)
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Cancelled {len(tasks)} scheduled deletions")
