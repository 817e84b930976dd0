"""Telegram handlers for admin module.

Every command here silently ignores non-admins.
"""

import logging
from aiogram import Router, Bot
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from core.database import get_session
from modules.accounts.service import FavoritesLedger, UserRegistry
from modules.catalog.service import CatalogStore
from .service import broadcast, collect_stats

logger = logging.getLogger(__name__)

router = Router(name="admin")


@router.message(Command("stats"))
async def cmd_stats(message: Message, admins: frozenset) -> None:
    """Handle /stats - catalog and user counters."""
    if message.from_user.id not in admins:
        return

    async with get_session() as session:
        stats = await collect_stats(session)

    await message.answer(
        "📊 <b>Stats</b>\n\n"
        f"Files: {stats.files}\n"
        f"Total Users: {stats.users}\n"
        f"Active Today: {stats.active_today}"
    )


@router.message(Command("broadcast"))
async def cmd_broadcast(message: Message, command: CommandObject, bot: Bot, admins: frozenset, settings) -> None:
    """Handle /broadcast <text> or /broadcast as reply to any message."""
    if message.from_user.id not in admins:
        return

    text = command.args
    reply = message.reply_to_message

    if not text and not reply:
        await message.answer(
            "⚠️ Usage:\n"
            "1. <code>/broadcast Message</code>\n"
            "2. Reply to a message with <code>/broadcast</code>"
        )
        return

    async with get_session() as session:
        user_ids = await UserRegistry(session).all_ids()

    status_msg = await message.answer(f"🚀 Broadcasting to {len(user_ids)} users...")
    logger.info(f"Admin {message.from_user.id} started broadcast to {len(user_ids)} users")

    source = (message.chat.id, reply.message_id) if reply else None
    report = await broadcast(
        bot,
        user_ids,
        text=None if reply else text,
        source=source,
        delay=settings.BROADCAST_DELAY,
    )

    await status_msg.edit_text(
        "✅ <b>Broadcast Complete</b>\n\n"
        f"Sent: {report.sent}\n"
        f"Blocked: {report.blocked}\n"
        f"Failed: {report.failed}"
    )


@router.message(Command("delete"))
async def cmd_delete(message: Message, command: CommandObject, admins: frozenset) -> None:
    """Handle /delete <catalogId>."""
    if message.from_user.id not in admins:
        return

    if not command.args:
        await message.answer("Usage: <code>/delete F0001</code>")
        return

    catalog_id = command.args.strip().upper()
    async with get_session() as session:
        deleted = await CatalogStore(session).delete(catalog_id)
        if deleted:
            await FavoritesLedger(session).remove_everywhere(catalog_id)

    await message.answer(f"🗑️ Deleted {catalog_id}" if deleted else "❌ Not found")


def setup(dp):
    """Register admin module handlers."""
    dp.include_router(router)
