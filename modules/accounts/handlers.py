"""Telegram handlers for accounts module."""

import logging
from aiogram import Router, F, Bot
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery

from core.database import get_session
from core.errors import BotError
from core.tasks import schedule_delete
from modules.catalog.keyboards import get_file_list_keyboard
from modules.catalog.service import CatalogStore
from .service import QuotaLedger, FavoritesLedger, ToggleResult

logger = logging.getLogger(__name__)

router = Router(name="accounts")

FAVORITES_SHOWN = 10
LIST_TTL = 60


@router.message(Command("favorites"))
async def cmd_favorites(message: Message, bot: Bot, settings) -> None:
    """Handle /favorites - list saved files."""
    async with get_session() as session:
        catalog_ids = await FavoritesLedger(session, settings.MAX_FAVORITES).list(message.from_user.id)
        files = await CatalogStore(session).find_many(catalog_ids)

    if not catalog_ids:
        await message.answer(
            "⭐ You have no favorite files yet.\n"
            "Click \"Favorite\" on a file to save it."
        )
        return

    if not files:
        await message.answer("⭐ Your favorites list is empty (files may have been deleted).")
        return

    sent = await message.answer(
        f"❤️ <b>Your Favorites ({len(files)}):</b>",
        reply_markup=get_file_list_keyboard(files[:FAVORITES_SHOWN], icon="⭐")
    )
    schedule_delete(bot, message.chat.id, sent.message_id, LIST_TTL)


@router.message(Command("myaccount"))
async def cmd_myaccount(message: Message, settings) -> None:
    """Handle /myaccount - show today's download quota."""
    async with get_session() as session:
        used = await QuotaLedger(session).peek(message.from_user.id)

    remaining = max(settings.DAILY_LIMIT - used, 0)
    await message.answer(
        "👤 <b>Your Account</b>\n\n"
        f"✅ Used: {used}\n"
        f"⏳ Remaining: {remaining}\n"
        f"🎯 Limit: {settings.DAILY_LIMIT}"
    )


@router.callback_query(F.data.startswith("FAV:"))
async def callback_favorite(callback: CallbackQuery, settings) -> None:
    """Toggle file in favorites."""
    catalog_id = callback.data.split(":", 1)[1].strip().upper()

    try:
        async with get_session() as session:
            result = await FavoritesLedger(session, settings.MAX_FAVORITES).toggle(
                callback.from_user.id, catalog_id
            )
    except BotError as e:
        await callback.answer(e.message)
        return

    if result is ToggleResult.ADDED:
        await callback.answer("Added to favorites!")
    else:
        await callback.answer("Removed from favorites")


def setup(dp):
    """Register accounts module handlers."""
    dp.include_router(router)
