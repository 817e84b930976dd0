"""Telegram handlers for catalog module.

Handles admin uploads and their review, keyword search with pagination,
recent/trending lists and file delivery.
"""

import logging
from aiogram import Router, F, Bot
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery
from aiogram.utils.markdown import hbold, hcode, hitalic

from core.database import get_session
from core.errors import BotError, DuplicateFile, NotAuthorized, QuotaExceeded
from core.tasks import schedule_delete
from .models import FileRecord
from .moderation import ModerationWorkflow
from .search import SearchEngine, SearchPage
from .delivery import DeliveryService
from .service import CatalogStore
from .keyboards import (
    get_file_list_keyboard,
    get_search_keyboard,
    get_favorite_keyboard,
    get_review_keyboard,
)
from .utils import is_catalog_id

logger = logging.getLogger(__name__)

router = Router(name="catalog")

LIST_LIMIT = 10

# Auto-delete delays, seconds
LIST_TTL = 60
FILE_TTL = 60
NO_RESULTS_TTL = 5
NOT_FOUND_TTL = 3
QUERY_TTL = 2


def callback_arg(data: str) -> str:
    """Argument of callback data like 'GET:F0001'."""
    return data.split(":", 1)[1] if ":" in data else ""


def callback_chat_id(callback: CallbackQuery) -> int:
    """Chat of the message under the button, or the user if it is inaccessible."""
    return callback.message.chat.id if callback.message else callback.from_user.id


def file_caption(record: FileRecord) -> str:
    return (
        f"🎬 {hbold(record.clean_title)}\n"
        f"📦 {record.size_label}\n"
        f"🆔 {hcode(record.catalog_id)}\n\n"
        f"⚠️ {hitalic(f'Auto-deletes in {FILE_TTL}s')}"
    )


async def send_catalog_file(bot: Bot, chat_id: int, record: FileRecord) -> Message:
    """Send stored media with caption and favorite button."""
    if record.kind == "video":
        return await bot.send_video(
            chat_id,
            record.source_file_ref,
            caption=file_caption(record),
            reply_markup=get_favorite_keyboard(record.catalog_id),
        )
    return await bot.send_document(
        chat_id,
        record.source_file_ref,
        caption=file_caption(record),
        reply_markup=get_favorite_keyboard(record.catalog_id),
    )


async def deliver_file(bot: Bot, user_id: int, chat_id: int, catalog_id: str, daily_limit: int) -> FileRecord:
    """Check quota, send the file and record the download.

    Raises:
        NotFound: If the file does not exist
        QuotaExceeded: If the user has no downloads left today
    """
    async with get_session() as session:
        record = await DeliveryService(session, daily_limit).prepare(user_id, catalog_id)

    sent = await send_catalog_file(bot, chat_id, record)

    async with get_session() as session:
        used = await DeliveryService(session, daily_limit).commit(user_id, record.catalog_id)

    logger.info(f"Delivered {record.catalog_id} to {user_id} ({used}/{daily_limit} today)")
    schedule_delete(bot, chat_id, sent.message_id, FILE_TTL)
    return record


def results_text(page: SearchPage, query: str | None = None) -> str:
    if query is not None:
        return f"🔍 Found {hbold(page.total)} results for \"{hbold(query)}\":"
    if page.page_index >= page.pages:
        return "🔍 No more results."
    return f"🔍 Results (Page {page.page_index + 1}/{page.pages})"


# ==================== LISTS ====================

@router.message(Command("recent"))
async def cmd_recent(message: Message, bot: Bot) -> None:
    """Handle /recent - newest files."""
    async with get_session() as session:
        files = await CatalogStore(session).list_recent(LIST_LIMIT)

    if not files:
        await message.answer("No files yet.")
        return

    sent = await message.answer(
        "🆕 <b>Recent Uploads:</b>",
        reply_markup=get_file_list_keyboard(files, icon="📂")
    )
    schedule_delete(bot, message.chat.id, sent.message_id, LIST_TTL)


@router.message(Command("trending"))
async def cmd_trending(message: Message, bot: Bot) -> None:
    """Handle /trending - most downloaded files."""
    async with get_session() as session:
        files = await CatalogStore(session).list_trending(LIST_LIMIT)

    if not files:
        await message.answer("No trending files.")
        return

    sent = await message.answer(
        "📈 <b>Top Trending:</b>",
        reply_markup=get_file_list_keyboard(files, icon="🔥")
    )
    schedule_delete(bot, message.chat.id, sent.message_id, LIST_TTL)


# ==================== ADMIN UPLOAD ====================

@router.message(F.video | F.document)
async def handle_upload(message: Message, admins: frozenset, settings) -> None:
    """Admin sent a file: create pending upload and ask for review."""
    if message.from_user.id not in admins:
        return

    media = message.video or message.document
    kind = "video" if message.video else "document"
    raw_name = message.caption or media.file_name or "Unknown"

    try:
        async with get_session() as session:
            pending = await ModerationWorkflow(session, admins, settings.PENDING_TTL).submit(
                submitter_id=message.from_user.id,
                chat_id=message.chat.id,
                message_id=message.message_id,
                source_file_ref=media.file_id,
                raw_name=raw_name,
                kind=kind,
                size_bytes=media.file_size,
            )
    except Exception as e:
        logger.error(f"Error creating pending upload: {e}", exc_info=True)
        await message.answer("❌ Could not register upload. Try again.")
        return

    await message.answer(
        f"📝 <b>Review Upload</b>\n\n"
        f"Name: {hbold(pending.clean_title or pending.display_name)}\n"
        f"Size: {pending.size_label}\n\n"
        f"Confirm save?",
        reply_markup=get_review_keyboard(pending.id)
    )


@router.callback_query(F.data.startswith("CONFIRM:"))
async def callback_confirm(callback: CallbackQuery, admins: frozenset, settings) -> None:
    """Publish pending upload."""
    if callback.from_user.id not in admins:
        await callback.answer()
        return

    try:
        pending_id = int(callback_arg(callback.data))
    except ValueError:
        await callback.answer("Expired")
        return

    error = None
    record = None
    async with get_session() as session:
        try:
            record = await ModerationWorkflow(session, admins, settings.PENDING_TTL).confirm(
                pending_id, callback.from_user.id
            )
        except BotError as e:
            # Keep the transaction: a rejected duplicate still discards the pending row
            error = e

    if error is None:
        if callback.message:
            await callback.message.edit_text(
                f"✅ <b>Published:</b> {record.catalog_id}\n{hbold(record.clean_title)}"
            )
        await callback.answer()
        return

    logger.info(f"Confirm of pending {pending_id} failed: {error.message}")
    if isinstance(error, DuplicateFile):
        if callback.message:
            await callback.message.edit_text(error.message)
        await callback.answer()
    elif isinstance(error, NotAuthorized):
        await callback.answer()
    else:
        await callback.answer(error.message)


@router.callback_query(F.data.startswith("CANCEL:"))
async def callback_cancel(callback: CallbackQuery, admins: frozenset, settings) -> None:
    """Discard pending upload."""
    if callback.from_user.id not in admins:
        await callback.answer()
        return

    try:
        pending_id = int(callback_arg(callback.data))
        async with get_session() as session:
            await ModerationWorkflow(session, admins, settings.PENDING_TTL).cancel(
                pending_id, callback.from_user.id
            )
    except ValueError:
        await callback.answer("Expired")
        return
    except BotError as e:
        await callback.answer(e.message)
        return

    if callback.message:
        await callback.message.edit_text("❌ Cancelled.")
    await callback.answer()


# ==================== DOWNLOAD ====================

@router.callback_query(F.data.startswith("GET:"))
async def callback_get(callback: CallbackQuery, bot: Bot, settings) -> None:
    """Send a file from a list button."""
    catalog_id = callback_arg(callback.data)
    user_id = callback.from_user.id

    try:
        async with get_session() as session:
            await DeliveryService(session, settings.DAILY_LIMIT).prepare(user_id, catalog_id)
    except BotError as e:
        await callback.answer(e.message, show_alert=isinstance(e, QuotaExceeded))
        return

    chat_id = callback_chat_id(callback)
    await callback.answer("Sending file...")
    try:
        await deliver_file(bot, user_id, chat_id, catalog_id, settings.DAILY_LIMIT)
    except BotError as e:
        # Quota used up or file deleted between the check and the send
        await bot.send_message(chat_id, e.message)
    except Exception as e:
        logger.error(f"Error delivering {catalog_id} to {user_id}: {e}", exc_info=True)
        await bot.send_message(chat_id, "❌ Error occurred")


# ==================== SEARCH ====================

@router.callback_query(F.data.startswith("PAGE:"))
async def callback_page(callback: CallbackQuery, search_engine: SearchEngine) -> None:
    """Show another page of the last search."""
    try:
        page_index = int(callback_arg(callback.data))
        async with get_session() as session:
            page = await search_engine.page(session, callback.from_user.id, page_index)
    except ValueError:
        await callback.answer()
        return
    except BotError as e:
        await callback.answer(e.message)
        return

    if callback.message:
        await callback.message.edit_text(results_text(page), reply_markup=get_search_keyboard(page))
    await callback.answer()


@router.message(F.text & ~F.text.startswith("/"))
async def handle_text(message: Message, bot: Bot, settings, search_engine: SearchEngine) -> None:
    """Free text: catalog ID lookup or keyword search."""
    text = message.text.strip()
    chat_id = message.chat.id
    user_id = message.from_user.id

    if is_catalog_id(text):
        try:
            await deliver_file(bot, user_id, chat_id, text.upper(), settings.DAILY_LIMIT)
        except BotError as e:
            sent = await message.answer(e.message)
            if not isinstance(e, QuotaExceeded):
                schedule_delete(bot, chat_id, sent.message_id, NOT_FOUND_TTL)
        except Exception as e:
            logger.error(f"Error delivering {text} to {user_id}: {e}", exc_info=True)
            await message.answer("❌ Error occurred")
        return

    async with get_session() as session:
        page = await search_engine.search(session, user_id, text)

    if page is None:
        return

    if not page.total:
        sent = await message.answer(f"🔍 No results for \"{hbold(text)}\"")
        schedule_delete(bot, chat_id, sent.message_id, NO_RESULTS_TTL)
        return

    sent = await message.answer(results_text(page, text), reply_markup=get_search_keyboard(page))
    schedule_delete(bot, chat_id, sent.message_id, LIST_TTL)
    schedule_delete(bot, chat_id, message.message_id, QUERY_TTL)


def setup(dp):
    """Register catalog module handlers."""
    dp.include_router(router)
