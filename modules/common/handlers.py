from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration
import logging

logger = logging.getLogger(__name__)

router = Router(name="common")

ADMIN_HELP = (
    "\n\n👮‍♂️ <b>Admin Commands:</b>\n"
    "/stats - View database statistics\n"
    "/broadcast [message] - Send text to all users\n"
    "/broadcast (reply) - Broadcast the message you reply to\n"
    "/delete [ID] - Delete a file by ID\n"
    "<i>Upload: Simply send a file/video to the bot to upload it.</i>"
)


@router.message(Command('start'))
async def cmd_start(message: Message) -> None:
    """Handle /start command."""
    await message.answer(
        f"👋 <b>Welcome, {html_decoration.quote(message.from_user.first_name)}!</b>\n\n"
        "🔎 <b>How to search:</b>\n"
        "Simply type the name of the movie.\n"
        "<i>Example: \"Avengers\" or \"Breaking Bad\"</i>\n\n"
        "📂 <b>Commands:</b>\n"
        "/recent - New Uploads\n"
        "/trending - Most Popular\n"
        "/favorites - Saved Files\n"
        "/myaccount - Daily Limit"
    )


@router.message(Command('help'))
async def cmd_help(message: Message, admins: frozenset) -> None:
    """Handle /help command. Admins also see admin commands."""
    text = (
        "🔍 <b>Search:</b>\n"
        "Just type the name of the movie or series you want to find.\n"
        "All words must match. Send a file ID like <code>F0001</code> to get it directly."
    )
    if message.from_user.id in admins:
        text += ADMIN_HELP

    await message.answer(text)


def setup(dp):
    """Register common module handlers."""
    dp.include_router(router)
