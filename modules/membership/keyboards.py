"""Telegram keyboards for membership module."""

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def get_join_keyboard(link: str) -> InlineKeyboardMarkup:
    """Join button plus re-check button."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="📢 Join Channel", url=link)],
        [InlineKeyboardButton(text="✅ I Have Joined", callback_data="CHECK_JOIN")],
    ])
