"""Telegram keyboards for catalog module."""

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton
from typing import List, Sequence

from .models import FileRecord
from .search import SearchPage


def file_button(record: FileRecord, icon: str = "📂") -> InlineKeyboardButton:
    return InlineKeyboardButton(
        text=f"{icon} {record.size_label} | {record.clean_title}",
        callback_data=f"GET:{record.catalog_id}",
    )


def get_file_list_keyboard(files: Sequence[FileRecord], icon: str = "📂") -> InlineKeyboardMarkup:
    """One row per file, each opening the file."""
    return InlineKeyboardMarkup(inline_keyboard=[[file_button(f, icon)] for f in files])


def get_search_keyboard(page: SearchPage) -> InlineKeyboardMarkup:
    """Search results with navigation row.

    The first page shows a single "Page 1 of N" forward button; later pages
    show Prev/Next only where such a page exists.
    """
    buttons: List[List[InlineKeyboardButton]] = [[file_button(f)] for f in page.items]

    if page.page_index == 0:
        if page.has_next:
            buttons.append([
                InlineKeyboardButton(text=f"Page 1 of {page.pages} ➡️", callback_data="PAGE:1")
            ])
        return InlineKeyboardMarkup(inline_keyboard=buttons)

    nav = []
    if page.has_prev:
        nav.append(InlineKeyboardButton(text="⬅️ Prev", callback_data=f"PAGE:{page.page_index - 1}"))
    if page.has_next:
        nav.append(InlineKeyboardButton(text="Next ➡️", callback_data=f"PAGE:{page.page_index + 1}"))
    if nav:
        buttons.append(nav)
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def get_favorite_keyboard(catalog_id: str) -> InlineKeyboardMarkup:
    """Button under a delivered file."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="❤️ Favorite", callback_data=f"FAV:{catalog_id}")]
    ])


def get_review_keyboard(pending_id: int) -> InlineKeyboardMarkup:
    """Save/Cancel buttons for a pending upload."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text="✅ Save", callback_data=f"CONFIRM:{pending_id}"),
            InlineKeyboardButton(text="❌ Cancel", callback_data=f"CANCEL:{pending_id}"),
        ]
    ])
