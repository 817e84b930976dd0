"""Utility functions for catalog module."""

import re
from typing import List

VIDEO_EXTENSIONS = ("mkv", "mp4", "avi", "mov", "flv", "wmv", "webm", "m4v")

_EXTENSION_RE = re.compile(r"\.(?:%s)$" % "|".join(VIDEO_EXTENSIONS), re.IGNORECASE)
_MENTION_RE = re.compile(r"@\w+")
_PUNCTUATION_RE = re.compile(r"[\[\](){}.;:~|,_\-+]")
_WHITESPACE_RE = re.compile(r"\s+")
CATALOG_ID_RE = re.compile(r"^F\d{4}$", re.IGNORECASE)


def clean_file_name(text: str) -> str:
    """Turn raw file name or caption into a readable title.

    Args:
        text: Raw name like "Iron.Man.2008.1080p.mkv"

    Returns:
        Clean title like "Iron Man 2008 1080p" (may be empty)
    """
    if not text:
        return ""
    title = _EXTENSION_RE.sub("", text)
    title = _MENTION_RE.sub("", title)
    title = _PUNCTUATION_RE.sub(" ", title)
    title = _WHITESPACE_RE.sub(" ", title)
    return title.strip()


def parse_query(text: str) -> List[str]:
    """Split text into lower-case tokens, keeping order and dropping repeats."""
    if not text:
        return []
    tokens = []
    for fragment in text.lower().split():
        if fragment and fragment not in tokens:
            tokens.append(fragment)
    return tokens


def generate_tokens(clean_title: str) -> List[str]:
    """Searchable tokens of a clean title."""
    return parse_query(clean_title)


def is_catalog_id(text: str) -> bool:
    """Check if text looks like a catalog ID (e.g. F0001)."""
    return bool(text) and CATALOG_ID_RE.match(text.strip()) is not None


def format_size(bytes_size: int | None) -> str:
    """Format file size in human-readable format.

    Args:
        bytes_size: Size in bytes

    Returns:
        Formatted string like "1.5 GB" or "234.0 KB"
    """
    bytes_size = bytes_size or 0
    if bytes_size >= 1e9:
        return f"{bytes_size / 1e9:.1f} GB"
    if bytes_size >= 1e6:
        return f"{bytes_size / 1e6:.1f} MB"
    return f"{bytes_size / 1e3:.1f} KB"
