"""Unit tests for file name normalization and tokens."""

import pytest

from modules.catalog.utils import (
    clean_file_name,
    generate_tokens,
    parse_query,
    is_catalog_id,
    format_size,
)

RAW_NAMES = [
    "Iron.Man.2008.1080p.mkv",
    "The_Matrix_(1999)_[BluRay].MP4",
    "@uploader Avengers.Endgame.2019.720p.WEBRip.x264.mp4",
    "Breaking Bad S01E01 {Pilot} ~ HD | @channel.webm",
    "report-final+v2;draft:1.pdf",
    "   many    spaces   .avi",
    "",
    "....",
    "a @ b",
    "Movie.mkv.mkv",
]


def test_clean_file_name_example():
    assert clean_file_name("Iron.Man.2008.1080p.mkv") == "Iron Man 2008 1080p"


def test_clean_file_name_strips_mentions_and_brackets():
    assert clean_file_name("@uploader Avengers.Endgame.2019.mp4") == "Avengers Endgame 2019"
    assert clean_file_name("The_Matrix_(1999)_[BluRay].MP4") == "The Matrix 1999 BluRay"


def test_clean_file_name_keeps_non_video_extension_as_words():
    assert clean_file_name("notes.pdf") == "notes pdf"


def test_clean_file_name_strips_only_last_extension():
    assert clean_file_name("Movie.mkv.mkv") == "Movie mkv"


@pytest.mark.parametrize("raw", RAW_NAMES)
def test_clean_file_name_is_idempotent(raw):
    once = clean_file_name(raw)
    assert clean_file_name(once) == once


def test_clean_file_name_empty():
    assert clean_file_name("") == ""
    assert clean_file_name("....") == ""


def test_generate_tokens():
    assert generate_tokens("Iron Man 2008 1080p") == ["iron", "man", "2008", "1080p"]


def test_parse_query_drops_empty_and_repeated_words():
    assert parse_query("  Iron   iron MAN ") == ["iron", "man"]
    assert parse_query("   ") == []


def test_is_catalog_id():
    assert is_catalog_id("F0001")
    assert is_catalog_id("f1234")
    assert not is_catalog_id("F001")
    assert not is_catalog_id("iron man")


def test_format_size():
    assert format_size(1_500_000_000) == "1.5 GB"
    assert format_size(2_500_000) == "2.5 MB"
    assert format_size(1_000) == "1.0 KB"
    assert format_size(None) == "0.0 KB"
