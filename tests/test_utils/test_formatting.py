"""Tests for lyric_float.utils.formatting."""

import pytest

from lyric_float.utils.formatting import (
    fallback_text,
    format_lrc_timestamp,
    format_position,
    parse_position,
    sanitize_filename,
)

# ── sanitize_filename ────────────────────────────────────────────────

class TestSanitizeFilename:
    @pytest.mark.parametrize("name, expected", [
        ("Plain Name", "Plain Name"),
        ("AC/DC", "AC_DC"),
        ("a\\b", "a_b"),
        ('What?: "*"<>|', "What__ _______"),
        ("歌手", "歌手"),
    ])
    def test_sanitize(self, name, expected):
        assert sanitize_filename(name) == expected

    def test_dashes_and_dots_kept(self):
        assert sanitize_filename("Song - Live.v2") == "Song - Live.v2"


# ── format_lrc_timestamp ─────────────────────────────────────────────

class TestFormatLrcTimestamp:
    @pytest.mark.parametrize("ms, expected", [
        (0, "00:00.00"),
        (1050, "00:01.05"),
        (1059, "00:01.05"),
        (62500, "01:02.50"),
        (3599999, "59:59.99"),
        (6_000_000, "100:00.00"),
        (-10, "00:00.00"),
    ])
    def test_format(self, ms, expected):
        assert format_lrc_timestamp(ms) == expected


# ── format_position ──────────────────────────────────────────────────

class TestFormatPosition:
    @pytest.mark.parametrize("ms, expected", [
        (0, "0:00"),
        (999, "0:00"),
        (62500, "1:02"),
        (-1, "0:00"),
    ])
    def test_format(self, ms, expected):
        assert format_position(ms) == expected


# ── parse_position ───────────────────────────────────────────────────

class TestParsePosition:
    @pytest.mark.parametrize("value, expected", [
        ("62500", 62500),
        ("0", 0),
        ("1:02", 62000),
        ("1:02.5", 62500),
        ("1:02.50", 62500),
        ("1:02.123", 62123),
        ("62.5", 62500),
        (" 3:00 ", 180000),
    ])
    def test_valid(self, value, expected):
        assert parse_position(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "1:2:3", "-5", "1:02.1234"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_position(value)


def test_fallback_text():
    assert fallback_text("Song", "Artist") == "Song\nArtist"
