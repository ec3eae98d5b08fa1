"""Tests for formatting module."""

import re

import pytest

from firewalla_msp_mcp.formatting import (
    escape_xml,
    format_bytes,
    format_unix_time,
    md_cell,
    percent,
    plural,
    utc_timestamp,
)


class TestFormatBytes:
    """Tests for format_bytes function."""

    @pytest.mark.parametrize("value", [None, 0, -5, "abc", True, float("nan")])
    def test_absent_or_invalid_is_zero(self, value):
        """Should render absent, zero, negative and non-numeric input as 0 B."""
        assert format_bytes(value) == "0 B"

    def test_plain_bytes(self):
        assert format_bytes(512) == "512 B"

    @pytest.mark.parametrize("value,expected", [(0.5, "0.5 B"), (0.0005, "0 B"), (1e-9, "0 B")])
    def test_fractions_of_a_byte_stay_in_bytes(self, value, expected):
        assert format_bytes(value) == expected

    def test_kilobytes(self):
        """Should use base 1024 and drop trailing zeros."""
        assert format_bytes(1024) == "1 KB"
        assert format_bytes(1536) == "1.5 KB"

    def test_two_decimal_rounding(self):
        assert format_bytes(1234567) == "1.18 MB"

    def test_rounding_up_moves_to_next_unit(self):
        """Should never render 1024 of a unit."""
        assert format_bytes(1024 * 1024 - 1) == "1 MB"

    def test_numeric_strings_are_accepted(self):
        assert format_bytes("2048") == "2 KB"

    def test_caps_at_terabytes(self):
        assert format_bytes(1024 ** 5) == "1024 TB"


class TestEscapeXml:
    """Tests for escape_xml function."""

    def test_escapes_all_reserved_characters(self):
        assert escape_xml("""<a href="x">&'</a>""") == "&lt;a href=&quot;x&quot;&gt;&amp;&#39;&lt;/a&gt;"

    def test_ampersand_is_not_double_escaped(self):
        """Should escape an ampersand once even when followed by an entity-like text."""
        assert escape_xml("&lt;") == "&amp;lt;"

    def test_coerces_non_strings(self):
        assert escape_xml(42) == "42"


class TestTimeHelpers:
    """Tests for timestamp helpers."""

    def test_utc_timestamp_format(self):
        """Should produce ISO-8601 with milliseconds and a Z suffix."""
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())

    def test_format_unix_time(self):
        assert format_unix_time(0) == "1970-01-01 00:00:00 UTC"
        assert format_unix_time(1720000000) == "2024-07-03 09:46:40 UTC"

    @pytest.mark.parametrize("value", [None, "soon", True])
    def test_format_unix_time_missing(self, value):
        assert format_unix_time(value) == "N/A"


class TestTextHelpers:
    """Tests for small text helpers."""

    def test_plural(self):
        assert plural(1, "box", "boxes") == "1 box"
        assert plural(2, "box", "boxes") == "2 boxes"
        assert plural(0, "alarm") == "0 alarms"

    def test_percent(self):
        assert percent(1, 3) == "33.3%"
        assert percent(5, 0) == "0%"

    def test_md_cell_escapes_pipes_and_newlines(self):
        assert md_cell("a|b\nc") == "a\\|b c"
