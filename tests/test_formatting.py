"""Tests for number, date and Markdown helpers."""

import re
from datetime import datetime

import pytest

from formatting import (
    bullet_lines,
    format_currency,
    format_date,
    format_number,
    format_percentage,
    generate_request_id,
    join_sections,
    parse_timestamp,
    pick,
    safe_float,
    section,
    token_label,
)


class TestNumbers:
    @pytest.mark.parametrize("value, expected", [
        (1.5e12, "$1.50T"),
        (2_340_000_000, "$2.34B"),
        (7_890_000, "$7.89M"),
        (1234, "$1.23K"),
        (12.5, "$12.50"),
        (0.000123, "$0.000123"),
        (0, "$0.00"),
        (-5, "$0.00"),
        ("not a number", "$0.00"),
        (None, "$0.00"),
    ])
    def test_format_currency(self, value, expected):
        assert format_currency(value) == expected

    def test_format_percentage_is_signed(self):
        assert format_percentage(3.14159) == "+3.14%"
        assert format_percentage("-2.5") == "-2.50%"
        assert format_percentage(None) == "0.00%"

    def test_format_number(self):
        assert format_number(1234567) == "1,234,567"
        assert format_number(1234.5678) == "1,234.57"
        assert format_number("x") == "N/A"

    def test_safe_float(self):
        assert safe_float("1.5") == 1.5
        assert safe_float(float("nan")) == 0.0
        assert safe_float(True) == 0.0
        assert safe_float("abc", None) is None


class TestDates:
    def test_format_date_variants(self):
        assert format_date("2024-03-01T12:00:00Z") == "2024-03-01"
        assert format_date(1_700_000_000) == "2023-11-14"
        assert format_date(1_700_000_000_000) == "2023-11-14"
        assert format_date("yesterday") == "yesterday"

    def test_parse_timestamp_is_naive(self):
        parsed = parse_timestamp("2024-03-01T12:00:00Z")
        assert parsed == datetime(2024, 3, 1, 12, 0)
        assert parsed.tzinfo is None
        assert parse_timestamp("") is None
        assert parse_timestamp("garbage") is None


class TestMarkdown:
    def test_request_id_shape(self):
        assert re.fullmatch(r"req_\d+_[0-9a-z]{9}", generate_request_id())

    def test_section_skips_when_empty(self):
        assert section("Title", []) == ""
        assert section("Title", bullet_lines(["a", "", "b"])) == "**Title**:\n• a\n• b"

    def test_join_sections_drops_blanks(self):
        assert join_sections("a", "", "b") == "a\n\nb"

    def test_pick_and_token_label(self):
        row = {"TOKEN_NAME": "", "NAME": "Bitcoin", "TOKEN_SYMBOL": "BTC"}
        assert pick(row, "TOKEN_NAME", "NAME") == "Bitcoin"
        assert pick(row, "MISSING", default=1) == 1
        assert token_label(row) == "Bitcoin (BTC)"
        assert token_label({}) == "Unknown"
