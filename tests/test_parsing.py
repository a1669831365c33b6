# -*- coding: utf-8 -*-
"""
Unit tests for the cell parsing helpers.
"""

import math
from datetime import datetime, timezone

import pytest

from setique.ingestion_analyzer.parsing import is_blank, parse_date, parse_number


class TestIsBlank:

    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
    def test_blank(self, value):
        assert is_blank(value) is True

    @pytest.mark.parametrize("value", ["0", 0, "x", False])
    def test_not_blank(self, value):
        assert is_blank(value) is False


class TestParseNumber:

    @pytest.mark.parametrize("value,expected", [
        ("42", 42.0),
        ("3.5", 3.5),
        ("-7", -7.0),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("1,234", 1234.0),
        ("1,234,567.89", 1234567.89),
        ("  12  ", 12.0),
        ("5%", 5.0),
        ("12.5k", 12.5),
        (7, 7.0),
        (2.5, 2.5),
    ])
    def test_parses(self, value, expected):
        assert parse_number(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", "n/a", "-", True, float("nan")])
    def test_unparsable(self, value):
        assert parse_number(value) is None

    def test_commas_kept_when_requested(self):
        assert parse_number("1,234", strip_commas=False) == 1.0

    def test_infinity(self):
        assert parse_number("Infinity") == math.inf
        assert parse_number("-Infinity") == -math.inf


class TestParseDate:

    @pytest.mark.parametrize("value", [
        "2024-06-01",
        "2024-06-01T00:00:00",
        "2024-06-01T00:00:00Z",
        "2024-06-01 00:00:00",
        "2024/06/01",
        "06/01/2024",
        "Jun 01, 2024",
        "June 1, 2024",
        "1 Jun 2024",
    ])
    def test_common_formats(self, value):
        assert parse_date(value) == datetime(2024, 6, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value,expected", [
        ("6/1/2024 10:00 AM", datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)),
        ("6/1/2024 10:30 PM", datetime(2024, 6, 1, 22, 30, tzinfo=timezone.utc)),
        ("06/01/2024 10:00:15 AM", datetime(2024, 6, 1, 10, 0, 15, tzinfo=timezone.utc)),
        ("June 1, 2024 10:00 AM", datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)),
        ("Jun 1, 2024 2:15 PM", datetime(2024, 6, 1, 14, 15, tzinfo=timezone.utc)),
        ("2024-06-01 10:00:00 UTC", datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)),
        ("2024-06-01 10:00:00 GMT", datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)),
        ("Jun 01 2024", datetime(2024, 6, 1, tzinfo=timezone.utc)),
        ("June 1 2024", datetime(2024, 6, 1, tzinfo=timezone.utc)),
        ("Sat Jun 01 2024", datetime(2024, 6, 1, tzinfo=timezone.utc)),
        ("  Jun  01,  2024  ", datetime(2024, 6, 1, tzinfo=timezone.utc)),
    ])
    def test_export_formats_with_times(self, value, expected):
        assert parse_date(value) == expected

    def test_offset_is_kept(self):
        parsed = parse_date("2024-06-01T10:00:00+02:00")

        assert parsed == datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        assert parse_date(datetime(2024, 6, 1)).tzinfo == timezone.utc

    def test_epoch_seconds(self):
        assert parse_date(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "someday", "2024-13-45", True])
    def test_unparsable(self, value):
        assert parse_date(value) is None
