"""
Tests for permissive cell coercion: numbers, integers, calendar dates and addresses.
"""

from datetime import date, datetime

import pytest

from solar_atlas.utils.address import normalize_address
from solar_atlas.utils.date import parse_calendar_date
from solar_atlas.utils.values import clean_text, parse_integer, parse_number


class TestParseNumber:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("7.5", 7.5),
            ("$21,450.00", 21450.0),
            ("1 234", 1234.0),
            ("(123.45)", -123.45),
            ("-$50", -50.0),
            ("12.5%", 12.5),
            ("7.5 kW", 7.5),
            (".5", 0.5),
            (3, 3.0),
        ],
    )
    def test_accepted_formats(self, raw, expected):
        assert parse_number(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["", "   ", "N/A", "abc", "NaN", "Infinity", None, True, float("nan")])
    def test_malformed_values_become_none(self, raw):
        assert parse_number(raw) is None


class TestParseInteger:
    def test_integral_values(self):
        assert parse_integer("2024") == 2024
        assert parse_integer("2,024") == 2024
        assert parse_integer("2024.0") == 2024

    def test_fractional_or_text_values(self):
        assert parse_integer("2024.5") is None
        assert parse_integer("FY2024") is None
        assert parse_integer("") is None


class TestCleanText:
    def test_strips_and_blanks_to_none(self):
        assert clean_text("  SunCo ") == "SunCo"
        assert clean_text("   ") is None
        assert clean_text(None) is None


class TestParseCalendarDate:
    def test_month_first(self):
        assert parse_calendar_date("01/15/2024") == date(2024, 1, 15)

    def test_day_first_when_first_part_exceeds_twelve(self):
        assert parse_calendar_date("15/01/2024") == date(2024, 1, 15)

    def test_dashed_month_first(self):
        assert parse_calendar_date("03-04-2024") == date(2024, 3, 4)

    def test_iso_date(self):
        assert parse_calendar_date("2024-09-04") == date(2024, 9, 4)

    def test_iso_timestamp_keeps_calendar_date_as_written(self):
        assert parse_calendar_date("2024-09-04T23:09:18Z") == date(2024, 9, 4)
        assert parse_calendar_date("2024-09-04T23:30:00-05:00") == date(2024, 9, 4)

    def test_date_and_datetime_inputs(self):
        assert parse_calendar_date(date(2024, 1, 2)) == date(2024, 1, 2)
        assert parse_calendar_date(datetime(2024, 1, 2, 23, 59)) == date(2024, 1, 2)

    @pytest.mark.parametrize("raw", [None, "", "  ", "not a date", float("nan")])
    def test_unparseable_values_become_none(self, raw):
        assert parse_calendar_date(raw, log_failures=False) is None

    def test_failures_are_logged_with_context(self, caplog):
        caplog.set_level("WARNING", logger="solar_atlas.utils.date")
        assert parse_calendar_date("definitely-not-a-date", log_context="install_date_test") is None
        assert "install_date_test" in caplog.text


class TestNormalizeAddress:
    def test_abbreviates_and_drops_unit(self):
        assert normalize_address("1200 North Lamar Boulevard Apt 4B") == "1200 N LAMAR BLVD"

    def test_strips_punctuation_and_whitespace(self):
        assert normalize_address("  500  E. 5th Street, ") == "500 E 5TH ST"

    def test_empty(self):
        assert normalize_address(None) == ""
        assert normalize_address("") == ""
