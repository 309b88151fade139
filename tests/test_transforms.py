"""
Tests for the date and amount transforms.
"""

from datetime import date, datetime

from invoice_fusion.schema.transforms import (
    AmountNormalizer,
    DateNormalizer,
    parse_amount,
    parse_date,
    to_amount,
    to_calendar_day,
)


def test_parse_date_us_format():
    """Month-first slashed dates normalize to ISO"""
    assert parse_date("01/15/2024") == "2024-01-15"


def test_parse_date_written_month():
    assert parse_date("January 15, 2024") == "2024-01-15"
    assert parse_date("15th Jan 2024") == "2024-01-15"


def test_parse_date_with_time_component():
    """Time of day is dropped"""
    assert parse_date("2024-01-15T10:30:00") == "2024-01-15"


def test_parse_date_unparseable_returns_input():
    """Unrecognized dates come back unchanged"""
    assert parse_date("upon receipt") == "upon receipt"


def test_parse_date_missing_year_is_deterministic():
    """Missing components come from a fixed default, not from today"""
    assert parse_date("March 5") == "2000-03-05"


def test_bare_number_is_not_a_date():
    assert to_calendar_day("12345") is None


def test_to_calendar_day_accepts_date_objects():
    assert to_calendar_day(datetime(2024, 1, 15, 23, 59)) == date(2024, 1, 15)
    assert to_calendar_day(date(2024, 1, 15)) == date(2024, 1, 15)
    assert to_calendar_day(None) is None


def test_custom_output_format():
    normalizer = DateNormalizer(output_format="%d.%m.%Y")
    assert normalizer.normalize("01/15/2024") == "15.01.2024"


def test_parse_amount_strips_currency():
    assert parse_amount("$1,234.56") == 1234.56
    assert parse_amount("USD 99.90") == 99.90


def test_parse_amount_european_format():
    assert parse_amount("€ 1.234,56") == 1234.56


def test_parse_amount_unparseable_defaults_to_zero():
    assert parse_amount("n/a") == 0.0
    assert parse_amount(None) == 0.0


def test_to_amount_returns_none_when_unparseable():
    assert to_amount("   ") is None
    assert to_amount("n/a") is None
    assert to_amount(42) == 42.0


def test_amount_normalizer_two_decimals():
    assert AmountNormalizer().normalize("$1,234.5") == "1234.50"
    assert AmountNormalizer().normalize("abc") is None


def test_non_finite_amounts_are_unparseable():
    assert to_amount(float("inf")) is None
    assert to_amount(float("nan")) is None
    assert parse_amount(float("inf")) == 0.0
