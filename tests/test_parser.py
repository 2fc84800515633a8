from __future__ import annotations

import pytest

from clock.date import GameDate
from clock.parser import MalformedField, NoMatch, OutOfRange, parse_date, try_parse_date


def test_parses_top_bar_date() -> None:
    assert parse_date("2250.06.15") == GameDate(2250, 6, 15)


def test_strips_ocr_whitespace() -> None:
    assert parse_date(" 2250.06.15\n\x0c") == GameDate(2250, 6, 15)


@pytest.mark.parametrize("text", ["abcd", "", "2250.6.15", "22500.06.15", "2250.06.15.1", "2250..06.15", "2250106115"])
def test_non_dates_do_not_match(text: str) -> None:
    with pytest.raises(NoMatch):
        parse_date(text)


def test_any_single_separator_is_accepted() -> None:
    assert parse_date("2250,06-15") == GameDate(2250, 6, 15)


@pytest.mark.parametrize(
    "text",
    [
        "2100.01.01",  # before the game starts
        "2199.01.01",
        "3000.01.01",
        "2250.13.01",
        "2250.06.31",
    ],
)
def test_out_of_range_dates_are_rejected(text: str) -> None:
    with pytest.raises(OutOfRange):
        parse_date(text)


def test_day_and_month_zero_are_rejected() -> None:
    # Zero is not a valid day or month on the in-game calendar, so the bounds
    # are 1..30 and 1..12 rather than only an upper limit.
    with pytest.raises(OutOfRange):
        parse_date("2250.06.00")
    with pytest.raises(OutOfRange):
        parse_date("2250.00.10")


def test_bounds_are_inclusive_where_valid() -> None:
    assert parse_date("2200.01.01") == GameDate(2200, 1, 1)
    assert parse_date("2999.12.30") == GameDate(2999, 12, 30)


def test_rejections_are_value_errors() -> None:
    assert issubclass(NoMatch, ValueError)
    assert issubclass(MalformedField, ValueError)
    assert issubclass(OutOfRange, ValueError)


def test_try_parse_returns_none_on_rejection() -> None:
    assert try_parse_date("2250.06.15") == GameDate(2250, 6, 15)
    assert try_parse_date("22S0.06.15") is None
    assert try_parse_date("2100.01.01") is None
