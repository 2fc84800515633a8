# clock/parser.py

import re
from typing import Optional

from clock.date import GameDate, DAYS_PER_MONTH, MONTHS_PER_YEAR
from utils.logger import get_logger

log = get_logger("parser")

# yyyy.mm.dd as rendered in the game's top bar
DATE_PATTERN = re.compile(r"^(\d{4})\D(\d{2})\D(\d{2})$", re.ASCII)

MIN_YEAR = 2199  # exclusive
MAX_YEAR = 3000  # exclusive


class DateRejected(ValueError):
    """OCR text that does not describe a usable game date."""


class NoMatch(DateRejected):
    pass


class MalformedField(DateRejected):
    pass


class OutOfRange(DateRejected):
    pass


def parse_date(text: str) -> GameDate:
    text = text.strip()
    match = DATE_PATTERN.match(text)
    if not match:
        raise NoMatch(f"not a date: {text!r}")

    try:
        year, month, day = (int(group) for group in match.groups())
    except ValueError as e:
        raise MalformedField(str(e)) from e

    if not MIN_YEAR < year < MAX_YEAR:
        raise OutOfRange(f"year out of range: {year}")
    if not 1 <= month <= MONTHS_PER_YEAR:
        raise OutOfRange(f"month out of range: {month}")
    if not 1 <= day <= DAYS_PER_MONTH:
        raise OutOfRange(f"day out of range: {day}")

    return GameDate(year, month, day)


def try_parse_date(text: str) -> Optional[GameDate]:
    """Parse OCR output, returning None for anything that isn't a valid date."""
    try:
        return parse_date(text)
    except DateRejected as e:
        log.debug(f"Rejected OCR text: {e}")
        return None
