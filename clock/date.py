# clock/date.py

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering

DAYS_PER_MONTH = 30
MONTHS_PER_YEAR = 12
DAYS_PER_YEAR = DAYS_PER_MONTH * MONTHS_PER_YEAR

# Reminders can be scheduled at most 300 in-game years ahead.
MAX_DAYS_AHEAD = 300 * DAYS_PER_YEAR


@total_ordering
@dataclass(frozen=True)
class GameDate:
    """A date on the in-game calendar: 12 months of exactly 30 days."""

    year: int
    month: int
    day: int

    @classmethod
    def default(cls) -> "GameDate":
        # Used until the first successful read of the game clock.
        return cls(2200, 1, 1)

    @property
    def ordinal(self) -> int:
        return self.year * DAYS_PER_YEAR + self.month * DAYS_PER_MONTH + self.day

    def __lt__(self, other):
        if not isinstance(other, GameDate):
            return NotImplemented
        return self.ordinal < other.ordinal

    def with_days_added(self, days: int) -> "GameDate":
        if not 1 <= days <= MAX_DAYS_AHEAD:
            raise ValueError(f"days must be between 1 and {MAX_DAYS_AHEAD}, got {days}")

        day = self.day + days
        months_added = (day - 1) // DAYS_PER_MONTH
        day = (day - 1) % DAYS_PER_MONTH + 1

        month = months_added + self.month - 1
        years_added = month // MONTHS_PER_YEAR
        month = month % MONTHS_PER_YEAR + 1

        return GameDate(self.year + years_added, month, day)

    def to_dict(self) -> dict:
        return {"year": self.year, "month": self.month, "day": self.day}

    @classmethod
    def from_dict(cls, data: dict) -> "GameDate":
        try:
            year, month, day = int(data["year"]), int(data["month"]), int(data["day"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"invalid date record: {data!r}") from e
        if not (1 <= month <= MONTHS_PER_YEAR and 1 <= day <= DAYS_PER_MONTH):
            raise ValueError(f"date out of range: {year}.{month}.{day}")
        return cls(year, month, day)

    def __str__(self) -> str:
        return f"{self.year}.{self.month}.{self.day}"


@total_ordering
@dataclass(frozen=True)
class StampedDate:
    """Reminder key: a target date plus the wall-clock time it was created.

    Ordered by the in-game date; the stamp (nanoseconds since the Unix epoch)
    only breaks ties between reminders that share a target date.
    """

    stamp: int
    date: GameDate

    def sort_key(self) -> tuple:
        return (self.date.ordinal, self.stamp)

    def __lt__(self, other):
        if not isinstance(other, StampedDate):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def to_dict(self) -> dict:
        secs, nanos = divmod(self.stamp, 1_000_000_000)
        return {"time": {"secs": secs, "nanos": nanos}, "date": self.date.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "StampedDate":
        try:
            t = data["time"]
            stamp = int(t["secs"]) * 1_000_000_000 + int(t["nanos"])
            date = GameDate.from_dict(data["date"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"invalid reminder key: {data!r}") from e
        return cls(stamp, date)
