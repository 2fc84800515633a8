# memory/reminders.py

import time
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from clock.date import GameDate, MAX_DAYS_AHEAD, StampedDate


@dataclass
class Reminder:
    label: str
    triggered: bool = False


class ReminderBook:
    """Reminders keyed by target date, iterated in chronological order.

    Not thread-safe; callers serialize access.
    """

    def __init__(self, entries: Optional[Dict[StampedDate, Reminder]] = None):
        self._entries: Dict[StampedDate, Reminder] = dict(entries or {})

    def __len__(self):
        return len(self._entries)

    def __iter__(self) -> Iterator[StampedDate]:
        return iter(self.keys())

    def keys(self) -> List[StampedDate]:
        return sorted(self._entries, key=StampedDate.sort_key)

    def items(self) -> List[Tuple[StampedDate, Reminder]]:
        return [(key, self._entries[key]) for key in self.keys()]

    def pending(self) -> List[Tuple[StampedDate, Reminder]]:
        return [(key, r) for key, r in self.items() if not r.triggered]

    def insert(self, label: str, days_ahead: float, today: GameDate, now_ns: Optional[int] = None) -> Optional[StampedDate]:
        if not 1 <= days_ahead <= MAX_DAYS_AHEAD:
            return None

        target = today.with_days_added(int(days_ahead))
        stamp = now_ns if now_ns is not None else time.time_ns()
        key = StampedDate(stamp, target)
        self._entries[key] = Reminder(label.strip())
        return key

    def remove(self, key: StampedDate) -> bool:
        return self._entries.pop(key, None) is not None

    def scan_and_trigger(self, current: GameDate) -> List[str]:
        fired = []
        for key, reminder in self.items():
            if not reminder.triggered and key.date <= current:
                reminder.triggered = True
                fired.append(reminder.label)
        return fired
