# memory/storage.py

import json
import os
import tempfile
from typing import Tuple

from clock.date import GameDate, StampedDate
from memory.reminders import Reminder, ReminderBook
from utils.logger import get_logger

log = get_logger("storage")

DEFAULT_TIMER_FILE = os.path.join(os.path.expanduser("~"), ".stellaris-timer")


class StorageError(Exception):
    pass


def dump_state(date: GameDate, book: ReminderBook) -> list:
    entries = [[key.to_dict(), [r.label, r.triggered]] for key, r in book.items()]
    return [date.to_dict(), entries]


def parse_state(data) -> Tuple[GameDate, ReminderBook]:
    try:
        raw_date, raw_entries = data
        date = GameDate.from_dict(raw_date)
        entries = {}
        for raw_key, (label, triggered) in raw_entries:
            if not isinstance(label, str) or not isinstance(triggered, bool):
                raise ValueError(f"invalid reminder: {label!r}, {triggered!r}")
            entries[StampedDate.from_dict(raw_key)] = Reminder(label, triggered)
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid timer file: {e}") from e
    return date, ReminderBook(entries)


class ReminderStorage:
    """Reads and writes the tracked date and reminders as one JSON file."""

    def __init__(self, path: str = DEFAULT_TIMER_FILE):
        self.path = path

    def load(self) -> Tuple[GameDate, ReminderBook]:
        if not os.path.exists(self.path):
            log.info(f"No timer file at {self.path}, starting fresh")
            return GameDate.default(), ReminderBook()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                date, book = parse_state(json.load(f))
        except (OSError, ValueError, RecursionError) as e:
            log.warning(f"Could not load {self.path} ({e}), starting fresh")
            return GameDate.default(), ReminderBook()
        log.debug(f"Loaded {len(book)} reminders, last date {date}")
        return date, book

    def save(self, date: GameDate, book: ReminderBook) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".stellaris-timer-", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(dump_state(date, book), f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Could not save {self.path}: {e}") from e
