# clock/sync.py

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Optional

from clock.capture import CaptureError, OcrError, Region, ScreenCapturer, TextReader, encode_png, normalize_frame
from clock.date import GameDate
from clock.parser import try_parse_date
from utils.logger import get_logger

log = get_logger("sync")


class ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self):
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class DateCell:
    """Latest known game date, written by the sync loop and read by everyone else."""

    def __init__(self, date: Optional[GameDate] = None):
        self._lock = ReadWriteLock()
        self._date = date or GameDate.default()
        self._synced_at: Optional[float] = None

    def get(self) -> GameDate:
        with self._lock.read():
            return self._date

    def set(self, date: GameDate) -> None:
        now = time.time()
        with self._lock.write():
            self._date = date
            self._synced_at = now

    @property
    def synced_at(self) -> Optional[float]:
        """Wall-clock time of the last successful read, None before the first one."""
        with self._lock.read():
            return self._synced_at


class ClockSync:
    """Polls the game window for its date and keeps a DateCell current."""

    def __init__(
        self,
        capturer: ScreenCapturer,
        reader: TextReader,
        cell: DateCell,
        region: Region = Region(),
        interval: float = 1.0,
    ):
        self.capturer = capturer
        self.reader = reader
        self.cell = cell
        self.region = region
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def recognize(self) -> Optional[GameDate]:
        try:
            raw = self.capturer.grab(self.region)
            image = normalize_frame(raw, self.region.width, self.region.height)
            text = self.reader.read(encode_png(image))
        except (CaptureError, OcrError) as e:
            log.debug(f"Clock read failed: {e}")
            return None
        return try_parse_date(text)

    def poll_once(self) -> Optional[GameDate]:
        date = self.recognize()
        if date is not None:
            # No monotonicity check: loading an older save moves the clock back.
            self.cell.set(date)
        return date

    def run(self) -> None:
        log.info(f"🕰️ Clock sync started (region {self.region.bbox}, every {self.interval}s)")
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                log.exception("Unexpected error while reading the game clock")
            if self._stop.wait(self.interval):
                break
        log.info("Clock sync stopped")

    def start(self) -> threading.Thread:
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="clock-sync", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is None:
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            log.warning(f"Clock sync did not stop within {timeout}s")
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
