from __future__ import annotations

import threading
import time
from io import BytesIO

import pytest
from PIL import Image

from clock.capture import CaptureError, OcrError, Region, encode_png, normalize_frame
from clock.date import GameDate
from clock.sync import ClockSync, DateCell

REGION = Region(10, 20, 75, 13)


class FakeCapturer:
    def __init__(self, error=None):
        self.error = error
        self.regions = []

    def grab(self, region):
        self.regions.append(region)
        if self.error:
            raise self.error
        # Garbage in the fourth channel, like an X11 ZPixmap.
        return bytes([12, 34, 56, 7]) * (region.width * region.height)


class FakeReader:
    def __init__(self, texts, error=None):
        self.texts = list(texts)
        self.error = error
        self.images = []
        self.called = threading.Event()

    def read(self, png):
        self.called.set()
        self.images.append(Image.open(BytesIO(png)))
        if self.error:
            raise self.error
        if len(self.texts) > 1:
            return self.texts.pop(0)
        return self.texts[0]


def test_normalize_forces_opaque_alpha() -> None:
    raw = bytes([1, 2, 3, 0, 4, 5, 6, 99])
    image = normalize_frame(raw, 2, 1)
    assert image.mode == "RGBA"
    assert list(image.getdata()) == [(1, 2, 3, 255), (4, 5, 6, 255)]


def test_normalize_rejects_short_buffer() -> None:
    with pytest.raises(CaptureError):
        normalize_frame(b"\x00" * 7, 2, 1)


def test_png_is_lossless() -> None:
    image = normalize_frame(bytes([9, 8, 7, 0]) * 6, 3, 2)
    decoded = Image.open(BytesIO(encode_png(image)))
    assert decoded.size == (3, 2)
    assert list(decoded.getdata()) == list(image.getdata())


def test_region_parse() -> None:
    assert Region.parse("100, 7") == Region(100, 7, 75, 13)
    assert Region.parse("1,2,3,4") == Region(1, 2, 3, 4)
    assert Region(1, 2, 3, 4).bbox == (1, 2, 4, 6)
    with pytest.raises(ValueError):
        Region.parse("1,2,3")
    with pytest.raises(ValueError):
        Region.parse("1,2,0,4")


def test_poll_updates_cell() -> None:
    cell = DateCell()
    capturer = FakeCapturer()
    reader = FakeReader(["2250.06.15\n"])
    sync = ClockSync(capturer, reader, cell, region=REGION)

    assert cell.synced_at is None
    assert sync.poll_once() == GameDate(2250, 6, 15)
    assert cell.get() == GameDate(2250, 6, 15)
    assert cell.synced_at is not None
    assert capturer.regions == [REGION]
    assert reader.images[0].size == (75, 13)
    assert reader.images[0].getpixel((0, 0)) == (12, 34, 56, 255)


def test_poll_accepts_older_dates() -> None:
    cell = DateCell(GameDate(2300, 1, 1))
    sync = ClockSync(FakeCapturer(), FakeReader(["2250.01.01"]), cell, region=REGION)
    sync.poll_once()
    assert cell.get() == GameDate(2250, 1, 1)


@pytest.mark.parametrize(
    "capturer, reader",
    [
        (FakeCapturer(error=CaptureError("window gone")), FakeReader(["2250.06.15"])),
        (FakeCapturer(), FakeReader([""], error=OcrError("engine crashed"))),
        (FakeCapturer(), FakeReader(["22S0.06.15"])),
        (FakeCapturer(), FakeReader(["2100.06.15"])),
    ],
)
def test_failed_reads_leave_cell_alone(capturer, reader) -> None:
    cell = DateCell(GameDate(2210, 2, 3))
    sync = ClockSync(capturer, reader, cell, region=REGION)
    assert sync.poll_once() is None
    assert cell.get() == GameDate(2210, 2, 3)
    assert cell.synced_at is None


def test_loop_survives_errors_and_stops_promptly() -> None:
    cell = DateCell()
    reader = FakeReader([""], error=OcrError("flaky"))
    sync = ClockSync(FakeCapturer(), reader, cell, region=REGION, interval=30)

    sync.start()
    assert reader.called.wait(5)
    assert sync.running

    started = time.monotonic()
    sync.stop(timeout=5)
    assert time.monotonic() - started < 5
    assert not sync.running


def test_loop_keeps_polling() -> None:
    cell = DateCell()
    reader = FakeReader(["garbage", "2201.01.01", "2201.01.02"])
    sync = ClockSync(FakeCapturer(), reader, cell, region=REGION, interval=0.01)

    sync.start()
    deadline = time.monotonic() + 5
    while cell.get() != GameDate(2201, 1, 2) and time.monotonic() < deadline:
        time.sleep(0.01)
    sync.stop()

    assert cell.get() == GameDate(2201, 1, 2)


def test_concurrent_reads_see_whole_values() -> None:
    written = [GameDate(2200 + i, (i % 12) + 1, (i % 30) + 1) for i in range(200)]
    cell = DateCell(written[0])
    seen = []
    done = threading.Event()

    def write():
        for date in written:
            cell.set(date)
        done.set()

    def read():
        while not done.is_set():
            seen.append(cell.get())

    readers = [threading.Thread(target=read) for _ in range(4)]
    for t in readers:
        t.start()
    writer = threading.Thread(target=write)
    writer.start()
    writer.join()
    for t in readers:
        t.join()

    valid = set(written)
    assert all(date in valid for date in seen)
    assert cell.get() == written[-1]
