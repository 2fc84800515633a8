# clock/capture.py

"""Screen capture and OCR collaborators used by the clock sync loop.

Both sit behind tiny interfaces (`grab` / `read`) so the loop can run
against fakes in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Protocol

import pytesseract
from PIL import Image, ImageGrab

BYTES_PER_PIXEL = 4
OCR_WHITELIST = "0123456789."
# --psm 7: treat the image as a single text line
OCR_CONFIG = f"--psm 7 -c tessedit_char_whitelist={OCR_WHITELIST}"


class CaptureError(Exception):
    pass


class OcrError(Exception):
    pass


@dataclass(frozen=True)
class Region:
    """Pixel rectangle holding the date in the game's top bar."""

    x: int = 2415
    y: int = 6
    width: int = 75
    height: int = 13

    @property
    def bbox(self) -> tuple:
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @classmethod
    def parse(cls, value: str) -> "Region":
        """Build a region from ``"x,y"`` or ``"x,y,width,height"``."""
        parts = [p.strip() for p in value.split(",")]
        if len(parts) not in (2, 4):
            raise ValueError("region must be like 2415,6 or 2415,6,75,13")
        numbers = [int(p) for p in parts]
        if len(numbers) == 2:
            return cls(numbers[0], numbers[1])
        region = cls(*numbers)
        if region.width <= 0 or region.height <= 0:
            raise ValueError("region width and height must be positive")
        return region


class ScreenCapturer(Protocol):
    def grab(self, region: Region) -> bytes:
        """Return raw pixels, 4 bytes each (3 colour channels + 1 unused)."""
        ...


class TextReader(Protocol):
    def read(self, png: bytes) -> str:
        ...


class PillowCapturer:
    def __init__(self, xdisplay: Optional[str] = None):
        self.xdisplay = xdisplay

    def grab(self, region: Region) -> bytes:
        try:
            image = ImageGrab.grab(bbox=region.bbox, xdisplay=self.xdisplay)
        except OSError as e:
            raise CaptureError(f"screen grab failed: {e}") from e
        if image.size != (region.width, region.height):
            raise CaptureError(f"region {region.bbox} is outside the screen")
        return image.convert("RGBA").tobytes()


class TesseractReader:
    def __init__(self, tesseract_cmd: Optional[str] = None, timeout: float = 0, lang: str = "eng"):
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.timeout = timeout
        self.lang = lang

    def check(self) -> str:
        """Return the engine version, raising OcrError if tesseract is missing."""
        try:
            return str(pytesseract.get_tesseract_version())
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            raise OcrError(f"tesseract is not available: {e}") from e

    def read(self, png: bytes) -> str:
        try:
            with Image.open(BytesIO(png)) as image:
                return pytesseract.image_to_string(
                    image, lang=self.lang, config=OCR_CONFIG, timeout=self.timeout
                )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError, OSError) as e:
            raise OcrError(str(e)) from e


def normalize_frame(data: bytes, width: int, height: int) -> Image.Image:
    """Force the unused fourth channel to opaque and wrap the pixels as RGBA."""
    expected = width * height * BYTES_PER_PIXEL
    if len(data) != expected:
        raise CaptureError(f"expected {expected} bytes for {width}x{height}, got {len(data)}")
    pixels = bytearray(data)
    pixels[3::BYTES_PER_PIXEL] = b"\xff" * (width * height)
    return Image.frombytes("RGBA", (width, height), bytes(pixels))


def encode_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
