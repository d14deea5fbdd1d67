# src/tessbridge/frames.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .engine.base import Handle, RecognitionEngine
from .exceptions import FrameError
from .models import Rect

logger = logging.getLogger("tessbridge")

SUPPORTED_BPP = (1, 8, 24, 32)


@dataclass(frozen=True)
class ImageFrame:
    """
    One decoded page as the engine expects it: rows packed top to bottom,
    each row padded to a whole byte.

    bits_per_pixel is 1 for a binary bitmap, 8 for gray, 24 for RGB and 32 for RGBA.
    """
    buffer: bytes
    width: int
    height: int
    bits_per_pixel: int

    @property
    def bytes_per_pixel(self) -> int:
        return self.bits_per_pixel // 8

    @property
    def bytes_per_line(self) -> int:
        return (self.width * self.bits_per_pixel + 7) // 8

    def validate(self) -> None:
        if self.bits_per_pixel not in SUPPORTED_BPP:
            raise FrameError(f"Unsupported bit depth, {self.bits_per_pixel}. Supported, {list(SUPPORTED_BPP)}")
        if self.width <= 0 or self.height <= 0:
            raise FrameError(f"Frame has no pixels, {self.width}x{self.height}")
        needed = self.bytes_per_line * self.height
        if len(self.buffer) < needed:
            raise FrameError(
                f"Pixel buffer too short, {len(self.buffer)} bytes for {self.width}x{self.height} "
                f"at {self.bits_per_pixel} bpp, need {needed}"
            )


def submit_frame(engine: RecognitionEngine, handle: Handle, frame: ImageFrame,
                 roi: Optional[Rect] = None) -> None:
    """
    Hand one frame to the engine, then restrict recognition to roi when it is
    present and non-empty. Must run once per page before any text or iterator
    call for that page.
    """
    frame.validate()
    engine.set_image(handle, frame.buffer, frame.width, frame.height,
                     frame.bytes_per_pixel, frame.bytes_per_line)
    if roi is not None and not roi.is_empty:
        engine.set_rectangle(handle, roi.x, roi.y, roi.width, roi.height)
        logger.debug("Recognition restricted to %s", roi)
