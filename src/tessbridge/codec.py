# src/tessbridge/codec.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

import numpy as np
from PIL import Image, ImageSequence, UnidentifiedImageError

from .exceptions import CodecError
from .frames import ImageFrame

logger = logging.getLogger("tessbridge")

ImageSource = Union[str, Path, Image.Image, np.ndarray]
PageSource = Union[ImageFrame, Image.Image, np.ndarray]

_BPP_BY_MODE = {"1": 1, "L": 8, "RGB": 24, "RGBA": 32}


def frame_from_image(img: Image.Image) -> ImageFrame:
    """
    Pack a PIL image into an ImageFrame.
    Binary images stay at 1 bpp, everything Tesseract cannot take directly becomes RGB.
    """
    if img.mode == "LA":
        img = img.convert("L")
    elif img.mode not in _BPP_BY_MODE:
        img = img.convert("RGB")

    width, height = img.size
    if img.mode == "1":
        # Pillow keeps 1 = white, which is also what the engine expects for binary input
        arr = np.packbits(np.asarray(img, dtype=bool), axis=1)
    else:
        arr = np.asarray(img, dtype=np.uint8)
    return ImageFrame(
        buffer=np.ascontiguousarray(arr).tobytes(),
        width=width,
        height=height,
        bits_per_pixel=_BPP_BY_MODE[img.mode],
    )


def frame_from_array(arr: np.ndarray) -> ImageFrame:
    """Accepts HxW (gray or bool) and HxWx3/4 uint8 arrays."""
    if arr.dtype == bool:
        return frame_from_image(Image.fromarray(arr).convert("1"))
    try:
        img = Image.fromarray(np.ascontiguousarray(arr))
    except TypeError as e:
        raise CodecError(f"Unsupported array, shape {arr.shape}, dtype {arr.dtype}") from e
    return frame_from_image(img)


def to_frame(page: PageSource) -> ImageFrame:
    """Convert one page returned by ImageCodec.pages(). Raises CodecError for that page only."""
    if isinstance(page, ImageFrame):
        return page
    try:
        if isinstance(page, np.ndarray):
            return frame_from_array(page)
        return frame_from_image(page)
    except CodecError:
        raise
    except (OSError, ValueError) as e:
        raise CodecError(f"Cannot convert page, {e}") from e


# --- Step 1, interface ---
class ImageCodec(ABC):
    """
    Turns an image source into its pages, in document order.
    """

    @abstractmethod
    def pages(self, source: ImageSource) -> List[PageSource]:
        """
        Split source into pages that are not converted yet, so one bad page can
        be skipped by the caller. Raises CodecError when source cannot be opened.
        """
        raise NotImplementedError

    def decode(self, source: ImageSource) -> List[ImageFrame]:
        """All pages converted to frames. Raises CodecError for unsupported or corrupt input."""
        return [to_frame(p) for p in self.pages(source)]


# --- Step 2, concrete implementation with Pillow ---
class PillowImageCodec(ImageCodec):
    """Codec that uses Pillow, so every format Pillow reads is supported, multi-page TIFF included."""

    def pages(self, source: ImageSource) -> List[PageSource]:
        if isinstance(source, np.ndarray):
            return [source]
        if isinstance(source, Image.Image):
            return self._split(source)

        path = Path(source)
        if not path.is_file():
            raise CodecError(f"Image file not found, {path}")
        try:
            with Image.open(path) as im:
                pages = self._split(im)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise CodecError(f"Cannot decode {path.name}, {e}") from e
        logger.debug("Decoded %s into %d page(s)", path.name, len(pages))
        return pages

    def _split(self, im: Image.Image) -> List[PageSource]:
        # copy() detaches each page from the file, which is closed afterwards
        pages: List[PageSource] = [frame.copy() for frame in ImageSequence.Iterator(im)]
        if not pages:
            raise CodecError("Image has no frames")
        return pages


# --- Step 3, factory ---
def get_image_codec(codec_name: str = "pillow") -> ImageCodec:
    """
    Create an image codec by name.
    """
    name = (codec_name or "").lower()
    if name == "pillow":
        return PillowImageCodec()
    raise ValueError(f"Unknown image codec, '{codec_name}'. Supported codecs, ['pillow']")
