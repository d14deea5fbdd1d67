# src/tessbridge/__init__.py
"""Session API over the Tesseract C API: text, hOCR, document export and word boxes."""

from .config import OcrEngineMode, OutputMode, PageIteratorLevel, PageSegMode, RenderedFormat, SessionConfig
from .exceptions import (
    CodecError,
    EngineError,
    EngineInitError,
    EngineLoadError,
    FrameError,
    JobSpecError,
    RasterizeError,
    TessBridgeError,
    TesseractError,
    VariableError,
)
from .frames import ImageFrame
from .models import BatchReport, DocumentJob, JobOutcome, PageFailure, Rect, TextResult, Word
from .session import EngineSession, Tesseract

__version__ = "0.1.0"

__all__ = [
    "Tesseract",
    "EngineSession",
    "SessionConfig",
    "OutputMode",
    "RenderedFormat",
    "PageIteratorLevel",
    "PageSegMode",
    "OcrEngineMode",
    "ImageFrame",
    "Rect",
    "Word",
    "TextResult",
    "PageFailure",
    "DocumentJob",
    "JobOutcome",
    "BatchReport",
    "TessBridgeError",
    "TesseractError",
    "EngineError",
    "EngineInitError",
    "EngineLoadError",
    "VariableError",
    "CodecError",
    "FrameError",
    "RasterizeError",
    "JobSpecError",
]
