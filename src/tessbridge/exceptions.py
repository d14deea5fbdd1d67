# src/tessbridge/exceptions.py
from __future__ import annotations

from typing import List, Optional


class TessBridgeError(Exception):
    """Base exception for the tessbridge library."""
    pass


class TesseractError(TessBridgeError):
    """Raised when an OCR call fails. The original error is kept as __cause__."""
    pass


class EngineError(TesseractError):
    """The recognition engine reported a failure."""
    pass


class EngineInitError(EngineError):
    """The engine handle could not be initialized (bad datapath or language)."""
    pass


class EngineLoadError(EngineError):
    """The native Tesseract or Leptonica library could not be loaded."""
    pass


class VariableError(TesseractError):
    """Raised in strict mode when the engine rejects one or more variables."""

    def __init__(self, rejected: List[str], message: Optional[str] = None):
        self.rejected = list(rejected)
        super().__init__(message or f"Engine rejected variables, {', '.join(self.rejected)}")


class CodecError(TessBridgeError):
    """Raised when an image cannot be decoded into frames."""
    pass


class FrameError(TessBridgeError):
    """Raised when a frame does not satisfy the pixel buffer contract."""
    pass


class RasterizeError(TessBridgeError):
    """Raised when a PDF cannot be rasterized."""
    pass


class JobSpecError(TessBridgeError, ValueError):
    """Raised for invalid batch arguments, before any engine handle is created."""
    pass
