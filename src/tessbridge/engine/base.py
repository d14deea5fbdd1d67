# src/tessbridge/engine/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple

from ..config import RenderedFormat
from ..models import Rect

# Handles, iterators and renderers are opaque tokens owned by the engine
Handle = Any
ResultIterator = Any
PageIterator = Any
Renderer = Any


class RecognitionEngine(ABC):
    """
    Handle-based interface of the recognition engine.

    Methods mirror the Tesseract C API one to one. Implementations copy every
    string they return into Python memory and free the native buffer, so no
    returned value aliases engine memory.
    """

    @abstractmethod
    def version(self) -> str:
        raise NotImplementedError

    # --- handle lifecycle ---
    @abstractmethod
    def create_handle(self) -> Handle:
        raise NotImplementedError

    @abstractmethod
    def initialize(self, handle: Handle, datapath: str, language: str, oem: int,
                   configs: Sequence[str]) -> bool:
        """Returns False when the engine could not load the language data."""
        raise NotImplementedError

    @abstractmethod
    def delete_handle(self, handle: Handle) -> None:
        raise NotImplementedError

    # --- configuration ---
    @abstractmethod
    def set_variable(self, handle: Handle, key: str, value: str) -> bool:
        """Returns False when the engine does not know the variable."""
        raise NotImplementedError

    @abstractmethod
    def set_page_seg_mode(self, handle: Handle, mode: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_datapath(self, handle: Handle) -> str:
        raise NotImplementedError

    # --- image input ---
    @abstractmethod
    def set_image(self, handle: Handle, buffer: bytes, width: int, height: int,
                  bytes_per_pixel: int, bytes_per_line: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_rectangle(self, handle: Handle, x: int, y: int, width: int, height: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_input_name(self, handle: Handle, name: str) -> None:
        raise NotImplementedError

    # --- text output ---
    @abstractmethod
    def get_text(self, handle: Handle) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_hocr_text(self, handle: Handle, page_index: int) -> str:
        raise NotImplementedError

    # --- recognition and iteration ---
    @abstractmethod
    def recognize(self, handle: Handle) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_result_iterator(self, handle: Handle) -> Optional[ResultIterator]:
        raise NotImplementedError

    @abstractmethod
    def get_page_iterator(self, iterator: ResultIterator) -> PageIterator:
        raise NotImplementedError

    @abstractmethod
    def page_iterator_begin(self, page_iterator: PageIterator) -> None:
        raise NotImplementedError

    @abstractmethod
    def page_iterator_next(self, page_iterator: PageIterator, level: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    def page_iterator_bounding_box(self, page_iterator: PageIterator,
                                   level: int) -> Optional[Tuple[int, int, int, int]]:
        """Returns (left, top, right, bottom), or None when there is no box at this level."""
        raise NotImplementedError

    @abstractmethod
    def result_iterator_text(self, iterator: ResultIterator, level: int) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def result_iterator_confidence(self, iterator: ResultIterator, level: int) -> float:
        raise NotImplementedError

    @abstractmethod
    def delete_result_iterator(self, iterator: ResultIterator) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_component_boxes(self, handle: Handle, level: int, text_only: bool = True) -> List[Rect]:
        raise NotImplementedError

    # --- renderers ---
    @abstractmethod
    def create_renderer(self, kind: RenderedFormat, output_base: str,
                        datadir: Optional[str] = None, textonly: bool = False) -> Renderer:
        raise NotImplementedError

    @abstractmethod
    def renderer_insert(self, head: Renderer, renderer: Renderer) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_renderer(self, head: Renderer) -> None:
        """Deletes the renderer and every renderer linked after it."""
        raise NotImplementedError

    @abstractmethod
    def process_pages(self, handle: Handle, filename: str, renderer: Renderer,
                      retry_config: Optional[str] = None, timeout_ms: int = 0) -> bool:
        raise NotImplementedError


# --- factory ---
def get_engine(engine_name: str = "capi", **kwargs) -> RecognitionEngine:
    """
    Create a recognition engine by name.
    """
    name = (engine_name or "").lower()
    if name == "capi":
        from .capi import TessCAPIEngine  # local import, loading the library is expensive
        return TessCAPIEngine(**kwargs)
    raise ValueError(f"Unknown recognition engine, '{engine_name}'. Supported engines, ['capi']")
