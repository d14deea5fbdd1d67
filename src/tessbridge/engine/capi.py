# src/tessbridge/engine/capi.py
from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import platform
from ctypes import POINTER, byref, c_char_p, c_float, c_int, c_void_p
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..config import RenderedFormat
from ..exceptions import EngineError, EngineLoadError
from ..models import Rect
from .base import Handle, PageIterator, RecognitionEngine, Renderer, ResultIterator

logger = logging.getLogger("tessbridge")


# --- Library discovery ---

def _candidates(env_var: str, names: Sequence[str], system_paths: dict) -> List[str]:
    out: List[str] = []

    # 1) explicit env override
    p = os.getenv(env_var)
    if p:
        out.append(p)

    # 2) ask the platform loader
    for n in names:
        found = ctypes.util.find_library(n)
        if found:
            out.append(found)

    # 3) common fallbacks by OS
    for p in system_paths.get(platform.system(), system_paths["Linux"]):
        if Path(p).exists() or os.sep not in p:
            out.append(p)
    return out


def tesseract_library_candidates() -> List[str]:
    return _candidates("TESSERACT_LIB", ["tesseract", "libtesseract-5", "libtesseract-4"], {
        "Windows": [
            r"C:\Program Files\Tesseract-OCR\libtesseract-5.dll",
            r"C:\Program Files\Tesseract-OCR\libtesseract-4.dll",
        ],
        "Darwin": [
            "/opt/homebrew/lib/libtesseract.dylib",  # Apple Silicon Homebrew
            "/usr/local/lib/libtesseract.dylib",     # Intel Homebrew/MacPorts
        ],
        "Linux": [
            "libtesseract.so.5",
            "libtesseract.so.4",
            "/usr/lib/x86_64-linux-gnu/libtesseract.so.5",
            "/usr/local/lib/libtesseract.so.5",
        ],
    })


def leptonica_library_candidates() -> List[str]:
    return _candidates("LEPTONICA_LIB", ["leptonica", "lept", "libleptonica-6", "liblept-5"], {
        "Windows": [
            r"C:\Program Files\Tesseract-OCR\libleptonica-6.dll",
            r"C:\Program Files\Tesseract-OCR\liblept-5.dll",
        ],
        "Darwin": [
            "/opt/homebrew/lib/libleptonica.dylib",
            "/usr/local/lib/libleptonica.dylib",
        ],
        "Linux": [
            "libleptonica.so.6",
            "liblept.so.5",
            "/usr/lib/x86_64-linux-gnu/liblept.so.5",
            "/usr/local/lib/libleptonica.so.6",
        ],
    })


def _load_library(what: str, candidates: Sequence[str]) -> ctypes.CDLL:
    errors = []
    for c in candidates:
        try:
            lib = ctypes.CDLL(c)
            logger.debug("Loaded %s from %s", what, c)
            return lib
        except OSError as e:
            errors.append(f"{c}: {e}")
    raise EngineLoadError(
        f"Could not load the {what} library. Tried, {candidates or 'nothing'}. "
        f"Set the path explicitly or install it. Details, {'; '.join(errors)}"
    )


def _enc(s) -> Optional[bytes]:
    if s is None:
        return None
    return str(s).encode("utf-8")


# --- Binding ---

class TessCAPIEngine(RecognitionEngine):
    """
    ctypes binding of libtesseract's C API (capi.h).

    Args (all optional):
      - library_path: full path to libtesseract; otherwise TESSERACT_LIB, the
        platform loader and common install locations are tried in that order
      - leptonica_path: same for Leptonica, loaded lazily for segmentation queries
    """

    _RENDERER_FACTORIES = {
        RenderedFormat.TEXT: "TessTextRendererCreate",
        RenderedFormat.HOCR: "TessHOcrRendererCreate",
        RenderedFormat.BOX: "TessBoxTextRendererCreate",
        RenderedFormat.UNLV: "TessUnlvRendererCreate",
    }

    def __init__(self, library_path: Optional[str] = None, leptonica_path: Optional[str] = None):
        candidates = [str(library_path)] if library_path else tesseract_library_candidates()
        self._lib = _load_library("Tesseract", candidates)
        self._leptonica_path = leptonica_path
        self._lept: Optional[ctypes.CDLL] = None
        self._declare()

    def _fn(self, lib: ctypes.CDLL, name: str, restype, argtypes):
        try:
            f = getattr(lib, name)
        except AttributeError as e:
            raise EngineLoadError(f"Symbol {name} missing from native library") from e
        f.restype = restype
        f.argtypes = argtypes
        return f

    def _declare(self):
        L = self._lib
        d = self._fn
        d(L, "TessVersion", c_char_p, [])
        d(L, "TessBaseAPICreate", c_void_p, [])
        d(L, "TessBaseAPIInit1", c_int, [c_void_p, c_char_p, c_char_p, c_int, POINTER(c_char_p), c_int])
        d(L, "TessBaseAPIDelete", None, [c_void_p])
        d(L, "TessBaseAPISetVariable", c_int, [c_void_p, c_char_p, c_char_p])
        d(L, "TessBaseAPISetPageSegMode", None, [c_void_p, c_int])
        d(L, "TessBaseAPIGetDatapath", c_char_p, [c_void_p])
        d(L, "TessBaseAPISetImage", None, [c_void_p, c_char_p, c_int, c_int, c_int, c_int])
        d(L, "TessBaseAPISetRectangle", None, [c_void_p, c_int, c_int, c_int, c_int])
        d(L, "TessBaseAPISetInputName", None, [c_void_p, c_char_p])
        d(L, "TessBaseAPIGetUTF8Text", c_void_p, [c_void_p])
        d(L, "TessBaseAPIGetHOCRText", c_void_p, [c_void_p, c_int])
        d(L, "TessDeleteText", None, [c_void_p])
        d(L, "TessBaseAPIRecognize", c_int, [c_void_p, c_void_p])
        d(L, "TessBaseAPIGetIterator", c_void_p, [c_void_p])
        d(L, "TessResultIteratorGetPageIterator", c_void_p, [c_void_p])
        d(L, "TessPageIteratorBegin", None, [c_void_p])
        d(L, "TessPageIteratorNext", c_int, [c_void_p, c_int])
        d(L, "TessPageIteratorBoundingBox", c_int,
          [c_void_p, c_int, POINTER(c_int), POINTER(c_int), POINTER(c_int), POINTER(c_int)])
        d(L, "TessResultIteratorGetUTF8Text", c_void_p, [c_void_p, c_int])
        d(L, "TessResultIteratorConfidence", c_float, [c_void_p, c_int])
        d(L, "TessResultIteratorDelete", None, [c_void_p])
        d(L, "TessBaseAPIGetComponentImages", c_void_p, [c_void_p, c_int, c_int, c_void_p, c_void_p])
        for name in self._RENDERER_FACTORIES.values():
            d(L, name, c_void_p, [c_char_p])
        d(L, "TessPDFRendererCreate", c_void_p, [c_char_p, c_char_p, c_int])
        d(L, "TessResultRendererInsert", None, [c_void_p, c_void_p])
        d(L, "TessDeleteResultRenderer", None, [c_void_p])
        d(L, "TessBaseAPIProcessPages", c_int, [c_void_p, c_char_p, c_char_p, c_int, c_void_p])

    def _leptonica(self) -> ctypes.CDLL:
        if self._lept is None:
            candidates = [str(self._leptonica_path)] if self._leptonica_path else leptonica_library_candidates()
            lept = _load_library("Leptonica", candidates)
            self._fn(lept, "boxaGetCount", c_int, [c_void_p])
            self._fn(lept, "boxaGetBoxGeometry", c_int,
                     [c_void_p, c_int, POINTER(c_int), POINTER(c_int), POINTER(c_int), POINTER(c_int)])
            self._fn(lept, "boxaDestroy", None, [POINTER(c_void_p)])
            self._lept = lept
        return self._lept

    def _take_text(self, ptr) -> Optional[str]:
        """Copy a native char* into a str and free it."""
        if not ptr:
            return None
        try:
            return ctypes.string_at(ptr).decode("utf-8", errors="replace")
        finally:
            self._lib.TessDeleteText(ptr)

    # --- RecognitionEngine ---

    def version(self) -> str:
        v = self._lib.TessVersion()
        return v.decode("utf-8") if v else "unknown"

    def create_handle(self) -> Handle:
        handle = self._lib.TessBaseAPICreate()
        if not handle:
            raise EngineError("TessBaseAPICreate returned NULL")
        return handle

    def initialize(self, handle: Handle, datapath: str, language: str, oem: int,
                   configs: Sequence[str]) -> bool:
        encoded = [_enc(c) for c in configs]
        arr = (c_char_p * max(1, len(encoded)))(*encoded)
        rc = self._lib.TessBaseAPIInit1(handle, _enc(datapath), _enc(language), int(oem), arr, len(encoded))
        return rc == 0

    def delete_handle(self, handle: Handle) -> None:
        self._lib.TessBaseAPIDelete(handle)

    def set_variable(self, handle: Handle, key: str, value: str) -> bool:
        return bool(self._lib.TessBaseAPISetVariable(handle, _enc(key), _enc(value)))

    def set_page_seg_mode(self, handle: Handle, mode: int) -> None:
        self._lib.TessBaseAPISetPageSegMode(handle, int(mode))

    def get_datapath(self, handle: Handle) -> str:
        p = self._lib.TessBaseAPIGetDatapath(handle)
        return p.decode("utf-8") if p else ""

    def set_image(self, handle: Handle, buffer: bytes, width: int, height: int,
                  bytes_per_pixel: int, bytes_per_line: int) -> None:
        # The engine copies the pixels, the caller keeps ownership of buffer
        self._lib.TessBaseAPISetImage(handle, bytes(buffer), width, height, bytes_per_pixel, bytes_per_line)

    def set_rectangle(self, handle: Handle, x: int, y: int, width: int, height: int) -> None:
        self._lib.TessBaseAPISetRectangle(handle, x, y, width, height)

    def set_input_name(self, handle: Handle, name: str) -> None:
        self._lib.TessBaseAPISetInputName(handle, _enc(name))

    def get_text(self, handle: Handle) -> str:
        text = self._take_text(self._lib.TessBaseAPIGetUTF8Text(handle))
        if text is None:
            raise EngineError("Recognition failed, no text returned")
        return text

    def get_hocr_text(self, handle: Handle, page_index: int) -> str:
        text = self._take_text(self._lib.TessBaseAPIGetHOCRText(handle, int(page_index)))
        if text is None:
            raise EngineError("Recognition failed, no hOCR returned")
        return text

    def recognize(self, handle: Handle) -> bool:
        return self._lib.TessBaseAPIRecognize(handle, None) == 0

    def get_result_iterator(self, handle: Handle) -> Optional[ResultIterator]:
        return self._lib.TessBaseAPIGetIterator(handle) or None

    def get_page_iterator(self, iterator: ResultIterator) -> PageIterator:
        return self._lib.TessResultIteratorGetPageIterator(iterator)

    def page_iterator_begin(self, page_iterator: PageIterator) -> None:
        self._lib.TessPageIteratorBegin(page_iterator)

    def page_iterator_next(self, page_iterator: PageIterator, level: int) -> bool:
        return bool(self._lib.TessPageIteratorNext(page_iterator, int(level)))

    def page_iterator_bounding_box(self, page_iterator: PageIterator,
                                   level: int) -> Optional[Tuple[int, int, int, int]]:
        left, top, right, bottom = c_int(), c_int(), c_int(), c_int()
        ok = self._lib.TessPageIteratorBoundingBox(
            page_iterator, int(level), byref(left), byref(top), byref(right), byref(bottom)
        )
        if not ok:
            return None
        return left.value, top.value, right.value, bottom.value

    def result_iterator_text(self, iterator: ResultIterator, level: int) -> Optional[str]:
        return self._take_text(self._lib.TessResultIteratorGetUTF8Text(iterator, int(level)))

    def result_iterator_confidence(self, iterator: ResultIterator, level: int) -> float:
        return float(self._lib.TessResultIteratorConfidence(iterator, int(level)))

    def delete_result_iterator(self, iterator: ResultIterator) -> None:
        self._lib.TessResultIteratorDelete(iterator)

    def get_component_boxes(self, handle: Handle, level: int, text_only: bool = True) -> List[Rect]:
        lept = self._leptonica()
        boxa = self._lib.TessBaseAPIGetComponentImages(handle, int(level), 1 if text_only else 0, None, None)
        if not boxa:
            return []
        rects: List[Rect] = []
        try:
            x, y, w, h = c_int(), c_int(), c_int(), c_int()
            for i in range(lept.boxaGetCount(boxa)):
                if lept.boxaGetBoxGeometry(boxa, i, byref(x), byref(y), byref(w), byref(h)) != 0:
                    continue
                rects.append(Rect(x.value, y.value, w.value, h.value))
        finally:
            ref = c_void_p(boxa)
            lept.boxaDestroy(byref(ref))
        return rects

    def create_renderer(self, kind: RenderedFormat, output_base: str,
                        datadir: Optional[str] = None, textonly: bool = False) -> Renderer:
        kind = RenderedFormat(kind)
        if kind is RenderedFormat.PDF:
            renderer = self._lib.TessPDFRendererCreate(_enc(output_base), _enc(datadir or ""), 1 if textonly else 0)
        else:
            renderer = getattr(self._lib, self._RENDERER_FACTORIES[kind])(_enc(output_base))
        if not renderer:
            raise EngineError(f"Failed to create {kind.name} renderer for {output_base}")
        return renderer

    def renderer_insert(self, head: Renderer, renderer: Renderer) -> None:
        self._lib.TessResultRendererInsert(head, renderer)

    def delete_renderer(self, head: Renderer) -> None:
        self._lib.TessDeleteResultRenderer(head)

    def process_pages(self, handle: Handle, filename: str, renderer: Renderer,
                      retry_config: Optional[str] = None, timeout_ms: int = 0) -> bool:
        return bool(self._lib.TessBaseAPIProcessPages(
            handle, _enc(filename), _enc(retry_config), int(timeout_ms), renderer
        ))
