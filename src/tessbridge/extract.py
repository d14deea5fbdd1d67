# src/tessbridge/extract.py
from __future__ import annotations

import threading
from typing import Optional

from .config import OutputMode
from .engine.base import Handle, RecognitionEngine

# The engine is not safe for concurrent text retrieval, even across handles
_TEXT_LOCK = threading.Lock()

HOCR_PROLOGUE = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN"\n'
    '    "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">\n'
    '<html xmlns="http://www.w3.org/1999/xhtml" xml:lang="en" lang="en">\n'
    "<head>\n"
    "<title></title>\n"
    '<meta http-equiv="Content-Type" content="text/html;charset=utf-8" />\n'
    "<meta name='ocr-system' content='tesseract' />\n"
    "</head>\n"
    "<body>\n"
)
HOCR_EPILOGUE = "</body>\n</html>\n"


def extract_text(engine: RecognitionEngine, handle: Handle, output_mode: OutputMode,
                 filename: Optional[str] = None, page_number: int = 1) -> str:
    """
    Read the text of the page last submitted to handle.

    filename is passed on as the input name, which the engine only needs to find
    UNLV zone files. page_number is 1-based and numbers the hOCR page.
    """
    with _TEXT_LOCK:
        if filename:
            engine.set_input_name(handle, str(filename))
        if output_mode is OutputMode.HOCR:
            return engine.get_hocr_text(handle, page_number - 1)
        return engine.get_text(handle)


def wrap_hocr(body: str) -> str:
    return HOCR_PROLOGUE + body + HOCR_EPILOGUE
