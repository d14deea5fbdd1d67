# src/tessbridge/words.py
from __future__ import annotations

import logging
from typing import Iterator, List

from .config import PageIteratorLevel
from .engine.base import Handle, RecognitionEngine
from .exceptions import EngineError
from .models import Rect, Word

logger = logging.getLogger("tessbridge")


def iter_words(engine: RecognitionEngine, handle: Handle,
               level: int = PageIteratorLevel.WORD) -> Iterator[Word]:
    """
    Recognize the submitted frame and walk the result iterator at one level.

    Yields Words in engine order (top to bottom, left to right). Each Word holds
    copies of the text, confidence and box, never native memory. The walk is
    best effort: if recognition or iteration fails part way, it stops quietly and
    whatever was yielded stands.
    """
    level = int(level)
    iterator = None
    try:
        if not engine.recognize(handle):
            raise EngineError("Recognition failed")
        iterator = engine.get_result_iterator(handle)
        if iterator is None:
            return
        page_it = engine.get_page_iterator(iterator)
        engine.page_iterator_begin(page_it)

        while True:
            text = engine.result_iterator_text(iterator, level)
            confidence = engine.result_iterator_confidence(iterator, level)
            box = engine.page_iterator_bounding_box(page_it, level)
            if box is None:
                break
            yield Word(text=text or "", confidence=float(confidence), bbox=Rect.from_ltrb(*box))
            if not engine.page_iterator_next(page_it, level):
                break
    except Exception as e:
        logger.debug("Result walk stopped early, %s", e)
    finally:
        if iterator is not None:
            engine.delete_result_iterator(iterator)


def collect_words(engine: RecognitionEngine, handle: Handle,
                  level: int = PageIteratorLevel.WORD) -> List[Word]:
    return list(iter_words(engine, handle, level))
