# src/tessbridge/renderers.py
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .config import RenderedFormat
from .engine.base import Handle, RecognitionEngine, Renderer

logger = logging.getLogger("tessbridge")


class RendererChain:
    """
    Renderers linked behind one head so a single processing pass writes every format.

    Deleting the head frees the whole native chain, so close() deletes only the head.
    """

    def __init__(self, engine: RecognitionEngine, sinks: Sequence[Tuple[RenderedFormat, Renderer]]):
        if not sinks:
            raise ValueError("A renderer chain needs at least one renderer")
        self._engine = engine
        self.sinks: Tuple[Tuple[RenderedFormat, Renderer], ...] = tuple(sinks)
        self._closed = False

    @property
    def head(self) -> Renderer:
        return self.sinks[0][1]

    @property
    def formats(self) -> List[RenderedFormat]:
        return [fmt for fmt, _ in self.sinks]

    def __len__(self) -> int:
        return len(self.sinks)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._engine.delete_renderer(self.head)

    def __enter__(self) -> "RendererChain":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def build_renderer_chain(engine: RecognitionEngine, handle: Handle, output_base: str,
                         formats: Sequence[RenderedFormat], textonly: bool = False) -> RendererChain:
    """
    Create one renderer per format and link them in request order.

    PDF renderers also need the handle's data path (for the glyph font) and the
    text-only flag, which leaves page images out of the PDF.
    """
    if not formats:
        raise ValueError("At least one output format is required")

    datadir: Optional[str] = None
    sinks: List[Tuple[RenderedFormat, Renderer]] = []
    try:
        for fmt in formats:
            fmt = RenderedFormat(fmt)
            if fmt is RenderedFormat.PDF:
                if datadir is None:
                    datadir = engine.get_datapath(handle)
                renderer = engine.create_renderer(fmt, str(output_base), datadir=datadir, textonly=textonly)
            else:
                renderer = engine.create_renderer(fmt, str(output_base))

            if sinks:
                engine.renderer_insert(sinks[0][1], renderer)
            sinks.append((fmt, renderer))
    except Exception:
        # The head owns everything inserted so far
        if sinks:
            engine.delete_renderer(sinks[0][1])
        raise

    logger.debug("Renderer chain for %s, %s", output_base, [f.value for f, _ in sinks])
    return RendererChain(engine, sinks)
