# src/tessbridge/session.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from .codec import ImageCodec, ImageSource, PageSource, get_image_codec, to_frame
from .config import OutputMode, PageIteratorLevel, RenderedFormat, SessionConfig
from .engine.base import Handle, RecognitionEngine, get_engine
from .exceptions import CodecError, EngineInitError, FrameError, TesseractError
from .extract import extract_text, wrap_hocr
from .frames import ImageFrame, submit_frame
from .models import BatchReport, PageFailure, PathLike, Rect, TextResult, Word
from .rasterizer import DocumentRasterizer
from .variables import propagate_variables
from .words import iter_words as _walk_words

logger = logging.getLogger("tessbridge")


class EngineSession:
    """
    Owns exactly one engine handle.

    init() creates and initializes the handle, applies the page segmentation mode
    and the variables. dispose() releases it; later calls are no-ops. Use it as a
    context manager so dispose() runs on every exit path.

    Not reentrant: calling init() again before dispose() leaks the first handle.
    """

    def __init__(self, engine: RecognitionEngine, config: SessionConfig):
        self.engine = engine
        self.config = config
        self.handle: Optional[Handle] = None

    def init(self) -> "EngineSession":
        cfg = self.config
        handle = self.engine.create_handle()
        self.handle = handle
        try:
            if not self.engine.initialize(handle, cfg.datapath, cfg.language, cfg.oem, list(cfg.configs)):
                raise EngineInitError(
                    f"Could not initialize Tesseract with language '{cfg.language}' and datapath '{cfg.datapath}'"
                )
            if cfg.psm >= 0:
                self.engine.set_page_seg_mode(handle, cfg.psm)
            propagate_variables(self.engine, handle, cfg.variables, strict=cfg.strict_variables)
        except BaseException:
            # __exit__ never runs when __enter__ raises
            self.dispose()
            raise
        return self

    def dispose(self) -> None:
        if self.handle is not None:
            handle, self.handle = self.handle, None
            self.engine.delete_handle(handle)

    @property
    def active(self) -> bool:
        return self.handle is not None

    def __enter__(self) -> "EngineSession":
        return self.init()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


class Tesseract:
    """
    Entry points for OCR. Each call opens one engine session, does its work and
    disposes the session before returning, whether the work succeeded or not.

    Example:
        ocr = Tesseract(SessionConfig(language="eng").with_page_seg_mode(6))
        text = ocr.do_ocr("scan.png")
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        engine: Optional[RecognitionEngine] = None,
        codec: Optional[ImageCodec] = None,
        rasterizer: Optional[DocumentRasterizer] = None,
    ):
        self.config = config or SessionConfig()
        self._engine = engine
        self.codec = codec or get_image_codec("pillow")
        self.rasterizer = rasterizer

    @property
    def engine(self) -> RecognitionEngine:
        # Loaded on first use so constructing a Tesseract never touches the native library
        if self._engine is None:
            self._engine = get_engine("capi")
            logger.info("Tesseract %s loaded", self._engine.version())
        return self._engine

    def session(self) -> EngineSession:
        return EngineSession(self.engine, self.config)

    # -----------------------------
    # Plain / hOCR text
    # -----------------------------
    def do_ocr(self, source: ImageSource, roi: Optional[Rect] = None) -> str:
        """
        Recognize every page of an image file, PIL image or numpy array.
        Raises TesseractError with the original error as its cause.
        """
        filename = str(source) if isinstance(source, (str, Path)) else None
        try:
            pages = self.codec.pages(source)
        except Exception as e:
            logger.error("Cannot read %s, %s", filename or type(source).__name__, e, exc_info=True)
            raise TesseractError(str(e)) from e
        return self.ocr_frames(pages, filename=filename, roi=roi).text

    def do_ocr_frames(self, frames: Sequence[ImageFrame], filename: Optional[str] = None,
                      roi: Optional[Rect] = None) -> str:
        return self.ocr_frames(frames, filename=filename, roi=roi).text

    def ocr_frames(self, frames: Sequence[PageSource], filename: Optional[str] = None,
                   roi: Optional[Rect] = None) -> TextResult:
        """
        Recognize pages in order and join their text. Pages are ImageFrames or
        unconverted pages from ImageCodec.pages().

        A page that cannot be converted or submitted is logged, recorded in the result's
        failures and skipped; page numbers still count it. In hOCR mode the joined
        pages are wrapped once in the document prologue and epilogue.
        """
        mode = self.config.output_mode
        parts: List[str] = []
        failures: List[PageFailure] = []
        page_number = 0

        try:
            with self.session() as s:
                for page in frames:
                    page_number += 1
                    try:
                        submit_frame(s.engine, s.handle, to_frame(page), roi)
                    except (FrameError, CodecError) as e:
                        # skip the problematic page
                        logger.error("Skipping page %d of %s, %s", page_number, filename or "<frames>", e)
                        failures.append(PageFailure(page_number=page_number, error=str(e)))
                        continue
                    parts.append(extract_text(s.engine, s.handle, mode, filename, page_number))
        except TesseractError:
            raise
        except Exception as e:
            logger.error("OCR failed on page %d of %s, %s", page_number, filename or "<frames>", e, exc_info=True)
            raise TesseractError(str(e)) from e

        text = "".join(parts)
        if mode is OutputMode.HOCR:
            text = wrap_hocr(text)
        return TextResult(text=text, pages_total=page_number, failures=failures)

    def do_ocr_buffer(self, width: int, height: int, buffer: bytes, bpp: int,
                      roi: Optional[Rect] = None, filename: Optional[str] = None) -> str:
        """
        Recognize one raw frame. bpp is 1 for a binary bitmap, 8 for gray, 24 for RGB.
        """
        frame = ImageFrame(buffer=bytes(buffer), width=int(width), height=int(height), bits_per_pixel=int(bpp))
        try:
            with self.session() as s:
                submit_frame(s.engine, s.handle, frame, roi)
                return extract_text(s.engine, s.handle, self.config.output_mode, filename, 1)
        except TesseractError:
            raise
        except Exception as e:
            logger.error("OCR failed for %dx%d buffer, %s", width, height, e, exc_info=True)
            raise TesseractError(str(e)) from e

    # -----------------------------
    # Document export
    # -----------------------------
    def create_documents(self, inputs: Union[PathLike, Sequence[PathLike]],
                         output_bases: Union[PathLike, Sequence[PathLike]],
                         formats: Sequence[RenderedFormat], **kwargs) -> BatchReport:
        """
        Render each input into {output_base}.{ext} for every format. Failed jobs
        are reported in the returned BatchReport, they never raise.
        """
        from .batch import DocumentBatchProcessor  # local import to avoid import cycles

        if isinstance(inputs, (str, Path)):
            inputs = [inputs]
        if isinstance(output_bases, (str, Path)):
            output_bases = [output_bases]
        processor = DocumentBatchProcessor(self.engine, self.config, rasterizer=self.rasterizer, **kwargs)
        return processor.run(inputs, output_bases, formats)

    # -----------------------------
    # Layout and words
    # -----------------------------
    def _first_frame(self, source: Union[ImageSource, ImageFrame]) -> ImageFrame:
        if isinstance(source, ImageFrame):
            return source
        return to_frame(self.codec.pages(source)[0])

    def _open_with_frame(self, source: Union[ImageSource, ImageFrame]) -> EngineSession:
        """Decode the first page, open a session and submit the page. Any failure raises TesseractError."""
        session = self.session()
        try:
            frame = self._first_frame(source)
            session.init()
            submit_frame(session.engine, session.handle, frame)
        except Exception as e:
            session.dispose()
            if isinstance(e, TesseractError):
                raise
            logger.error("Cannot prepare page, %s", e, exc_info=True)
            raise TesseractError(str(e)) from e
        return session

    def get_segmented_regions(self, source: Union[ImageSource, ImageFrame],
                              level: int = PageIteratorLevel.TEXTLINE) -> List[Rect]:
        """Boxes of the layout components at level, for the first page of source."""
        session = self._open_with_frame(source)
        try:
            return session.engine.get_component_boxes(session.handle, int(level), text_only=True)
        except TesseractError:
            raise
        except Exception as e:
            logger.error("Segmentation failed, %s", e, exc_info=True)
            raise TesseractError(str(e)) from e
        finally:
            session.dispose()

    def iter_words(self, source: Union[ImageSource, ImageFrame],
                   level: int = PageIteratorLevel.WORD) -> Iterator[Word]:
        """
        Lazily walk the recognized words of the first page of source. The
        session stays open until the generator is exhausted or closed.

        Decoding and session errors raise TesseractError on the first next();
        a failure during the walk itself ends the iteration quietly.
        """
        session = self._open_with_frame(source)
        try:
            yield from _walk_words(session.engine, session.handle, level)
        finally:
            session.dispose()

    def get_words(self, source: Union[ImageSource, ImageFrame],
                  level: int = PageIteratorLevel.WORD) -> List[Word]:
        """
        Recognized segments at level with confidence and box. Best effort: a
        failure part way through the walk returns the words collected so far.
        Raises TesseractError when the page cannot be decoded or the engine
        cannot be opened.
        """
        return list(self.iter_words(source, level))
