# src/tessbridge/batch.py
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

from tqdm import tqdm

from .config import RenderedFormat, SessionConfig
from .engine.base import Handle, RecognitionEngine
from .exceptions import JobSpecError, TesseractError
from .logger import PROGRESS
from .models import BatchReport, DocumentJob, JobOutcome, PathLike
from .rasterizer import DocumentRasterizer, get_rasterizer, is_pdf
from .renderers import build_renderer_chain
from .session import EngineSession

logger = logging.getLogger("tessbridge")


def make_jobs(inputs: Sequence[PathLike], output_bases: Sequence[PathLike],
              formats: Sequence[RenderedFormat]) -> List[DocumentJob]:
    """Pair inputs with output bases. Raises JobSpecError before any work starts."""
    inputs, output_bases = list(inputs), list(output_bases)
    if len(inputs) != len(output_bases):
        raise JobSpecError(
            f"The two arrays must match in length, {len(inputs)} inputs, {len(output_bases)} output bases"
        )
    if not formats:
        raise JobSpecError("At least one output format is required")
    fmts = [RenderedFormat(f) for f in formats]
    return [DocumentJob(input_path=Path(i), output_base=Path(o), formats=fmts)
            for i, o in zip(inputs, output_bases)]


class DocumentBatchProcessor:
    """
    Renders a list of documents with one engine handle shared by all jobs.

    Every job is isolated: a job that fails (unreadable PDF, renderer error,
    engine error) is logged and recorded, and the batch moves on.
    """

    def __init__(
        self,
        engine: RecognitionEngine,
        config: SessionConfig,
        rasterizer: Optional[DocumentRasterizer] = None,
        error_log_path: Optional[Path] = None,
        show_progress: bool = False,
    ):
        self.engine = engine
        self.config = config
        self._rasterizer = rasterizer
        self.error_log_path = Path(error_log_path) if error_log_path else None
        self.show_progress = show_progress

    @property
    def rasterizer(self) -> DocumentRasterizer:
        if self._rasterizer is None:
            self._rasterizer = get_rasterizer("pymupdf")
        return self._rasterizer

    # -----------------------------
    # Logging helpers
    # -----------------------------
    def _log_error(self, job: DocumentJob, reason: str):
        if not self.error_log_path:
            return
        try:
            self.error_log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.error_log_path, "a", encoding="utf-8") as f:
                log_entry = {
                    "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S%z"),
                    "source_path": str(job.input_path),
                    "output_base": str(job.output_base),
                    "error_reason": reason,
                }
                f.write(json.dumps(log_entry, ensure_ascii=False) + "\n")
        except Exception:
            logger.exception("Failed to write error log")

    # -----------------------------
    # One job
    # -----------------------------
    def _process_job(self, handle: Handle, job: DocumentJob) -> None:
        working_tiff: Optional[Path] = None
        try:
            filename = str(job.input_path)

            # if PDF, convert to multi-page TIFF
            if is_pdf(filename):
                working_tiff = self.rasterizer.rasterize(job.input_path)
                filename = str(working_tiff)

            with build_renderer_chain(self.engine, handle, str(job.output_base), job.formats,
                                      textonly=self.config.textonly_pdf) as chain:
                # for reading a UNLV zone file
                self.engine.set_input_name(handle, filename)
                if not self.engine.process_pages(handle, filename, chain.head):
                    raise TesseractError("Error during processing page.")
        finally:
            if working_tiff is not None:
                try:
                    working_tiff.unlink(missing_ok=True)
                except OSError as e:
                    logger.warning("Could not delete temporary raster %s, %s", working_tiff, e)

    # -----------------------------
    # Public entry point
    # -----------------------------
    def run(self, inputs: Sequence[PathLike], output_bases: Sequence[PathLike],
            formats: Sequence[RenderedFormat]) -> BatchReport:
        jobs = make_jobs(inputs, output_bases, formats)
        report = BatchReport()
        logger.info("Rendering %d document(s) to %s", len(jobs), [f.value for f in jobs[0].formats] if jobs else [])

        with EngineSession(self.engine, self.config) as session:
            total = len(jobs)
            for idx, job in enumerate(tqdm(jobs, desc="Rendering documents", disable=not self.show_progress), 1):
                try:
                    self._process_job(session.handle, job)
                    logger.debug("Wrote %s", [str(p) for p in job.output_files()])
                    report.outcomes.append(JobOutcome(job=job, ok=True))
                except Exception as e:
                    # skip the problematic file
                    logger.error("Failed to render %s, %s", job.input_path, e, exc_info=True)
                    self._log_error(job, str(e))
                    report.outcomes.append(JobOutcome(job=job, ok=False, error=str(e), cause=e))
                logger.log(
                    PROGRESS, "Rendered %d/%d, %s", idx, total, job.input_path,
                    extra={"phase": "render", "current": idx, "total": total}
                )

        logger.info("Rendering finished, %d ok, %d failed", len(report.succeeded), len(report.failed))
        return report
