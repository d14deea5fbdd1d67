# src/tessbridge/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import RenderedFormat


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in pixel coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @classmethod
    def from_ltrb(cls, left: int, top: int, right: int, bottom: int) -> "Rect":
        return cls(left, top, max(0, right - left), max(0, bottom - top))

    @classmethod
    def parse(cls, value: str) -> "Rect":
        """Parse "x,y,w,h"."""
        parts = [p.strip() for p in str(value).split(",")]
        if len(parts) != 4:
            raise ValueError(f"Expected x,y,w,h, got {value!r}")
        x, y, w, h = (int(p) for p in parts)
        return cls(x, y, w, h)


@dataclass(frozen=True)
class Word:
    """One recognized segment at the requested iterator level."""
    text: str
    confidence: float
    bbox: Rect

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "confidence": round(float(self.confidence), 2),
            "bbox": [self.bbox.x, self.bbox.y, self.bbox.width, self.bbox.height],
        }


@dataclass
class PageFailure:
    """A page that was skipped during multi-page text extraction."""
    page_number: int
    error: str


@dataclass
class TextResult:
    """Joined text of a multi-page pass plus the pages that were skipped."""
    text: str
    pages_total: int
    failures: List[PageFailure] = field(default_factory=list)


@dataclass
class DocumentJob:
    """Represents a single input to be rendered into one or more output files."""
    input_path: Path
    output_base: Path
    formats: Sequence[RenderedFormat]

    def output_files(self) -> List[Path]:
        return [Path(f"{self.output_base}.{fmt.value}") for fmt in self.formats]


@dataclass
class JobOutcome:
    """Result of one batch job. error is None on success."""
    job: DocumentJob
    ok: bool
    error: Optional[str] = None
    cause: Optional[BaseException] = field(default=None, repr=False, compare=False)


@dataclass
class BatchReport:
    outcomes: List[JobOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[JobOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[JobOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def __len__(self) -> int:
        return len(self.outcomes)


PathLike = Union[str, Path]
