# src/tessbridge/rasterizer.py
from __future__ import annotations

import logging
import tempfile
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

import fitz  # PyMuPDF
from PIL import Image

from .exceptions import RasterizeError

logger = logging.getLogger("tessbridge")


def is_pdf(path: Union[str, Path]) -> bool:
    return str(path).lower().endswith(".pdf")


# --- Step 1, interface ---
class DocumentRasterizer(ABC):
    """
    Interface for anything that turns a PDF into a multi-page raster the engine can read.
    """

    @abstractmethod
    def rasterize(self, pdf_path: Path) -> Path:
        """
        Render every page into one temporary multi-page image and return its path.
        The caller owns the file and deletes it.
        """
        raise NotImplementedError


# --- Step 2, concrete implementation with PyMuPDF ---
class PyMuPDFRasterizer(DocumentRasterizer):
    """Rasterizer that renders pages with PyMuPDF and writes a multi-page TIFF with Pillow."""

    def __init__(self, dpi: int = 300, temp_dir: Optional[Path] = None):
        self.dpi = int(dpi)
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())

    def rasterize(self, pdf_path: Path) -> Path:
        pdf_path = Path(pdf_path)
        out_path = self.temp_dir / f"{pdf_path.stem}-{uuid.uuid4().hex}.tif"
        pages: List[Image.Image] = []
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            # Prefer matrix-based scaling (consistent across PyMuPDF versions)
            zoom = self.dpi / 72.0
            with fitz.open(pdf_path) as doc:
                if len(doc) == 0:
                    raise RasterizeError(f"PDF has zero pages, {pdf_path}")
                for page in doc:
                    pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
                    pages.append(Image.frombytes("RGB", (pix.width, pix.height), pix.samples))

            first, rest = pages[0], pages[1:]
            first.save(
                out_path,
                format="TIFF",
                save_all=True,
                append_images=rest,
                compression="tiff_deflate",
                dpi=(self.dpi, self.dpi),
            )
            logger.debug("Rasterized %s, %d page(s) at %d dpi into %s", pdf_path.name, len(pages), self.dpi, out_path)
            return out_path
        except RasterizeError:
            raise
        except Exception as e:
            out_path.unlink(missing_ok=True)
            raise RasterizeError(f"PyMuPDF failed to render {pdf_path.name}, {e}") from e


# --- Step 3, factory ---
def get_rasterizer(engine_name: str = "pymupdf", **kwargs) -> DocumentRasterizer:
    """
    Create a PDF rasterizer by name.
    """
    name = (engine_name or "").lower()
    if name == "pymupdf":
        return PyMuPDFRasterizer(**kwargs)
    raise ValueError(f"Unknown PDF engine, '{engine_name}'. Supported engines, ['pymupdf']")
