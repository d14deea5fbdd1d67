"""
Tests for tessbridge/rasterizer.py using small PDFs built with PyMuPDF.
"""

import fitz
import pytest
from PIL import Image

from tessbridge.exceptions import RasterizeError
from tessbridge.rasterizer import PyMuPDFRasterizer, get_rasterizer, is_pdf


def _make_pdf(path, pages=2):
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=144, height=72)
        page.insert_text((10, 40), f"Page {i + 1}")
    doc.save(str(path))
    doc.close()
    return path


@pytest.mark.parametrize("name,expected", [
    ("scan.pdf", True),
    ("SCAN.PDF", True),
    ("scan.tif", False),
    ("pdf", False),
])
def test_is_pdf(name, expected):
    assert is_pdf(name) is expected


class TestPyMuPDFRasterizer:
    def test_multi_page_tiff(self, tmp_path):
        pdf = _make_pdf(tmp_path / "two.pdf")
        out = PyMuPDFRasterizer(dpi=72, temp_dir=tmp_path / "tmp").rasterize(pdf)
        assert out.suffix == ".tif" and out.parent == tmp_path / "tmp"
        with Image.open(out) as im:
            assert im.n_frames == 2
            assert im.size == (144, 72)
            assert im.mode == "RGB"

    def test_dpi_scales_pages(self, tmp_path):
        pdf = _make_pdf(tmp_path / "one.pdf", pages=1)
        out = PyMuPDFRasterizer(dpi=144, temp_dir=tmp_path).rasterize(pdf)
        with Image.open(out) as im:
            assert im.size == (288, 144)

    def test_unique_output_per_call(self, tmp_path):
        pdf = _make_pdf(tmp_path / "one.pdf", pages=1)
        r = PyMuPDFRasterizer(dpi=36, temp_dir=tmp_path)
        assert r.rasterize(pdf) != r.rasterize(pdf)

    def test_broken_pdf(self, tmp_path):
        bad = tmp_path / "bad.pdf"
        bad.write_bytes(b"this is not a pdf")
        with pytest.raises(RasterizeError):
            PyMuPDFRasterizer(temp_dir=tmp_path).rasterize(bad)
        assert list(tmp_path.glob("*.tif")) == []

    def test_missing_pdf(self, tmp_path):
        with pytest.raises(RasterizeError):
            PyMuPDFRasterizer(temp_dir=tmp_path).rasterize(tmp_path / "nope.pdf")


def test_factory():
    assert isinstance(get_rasterizer("PyMuPDF", dpi=150), PyMuPDFRasterizer)
    assert get_rasterizer(dpi=150).dpi == 150
    with pytest.raises(ValueError):
        get_rasterizer("ghostscript")
