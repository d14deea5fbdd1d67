"""
Tests for tessbridge/renderers.py: building and releasing renderer chains.
"""

import pytest

from tessbridge.config import RenderedFormat
from tessbridge.renderers import RendererChain, build_renderer_chain

TXT, PDF, BOX, HOCR = RenderedFormat.TEXT, RenderedFormat.PDF, RenderedFormat.BOX, RenderedFormat.HOCR


class TestBuildRendererChain:
    def test_three_formats_linked_in_order(self, engine):
        chain = build_renderer_chain(engine, 1, "out/doc", [TXT, PDF, BOX])
        assert len(chain) == 3
        assert chain.formats == [TXT, PDF, BOX]
        assert chain.head.kind is TXT
        assert [r.kind for r in chain.head.chain()] == [TXT, PDF, BOX]
        assert [c for c in engine.calls if c[0] == "renderer_insert"] == [
            ("renderer_insert", TXT, PDF),
            ("renderer_insert", TXT, BOX),
        ]

    def test_single_format_needs_no_insert(self, engine):
        chain = build_renderer_chain(engine, 1, "out/doc", [HOCR])
        assert len(chain) == 1
        assert "renderer_insert" not in engine.names()

    def test_formats_accept_plain_values(self, engine):
        chain = build_renderer_chain(engine, 1, "out/doc", ["txt", "hocr"])
        assert chain.formats == [TXT, HOCR]

    def test_pdf_gets_datapath_and_textonly(self, engine):
        chain = build_renderer_chain(engine, 1, "out/doc", [PDF, TXT], textonly=True)
        pdf, txt = chain.head.chain()
        assert pdf.datadir == "/usr/share/tessdata/"
        assert pdf.textonly is True
        assert txt.datadir is None and txt.textonly is False

    def test_output_base_passed_verbatim(self, engine):
        build_renderer_chain(engine, 1, "out/scan-01", [TXT])
        assert ("create_renderer", TXT, "out/scan-01") in engine.calls

    def test_failure_mid_build_releases_head(self, engine):
        engine.fail_renderer = BOX
        with pytest.raises(RuntimeError):
            build_renderer_chain(engine, 1, "out/doc", [TXT, PDF, BOX])
        assert [r.kind for r in engine.deleted_renderers] == [TXT]

    def test_failure_on_first_renderer_deletes_nothing(self, engine):
        engine.fail_renderer = TXT
        with pytest.raises(RuntimeError):
            build_renderer_chain(engine, 1, "out/doc", [TXT, PDF])
        assert engine.deleted_renderers == []

    def test_empty_formats_rejected(self, engine):
        with pytest.raises(ValueError):
            build_renderer_chain(engine, 1, "out/doc", [])
        assert engine.calls == []


class TestRendererChain:
    def test_close_deletes_head_once(self, engine):
        chain = build_renderer_chain(engine, 1, "out/doc", [TXT, PDF])
        chain.close()
        chain.close()
        assert [r.kind for r in engine.deleted_renderers] == [TXT]

    def test_context_manager_closes_on_error(self, engine):
        with pytest.raises(KeyError):
            with build_renderer_chain(engine, 1, "out/doc", [TXT]):
                raise KeyError("x")
        assert len(engine.deleted_renderers) == 1

    def test_needs_a_renderer(self, engine):
        with pytest.raises(ValueError):
            RendererChain(engine, [])
