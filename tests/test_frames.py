"""
Tests for tessbridge/frames.py
"""

import pytest

from tessbridge.exceptions import FrameError
from tessbridge.frames import ImageFrame, submit_frame
from tessbridge.models import Rect


class TestStride:
    @pytest.mark.parametrize(
        "width, bpp, stride",
        [(1, 1, 1), (8, 1, 1), (9, 1, 2), (17, 1, 3), (5, 8, 5), (5, 24, 15), (3, 32, 12)],
    )
    def test_bytes_per_line(self, width, bpp, stride):
        frame = ImageFrame(b"\0" * stride, width, 1, bpp)
        assert frame.bytes_per_line == stride

    def test_bytes_per_pixel(self):
        assert ImageFrame(b"", 1, 1, 1).bytes_per_pixel == 0
        assert ImageFrame(b"", 1, 1, 8).bytes_per_pixel == 1
        assert ImageFrame(b"", 1, 1, 24).bytes_per_pixel == 3


class TestValidate:
    def test_short_buffer_rejected(self):
        frame = ImageFrame(b"\0" * 29, 10, 3, 8)
        with pytest.raises(FrameError):
            frame.validate()

    def test_exact_and_longer_buffers_accepted(self):
        ImageFrame(b"\0" * 30, 10, 3, 8).validate()
        ImageFrame(b"\0" * 31, 10, 3, 8).validate()

    def test_unsupported_bit_depth(self):
        with pytest.raises(FrameError):
            ImageFrame(b"\0" * 64, 4, 4, 16).validate()

    def test_zero_size(self):
        with pytest.raises(FrameError):
            ImageFrame(b"", 0, 4, 8).validate()


class TestSubmitFrame:
    def test_submits_geometry(self, engine, frame_factory):
        h = engine.create_handle()
        submit_frame(engine, h, frame_factory(width=10, height=2, bpp=24))
        assert ("set_image", h, 10, 2, 3, 30) in engine.calls
        assert "set_rectangle" not in engine.names()

    def test_roi_after_image(self, engine, frame_factory):
        h = engine.create_handle()
        submit_frame(engine, h, frame_factory(), Rect(1, 1, 2, 1))
        names = engine.names()
        assert names.index("set_rectangle") == names.index("set_image") + 1
        assert engine.handles[h].rect == (1, 1, 2, 1)

    @pytest.mark.parametrize("roi", [None, Rect(0, 0, 0, 5), Rect(3, 3, 5, 0)])
    def test_empty_roi_means_full_frame(self, engine, frame_factory, roi):
        h = engine.create_handle()
        submit_frame(engine, h, frame_factory(), roi)
        assert "set_rectangle" not in engine.names()

    def test_invalid_frame_never_reaches_engine(self, engine):
        h = engine.create_handle()
        with pytest.raises(FrameError):
            submit_frame(engine, h, ImageFrame(b"\0", 4, 4, 8))
        assert "set_image" not in engine.names()
