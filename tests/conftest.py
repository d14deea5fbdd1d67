"""
Shared fixtures: a recording stand-in for the native engine.
"""

import itertools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from tessbridge.config import RenderedFormat
from tessbridge.engine.base import RecognitionEngine
from tessbridge.frames import ImageFrame
from tessbridge.models import Rect


@dataclass
class FakeRenderer:
    kind: RenderedFormat
    output_base: str
    datadir: Optional[str] = None
    textonly: bool = False
    next: List["FakeRenderer"] = field(default_factory=list)

    def chain(self) -> List["FakeRenderer"]:
        return [self] + self.next


@dataclass
class HandleState:
    initialized: bool = False
    image: Optional[Tuple[bytes, int, int, int, int]] = None
    rect: Optional[Tuple[int, int, int, int]] = None
    input_name: Optional[str] = None
    psm: Optional[int] = None
    variables: Dict[str, str] = field(default_factory=dict)


class FakeIterator:
    def __init__(self, words):
        self.words = words
        self.pos = 0


class FakeEngine(RecognitionEngine):
    """
    Records every call. Knobs:
      init_ok: what initialize() returns
      known_variables: None accepts every variable, otherwise only these keys
      words: (text, confidence, (l, t, r, b)) tuples the result iterator walks
      fail_word_at: index at which reading a word raises
      bad_inputs: substrings of input paths that make process_pages fail
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.calls: List[tuple] = []
        self.handles: Dict[int, HandleState] = {}
        self.created: List[int] = []
        self.deleted: List[int] = []
        self.init_ok = True
        self.known_variables = None
        self.datapath = "/usr/share/tessdata/"
        self.words: List[Tuple[str, float, Tuple[int, int, int, int]]] = []
        self.fail_word_at: Optional[int] = None
        self.recognize_ok = True
        self.boxes: List[Rect] = []
        self.bad_inputs: List[str] = []
        self.fail_renderer: Optional[RenderedFormat] = None
        self.renderers: List[FakeRenderer] = []
        self.deleted_renderers: List[FakeRenderer] = []
        self.deleted_iterators: List[FakeIterator] = []

    def _rec(self, *call):
        self.calls.append(call)

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

    def version(self) -> str:
        return "5.3.0-fake"

    def create_handle(self):
        h = next(self._ids)
        self.handles[h] = HandleState()
        self.created.append(h)
        self._rec("create_handle", h)
        return h

    def initialize(self, handle, datapath, language, oem, configs):
        self._rec("initialize", handle, datapath, language, oem, list(configs))
        self.handles[handle].initialized = self.init_ok
        return self.init_ok

    def delete_handle(self, handle):
        assert handle not in self.deleted, "handle deleted twice"
        self.deleted.append(handle)
        self._rec("delete_handle", handle)

    def set_variable(self, handle, key, value):
        self._rec("set_variable", handle, key, value)
        if self.known_variables is not None and key not in self.known_variables:
            return False
        self.handles[handle].variables[key] = value
        return True

    def set_page_seg_mode(self, handle, mode):
        self._rec("set_page_seg_mode", handle, mode)
        self.handles[handle].psm = mode

    def get_datapath(self, handle):
        return self.datapath

    def set_image(self, handle, buffer, width, height, bytes_per_pixel, bytes_per_line):
        self._rec("set_image", handle, width, height, bytes_per_pixel, bytes_per_line)
        st = self.handles[handle]
        st.image = (bytes(buffer), width, height, bytes_per_pixel, bytes_per_line)
        st.rect = None

    def set_rectangle(self, handle, x, y, width, height):
        self._rec("set_rectangle", handle, x, y, width, height)
        self.handles[handle].rect = (x, y, width, height)

    def set_input_name(self, handle, name):
        self._rec("set_input_name", handle, name)
        self.handles[handle].input_name = name

    def _page_text(self, handle) -> str:
        st = self.handles[handle]
        buf, w, h, _, _ = st.image
        tag = buf[:1].decode("latin-1") if buf else ""
        return f"{tag}:{w}x{h}:{st.rect}\n"

    def get_text(self, handle):
        self._rec("get_text", handle)
        return self._page_text(handle)

    def get_hocr_text(self, handle, page_index):
        self._rec("get_hocr_text", handle, page_index)
        return f"<div class='ocr_page' id='page_{page_index + 1}'>{self._page_text(handle).strip()}</div>\n"

    def recognize(self, handle):
        self._rec("recognize", handle)
        return self.recognize_ok

    def get_result_iterator(self, handle):
        self._rec("get_result_iterator", handle)
        return FakeIterator(list(self.words)) if self.words else None

    def get_page_iterator(self, iterator):
        return iterator

    def page_iterator_begin(self, page_iterator):
        page_iterator.pos = 0

    def page_iterator_next(self, page_iterator, level):
        page_iterator.pos += 1
        return page_iterator.pos < len(page_iterator.words)

    def page_iterator_bounding_box(self, page_iterator, level):
        return page_iterator.words[page_iterator.pos][2]

    def result_iterator_text(self, iterator, level):
        if self.fail_word_at is not None and iterator.pos == self.fail_word_at:
            raise RuntimeError("iterator blew up")
        return iterator.words[iterator.pos][0]

    def result_iterator_confidence(self, iterator, level):
        return iterator.words[iterator.pos][1]

    def delete_result_iterator(self, iterator):
        self.deleted_iterators.append(iterator)

    def get_component_boxes(self, handle, level, text_only=True):
        self._rec("get_component_boxes", handle, level, text_only)
        return list(self.boxes)

    def create_renderer(self, kind, output_base, datadir=None, textonly=False):
        self._rec("create_renderer", kind, output_base)
        if self.fail_renderer is kind:
            raise RuntimeError(f"cannot create {kind.name} renderer")
        r = FakeRenderer(kind, output_base, datadir, textonly)
        self.renderers.append(r)
        return r

    def renderer_insert(self, head, renderer):
        self._rec("renderer_insert", head.kind, renderer.kind)
        head.next.append(renderer)

    def delete_renderer(self, head):
        self._rec("delete_renderer", head.kind)
        self.deleted_renderers.append(head)

    def process_pages(self, handle, filename, renderer, retry_config=None, timeout_ms=0):
        self._rec("process_pages", handle, filename)
        if not Path(filename).exists() or any(b in filename for b in self.bad_inputs):
            return False
        for r in renderer.chain():
            Path(f"{r.output_base}.{r.kind.value}").write_text(f"rendered {filename}", encoding="utf-8")
        return True


def make_frame(tag: str = "a", width: int = 4, height: int = 2, bpp: int = 8) -> ImageFrame:
    stride = (width * bpp + 7) // 8
    return ImageFrame(buffer=tag.encode("latin-1") * (stride * height), width=width, height=height, bits_per_pixel=bpp)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def frame_factory():
    return make_frame
