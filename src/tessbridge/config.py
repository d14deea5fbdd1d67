# src/tessbridge/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field, asdict, replace
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


class OutputMode(str, Enum):
    """What the text extractor asks the engine for."""
    TEXT = "text"
    HOCR = "hocr"


class RenderedFormat(str, Enum):
    """Renderer kinds. The value is the extension of the file the renderer writes."""
    TEXT = "txt"
    HOCR = "hocr"
    PDF = "pdf"
    BOX = "box"
    UNLV = "unlv"

    @classmethod
    def parse(cls, name: str) -> "RenderedFormat":
        key = (name or "").strip().lower()
        for fmt in cls:
            if key in (fmt.value, fmt.name.lower()):
                return fmt
        raise ValueError(f"Unknown output format, '{name}'. Supported formats, {[f.value for f in cls]}")


class OcrEngineMode(IntEnum):
    TESSERACT_ONLY = 0
    LSTM_ONLY = 1
    TESSERACT_LSTM_COMBINED = 2
    DEFAULT = 3


class PageSegMode(IntEnum):
    OSD_ONLY = 0
    AUTO_OSD = 1
    AUTO_ONLY = 2
    AUTO = 3
    SINGLE_COLUMN = 4
    SINGLE_BLOCK_VERT_TEXT = 5
    SINGLE_BLOCK = 6
    SINGLE_LINE = 7
    SINGLE_WORD = 8
    CIRCLE_WORD = 9
    SINGLE_CHAR = 10
    SPARSE_TEXT = 11
    SPARSE_TEXT_OSD = 12
    RAW_LINE = 13


class PageIteratorLevel(IntEnum):
    BLOCK = 0
    PARA = 1
    TEXTLINE = 2
    WORD = 3
    SYMBOL = 4

    @classmethod
    def parse(cls, name: str) -> "PageIteratorLevel":
        key = (name or "").strip().upper()
        aliases = {"LINE": "TEXTLINE", "PARAGRAPH": "PARA", "CHAR": "SYMBOL"}
        try:
            return cls[aliases.get(key, key)]
        except KeyError:
            raise ValueError(f"Unknown iterator level, '{name}'. Supported levels, {[l.name.lower() for l in cls]}")


# Map common short codes to Tesseract's traineddata names
_TESS_LANG_MAP = {
    "vi": "vie",
    "en": "eng",
    "fr": "fra",
    "de": "deu",
    "es": "spa",
    "it": "ita",
    "pt": "por",
    "nl": "nld",
}


def normalize_language(langs) -> str:
    """
    Accepts "eng", "en", "eng+vie", or a list like ["en", "vi"].
    Returns a "+"-joined Tesseract language string, order preserved, duplicates dropped.
    """
    if isinstance(langs, str):
        langs = langs.split("+")
    codes: List[str] = []
    for l in langs or []:
        code = _TESS_LANG_MAP.get(str(l).strip().lower(), str(l).strip())
        if code and code not in codes:
            codes.append(code)
    return "+".join(codes) or "eng"


def _default_datapath() -> str:
    return os.getenv("TESSDATA_PREFIX") or "./"


@dataclass(frozen=True)
class SessionConfig:
    """
    Everything an engine session needs, fixed before the session starts.

    Use the with_* helpers to derive a modified copy; the instance itself never changes.
    """
    language: str = "eng"
    datapath: str = field(default_factory=_default_datapath)
    psm: int = -1                      # -1 keeps the engine default
    oem: int = int(OcrEngineMode.DEFAULT)
    variables: Dict[str, str] = field(default_factory=dict)
    configs: Tuple[str, ...] = ()
    output_mode: OutputMode = OutputMode.TEXT
    strict_variables: bool = False

    def __post_init__(self):
        # own copies so callers cannot mutate the session through their references
        object.__setattr__(self, "language", normalize_language(self.language))
        object.__setattr__(self, "variables", {str(k): str(v) for k, v in dict(self.variables).items()})
        object.__setattr__(self, "configs", tuple(str(c) for c in self.configs))
        object.__setattr__(self, "output_mode", OutputMode(self.output_mode))

    # -----------------------------
    # Derivation helpers
    # -----------------------------
    def with_language(self, language) -> "SessionConfig":
        return replace(self, language=language)

    def with_datapath(self, datapath) -> "SessionConfig":
        return replace(self, datapath=str(datapath))

    def with_page_seg_mode(self, psm: int) -> "SessionConfig":
        return replace(self, psm=int(psm))

    def with_engine_mode(self, oem: int) -> "SessionConfig":
        return replace(self, oem=int(oem))

    def with_variable(self, key: str, value: Any) -> "SessionConfig":
        return self.with_variables({key: value})

    def with_variables(self, values: Mapping[str, Any]) -> "SessionConfig":
        merged = dict(self.variables)
        merged.update({str(k): str(v) for k, v in values.items()})
        return replace(self, variables=merged)

    def with_configs(self, configs: Optional[Iterable[str]]) -> "SessionConfig":
        return replace(self, configs=tuple(configs or ()))

    def with_hocr(self, hocr: bool = True) -> "SessionConfig":
        cfg = self.with_variable("tessedit_create_hocr", "1" if hocr else "0")
        return replace(cfg, output_mode=OutputMode.HOCR if hocr else OutputMode.TEXT)

    @property
    def textonly_pdf(self) -> bool:
        return self.variables.get("textonly_pdf") == "1"

    # -----------------------------
    # Plain-type conversion
    # -----------------------------
    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["configs"] = list(self.configs)
        d["output_mode"] = self.output_mode.value
        return d

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "SessionConfig":
        d = dict(config_dict)

        # allow explicit None to mean use default
        for key in ["language", "datapath", "psm", "oem", "variables", "configs", "output_mode"]:
            if d.get(key) is None:
                d.pop(key, None)

        if "languages" in d:
            d["language"] = d.pop("languages")
        if "configs" in d:
            d["configs"] = tuple(d["configs"])
        if "psm" in d:
            d["psm"] = int(d["psm"])
        if "oem" in d:
            d["oem"] = int(d["oem"])
        return cls(**d)
