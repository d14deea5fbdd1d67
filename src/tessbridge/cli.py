# src/tessbridge/cli.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from slugify import slugify

from .config import PageIteratorLevel, RenderedFormat, SessionConfig
from .exceptions import TessBridgeError
from .logger import setup_logging
from .models import Rect
from .rasterizer import get_rasterizer
from .session import Tesseract

__all__ = ["build_config", "output_base_for", "main"]

logger = logging.getLogger("tessbridge")

# Helper

def _parse_variables(pairs: Optional[List[str]]) -> Dict[str, str]:
    """
    Accept -c key=value (repeatable). Values are passed to the engine verbatim.
    """
    out: Dict[str, str] = {}
    for part in pairs or []:
        if "=" not in part:
            raise SystemExit(f"Invalid -c value, expected key=value, got: {part!r}")
        k, v = part.split("=", 1)
        k = k.strip()
        if not k:
            raise SystemExit(f"Invalid -c value, empty key: {part!r}")
        out[k] = v.strip()
    return out


def output_base_for(out_dir: Path, input_path: Path) -> Path:
    """
    Filesystem safe output base (no extension) inside out_dir, e.g. out/scan-01 for "Scan 01.pdf".
    """
    stem = slugify(Path(input_path).stem)[:100] or "document"
    return Path(out_dir) / stem


def build_config(args: argparse.Namespace) -> SessionConfig:
    cfg_dict = {
        "language": args.language,
        "datapath": str(args.tessdata) if args.tessdata else None,
        "psm": args.psm,
        "oem": args.oem,
        "variables": _parse_variables(args.variables),
        "configs": args.configs or [],
        "strict_variables": args.strict_variables,
    }
    cfg_dict = {k: v for k, v in cfg_dict.items() if v is not None}
    config = SessionConfig.from_dict(cfg_dict)
    if getattr(args, "hocr", False):
        config = config.with_hocr(True)
    return config


# -------------------------------
# CLI parsing
# -------------------------------

def _common_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(add_help=False)
    p.add_argument(
        "-l", "--language", action="append", metavar="LANG",
        help="Language code for OCR, e.g. eng, vi or eng+vie; can be used multiple times. Default: eng",
    )
    p.add_argument("--tessdata", type=Path, help="Path to the tessdata directory (default: TESSDATA_PREFIX or ./)")
    p.add_argument("--psm", type=int, help="Page segmentation mode, 0..13")
    p.add_argument("--oem", type=int, help="OCR engine mode, 0..3")
    p.add_argument(
        "-c", dest="variables", action="append", metavar="KEY=VALUE",
        help="Set an engine variable; can be used multiple times",
    )
    p.add_argument(
        "--config", dest="configs", action="append", metavar="NAME",
        help="Config profile passed to engine init (e.g. digits, quiet); can be used multiple times",
    )
    p.add_argument("--strict-variables", action="store_true", help="Fail when the engine rejects a variable")
    p.add_argument("--log-file", type=Path, help="Also write logs to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    common = _common_parser()
    parser = argparse.ArgumentParser(description="tessbridge, OCR sessions on top of the Tesseract C API")
    subparsers = parser.add_subparsers(dest="command")

    op = subparsers.add_parser("ocr", parents=[common], help="Print recognized text of image files")
    op.add_argument("images", nargs="+", type=Path)
    op.add_argument("--hocr", action="store_true", help="Print hOCR markup instead of plain text")
    op.add_argument("--roi", type=Rect.parse, help="Region of interest as x,y,w,h")

    rp = subparsers.add_parser("render", parents=[common], help="Render images or PDFs into output files")
    rp.add_argument("inputs", nargs="+", type=Path)
    rp.add_argument("-o", "--output-dir", type=Path, required=True, help="Directory for the rendered files")
    rp.add_argument(
        "-f", "--format", dest="formats", action="append", type=RenderedFormat.parse,
        help="Output format (txt, hocr, pdf, box, unlv); can be used multiple times. Default: txt",
    )
    rp.add_argument("-d", "--dpi", type=int, default=300, help="DPI used to rasterize PDF inputs")
    rp.add_argument("--error-log-path", type=Path, help="Append failed jobs to this JSONL file")
    rp.add_argument("--no-progress", action="store_true", help="Hide the progress bar")

    wp = subparsers.add_parser("words", parents=[common], help="Print recognized words with boxes as JSON lines")
    wp.add_argument("image", type=Path)
    wp.add_argument("--level", type=PageIteratorLevel.parse, default=PageIteratorLevel.WORD,
                    help="block, para, textline, word or symbol")

    gp = subparsers.add_parser("regions", parents=[common], help="Print layout regions as JSON lines")
    gp.add_argument("image", type=Path)
    gp.add_argument("--level", type=PageIteratorLevel.parse, default=PageIteratorLevel.TEXTLINE,
                    help="block, para, textline, word or symbol")

    return parser.parse_args(argv)


# -------------------------------
# Commands
# -------------------------------

def _run_ocr(ocr: Tesseract, args: argparse.Namespace) -> int:
    for image in args.images:
        sys.stdout.write(ocr.do_ocr(image, roi=args.roi))
    return 0


def _run_render(ocr: Tesseract, args: argparse.Namespace) -> int:
    args.output_dir.mkdir(parents=True, exist_ok=True)
    formats = args.formats or [RenderedFormat.TEXT]
    bases = [output_base_for(args.output_dir, p) for p in args.inputs]
    ocr.rasterizer = get_rasterizer("pymupdf", dpi=args.dpi)
    report = ocr.create_documents(
        args.inputs, bases, formats,
        error_log_path=args.error_log_path,
        show_progress=not args.no_progress,
    )
    for outcome in report.failed:
        logger.error("Not rendered, %s, %s", outcome.job.input_path, outcome.error)
    return 0 if report.ok else 1


def _run_words(ocr: Tesseract, args: argparse.Namespace) -> int:
    for word in ocr.iter_words(args.image, args.level):
        sys.stdout.write(json.dumps(word.to_dict(), ensure_ascii=False) + "\n")
    return 0


def _run_regions(ocr: Tesseract, args: argparse.Namespace) -> int:
    for r in ocr.get_segmented_regions(args.image, args.level):
        sys.stdout.write(json.dumps({"x": r.x, "y": r.y, "width": r.width, "height": r.height}) + "\n")
    return 0


_COMMANDS = {
    "ocr": _run_ocr,
    "render": _run_render,
    "words": _run_words,
    "regions": _run_regions,
}


# -------------------------------
# Entry point
# -------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    if args.command not in _COMMANDS:
        print("Usage:\n  tessbridge ocr <image>... [--hocr] [--roi x,y,w,h]\n"
              "  tessbridge render <input>... -o <dir> [-f txt -f pdf]\n"
              "  tessbridge words <image> [--level word]\n"
              "  tessbridge regions <image> [--level textline]")
        return 2

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        file_path=args.log_file,
    )
    try:
        ocr = Tesseract(build_config(args))
        return _COMMANDS[args.command](ocr, args)
    except TessBridgeError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
