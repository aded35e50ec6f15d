"""
Command line entry point.

Usage:
    font2png --font-file fonts/NotoSans-Regular.ttf

    # Explicit range, red glyphs, 256px budget, 8 workers
    font2png --font-file fonts/NotoSans-Regular.ttf \\
        --unicode-range 0x0041..0x005A --color '#FF0000' --img-size 256 --threads 8

    # Defaults from a YAML file (flags still win)
    font2png --config configs/font2png.yaml --font-file fonts/NotoSans-Regular.ttf

    # Override workers (default: all CPUs)
    FONT2PNG_WORKERS=8 font2png --font-file fonts/NotoSans-Regular.ttf

Exit codes:
  0 run completed (individual glyph failures are only logged)
  1 fatal error: unreadable/undecodable font, bad option, output dir not creatable
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from . import __version__
from .batch import BatchRunner
from .codepoints import CodePointSelector, parse_unicode_range
from .config import AppConfig, load_config, parse_color, resolve_workers
from .errors import Font2PngError
from .font import load_font
from .naming import NAMING_MODES
from .rasterize import ENGINES

logger = logging.getLogger("font2png")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="font2png",
        description="Render every character of a font file to its own square PNG.",
    )
    p.add_argument(
        "--font-file",
        type=Path,
        help="Path to the font file to render (required unless --config sets font_file).",
    )
    p.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for images (default: out).",
    )
    p.add_argument(
        "--color",
        default=None,
        help="Foreground color as #RRGGBB (default: #FFFFFF).",
    )
    p.add_argument(
        "--img-size",
        type=int,
        default=None,
        help="Pixel budget for the larger glyph dimension (default: 128).",
    )
    p.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Worker count (default: FONT2PNG_WORKERS or all CPUs).",
    )
    p.add_argument(
        "--unicode-range",
        default=None,
        help="Explicit inclusive range START..END, e.g. 0x0041..U+005A (skips category filter).",
    )
    p.add_argument("--config", type=Path, default=None, help="YAML config with defaults.")
    p.add_argument("--engine", choices=ENGINES, default=None, help="Raster engine.")
    p.add_argument(
        "--supersample",
        type=int,
        default=None,
        help="Samples per pixel axis for the scanline engine (default: 4).",
    )
    p.add_argument(
        "--naming",
        choices=NAMING_MODES,
        default=None,
        help="Output file naming (default: compat).",
    )
    p.add_argument(
        "--font-index", type=int, default=None, help="Face index in a font collection."
    )
    p.add_argument(
        "--limit", type=int, default=None, help="Limit number of code points (for testing)."
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def build_config(args: argparse.Namespace) -> AppConfig:
    """Merge YAML defaults (if any) with CLI flags, then validate."""
    cfg = load_config(args.config) if args.config else AppConfig()

    if args.font_file is not None:
        cfg.font_file = args.font_file
    if args.output_dir is not None:
        cfg.output_dir = args.output_dir
    if args.color is not None:
        cfg.render.color = parse_color(args.color)
    if args.img_size is not None:
        cfg.render.img_size = args.img_size
    if args.engine is not None:
        cfg.render.engine = args.engine
    if args.supersample is not None:
        cfg.render.supersample_factor = args.supersample
    if args.naming is not None:
        cfg.render.naming = args.naming
    if args.threads is not None:
        cfg.workers = args.threads
    if args.unicode_range is not None:
        cfg.unicode_range = parse_unicode_range(args.unicode_range)
    if args.font_index is not None:
        cfg.font_index = args.font_index
    if args.limit is not None:
        cfg.limit = args.limit

    cfg.validate()
    cfg.workers = resolve_workers(cfg.workers)
    return cfg


def run(cfg: AppConfig) -> int:
    font = load_font(cfg.font_file, font_index=cfg.font_index)
    runner = BatchRunner(
        font,
        cfg.font_file,
        cfg.output_dir,
        cfg.render,
        workers=cfg.workers,
        progress_every=cfg.progress_every,
    )
    runner.prepare()

    code_points = CodePointSelector(cfg.unicode_range).select(limit=cfg.limit)
    result = runner.run(code_points)

    logger.info(
        "Completed rasterization: %d written, %d failed, %d undefined of %d candidates "
        "in %.1fs (%.2f glyphs/s) -> %s",
        len(result.records),
        len(result.failures),
        result.undefined,
        result.attempted,
        result.elapsed,
        result.rate,
        runner.font_dir,
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logger.setLevel(logging.DEBUG)
    logger.debug("Command line arguments: %s", vars(args))

    try:
        cfg = build_config(args)
        logger.debug("Resolved config: %s", cfg)
        return run(cfg)
    except (Font2PngError, OSError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
