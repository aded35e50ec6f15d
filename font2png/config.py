"""
Run configuration.

Values come from (highest precedence first): CLI flags, an optional YAML file
(configs/font2png.yaml), the FONT2PNG_WORKERS environment variable for the
worker count, and the defaults below.

YAML layout:

    font_file: fonts/NotoSans-Regular.ttf
    output:
      dir: out
      naming: compat          # or: codepoint
    render:
      color: "#FFFFFF"
      img_size: 128
      engine: scanline        # or: cairo
      supersample_factor: 4
      curve_subdivisions: 8
    batch:
      workers: null           # null -> FONT2PNG_WORKERS or all CPUs
      progress_every: 2000
    selection:
      unicode_range: null     # e.g. "0x0041..0x005A"
      font_index: 0
      limit: null
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from . import WHITE, Color
from .codepoints import parse_unicode_range
from .errors import ColorParseError, ConfigError
from .naming import NAMING_MODES
from .rasterize import check_engine

WORKERS_ENV = "FONT2PNG_WORKERS"

_COLOR_RE = re.compile(r"^#([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})$")


def parse_color(text: str) -> Color:
    """Parse `#RRGGBB` (case-insensitive)."""
    m = _COLOR_RE.match(text.strip()) if isinstance(text, str) else None
    if not m:
        raise ColorParseError(str(text))
    r, g, b = (int(v, 16) for v in m.groups())
    return Color(r, g, b)


@dataclass
class RenderSettings:
    color: Color = WHITE
    img_size: int = 128
    engine: str = "scanline"
    supersample_factor: int = 4
    curve_subdivisions: int = 8
    naming: str = "compat"

    def validate(self) -> None:
        if self.img_size <= 0:
            raise ConfigError(f"img_size must be positive, got {self.img_size}")
        if self.supersample_factor <= 0:
            raise ConfigError(
                f"supersample_factor must be positive, got {self.supersample_factor}"
            )
        if self.curve_subdivisions <= 0:
            raise ConfigError(
                f"curve_subdivisions must be positive, got {self.curve_subdivisions}"
            )
        if self.naming not in NAMING_MODES:
            raise ConfigError(
                f"naming must be one of {NAMING_MODES}, got {self.naming!r}"
            )
        check_engine(self.engine)


@dataclass
class AppConfig:
    font_file: Optional[Path] = None
    output_dir: Path = Path("out")
    render: RenderSettings = field(default_factory=RenderSettings)
    workers: Optional[int] = None
    progress_every: int = 2000
    unicode_range: Optional[Tuple[int, int]] = None
    font_index: int = 0
    limit: Optional[int] = None

    def validate(self) -> None:
        if self.font_file is None:
            raise ConfigError("font file path is required (--font-file)")
        if self.workers is not None and self.workers <= 0:
            raise ConfigError(f"workers must be positive, got {self.workers}")
        if self.progress_every <= 0:
            raise ConfigError(
                f"progress_every must be positive, got {self.progress_every}"
            )
        if self.font_index < 0:
            raise ConfigError(f"font_index must be >= 0, got {self.font_index}")
        if self.limit is not None and self.limit < 0:
            raise ConfigError(f"limit must be >= 0, got {self.limit}")
        self.render.validate()


def resolve_workers(workers: Optional[int]) -> int:
    """Explicit value, else FONT2PNG_WORKERS, else all CPUs."""
    if workers is not None:
        return workers
    env = os.environ.get(WORKERS_ENV)
    if env:
        try:
            value = int(env)
        except ValueError as e:
            raise ConfigError(f"{WORKERS_ENV} must be an integer, got {env!r}") from e
        if value <= 0:
            raise ConfigError(f"{WORKERS_ENV} must be positive, got {value}")
        return value
    return os.cpu_count() or 1


def _opt_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def config_from_dict(raw: Dict[str, Any]) -> AppConfig:
    output = raw.get("output") or {}
    render = raw.get("render") or {}
    batch = raw.get("batch") or {}
    selection = raw.get("selection") or {}

    unicode_range = selection.get("unicode_range")
    font_file = raw.get("font_file")

    try:
        return AppConfig(
            font_file=Path(font_file) if font_file else None,
            output_dir=Path(output.get("dir", "out")),
            render=RenderSettings(
                color=parse_color(render.get("color", "#FFFFFF")),
                img_size=int(render.get("img_size", 128)),
                engine=str(render.get("engine", "scanline")),
                supersample_factor=int(render.get("supersample_factor", 4)),
                curve_subdivisions=int(render.get("curve_subdivisions", 8)),
                naming=str(output.get("naming", "compat")),
            ),
            workers=_opt_int(batch.get("workers")),
            progress_every=int(batch.get("progress_every", 2000)),
            unicode_range=parse_unicode_range(unicode_range) if unicode_range else None,
            font_index=int(selection.get("font_index", 0)),
            limit=_opt_int(selection.get("limit")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid config value: {e}") from e


def load_config(path: Path) -> AppConfig:
    """
    Parse a YAML config file into an AppConfig (not yet validated).

    Raises:
        FileNotFoundError, ConfigError
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse config {path}: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config {path} must be a mapping at top level")
    return config_from_dict(raw)
