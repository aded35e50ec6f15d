"""
Batch driver: fans the per-glyph pipeline out over a multiprocessing pool.

States: INIT -> DIRECTORY_READY -> PROCESSING -> DONE

  - prepare() creates {output_dir}/{font_base_name}; an OSError here is fatal.
  - run() attempts every candidate. Glyph id 0 is skipped silently; GlyphError
    (including fontTools draw failures, re-raised as GlyphGeometryError) or
    OSError for one code point is recorded and the batch carries on.

Each worker process receives the font once through the pool initializer
(pickled as raw bytes, re-decoded on arrival) and keeps it read-only.
"""

from __future__ import annotations

import enum
import logging
import os
import time
from dataclasses import dataclass, field
from multiprocessing import Pool
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from . import GlyphFailure, OutputRecord
from .errors import GlyphError
from .naming import font_base_name, output_path
from .rasterize import composite_canvas, compute_scale, rasterize_glyph, save_canvas

logger = logging.getLogger("font2png.batch")


class BatchState(enum.Enum):
    INIT = "init"
    DIRECTORY_READY = "directory_ready"
    PROCESSING = "processing"
    DONE = "done"


@dataclass(frozen=True)
class GlyphOutcome:
    code_point: int
    status: str  # "ok" | "undefined" | "failed"
    path: Optional[Path] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    records: List[OutputRecord] = field(default_factory=list)
    failures: List[GlyphFailure] = field(default_factory=list)
    undefined: int = 0
    attempted: int = 0
    elapsed: float = 0.0

    @property
    def rate(self) -> float:
        return len(self.records) / self.elapsed if self.elapsed > 0 else 0.0


# ---------------------------------------------------------------------------
# Worker Function (Picklable)
# ---------------------------------------------------------------------------


def render_code_point(
    font, code_point: int, settings, output_dir: Path, font_base: str
) -> GlyphOutcome:
    """Run scale -> rasterize -> composite -> save for one code point."""
    glyph = font.glyph(code_point)
    if glyph.id == 0:
        return GlyphOutcome(code_point, "undefined")

    try:
        scale = compute_scale(glyph, settings.img_size)
        raster = rasterize_glyph(
            glyph,
            scale,
            engine=settings.engine,
            supersample_factor=settings.supersample_factor,
            curve_subdivisions=settings.curve_subdivisions,
        )
        canvas = composite_canvas(raster, settings.color)
        out_path = output_path(output_dir, font_base, code_point, settings.naming)
        save_canvas(canvas, out_path)
    except (GlyphError, OSError) as e:
        return GlyphOutcome(code_point, "failed", error=f"{type(e).__name__}: {e}")

    return GlyphOutcome(code_point, "ok", path=out_path)


# Per-process state installed once by the pool initializer
_WORKER_ARGS: tuple = ()


def _init_worker(font, settings, output_dir: Path, font_base: str) -> None:
    global _WORKER_ARGS
    _WORKER_ARGS = (font, settings, output_dir, font_base)


def _pool_render(code_point: int) -> GlyphOutcome:
    font, settings, output_dir, font_base = _WORKER_ARGS
    return render_code_point(font, code_point, settings, output_dir, font_base)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


class BatchRunner:
    """
    Args:
        font: read-only font capability (GlyphFont or compatible).
        font_path: path the font was read from; its file name names the output folder.
        output_dir: base output directory.
        settings: RenderSettings (color, img_size, engine, naming, ...).
        workers: process count; None means os.cpu_count(). 1 runs in-process.
        progress_every: log a progress line every N attempted code points.
        chunksize: code points handed to a worker per task.

    Raises:
        PathError if the font path has no usable file name.
    """

    def __init__(
        self,
        font,
        font_path,
        output_dir,
        settings,
        *,
        workers: Optional[int] = None,
        progress_every: int = 2000,
        chunksize: int = 32,
    ):
        self.font = font
        self.settings = settings
        self.font_base = font_base_name(font_path)
        self.output_dir = Path(output_dir)
        self.font_dir = self.output_dir / self.font_base
        self.workers = workers if workers is not None else (os.cpu_count() or 1)
        self.progress_every = progress_every
        self.chunksize = chunksize
        self.state = BatchState.INIT

    def prepare(self) -> Path:
        if self.state is not BatchState.INIT:
            raise RuntimeError(f"prepare() called in state {self.state.name}")
        self.font_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Output directory ready: %s", self.font_dir)
        self.state = BatchState.DIRECTORY_READY
        return self.font_dir

    def _outcomes(self, code_points: Sequence[int]) -> Iterator[GlyphOutcome]:
        workers = min(self.workers, len(code_points))
        if workers <= 1:
            for cp in code_points:
                yield render_code_point(
                    self.font, cp, self.settings, self.output_dir, self.font_base
                )
            return

        logger.info("Using %d workers", workers)
        with Pool(
            processes=workers,
            initializer=_init_worker,
            initargs=(self.font, self.settings, self.output_dir, self.font_base),
        ) as pool:
            yield from pool.imap(_pool_render, code_points, chunksize=self.chunksize)

    def run(self, code_points: Iterable[int]) -> BatchResult:
        if self.state is BatchState.INIT:
            self.prepare()
        elif self.state is not BatchState.DIRECTORY_READY:
            raise RuntimeError(f"run() called in state {self.state.name}")

        cps = list(code_points)
        total = len(cps)
        result = BatchResult()
        start_time = time.time()
        self.state = BatchState.PROCESSING
        logger.info("Rendering %d candidate code points into %s", total, self.font_dir)

        for i, outcome in enumerate(self._outcomes(cps), 1):
            result.attempted += 1
            if outcome.status == "ok":
                result.records.append(OutputRecord(outcome.code_point, outcome.path))
            elif outcome.status == "undefined":
                result.undefined += 1
                logger.debug("Glyph not defined for U+%04X", outcome.code_point)
            else:
                result.failures.append(GlyphFailure(outcome.code_point, outcome.error))
                logger.warning("Skipping U+%04X: %s", outcome.code_point, outcome.error)

            if i % self.progress_every == 0:
                elapsed = time.time() - start_time
                rate = i / elapsed if elapsed > 0 else 0
                logger.info(
                    "Progress: %d/%d (%d OK, %d failed, %d undefined) - %.1f glyphs/s",
                    i,
                    total,
                    len(result.records),
                    len(result.failures),
                    result.undefined,
                    rate,
                )

        result.elapsed = time.time() - start_time
        self.state = BatchState.DONE
        return result
