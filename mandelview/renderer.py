"""Rendering of a viewport into an RGBA pixel buffer."""

from __future__ import annotations

import math
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .colors import palette_from_settings
from .config import DEFAULT_SETTINGS, ViewerSettings
from .escape import EscapeField, evaluate_grid
from .verbose import log
from .viewport import SamplingMetadata, Viewport


@dataclass(frozen=True)
class RenderResult:
    """Pixels of a rendered frame together with the data that produced them."""

    pixels: np.ndarray
    field: EscapeField
    metadata: SamplingMetadata
    viewport: Viewport
    max_iterations: int
    elapsed: float


def max_iterations_for_scale(scale: float, settings: ViewerSettings = DEFAULT_SETTINGS) -> int:
    """Iteration cap growing linearly with the zoom depth in decades."""

    decades = max(0.0, math.log10(settings.default_scale / scale))
    cap = settings.base_iterations + settings.iterations_per_decade * decades
    return int(round(min(max(cap, settings.base_iterations), settings.max_iterations_cap)))


def default_workers() -> int:
    return max(1, os.cpu_count() or 1)


def row_bands(height: int, count: int) -> list[tuple[int, int]]:
    """Split ``range(height)`` into at most ``count`` contiguous, non-empty bands."""

    count = max(1, min(count, height))
    edges = np.linspace(0, height, count + 1).round().astype(int)
    return [(int(start), int(stop)) for start, stop in zip(edges[:-1], edges[1:]) if stop > start]


def render_frame(
    viewport: Viewport,
    width: int,
    height: int,
    max_iter: Optional[int] = None,
    *,
    palette=None,
    workers: Optional[int] = None,
    settings: Optional[ViewerSettings] = None,
    device: Optional[str] = None,
) -> RenderResult:
    """Render ``viewport`` into a ``(height, width, 4)`` uint8 buffer, row-major."""

    if width <= 0 or height <= 0:
        raise ValueError(f"buffer dimensions must be positive, got {width}x{height}.")

    settings = viewport.settings if settings is None else settings
    snapshot = viewport.copy()
    metadata = snapshot.sampling(width, height)
    if max_iter is None:
        max_iter = max_iterations_for_scale(snapshot.scale, settings)
    if palette is None:
        palette = palette_from_settings(settings)
    if workers is None:
        workers = settings.workers or default_workers()

    pixels = np.empty((height, width, 4), dtype=np.uint8)
    iterations = np.empty((height, width), dtype=np.int64)
    smoothed = np.empty((height, width), dtype=np.float64)
    escaped = np.empty((height, width), dtype=bool)
    columns = metadata.columns()

    def render_band(band: tuple[int, int]) -> None:
        start, stop = band
        rows = metadata.rows(start, stop)
        field = evaluate_grid(columns[None, :], rows[:, None], max_iter, device=device)
        pixels[start:stop] = palette.map_field(field)
        iterations[start:stop] = field.iterations
        smoothed[start:stop] = field.smoothed
        escaped[start:stop] = field.escaped

    start_time = time.perf_counter()
    bands = row_bands(height, workers)
    if len(bands) == 1:
        render_band(bands[0])
    else:
        with ThreadPoolExecutor(max_workers=len(bands)) as executor:
            for future in [executor.submit(render_band, band) for band in bands]:
                future.result()
    elapsed = time.perf_counter() - start_time
    log(f"rendered {width}x{height} in {elapsed:.4f}[sec] over {len(bands)} band(s), max_iter {max_iter}")

    return RenderResult(
        pixels=pixels,
        field=EscapeField(iterations, smoothed, escaped, int(max_iter)),
        metadata=metadata,
        viewport=snapshot,
        max_iterations=int(max_iter),
        elapsed=elapsed,
    )


def render(
    viewport: Viewport,
    width: int,
    height: int,
    max_iter: Optional[int] = None,
    *,
    palette=None,
    workers: Optional[int] = None,
    settings: Optional[ViewerSettings] = None,
) -> np.ndarray:
    """Return only the RGBA buffer of :func:`render_frame`."""

    return render_frame(
        viewport, width, height, max_iter, palette=palette, workers=workers, settings=settings
    ).pixels
