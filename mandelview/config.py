"""Tuning constants for the viewer, grouped in a single immutable record."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CENTER = complex(-0.5, 0.0)
DEFAULT_SCALE = 2.0
MIN_SCALE = 1e-14
MAX_SCALE = 4.0


@dataclass(frozen=True)
class ViewerSettings:
    """Every cosmetic and interaction constant of the viewer.

    None of these values is load-bearing for correctness; the host may
    override any of them with :func:`dataclasses.replace`.
    """

    default_center: complex = DEFAULT_CENTER
    default_scale: float = DEFAULT_SCALE
    min_scale: float = MIN_SCALE
    max_scale: float = MAX_SCALE

    # Wheel notches zoom by wheel_base ** -delta.
    wheel_base: float = 1.1
    # PageUp/PageDown zoom by key_zoom_base ** -+key_zoom_step.
    key_zoom_base: float = 1.07
    key_zoom_step: float = 3.0
    fine_step_divisor: float = 10.0
    key_pan_pixels: float = 10.0

    # Per-second scale multiplier while auto-zooming in; zooming out uses 1 / rate.
    auto_zoom_rate: float = 0.5

    base_iterations: int = 256
    iterations_per_decade: int = 128
    max_iterations_cap: int = 8192

    palette: str = "classic"
    palette_period: float = 64.0
    invert_palette: bool = False
    inside_color: tuple[int, int, int] = (0, 0, 0)

    workers: int | None = None
    double_click_interval: float = 0.7

    def __post_init__(self) -> None:
        if not 0.0 < self.min_scale <= self.max_scale:
            raise ValueError("min_scale must be positive and not larger than max_scale.")
        if not self.min_scale <= self.default_scale <= self.max_scale:
            raise ValueError("default_scale must lie within [min_scale, max_scale].")
        if not 0.0 < self.auto_zoom_rate < 1.0:
            raise ValueError("auto_zoom_rate must be in (0, 1); it is the zoom-in multiplier per second.")
        if self.fine_step_divisor <= 0:
            raise ValueError("fine_step_divisor must be positive.")
        if self.base_iterations < 1 or self.max_iterations_cap < self.base_iterations:
            raise ValueError("iteration policy requires 1 <= base_iterations <= max_iterations_cap.")
        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be a positive integer.")


DEFAULT_SETTINGS = ViewerSettings()
