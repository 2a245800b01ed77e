"""The visible rectangle of the complex plane and its pixel mapping."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from .config import DEFAULT_SETTINGS, ViewerSettings
from .verbose import log


@dataclass(frozen=True)
class SamplingMetadata:
    """Sampling grid of a viewport for a given buffer size.

    ``x_min`` is the real part at pixel column 0 and ``y_max`` the imaginary
    part at pixel row 0; ``step`` is the side of one (square) pixel.
    """

    x_min: float
    y_max: float
    step: float
    width: int
    height: int

    @property
    def x_max(self) -> float:
        return self.x_min + self.step * self.width

    @property
    def y_min(self) -> float:
        return self.y_max - self.step * self.height

    def columns(self, start: int = 0, stop: int | None = None) -> np.ndarray:
        stop = self.width if stop is None else stop
        return np.float64(self.x_min) + np.arange(start, stop, dtype=np.float64) * np.float64(self.step)

    def rows(self, start: int = 0, stop: int | None = None) -> np.ndarray:
        stop = self.height if stop is None else stop
        return np.float64(self.y_max) - np.arange(start, stop, dtype=np.float64) * np.float64(self.step)


def _check_size(width, height) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"buffer dimensions must be positive, got {width}x{height}.")


@dataclass
class Viewport:
    """Center and half-width of the visible region of the plane.

    The half-height is derived from the buffer aspect ratio so pixels are
    always square in plane units.
    """

    center: complex
    scale: float
    settings: ViewerSettings = field(default=DEFAULT_SETTINGS, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.center = complex(self.center)
        self.scale = float(self.scale)
        if not self.scale > 0.0:
            raise ValueError("scale must be strictly positive.")

    def pixel_step(self, width: int) -> float:
        return 2.0 * self.scale / width

    def sampling(self, width: int, height: int) -> SamplingMetadata:
        _check_size(width, height)
        aspect = height / width
        return SamplingMetadata(
            x_min=self.center.real - self.scale,
            y_max=self.center.imag + self.scale * aspect,
            step=self.pixel_step(width),
            width=int(width),
            height=int(height),
        )

    def pixel_to_complex(self, px: float, py: float, width: int, height: int) -> complex:
        metadata = self.sampling(width, height)
        return complex(metadata.x_min + px * metadata.step, metadata.y_max - py * metadata.step)

    def complex_to_pixel(self, c: complex, width: int, height: int) -> tuple[float, float]:
        metadata = self.sampling(width, height)
        return (c.real - metadata.x_min) / metadata.step, (metadata.y_max - c.imag) / metadata.step

    def recenter(self, new_center: complex) -> None:
        self.center = complex(new_center)
        log(f"center ({self.center.real!r}, {self.center.imag!r})")

    def pan(self, delta_px: tuple[float, float], width: int, height: int) -> None:
        """Move the view against a drag of ``delta_px`` pixels.

        Dragging the content right moves the visible window left, dragging it
        down moves the window up.
        """

        _check_size(width, height)
        step = self.pixel_step(width)
        dx, dy = delta_px
        self.recenter(complex(self.center.real - dx * step, self.center.imag + dy * step))

    def zoom(self, factor: float, pivot: complex | None = None) -> bool:
        """Multiply the scale by ``factor`` keeping ``pivot`` fixed on screen.

        Returns ``False`` when the scale hit ``min_scale`` or ``max_scale``.
        """

        if not (math.isfinite(factor) and factor > 0.0):
            raise ValueError(f"zoom factor must be positive and finite, got {factor!r}.")

        requested = self.scale * factor
        scale = min(max(requested, self.settings.min_scale), self.settings.max_scale)
        within = scale == requested
        if not within:
            log(f"scale {requested!r} clamped to {scale!r}")

        if scale == self.scale:
            return within

        effective = factor if within else scale / self.scale
        if pivot is not None:
            pivot = complex(pivot)
            self.center = pivot + (self.center - pivot) * effective
        self.scale = scale
        log(f"scale {self.scale!r}, center ({self.center.real!r}, {self.center.imag!r})")
        return within

    def zoom_by(self, base: float, exponent: float, pivot: complex | None = None) -> bool:
        """Zoom by ``base ** exponent``, clamping in log space first.

        Exponents that would underflow or overflow the factor land on the
        scale clamp instead of failing.
        """

        if not (math.isfinite(base) and base > 0.0):
            raise ValueError(f"zoom base must be positive and finite, got {base!r}.")

        log_factor = exponent * math.log(base)
        lowest = math.log(self.settings.min_scale / self.scale)
        highest = math.log(self.settings.max_scale / self.scale)
        if lowest <= log_factor <= highest:
            return self.zoom(base ** exponent, pivot)
        # one e-fold past the limit so zoom() reports the clamp
        log_factor = min(max(log_factor, lowest - 1.0), highest + 1.0)
        return self.zoom(math.exp(log_factor), pivot)

    def reset(self) -> None:
        self.center = complex(self.settings.default_center)
        self.scale = float(self.settings.default_scale)
        log("viewport reset")

    def copy(self) -> Viewport:
        return Viewport(self.center, self.scale, self.settings)

    @property
    def zoom_level(self) -> float:
        return self.settings.default_scale / self.scale


def create_default_viewport(settings: ViewerSettings | None = None) -> Viewport:
    settings = DEFAULT_SETTINGS if settings is None else settings
    return Viewport(settings.default_center, settings.default_scale, settings)
