"""Mapping of smoothed escape values to RGBA colours."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from matplotlib import colormaps as _mpl_colormaps

from .config import ViewerSettings
from .escape import EscapeField, EscapeResult

CLASSIC = "classic"

# navy, green, yellow, cyan, blue
CLASSIC_STOPS = (
    (0x00, 0x00, 0x80),
    (0x00, 0xFF, 0x00),
    (0xFF, 0xFF, 0x00),
    (0x00, 0xFF, 0xFF),
    (0x00, 0x00, 0xFF),
)

OPAQUE = 255


def parse_hex_color(hex_color: str) -> tuple[int, int, int]:
    hex_color = hex_color.lstrip('#')
    if len(hex_color) != 6:
        raise ValueError('inside_color must be in the form #RRGGBB.')
    try:
        return tuple(int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError as exc:
        raise ValueError('inside_color must contain only hexadecimal digits.') from exc


class _Palette:
    """Stateless map from escape results to RGBA; subclasses supply ``_rgb``."""

    inside_color: tuple[int, int, int]

    def _rgb(self, smoothed: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def map_values(self, smoothed: np.ndarray, escaped: np.ndarray) -> np.ndarray:
        smoothed = np.asarray(smoothed, dtype=np.float64)
        escaped = np.asarray(escaped, dtype=bool)
        rgb = self._rgb(smoothed)
        inside = np.asarray(self.inside_color, dtype=np.float64)
        rgb = np.where(escaped[..., None], rgb, inside)

        rgba = np.empty(smoothed.shape + (4,), dtype=np.uint8)
        rgba[..., :3] = np.uint8(np.clip(rgb, 0, 255))
        rgba[..., 3] = OPAQUE
        return rgba

    def map_field(self, field: EscapeField) -> np.ndarray:
        return self.map_values(field.smoothed, field.escaped)

    def map(self, result: EscapeResult) -> tuple[int, int, int, int]:
        rgba = self.map_values(np.array([result.smoothed]), np.array([result.escaped]))[0]
        return tuple(int(channel) for channel in rgba)


@dataclass(frozen=True)
class GradientPalette(_Palette):
    """Linear interpolation between colour stops, ``section_size`` escape units apart.

    The gradient wraps from the last stop back to the first, so the colour
    cycle repeats every ``len(stops) * section_size`` units without a seam.
    """

    stops: tuple[tuple[int, int, int], ...] = CLASSIC_STOPS
    section_size: float = 64.0
    inside_color: tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self) -> None:
        if len(self.stops) < 2:
            raise ValueError("a gradient needs at least two colour stops.")
        if self.section_size <= 0:
            raise ValueError("section_size must be positive.")

    def _rgb(self, smoothed: np.ndarray) -> np.ndarray:
        count = len(self.stops)
        table = np.asarray(self.stops + (self.stops[0],), dtype=np.float64)
        position = np.mod(smoothed / self.section_size, count)
        index = np.clip(np.floor(position).astype(np.int64), 0, count - 1)
        fraction = (position - index)[..., None]
        return table[index] * (1.0 - fraction) + table[index + 1] * fraction


@dataclass(frozen=True)
class ColormapPalette(_Palette):
    """Sample a matplotlib colormap back and forth every ``period`` escape units.

    Walking the colormap as a triangle wave keeps the output continuous even
    for colormaps whose ends do not meet.
    """

    name: str = "twilight_shifted"
    period: float = 64.0
    invert: bool = False
    inside_color: tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self) -> None:
        if self.period <= 0:
            raise ValueError("period must be positive.")
        if self.name not in _mpl_colormaps:
            raise ValueError(f"Unknown colormap '{self.name}'.")

    def _rgb(self, smoothed: np.ndarray) -> np.ndarray:
        phase = np.mod(smoothed / self.period, 1.0)
        position = 1.0 - np.abs(2.0 * phase - 1.0)
        if self.invert:
            position = 1.0 - position
        cmap = _mpl_colormaps[self.name]
        return np.asarray(cmap(position), dtype=np.float64)[..., :3] * 255.0


def create_palette(
    name: str = CLASSIC,
    *,
    period: float = 64.0,
    invert: bool = False,
    inside_color: tuple[int, int, int] = (0, 0, 0),
) -> _Palette:
    """Build the classic gradient or a matplotlib colormap palette by name."""

    if name == CLASSIC:
        stops = tuple(reversed(CLASSIC_STOPS)) if invert else CLASSIC_STOPS
        return GradientPalette(stops=stops, section_size=period, inside_color=tuple(inside_color))
    return ColormapPalette(name=name, period=period, invert=invert, inside_color=tuple(inside_color))


def palette_from_settings(settings: ViewerSettings) -> _Palette:
    return create_palette(
        settings.palette,
        period=settings.palette_period,
        invert=settings.invert_palette,
        inside_color=settings.inside_color,
    )
