"""Decoded input events consumed by the interaction controller."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

Pixel = tuple[float, float]


class MouseButton(enum.Enum):
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"


class Key(enum.Enum):
    SPACE = "space"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    ESCAPE = "escape"
    Q = "q"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    H = "h"
    J = "j"
    K = "k"
    L = "l"
    I = "i"
    D = "d"
    S = "s"


class Modifier(enum.Flag):
    NONE = 0
    SHIFT = enum.auto()
    ALT = enum.auto()
    CTRL = enum.auto()


@dataclass(frozen=True)
class MouseDown:
    pixel: Pixel
    button: MouseButton = MouseButton.LEFT


@dataclass(frozen=True)
class MouseUp:
    pixel: Pixel
    button: MouseButton = MouseButton.LEFT


@dataclass(frozen=True)
class MouseMove:
    pixel: Pixel


@dataclass(frozen=True)
class MouseDoubleClick:
    pixel: Pixel


@dataclass(frozen=True)
class Wheel:
    """Wheel notches; positive ``delta`` scrolls up (zooms in).

    ``pixel`` is the cursor position when the host knows it.
    """

    delta: float
    pixel: Optional[Pixel] = None


@dataclass(frozen=True)
class KeyDown:
    key: Key
    modifiers: Modifier = Modifier.NONE


@dataclass(frozen=True)
class KeyUp:
    key: Key
    modifiers: Modifier = Modifier.NONE


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


InputEvent = Union[MouseDown, MouseUp, MouseMove, MouseDoubleClick, Wheel, KeyDown, KeyUp, Resize]


class ClickTracker:
    """Turn raw left-button presses into ``MouseDown`` or ``MouseDoubleClick``.

    A press within ``interval`` seconds of the previous one is reported as a
    double click instead of a new press, so it never starts a drag.
    """

    def __init__(self, interval: float = 0.7):
        self.interval = interval
        self._last_press: Optional[float] = None

    def press(self, pixel: Pixel, button: MouseButton, now: float) -> InputEvent:
        if button is not MouseButton.LEFT:
            return MouseDown(pixel, button)
        last, self._last_press = self._last_press, now
        if last is not None and now - last < self.interval:
            self._last_press = None
            return MouseDoubleClick(pixel)
        return MouseDown(pixel, button)
