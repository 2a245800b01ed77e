"""Interaction state machine driving the viewport from decoded input events."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Optional, Union

from .config import DEFAULT_SETTINGS, ViewerSettings
from .events import (
    InputEvent,
    Key,
    KeyDown,
    KeyUp,
    Modifier,
    MouseButton,
    MouseDoubleClick,
    MouseDown,
    MouseMove,
    MouseUp,
    Pixel,
    Resize,
    Wheel,
)
from .verbose import log
from .viewport import Viewport


class ZoomDirection(enum.Enum):
    IN = "in"
    OUT = "out"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    """Left button held; ``last_pixel`` is the cursor at the previous move."""

    anchor_pixel: Pixel
    anchor_center: complex
    last_pixel: Pixel


@dataclass(frozen=True)
class AutoZooming:
    """Continuous zoom; ``rate`` is the scale multiplier applied per second."""

    direction: ZoomDirection
    rate: float
    started_at: float


InteractionState = Union[Idle, Dragging, AutoZooming]

IDLE = Idle()

_PAN_KEYS = {
    Key.UP: (0.0, 1.0),
    Key.K: (0.0, 1.0),
    Key.DOWN: (0.0, -1.0),
    Key.J: (0.0, -1.0),
    Key.LEFT: (1.0, 0.0),
    Key.H: (1.0, 0.0),
    Key.RIGHT: (-1.0, 0.0),
    Key.L: (-1.0, 0.0),
}


class AutoZoomDriver:
    """Time-based zoom animation about the viewport center."""

    def __init__(self, rate: float):
        self.rate = rate

    def start(self, direction: ZoomDirection, now: float) -> AutoZooming:
        rate = self.rate if direction is ZoomDirection.IN else 1.0 / self.rate
        return AutoZooming(direction=direction, rate=rate, started_at=now)

    @staticmethod
    def step(state: AutoZooming, dt: float, viewport: Viewport) -> bool:
        """Zoom by ``rate ** dt``; ``False`` once the scale clamp is reached."""

        return viewport.zoom_by(state.rate, dt, viewport.center)


class InteractionController:
    """Consume input events and ticks, mutating the viewport they are given.

    ``handle`` and ``tick`` return ``True`` when the viewport changed and a
    new frame should be rendered.
    """

    def __init__(self, width: int, height: int, settings: Optional[ViewerSettings] = None):
        self.settings = DEFAULT_SETTINGS if settings is None else settings
        self.driver = AutoZoomDriver(self.settings.auto_zoom_rate)
        self.state: InteractionState = IDLE
        self.cursor: Optional[Pixel] = None
        self.clock = 0.0
        self._quit = False
        self._size = (1, 1)
        self.resize(width, height)

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    @property
    def is_auto_zooming(self) -> bool:
        return isinstance(self.state, AutoZooming)

    @property
    def should_quit(self) -> bool:
        return self._quit

    def resize(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"buffer dimensions must be positive, got {width}x{height}.")
        self._size = (int(width), int(height))

    def _set_state(self, state: InteractionState) -> None:
        if type(state) is not type(self.state):
            log(f"state {type(self.state).__name__} -> {type(state).__name__}")
        self.state = state

    def _cursor_complex(self, viewport: Viewport, pixel: Optional[Pixel]) -> Optional[complex]:
        if pixel is None:
            return None
        return viewport.pixel_to_complex(pixel[0], pixel[1], *self._size)

    def handle(self, event: InputEvent, viewport: Viewport) -> bool:
        handler = self._event_handlers.get(type(event))
        if handler is None:
            raise TypeError(f"unsupported input event {event!r}")
        return handler(self, event, viewport)

    def tick(self, dt: float, viewport: Viewport) -> bool:
        if dt < 0:
            raise ValueError(f"dt must not be negative, got {dt}.")
        self.clock += dt
        if not isinstance(self.state, AutoZooming) or dt == 0:
            return False
        if not self.driver.step(self.state, dt, viewport):
            log("auto zoom reached the scale limit")
            self._set_state(IDLE)
        return True

    # Mouse

    def _on_mouse_down(self, event: MouseDown, viewport: Viewport) -> bool:
        self.cursor = event.pixel
        if event.button is MouseButton.LEFT and isinstance(self.state, Idle):
            self._set_state(Dragging(event.pixel, viewport.center, event.pixel))
        return False

    def _drag_to(self, pixel: Pixel, viewport: Viewport) -> bool:
        last = self.state.last_pixel
        delta = (pixel[0] - last[0], pixel[1] - last[1])
        self.state = replace(self.state, last_pixel=pixel)
        if delta == (0, 0):
            return False
        viewport.pan(delta, *self._size)
        return True

    def _on_mouse_move(self, event: MouseMove, viewport: Viewport) -> bool:
        self.cursor = event.pixel
        if isinstance(self.state, Dragging):
            return self._drag_to(event.pixel, viewport)
        return False

    def _on_mouse_up(self, event: MouseUp, viewport: Viewport) -> bool:
        self.cursor = event.pixel
        if event.button is not MouseButton.LEFT or not isinstance(self.state, Dragging):
            return False
        moved = self._drag_to(event.pixel, viewport)
        self._set_state(IDLE)
        return moved

    def _on_double_click(self, event: MouseDoubleClick, viewport: Viewport) -> bool:
        self.cursor = event.pixel
        if not isinstance(self.state, Idle):
            return False
        viewport.recenter(self._cursor_complex(viewport, event.pixel))
        return True

    def _on_wheel(self, event: Wheel, viewport: Viewport) -> bool:
        if event.pixel is not None:
            self.cursor = event.pixel
        if event.delta == 0:
            return False
        pivot = self._cursor_complex(viewport, self.cursor)
        viewport.zoom_by(self.settings.wheel_base, -event.delta, pivot)
        return True

    # Keyboard

    def _on_key_down(self, event: KeyDown, viewport: Viewport) -> bool:
        key = event.key
        if key is Key.Q:
            self._quit = True
            return False
        if key is Key.SPACE:
            viewport.reset()
            self._set_state(IDLE)
            return True
        if key is Key.ESCAPE:
            if isinstance(self.state, Idle):
                self._quit = True
            else:
                self._set_state(IDLE)
            return False
        if key in (Key.PAGE_UP, Key.PAGE_DOWN):
            return self._on_page_key(key, event.modifiers, viewport)
        if key in _PAN_KEYS and isinstance(self.state, Idle):
            sx, sy = _PAN_KEYS[key]
            distance = self.settings.key_pan_pixels
            viewport.pan((sx * distance, sy * distance), *self._size)
            return True
        return False

    def _on_page_key(self, key: Key, modifiers: Modifier, viewport: Viewport) -> bool:
        direction = ZoomDirection.IN if key is Key.PAGE_UP else ZoomDirection.OUT
        if isinstance(self.state, Dragging):
            return False
        if Modifier.ALT in modifiers:
            self._set_state(self.driver.start(direction, self.clock))
            return False
        if isinstance(self.state, AutoZooming):
            self._set_state(IDLE)
            return False

        step = self.settings.key_zoom_step
        if Modifier.SHIFT in modifiers:
            step /= self.settings.fine_step_divisor
        exponent = -step if direction is ZoomDirection.IN else step
        viewport.zoom_by(self.settings.key_zoom_base, exponent, viewport.center)
        return True

    def _on_key_up(self, event: KeyUp, viewport: Viewport) -> bool:
        return False

    def _on_resize(self, event: Resize, viewport: Viewport) -> bool:
        self.resize(event.width, event.height)
        return True

    _event_handlers = {
        MouseDown: _on_mouse_down,
        MouseMove: _on_mouse_move,
        MouseUp: _on_mouse_up,
        MouseDoubleClick: _on_double_click,
        Wheel: _on_wheel,
        KeyDown: _on_key_down,
        KeyUp: _on_key_up,
        Resize: _on_resize,
    }


def handle_event(controller: InteractionController, viewport: Viewport, event: InputEvent) -> bool:
    return controller.handle(event, viewport)


def tick(controller: InteractionController, viewport: Viewport, dt_seconds: float) -> bool:
    return controller.tick(dt_seconds, viewport)


def should_quit(controller: InteractionController) -> bool:
    return controller.should_quit
