"""Public API of the Mandelbrot viewer core."""

from .colors import ColormapPalette, GradientPalette, create_palette, palette_from_settings, parse_hex_color
from .config import DEFAULT_SETTINGS, ViewerSettings
from .controller import (
    AutoZoomDriver,
    AutoZooming,
    Dragging,
    Idle,
    InteractionController,
    ZoomDirection,
    handle_event,
    should_quit,
    tick,
)
from .escape import EscapeField, EscapeResult, evaluate, evaluate_grid
from .events import (
    ClickTracker,
    Key,
    KeyDown,
    KeyUp,
    Modifier,
    MouseButton,
    MouseDoubleClick,
    MouseDown,
    MouseMove,
    MouseUp,
    Resize,
    Wheel,
)
from .renderer import RenderResult, max_iterations_for_scale, render, render_frame
from .viewport import SamplingMetadata, Viewport, create_default_viewport

__all__ = [
    "AutoZoomDriver",
    "AutoZooming",
    "ClickTracker",
    "ColormapPalette",
    "DEFAULT_SETTINGS",
    "Dragging",
    "EscapeField",
    "EscapeResult",
    "GradientPalette",
    "Idle",
    "InteractionController",
    "Key",
    "KeyDown",
    "KeyUp",
    "Modifier",
    "MouseButton",
    "MouseDoubleClick",
    "MouseDown",
    "MouseMove",
    "MouseUp",
    "RenderResult",
    "Resize",
    "SamplingMetadata",
    "ViewerSettings",
    "Viewport",
    "Wheel",
    "ZoomDirection",
    "create_default_viewport",
    "create_palette",
    "evaluate",
    "evaluate_grid",
    "handle_event",
    "max_iterations_for_scale",
    "palette_from_settings",
    "parse_hex_color",
    "render",
    "render_frame",
    "should_quit",
    "tick",
]
