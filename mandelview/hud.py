"""Informational overlay text and its Pillow rendering."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont

from .viewport import Viewport

_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
)


def hud_lines(
    viewport: Viewport,
    max_iterations: int,
    elapsed: Optional[float] = None,
    auto_zooming: bool = False,
) -> list[str]:
    lines = [
        f"x: {viewport.center.real!r}",
        f"y: {viewport.center.imag!r}",
        f"scale: {viewport.scale:.6g} (zoom {viewport.zoom_level:.3g}x)",
        f"iterations: {max_iterations}",
    ]
    if elapsed is not None:
        lines.append(f"rendering time: {elapsed:.4f}[sec]")
    if auto_zooming:
        lines.append("auto zoom")
    return lines


def _load_font(image: PIL.Image.Image) -> PIL.ImageFont.ImageFont:
    target_size = max(12, int(round(max(min(image.size), 1) * 0.028)))
    for path in _FONT_CANDIDATES:
        font_path = Path(path)
        if font_path.exists():
            try:
                return PIL.ImageFont.truetype(str(font_path), target_size)
            except OSError:
                continue
    return PIL.ImageFont.load_default()


def _vertical_gradient(
    size: tuple[int, int],
    top_color: tuple[int, int, int, int],
    bottom_color: tuple[int, int, int, int],
) -> PIL.Image.Image:
    width, height = size
    gradient = PIL.Image.new("RGBA", (width, height))
    for y in range(height):
        ratio = y / (height - 1) if height > 1 else 0.0
        color = tuple(
            int(round(top_color[channel] + (bottom_color[channel] - top_color[channel]) * ratio))
            for channel in range(4)
        )
        gradient.paste(color, [0, y, width, y + 1])
    return gradient


def annotate(image: PIL.Image.Image, lines: list[str], *, margin: int = 12) -> PIL.Image.Image:
    """Draw ``lines`` on a translucent rounded panel in the top-left corner."""

    if image.mode != "RGBA":
        image = image.convert("RGBA")
    if not lines:
        return image

    draw = PIL.ImageDraw.Draw(image, "RGBA")
    font = _load_font(image)
    font_size = getattr(font, "size", 12)
    padding = max(6, int(round(font_size * 0.6)))
    spacing = max(2, int(round(font_size * 0.3)))

    text = "\n".join(lines)
    left, top, right, bottom = draw.multiline_textbbox((0, 0), text, font=font, spacing=spacing)
    box_width = int(right - left) + padding * 2
    box_height = int(bottom - top) + padding * 2

    radius = max(6, int(round(min(box_width, box_height) * 0.12)))
    mask = PIL.Image.new("L", (box_width, box_height), 0)
    PIL.ImageDraw.Draw(mask).rounded_rectangle(
        [(0, 0), (box_width - 1, box_height - 1)], radius=radius, fill=255
    )
    panel = _vertical_gradient((box_width, box_height), (18, 22, 40, 210), (10, 12, 24, 150))
    transparent = PIL.Image.new("RGBA", (box_width, box_height), (0, 0, 0, 0))
    panel = PIL.Image.composite(panel, transparent, mask)
    image.paste(panel, (margin, margin), panel)

    origin = (margin + padding - left, margin + padding - top)
    shadow = max(1, int(round(font_size * 0.1)))
    draw.multiline_text((origin[0] + shadow, origin[1] + shadow), text, font=font, fill=(0, 0, 0, 170), spacing=spacing)
    draw.multiline_text(origin, text, font=font, fill=(240, 244, 255, 255), spacing=spacing)
    return image
