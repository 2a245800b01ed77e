import os
import sys
import time
import warnings
from argparse import ArgumentParser
from dataclasses import replace
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

import tensorflow as tf
import numpy as np
import PIL.Image
import imageio.v3 as iio

from mandelview import (
    DEFAULT_SETTINGS,
    ClickTracker,
    InteractionController,
    Key,
    KeyDown,
    KeyUp,
    Modifier,
    MouseButton,
    MouseMove,
    MouseUp,
    Resize,
    ViewerSettings,
    Wheel,
    create_default_viewport,
    palette_from_settings,
    parse_hex_color,
    render_frame,
)
from mandelview import verbose
from mandelview.hud import annotate, hud_lines
from mandelview.verbose import log

verbose.set_verbose(_cli_verbose)

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")


def select_device():
    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


MODES = ("view", "image", "gif")


def build_parser():
    parser = ArgumentParser(description="Explore the Mandelbrot set.")

    parser.add_argument('--mode', choices=MODES, default='view',
                        help='"view" opens an interactive window, "image" renders one still, '
                             '"gif" records an auto-zoom animation.')

    parser.add_argument('--width', type=int, dest='width', metavar='WIDTH', default=640,
                        help='width of the pixel buffer')
    parser.add_argument('--height', type=int, dest='height', metavar='HEIGHT', default=480,
                        help='height of the pixel buffer')

    parser.add_argument('--center-re', type=float, dest='center_re', metavar='RE', default=None,
                        help='real part of the initial view center')
    parser.add_argument('--center-im', type=float, dest='center_im', metavar='IM', default=None,
                        help='imaginary part of the initial view center')
    parser.add_argument('--scale', type=float, dest='scale', metavar='SCALE', default=None,
                        help='initial half-width of the view in the complex plane')

    parser.add_argument('--max-iterations', type=int, dest='max_iterations', metavar='MAX_ITERATIONS',
                        default=None, help='fixed iteration cap; by default it grows with the zoom depth')

    parser.add_argument('--palette', type=str, dest='palette', metavar='PALETTE', default='classic',
                        help='"classic" or a matplotlib colormap name (e.g. "twilight_shifted", "inferno")')
    parser.add_argument('--period', type=float, dest='period', metavar='PERIOD', default=64.0,
                        help='escape-value length of one colour cycle section')
    parser.add_argument('--invert', action='store_true', help='Invert the selected palette.')
    parser.add_argument('--inside-color', type=str, default='#000000',
                        help='Hex color for points inside the Mandelbrot set.')

    parser.add_argument('--workers', type=int, dest='workers', metavar='WORKERS', default=None,
                        help='number of row bands rendered in parallel (default: CPU count)')

    parser.add_argument('--zoom-rate', type=float, dest='zoom_rate', metavar='RATE', default=0.5,
                        help='scale multiplier per second while auto-zooming in (0 < RATE < 1)')
    parser.add_argument('--direction', choices=('in', 'out'), default='in',
                        help='auto-zoom direction for gif recordings')
    parser.add_argument('--frames', type=int, dest='frames', metavar='FRAMES', default=60,
                        help='number of frames recorded in gif mode')
    parser.add_argument('--fps', type=float, dest='fps', metavar='FPS', default=20.0,
                        help='frame rate of gif recordings; also the auto-zoom time step')

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination file for image or gif modes.')
    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='In gif mode, also store every frame as a numbered image in this directory.')
    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT', default='png',
                        help='file format for image outputs. Can be any extension supported by Pillow.')
    parser.add_argument('--show-info', dest='show_info', action='store_true',
                        help='overlay center, scale and iteration count on written images')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def settings_from_args(opt, parser: ArgumentParser) -> ViewerSettings:
    try:
        inside_rgb = parse_hex_color(opt.inside_color)
    except ValueError:
        print(f"Invalid inside_color '{opt.inside_color}', defaulting to black.")
        inside_rgb = (0, 0, 0)

    overrides = dict(
        palette=opt.palette,
        palette_period=opt.period,
        invert_palette=bool(opt.invert),
        inside_color=inside_rgb,
        workers=opt.workers,
        auto_zoom_rate=opt.zoom_rate,
    )
    if opt.center_re is not None or opt.center_im is not None:
        default_center = DEFAULT_SETTINGS.default_center
        re = default_center.real if opt.center_re is None else opt.center_re
        im = default_center.imag if opt.center_im is None else opt.center_im
        overrides["default_center"] = complex(re, im)
    if opt.scale is not None:
        overrides["default_scale"] = opt.scale
    try:
        settings = replace(DEFAULT_SETTINGS, **overrides)
        palette_from_settings(settings)
    except ValueError as exc:
        parser.error(str(exc))
    return settings


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def resolve_output_path(opt, parser: ArgumentParser):
    if opt.mode == "view":
        if opt.output:
            parser.error("--output is only valid in image or gif modes.")
        return None

    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    suffix = ".gif" if opt.mode == "gif" else f".{image_format}"
    default_name = "zoom.gif" if opt.mode == "gif" else f"mandelbrot.{image_format}"

    if not opt.output:
        return Path(default_name).expanduser().resolve()

    output_path = Path(opt.output).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error("--output must point to a file, not a directory.")
    if output_path.suffix:
        if output_path.suffix.lower() != suffix:
            parser.error(f"--output extension {output_path.suffix} does not match the {opt.mode} output ({suffix}).")
    else:
        output_path = output_path.with_suffix(suffix)
    return output_path.resolve()


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if pil_format == "JPEG" and image.mode == "RGBA":
        image = image.convert("RGB")
    image.save(str(output_path), format=pil_format)


def write_frame_sequence(image: PIL.Image.Image, frame_dir: Path, index: int, digits: int) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    frame_path = frame_dir / f"frame{index:0{digits}d}.png"
    frame_dir.mkdir(parents=True, exist_ok=True)
    image.save(str(frame_path), format="PNG")
    return frame_path


def frame_image(result, show_info: bool, auto_zooming: bool = False) -> PIL.Image.Image:
    image = PIL.Image.fromarray(result.pixels)
    if show_info:
        lines = hud_lines(result.viewport, result.max_iterations, result.elapsed, auto_zooming)
        image = annotate(image, lines)
    return image


def run_image(opt, settings: ViewerSettings, output_path: Path, device: str) -> None:
    viewport = create_default_viewport(settings)
    result = render_frame(viewport, opt.width, opt.height, opt.max_iterations, device=device)
    log("rendering time: %.4f[sec]" % result.elapsed)
    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    write_single_image(frame_image(result, opt.show_info), output_path, image_format)
    print(f"wrote {output_path}")


def run_gif(opt, settings: ViewerSettings, output_path: Path, device: str) -> None:
    if opt.frames <= 0:
        print("Nothing to record: --frames must be positive.")
        return
    viewport = create_default_viewport(settings)
    controller = InteractionController(opt.width, opt.height, settings)
    key = Key.PAGE_UP if opt.direction == "in" else Key.PAGE_DOWN
    controller.handle(KeyDown(key, Modifier.ALT), viewport)

    frame_dir = Path(opt.frame_dir).expanduser().resolve() if opt.frame_dir else None
    digits = max(3, len(str(max(opt.frames - 1, 0))))
    dt = 1.0 / opt.fps
    frames = []
    for i in range(opt.frames):
        print("frame {0} out of {1}".format(i, opt.frames), end='\r')
        result = render_frame(viewport, opt.width, opt.height, opt.max_iterations, device=device)
        image = frame_image(result, opt.show_info, controller.is_auto_zooming)
        frames.append(np.array(image.convert("RGB")))
        if frame_dir is not None:
            write_frame_sequence(image, frame_dir, i, digits)
        controller.tick(dt, viewport)
        if not controller.is_auto_zooming:
            log("auto zoom stopped at the scale limit after %d frames" % (i + 1))
            break
    print()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    iio.imwrite(str(output_path), np.stack(frames), duration=int(round(1000.0 / opt.fps)), loop=0)
    print(f"wrote {output_path}")


def describe(controller: InteractionController, viewport, result) -> str:
    lines = hud_lines(viewport, result.max_iterations if result else 0,
                      result.elapsed if result else None, controller.is_auto_zooming)
    return "\n".join(lines)


class ViewerWindow:
    """pygame host: decodes window events, ticks the controller and presents frames."""

    FONT_SIZE = 16
    PADDING = 5

    def __init__(self, opt, settings: ViewerSettings, device: str):
        import pygame

        self.pygame = pygame
        self.opt = opt
        self.settings = settings
        self.device = device
        self.viewport = create_default_viewport(settings)
        self.controller = InteractionController(opt.width, opt.height, settings)
        self.clicks = ClickTracker(settings.double_click_interval)
        self.show_info = True
        self.needs_render = True
        self.result = None
        self.snapshots = 0

        self.keys = {
            pygame.K_SPACE: Key.SPACE,
            pygame.K_PAGEUP: Key.PAGE_UP,
            pygame.K_PAGEDOWN: Key.PAGE_DOWN,
            pygame.K_ESCAPE: Key.ESCAPE,
            pygame.K_q: Key.Q,
            pygame.K_UP: Key.UP,
            pygame.K_DOWN: Key.DOWN,
            pygame.K_LEFT: Key.LEFT,
            pygame.K_RIGHT: Key.RIGHT,
            pygame.K_h: Key.H,
            pygame.K_j: Key.J,
            pygame.K_k: Key.K,
            pygame.K_l: Key.L,
            pygame.K_i: Key.I,
            pygame.K_d: Key.D,
            pygame.K_s: Key.S,
        }
        self.buttons = {1: MouseButton.LEFT, 2: MouseButton.MIDDLE, 3: MouseButton.RIGHT}

    def _modifiers(self, mod: int) -> Modifier:
        pygame = self.pygame
        modifiers = Modifier.NONE
        if mod & pygame.KMOD_SHIFT:
            modifiers |= Modifier.SHIFT
        if mod & pygame.KMOD_ALT:
            modifiers |= Modifier.ALT
        if mod & pygame.KMOD_CTRL:
            modifiers |= Modifier.CTRL
        return modifiers

    def _decode(self, event):
        pygame = self.pygame
        if event.type == pygame.MOUSEBUTTONDOWN and event.button in self.buttons:
            return self.clicks.press(event.pos, self.buttons[event.button], time.perf_counter())
        if event.type == pygame.MOUSEBUTTONUP and event.button in self.buttons:
            return MouseUp(event.pos, self.buttons[event.button])
        if event.type == pygame.MOUSEMOTION:
            return MouseMove(event.pos)
        if event.type == pygame.MOUSEWHEEL:
            return Wheel(event.y, pygame.mouse.get_pos())
        if event.type in (pygame.KEYDOWN, pygame.KEYUP) and event.key in self.keys:
            kind = KeyDown if event.type == pygame.KEYDOWN else KeyUp
            return kind(self.keys[event.key], self._modifiers(event.mod))
        if event.type == pygame.VIDEORESIZE and event.w > 0 and event.h > 0:
            return Resize(event.w, event.h)
        return None

    def _host_key(self, key: Key) -> None:
        if key is Key.I:
            self.show_info = not self.show_info
            self.needs_render = True
        elif key is Key.D:
            print()
            print(describe(self.controller, self.viewport, self.result))
        elif key is Key.S and self.result is not None:
            self.snapshots += 1
            path = Path(f"snapshot-{self.snapshots:03d}.png").resolve()
            write_single_image(frame_image(self.result, self.show_info), path, "png")
            print(f"wrote {path}")

    def _handle_events(self) -> bool:
        pygame = self.pygame
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            decoded = self._decode(event)
            if decoded is None:
                continue
            if isinstance(decoded, KeyDown) and decoded.key in (Key.I, Key.D, Key.S):
                self._host_key(decoded.key)
                continue
            if isinstance(decoded, Resize):
                self.screen = pygame.display.set_mode((decoded.width, decoded.height), pygame.RESIZABLE)
            if self.controller.handle(decoded, self.viewport):
                self.needs_render = True
        return not self.controller.should_quit

    def _present(self) -> None:
        pygame = self.pygame
        width, height = self.controller.size
        self.result = render_frame(self.viewport, width, height, self.opt.max_iterations, device=self.device)
        surface = pygame.surfarray.make_surface(np.ascontiguousarray(self.result.pixels[..., :3].swapaxes(0, 1)))
        self.screen.blit(surface, (0, 0))
        if self.show_info:
            lines = hud_lines(self.viewport, self.result.max_iterations, self.result.elapsed,
                              self.controller.is_auto_zooming)
            y = self.PADDING
            for line in lines:
                text = self.font.render(line, True, (0xb0, 0xb0, 0xb0), (0, 0, 0))
                self.screen.blit(text, (self.PADDING, y))
                y += text.get_height()
        pygame.display.flip()
        self.needs_render = False

    def run(self) -> None:
        pygame = self.pygame
        pygame.init()
        self.screen = pygame.display.set_mode((self.opt.width, self.opt.height), pygame.RESIZABLE)
        pygame.display.set_caption("Mandelbrot")
        self.font = pygame.font.SysFont("monospace", self.FONT_SIZE)
        clock = pygame.time.Clock()

        last = time.perf_counter()
        running = True
        try:
            while running:
                running = self._handle_events()
                now = time.perf_counter()
                if self.controller.tick(now - last, self.viewport):
                    self.needs_render = True
                last = now
                if running and self.needs_render:
                    self._present()
                clock.tick(60)
        finally:
            pygame.quit()


def main():
    parser = build_parser()
    opt = parser.parse_args()

    verbose.set_verbose(opt.verbose)
    log("TensorFlow version: %s" % tf.__version__)

    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")
    if opt.max_iterations is not None and opt.max_iterations <= 0:
        parser.error("--max-iterations must be positive.")
    if opt.fps <= 0:
        parser.error("--fps must be positive.")

    settings = settings_from_args(opt, parser)
    output_path = resolve_output_path(opt, parser)
    device = select_device()

    if opt.mode == "image":
        run_image(opt, settings, output_path, device)
    elif opt.mode == "gif":
        run_gif(opt, settings, output_path, device)
    else:
        ViewerWindow(opt, settings, device).run()


if __name__ == '__main__':
    main()
