"""
Tests for the interaction state machine and the auto-zoom driver.
"""

import pytest

from mandelview import (
    AutoZooming,
    ClickTracker,
    Dragging,
    Idle,
    InteractionController,
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
    ViewerSettings,
    Viewport,
    Wheel,
    ZoomDirection,
    create_default_viewport,
    handle_event,
    should_quit,
    tick,
)


def _start_auto_zoom(controller, viewport, key=Key.PAGE_UP):
    controller.handle(KeyDown(key, Modifier.ALT), viewport)


class TestDragging:
    """Test drag-to-pan."""

    def test_press_starts_drag(self, controller, viewport):
        controller.handle(MouseDown((100, 100), MouseButton.LEFT), viewport)
        assert isinstance(controller.state, Dragging)
        assert controller.state.anchor_pixel == (100, 100)
        assert controller.state.anchor_center == viewport.center

    def test_drag_right_pans_left(self, controller, viewport):
        controller.handle(MouseDown((100, 100)), viewport)
        assert controller.handle(MouseMove((110, 100)), viewport)
        controller.handle(MouseUp((110, 100)), viewport)
        assert viewport.center.real == pytest.approx(-0.5 - 10 * (2 * 2.0 / 800))
        assert viewport.center.imag == 0.0
        assert isinstance(controller.state, Idle)

    def test_incremental_moves_sum_to_total(self, controller, viewport):
        controller.handle(MouseDown((100, 100)), viewport)
        for x in range(101, 121):
            controller.handle(MouseMove((x, 100)), viewport)
        controller.handle(MouseUp((120, 100)), viewport)
        assert viewport.center.real == pytest.approx(-0.5 - 20 * 0.005)

    def test_release_applies_last_delta(self, controller, viewport):
        controller.handle(MouseDown((100, 100)), viewport)
        assert controller.handle(MouseUp((100, 120)), viewport)
        assert viewport.center.imag == pytest.approx(20 * 0.005)

    def test_move_without_drag_only_tracks_cursor(self, controller, viewport):
        assert not controller.handle(MouseMove((5, 5)), viewport)
        assert controller.cursor == (5, 5)
        assert viewport == create_default_viewport()

    def test_right_button_does_not_drag(self, controller, viewport):
        controller.handle(MouseDown((1, 1), MouseButton.RIGHT), viewport)
        assert isinstance(controller.state, Idle)

    def test_escape_cancels_drag(self, controller, viewport):
        controller.handle(MouseDown((100, 100)), viewport)
        controller.handle(MouseMove((130, 100)), viewport)
        center = viewport.center
        controller.handle(KeyDown(Key.ESCAPE), viewport)
        assert isinstance(controller.state, Idle)
        assert viewport.center == center
        assert not controller.should_quit


class TestDoubleClick:
    """Test click-to-center."""

    def test_double_click_recenters(self, controller, viewport):
        expected = viewport.copy().pixel_to_complex(600, 150, 800, 600)
        assert controller.handle(MouseDoubleClick((600, 150)), viewport)
        assert viewport.center == expected
        assert viewport.scale == 2.0
        assert isinstance(controller.state, Idle)

    def test_click_tracker_reports_double_click(self):
        tracker = ClickTracker(interval=0.7)
        assert isinstance(tracker.press((1, 1), MouseButton.LEFT, 10.0), MouseDown)
        assert isinstance(tracker.press((1, 1), MouseButton.LEFT, 10.3), MouseDoubleClick)
        assert isinstance(tracker.press((1, 1), MouseButton.LEFT, 10.5), MouseDown)

    def test_click_tracker_slow_clicks(self):
        tracker = ClickTracker(interval=0.7)
        tracker.press((1, 1), MouseButton.LEFT, 0.0)
        assert isinstance(tracker.press((1, 1), MouseButton.LEFT, 1.0), MouseDown)

    def test_click_tracker_ignores_other_buttons(self):
        tracker = ClickTracker()
        tracker.press((1, 1), MouseButton.LEFT, 0.0)
        event = tracker.press((1, 1), MouseButton.RIGHT, 0.1)
        assert event == MouseDown((1, 1), MouseButton.RIGHT)


class TestWheel:
    """Test wheel zoom about the cursor."""

    def test_wheel_up_zooms_in_about_cursor(self, controller, viewport):
        pixel = (200, 450)
        pivot = viewport.pixel_to_complex(*pixel, 800, 600)
        assert controller.handle(Wheel(1.0, pixel), viewport)
        assert viewport.scale == pytest.approx(2.0 / 1.1)
        after = viewport.pixel_to_complex(*pixel, 800, 600)
        assert after.real == pytest.approx(pivot.real)
        assert after.imag == pytest.approx(pivot.imag)

    def test_wheel_uses_last_cursor(self, controller, viewport):
        controller.handle(MouseMove((0, 0)), viewport)
        pivot = viewport.pixel_to_complex(0, 0, 800, 600)
        controller.handle(Wheel(2.0), viewport)
        assert viewport.pixel_to_complex(0, 0, 800, 600) == pytest.approx(pivot)

    def test_wheel_without_cursor_keeps_center(self, controller, viewport):
        controller.handle(Wheel(-1.0), viewport)
        assert viewport.center == complex(-0.5, 0.0)
        assert viewport.scale == pytest.approx(2.2)

    def test_repeated_notches_are_geometric(self, controller, viewport):
        controller.handle(Wheel(1.0), viewport)
        first = viewport.scale
        controller.handle(Wheel(1.0), viewport)
        assert viewport.scale / first == pytest.approx(first / 2.0)

    @pytest.mark.parametrize("delta, limit", [(8000, "min_scale"), (-8000, "max_scale")])
    def test_huge_delta_lands_on_clamp(self, controller, viewport, settings, delta, limit):
        controller.handle(MouseMove((700, 100)), viewport)
        pivot = viewport.pixel_to_complex(700, 100, 800, 600)
        assert controller.handle(Wheel(delta), viewport)
        assert viewport.scale == getattr(settings, limit)
        assert viewport.pixel_to_complex(700, 100, 800, 600) == pytest.approx(pivot)
        assert isinstance(controller.state, Idle)

    def test_zero_delta_is_ignored(self, controller, viewport):
        assert not controller.handle(Wheel(0.0, (10, 10)), viewport)

    def test_wheel_keeps_auto_zoom_running(self, controller, viewport):
        _start_auto_zoom(controller, viewport)
        controller.handle(Wheel(1.0, (10, 10)), viewport)
        assert controller.is_auto_zooming


class TestKeys:
    """Test keyboard zoom, pan, reset and quit."""

    def test_page_up_zooms_in_one_step(self, controller, viewport):
        assert controller.handle(KeyDown(Key.PAGE_UP), viewport)
        assert viewport.scale == pytest.approx(2.0 * 1.07 ** -3.0)
        assert viewport.center == complex(-0.5, 0.0)

    def test_page_down_zooms_out(self, controller, viewport):
        viewport.zoom(0.01)
        controller.handle(KeyDown(Key.PAGE_DOWN), viewport)
        assert viewport.scale == pytest.approx(0.02 * 1.07 ** 3.0)

    def test_shift_reduces_step(self, controller, viewport):
        controller.handle(KeyDown(Key.PAGE_UP, Modifier.SHIFT), viewport)
        assert viewport.scale == pytest.approx(2.0 * 1.07 ** -0.3)

    def test_arrow_keys_pan(self, controller, viewport):
        controller.handle(KeyDown(Key.RIGHT), viewport)
        assert viewport.center.real == pytest.approx(-0.5 + 10 * 0.005)
        controller.handle(KeyDown(Key.K), viewport)
        assert viewport.center.imag == pytest.approx(10 * 0.005)

    def test_space_resets_from_every_state(self, controller, viewport):
        default = create_default_viewport()
        for setup in (
            lambda: None,
            lambda: controller.handle(MouseDown((5, 5)), viewport),
            lambda: _start_auto_zoom(controller, viewport),
        ):
            viewport.recenter(1 + 1j)
            viewport.zoom(0.001)
            setup()
            controller.handle(KeyDown(Key.SPACE), viewport)
            assert viewport == default
            assert isinstance(controller.state, Idle)

    def test_space_is_idempotent(self, controller, viewport):
        controller.handle(KeyDown(Key.SPACE), viewport)
        controller.handle(KeyDown(Key.SPACE), viewport)
        assert viewport == create_default_viewport()

    def test_q_requests_quit(self, controller, viewport):
        controller.handle(KeyDown(Key.Q), viewport)
        assert should_quit(controller)

    def test_escape_when_idle_requests_quit(self, controller, viewport):
        controller.handle(KeyDown(Key.ESCAPE), viewport)
        assert controller.should_quit
        assert viewport == create_default_viewport()

    def test_key_up_is_ignored(self, controller, viewport):
        assert not controller.handle(KeyUp(Key.PAGE_UP), viewport)
        assert viewport == create_default_viewport()

    def test_resize_changes_mapping(self, controller, viewport):
        controller.handle(Resize(400, 300), viewport)
        assert controller.size == (400, 300)
        controller.handle(MouseDown((0, 0)), viewport)
        controller.handle(MouseMove((10, 0)), viewport)
        assert viewport.center.real == pytest.approx(-0.5 - 10 * (4.0 / 400))

    def test_degenerate_resize_fails_fast(self, controller, viewport):
        with pytest.raises(ValueError):
            controller.handle(Resize(0, 300), viewport)


class TestAutoZoom:
    """Test the time-based auto-zoom sub-state."""

    def test_alt_page_up_starts_auto_zoom_in(self, controller, viewport):
        controller.tick(2.5, viewport)
        _start_auto_zoom(controller, viewport)
        state = controller.state
        assert isinstance(state, AutoZooming)
        assert state.direction is ZoomDirection.IN
        assert state.rate == 0.5
        assert state.started_at == 2.5
        assert viewport == create_default_viewport()

    def test_alt_page_down_zooms_out(self, controller, viewport):
        viewport.zoom(0.25)
        _start_auto_zoom(controller, viewport, Key.PAGE_DOWN)
        assert controller.state.direction is ZoomDirection.OUT
        controller.tick(1.0, viewport)
        assert viewport.scale == pytest.approx(1.0)

    def test_tick_halves_scale(self, viewport):
        controller = InteractionController(800, 600, ViewerSettings(auto_zoom_rate=0.5))
        _start_auto_zoom(controller, viewport)
        assert tick(controller, viewport, 1.0)
        assert viewport.scale == 1.0
        assert viewport.center == complex(-0.5, 0.0)

    def test_rate_consistency(self, settings):
        split = create_default_viewport(settings)
        whole = create_default_viewport(settings)
        first = InteractionController(800, 600, settings)
        second = InteractionController(800, 600, settings)
        _start_auto_zoom(first, split)
        _start_auto_zoom(second, whole)
        first.tick(0.5, split)
        first.tick(0.5, split)
        second.tick(1.0, whole)
        assert split.scale == pytest.approx(whole.scale)

    def test_ticks_do_nothing_when_idle(self, controller, viewport):
        assert not controller.tick(1.0, viewport)
        assert viewport == create_default_viewport()
        assert controller.clock == 1.0

    def test_escape_cancels_and_keeps_position(self, controller, viewport):
        _start_auto_zoom(controller, viewport)
        controller.tick(0.3, viewport)
        scale = viewport.scale
        controller.handle(KeyDown(Key.ESCAPE), viewport)
        assert isinstance(controller.state, Idle)
        assert not controller.should_quit
        controller.tick(1.0, viewport)
        assert viewport.scale == scale

    def test_plain_page_key_cancels(self, controller, viewport):
        _start_auto_zoom(controller, viewport)
        assert not handle_event(controller, viewport, KeyDown(Key.PAGE_UP))
        assert isinstance(controller.state, Idle)
        assert viewport.scale == 2.0

    def test_stops_at_scale_limit(self, viewport):
        settings = ViewerSettings(min_scale=0.5)
        viewport = Viewport(complex(-0.5, 0.0), 2.0, settings)
        controller = InteractionController(800, 600, settings)
        _start_auto_zoom(controller, viewport)
        controller.tick(1.0, viewport)
        assert controller.is_auto_zooming
        controller.tick(5.0, viewport)
        assert viewport.scale == 0.5
        assert not controller.is_auto_zooming

    @pytest.mark.parametrize("key, limit", [(Key.PAGE_UP, "min_scale"), (Key.PAGE_DOWN, "max_scale")])
    def test_long_tick_lands_on_clamp(self, controller, viewport, settings, key, limit):
        """A huge dt, e.g. after the host was suspended, clamps instead of failing."""
        _start_auto_zoom(controller, viewport, key)
        assert controller.tick(1100.0, viewport)
        assert viewport.scale == getattr(settings, limit)
        assert viewport.center == complex(-0.5, 0.0)
        assert isinstance(controller.state, Idle)

    def test_mouse_press_ignored_while_auto_zooming(self, controller, viewport):
        _start_auto_zoom(controller, viewport)
        controller.handle(MouseDown((10, 10)), viewport)
        assert controller.is_auto_zooming

    def test_double_click_ignored_while_auto_zooming(self, controller, viewport):
        _start_auto_zoom(controller, viewport)
        assert not controller.handle(MouseDoubleClick((10, 10)), viewport)
        assert viewport.center == complex(-0.5, 0.0)

    def test_negative_dt_rejected(self, controller, viewport):
        with pytest.raises(ValueError):
            controller.tick(-0.1, viewport)
