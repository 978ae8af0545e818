import threading

import pytest

from mandelbrot_viewer import InvalidConfigurationError, Viewport, ViewState

INITIAL = Viewport(-2.96444, 1.44444, -1.24, 1.24)


def test_geometry():
    view = Viewport(-2.0, 1.0, -1.5, 1.5)
    assert view.width == 3.0
    assert view.height == 3.0
    assert view.center == (-0.5, 0.0)
    assert tuple(view) == (-2.0, 1.0, -1.5, 1.5)


def test_from_center():
    assert Viewport.from_center(-0.5, 0.0, 1.5, 1.5) == Viewport(-2.0, 1.0, -1.5, 1.5)


def test_viewport_is_immutable():
    view = Viewport(-2.0, 1.0, -1.5, 1.5)
    with pytest.raises(AttributeError):
        view.left = 0.0


def test_validate_returns_self():
    view = Viewport(-2.0, 1.0, -1.5, 1.5)
    assert view.validate() is view


@pytest.mark.parametrize("edges", [
    (1.0, 1.0, 0.0, 1.0),
    (2.0, 1.0, 0.0, 1.0),
    (0.0, 1.0, 1.0, 1.0),
    (0.0, 1.0, 2.0, 1.0),
    (0.0, float("nan"), 0.0, 1.0),
    (float("-inf"), 1.0, 0.0, 1.0),
])
def test_validate_rejects(edges):
    with pytest.raises(InvalidConfigurationError):
        Viewport(*edges).validate()


def test_recentered_keeps_size():
    moved = INITIAL.recentered(0.3, -0.4)
    assert moved.width == pytest.approx(INITIAL.width)
    assert moved.height == pytest.approx(INITIAL.height)
    assert moved.center == pytest.approx((0.3, -0.4))


def test_zoomed_scales_around_center():
    zoomed = INITIAL.zoomed(2.0)
    assert zoomed.width == pytest.approx(INITIAL.width / 2)
    assert zoomed.height == pytest.approx(INITIAL.height / 2)
    assert zoomed.center == pytest.approx(INITIAL.center)

    widened = INITIAL.zoomed(0.5)
    assert widened.width == pytest.approx(INITIAL.width * 2)


class TestViewState:

    def test_updates_replace_viewport(self):
        state = ViewState(INITIAL)
        before = state.viewport
        after = state.zoom_in()
        assert state.viewport is after
        assert before == INITIAL
        assert state.version == 1

    def test_zoom_in_then_out_restores_size(self):
        state = ViewState(INITIAL, zoom_inc=2.0)
        state.zoom_in()
        state.zoom_in()
        state.zoom_out()
        restored = state.zoom_out()
        assert tuple(restored) == pytest.approx(tuple(INITIAL))

    def test_zoom_step_is_configurable(self):
        state = ViewState(INITIAL, zoom_inc=4.0)
        assert state.zoom_in().width == pytest.approx(INITIAL.width / 4)

    def test_reset(self):
        state = ViewState(INITIAL)
        state.recenter(0.25, 0.5)
        state.zoom_in()
        assert state.reset() == INITIAL
        assert state.version == 3

    def test_click_at_raster_centre_keeps_view(self):
        state = ViewState(INITIAL)
        moved = state.click(640, 360, 1280, 720)
        assert tuple(moved) == pytest.approx(tuple(INITIAL))

    def test_click_recentres_on_pixel(self):
        state = ViewState(INITIAL)
        moved = state.click(0, 0, 1280, 720)
        assert moved.center == pytest.approx((INITIAL.left, INITIAL.bottom))
        assert moved.width == pytest.approx(INITIAL.width)

    def test_invalid_update_leaves_state(self):
        state = ViewState(INITIAL, zoom_inc=1e308)
        with pytest.raises(InvalidConfigurationError):
            state.zoom_in()
        assert state.viewport == INITIAL
        assert state.version == 0

    def test_rejects_invalid_initial_viewport(self):
        with pytest.raises(InvalidConfigurationError):
            ViewState((1.0, 0.0, 0.0, 1.0))

    def test_concurrent_zooms_are_not_lost(self):
        state = ViewState(INITIAL, zoom_inc=2.0)
        workers, steps = 8, 5

        def zoom_repeatedly():
            for _ in range(steps):
                state.zoom_in()

        threads = [threading.Thread(target=zoom_repeatedly) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert state.version == workers * steps
        assert state.viewport.width == pytest.approx(INITIAL.width / 2 ** (workers * steps))
        assert state.viewport.center == pytest.approx(INITIAL.center)
