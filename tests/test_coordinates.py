from __future__ import annotations

import math

import numpy as np
import pytest

from funcplot.coordinates import (
    CoordinateMapper,
    Viewport,
    auto_fit,
    grid_ticks,
    is_visible,
    pan,
    screen_segments,
    to_math_x,
    to_math_y,
    to_screen_x,
    to_screen_y,
    zoom,
)
from funcplot.errors import InvalidArgumentError
from funcplot.numeric_analysis import SampleSeries


@pytest.fixture
def viewport() -> Viewport:
    return Viewport(screen_width=800, screen_height=600)


def test_default_viewport() -> None:
    vp = Viewport()

    assert vp.x_range == (-10.0, 10.0)
    assert vp.y_range == (-10.0, 10.0)
    assert not vp.has_screen
    with pytest.raises(InvalidArgumentError, match="screen size"):
        to_screen_x(vp, 0.0)


def test_scales_follow_range_and_screen(viewport: Viewport) -> None:
    assert viewport.x_scale == pytest.approx(40.0)
    assert viewport.y_scale == pytest.approx(30.0)


def test_origin_maps_to_screen_centre(viewport: Viewport) -> None:
    assert to_screen_x(viewport, 0.0) == 400
    assert to_screen_y(viewport, 0.0) == 300
    assert to_screen_x(viewport, -10.0) == 0
    assert to_screen_y(viewport, 10.0) == 0
    assert to_screen_y(viewport, -10.0) == 600


def test_screen_to_math(viewport: Viewport) -> None:
    assert to_math_x(viewport, 400) == pytest.approx(0.0)
    assert to_math_y(viewport, 300) == pytest.approx(0.0)
    assert to_math_x(viewport, 800) == pytest.approx(10.0)
    assert to_math_y(viewport, 0) == pytest.approx(10.0)


def test_non_finite_math_coordinate_is_rejected(viewport: Viewport) -> None:
    with pytest.raises(InvalidArgumentError):
        to_screen_x(viewport, math.nan)
    with pytest.raises(InvalidArgumentError):
        to_screen_y(viewport, math.inf)


def test_set_range_accepts_constant_expressions(viewport: Viewport) -> None:
    viewport.set_range("-2*pi", "2*pi", -1, 1)

    assert viewport.x_range == (pytest.approx(-2 * math.pi), pytest.approx(2 * math.pi))
    assert viewport.x_scale == pytest.approx(800 / (4 * math.pi))


@pytest.mark.parametrize(
    "bounds",
    [
        (1.0, 1.0, -1.0, 1.0),
        (2.0, 1.0, -1.0, 1.0),
        (-1.0, 1.0, 3.0, -3.0),
        (-1.0, math.inf, -1.0, 1.0),
        ("a", 1.0, -1.0, 1.0),
    ],
)
def test_invalid_range_leaves_viewport_unchanged(viewport: Viewport, bounds) -> None:
    with pytest.raises(InvalidArgumentError):
        viewport.set_range(*bounds)
    assert viewport.x_range == (-10.0, 10.0)
    assert viewport.y_range == (-10.0, 10.0)


@pytest.mark.parametrize("size", [(0, 600), (800, -1), (800.0, 600)])
def test_invalid_screen_size_is_rejected(viewport: Viewport, size) -> None:
    with pytest.raises(InvalidArgumentError):
        viewport.set_screen_size(*size)
    assert (viewport.screen_width, viewport.screen_height) == (800, 600)


def test_copy_is_independent(viewport: Viewport) -> None:
    clone = viewport.copy()
    clone.set_range(0, 1, 0, 1)

    assert viewport.x_range == (-10.0, 10.0)
    assert clone.screen_width == 800


def test_is_visible_is_inclusive(viewport: Viewport) -> None:
    assert is_visible(viewport, 10.0, -10.0)
    assert is_visible(viewport, 0.0, 0.0)
    assert not is_visible(viewport, 10.5, 0.0)


def test_pan_then_inverse_pan_restores_range(viewport: Viewport) -> None:
    pan(viewport, 0.5, -0.25)
    assert viewport.x_range == (0.0, 20.0)
    assert viewport.y_range == (-15.0, 5.0)

    pan(viewport, -0.5, 0.25)
    assert viewport.x_range == (-10.0, 10.0)
    assert viewport.y_range == (-10.0, 10.0)


def test_zoom_in_around_point(viewport: Viewport) -> None:
    zoom(viewport, 2.0, 0.0, 0.0)
    assert viewport.x_range == (-5.0, 5.0)
    assert viewport.y_range == (-5.0, 5.0)

    zoom(viewport, 0.5, 1.0, 1.0)
    assert viewport.x_range == (-9.0, 11.0)


@pytest.mark.parametrize("factor", [0.0, -2.0, math.nan])
def test_zoom_rejects_non_positive_factor(viewport: Viewport, factor) -> None:
    with pytest.raises(InvalidArgumentError):
        zoom(viewport, factor, 0.0, 0.0)
    assert viewport.x_range == (-10.0, 10.0)


def test_auto_fit_pads_bounding_box(viewport: Viewport) -> None:
    series = SampleSeries([0.0, 5.0, 10.0], [1.0, math.nan, 11.0])

    assert auto_fit(viewport, series) is True
    assert viewport.x_range == (pytest.approx(-1.0), pytest.approx(11.0))
    assert viewport.y_range == (pytest.approx(0.0), pytest.approx(12.0))


def test_auto_fit_without_finite_samples_is_a_no_op(viewport: Viewport) -> None:
    series = SampleSeries([0.0, 1.0], [math.nan, math.nan])

    assert auto_fit(viewport, series) is False
    assert viewport.x_range == (-10.0, 10.0)
    assert viewport.y_range == (-10.0, 10.0)


def test_auto_fit_widens_flat_axis(viewport: Viewport) -> None:
    series = SampleSeries([-1.0, 1.0], [3.0, 3.0])

    assert auto_fit(viewport, series, margin=0.0)
    assert viewport.y_range == (2.0, 4.0)


def test_auto_fit_combines_several_series(viewport: Viewport) -> None:
    first = SampleSeries([0.0, 1.0], [0.0, 1.0])
    second = SampleSeries([2.0, 3.0], [-1.0, 5.0])

    assert auto_fit(viewport, [first, second], margin=0.0)
    assert viewport.x_range == (0.0, 3.0)
    assert viewport.y_range == (-1.0, 5.0)


def test_auto_fit_rejects_foreign_objects(viewport: Viewport) -> None:
    with pytest.raises(InvalidArgumentError):
        auto_fit(viewport, [np.zeros(3)])  # type: ignore[list-item]


def test_grid_ticks_skip_axes(viewport: Viewport) -> None:
    xs, ys = grid_ticks(viewport, 5.0)

    assert xs == [-10.0, -5.0, 5.0, 10.0]
    assert ys == [-10.0, -5.0, 5.0, 10.0]
    with pytest.raises(InvalidArgumentError):
        grid_ticks(viewport, 0.0)


def test_screen_segments_break_on_gaps_and_invisible_points(viewport: Viewport) -> None:
    series = SampleSeries([-1.0, 0.0, 1.0, 2.0, 3.0], [0.0, math.nan, 0.0, 0.0, 50.0])

    segments = screen_segments(viewport, series)

    assert segments == [[(360, 300)], [(440, 300), (480, 300)]]


def test_screen_segments_break_on_large_jumps(viewport: Viewport) -> None:
    series = SampleSeries([0.0, 0.1, 0.2], [-9.0, 9.0, 9.0])

    segments = screen_segments(viewport, series)

    assert len(segments) == 2
    assert len(segments[1]) == 2
    assert len(screen_segments(viewport, series, max_jump=1000.0)) == 1


def test_mapper_delegates_to_viewport() -> None:
    mapper = CoordinateMapper()
    mapper.set_screen_size(800, 600)

    assert (mapper.to_screen_x(0.0), mapper.to_screen_y(0.0)) == (400, 300)
    assert mapper.origin_screen_point() == (400, 300)
    assert mapper.is_visible(1.0, 1.0)

    mapper.set_range(0, 20, 0, 20)
    assert mapper.origin_screen_point() == (0, 600)
    assert mapper.grid_ticks(10.0) == ([10.0, 20.0], [10.0, 20.0])

    mapper.reset()
    assert mapper.viewport.x_range == (-10.0, 10.0)


def test_mapper_zoom_at_screen_keeps_point_fixed() -> None:
    mapper = CoordinateMapper(Viewport(screen_width=800, screen_height=600))
    before = (mapper.to_math_x(600), mapper.to_math_y(150))

    mapper.zoom_at_screen(2.0, 600, 150)

    assert mapper.viewport.x_range == (pytest.approx(0.0), pytest.approx(10.0))
    assert mapper.viewport.y_range == (pytest.approx(0.0), pytest.approx(10.0))
    assert (mapper.to_math_x(400), mapper.to_math_y(300)) == (
        pytest.approx(before[0]),
        pytest.approx(before[1]),
    )


def test_small_pan_and_its_inverse_restore_range_exactly() -> None:
    vp = Viewport(screen_width=800, screen_height=600)
    pan(vp, 0.1, 0.0)
    assert vp.x_range == (-8.0, 12.0)
    pan(vp, -0.1, 0.0)
    assert vp.x_range == (-10.0, 10.0)
    assert vp.y_range == (-10.0, 10.0)


def test_repeated_configuration_gives_identical_scales(viewport: Viewport) -> None:
    viewport.set_range(-3, 7, -1, 4)
    viewport.set_screen_size(1024, 768)
    scales = (viewport.x_scale, viewport.y_scale)

    viewport.set_range(-3, 7, -1, 4)
    viewport.set_screen_size(1024, 768)
    assert (viewport.x_scale, viewport.y_scale) == scales
