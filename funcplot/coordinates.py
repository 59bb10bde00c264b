"""Math-space ↔ screen-space mapping over an explicit viewport.

Purpose
-------
This module defines ``Viewport``, the mutable state of one plot area (visible
math range plus screen size and the derived scale factors), and the pure
mapping functions that take a viewport explicitly. ``CoordinateMapper`` binds
one viewport and exposes the same operations as methods.

Conventions
-----------
Screen origin is the top-left corner and screen y grows downwards; math y
grows upwards::

    screen_x = (x - x_min) * x_scale
    screen_y = screen_height - (y - y_min) * y_scale

Screen coordinates are rounded to the nearest pixel, so a round trip through
``to_screen_*`` and ``to_math_*`` is accurate to half a pixel.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Union

import numpy as np

from .defaults import (
    AUTO_FIT_MARGIN,
    DEFAULT_X_RANGE,
    DEFAULT_Y_RANGE,
    FLAT_SPAN_PADDING,
    MAX_SEGMENT_JUMP_PX,
)
from .errors import InvalidArgumentError
from .InputConvert import InputConvert
from .numeric_analysis import SampleSeries

__all__ = [
    "CoordinateMapper",
    "Viewport",
    "auto_fit",
    "grid_ticks",
    "is_visible",
    "pan",
    "screen_segments",
    "to_math_x",
    "to_math_y",
    "to_screen_x",
    "to_screen_y",
    "zoom",
]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

SeriesLike = Union[SampleSeries, Iterable[SampleSeries]]
ScreenPoint = tuple[int, int]


@dataclass
class Viewport:
    """Visible math range, screen size and derived scale factors.

    Parameters
    ----------
    x_min, x_max, y_min, y_max : float
        Visible math range; ``x_max > x_min`` and ``y_max > y_min``.
    screen_width, screen_height : int
        Pixel size of the drawing surface. ``0`` means "not set yet"; mapping
        queries require both to be positive.

    Notes
    -----
    ``x_scale``/``y_scale`` are recomputed by ``set_range`` and
    ``set_screen_size``. Mutate the viewport only through those methods.
    """

    x_min: float = DEFAULT_X_RANGE[0]
    x_max: float = DEFAULT_X_RANGE[1]
    y_min: float = DEFAULT_Y_RANGE[0]
    y_max: float = DEFAULT_Y_RANGE[1]
    screen_width: int = 0
    screen_height: int = 0
    x_scale: float = field(init=False, default=0.0)
    y_scale: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        self.set_range(self.x_min, self.x_max, self.y_min, self.y_max)
        if self.screen_width or self.screen_height:
            self.set_screen_size(self.screen_width, self.screen_height)

    @property
    def x_range(self) -> tuple[float, float]:
        return (self.x_min, self.x_max)

    @property
    def y_range(self) -> tuple[float, float]:
        return (self.y_min, self.y_max)

    @property
    def has_screen(self) -> bool:
        """Whether a positive screen size has been set."""
        return self.screen_width > 0 and self.screen_height > 0

    def set_range(self, x_min, x_max, y_min, y_max) -> None:
        """Replace the visible range and recompute the scales.

        Bounds may be numbers or constant expression strings (``"-2*pi"``).

        Raises
        ------
        InvalidArgumentError
            If a bound is not finite or a span is not positive. The viewport
            is left unchanged.
        """
        x0 = InputConvert(x_min, "x_min")
        x1 = InputConvert(x_max, "x_max")
        y0 = InputConvert(y_min, "y_min")
        y1 = InputConvert(y_max, "y_max")
        if not x1 > x0:
            raise InvalidArgumentError(f"x range is degenerate: x_max={x1!r} <= x_min={x0!r}")
        if not y1 > y0:
            raise InvalidArgumentError(f"y range is degenerate: y_max={y1!r} <= y_min={y0!r}")
        self.x_min, self.x_max, self.y_min, self.y_max = x0, x1, y0, y1
        self._update_scales()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("viewport range x=%s y=%s", self.x_range, self.y_range)

    def set_screen_size(self, width: int, height: int) -> None:
        """Set the pixel size of the drawing surface and recompute the scales."""
        w = _require_pixels(width, "width")
        h = _require_pixels(height, "height")
        self.screen_width, self.screen_height = w, h
        self._update_scales()

    def copy(self) -> "Viewport":
        return Viewport(
            self.x_min, self.x_max, self.y_min, self.y_max,
            self.screen_width, self.screen_height,
        )

    def _update_scales(self) -> None:
        self.x_scale = self.screen_width / (self.x_max - self.x_min)
        self.y_scale = self.screen_height / (self.y_max - self.y_min)


def _require_pixels(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgumentError(f"screen {name} must be an int, got {value!r}")
    if value <= 0:
        raise InvalidArgumentError(f"screen {name} must be > 0, got {value}")
    return int(value)


def _require_screen(viewport: Viewport) -> None:
    if not viewport.has_screen:
        raise InvalidArgumentError("screen size must be set before mapping coordinates")


def _finite(value: float, name: str) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise InvalidArgumentError(f"{name} must be finite, got {value!r}")
    return value


# ---------------------------------------------------------------------------
# Point mapping
# ---------------------------------------------------------------------------


def to_screen_x(viewport: Viewport, math_x: float) -> int:
    """Map a math x coordinate to a screen column."""
    _require_screen(viewport)
    math_x = _finite(math_x, "math_x")
    return int(round((math_x - viewport.x_min) * viewport.x_scale))


def to_screen_y(viewport: Viewport, math_y: float) -> int:
    """Map a math y coordinate to a screen row (y axis flipped)."""
    _require_screen(viewport)
    math_y = _finite(math_y, "math_y")
    return int(round(viewport.screen_height - (math_y - viewport.y_min) * viewport.y_scale))


def to_math_x(viewport: Viewport, screen_x: float) -> float:
    """Inverse of :func:`to_screen_x`."""
    _require_screen(viewport)
    return viewport.x_min + float(screen_x) / viewport.x_scale


def to_math_y(viewport: Viewport, screen_y: float) -> float:
    """Inverse of :func:`to_screen_y`."""
    _require_screen(viewport)
    return viewport.y_min + (viewport.screen_height - float(screen_y)) / viewport.y_scale


def is_visible(viewport: Viewport, math_x: float, math_y: float) -> bool:
    """Return True when ``(math_x, math_y)`` lies inside the range (inclusive)."""
    return (
        viewport.x_min <= math_x <= viewport.x_max
        and viewport.y_min <= math_y <= viewport.y_max
    )


# ---------------------------------------------------------------------------
# Range operations
# ---------------------------------------------------------------------------


def _iter_series(series: SeriesLike) -> list[SampleSeries]:
    if isinstance(series, SampleSeries):
        return [series]
    items = list(series)
    for item in items:
        if not isinstance(item, SampleSeries):
            raise InvalidArgumentError(
                f"auto_fit expects SampleSeries objects, got {type(item).__name__}"
            )
    return items


def _padded(lo: float, hi: float, margin: float) -> tuple[float, float]:
    if hi - lo <= 0:
        lo, hi = lo - FLAT_SPAN_PADDING, hi + FLAT_SPAN_PADDING
    pad = (hi - lo) * margin
    return lo - pad, hi + pad


def auto_fit(viewport: Viewport, series: SeriesLike, *, margin: float = AUTO_FIT_MARGIN) -> bool:
    """Fit the viewport range to every finite sample in ``series``.

    The bounding box of points whose x and y are both finite is expanded by
    ``margin`` (a fraction of the span) on each side. An axis whose samples
    all share one value is first widened by ``±1``.

    Returns
    -------
    bool
        ``True`` if the range changed; ``False`` when no finite sample exists
        (the viewport is left untouched).
    """
    xs: list[np.ndarray] = []
    ys: list[np.ndarray] = []
    for item in _iter_series(series):
        mask = item.finite_mask
        xs.append(item.x[mask])
        ys.append(item.y[mask])

    all_x = np.concatenate(xs) if xs else np.empty(0)
    all_y = np.concatenate(ys) if ys else np.empty(0)
    if all_x.size == 0:
        logger.debug("auto_fit: no finite samples; range unchanged")
        return False

    x0, x1 = _padded(float(all_x.min()), float(all_x.max()), margin)
    y0, y1 = _padded(float(all_y.min()), float(all_y.max()), margin)
    viewport.set_range(x0, x1, y0, y1)
    return True


def pan(viewport: Viewport, dx_fraction: float, dy_fraction: float) -> None:
    """Shift the range by a fraction of the visible span on each axis."""
    dx = _finite(dx_fraction, "dx_fraction") * (viewport.x_max - viewport.x_min)
    dy = _finite(dy_fraction, "dy_fraction") * (viewport.y_max - viewport.y_min)
    viewport.set_range(
        viewport.x_min + dx,
        viewport.x_max + dx,
        viewport.y_min + dy,
        viewport.y_max + dy,
    )


def zoom(viewport: Viewport, factor: float, center_x: float, center_y: float) -> None:
    """Scale the spans by ``1 / factor`` around ``(center_x, center_y)``.

    ``factor > 1`` zooms in, ``0 < factor < 1`` zooms out.

    Raises
    ------
    InvalidArgumentError
        If ``factor`` is not a positive finite number.
    """
    factor = InputConvert(factor, "zoom factor")
    if factor <= 0:
        raise InvalidArgumentError(f"zoom factor must be > 0, got {factor!r}")
    cx = InputConvert(center_x, "center_x")
    cy = InputConvert(center_y, "center_y")
    half_w = (viewport.x_max - viewport.x_min) / factor / 2.0
    half_h = (viewport.y_max - viewport.y_min) / factor / 2.0
    viewport.set_range(cx - half_w, cx + half_w, cy - half_h, cy + half_h)


# ---------------------------------------------------------------------------
# Renderer helpers
# ---------------------------------------------------------------------------


def grid_ticks(viewport: Viewport, spacing: float = 1.0) -> tuple[list[float], list[float]]:
    """Math positions of grid lines inside the range, excluding the axes at 0.

    Returns
    -------
    tuple[list[float], list[float]]
        Vertical line x positions and horizontal line y positions.
    """
    spacing = InputConvert(spacing, "spacing")
    if spacing <= 0:
        raise InvalidArgumentError(f"grid spacing must be > 0, got {spacing!r}")

    def _ticks(lo: float, hi: float) -> list[float]:
        start = math.ceil(lo / spacing)
        stop = math.floor(hi / spacing)
        return [k * spacing for k in range(start, stop + 1) if k != 0]

    return _ticks(viewport.x_min, viewport.x_max), _ticks(viewport.y_min, viewport.y_max)


def screen_segments(
    viewport: Viewport,
    series: SampleSeries,
    *,
    max_jump: float = MAX_SEGMENT_JUMP_PX,
) -> list[list[ScreenPoint]]:
    """Convert a series into pixel polylines for a renderer.

    A new segment starts after any non-finite or invisible sample and
    whenever two consecutive pixels are more than ``max_jump`` apart (a jump
    across a pole such as ``tan`` at ``pi/2``).
    """
    _require_screen(viewport)
    segments: list[list[ScreenPoint]] = []
    current: list[ScreenPoint] = []
    for x, y in zip(series.x, series.y):
        if not (math.isfinite(x) and math.isfinite(y)) or not is_visible(viewport, x, y):
            if current:
                segments.append(current)
                current = []
            continue
        point = (to_screen_x(viewport, x), to_screen_y(viewport, y))
        if current:
            last = current[-1]
            if math.hypot(point[0] - last[0], point[1] - last[1]) > max_jump:
                segments.append(current)
                current = []
        current.append(point)
    if current:
        segments.append(current)
    return segments


class CoordinateMapper:
    """Convenience binding of the mapping functions to one :class:`Viewport`.

    Examples
    --------
    >>> mapper = CoordinateMapper()
    >>> mapper.set_screen_size(800, 600)
    >>> mapper.to_screen_x(0.0), mapper.to_screen_y(0.0)
    (400, 300)
    """

    def __init__(self, viewport: Viewport | None = None) -> None:
        self.viewport = viewport if viewport is not None else Viewport()
        self._default_range = self.viewport.x_range + self.viewport.y_range

    def set_range(self, x_min, x_max, y_min, y_max) -> None:
        self.viewport.set_range(x_min, x_max, y_min, y_max)

    def set_screen_size(self, width: int, height: int) -> None:
        self.viewport.set_screen_size(width, height)

    def reset(self) -> None:
        """Restore the range the mapper was created with."""
        self.viewport.set_range(*self._default_range)

    def to_screen_x(self, math_x: float) -> int:
        return to_screen_x(self.viewport, math_x)

    def to_screen_y(self, math_y: float) -> int:
        return to_screen_y(self.viewport, math_y)

    def to_math_x(self, screen_x: float) -> float:
        return to_math_x(self.viewport, screen_x)

    def to_math_y(self, screen_y: float) -> float:
        return to_math_y(self.viewport, screen_y)

    def is_visible(self, math_x: float, math_y: float) -> bool:
        return is_visible(self.viewport, math_x, math_y)

    def origin_screen_point(self) -> ScreenPoint:
        """Screen position of the math origin (may lie off screen)."""
        return (self.to_screen_x(0.0), self.to_screen_y(0.0))

    def auto_fit(self, series: SeriesLike, *, margin: float = AUTO_FIT_MARGIN) -> bool:
        return auto_fit(self.viewport, series, margin=margin)

    def pan(self, dx_fraction: float, dy_fraction: float) -> None:
        pan(self.viewport, dx_fraction, dy_fraction)

    def zoom(self, factor: float, center_x: float, center_y: float) -> None:
        zoom(self.viewport, factor, center_x, center_y)

    def zoom_at_screen(self, factor: float, screen_x: float, screen_y: float) -> None:
        """Zoom around the math point under a screen position (pinch/wheel)."""
        zoom(self.viewport, factor, self.to_math_x(screen_x), self.to_math_y(screen_y))

    def grid_ticks(self, spacing: float = 1.0) -> tuple[list[float], list[float]]:
        return grid_ticks(self.viewport, spacing)

    def screen_segments(
        self, series: SampleSeries, *, max_jump: float = MAX_SEGMENT_JUMP_PX
    ) -> list[list[ScreenPoint]]:
        return screen_segments(self.viewport, series, max_jump=max_jump)
