"""Numeric analysis of registered expressions.

Includes sampling, central-difference derivatives, trapezoidal integration,
bisection root finding, extrema search and descriptive statistics. Every
operation addresses an expression by its slot index in an
:class:`~funcplot.expression_engine.ExpressionEngine`.

Failure conventions
-------------------
- A slot without a valid expression raises
  :class:`~funcplot.errors.UndefinedSlotError` before any work is done.
- Argument contract violations raise
  :class:`~funcplot.errors.InvalidArgumentError`.
- Per-element operations (``sample``, ``derivative``, ``statistics``) turn
  evaluation failures into NaN entries.
- Scalar results (``integral``, ``find_root``) are NaN when evaluation fails,
  the interval does not bracket a root or bisection does not converge.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

import numpy as np

from .defaults import FALLBACK_Y_RANGE, FLAT_SPAN_PADDING, AnalysisOptions
from .errors import (
    EvaluationError,
    InvalidArgumentError,
    NonConvergenceError,
    NoSignChangeError,
)
from .expression_engine import ExpressionEngine
from .InputConvert import InputConvert
from .numpify import CompiledExpression

__all__ = [
    "FunctionStatistics",
    "NumericAnalyzer",
    "SampleSeries",
    "bisect",
    "generate_x_values",
]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class SampleSeries:
    """Equal-length domain/range arrays; undefined samples are NaN.

    Parameters
    ----------
    x : numpy.ndarray
        Sample locations.
    y : numpy.ndarray
        Function values, NaN where undefined or non-finite.
    """

    x: np.ndarray
    y: np.ndarray

    def __post_init__(self) -> None:
        x = np.asarray(self.x, dtype=float)
        y = np.asarray(self.y, dtype=float)
        if x.ndim != 1 or y.ndim != 1:
            raise InvalidArgumentError("SampleSeries arrays must be one-dimensional")
        if x.shape != y.shape:
            raise InvalidArgumentError(
                f"SampleSeries arrays differ in length: {x.shape[0]} != {y.shape[0]}"
            )
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    def __len__(self) -> int:
        return int(self.x.shape[0])

    @property
    def finite_mask(self) -> np.ndarray:
        """Boolean mask of samples whose x and y are both finite."""
        return np.isfinite(self.x) & np.isfinite(self.y)

    @property
    def valid_count(self) -> int:
        return int(np.count_nonzero(self.finite_mask))


@dataclass(frozen=True)
class FunctionStatistics:
    """Descriptive statistics over the finite samples of a function."""

    min: float
    max: float
    mean: float
    stddev: float
    valid_count: int


def generate_x_values(x_min: float, x_max: float, points: int) -> np.ndarray:
    """Return ``points`` equally spaced values from ``x_min`` to ``x_max``.

    Raises
    ------
    InvalidArgumentError
        If ``points < 2`` or a bound is not a finite number.
    """
    points = _require_count(points, "points", minimum=2)
    lo = InputConvert(x_min, "x_min")
    hi = InputConvert(x_max, "x_max")
    return np.linspace(lo, hi, points)


def bisect(
    f: Callable[[float], float],
    a: float,
    b: float,
    tolerance: float,
    *,
    max_iterations: int = 100,
) -> float:
    """Locate a root of ``f`` inside ``[a, b]`` by bisection.

    The bracket is halved at most ``max_iterations`` times, keeping the half
    whose endpoints still differ in sign. Iteration stops when ``|f(c)|`` or
    the half-width of the bracket drops below ``tolerance``.

    Parameters
    ----------
    f : callable
        Scalar function; may raise :class:`~funcplot.errors.EvaluationError`.
    a, b : float
        Interval endpoints, in either order.
    tolerance : float
        Positive convergence threshold.
    max_iterations : int, optional
        Iteration budget.

    Returns
    -------
    float
        Approximate root.

    Raises
    ------
    NoSignChangeError
        If ``f(a)`` and ``f(b)`` have the same strict sign.
    NonConvergenceError
        If the budget is exhausted.
    EvaluationError
        Propagated from ``f``.
    """
    if b < a:
        a, b = b, a
    fa = f(a)
    if fa == 0.0:
        return a
    fb = f(b)
    if fb == 0.0:
        return b
    if fa * fb > 0:
        raise NoSignChangeError(f"f({a!r}) and f({b!r}) have the same sign")

    for _ in range(max_iterations):
        c = (a + b) / 2.0
        fc = f(c)
        if abs(fc) < tolerance or (b - a) / 2.0 < tolerance:
            return c
        if (fa < 0) != (fc < 0):
            b, fb = c, fc
        else:
            a, fa = c, fc

    raise NonConvergenceError(
        f"bisection did not converge within {max_iterations} iterations "
        f"(bracket [{a!r}, {b!r}])"
    )


class NumericAnalyzer:
    """Sampling and numerical analysis over an :class:`ExpressionEngine`.

    Parameters
    ----------
    engine : ExpressionEngine
        Source of compiled expressions.
    options : AnalysisOptions, optional
        Resolution, derivative step, bisection budget and tolerances.
    """

    def __init__(self, engine: ExpressionEngine, options: AnalysisOptions | None = None) -> None:
        self.engine = engine
        self.options = options or AnalysisOptions()

    def sample(self, index: int, x_min: float, x_max: float, points: int) -> SampleSeries:
        """Sample slot ``index`` at ``points`` equally spaced locations."""
        handle = self.engine.handle(index)
        xs = generate_x_values(x_min, x_max, points)
        return SampleSeries(xs, ExpressionEngine.evaluate_handle_range(handle, xs))

    def derivative(self, index: int, xs, h: float | None = None) -> np.ndarray:
        """Central-difference derivative ``(f(x+h) - f(x-h)) / (2h)`` at ``xs``.

        Points where either neighbour fails to evaluate are NaN.
        """
        handle = self.engine.handle(index)
        step = self._step(h)
        return self._derivative_values(handle, np.asarray(xs, dtype=float), step)

    def derivative_at(self, index: int, x: float, h: float | None = None) -> float:
        """Strict central-difference derivative at a single point.

        Raises the evaluation error of either neighbour.
        """
        handle = self.engine.handle(index)
        return self._derivative_point(handle, float(x), self._step(h))

    def integral(self, index: int, a: float, b: float, intervals: int) -> float:
        """Composite trapezoidal rule over ``[a, b]`` with ``intervals`` steps.

        Returns NaN if any of the ``intervals + 1`` evaluations fails.
        """
        handle = self.engine.handle(index)
        intervals = _require_count(intervals, "intervals", minimum=1)
        a = InputConvert(a, "a")
        b = InputConvert(b, "b")
        h = (b - a) / intervals
        xs = a + np.arange(intervals + 1, dtype=float) * h
        xs[-1] = b
        ys = ExpressionEngine.evaluate_handle_range(handle, xs)
        if np.isnan(ys).any():
            logger.debug(
                "integral of slot %d over [%r, %r]: %d failed evaluations",
                index, a, b, int(np.isnan(ys).sum()),
            )
            return math.nan
        return float(h * ((ys[0] + ys[-1]) / 2.0 + ys[1:-1].sum()))

    def find_root(self, index: int, a: float, b: float, tolerance: float) -> float:
        """Bisection root search inside ``[a, b]``.

        Returns NaN when ``f(a)`` and ``f(b)`` share a sign, when evaluation
        fails, or when the iteration cap is reached.

        Raises
        ------
        InvalidArgumentError
            If ``tolerance`` is not positive or a bound is not finite.
        """
        handle = self.engine.handle(index)
        tolerance = self._tolerance(tolerance)
        a = InputConvert(a, "a")
        b = InputConvert(b, "b")
        return self._bisect_or_nan(
            lambda t: ExpressionEngine.evaluate_handle(handle, t), a, b, tolerance
        )

    def find_extrema(self, index: int, x_min: float, x_max: float) -> np.ndarray:
        """Locate stationary points of slot ``index`` inside ``[x_min, x_max]``.

        The derivative is sampled at ``options.resolution`` points; each pair
        of neighbours whose derivative product is ``<= 0`` is refined by
        bisection on the derivative. Two sign changes between neighbouring
        coarse samples are not detected.
        """
        handle = self.engine.handle(index)
        xs = generate_x_values(x_min, x_max, self.options.resolution)
        step = self.options.derivative_step
        slope = self._derivative_values(handle, xs, step)

        def slope_at(t: float) -> float:
            return self._derivative_point(handle, t, step)

        spacing = abs(xs[1] - xs[0])
        found: list[float] = []
        for i in range(1, len(xs)):
            left, right = slope[i - 1], slope[i]
            if not (np.isfinite(left) and np.isfinite(right)) or left * right > 0:
                continue
            root = self._bisect_or_nan(slope_at, xs[i - 1], xs[i], self.options.extrema_tolerance)
            if math.isnan(root):
                continue
            if found and abs(root - found[-1]) < spacing / 2.0:
                continue
            found.append(root)
        return np.asarray(sorted(found), dtype=float)

    def statistics(self, index: int, x_min: float, x_max: float) -> FunctionStatistics:
        """Min, max, mean and population standard deviation of finite samples."""
        series = self.sample(index, x_min, x_max, self.options.resolution)
        ys = series.y[np.isfinite(series.y)]
        count = int(ys.size)
        if count == 0:
            return FunctionStatistics(math.nan, math.nan, math.nan, math.nan, 0)
        mean = float(ys.sum() / count)
        stddev = math.sqrt(float(((ys - mean) ** 2).sum() / count))
        return FunctionStatistics(
            min=float(ys.min()),
            max=float(ys.max()),
            mean=mean,
            stddev=stddev,
            valid_count=count,
        )

    def optimal_y_range(self, index: int, x_min: float, x_max: float) -> tuple[float, float]:
        """Suggest a y-range that shows slot ``index`` over ``[x_min, x_max]``.

        The finite sample range is padded by ``options.margin`` on each side.
        Flat functions get ``±1`` and functions without a finite sample get
        the fallback range ``(-5, 5)``.
        """
        series = self.sample(index, x_min, x_max, self.options.resolution)
        ys = series.y[np.isfinite(series.y)]
        if ys.size == 0:
            return FALLBACK_Y_RANGE
        lo, hi = float(ys.min()), float(ys.max())
        span = hi - lo
        if span < 1e-10:
            return lo - FLAT_SPAN_PADDING, hi + FLAT_SPAN_PADDING
        return lo - span * self.options.margin, hi + span * self.options.margin

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _bisect_or_nan(
        self, f: Callable[[float], float], a: float, b: float, tolerance: float
    ) -> float:
        try:
            root = bisect(f, a, b, tolerance, max_iterations=self.options.max_iterations)
        except (NoSignChangeError, NonConvergenceError, EvaluationError) as exc:
            logger.debug("root search on [%r, %r] failed: %s", a, b, exc)
            return math.nan
        return float(root)

    @staticmethod
    def _derivative_values(handle: CompiledExpression, xs: np.ndarray, h: float) -> np.ndarray:
        forward = ExpressionEngine.evaluate_handle_range(handle, xs + h)
        backward = ExpressionEngine.evaluate_handle_range(handle, xs - h)
        return (forward - backward) / (2.0 * h)

    @staticmethod
    def _derivative_point(handle: CompiledExpression, x: float, h: float) -> float:
        forward = ExpressionEngine.evaluate_handle(handle, x + h)
        backward = ExpressionEngine.evaluate_handle(handle, x - h)
        return (forward - backward) / (2.0 * h)

    def _step(self, h: float | None) -> float:
        if h is None:
            return self.options.derivative_step
        step = InputConvert(h, "h")
        if step <= 0:
            raise InvalidArgumentError(f"derivative step h must be > 0, got {step!r}")
        return step

    @staticmethod
    def _tolerance(tolerance: float) -> float:
        value = InputConvert(tolerance, "tolerance")
        if value <= 0:
            raise InvalidArgumentError(f"tolerance must be > 0, got {value!r}")
        return value


def _require_count(value: int, name: str, *, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgumentError(f"{name} must be an int, got {value!r}")
    if value < minimum:
        raise InvalidArgumentError(f"{name} must be >= {minimum}, got {value}")
    return int(value)
