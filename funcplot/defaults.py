"""Default values and option bundles for the plotting core.

Everything here is a plain constant or a frozen dataclass; no configuration
files are read. Constructors and operations accept keyword overrides.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "DEFAULT_X_RANGE",
    "DEFAULT_Y_RANGE",
    "DEFAULT_SAMPLING_POINTS",
    "ANALYSIS_POINTS",
    "DERIVATIVE_STEP",
    "MAX_BISECTION_ITERATIONS",
    "EXTREMA_TOLERANCE",
    "AUTO_FIT_MARGIN",
    "FLAT_SPAN_PADDING",
    "FALLBACK_Y_RANGE",
    "MAX_SEGMENT_JUMP_PX",
    "AnalysisOptions",
]

DEFAULT_X_RANGE: tuple[float, float] = (-10.0, 10.0)
DEFAULT_Y_RANGE: tuple[float, float] = (-10.0, 10.0)
DEFAULT_SAMPLING_POINTS = 500

# Numeric analysis.
ANALYSIS_POINTS = 1000
DERIVATIVE_STEP = 1e-5
MAX_BISECTION_ITERATIONS = 100
EXTREMA_TOLERANCE = 1e-8

# Range fitting.
AUTO_FIT_MARGIN = 0.1
FLAT_SPAN_PADDING = 1.0
FALLBACK_Y_RANGE: tuple[float, float] = (-5.0, 5.0)

# Pixel distance above which consecutive curve points are not joined.
MAX_SEGMENT_JUMP_PX = 200.0


@dataclass(frozen=True)
class AnalysisOptions:
    """Tuning knobs for :class:`~funcplot.numeric_analysis.NumericAnalyzer`.

    Parameters
    ----------
    resolution : int, optional
        Sample count used by ``find_extrema``, ``statistics`` and
        ``optimal_y_range``.
    derivative_step : float, optional
        Default central-difference step ``h``.
    max_iterations : int, optional
        Bisection iteration cap.
    extrema_tolerance : float, optional
        Bisection tolerance used when refining stationary points.
    margin : float, optional
        Relative padding applied by ``optimal_y_range``.
    """

    resolution: int = ANALYSIS_POINTS
    derivative_step: float = DERIVATIVE_STEP
    max_iterations: int = MAX_BISECTION_ITERATIONS
    extrema_tolerance: float = EXTREMA_TOLERANCE
    margin: float = AUTO_FIT_MARGIN

    def __post_init__(self) -> None:
        """Validate option values."""
        if self.resolution < 2:
            raise ValueError("resolution must be >= 2")
        if not self.derivative_step > 0:
            raise ValueError("derivative_step must be > 0")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        if not self.extrema_tolerance > 0:
            raise ValueError("extrema_tolerance must be > 0")
        if self.margin < 0:
            raise ValueError("margin must be >= 0")
