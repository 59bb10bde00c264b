"""Orchestrator tying expressions, analysis and the viewport together.

``PlotSession`` is the single object an external renderer talks to. It owns
one :class:`~funcplot.expression_engine.ExpressionEngine`, one
:class:`~funcplot.numeric_analysis.NumericAnalyzer` and one
:class:`~funcplot.coordinates.CoordinateMapper`, and follows the usual flow:

1. register text in a slot (``set_expression``),
2. sample it over the visible x range (``series``),
3. convert the samples to pixels (``screen_segments``) or fit the view to
   them (``auto_fit``).

It performs no drawing and holds no presentation state.

Logging
-------
Uses the module logger ``funcplot.session`` (silent by default). ``DEBUG``
records every registration, fit and viewport gesture.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .coordinates import CoordinateMapper, ScreenPoint, Viewport
from .defaults import AUTO_FIT_MARGIN, DEFAULT_SAMPLING_POINTS, AnalysisOptions
from .expression_engine import ExpressionEngine
from .numeric_analysis import NumericAnalyzer, SampleSeries

__all__ = ["PlotSession"]


# Module logger
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class PlotSession:
    """One interactive plot: expression slots plus a shared viewport.

    Parameters
    ----------
    viewport : Viewport, optional
        Initial viewport. Defaults to ``x, y in [-10, 10]`` with no screen
        size; call :meth:`resize` before asking for pixels.
    sampling_points : int, optional
        Samples per curve used by :meth:`series`.
    options : AnalysisOptions, optional
        Analyzer tuning.

    Examples
    --------
    >>> session = PlotSession()
    >>> session.resize(800, 600)
    >>> session.set_expression(0, "sin(x)")
    True
    >>> segments = session.screen_segments(0)
    """

    def __init__(
        self,
        viewport: Optional[Viewport] = None,
        *,
        sampling_points: int = DEFAULT_SAMPLING_POINTS,
        options: Optional[AnalysisOptions] = None,
    ) -> None:
        self.engine = ExpressionEngine()
        self.analyzer = NumericAnalyzer(self.engine, options)
        self.mapper = CoordinateMapper(viewport)
        self.sampling_points = sampling_points

    @property
    def viewport(self) -> Viewport:
        return self.mapper.viewport

    def set_expression(self, slot: int, text: str) -> bool:
        """Register ``text`` in ``slot``; see :meth:`ExpressionEngine.set_expression`."""
        ok = self.engine.set_expression(slot, text)
        if not ok:
            logger.info("slot %d invalid: %s", slot, self.engine.get_diagnostic(slot))
        return ok

    def valid_slots(self) -> list[int]:
        return [i for i in range(self.engine.function_count) if self.engine.is_valid(i)]

    def series(self, slot: int, points: Optional[int] = None) -> SampleSeries:
        """Sample ``slot`` across the current visible x range."""
        vp = self.viewport
        return self.analyzer.sample(slot, vp.x_min, vp.x_max, points or self.sampling_points)

    def screen_segments(self, slot: int, points: Optional[int] = None) -> list[list[ScreenPoint]]:
        """Pixel polylines for ``slot`` in the current viewport."""
        return self.mapper.screen_segments(self.series(slot, points))

    def auto_fit(
        self,
        slots: Optional[Iterable[int]] = None,
        *,
        margin: float = AUTO_FIT_MARGIN,
    ) -> bool:
        """Fit the viewport to the given slots (all valid slots when ``None``).

        Returns ``False`` and leaves the viewport alone when nothing finite
        was sampled.
        """
        targets = list(slots) if slots is not None else self.valid_slots()
        changed = self.mapper.auto_fit([self.series(i) for i in targets], margin=margin)
        logger.debug("auto_fit slots=%s changed=%s x=%s y=%s",
                     targets, changed, self.viewport.x_range, self.viewport.y_range)
        return changed

    def resize(self, width: int, height: int) -> None:
        self.mapper.set_screen_size(width, height)

    def pan(self, dx_fraction: float, dy_fraction: float) -> None:
        self.mapper.pan(dx_fraction, dy_fraction)
        logger.debug("pan(%r, %r) -> x=%s", dx_fraction, dy_fraction, self.viewport.x_range)

    def zoom(self, factor: float, center_x: float, center_y: float) -> None:
        self.mapper.zoom(factor, center_x, center_y)
        logger.debug("zoom(%r) -> x=%s y=%s", factor, self.viewport.x_range, self.viewport.y_range)

    def reset_view(self) -> None:
        self.mapper.reset()

    def clear(self, slot: int) -> None:
        self.engine.clear(slot)

    def clear_all(self) -> None:
        self.engine.clear_all()
