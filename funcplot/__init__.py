"""Top-level public API for the ``funcplot`` package.

This module re-exports the plotting core so callers can import from a single
namespace, for example:

>>> from funcplot import ExpressionEngine, NumericAnalyzer, CoordinateMapper  # doctest: +SKIP

The three core components are usable on their own; ``PlotSession`` wires them
together for a renderer.
"""

from .coordinates import CoordinateMapper, Viewport
from .defaults import AnalysisOptions
from .errors import (
    DomainError,
    EvaluationError,
    ExpressionSyntaxError,
    FuncPlotError,
    InvalidArgumentError,
    NonConvergenceError,
    NoSignChangeError,
    UndefinedSlotError,
)
from .expression_engine import ExpressionEngine, InvalidSlot, ValidSlot
from .expression_parser import parse_expression
from .numeric_analysis import (
    FunctionStatistics,
    NumericAnalyzer,
    SampleSeries,
    bisect,
    generate_x_values,
)
from .numpify import CompiledExpression, numpify, numpify_cached
from .session import PlotSession

__all__ = [
    "AnalysisOptions",
    "CompiledExpression",
    "CoordinateMapper",
    "DomainError",
    "EvaluationError",
    "ExpressionEngine",
    "ExpressionSyntaxError",
    "FuncPlotError",
    "FunctionStatistics",
    "InvalidArgumentError",
    "InvalidSlot",
    "NoSignChangeError",
    "NonConvergenceError",
    "NumericAnalyzer",
    "PlotSession",
    "SampleSeries",
    "UndefinedSlotError",
    "ValidSlot",
    "Viewport",
    "bisect",
    "generate_x_values",
    "numpify",
    "numpify_cached",
    "parse_expression",
]
