"""Exception taxonomy shared by the expression, analysis and mapping layers.

Every exception derives from :class:`FuncPlotError` and additionally from the
closest built-in category so callers can catch either form:

- :class:`ExpressionSyntaxError` (``ValueError``) is captured per slot at
  compile time and never escapes ``ExpressionEngine.set_expression``.
- :class:`EvaluationError` (``RuntimeError``) and its subclasses
  :class:`UndefinedSlotError` and :class:`DomainError` are raised by
  single-point evaluation.
- :class:`NonConvergenceError` and :class:`NoSignChangeError` are raised by the
  pure bisection helper; the analyzer converts them into NaN.
- :class:`InvalidArgumentError` (``ValueError``) marks contract violations.
"""

from __future__ import annotations

__all__ = [
    "FuncPlotError",
    "ExpressionSyntaxError",
    "EvaluationError",
    "UndefinedSlotError",
    "DomainError",
    "NonConvergenceError",
    "InvalidArgumentError",
    "NoSignChangeError",
]


class FuncPlotError(Exception):
    """Base class for all errors raised by :mod:`funcplot`."""


class ExpressionSyntaxError(FuncPlotError, ValueError):
    """Raised when expression text cannot be parsed.

    Parameters
    ----------
    message : str
        Description of the problem.
    text : str
        The full expression text.
    position : int
        Zero-based character offset where the problem was detected.
    """

    def __init__(self, message: str, *, text: str = "", position: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.text = text
        self.position = position

    def __str__(self) -> str:
        return f"Syntax error at position {self.position}: {self.message}"


class EvaluationError(FuncPlotError, RuntimeError):
    """Raised when evaluating a compiled expression fails."""


class UndefinedSlotError(EvaluationError, LookupError):
    """Raised when a slot has no successfully compiled expression."""

    def __init__(self, index: int, reason: str = "") -> None:
        message = f"Slot {index} has no valid expression"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.index = index
        self.reason = reason


class DomainError(EvaluationError, ArithmeticError):
    """Raised when an operation is mathematically undefined at the input."""


class NonConvergenceError(FuncPlotError, ArithmeticError):
    """Raised when an iterative search exhausts its iteration budget."""


class InvalidArgumentError(FuncPlotError, ValueError):
    """Raised on caller contract violations (bad counts, ranges, factors)."""


class NoSignChangeError(InvalidArgumentError):
    """Raised when a root search interval does not bracket a sign change."""
