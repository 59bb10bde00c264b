"""Slot-based registry of compiled expressions.

Purpose
-------
``ExpressionEngine`` turns expression text into compiled handles and keeps one
record per integer slot. Each record is either a :class:`ValidSlot` (compiled
handle, no diagnostic) or an :class:`InvalidSlot` (diagnostic, no handle), so
the two states cannot drift apart.

Compilation is separate from evaluation: ``set_expression`` parses and
compiles once, and every later ``evaluate`` / ``evaluate_range`` call goes
straight to the generated NumPy function.

Evaluation policy
-----------------
``evaluate`` is strict. NumPy floating point errors are raised, not ignored:

- division by zero and invalid operations (``log(-1)``, ``sqrt(-1)``,
  ``asin(2)``) raise :class:`~funcplot.errors.DomainError`, as do complex or
  non-finite results;
- overflow and any other failure raise
  :class:`~funcplot.errors.EvaluationError`.

``evaluate_range`` never raises; failing or non-finite elements become NaN.
It follows IEEE propagation on the array path, so an intermediate infinity
that cancels out (``1/(1/x)`` at ``0``) yields a finite value there while
``evaluate`` reports a domain error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Union

import numpy as np

from .errors import (
    DomainError,
    EvaluationError,
    ExpressionSyntaxError,
    InvalidArgumentError,
    UndefinedSlotError,
)
from .expression_parser import X, parse_expression
from .numpify import CompiledExpression, numpify_cached

__all__ = ["ExpressionEngine", "InvalidSlot", "Slot", "ValidSlot"]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_EMPTY_DIAGNOSTIC = "No expression set"


@dataclass(frozen=True)
class ValidSlot:
    """Successfully compiled slot."""

    text: str
    handle: CompiledExpression

    @property
    def diagnostic(self) -> str:
        return ""


@dataclass(frozen=True)
class InvalidSlot:
    """Slot without a usable handle; ``diagnostic`` says why."""

    text: str
    diagnostic: str

    def __post_init__(self) -> None:
        if not self.diagnostic:
            raise ValueError("InvalidSlot requires a non-empty diagnostic")


Slot = Union[ValidSlot, InvalidSlot]


def _empty_slot() -> InvalidSlot:
    return InvalidSlot(text="", diagnostic=_EMPTY_DIAGNOSTIC)


def _classify_floating_point_error(exc: FloatingPointError, x: float) -> EvaluationError:
    message = str(exc)
    if "divide by zero" in message or "invalid value" in message:
        return DomainError(f"Undefined at x={x!r}: {message}")
    return EvaluationError(f"Evaluation failed at x={x!r}: {message}")


class ExpressionEngine:
    """Compile and evaluate one-variable expressions stored in indexed slots.

    Examples
    --------
    >>> engine = ExpressionEngine()
    >>> engine.set_expression(0, "x^2")
    True
    >>> engine.evaluate(0, 3.0)
    9.0
    >>> engine.set_expression(1, "1/(")
    False
    >>> engine.get_diagnostic(1)  # doctest: +SKIP
    'Syntax error at position 3: unexpected end of expression'
    """

    def __init__(self) -> None:
        self._slots: list[Slot] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def set_expression(self, index: int, text: str) -> bool:
        """Compile ``text`` into slot ``index``.

        Returns ``True`` on success. On failure the slot becomes invalid with
        a diagnostic and ``False`` is returned; expression errors never
        propagate out of this method.

        Raises
        ------
        InvalidArgumentError
            If ``index`` is negative.
        """
        index = self._check_index(index)
        while len(self._slots) <= index:
            self._slots.append(_empty_slot())

        text = "" if text is None else str(text)
        try:
            handle = numpify_cached(parse_expression(text, variable=X), var=X)
        except ExpressionSyntaxError as exc:
            self._slots[index] = InvalidSlot(text=text, diagnostic=str(exc))
        except Exception as exc:
            self._slots[index] = InvalidSlot(
                text=text, diagnostic=f"Compilation error: {type(exc).__name__}: {exc}"
            )
        else:
            self._slots[index] = ValidSlot(text=text, handle=handle)
            logger.debug("slot %d compiled: %r", index, text)
            return True

        logger.debug("slot %d rejected %r: %s", index, text, self._slots[index].diagnostic)
        return False

    def clear(self, index: int) -> None:
        """Reset slot ``index`` to the empty invalid state (no-op if absent)."""
        index = self._check_index(index)
        if index < len(self._slots):
            self._slots[index] = _empty_slot()

    def remove(self, index: int) -> None:
        """Delete slot ``index``; later slots shift down by one."""
        index = self._check_index(index)
        if index < len(self._slots):
            del self._slots[index]

    def clear_all(self) -> None:
        """Drop every slot."""
        self._slots.clear()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def function_count(self) -> int:
        """Number of allocated slots (valid or not)."""
        return len(self._slots)

    def slot(self, index: int) -> Slot:
        """Return the record for ``index``; unallocated slots read as empty."""
        index = self._check_index(index)
        if index < len(self._slots):
            return self._slots[index]
        return _empty_slot()

    def is_valid(self, index: int) -> bool:
        return index >= 0 and isinstance(self.slot(index), ValidSlot)

    def get_diagnostic(self, index: int) -> str:
        """Return the diagnostic of slot ``index`` (empty when valid)."""
        if index < 0:
            return ""
        return self.slot(index).diagnostic

    def get_expression(self, index: int) -> str:
        """Return the raw text last registered in slot ``index``."""
        if index < 0:
            return ""
        return self.slot(index).text

    def handle(self, index: int) -> CompiledExpression:
        """Return the compiled handle of ``index``.

        Raises
        ------
        UndefinedSlotError
            If the slot was never compiled successfully.
        """
        if index < 0:
            raise UndefinedSlotError(index, "negative index")
        record = self.slot(index)
        if isinstance(record, InvalidSlot):
            raise UndefinedSlotError(index, record.diagnostic)
        return record.handle

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, index: int, x: float) -> float:
        """Evaluate slot ``index`` at ``x`` under the strict policy.

        Raises
        ------
        UndefinedSlotError
            If the slot has no valid handle.
        DomainError
            If the expression is undefined at ``x``.
        EvaluationError
            For any other evaluation failure.
        """
        return self.evaluate_handle(self.handle(index), x)

    @staticmethod
    def evaluate_handle(handle: CompiledExpression, x: float) -> float:
        """Strictly evaluate an already resolved handle at one point."""
        try:
            with np.errstate(divide="raise", invalid="raise", over="raise", under="ignore"):
                raw = handle(x)
        except FloatingPointError as exc:
            raise _classify_floating_point_error(exc, x) from exc
        except ZeroDivisionError as exc:
            raise DomainError(f"Undefined at x={x!r}: {exc}") from exc
        except OverflowError as exc:
            raise EvaluationError(f"Evaluation failed at x={x!r}: {exc}") from exc
        except Exception as exc:
            raise EvaluationError(
                f"Evaluation failed at x={x!r}: {type(exc).__name__}: {exc}"
            ) from exc

        value = np.asarray(raw)
        if value.size != 1:
            raise EvaluationError(f"Expected a scalar result at x={x!r}, got shape {value.shape}")
        if np.iscomplexobj(value):
            if value.imag.item() != 0:
                raise DomainError(f"Complex result at x={x!r}")
            value = value.real
        result = float(value.item())
        if not np.isfinite(result):
            raise DomainError(f"Non-finite result {result!r} at x={x!r}")
        return result

    def evaluate_range(self, index: int, xs: Iterable[float] | np.ndarray) -> np.ndarray:
        """Evaluate slot ``index`` at every element of ``xs``.

        Returns a float array of the same shape where failed or non-finite
        evaluations are NaN. An invalid slot yields an all-NaN array.
        """
        arr = np.asarray(list(xs) if not isinstance(xs, np.ndarray) else xs, dtype=float)
        if index < 0 or not self.is_valid(index):
            return np.full(arr.shape, np.nan)
        return self.evaluate_handle_range(self.handle(index), arr)

    @classmethod
    def evaluate_handle_range(cls, handle: CompiledExpression, xs: Any) -> np.ndarray:
        """Vectorized evaluation of a resolved handle (per-element NaN)."""
        arr = np.asarray(xs, dtype=float)
        try:
            with np.errstate(all="ignore"):
                raw = np.asarray(handle(arr))
            if np.iscomplexobj(raw):
                raw = np.where(raw.imag == 0, raw.real, np.nan)
            values = np.broadcast_to(raw.astype(float), arr.shape).copy()
        except Exception as exc:
            # Constant sub-expressions may raise in plain Python arithmetic;
            # fall back to point-wise evaluation.
            logger.debug("vectorized evaluation failed (%s); evaluating point-wise", exc)
            values = np.empty(arr.shape, dtype=float)
            for pos, x in np.ndenumerate(arr):
                try:
                    values[pos] = cls.evaluate_handle(handle, float(x))
                except EvaluationError:
                    values[pos] = np.nan

        values[~np.isfinite(values)] = np.nan
        return values

    # ------------------------------------------------------------------
    # UI hints
    # ------------------------------------------------------------------

    @staticmethod
    def supported_functions() -> list[str]:
        """Human readable summary of the accepted syntax."""
        return [
            "Operators: +, -, *, /, ^ (or **), implicit multiplication (2x)",
            "Trigonometric: sin(x), cos(x), tan(x), asin(x), acos(x), atan(x)",
            "Hyperbolic: sinh(x), cosh(x), tanh(x)",
            "Logarithmic and exponential: log(x), log10(x), log2(x), exp(x)",
            "Other: sqrt(x), abs(x), ceil(x), floor(x), signum(x)",
            "Constants: pi, e",
        ]

    @staticmethod
    def example_expressions() -> list[str]:
        return [
            "sin(x)",
            "cos(x)",
            "x^2",
            "x^3 - 2*x + 1",
            "sin(x) * cos(x)",
            "log(x + 1)",
            "sqrt(x^2 + 1)",
            "exp(-(x^2)/2)/sqrt(2*pi)",
            "sin(x)/x",
        ]

    @staticmethod
    def _check_index(index: int) -> int:
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
            raise InvalidArgumentError(f"slot index must be an int, got {index!r}")
        if index < 0:
            raise InvalidArgumentError(f"slot index must be non-negative, got {index}")
        return int(index)
