"""
numpify: compile parsed expressions into NumPy-callable functions
=================================================================

Purpose
-------
Turn a SymPy expression in one variable into a Python function that evaluates
with NumPy. Compilation happens once per expression; the resulting
:class:`CompiledExpression` is the handle the expression engine keeps per slot
and calls on every sample.

Code generation
---------------
SymPy's :class:`~sympy.printing.numpy.NumPyPrinter` prints the expression as
NumPy source, which is wrapped in a small generated function and ``exec``-ed
with ``numpy`` as its only global. Two adjustments keep the arithmetic in
IEEE floating point:

- integer literals are printed as floats, so ``0^-1`` and ``10^10^10`` behave
  like float operations instead of Python integer arithmetic;
- the argument is converted with ``numpy.asarray(x, dtype=float)``.

Constant expressions are broadcast to the shape of the input.

Logging
-------
This module uses Python's standard :mod:`logging` library and is silent by
default:

>>> import logging
>>> logging.basicConfig(level=logging.DEBUG)
>>> logging.getLogger("funcplot.numpify").setLevel(logging.DEBUG)
"""

from __future__ import annotations

from functools import lru_cache
import logging
import textwrap
import time
from typing import Any, Callable, Dict, cast

import numpy as np
import sympy as sp
from sympy.printing.numpy import NumPyPrinter

from .expression_parser import X

__all__ = ["CompiledExpression", "numpify", "numpify_cached"]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class _FloatNumPyPrinter(NumPyPrinter):
    """NumPy printer that emits float literals and explicit NumPy calls."""

    def _print_Integer(self, expr: sp.Integer) -> str:  # noqa: N802
        return repr(float(expr.p))

    def _call(self, name: str, expr: sp.Basic) -> str:
        return f"numpy.{name}({self._print(expr.args[0])})"

    def _print_Abs(self, expr: sp.Basic) -> str:  # noqa: N802
        return self._call("abs", expr)

    def _print_sign(self, expr: sp.Basic) -> str:
        return self._call("sign", expr)

    def _print_floor(self, expr: sp.Basic) -> str:
        return self._call("floor", expr)

    def _print_ceiling(self, expr: sp.Basic) -> str:
        return self._call("ceil", expr)

    def _print_log10(self, expr: sp.Basic) -> str:
        return self._call("log10", expr)

    def _print_log2(self, expr: sp.Basic) -> str:
        return self._call("log2", expr)


class CompiledExpression:
    """Compiled one-variable expression: symbolic form, source and callable."""

    __slots__ = ("_fn", "symbolic", "variable", "source")

    def __init__(
        self,
        fn: Callable[[Any], Any],
        symbolic: sp.Basic,
        variable: sp.Symbol,
        source: str,
    ) -> None:
        self._fn = fn
        self.symbolic = symbolic
        self.variable = variable
        self.source = source

    def __call__(self, x: Any) -> Any:
        """Evaluate at ``x`` (scalar or array) with NumPy broadcasting."""
        return self._fn(x)

    def __repr__(self) -> str:
        return f"CompiledExpression({self.symbolic!r}, var={self.variable.name})"


def numpify(
    expr: sp.Basic,
    *,
    var: sp.Symbol = X,
    cache: bool = True,
) -> CompiledExpression:
    """Compile ``expr`` into a NumPy-evaluable function of ``var``.

    By default this uses the same LRU-backed cache as :func:`numpify_cached`.
    Pass ``cache=False`` to force a fresh compile.
    """
    if cache:
        return numpify_cached(expr, var=var)
    return _numpify_uncached(expr, var=var)


def _numpify_uncached(expr: sp.Basic, *, var: sp.Symbol = X) -> CompiledExpression:
    """Compile ``expr`` (uncached).

    Parameters
    ----------
    expr : sympy.Basic
        Expression tree, typically from
        :func:`~funcplot.expression_parser.parse_expression`.
    var : sympy.Symbol
        The single positional argument of the generated function.

    Returns
    -------
    CompiledExpression
        Handle wrapping the generated function and its source text.

    Raises
    ------
    TypeError
        If ``expr`` is not a SymPy expression or ``var`` is not a Symbol.
    ValueError
        If ``expr`` contains symbols other than ``var``.

    Notes
    -----
    This function uses ``exec`` on printer output. The parser only produces
    numbers, ``var``, the supported constants and the supported functions.
    """
    if not isinstance(expr, sp.Basic):
        raise TypeError(f"numpify expects a SymPy expression, got {type(expr)}")
    if not isinstance(var, sp.Symbol):
        raise TypeError(f"var must be a SymPy Symbol, got {type(var)}")

    unbound = {s.name for s in expr.free_symbols} - {var.name}
    if unbound:
        raise ValueError(
            "Expression contains unbound symbols: " + ", ".join(sorted(unbound))
        )

    log_debug = logger.isEnabledFor(logging.DEBUG)
    t_total0: float | None = time.perf_counter() if log_debug else None

    printer = _FloatNumPyPrinter(settings={"allow_unknown_functions": False})
    arg_name = "x"
    with sp.evaluate(False):
        expr_codegen = expr.xreplace({var: sp.Symbol(arg_name)})
    t_codegen0: float | None = time.perf_counter() if log_debug else None
    expr_code = printer.doprint(expr_codegen)
    t_codegen_s = (time.perf_counter() - t_codegen0) if t_codegen0 is not None else None

    lines = [
        f"def _generated({arg_name}):",
        f"    {arg_name} = numpy.asarray({arg_name}, dtype=float)",
    ]
    if not expr.free_symbols:
        lines.append(f"    return ({expr_code}) + numpy.zeros(numpy.shape({arg_name}))")
    else:
        lines.append(f"    return {expr_code}")
    src = "\n".join(lines)

    glb: Dict[str, Any] = {"numpy": np}
    loc: Dict[str, Any] = {}
    exec(src, glb, loc)
    fn = cast(Callable[[Any], Any], loc["_generated"])
    fn.__doc__ = textwrap.dedent(
        f"""
        Auto-generated NumPy function from SymPy expression.

        expr: {expr!r}

        Source:
        {src}
        """
    ).strip()

    if log_debug:
        t_total_s = (time.perf_counter() - t_total0) if t_total0 is not None else None
        logger.debug(
            "numpify timings (ms): codegen=%.2f total=%.2f source=%r",
            1000.0 * (t_codegen_s or 0.0),
            1000.0 * (t_total_s or 0.0),
            expr_code,
        )

    return CompiledExpression(fn=fn, symbolic=expr, variable=var, source=src)


# ---------------------------------------------------------------------------
# Cached compilation
# ---------------------------------------------------------------------------

_NUMPIFY_CACHE_MAXSIZE = 256


@lru_cache(maxsize=_NUMPIFY_CACHE_MAXSIZE)
def _numpify_cached_impl(expr: sp.Basic, var: sp.Symbol) -> CompiledExpression:
    """Compile an expression on cache misses for :func:`numpify_cached`."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("numpify_cached: cache MISS (expr=%s)", expr)
    return _numpify_uncached(expr, var=var)


def numpify_cached(expr: sp.Basic, *, var: sp.Symbol = X) -> CompiledExpression:
    """Cached version of :func:`numpify`.

    Re-registering the same text in another slot (or after ``clear``) reuses
    the compiled handle. Clear with ``numpify_cached.cache_clear()``.
    """
    if not isinstance(expr, sp.Basic):
        raise TypeError(f"numpify_cached expects a SymPy expression, got {type(expr)}")
    return _numpify_cached_impl(expr, var)


# Expose cache controls on the public wrapper.
numpify_cached.cache_info = _numpify_cached_impl.cache_info  # type: ignore[attr-defined]
numpify_cached.cache_clear = _numpify_cached_impl.cache_clear  # type: ignore[attr-defined]
