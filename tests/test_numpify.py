from __future__ import annotations

import logging

import numpy as np
import pytest
import sympy as sp

from funcplot.expression_parser import X, parse_expression
from funcplot.numpify import CompiledExpression, numpify, numpify_cached


def test_numpify_returns_compiled_expression() -> None:
    compiled = numpify(parse_expression("x^2 + 1"), cache=False)

    assert isinstance(compiled, CompiledExpression)
    assert compiled.variable == X
    assert "def _generated(x):" in compiled.source
    assert float(compiled(2.0)) == pytest.approx(5.0)
    assert "Auto-generated" in (compiled._fn.__doc__ or "")


def test_numpify_broadcasts_over_arrays() -> None:
    compiled = numpify(parse_expression("sin(x) + x"), cache=False)
    xs = np.linspace(-1.0, 1.0, 7)

    np.testing.assert_allclose(compiled(xs), np.sin(xs) + xs)


def test_constant_expression_matches_input_shape() -> None:
    compiled = numpify(parse_expression("2*pi"), cache=False)
    values = compiled(np.zeros(5))

    assert values.shape == (5,)
    np.testing.assert_allclose(values, 2 * np.pi)


def test_integer_literals_use_float_arithmetic() -> None:
    compiled = numpify(parse_expression("x^2 / 3"), cache=False)

    assert "3.0" in compiled.source
    assert float(compiled(np.array(3, dtype=int))) == pytest.approx(3.0)


@pytest.mark.parametrize(
    ("text", "fn"),
    [
        ("abs(x)", np.abs),
        ("signum(x)", np.sign),
        ("floor(x)", np.floor),
        ("ceil(x)", np.ceil),
        ("log10(x)", np.log10),
        ("log2(x)", np.log2),
    ],
)
def test_special_functions_print_as_numpy_calls(text, fn) -> None:
    compiled = numpify(parse_expression(text), cache=False)
    xs = np.array([0.5, 1.5, 2.0, 7.25])

    np.testing.assert_allclose(compiled(xs), fn(xs))


def test_unbound_symbols_are_rejected() -> None:
    y = sp.Symbol("y")
    with pytest.raises(ValueError, match="unbound symbols: y"):
        numpify(X + y, cache=False)


def test_non_sympy_input_is_rejected() -> None:
    with pytest.raises(TypeError):
        numpify("x + 1", cache=False)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        numpify_cached(3.0)  # type: ignore[arg-type]


def test_numpify_cached_reuses_compiled_handle() -> None:
    numpify_cached.cache_clear()
    expr = parse_expression("x^3 - 2*x")

    first = numpify_cached(expr)
    second = numpify_cached(expr)

    assert first is second
    info = numpify_cached.cache_info()
    assert info.hits >= 1
    assert info.misses >= 1


def test_numpify_logs_timings_at_debug_level(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="funcplot.numpify"):
        numpify(parse_expression("cos(x)"), cache=False)

    assert any("numpify timings" in rec.getMessage() for rec in caplog.records)
