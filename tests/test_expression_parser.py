from __future__ import annotations

import math

import pytest
import sympy as sp

from funcplot.errors import ExpressionSyntaxError
from funcplot.expression_parser import X, parse_constant, parse_expression
from funcplot.numpify import numpify


def _value(text: str, x: float = 0.0) -> float:
    return float(numpify(parse_expression(text), cache=False)(x))


@pytest.mark.parametrize(
    ("text", "x", "expected"),
    [
        ("1 + 2 * 3", 0.0, 7.0),
        ("(1 + 2) * 3", 0.0, 9.0),
        ("10 - 4 - 3", 0.0, 3.0),
        ("12 / 3 / 2", 0.0, 2.0),
        ("2^3^2", 0.0, 512.0),
        ("(2^3)^2", 0.0, 64.0),
        ("2**3", 0.0, 8.0),
        ("-x^2", 3.0, 9.0),
        ("-2^2", 0.0, 4.0),
        ("2^-1", 0.0, 0.5),
        ("--x", 4.0, 4.0),
        ("+x", 4.0, 4.0),
        ("x - -1", 1.0, 2.0),
        ("1.5e2 + .5", 0.0, 150.5),
    ],
)
def test_operators_follow_precedence_and_associativity(text, x, expected) -> None:
    assert _value(text, x) == pytest.approx(expected)


@pytest.mark.parametrize(
    ("text", "x", "expected"),
    [
        ("2x", 3.0, 6.0),
        ("3(x + 1)", 1.0, 6.0),
        ("(x + 1)(x - 1)", 3.0, 8.0),
        ("2pi", 0.0, 2 * math.pi),
        ("2e", 0.0, 2 * math.e),
        ("2sin(x)", math.pi / 2, 2.0),
        ("2x^2", 3.0, 18.0),
        ("x(x)", 5.0, 25.0),
    ],
)
def test_implicit_multiplication(text, x, expected) -> None:
    assert _value(text, x) == pytest.approx(expected)


@pytest.mark.parametrize(
    ("text", "x", "expected"),
    [
        ("sin(x)", math.pi / 2, 1.0),
        ("cos(x)", 0.0, 1.0),
        ("tan(x)", math.pi / 4, 1.0),
        ("asin(x)", 1.0, math.pi / 2),
        ("acos(x)", 1.0, 0.0),
        ("atan(x)", 1.0, math.pi / 4),
        ("sinh(x)", 1.0, math.sinh(1.0)),
        ("cosh(x)", 1.0, math.cosh(1.0)),
        ("tanh(x)", 1.0, math.tanh(1.0)),
        ("log(x)", math.e, 1.0),
        ("log10(x)", 1000.0, 3.0),
        ("log2(x)", 8.0, 3.0),
        ("exp(x)", 1.0, math.e),
        ("sqrt(x)", 16.0, 4.0),
        ("abs(x)", -3.0, 3.0),
        ("ceil(x)", 1.2, 2.0),
        ("floor(x)", -1.2, -2.0),
        ("signum(x)", -4.0, -1.0),
        ("π", 0.0, math.pi),
        ("e", 0.0, math.e),
        ("sin(cos(x)^2 + log(exp(x)))", 0.5, math.sin(math.cos(0.5) ** 2 + 0.5)),
    ],
)
def test_supported_functions_and_constants(text, x, expected) -> None:
    assert _value(text, x) == pytest.approx(expected)


def test_parse_returns_expression_in_x() -> None:
    expr = parse_expression("x^3 - 2*x + 1")
    assert isinstance(expr, sp.Basic)
    assert expr.free_symbols == {X}


def test_parse_keeps_log_of_negative_unevaluated() -> None:
    expr = parse_expression("log(-1)")
    assert not expr.has(sp.I)


@pytest.mark.parametrize(
    ("text", "position", "fragment"),
    [
        ("", 0, "expression is empty"),
        ("   ", 3, "expression is empty"),
        ("1/(", 3, "unexpected end of expression"),
        ("(x + 1", 6, "missing closing parenthesis"),
        ("x + 1)", 5, "unexpected ')'"),
        ("()", 1, "empty parentheses"),
        ("x $ 2", 2, "unexpected character '$'"),
        ("2 3", 2, "unexpected '3'"),
        ("x * * 2", 4, "unexpected '*'"),
    ],
)
def test_syntax_errors_report_position(text, position, fragment) -> None:
    with pytest.raises(ExpressionSyntaxError) as info:
        parse_expression(text)
    assert info.value.position == position
    assert fragment in info.value.message
    assert str(info.value).startswith(f"Syntax error at position {position}:")
    assert info.value.text == text


def test_unknown_variable_is_rejected() -> None:
    with pytest.raises(ExpressionSyntaxError, match="unknown name 'y'"):
        parse_expression("x + y")


def test_function_requires_parentheses() -> None:
    with pytest.raises(ExpressionSyntaxError, match="must be followed by"):
        parse_expression("sin x")


@pytest.mark.parametrize("text", ["sin(x, 2)", "sin()"])
def test_function_arity_is_checked(text) -> None:
    with pytest.raises(ExpressionSyntaxError, match="exactly 1 argument"):
        parse_expression(text)


def test_parse_constant_rejects_variables() -> None:
    assert float(numpify(parse_constant("2*pi"), cache=False)(0.0)) == pytest.approx(2 * math.pi)
    with pytest.raises(ExpressionSyntaxError, match="constant expression"):
        parse_constant("2*x")


def test_non_string_input_is_a_type_error() -> None:
    with pytest.raises(TypeError):
        parse_expression(42)  # type: ignore[arg-type]
