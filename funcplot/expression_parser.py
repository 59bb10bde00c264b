"""Parse calculator-style expression text into SymPy expressions.

Grammar
-------
::

    expression := term (("+" | "-") term)*
    term       := power (("*" | "/") power | implicit power)*
    power      := unary (("^" | "**") power)?
    unary      := ("-" | "+") unary | primary
    primary    := NUMBER | CONSTANT | "x" | FUNCTION "(" expression ")"
                | "(" expression ")"

Unary minus binds tighter than exponentiation, so ``-x^2`` is ``(-x)^2``.
Exponentiation is right associative. Implicit multiplication applies when a
factor is directly followed by a name or an opening parenthesis (``2x``,
``3(x+1)``, ``(x+1)(x-1)``, ``2pi``).

Trees are built with SymPy evaluation switched off so the expression keeps the
shape the user typed; ``log(-1)`` stays a logarithm instead of becoming
``I*pi`` and is rejected at evaluation time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

import sympy as sp
from sympy.codegen.cfunctions import log2, log10

from .errors import ExpressionSyntaxError

__all__ = [
    "X",
    "SUPPORTED_FUNCTIONS",
    "SUPPORTED_CONSTANTS",
    "parse_expression",
    "parse_constant",
]

X = sp.Symbol("x")

SUPPORTED_FUNCTIONS: dict[str, Callable[[sp.Basic], sp.Basic]] = {
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "asin": sp.asin,
    "acos": sp.acos,
    "atan": sp.atan,
    "sinh": sp.sinh,
    "cosh": sp.cosh,
    "tanh": sp.tanh,
    "log": sp.log,
    "log10": log10,
    "log2": log2,
    "exp": sp.exp,
    "sqrt": sp.sqrt,
    "abs": sp.Abs,
    "ceil": sp.ceiling,
    "floor": sp.floor,
    "signum": sp.sign,
}

SUPPORTED_CONSTANTS: dict[str, sp.Basic] = {
    "pi": sp.pi,
    "π": sp.pi,
    "e": sp.E,
}

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<name>[A-Za-z_π][A-Za-z0-9_]*)
  | (?P<op>\*\*|[-+*/^])
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<comma>,)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    pos: int


def _describe(token: _Token) -> str:
    if token.kind == "end":
        return "end of expression"
    return f"'{token.value}'"


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ExpressionSyntaxError(
                f"unexpected character '{text[pos]}'", text=text, position=pos
            )
        kind = match.lastgroup
        if kind != "ws":
            value = match.group()
            if kind == "op" and value == "**":
                value = "^"
            tokens.append(_Token(kind, value, pos))
        pos = match.end()
    tokens.append(_Token("end", "", len(text)))
    return tokens


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, text: str, variable: sp.Symbol | None) -> None:
        self.text = text
        self.variable = variable
        self.tokens = _tokenize(text)
        self.index = 0

    @property
    def current(self) -> _Token:
        return self.tokens[self.index]

    def _advance(self) -> _Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _error(self, message: str, token: _Token | None = None) -> ExpressionSyntaxError:
        token = token or self.current
        return ExpressionSyntaxError(message, text=self.text, position=token.pos)

    def _expect(self, kind: str, what: str) -> _Token:
        if self.current.kind != kind:
            raise self._error(f"expected {what} but found {_describe(self.current)}")
        return self._advance()

    def parse(self) -> sp.Basic:
        if self.current.kind == "end":
            raise self._error("expression is empty")
        result = self.expression()
        if self.current.kind != "end":
            raise self._error(f"unexpected {_describe(self.current)}")
        return result

    def expression(self) -> sp.Basic:
        left = self.term()
        while self.current.kind == "op" and self.current.value in "+-":
            op = self._advance().value
            right = self.term()
            if op == "-":
                right = sp.Mul(sp.S.NegativeOne, right)
            left = sp.Add(left, right)
        return left

    def term(self) -> sp.Basic:
        left = self.power()
        while True:
            token = self.current
            if token.kind == "op" and token.value in "*/":
                self._advance()
                right = self.power()
                if token.value == "/":
                    right = sp.Pow(right, sp.S.NegativeOne)
                left = sp.Mul(left, right)
            elif token.kind in ("name", "lparen"):
                left = sp.Mul(left, self.power())
            else:
                return left

    def power(self) -> sp.Basic:
        base = self.unary()
        if self.current.kind == "op" and self.current.value == "^":
            self._advance()
            return sp.Pow(base, self.power())
        return base

    def unary(self) -> sp.Basic:
        token = self.current
        if token.kind == "op" and token.value == "-":
            self._advance()
            return sp.Mul(sp.S.NegativeOne, self.unary())
        if token.kind == "op" and token.value == "+":
            self._advance()
            return self.unary()
        return self.primary()

    def primary(self) -> sp.Basic:
        token = self.current
        if token.kind == "number":
            self._advance()
            return _number(token.value)
        if token.kind == "lparen":
            self._advance()
            if self.current.kind == "rparen":
                raise self._error("empty parentheses")
            inner = self.expression()
            if self.current.kind != "rparen":
                raise self._error(
                    f"missing closing parenthesis, found {_describe(self.current)}"
                )
            self._advance()
            return inner
        if token.kind == "name":
            self._advance()
            return self._name(token)
        raise self._error(f"unexpected {_describe(token)}", token)

    def _name(self, token: _Token) -> sp.Basic:
        name = token.value
        if name in SUPPORTED_FUNCTIONS:
            return self._call(token)
        if name in SUPPORTED_CONSTANTS:
            return SUPPORTED_CONSTANTS[name]
        if self.variable is not None and name == self.variable.name:
            return self.variable
        if self.variable is None:
            raise self._error(f"unknown name '{name}' in a constant expression", token)
        raise self._error(
            f"unknown name '{name}' (the only variable is '{self.variable.name}')", token
        )

    def _call(self, token: _Token) -> sp.Basic:
        name = token.value
        if self.current.kind != "lparen":
            raise self._error(f"function '{name}' must be followed by '('")
        self._advance()
        args: list[sp.Basic] = []
        if self.current.kind != "rparen":
            args.append(self.expression())
            while self.current.kind == "comma":
                self._advance()
                args.append(self.expression())
        self._expect("rparen", f"')' to close '{name}('")
        if len(args) != 1:
            raise self._error(
                f"function '{name}' takes exactly 1 argument ({len(args)} given)", token
            )
        return SUPPORTED_FUNCTIONS[name](args[0])


def _number(literal: str) -> sp.Number:
    if re.fullmatch(r"\d+", literal):
        return sp.Integer(int(literal))
    return sp.Float(literal)


def parse_expression(text: str, *, variable: sp.Symbol = X) -> sp.Basic:
    """Parse ``text`` into an unevaluated SymPy expression in ``variable``.

    Parameters
    ----------
    text : str
        Expression source, e.g. ``"x^3 - 2*x + 1"``.
    variable : sympy.Symbol, optional
        The free variable. Defaults to :data:`X`.

    Returns
    -------
    sympy.Basic
        Expression tree in the shape it was typed.

    Raises
    ------
    ExpressionSyntaxError
        On malformed input, unknown names or wrong function arity.

    Examples
    --------
    >>> parse_expression("2x^2")  # doctest: +SKIP
    2*x**2
    """
    if not isinstance(text, str):
        raise TypeError(f"expression text must be str, got {type(text).__name__}")
    with sp.evaluate(False):
        return _Parser(text, variable).parse()


def parse_constant(text: str) -> sp.Basic:
    """Parse a constant expression such as ``"2*pi"`` (no variable allowed)."""
    if not isinstance(text, str):
        raise TypeError(f"expression text must be str, got {type(text).__name__}")
    with sp.evaluate(False):
        return _Parser(text, None).parse()
