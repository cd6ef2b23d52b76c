"""Restricted arithmetic evaluator.

Tokenizes and evaluates plain arithmetic over Decimal with a fixed grammar:

    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/") unary)*
    unary   := ("+" | "-") unary | power
    power   := primary ("**" unary)?
    primary := NUMBER | "(" expr ")"

There are no names, calls or attribute access; anything outside the grammar
raises ArithmeticSyntaxError.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, DecimalException
from typing import Literal

TokenKind = Literal["number", "op", "lparen", "rparen"]

_OPERATORS = ("**", "+", "-", "*", "/")


class ArithmeticSyntaxError(ValueError):
    """Raised when an expression is not valid arithmetic or cannot be evaluated."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int


def tokenize(expression: str) -> list[Token]:
    """Split an arithmetic expression into tokens.

    Whitespace is skipped. Numbers are digit runs with at most one decimal
    point (".5" and "5." are accepted).

    Raises:
        ArithmeticSyntaxError: On any character outside the grammar.
    """
    tokens: list[Token] = []
    i = 0
    length = len(expression)
    while i < length:
        ch = expression[i]
        if ch.isspace():
            i += 1
            continue
        if ch.isdigit() or ch == ".":
            start = i
            seen_point = False
            while i < length and (expression[i].isdigit() or expression[i] == "."):
                if expression[i] == ".":
                    if seen_point:
                        raise ArithmeticSyntaxError("Malformed number", i)
                    seen_point = True
                i += 1
            text = expression[start:i]
            if text == ".":
                raise ArithmeticSyntaxError("Malformed number", start)
            tokens.append(Token("number", text, start))
            continue
        if ch == "(":
            tokens.append(Token("lparen", ch, i))
            i += 1
            continue
        if ch == ")":
            tokens.append(Token("rparen", ch, i))
            i += 1
            continue
        for op in _OPERATORS:
            if expression.startswith(op, i):
                tokens.append(Token("op", op, i))
                i += len(op)
                break
        else:
            raise ArithmeticSyntaxError(f"Unexpected character {ch!r}", i)
    return tokens


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            raise ArithmeticSyntaxError("Unexpected end of expression")
        self._pos += 1
        return token

    def _at_op(self, *ops: str) -> bool:
        token = self._peek()
        return token is not None and token.kind == "op" and token.text in ops

    def parse(self) -> Decimal:
        if not self._tokens:
            raise ArithmeticSyntaxError("Empty expression")
        value = self._expr()
        leftover = self._peek()
        if leftover is not None:
            raise ArithmeticSyntaxError(f"Unexpected token {leftover.text!r}", leftover.position)
        return value

    def _expr(self) -> Decimal:
        value = self._term()
        while self._at_op("+", "-"):
            op = self._next().text
            rhs = self._term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _term(self) -> Decimal:
        value = self._unary()
        while self._at_op("*", "/"):
            op = self._next().text
            rhs = self._unary()
            value = value * rhs if op == "*" else value / rhs
        return value

    def _unary(self) -> Decimal:
        if self._at_op("+", "-"):
            op = self._next().text
            operand = self._unary()
            return operand if op == "+" else -operand
        return self._power()

    def _power(self) -> Decimal:
        base = self._primary()
        if self._at_op("**"):
            self._next()
            exponent = self._unary()
            return base**exponent
        return base

    def _primary(self) -> Decimal:
        token = self._next()
        if token.kind == "number":
            return Decimal(token.text)
        if token.kind == "lparen":
            value = self._expr()
            closing = self._next()
            if closing.kind != "rparen":
                raise ArithmeticSyntaxError("Expected ')'", closing.position)
            return value
        raise ArithmeticSyntaxError(f"Unexpected token {token.text!r}", token.position)


def evaluate_arithmetic(expression: str) -> Decimal:
    """Evaluate an arithmetic expression with normal operator precedence.

    Args:
        expression: Text containing only numbers, whitespace, "+ - * / ** ( )".

    Returns:
        The finite Decimal result.

    Raises:
        ArithmeticSyntaxError: If the expression is malformed, divides by zero,
            or produces a non-finite value.
    """
    tokens = tokenize(expression)
    try:
        result = _Parser(tokens).parse()
    except DecimalException as e:
        raise ArithmeticSyntaxError(f"Arithmetic error: {type(e).__name__}") from e
    except RecursionError as e:
        raise ArithmeticSyntaxError("Expression is nested too deeply") from e
    if not result.is_finite():
        raise ArithmeticSyntaxError("Result is not a finite number")
    return result
