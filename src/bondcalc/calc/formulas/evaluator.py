"""Formula evaluator.

Turns a configured formula text plus named variable bindings into a number.
Variable names are substituted longest-first so that a name which is a prefix
of another (invoice_value / invoice_value_with_pga) never corrupts the longer
one. After substitution only digits, whitespace, "." and "+ - * / ( )" may
remain; anything else is rejected before evaluation.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from decimal import Decimal

from bondcalc.calc.arithmetic import ArithmeticSyntaxError, evaluate_arithmetic

logger = logging.getLogger(__name__)

_SAFE_EXPRESSION = re.compile(r"^[\d\s+\-*/().]*$")

ZERO = Decimal("0")


class FormulaSyntaxError(ValueError):
    """Raised when a substituted formula contains characters outside the safe set."""


def render_decimal(value: Decimal) -> str:
    """Render a Decimal in plain positional notation (never exponent form)."""
    text = format(value, "f")
    if value.is_signed():
        # Parenthesize so "x - -5" and "x * -5" stay well-formed.
        return f"({text})"
    return text


def substitute_variables(formula: str, variables: Mapping[str, Decimal]) -> str:
    """Replace each variable name in the formula with its decimal rendering.

    Names are matched longest-first in a single pass, so replacement text is
    never rescanned and shorter names cannot match inside longer ones.
    """
    names = sorted((name for name in variables if name), key=lambda name: (-len(name), name))
    if not names:
        return formula
    pattern = re.compile("|".join(re.escape(name) for name in names))
    return pattern.sub(lambda m: render_decimal(Decimal(variables[m.group(0)])), formula)


def check_safe(expression: str) -> None:
    """Reject expressions containing characters outside the arithmetic set.

    Raises:
        FormulaSyntaxError: If any unsafe character is present.
    """
    if not _SAFE_EXPRESSION.match(expression):
        bad = sorted({ch for ch in expression if not _SAFE_EXPRESSION.match(ch)})
        raise FormulaSyntaxError(f"Invalid characters in formula: {''.join(bad)!r}")


def compute_formula(formula: str, variables: Mapping[str, Decimal]) -> Decimal:
    """Substitute, safety-check and evaluate a formula.

    Raises:
        FormulaSyntaxError: If unsafe characters remain after substitution.
        ArithmeticSyntaxError: If the arithmetic is malformed or non-finite.
    """
    expression = substitute_variables(formula, variables)
    check_safe(expression)
    return evaluate_arithmetic(expression)


def evaluate_formula(formula: str, variables: Mapping[str, Decimal]) -> Decimal:
    """Evaluate a formula text with the given variable bindings.

    Never raises: unsafe characters, malformed arithmetic and non-finite
    results all degrade to 0 and are logged at WARNING.

    Args:
        formula: Formula text referencing variables by name.
        variables: Variable name -> numeric value.

    Returns:
        The finite result, or Decimal("0") on any failure.
    """
    try:
        return compute_formula(formula, variables)
    except (FormulaSyntaxError, ArithmeticSyntaxError) as e:
        logger.warning("Formula evaluation error for %r: %s", formula, e)
        return ZERO
