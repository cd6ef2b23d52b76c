"""Formula validator.

A formula is accepted into configuration only if it textually references every
variable its slot requires and evaluates to a finite number when each of those
variables is bound to the probe value. This is a smoke test, not a proof: a
formula that works for the probe may still divide by zero for other inputs.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bondcalc.calc.arithmetic import ArithmeticSyntaxError
from bondcalc.calc.formulas.evaluator import FormulaSyntaxError, compute_formula
from bondcalc.calc.formulas.registry import FORMULA_SPECS, PROBE_VALUE, FormulaSpec

if TYPE_CHECKING:
    from bondcalc.models.rate_configuration import RateConfiguration


@dataclass(frozen=True)
class ValidationError:
    """A single validation error."""

    code: str
    message: str
    path: str


@dataclass
class ValidationResult:
    """Result of validation - fail-closed by default."""

    passed: bool
    errors: list[ValidationError] = field(default_factory=list)

    @classmethod
    def fail(cls, errors: list[ValidationError]) -> ValidationResult:
        """Create a failed result."""
        return cls(passed=False, errors=errors)

    @classmethod
    def success(cls) -> ValidationResult:
        """Create a successful result."""
        return cls(passed=True)


def missing_variables(formula: str, required_variables: Iterable[str]) -> list[str]:
    """Return required variable names that do not appear literally in the formula."""
    return sorted(name for name in required_variables if name not in formula)


def check_formula(
    formula: str, required_variables: Iterable[str], path: str = "$"
) -> list[ValidationError]:
    """Check one formula text and describe every problem found.

    Args:
        formula: Formula text to check.
        required_variables: Variable names the formula must reference.
        path: Location reported on each error (the slot name for configs).

    Returns:
        Empty list when the formula is valid.
    """
    required = list(required_variables)
    missing = missing_variables(formula, required)
    if missing:
        return [
            ValidationError(
                code="MISSING_VARIABLE",
                message=f"Formula must reference: {', '.join(missing)}",
                path=path,
            )
        ]

    probe = {name: PROBE_VALUE for name in required}
    try:
        compute_formula(formula, probe)
    except FormulaSyntaxError as e:
        return [ValidationError(code="UNSAFE_CHARACTERS", message=str(e), path=path)]
    except ArithmeticSyntaxError as e:
        return [ValidationError(code="NOT_EVALUABLE", message=str(e), path=path)]
    return []


def validate_formula(formula: str, required_variables: Iterable[str]) -> bool:
    """Return True iff the formula references every required variable and
    evaluates to a finite number at the probe value."""
    return not check_formula(formula, required_variables)


def validate_formula_spec(formula: str, spec: FormulaSpec) -> ValidationResult:
    """Validate a formula text against the slot it would occupy."""
    errors = check_formula(formula, spec.required_variables, path=spec.slot)
    if errors:
        return ValidationResult.fail(errors)
    return ValidationResult.success()


def validate_configuration(config: RateConfiguration) -> ValidationResult:
    """Validate all four formula slots of a configuration.

    Every slot is checked so callers can report all failures at once; the
    errors are ordered by slot.
    """
    errors: list[ValidationError] = []
    for spec in FORMULA_SPECS:
        errors.extend(check_formula(config.formula_for(spec), spec.required_variables, spec.slot))
    if errors:
        return ValidationResult.fail(errors)
    return ValidationResult.success()
