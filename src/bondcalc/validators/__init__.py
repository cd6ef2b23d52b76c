"""Formula validators - fail-closed checks applied before a configuration is committed."""

from bondcalc.validators.formula import (
    ValidationError,
    ValidationResult,
    check_formula,
    validate_configuration,
    validate_formula,
    validate_formula_spec,
)

__all__ = [
    "ValidationError",
    "ValidationResult",
    "check_formula",
    "validate_configuration",
    "validate_formula",
    "validate_formula_spec",
]
