"""Formula slots and the restricted formula evaluator."""

from bondcalc.calc.formulas.evaluator import (
    FormulaSyntaxError,
    compute_formula,
    evaluate_formula,
)
from bondcalc.calc.formulas.registry import FORMULA_SPECS, FormulaSpec, get_formula_spec

__all__ = [
    "FORMULA_SPECS",
    "FormulaSpec",
    "FormulaSyntaxError",
    "compute_formula",
    "evaluate_formula",
    "get_formula_spec",
]
