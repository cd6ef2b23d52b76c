"""Interactive arithmetic calculator."""

from bondcalc.calculator.session import (
    KEY_MAP,
    QUICK_FUNCTIONS,
    VOCABULARY,
    CalculatorSession,
    CalculatorState,
    format_result,
)

__all__ = [
    "KEY_MAP",
    "QUICK_FUNCTIONS",
    "VOCABULARY",
    "CalculatorSession",
    "CalculatorState",
    "format_result",
]
