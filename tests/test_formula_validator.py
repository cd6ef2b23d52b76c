"""Tests for formula validation.

Validation requires every slot variable to appear literally and the formula
to evaluate to a finite number with each variable bound to the probe value.
"""

from __future__ import annotations

import pytest

from bondcalc.calc.formulas.registry import (
    FORMULA_SPECS,
    PGA_SELL,
    PGA_VARIABLES,
    STANDARD_BUY,
    STANDARD_VARIABLES,
    FormulaSpec,
)
from bondcalc.models.rate_configuration import DEFAULT_RATE_CONFIGURATION
from bondcalc.validators.formula import (
    check_formula,
    validate_configuration,
    validate_formula,
    validate_formula_spec,
)


class TestValidateFormula:
    @pytest.mark.parametrize("spec", FORMULA_SPECS, ids=lambda s: s.slot)
    def test_default_formulas_are_valid(self, spec: FormulaSpec) -> None:
        assert validate_formula(spec.default_formula, spec.required_variables)

    def test_simple_formula_is_valid(self) -> None:
        """Operators may enter intentionally simple formulas."""
        assert validate_formula("invoice_value + duties", STANDARD_VARIABLES)

    def test_missing_variable_fails(self) -> None:
        assert not validate_formula("invoice_value * 0.99 / 1000", STANDARD_VARIABLES)

    def test_missing_variable_reported(self) -> None:
        errors = check_formula("invoice_value * 2", STANDARD_VARIABLES, path="standard_buy_formula")
        assert len(errors) == 1
        assert errors[0].code == "MISSING_VARIABLE"
        assert "duties" in errors[0].message
        assert errors[0].path == "standard_buy_formula"

    def test_shorter_name_inside_longer_name_passes_presence_only(self) -> None:
        """Presence is a literal substring check; the leftover text then fails the safety gate."""
        errors = check_formula("invoice_value_with_pga + duties", STANDARD_VARIABLES)
        assert [e.code for e in errors] == ["UNSAFE_CHARACTERS"]

    def test_unsafe_characters_fail(self) -> None:
        errors = check_formula("max(invoice_value, duties)", STANDARD_VARIABLES)
        assert [e.code for e in errors] == ["UNSAFE_CHARACTERS"]

    def test_malformed_arithmetic_fails(self) -> None:
        errors = check_formula("invoice_value + duties *", STANDARD_VARIABLES)
        assert [e.code for e in errors] == ["NOT_EVALUABLE"]

    def test_division_by_zero_at_probe_fails(self) -> None:
        assert not validate_formula("invoice_value / (duties - 100)", STANDARD_VARIABLES)

    def test_division_by_zero_elsewhere_is_not_detected(self) -> None:
        """The probe is a smoke test; other inputs may still fail."""
        assert validate_formula("invoice_value / (duties - 50)", STANDARD_VARIABLES)

    def test_pga_formula_needs_both_pga_variables(self) -> None:
        assert not validate_formula("invoice_value_with_pga * 3", PGA_VARIABLES)
        assert validate_formula(
            "invoice_value_with_pga * 3 + invoice_value_without_pga", PGA_VARIABLES
        )


class TestValidateFormulaSpec:
    def test_errors_carry_slot_path(self) -> None:
        result = validate_formula_spec("1 + 1", STANDARD_BUY)
        assert not result.passed
        assert result.errors[0].path == "standard_buy_formula"


class TestValidateConfiguration:
    def test_defaults_pass(self) -> None:
        assert validate_configuration(DEFAULT_RATE_CONFIGURATION).passed

    def test_reports_every_failing_slot_in_order(self) -> None:
        draft = DEFAULT_RATE_CONFIGURATION.with_updates(
            standard_sell_formula="duties",
            pga_sell_formula="oops",
        )
        result = validate_configuration(draft)
        assert not result.passed
        assert [e.path for e in result.errors] == ["standard_sell_formula", PGA_SELL.slot]
