"""Formula slot registry.

Each configurable formula occupies a named slot on RateConfiguration. The slot
determines which variables the formula must reference; this table is the only
place that mapping lives.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

INVOICE_VALUE = "invoice_value"
DUTIES = "duties"
INVOICE_VALUE_WITH_PGA = "invoice_value_with_pga"
INVOICE_VALUE_WITHOUT_PGA = "invoice_value_without_pga"

PROBE_VALUE = Decimal("100")

STANDARD_VARIABLES: frozenset[str] = frozenset({INVOICE_VALUE, DUTIES})
PGA_VARIABLES: frozenset[str] = frozenset({INVOICE_VALUE_WITH_PGA, INVOICE_VALUE_WITHOUT_PGA})


@dataclass(frozen=True)
class FormulaSpec:
    """Specification for one formula slot.

    Attributes:
        slot: Field name on RateConfiguration holding the formula text.
        label: Human-readable name used in rejection messages.
        required_variables: Variable names the formula text must contain.
        default_formula: Built-in formula text for the slot.
    """

    slot: str
    label: str
    required_variables: frozenset[str]
    default_formula: str

    def probe_variables(self) -> dict[str, Decimal]:
        """Bind every required variable to the probe value."""
        return {name: PROBE_VALUE for name in sorted(self.required_variables)}


STANDARD_BUY = FormulaSpec(
    slot="standard_buy_formula",
    label="Standard Buy Formula",
    required_variables=STANDARD_VARIABLES,
    default_formula="((invoice_value + duties) * 0.99) / 1000",
)

STANDARD_SELL = FormulaSpec(
    slot="standard_sell_formula",
    label="Standard Sell Formula",
    required_variables=STANDARD_VARIABLES,
    default_formula="((invoice_value + duties) * 0.40) / 100",
)

PGA_BUY = FormulaSpec(
    slot="pga_buy_formula",
    label="PGA Buy Formula",
    required_variables=PGA_VARIABLES,
    default_formula=(
        "(((invoice_value_with_pga * 3) + invoice_value_without_pga) * 0.99) / 1000"
    ),
)

PGA_SELL = FormulaSpec(
    slot="pga_sell_formula",
    label="PGA Sell Formula",
    required_variables=PGA_VARIABLES,
    default_formula=(
        "(((invoice_value_with_pga * 3) + invoice_value_without_pga) * 0.40) / 100"
    ),
)

# Validation order matches the order rejections are reported in.
FORMULA_SPECS: tuple[FormulaSpec, ...] = (STANDARD_BUY, STANDARD_SELL, PGA_BUY, PGA_SELL)

_SPECS_BY_SLOT: dict[str, FormulaSpec] = {spec.slot: spec for spec in FORMULA_SPECS}


def get_formula_spec(slot: str) -> FormulaSpec:
    """Look up a formula spec by slot name.

    Raises:
        KeyError: If the slot is not one of the four known slots.
    """
    try:
        return _SPECS_BY_SLOT[slot]
    except KeyError:
        raise KeyError(f"Unknown formula slot: {slot}") from None


def list_slots() -> list[str]:
    """List slot names in validation order."""
    return [spec.slot for spec in FORMULA_SPECS]
