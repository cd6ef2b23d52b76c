"""Rate configuration model.

RateConfiguration is an immutable value: drafts are edited by producing new
instances, and the active configuration is replaced wholesale on commit.
Serialized field names are camelCase to match the persisted record format.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from bondcalc.calc.formulas.registry import (
    PGA_BUY,
    PGA_SELL,
    STANDARD_BUY,
    STANDARD_SELL,
    FormulaSpec,
)
from bondcalc.calc.numeric import parse_numeric_input

NUMERIC_FIELDS = ("min_billing", "sell_rate_percent", "buy_rate_multiplier", "pga_multiplier")


class RateConfiguration(BaseModel):
    """Tunable rate parameters and formula texts.

    Attributes:
        min_billing: Floor amount below which a sell fee is flagged.
        sell_rate_percent: Percentage of the bond value charged as sell fee.
        buy_rate_multiplier: Per-thousand multiplier for the buy fee.
        pga_multiplier: Scaling applied to the PGA-regulated invoice portion.
        standard_buy_formula: Formula over invoice_value and duties.
        standard_sell_formula: Formula over invoice_value and duties.
        pga_buy_formula: Formula over the with/without-PGA invoice values.
        pga_sell_formula: Formula over the with/without-PGA invoice values.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    min_billing: Decimal = Field(
        default=Decimal("65.00"),
        description="Minimum billing floor (currency units)",
        json_schema_extra={"step": "1"},
    )
    sell_rate_percent: Decimal = Field(
        default=Decimal("0.40"),
        description="Sell fee as a percentage of bond value",
        json_schema_extra={"step": "0.01"},
    )
    buy_rate_multiplier: Decimal = Field(
        default=Decimal("0.99"),
        description="Buy fee per thousand of bond value",
        json_schema_extra={"step": "0.001"},
    )
    pga_multiplier: Decimal = Field(
        default=Decimal("3"),
        description="Scaling factor for the PGA-regulated invoice value",
        json_schema_extra={"step": "1"},
    )
    standard_buy_formula: str = STANDARD_BUY.default_formula
    standard_sell_formula: str = STANDARD_SELL.default_formula
    pga_buy_formula: str = PGA_BUY.default_formula
    pga_sell_formula: str = PGA_SELL.default_formula

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def coerce_numeric(cls, v: Any) -> Decimal:
        """Unparseable editor input becomes 0 rather than a validation error."""
        return parse_numeric_input(v)

    def formulas(self) -> dict[str, str]:
        """Formula texts keyed by slot name."""
        return {
            STANDARD_BUY.slot: self.standard_buy_formula,
            STANDARD_SELL.slot: self.standard_sell_formula,
            PGA_BUY.slot: self.pga_buy_formula,
            PGA_SELL.slot: self.pga_sell_formula,
        }

    def formula_for(self, spec: FormulaSpec) -> str:
        """Formula text occupying the given slot."""
        return self.formulas()[spec.slot]

    def with_updates(self, **changes: Any) -> RateConfiguration:
        """Return a validated copy with the given fields replaced.

        Keys may be field names or their camelCase aliases.
        """
        data = self.model_dump()
        data.update(changes)
        return RateConfiguration.model_validate(data)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the flat persisted record (camelCase keys, decimals as text)."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> RateConfiguration:
        """Load from a persisted record; missing fields take their defaults."""
        return cls.model_validate(record)


DEFAULT_RATE_CONFIGURATION = RateConfiguration()
