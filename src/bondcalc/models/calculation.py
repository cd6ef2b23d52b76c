"""Calculation result models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Regime(str, Enum):
    """Bond calculation regime."""

    STANDARD = "standard"
    PGA = "pga"


class CalculationResult(BaseModel):
    """Buy/sell fees for one calculation.

    Amounts are fixed-point text with exactly six decimal places. The warning
    is advisory: sell is never raised to the minimum billing here.
    """

    model_config = {"frozen": True}

    regime: Regime
    bond_value: str = Field(..., description="Base amount the fees were applied to")
    buy: str
    sell: str
    is_below_min: bool
    warning: str | None = None


class SandboxPreview(BaseModel):
    """Preview of a draft configuration at the fixed probe invoice amount.

    Unlike CalculationResult, sell here is clamped to the minimum billing.
    """

    model_config = {"frozen": True}

    probe_amount: str
    buy: str
    sell: str
