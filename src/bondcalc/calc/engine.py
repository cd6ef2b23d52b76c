"""Rate calculation pipeline.

Pure functions of a RateConfiguration and raw inputs. The live paths
(calculate_standard, calculate_pga) flag a sell fee below the minimum billing
but do not raise it; the sandbox preview clamps sell to the minimum. The two
rules differ on purpose and are kept separate.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from decimal import ROUND_HALF_UP, Decimal, DecimalException, localcontext
from typing import Any

from bondcalc.calc.formulas.evaluator import evaluate_formula
from bondcalc.calc.formulas.registry import FormulaSpec
from bondcalc.calc.numeric import ZERO, parse_numeric_input
from bondcalc.models.calculation import CalculationResult, Regime, SandboxPreview
from bondcalc.models.rate_configuration import RateConfiguration

logger = logging.getLogger(__name__)

__all__ = [
    "SANDBOX_PROBE_AMOUNT",
    "calculate_pga",
    "calculate_standard",
    "evaluate_slot",
    "format_amount",
    "min_billing_warning",
    "parse_numeric_input",
    "pga_bond_value",
    "preview_configuration",
]

SANDBOX_PROBE_AMOUNT = Decimal("10000")

_HUNDRED = Decimal("100")
_THOUSAND = Decimal("1000")
_SIX_PLACES = Decimal("0.000001")
_TWO_PLACES = Decimal("0.01")


def _round_half_up(value: Decimal, places: Decimal) -> Decimal:
    """Quantize with enough precision for every integer digit of value."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() - places.adjusted() + 2)
        return value.quantize(places, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Format a monetary amount with exactly six decimal places."""
    return format(_round_half_up(value, _SIX_PLACES), "f")


def min_billing_warning(min_billing: Decimal) -> str:
    """Advisory text shown when a sell fee falls under the minimum billing."""
    floor = format(_round_half_up(min_billing, _TWO_PLACES), "f")
    return f"Note: A minimum billing of ${floor} usually applies."


def _buy_fee(base: Decimal, config: RateConfiguration) -> Decimal:
    return (base * config.buy_rate_multiplier) / _THOUSAND


def _sell_fee(base: Decimal, config: RateConfiguration) -> Decimal:
    return (base * config.sell_rate_percent) / _HUNDRED


def _safe_fee(
    fee: Callable[[Decimal, RateConfiguration], Decimal],
    base: Decimal,
    config: RateConfiguration,
) -> Decimal:
    try:
        return fee(base, config)
    except DecimalException as e:
        logger.warning("Fee computation failed for bond value %s: %r", base, e)
        return ZERO


def _result(regime: Regime, base: Decimal, config: RateConfiguration) -> CalculationResult:
    sell = _safe_fee(_sell_fee, base, config)
    is_below_min = base > ZERO and sell < config.min_billing
    return CalculationResult(
        regime=regime,
        bond_value=format(base, "f"),
        buy=format_amount(_safe_fee(_buy_fee, base, config)),
        sell=format_amount(sell),
        is_below_min=is_below_min,
        warning=min_billing_warning(config.min_billing) if is_below_min else None,
    )


def calculate_standard(
    config: RateConfiguration, invoice_value: Any, duties: Any
) -> CalculationResult:
    """Standard entry: fees on invoice value plus duties.

    Args:
        config: Active rate configuration.
        invoice_value: Raw invoice value input (unparseable -> 0).
        duties: Raw duties input (unparseable -> 0).
    """
    base = parse_numeric_input(invoice_value) + parse_numeric_input(duties)
    return _result(Regime.STANDARD, base, config)


def pga_bond_value(config: RateConfiguration, with_pga: Any, without_pga: Any) -> Decimal:
    """Scaled base for PGA entry: with-PGA value times the multiplier, plus the rest."""
    return (parse_numeric_input(with_pga) * config.pga_multiplier) + parse_numeric_input(
        without_pga
    )


def calculate_pga(
    config: RateConfiguration, with_pga: Any, without_pga: Any
) -> CalculationResult:
    """PGA-regulated entry: fees on the scaled bond value.

    Args:
        config: Active rate configuration.
        with_pga: Raw invoice value subject to PGA (unparseable -> 0).
        without_pga: Raw invoice value not subject to PGA (unparseable -> 0).
    """
    return _result(Regime.PGA, pga_bond_value(config, with_pga, without_pga), config)


def preview_configuration(config: RateConfiguration) -> SandboxPreview:
    """Show what a draft configuration yields for the probe invoice amount.

    Sell is clamped to max(min_billing, sell) here, unlike the live paths.
    """
    buy = _buy_fee(SANDBOX_PROBE_AMOUNT, config)
    sell = max(config.min_billing, _sell_fee(SANDBOX_PROBE_AMOUNT, config))
    return SandboxPreview(
        probe_amount=format(SANDBOX_PROBE_AMOUNT, "f"),
        buy=format_amount(buy),
        sell=format_amount(sell),
    )


def evaluate_slot(
    config: RateConfiguration, spec: FormulaSpec, inputs: Mapping[str, Any]
) -> str:
    """Run the formula configured in a slot against raw inputs.

    Only the slot's required variables are bound; each is parsed leniently.
    Returns the six-decimal result (0.000000 if the formula cannot be evaluated).
    """
    variables = {name: parse_numeric_input(inputs.get(name)) for name in spec.required_variables}
    return format_amount(evaluate_formula(config.formula_for(spec), variables))

