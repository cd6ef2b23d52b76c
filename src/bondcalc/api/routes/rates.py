"""Rate calculation routes.

Inputs are raw text (or numbers) as typed by an operator; anything that does
not parse is treated as 0. These routes never fail on bad numeric input.
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from bondcalc.api.dependencies import RateConfig
from bondcalc.calc.engine import calculate_pga, calculate_standard
from bondcalc.models.calculation import CalculationResult

router = APIRouter(prefix="/v1/rates", tags=["Rates"])

RawInput = str | int | float | None


class StandardRateRequest(BaseModel):
    """Request body for POST /v1/rates/standard."""

    invoice_value: RawInput = None
    duties: RawInput = None


class PgaRateRequest(BaseModel):
    """Request body for POST /v1/rates/pga.

    The sell side may be priced on a different invoice split than the buy
    side; when omitted it uses the buy-side values.
    """

    invoice_value_with_pga: RawInput = None
    invoice_value_without_pga: RawInput = None
    sell_invoice_value_with_pga: RawInput = None
    sell_invoice_value_without_pga: RawInput = None


class PgaRateResponse(BaseModel):
    buy: CalculationResult
    sell: CalculationResult


@router.post("/standard", response_model=CalculationResult)
def post_standard(body: StandardRateRequest, service: RateConfig) -> CalculationResult:
    """Buy and sell fees for a standard entry."""
    return calculate_standard(service.active, body.invoice_value, body.duties)


@router.post("/pga", response_model=PgaRateResponse)
def post_pga(body: PgaRateRequest, service: RateConfig) -> PgaRateResponse:
    """Buy and sell fees for a PGA-regulated entry.

    Each side's result carries both fees for its own invoice split; clients
    show buy from the buy side and sell from the sell side.
    """
    config = service.active
    buy_side = calculate_pga(config, body.invoice_value_with_pga, body.invoice_value_without_pga)

    if body.sell_invoice_value_with_pga is None and body.sell_invoice_value_without_pga is None:
        sell_side = buy_side
    else:
        sell_side = calculate_pga(
            config, body.sell_invoice_value_with_pga, body.sell_invoice_value_without_pga
        )
    return PgaRateResponse(buy=buy_side, sell=sell_side)
