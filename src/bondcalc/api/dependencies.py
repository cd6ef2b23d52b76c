"""Shared FastAPI dependencies for accessing app-scoped state."""

from typing import Annotated

from fastapi import Depends, Request

from bondcalc.calculator.session import CalculatorSession
from bondcalc.services.rate_config import RateConfigService


def get_rate_config_service(request: Request) -> RateConfigService:
    service: RateConfigService = request.app.state.rate_config
    return service


def get_calculator_session(request: Request) -> CalculatorSession:
    session: CalculatorSession = request.app.state.calculator
    return session


RateConfig = Annotated[RateConfigService, Depends(get_rate_config_service)]
Calculator = Annotated[CalculatorSession, Depends(get_calculator_session)]
