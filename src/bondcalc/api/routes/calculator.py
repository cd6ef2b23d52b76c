"""Calculator routes.

One calculator session lives on the application for its lifetime. Handlers
run in the threadpool, so each one holds the session lock from its first
transition until the snapshot is taken.
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from bondcalc.api.dependencies import Calculator
from bondcalc.api.errors import BondcalcHttpError
from bondcalc.calculator.session import QUICK_FUNCTIONS, CalculatorSession, format_result

router = APIRouter(prefix="/v1/calculator", tags=["Calculator"])


class CalculatorSnapshot(BaseModel):
    expression: str
    display: str
    memory: str | None
    state: str
    history: list[str]


class PressRequest(BaseModel):
    """Symbols from the calculator vocabulary, applied in order."""

    symbols: list[str]


class KeysRequest(BaseModel):
    """Keyboard keys, applied in order."""

    keys: list[str]


def _snapshot(session: CalculatorSession) -> CalculatorSnapshot:
    return CalculatorSnapshot(
        expression=session.expression,
        display=session.display,
        memory=None if session.memory is None else format_result(session.memory),
        state=session.state.value,
        history=session.recent_history(),
    )


@router.get("", response_model=CalculatorSnapshot)
def get_calculator(session: Calculator) -> CalculatorSnapshot:
    with session.lock:
        return _snapshot(session)


@router.post("/press", response_model=CalculatorSnapshot)
def post_press(body: PressRequest, session: Calculator) -> CalculatorSnapshot:
    """Apply button symbols; unknown symbols are ignored."""
    with session.lock:
        session.press_sequence(body.symbols)
        return _snapshot(session)


@router.post("/keys", response_model=CalculatorSnapshot)
def post_keys(body: KeysRequest, session: Calculator) -> CalculatorSnapshot:
    with session.lock:
        for key in body.keys:
            session.press_key(key)
        return _snapshot(session)


@router.post("/quick/{name}", response_model=CalculatorSnapshot)
def post_quick(name: str, session: Calculator) -> CalculatorSnapshot:
    if name not in QUICK_FUNCTIONS:
        raise BondcalcHttpError(
            status_code=404,
            code="NOT_FOUND",
            message=f"Unknown quick function: {name}",
            details={"available": sorted(QUICK_FUNCTIONS)},
        )
    with session.lock:
        session.quick(name)
        return _snapshot(session)
