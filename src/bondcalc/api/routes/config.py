"""Rate configuration routes.

Reading the active configuration, previewing a draft and validating formulas
are open. Committing and fetching the reset draft require the admin key.
"""

from __future__ import annotations

from fastapi import APIRouter, Query
from pydantic import BaseModel

from bondcalc.api.auth import RequireAdmin
from bondcalc.api.dependencies import RateConfig
from bondcalc.api.errors import BondcalcHttpError
from bondcalc.calc.engine import evaluate_slot
from bondcalc.calc.formulas.registry import FORMULA_SPECS, FormulaSpec, get_formula_spec
from bondcalc.models.calculation import SandboxPreview
from bondcalc.models.rate_configuration import RateConfiguration
from bondcalc.validators.formula import validate_formula_spec

router = APIRouter(prefix="/v1", tags=["Configuration"])


class FormulaSlotInfo(BaseModel):
    slot: str
    label: str
    required_variables: list[str]
    default_formula: str


class ValidateFormulaRequest(BaseModel):
    """Request body for POST /v1/formulas/{slot}/validate."""

    formula: str


class ValidateFormulaResponse(BaseModel):
    slot: str
    valid: bool
    errors: list[dict[str, str]]


class EvaluateFormulaRequest(BaseModel):
    """Variable values for POST /v1/formulas/{slot}/evaluate (raw text allowed)."""

    variables: dict[str, str | int | float | None] = {}


class EvaluateFormulaResponse(BaseModel):
    slot: str
    formula: str
    result: str


def _spec_or_404(slot: str) -> FormulaSpec:
    try:
        return get_formula_spec(slot)
    except KeyError:
        raise BondcalcHttpError(
            status_code=404,
            code="NOT_FOUND",
            message=f"Unknown formula slot: {slot}",
        ) from None


@router.get("/config", response_model=RateConfiguration)
def get_config(service: RateConfig) -> RateConfiguration:
    """The active rate configuration."""
    return service.active


@router.put("/config", response_model=RateConfiguration)
def put_config(
    draft: RateConfiguration, service: RateConfig, _admin: RequireAdmin
) -> RateConfiguration:
    """Commit a complete draft configuration.

    All four formulas are validated first; any failure rejects the whole
    draft with 422 FORMULA_VALIDATION_FAILED and nothing changes.
    """
    return service.commit(draft)


@router.get("/config/defaults", response_model=RateConfiguration)
def get_config_defaults(
    service: RateConfig,
    _admin: RequireAdmin,
    confirm: bool = Query(default=False, description="Must be true to reset"),
) -> RateConfiguration:
    """Built-in defaults as a new draft; nothing is committed."""
    draft = service.reset_draft(confirm)
    if draft is None:
        raise BondcalcHttpError(
            status_code=400,
            code="CONFIRMATION_REQUIRED",
            message="Reset all formulas and parameters to factory defaults? Pass confirm=true.",
        )
    return draft


@router.post("/config/preview", response_model=SandboxPreview)
def post_config_preview(draft: RateConfiguration, service: RateConfig) -> SandboxPreview:
    """Sandbox results for a draft at the probe invoice amount (sell clamped to minimum)."""
    return service.preview(draft)


@router.get("/formulas", response_model=list[FormulaSlotInfo])
def list_formulas() -> list[FormulaSlotInfo]:
    """Formula slots with their required variables."""
    return [
        FormulaSlotInfo(
            slot=spec.slot,
            label=spec.label,
            required_variables=sorted(spec.required_variables),
            default_formula=spec.default_formula,
        )
        for spec in FORMULA_SPECS
    ]


@router.post("/formulas/{slot}/validate", response_model=ValidateFormulaResponse)
def post_validate_formula(slot: str, body: ValidateFormulaRequest) -> ValidateFormulaResponse:
    """Check a formula text against a slot without committing it."""
    spec = _spec_or_404(slot)
    result = validate_formula_spec(body.formula, spec)
    return ValidateFormulaResponse(
        slot=spec.slot,
        valid=result.passed,
        errors=[{"code": e.code, "message": e.message} for e in result.errors],
    )


@router.post("/formulas/{slot}/evaluate", response_model=EvaluateFormulaResponse)
def post_evaluate_formula(
    slot: str, body: EvaluateFormulaRequest, service: RateConfig
) -> EvaluateFormulaResponse:
    """Run the active configuration's formula for a slot against given values."""
    spec = _spec_or_404(slot)
    config = service.active
    return EvaluateFormulaResponse(
        slot=spec.slot,
        formula=config.formula_for(spec),
        result=evaluate_slot(config, spec, body.variables),
    )
