"""Services for bondcalc."""

from bondcalc.services.rate_config import FormulaValidationFailure, RateConfigService

__all__ = ["FormulaValidationFailure", "RateConfigService"]
