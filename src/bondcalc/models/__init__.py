"""Data models for rate configuration and calculation results."""

from bondcalc.models.calculation import CalculationResult, Regime, SandboxPreview
from bondcalc.models.rate_configuration import DEFAULT_RATE_CONFIGURATION, RateConfiguration

__all__ = [
    "DEFAULT_RATE_CONFIGURATION",
    "CalculationResult",
    "RateConfiguration",
    "Regime",
    "SandboxPreview",
]
