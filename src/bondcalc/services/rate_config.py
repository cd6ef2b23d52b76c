"""Rate configuration service.

Owns the active RateConfiguration. Reads are free; the only write path is
commit(), which validates every formula slot, persists the draft, and then
replaces the active configuration in a single assignment. A rejected commit
leaves both the store and the active configuration untouched.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from pydantic import ValidationError as PydanticValidationError

from bondcalc.calc.engine import preview_configuration
from bondcalc.calc.formulas.registry import get_formula_spec
from bondcalc.models.calculation import SandboxPreview
from bondcalc.models.rate_configuration import DEFAULT_RATE_CONFIGURATION, RateConfiguration
from bondcalc.settings import DEFAULT_CONFIG_KEY
from bondcalc.storage.kv_store import KeyValueStore
from bondcalc.validators.formula import ValidationError, validate_configuration

logger = logging.getLogger(__name__)


class FormulaValidationFailure(Exception):
    """Raised when a draft configuration contains an invalid formula.

    Attributes:
        slot: Slot name of the first failing formula.
        label: Human-readable name of that formula.
        reason: Why it failed.
        errors: Every validation error found in the draft.
    """

    def __init__(self, errors: list[ValidationError]) -> None:
        first = errors[0]
        self.slot = first.path
        self.label = get_formula_spec(first.path).label
        self.reason = first.message
        self.errors = errors
        super().__init__(
            f"Invalid {self.label}. Please check the formula syntax and ensure all "
            "required variables are included."
        )


class RateConfigService:
    """Load, validate, commit and reset the rate configuration.

    Args:
        store: Key-value store holding the persisted record.
        record_key: Name of the persisted record.
    """

    def __init__(self, store: KeyValueStore, record_key: str = DEFAULT_CONFIG_KEY) -> None:
        self._store = store
        self._record_key = record_key
        self._active = self._load()

    @property
    def active(self) -> RateConfiguration:
        """The committed configuration used by live calculations."""
        return self._active

    @property
    def record_key(self) -> str:
        return self._record_key

    def reload(self) -> RateConfiguration:
        """Re-read the persisted record, replacing the active configuration."""
        self._active = self._load()
        return self._active

    def _load(self) -> RateConfiguration:
        raw = self._store.get(self._record_key)
        if raw is None:
            return DEFAULT_RATE_CONFIGURATION

        try:
            config = RateConfiguration.from_record(json.loads(raw))
        except (json.JSONDecodeError, TypeError, PydanticValidationError) as e:
            logger.warning("Ignoring unreadable configuration record %s: %s", self._record_key, e)
            return DEFAULT_RATE_CONFIGURATION

        result = validate_configuration(config)
        if not result.passed:
            logger.warning(
                "Ignoring configuration record %s with invalid formulas: %s",
                self._record_key,
                ", ".join(e.path for e in result.errors),
            )
            return DEFAULT_RATE_CONFIGURATION
        return config

    def begin_draft(self) -> RateConfiguration:
        """Start editing from the active configuration."""
        return self._active

    def commit(self, draft: RateConfiguration) -> RateConfiguration:
        """Validate and apply a draft configuration.

        Args:
            draft: Complete replacement configuration.

        Returns:
            The newly active configuration.

        Raises:
            FormulaValidationFailure: If any formula slot fails validation.
            StorageBackendError: If the record cannot be persisted.
        """
        result = validate_configuration(draft)
        if not result.passed:
            failure = FormulaValidationFailure(result.errors)
            logger.warning("Rejected configuration commit: %s (%s)", failure.label, failure.reason)
            raise failure

        self._store.set(self._record_key, json.dumps(draft.to_record(), sort_keys=True))
        self._active = draft
        logger.info("Committed rate configuration to %s", self._record_key)
        return self._active

    def reset_draft(self, confirm: bool | Callable[[], bool]) -> RateConfiguration | None:
        """Return the built-in defaults as a new draft if the caller confirms.

        Nothing is persisted; the defaults still have to be committed.

        Args:
            confirm: A yes/no answer, or a callable asked for one.

        Returns:
            The default configuration, or None when not confirmed.
        """
        confirmed = confirm() if callable(confirm) else confirm
        if not confirmed:
            return None
        return DEFAULT_RATE_CONFIGURATION

    def preview(self, draft: RateConfiguration) -> SandboxPreview:
        """Sandbox evaluation of a draft at the probe invoice amount."""
        return preview_configuration(draft)
