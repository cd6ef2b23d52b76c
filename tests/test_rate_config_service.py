"""Tests for RateConfigService: load, commit, reset and preview.

Commits are validated first and then applied as a whole; a rejected commit
changes neither the store nor the active configuration.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path

import pytest

from bondcalc.models.rate_configuration import DEFAULT_RATE_CONFIGURATION, RateConfiguration
from bondcalc.services.rate_config import FormulaValidationFailure, RateConfigService
from bondcalc.settings import DEFAULT_CONFIG_KEY
from bondcalc.storage import InMemoryKeyValueStore, SqliteKeyValueStore, StorageBackendError


class _ReadOnlyStore(InMemoryKeyValueStore):
    def set(self, key: str, value: str) -> None:
        raise StorageBackendError("Store is read-only", key=key)


def _custom_draft() -> RateConfiguration:
    return DEFAULT_RATE_CONFIGURATION.with_updates(
        min_billing="50",
        sell_rate_percent="0.5",
        standard_buy_formula="(invoice_value + duties) * 0.001",
    )


class TestLoad:
    def test_absent_record_uses_defaults(self, service: RateConfigService) -> None:
        assert service.active == DEFAULT_RATE_CONFIGURATION

    def test_loads_persisted_record(self, store: InMemoryKeyValueStore) -> None:
        store.set(DEFAULT_CONFIG_KEY, json.dumps(_custom_draft().to_record()))
        assert RateConfigService(store).active == _custom_draft()

    def test_unreadable_record_falls_back_to_defaults(
        self, store: InMemoryKeyValueStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        store.set(DEFAULT_CONFIG_KEY, "{not json")
        with caplog.at_level(logging.WARNING):
            service = RateConfigService(store)
        assert service.active == DEFAULT_RATE_CONFIGURATION
        assert "unreadable configuration record" in caplog.text

    def test_record_with_invalid_formula_falls_back_to_defaults(
        self, store: InMemoryKeyValueStore
    ) -> None:
        record = DEFAULT_RATE_CONFIGURATION.to_record()
        record["pgaBuyFormula"] = "1 + 1"
        store.set(DEFAULT_CONFIG_KEY, json.dumps(record))
        assert RateConfigService(store).active == DEFAULT_RATE_CONFIGURATION

    def test_custom_record_key(self, store: InMemoryKeyValueStore) -> None:
        store.set("other", json.dumps(_custom_draft().to_record()))
        assert RateConfigService(store, record_key="other").active == _custom_draft()
        assert RateConfigService(store).active == DEFAULT_RATE_CONFIGURATION


class TestCommit:
    def test_commit_replaces_active_and_persists(
        self, service: RateConfigService, store: InMemoryKeyValueStore
    ) -> None:
        committed = service.commit(_custom_draft())
        assert committed == _custom_draft()
        assert service.active == _custom_draft()
        stored = json.loads(store.get(DEFAULT_CONFIG_KEY) or "")
        assert stored["minBilling"] == "50"
        assert stored["standardBuyFormula"] == "(invoice_value + duties) * 0.001"

    def test_invalid_formula_rejects_whole_commit(
        self, service: RateConfigService, store: InMemoryKeyValueStore
    ) -> None:
        draft = _custom_draft().with_updates(pga_sell_formula="invoice_value_with_pga * 3")
        with pytest.raises(FormulaValidationFailure) as exc_info:
            service.commit(draft)

        assert exc_info.value.slot == "pga_sell_formula"
        assert exc_info.value.label == "PGA Sell Formula"
        assert "Invalid PGA Sell Formula" in str(exc_info.value)
        assert service.active == DEFAULT_RATE_CONFIGURATION
        assert store.get(DEFAULT_CONFIG_KEY) is None

    def test_first_failing_slot_is_named(self, service: RateConfigService) -> None:
        draft = DEFAULT_RATE_CONFIGURATION.with_updates(
            standard_sell_formula="x", pga_buy_formula="y"
        )
        with pytest.raises(FormulaValidationFailure) as exc_info:
            service.commit(draft)
        assert exc_info.value.slot == "standard_sell_formula"
        assert len(exc_info.value.errors) == 2

    def test_committing_unchanged_draft_is_idempotent(self, service: RateConfigService) -> None:
        service.commit(_custom_draft())
        before = service.active.to_record()

        service.commit(service.begin_draft())

        assert service.active.to_record() == before

    def test_store_failure_leaves_active_unchanged(self) -> None:
        service = RateConfigService(_ReadOnlyStore())
        with pytest.raises(StorageBackendError):
            service.commit(_custom_draft())
        assert service.active == DEFAULT_RATE_CONFIGURATION


class TestReset:
    def test_confirmed_reset_returns_defaults(self, service: RateConfigService) -> None:
        service.commit(_custom_draft())
        assert service.reset_draft(True) == DEFAULT_RATE_CONFIGURATION

    def test_reset_accepts_confirmation_callable(self, service: RateConfigService) -> None:
        assert service.reset_draft(lambda: True) == DEFAULT_RATE_CONFIGURATION
        assert service.reset_draft(lambda: False) is None

    def test_unconfirmed_reset_returns_none(self, service: RateConfigService) -> None:
        assert service.reset_draft(False) is None

    def test_reset_does_not_touch_committed_configuration(
        self, service: RateConfigService, store: InMemoryKeyValueStore
    ) -> None:
        service.commit(_custom_draft())
        service.reset_draft(True)

        assert service.active == _custom_draft()
        assert RateConfigService(store).active == _custom_draft()

    def test_reset_then_reload_recovers_committed_values(
        self, service: RateConfigService
    ) -> None:
        service.commit(_custom_draft())
        service.reset_draft(True)
        assert service.reload() == _custom_draft()


class TestPersistenceRoundTrip:
    def test_sqlite_round_trip(self, tmp_path: Path) -> None:
        db_path = tmp_path / "store.sqlite3"
        RateConfigService(SqliteKeyValueStore(db_path)).commit(_custom_draft())

        reloaded = RateConfigService(SqliteKeyValueStore(db_path)).active
        assert reloaded == _custom_draft()
        assert reloaded.min_billing == Decimal("50")


class TestPreview:
    def test_preview_draft_does_not_commit(self, service: RateConfigService) -> None:
        draft = _custom_draft()
        preview = service.preview(draft)
        assert preview.sell == "50.000000"
        assert service.active == DEFAULT_RATE_CONFIGURATION
