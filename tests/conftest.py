"""Pytest configuration and fixtures for bondcalc tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from bondcalc.api.main import create_app
from bondcalc.services.rate_config import RateConfigService
from bondcalc.settings import (
    BONDCALC_ADMIN_KEY_ENV,
    BONDCALC_CONFIG_KEY_ENV,
    BONDCALC_LOG_LEVEL_ENV,
    BONDCALC_STORE_PATH_ENV,
    DEFAULT_CONFIG_KEY,
    Settings,
)
from bondcalc.storage import InMemoryKeyValueStore

TEST_ADMIN_KEY = "test-admin-key"


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests off the on-disk store and independent of the caller's env.

    Tests that need a SQLite file or an admin key set them explicitly.
    """
    monkeypatch.setenv(BONDCALC_STORE_PATH_ENV, ":memory:")
    monkeypatch.delenv(BONDCALC_ADMIN_KEY_ENV, raising=False)
    monkeypatch.delenv(BONDCALC_CONFIG_KEY_ENV, raising=False)
    monkeypatch.delenv(BONDCALC_LOG_LEVEL_ENV, raising=False)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    """Empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def service(store: InMemoryKeyValueStore) -> RateConfigService:
    """Rate configuration service over an empty store."""
    return RateConfigService(store)


@pytest.fixture
def settings() -> Settings:
    """Settings with an admin key and the in-memory store."""
    return Settings(
        store_path=":memory:",
        config_key=DEFAULT_CONFIG_KEY,
        admin_key=TEST_ADMIN_KEY,
        log_level="WARNING",
    )


@pytest.fixture
def client(store: InMemoryKeyValueStore, settings: Settings) -> TestClient:
    """Test client for an app backed by the shared in-memory store."""
    return TestClient(create_app(store=store, settings=settings))


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Bondcalc-Admin-Key": TEST_ADMIN_KEY}
