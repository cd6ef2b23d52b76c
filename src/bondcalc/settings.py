"""Environment-driven settings for bondcalc.

Environment Variables:
    BONDCALC_STORE_PATH: SQLite file for the key-value store
        (default: ./var/bondcalc/store.sqlite3; ":memory:" selects the in-memory store)
    BONDCALC_CONFIG_KEY: Record name of the persisted rate configuration
        (default: teu_admin_settings)
    BONDCALC_ADMIN_KEY: Shared secret for admin routes (unset: admin routes denied)
    BONDCALC_LOG_LEVEL: Log level for the CLI (default: WARNING)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

BONDCALC_STORE_PATH_ENV = "BONDCALC_STORE_PATH"
BONDCALC_CONFIG_KEY_ENV = "BONDCALC_CONFIG_KEY"
BONDCALC_ADMIN_KEY_ENV = "BONDCALC_ADMIN_KEY"
BONDCALC_LOG_LEVEL_ENV = "BONDCALC_LOG_LEVEL"

DEFAULT_STORE_PATH = "./var/bondcalc/store.sqlite3"
DEFAULT_CONFIG_KEY = "teu_admin_settings"
DEFAULT_LOG_LEVEL = "WARNING"
IN_MEMORY_STORE_PATH = ":memory:"


def _get_env_str(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    val = os.environ.get(key, "").strip()
    return val if val else default


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""

    store_path: str
    config_key: str
    admin_key: str | None
    log_level: str

    @property
    def uses_memory_store(self) -> bool:
        return self.store_path == IN_MEMORY_STORE_PATH


def load_settings() -> Settings:
    """Read settings from the environment, applying defaults."""
    return Settings(
        store_path=_get_env_str(BONDCALC_STORE_PATH_ENV, DEFAULT_STORE_PATH),
        config_key=_get_env_str(BONDCALC_CONFIG_KEY_ENV, DEFAULT_CONFIG_KEY),
        admin_key=_get_env_str(BONDCALC_ADMIN_KEY_ENV) or None,
        log_level=_get_env_str(BONDCALC_LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper(),
    )
