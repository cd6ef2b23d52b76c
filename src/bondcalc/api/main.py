"""bondcalc FastAPI application factory.

This module provides the create_app() factory for bootstrapping the API.
"""

from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from bondcalc import __version__
from bondcalc.api.errors import (
    BondcalcHttpError,
    bondcalc_http_error_handler,
    formula_validation_failure_handler,
    generic_exception_handler,
    http_exception_handler,
    request_validation_error_handler,
    storage_error_handler,
)
from bondcalc.api.middleware.request_id import RequestIdMiddleware
from bondcalc.api.routes.calculator import router as calculator_router
from bondcalc.api.routes.config import router as config_router
from bondcalc.api.routes.health import router as health_router
from bondcalc.api.routes.rates import router as rates_router
from bondcalc.calculator.session import CalculatorSession
from bondcalc.services.rate_config import FormulaValidationFailure, RateConfigService
from bondcalc.settings import Settings, load_settings
from bondcalc.storage import KeyValueStore, StorageBackendError, create_store


def create_app(
    store: KeyValueStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the bondcalc FastAPI application.

    The rate configuration is loaded from the store once, here; later reads
    go through the RateConfigService held on app.state.

    Args:
        store: Optional key-value store for testing. If None, one is built
            from settings.
        settings: Optional settings for testing. If None, read from the
            environment.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or load_settings()
    store = store or create_store(settings)

    app = FastAPI(
        title="bondcalc API",
        description="Customs bond buy/sell fee calculator",
        version=__version__,
    )

    app.state.settings = settings
    app.state.rate_config = RateConfigService(store, record_key=settings.config_key)
    app.state.calculator = CalculatorSession()

    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(BondcalcHttpError, bondcalc_http_error_handler)
    app.add_exception_handler(FormulaValidationFailure, formula_validation_failure_handler)
    app.add_exception_handler(StorageBackendError, storage_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)
    app.include_router(rates_router)
    app.include_router(config_router)
    app.include_router(calculator_router)

    return app
