"""ASGI entry point: ``uvicorn bondcalc.app:app``."""

from bondcalc.api.main import create_app

app = create_app()
