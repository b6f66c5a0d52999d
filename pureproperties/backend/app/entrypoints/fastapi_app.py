# app/entrypoints/fastapi_app.py
from __future__ import annotations

from fastapi import FastAPI

from ..logging_setup import configure_logging
from .api.routers import health, listings


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Pure Properties - Listings Gateway")

    # Routers
    app.include_router(health.router)
    app.include_router(listings.router)

    return app
