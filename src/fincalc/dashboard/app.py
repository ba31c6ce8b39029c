"""FastAPI application factory for the calculator HTTP API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fincalc.config import AppSettings
from fincalc.dashboard.routes import api
from fincalc.store.config_store import JsonConfigStore


def create_dashboard_app(
    settings: AppSettings,
    store: JsonConfigStore | None = None,
    lifespan: Any = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application-wide settings; stored on app.state for handlers.
        store: Position/account store. Defaults to the file named by
            StoreSettings.config_path.
        lifespan: Optional async context manager for application lifespan events.

    Returns:
        Configured FastAPI application with the JSON API mounted under /api.
    """
    app = FastAPI(
        title="FX Margin & Loan Calculator",
        lifespan=lifespan,
    )

    # The web client is served from a different origin during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.store = store or JsonConfigStore(settings.store.config_path)

    app.include_router(api.router, prefix="/api")

    return app
