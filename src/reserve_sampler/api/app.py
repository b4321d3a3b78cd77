"""FastAPI application factory for the snapshot API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from reserve_sampler.api.routes import api


def create_api_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the snapshot API application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        FastAPI application. Route handlers expect ``app.state.store`` (a
        SnapshotStore) and optionally ``app.state.trigger``.
    """
    app = FastAPI(
        title="Reserve Sampler",
        lifespan=lifespan,
    )
    app.state.store = None
    app.state.trigger = None

    app.include_router(api.router, prefix="/api")

    return app
