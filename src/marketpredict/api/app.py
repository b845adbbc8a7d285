"""FastAPI application factory with token check and lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from marketpredict.api.deps import app_state
from marketpredict.config import load_config
from marketpredict.engine.generator import PredictionGenerator
from marketpredict.engine.validator import PredictionValidator
from marketpredict.messaging import MessageBus
from marketpredict.registry.db import Database
from marketpredict.registry.queries import Registry

logger = logging.getLogger(__name__)

API_PREFIX = "/api/markets"

PUBLIC_PATHS = {f"{API_PREFIX}/system/health"}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB pool and build the generator and validator."""
    config = load_config()

    db = Database(config.db_dsn, use_pool=True)
    db.connect()
    registry = Registry(db)
    bus = MessageBus(db)

    app_state.config = config
    app_state.db = db
    app_state.registry = registry
    app_state.generator = PredictionGenerator(
        registry,
        bus,
        quote_window=config.quote_window,
        history_limit=config.certainty_history_limit,
        lookback_days=config.certainty_lookback_days,
        horizon_days=config.prediction_horizon_days,
    )
    app_state.validator = PredictionValidator(registry, bus)
    logger.info("API started")
    yield

    db.close()
    logger.info("API shutdown complete")


class TokenMiddleware(BaseHTTPMiddleware):
    """Require the x-api-token header when API_TOKEN is configured."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not path.startswith(API_PREFIX) or path in PUBLIC_PATHS:
            return await call_next(request)

        config = app_state.config
        if not config or not config.api_token:
            return await call_next(request)

        if request.headers.get("x-api-token") != config.api_token:
            return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

        return await call_next(request)


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        use_lifespan: If False, skip the production lifespan (useful for testing
            where deps are injected via app_state directly).
    """
    app = FastAPI(
        title="Market Prediction API",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None,
    )
    app.add_middleware(TokenMiddleware)

    from marketpredict.api.routes import predictions, system

    app.include_router(system.router, prefix=API_PREFIX, tags=["system"])
    app.include_router(predictions.router, prefix=API_PREFIX, tags=["predictions"])

    return app
