"""Dependency injection for the FastAPI application."""

from __future__ import annotations

from marketpredict.config import AppConfig
from marketpredict.engine.generator import PredictionGenerator
from marketpredict.engine.validator import PredictionValidator
from marketpredict.registry.db import Database
from marketpredict.registry.queries import Registry


class AppState:
    """Holds shared application state initialised during lifespan."""

    def __init__(self) -> None:
        self.config: AppConfig | None = None
        self.db: Database | None = None
        self.registry: Registry | None = None
        self.generator: PredictionGenerator | None = None
        self.validator: PredictionValidator | None = None


app_state = AppState()


def get_db() -> Database:
    if app_state.db is None:
        raise RuntimeError("Database not initialised")
    return app_state.db


def get_registry() -> Registry:
    if app_state.registry is None:
        raise RuntimeError("Registry not initialised")
    return app_state.registry


def get_generator() -> PredictionGenerator:
    if app_state.generator is None:
        raise RuntimeError("PredictionGenerator not initialised")
    return app_state.generator


def get_validator() -> PredictionValidator:
    if app_state.validator is None:
        raise RuntimeError("PredictionValidator not initialised")
    return app_state.validator
