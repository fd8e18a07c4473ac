"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from preeval.api.routes import health, pre_evaluation
from preeval.core.config import AppSettings
from preeval.core.exceptions import InvalidPayloadError, NotFoundError, UpstreamFailure
from preeval.core.logging import setup_logging
from preeval.messaging import create_message_bus
from preeval.services.pre_evaluation import PreEvaluationService


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings = AppSettings()
    app.state.settings = settings
    if getattr(app.state, "service", None) is None:
        setup_logging(settings.log.level, settings.log.format)
        bus = create_message_bus(settings)
        app.state.service = PreEvaluationService(bus, settings.rules)
    yield


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(service: PreEvaluationService | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Pre-evaluation Gateway",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.service = service
    app.include_router(health.router)
    app.include_router(pre_evaluation.router, prefix="/affiliates")

    @app.exception_handler(NotFoundError)
    async def not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, exc)

    @app.exception_handler(UpstreamFailure)
    async def upstream_failure(_request: Request, exc: UpstreamFailure) -> JSONResponse:
        return _error(502, exc)

    @app.exception_handler(InvalidPayloadError)
    async def invalid_payload(_request: Request, exc: InvalidPayloadError) -> JSONResponse:
        return _error(422, exc)

    return app
