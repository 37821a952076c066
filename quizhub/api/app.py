"""FastAPI application factory."""

import logging
import random
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from ..config import Config
from ..database.connection import Database
from ..server import QuizHubServer
from ..services.base import Clock
from ..utils.errors import QuizHubError
from .responses import envelope
from .routers import (
    attempt_history,
    categories,
    challenge_submissions,
    coding_challenges,
    coding_submissions,
    health,
    questions,
    quiz_sessions,
    users,
)

logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def create_app(
    config: Config,
    database: Optional[Database] = None,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """Create the API application.

    Args:
        config: Application configuration
        database: Optional pre-built database (tests pass an in-memory one)
        clock: Optional time source for every service
        rng: Optional random source for question shuffling
    """
    server = QuizHubServer(config, database=database, clock=clock, rng=rng)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await server.setup()
        try:
            yield
        finally:
            await server.close()

    app = FastAPI(title="QuizHub API", version="0.1.0", lifespan=lifespan)
    app.state.server = server
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(QuizHubError)
    async def handle_quizhub_error(request: Request, exc: QuizHubError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return envelope(
            False,
            message=exc.message,
            data=exc.data,
            errors=exc.errors,
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [{"field": _field_name(e["loc"]), "message": e["msg"]} for e in exc.errors()]
        return envelope(False, message="Validation failed", errors=errors, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        message = str(exc) if config.is_development else "Internal server error"
        return envelope(False, message=message, status_code=500)

    for module in (
        quiz_sessions,
        attempt_history,
        categories,
        questions,
        coding_challenges,
        challenge_submissions,
        coding_submissions,
        users,
        health,
    ):
        app.include_router(module.router, prefix="/api")

    return app
