"""Persona AI Gateway — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map every failure to a {message} JSON body
    - CORS configured from settings (not hardcoded)
    - Credentials are NOT read at startup: the pool loads them on first use

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern
    - Error handlers live in api/error_handlers.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from persona_ai.api.error_handlers import register_error_handlers
from persona_ai.api.routes import ai, health
from persona_ai.config import get_settings
from persona_ai.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    logger.info("Persona AI Gateway started")
    yield
    logger.info("Persona AI Gateway shutting down")


app = FastAPI(
    title="Persona AI Gateway", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(ai.router)

register_error_handlers(app)
