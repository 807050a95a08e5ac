"""Error Handlers — global exception handlers producing the {message} failure envelope.

Invariants:
    - PersonaAIError → its own http_status + to_response()
    - anthropic.APIStatusError (propagated unmodified by the Invoker) → upstream status
    - RequestValidationError → 400 with field-level details
    - Exception (catch-all) → 500, message names the exception class only

Design Decisions:
    - Four-layer handler: domain, upstream, validation (Pydantic), catch-all
    - Extracted from main.py to keep the app module small
"""

import logging

from anthropic import APIStatusError
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from persona_ai.core.errors import ErrorSeverity, PersonaAIError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_upstream_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:

    @app.exception_handler(PersonaAIError)
    async def persona_ai_error_handler(request: Request, exc: PersonaAIError):
        """Handle all classified invocation errors."""
        log = logger.warning if exc.http_status < 500 else logger.error
        log(
            f"PersonaAIError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "action": exc.context.action,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_upstream_error_handler(app: FastAPI) -> None:

    @app.exception_handler(APIStatusError)
    async def upstream_error_handler(request: Request, exc: APIStatusError):
        """Unclassified upstream HTTP errors keep their status code."""
        logger.error(
            f"Upstream API error {exc.status_code}: {exc.message}",
            extra={"error_code": "UPSTREAM_API_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "message": exc.message,
                "error": {
                    "code": "UPSTREAM_API_ERROR",
                    "category": "external_api",
                    "severity": ErrorSeverity.ERROR.value,
                },
            },
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors of the transport envelope."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — message only, never internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "message": f"An internal error occurred ({type(exc).__name__}).",
                "error": {
                    "code": "INTERNAL_ERROR",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    return {
        "message": "Invalid request data: " + "; ".join(
            f"{d['field']}: {d['message']}" for d in details
        ),
        "error": {
            "code": "VALIDATION_ERROR",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": details,
        },
    }
