"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if no API key is configured (readiness)
    - Neither probe calls the remote AI service

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from persona_ai.api.dependencies import get_credential_pool
from persona_ai.core.credential_pool import CredentialPool

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "persona-ai-gateway",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(pool: CredentialPool = Depends(get_credential_pool)):
    """Readiness probe — at least one credential enrolled."""
    state = pool.state
    if state.pool_size == 0:
        logger.warning("Readiness check failed: no API key configured")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "no_credentials_configured",
            },
        )
    return {
        "status": "ready",
        "checks": {
            "credentials": state.pool_size,
            "active_credential_index": state.active_index,
        },
    }
