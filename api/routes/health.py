"""Health check API routes.

Provides endpoints for:
- GET /health - Basic liveness check
- GET /health/ready - Readiness check (record store reachability)
"""

from fastapi import APIRouter, HTTPException, status

from api.routes.v1.dependencies import ServicesDep

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict:
    """Basic liveness check. No authentication required."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(services: ServicesDep) -> dict:
    """Readiness check.

    Reports which store and workflow the process runs with and whether
    the store is reachable. No authentication required.

    Raises:
        HTTPException 503: Record store unreachable
    """
    store_healthy = services.store.ping()

    if not store_healthy:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready: record store unavailable",
        )

    return {
        "status": "ok",
        "store": services.store.backend,
        "workflow": "simulated" if services.simulated else "n8n",
        "demo_mode": services.demo_mode,
    }
