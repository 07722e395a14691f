"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from cortexops import __version__
from cortexops.api.dependencies import get_registry
from cortexops.generation.registry import TemplateRegistry

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Basic health check for load balancers."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/detailed")
async def health_detailed(
    registry: TemplateRegistry = Depends(get_registry),
) -> dict[str, object]:
    """Health check with the loaded template library."""
    return {
        "status": "healthy" if len(registry) else "degraded",
        "version": __version__,
        "components": {
            "templates": {
                "status": "loaded" if len(registry) else "empty",
                "count": len(registry),
                "names": registry.names(),
            },
        },
        "timestamp": datetime.now(UTC).isoformat(),
    }
