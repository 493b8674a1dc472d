"""
Health check endpoints.

Used for monitoring and load balancer health checks.
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import platform

from api.dependencies import ServiceContainer, get_container


router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns system health status.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "storefront-orders",
        "version": "1.0.0",
        "python_version": platform.python_version(),
    }


@router.get("/health/ready")
async def readiness_check(container: ServiceContainer = Depends(get_container)):
    """
    Readiness check endpoint.

    Reports which adapters this instance was wired with.
    """
    settings = container.settings
    return {
        "status": "ready",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "api": "ok",
            "database": settings.database.backend,
            "payments": "yookassa" if settings.yookassa.enabled else "mock",
            "reconciliation_queue": "redis" if settings.redis.enabled else "log",
            "pending_background_tasks": getattr(container.scheduler, "pending", 0),
        },
    }
