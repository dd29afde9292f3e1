"""
Health Routes
=============

FastAPI routes for health check endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...config.database import check_redis_health
from ...config.logging import get_logger
from ...core.rendering import get_browser_pool
from ...models.schemas import HealthStatus
from ..dependencies import Services, get_services

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


async def check_browser_pool_health() -> Dict[str, Any]:
    """Check browser pool health status."""
    pool = get_browser_pool()
    if pool is None:
        return {"healthy": False, "status": "not_initialized", "available_browsers": 0, "total_browsers": 0}

    available_browsers = len(pool.browsers)
    healthy = pool.ready
    return {
        "healthy": healthy,
        "status": "healthy" if healthy else "no_browsers_available",
        "available_browsers": available_browsers,
        "total_browsers": pool.pool_size,
    }


@router.get("/health", response_model=HealthStatus)
async def health_check(services: Services = Depends(get_services)) -> HealthStatus:
    """
    Get application health status.

    The service is healthy when the browser pool and mixup storage are both
    available, degraded when only rendering works, unhealthy otherwise.
    """
    settings = services.settings
    browser_pool_health = await check_browser_pool_health()
    browser_healthy = bool(browser_pool_health["healthy"])
    redis_healthy = True if settings.mixup_store == "memory" else await check_redis_health()

    if browser_healthy and redis_healthy:
        status = "healthy"
    elif browser_healthy:
        status = "degraded"
    else:
        status = "unhealthy"

    logger.info(
        "Health check completed",
        status=status,
        browser_pool_status=browser_pool_health["status"],
        available_browsers=browser_pool_health["available_browsers"],
        redis=redis_healthy,
    )
    return HealthStatus(
        status=status,
        version=settings.app_version,
        redis=redis_healthy,
        browser_pool=browser_healthy,
        recipes=len(services.registry),
    )
