"""Health and service information endpoints."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter

from catalog_mcp.api.dependencies import LookupCacheDep, RateLimiterDep
from catalog_mcp.core.settings import settings

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check(cache: LookupCacheDep, rate_limiter: RateLimiterDep) -> dict[str, object]:
    """Report liveness with cache and rate-limit counters.

    No authentication or origin check is applied.
    """
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
        "cache": cache.stats(),
        "rate_limit": rate_limiter.stats(),
    }


@router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "protocol_endpoint": "/mcp",
        "docs": "/docs",
    }
