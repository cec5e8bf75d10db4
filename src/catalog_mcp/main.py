# src/catalog_mcp/main.py
"""Main entry point for the catalog MCP server."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog_mcp.api.endpoints import admin_router, mcp_router, signup_router, system_router
from catalog_mcp.core.settings import settings
from catalog_mcp.db.session import create_tables
from catalog_mcp.middleware.rate_limiter import RateLimitSweeper, build_rate_limiter
from catalog_mcp.rpc.dispatcher import RpcDispatcher
from catalog_mcp.rpc.tools import ToolHandler
from catalog_mcp.services.cache import LookupCache
from catalog_mcp.services.catalog import CatalogService
from catalog_mcp.services.usage import UsageRecorder

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the application and the process-wide components it owns.

    The rate limiter and lookup cache live for as long as the process: they
    persist across requests and start empty after a restart.
    """
    app = FastAPI(
        title=settings.app_name,
        description="JSON-RPC tool server for UI component catalog lookups",
        version=settings.app_version,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=settings.cors_expose_headers,
    )

    rate_limiter = build_rate_limiter(settings)
    lookup_cache = LookupCache(settings.cache_ttl_seconds)
    app.state.rate_limiter = rate_limiter
    app.state.lookup_cache = lookup_cache
    app.state.dispatcher = RpcDispatcher(ToolHandler(CatalogService(), lookup_cache))
    app.state.usage_recorder = UsageRecorder()
    app.state.sweeper = RateLimitSweeper(rate_limiter, settings.rate_limit_sweep_interval_seconds)

    app.include_router(system_router)
    app.include_router(mcp_router)
    app.include_router(signup_router)
    app.include_router(admin_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        if settings.database_auto_create:
            create_tables()
        await app.state.sweeper.start()
        logger.info(
            "%s %s started (%s)", settings.app_name, settings.app_version, settings.environment
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.sweeper.stop()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("catalog_mcp.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
