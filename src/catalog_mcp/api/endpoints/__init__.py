# src/catalog_mcp/api/endpoints/__init__.py
"""HTTP endpoint modules."""

from .admin import router as admin_router
from .mcp import router as mcp_router
from .signup import router as signup_router
from .system import router as system_router

__all__ = [
    "admin_router",
    "mcp_router",
    "signup_router",
    "system_router",
]
