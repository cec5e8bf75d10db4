# src/catalog_mcp/models/__init__.py
"""SQLAlchemy models for the catalog MCP server."""

from .account import Account, AccountStatus, AccountTier
from .mcp_session import McpSession
from .usage import UsageLog

__all__ = [
    "Account", "AccountStatus", "AccountTier",
    "McpSession",
    "UsageLog",
]
