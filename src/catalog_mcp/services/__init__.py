# src/catalog_mcp/services/__init__.py
"""Business logic services for the catalog MCP server."""

from .accounts import AccountStore
from .admission import AdmissionPipeline
from .cache import LookupCache
from .catalog import CatalogService
from .sessions import SessionStore
from .usage import UsageEvent, UsageRecorder

__all__ = [
    "AccountStore",
    "AdmissionPipeline",
    "CatalogService",
    "LookupCache",
    "SessionStore",
    "UsageEvent",
    "UsageRecorder",
]
