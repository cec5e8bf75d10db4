# src/catalog_mcp/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .account import (
    AdminActionResponse,
    AdminStats,
    AdminUser,
    AdminUserList,
    KeyIssuedResponse,
    ResetKeyRequest,
    SignupRequest,
    UsageHistory,
    UsageRecord,
)

__all__ = [
    "AdminActionResponse", "AdminStats", "AdminUser", "AdminUserList",
    "KeyIssuedResponse", "ResetKeyRequest", "SignupRequest",
    "UsageHistory", "UsageRecord",
]
