"""Account-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog_mcp.core.security import is_valid_email, normalize_email


class EmailRequest(BaseModel):
    """Body carrying a single email address."""

    email: str = Field(..., max_length=254, description="Account email address")

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        """Reject malformed addresses and normalize the rest."""
        if not is_valid_email(value):
            raise ValueError("Invalid email address")
        return normalize_email(value)


class SignupRequest(EmailRequest):
    """Request a new API key."""


class ResetKeyRequest(EmailRequest):
    """Request a replacement API key for an existing account."""


class KeyIssuedResponse(BaseModel):
    """A freshly issued API key. The key is never shown again."""

    success: bool = True
    email: str
    api_key: str
    key_prefix: str
    created: bool = Field(False, description="True if a new account was created")
    message: str


class AdminUser(BaseModel):
    """Account as shown to admins; never includes key material beyond the prefix."""

    email: str
    key_prefix: str
    tier: str
    status: str
    is_admin: bool
    created_at: datetime
    updated_at: datetime
    request_count: int
    last_request_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class AdminUserList(BaseModel):
    users: list[AdminUser]
    count: int


class AdminStats(BaseModel):
    total_users: int
    active_users: int
    blocked_users: int
    suspended_users: int
    admin_users: int
    free_users: int
    pro_users: int
    enterprise_users: int
    total_requests: int


class AdminActionResponse(BaseModel):
    success: bool = True
    message: str
    user: AdminUser


class UsageRecord(BaseModel):
    timestamp: datetime
    method: str
    tool_name: str | None = None
    status_code: int
    duration_ms: int

    model_config = ConfigDict(from_attributes=True)


class UsageHistory(BaseModel):
    email: str
    count: int
    usage: list[UsageRecord]
