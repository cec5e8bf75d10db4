# src/catalog_mcp/models/account.py
"""SQLAlchemy model for API accounts."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from catalog_mcp.core.settings import settings
from catalog_mcp.db.session import Base
from catalog_mcp.db.time import utcnow


class AccountStatus(str, Enum):
    """Lifecycle states an account can be in."""

    ACTIVE = "active"
    BLOCKED = "blocked"
    SUSPENDED = "suspended"


class AccountTier(str, Enum):
    """Pricing tiers. Only recorded; no tier-specific rules are enforced."""

    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class Account(Base):
    """An API consumer, keyed by email and authenticated by an API key.

    Only a BLAKE3 fingerprint of the key is stored; the key itself is shown
    to the user once, at signup or reset.
    """

    __tablename__ = settings.accounts_table_name

    email: Mapped[str] = mapped_column(Text, primary_key=True)
    key_hash: Mapped[str] = mapped_column(Text, unique=True, index=True, nullable=False)
    key_prefix: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tier: Mapped[str] = mapped_column(Text, nullable=False, default=AccountTier.FREE.value)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=AccountStatus.ACTIVE.value)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_request_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def is_active(self) -> bool:
        """Return True if the account may use the API."""
        return self.status == AccountStatus.ACTIVE.value
