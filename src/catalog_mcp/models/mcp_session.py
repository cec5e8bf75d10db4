# src/catalog_mcp/models/mcp_session.py
"""SQLAlchemy model for protocol sessions (``Mcp-Session-Id``)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from catalog_mcp.core.settings import settings
from catalog_mcp.db.session import Base


class McpSession(Base):
    """A session lease bound to exactly one credential.

    ``expires_at`` is kept as unix seconds so expiry checks compare plain
    integers regardless of the backing database's datetime handling.
    """

    __tablename__ = settings.sessions_table_name

    session_id: Mapped[str] = mapped_column(Text, primary_key=True)
    # Fingerprint of the API key that created the session; never updated.
    credential_id: Mapped[str] = mapped_column(Text, index=True, nullable=False)
    owner: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_accessed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
    session_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )
