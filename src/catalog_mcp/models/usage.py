# src/catalog_mcp/models/usage.py
"""Per-call usage log rows."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from catalog_mcp.core.settings import settings
from catalog_mcp.db.session import Base


class UsageLog(Base):
    """One admitted protocol call, appended after the response is sent."""

    __tablename__ = settings.usage_table_name

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    credential_id: Mapped[str] = mapped_column(Text, index=True, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    method: Mapped[str] = mapped_column(Text, nullable=False)
    tool_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Rows older than the retention window are removed by the sweep script.
    expires_at: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
