"""initial schema: accounts, sessions, usage logs

Revision ID: 5c1e9a4b2d07
Revises:
Create Date: 2026-10-16 09:12:41.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from catalog_mcp.core.settings import settings

# revision identifiers, used by Alembic.
revision: str = "5c1e9a4b2d07"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the account, session and usage tables."""
    op.create_table(
        settings.accounts_table_name,
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("key_hash", sa.Text(), nullable=False),
        sa.Column("key_prefix", sa.Text(), nullable=False),
        sa.Column("tier", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("request_count", sa.Integer(), nullable=False),
        sa.Column("last_request_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("email"),
    )
    op.create_index(
        f"ix_{settings.accounts_table_name}_key_hash",
        settings.accounts_table_name,
        ["key_hash"],
        unique=True,
    )

    op.create_table(
        settings.sessions_table_name,
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.Column("credential_id", sa.Text(), nullable=False),
        sa.Column("owner", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("session_id"),
    )
    op.create_index(
        f"ix_{settings.sessions_table_name}_credential_id",
        settings.sessions_table_name,
        ["credential_id"],
    )
    op.create_index(
        f"ix_{settings.sessions_table_name}_expires_at",
        settings.sessions_table_name,
        ["expires_at"],
    )

    op.create_table(
        settings.usage_table_name,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("credential_id", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("method", sa.Text(), nullable=False),
        sa.Column("tool_name", sa.Text(), nullable=True),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("duration_ms", sa.Integer(), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        f"ix_{settings.usage_table_name}_credential_id",
        settings.usage_table_name,
        ["credential_id"],
    )
    op.create_index(
        f"ix_{settings.usage_table_name}_expires_at",
        settings.usage_table_name,
        ["expires_at"],
    )


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_table(settings.usage_table_name)
    op.drop_table(settings.sessions_table_name)
    op.drop_table(settings.accounts_table_name)
