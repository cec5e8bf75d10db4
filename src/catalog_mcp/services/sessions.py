"""Session store backed by the ``mcp_sessions`` table.

A session is a lease identified by the ``Mcp-Session-Id`` header. Expiry is
enforced twice for the same invariant, "an expired session is never observed
as live": ``get`` deletes and hides expired rows on read, and
``purge_expired`` (run by the sweep script) removes rows nobody reads again.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from sqlalchemy.orm import Session

from catalog_mcp.core.settings import settings
from catalog_mcp.db.time import from_timestamp
from catalog_mcp.models import McpSession

logger = logging.getLogger(__name__)

SESSION_HEADER = "mcp-session-id"


class SessionNotFoundError(LookupError):
    """Raised when updating a session that does not exist or has expired."""


def extract_session_id(headers: Mapping[str, str]) -> str | None:
    """Return the ``Mcp-Session-Id`` header value from lower-cased headers."""
    value = (headers.get(SESSION_HEADER) or "").strip()
    return value or None


def generate_session_id() -> str:
    """Return a fresh, unguessable session identifier."""
    return str(uuid.uuid4())


class SessionStore:
    """CRUD and TTL handling for protocol sessions."""

    def __init__(
        self,
        db: Session,
        *,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.db = db
        self.ttl_seconds = settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock

    def create(
        self,
        credential_id: str,
        owner: str,
        metadata: dict[str, Any] | None = None,
    ) -> McpSession:
        """Persist and return a new session for a credential."""
        now = self._clock()
        stamp = from_timestamp(now)
        record = McpSession(
            session_id=generate_session_id(),
            credential_id=credential_id,
            owner=owner,
            created_at=stamp,
            last_accessed_at=stamp,
            expires_at=int(now + self.ttl_seconds),
            session_metadata=dict(metadata) if metadata else None,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def _is_expired(self, record: McpSession, now: float) -> bool:
        return record.expires_at <= int(now)

    def get(self, session_id: str) -> McpSession | None:
        """Return a live session, deleting it first if it has expired."""
        record = self.db.get(McpSession, session_id)
        if record is None:
            return None
        if self._is_expired(record, self._clock()):
            logger.debug("Session %s expired; deleting", session_id)
            self.db.delete(record)
            self.db.commit()
            return None
        return record

    def touch(self, session_id: str) -> None:
        """Extend a live session's lease. Absent or expired sessions are ignored."""
        record = self.get(session_id)
        if record is None:
            return
        now = self._clock()
        record.last_accessed_at = from_timestamp(now)
        record.expires_at = int(now + self.ttl_seconds)
        self.db.commit()

    def delete(self, session_id: str) -> None:
        """Remove a session if it exists."""
        record = self.db.get(McpSession, session_id)
        if record is None:
            return
        self.db.delete(record)
        self.db.commit()

    def list_for_credential(self, credential_id: str) -> Sequence[McpSession]:
        """Return the live sessions created with a credential."""
        now = int(self._clock())
        return (
            self.db.query(McpSession)
            .filter(McpSession.credential_id == credential_id)
            .filter(McpSession.expires_at > now)
            .order_by(McpSession.created_at)
            .all()
        )

    def update_metadata(self, session_id: str, metadata: dict[str, Any]) -> McpSession:
        """Merge ``metadata`` into a live session's metadata and refresh its access time."""
        record = self.get(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        merged = dict(record.session_metadata or {})
        merged.update(metadata)
        record.session_metadata = merged
        record.last_accessed_at = from_timestamp(self._clock())
        self.db.commit()
        return record

    def purge_expired(self) -> int:
        """Delete every expired session and return how many were removed."""
        removed = (
            self.db.query(McpSession)
            .filter(McpSession.expires_at <= int(self._clock()))
            .delete()
        )
        self.db.commit()
        if removed:
            logger.info("Purged %d expired sessions", removed)
        return int(removed or 0)
