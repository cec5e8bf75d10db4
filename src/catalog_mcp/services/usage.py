"""Usage accounting for admitted protocol calls.

``UsageRecorder.record`` runs after the response has been sent (FastAPI
``BackgroundTasks``). It never raises: any failure is logged and dropped, so
accounting problems cannot change what a caller sees.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy import update
from sqlalchemy.orm import Session

from catalog_mcp.core.settings import settings
from catalog_mcp.db.session import SessionLocal
from catalog_mcp.db.time import from_timestamp
from catalog_mcp.models import Account, UsageLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UsageEvent:
    """What happened on one admitted call."""

    credential_id: str
    email: str
    method: str
    status_code: int
    duration_ms: int
    tool_name: str | None = None
    timestamp: float = field(default_factory=time.time)


class UsageRecorder:
    """Write ``UsageEvent`` values to the account counters and the usage log."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        retention_seconds: int | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.retention_seconds = (
            settings.usage_log_retention_seconds if retention_seconds is None else retention_seconds
        )

    def record(self, event: UsageEvent) -> None:
        """Persist ``event``; failures are logged, never raised."""
        try:
            with self.session_factory() as db:
                stamp = from_timestamp(event.timestamp)
                # Incremented in SQL so concurrent calls do not lose counts.
                db.execute(
                    update(Account)
                    .where(Account.email == event.email)
                    .values(request_count=Account.request_count + 1, last_request_at=stamp)
                )
                db.add(
                    UsageLog(
                        credential_id=event.credential_id,
                        email=event.email,
                        timestamp=stamp,
                        method=event.method,
                        tool_name=event.tool_name,
                        status_code=event.status_code,
                        duration_ms=event.duration_ms,
                        expires_at=int(event.timestamp + self.retention_seconds),
                    )
                )
                db.commit()
        except Exception:
            logger.exception("Failed to record usage for %s", event.email)


def purge_expired_usage(db: Session, now: float | None = None) -> int:
    """Delete usage log rows past their retention deadline."""
    cutoff = int(time.time() if now is None else now)
    removed = (
        db.query(UsageLog)
        .filter(UsageLog.expires_at <= cutoff)
        .delete()
    )
    db.commit()
    if removed:
        logger.info("Purged %d expired usage log rows", removed)
    return int(removed or 0)
