# src/catalog_mcp/scripts/sweep.py
"""
Cron job that removes expired sessions and usage log rows.

Reads already hide expired sessions; this sweep keeps the tables from
growing without bound. Run it hourly or daily.
"""

import logging
import time

from sqlalchemy.orm import Session

from catalog_mcp.db.session import SessionLocal
from catalog_mcp.services.sessions import SessionStore
from catalog_mcp.services.usage import purge_expired_usage

logger = logging.getLogger(__name__)


def sweep(db: Session, now: float | None = None) -> dict[str, int]:
    """Purge expired rows and return how many were removed per table.

    Args:
        db: Database session
        now: Unix time to treat as the present; defaults to the wall clock
    """
    current = time.time() if now is None else now
    sessions = SessionStore(db, clock=lambda: current).purge_expired()
    usage = purge_expired_usage(db, now=current)
    return {"sessions": sessions, "usage_logs": usage}


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    with SessionLocal() as db:
        removed = sweep(db)
    print(f"Removed {removed['sessions']} expired sessions, {removed['usage_logs']} usage rows")


if __name__ == "__main__":
    main()
