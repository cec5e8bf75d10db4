"""Request admission for the protocol endpoint.

Every call passes the same checks in the same order:

1. origin validation
2. API-key authentication
3. session lookup, or creation when the caller has no live session
4. rate limiting

A call rejected at one stage never reaches a later one, so rejected traffic
never counts against a rate limit and never creates sessions. Each stage's
rejection is a typed outcome; mapping outcomes to HTTP responses is the
endpoint's job.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from sqlalchemy.exc import SQLAlchemyError

from catalog_mcp.core import security
from catalog_mcp.middleware.origin import validate_origin
from catalog_mcp.middleware.rate_limiter import RateLimitDecision, RateLimiter
from catalog_mcp.models import Account, McpSession
from catalog_mcp.services.accounts import AccountStore
from catalog_mcp.services.auth import authenticate
from catalog_mcp.services.sessions import SessionStore, extract_session_id
from catalog_mcp.utils.headers import normalize_headers

logger = logging.getLogger(__name__)


@dataclass
class CallContext:
    """Everything known about one admitted call. Never shared between calls."""

    request_id: str
    headers: dict[str, str]
    body: bytes
    account: Account
    credential: str
    credential_id: str
    session: McpSession
    session_created: bool
    rate_limit: RateLimitDecision
    started_at: float = field(default_factory=time.monotonic)

    @property
    def session_id(self) -> str:
        return self.session.session_id

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


@dataclass(frozen=True)
class Rejection:
    """Base for outcomes that end the call before dispatch."""

    status_code: ClassVar[int] = 400
    error: ClassVar[str] = "Bad Request"

    reason: str
    message: str

    def body(self) -> dict[str, Any]:
        return {"error": self.error, "reason": self.reason, "message": self.message}


@dataclass(frozen=True)
class OriginRejected(Rejection):
    status_code: ClassVar[int] = 403
    error: ClassVar[str] = "Forbidden"


@dataclass(frozen=True)
class AuthenticationFailed(Rejection):
    status_code: ClassVar[int] = 401
    error: ClassVar[str] = "Unauthorized"


@dataclass(frozen=True)
class SessionMismatch(Rejection):
    status_code: ClassVar[int] = 403
    error: ClassVar[str] = "Forbidden"


@dataclass(frozen=True)
class SessionUnknown(Rejection):
    status_code: ClassVar[int] = 404
    error: ClassVar[str] = "Not Found"


@dataclass(frozen=True)
class RateLimited(Rejection):
    status_code: ClassVar[int] = 429
    error: ClassVar[str] = "Too Many Requests"

    decision: RateLimitDecision | None = None
    limit: int = 0

    def body(self) -> dict[str, Any]:
        payload = super().body()
        if self.decision is not None:
            payload["retry_after"] = self.decision.retry_after
            payload["limit_type"] = self.decision.limit_type
        return payload

    def headers(self) -> dict[str, str]:
        retry_after = str(self.decision.retry_after if self.decision else 1)
        return {
            "Retry-After": retry_after,
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": retry_after,
        }


@dataclass(frozen=True)
class Admitted:
    """The call passed every stage and may be dispatched."""

    context: CallContext


@dataclass(frozen=True)
class SessionEnded:
    """A session was deleted at its owner's request."""

    session_id: str


AdmissionOutcome = OriginRejected | AuthenticationFailed | SessionMismatch | RateLimited | Admitted


def _session_mismatch(session_id: str) -> SessionMismatch:
    return SessionMismatch(
        reason="session_mismatch",
        message=f"Session {session_id} belongs to a different credential.",
    )


class AdmissionPipeline:
    """Run the admission stages for one call.

    Expected rejections are returned, never raised. Store failures while
    resolving or creating a session propagate to the HTTP boundary.
    """

    def __init__(
        self,
        accounts: AccountStore,
        sessions: SessionStore,
        rate_limiter: RateLimiter,
        *,
        allow_any_origin: bool = False,
    ) -> None:
        self.accounts = accounts
        self.sessions = sessions
        self.rate_limiter = rate_limiter
        self.allow_any_origin = allow_any_origin

    def _check_origin(self, headers: Mapping[str, str]) -> OriginRejected | None:
        origin = headers.get("origin")
        result = validate_origin(origin, allow_any=self.allow_any_origin)
        if result.valid:
            return None
        logger.warning("Rejected origin %s", origin)
        return OriginRejected(reason="origin_not_allowed", message=result.error or "")

    def _resolve_session(
        self, headers: Mapping[str, str], credential_id: str, account: Account
    ) -> tuple[McpSession | None, bool]:
        """Return ``(session, created)``; ``session`` is None on a credential mismatch."""
        session_id = extract_session_id(headers)
        if session_id:
            existing = self.sessions.get(session_id)
            if existing is not None:
                if existing.credential_id != credential_id:
                    logger.warning("Session credential mismatch: %s", session_id)
                    return None, False
                try:
                    self.sessions.touch(session_id)
                except SQLAlchemyError as exc:
                    # Rollback expires loaded rows; detach the ones this call still reads.
                    db = self.sessions.db
                    for instance in (existing, account):
                        if instance in db:
                            db.expunge(instance)
                    db.rollback()
                    logger.warning("Failed to touch session %s: %s", session_id, exc)
                return existing, False
            logger.info("Session expired or unknown: %s", session_id)

        created = self.sessions.create(credential_id, account.email)
        logger.info("New session created: %s", created.session_id)
        return created, True

    def admit(self, headers: Mapping[str, str], body: bytes = b"") -> AdmissionOutcome:
        """Run every stage in order and return the first rejection or ``Admitted``."""
        lowered = normalize_headers(headers)
        request_id = lowered.get("x-request-id") or str(uuid.uuid4())

        rejected = self._check_origin(lowered)
        if rejected is not None:
            return rejected

        auth = authenticate(lowered, self.accounts)
        if not auth.authenticated or auth.account is None or auth.credential is None:
            return AuthenticationFailed(
                reason=auth.reason or "unauthorized",
                message=auth.error or "Authentication failed",
            )

        credential_id = security.credential_fingerprint(auth.credential)
        session, created = self._resolve_session(lowered, credential_id, auth.account)
        if session is None:
            return _session_mismatch(extract_session_id(lowered) or "")

        decision = self.rate_limiter.check(credential_id)
        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for %s (%s window, retry after %ss)",
                security.display_prefix(auth.credential),
                decision.limit_type,
                decision.retry_after,
            )
            limit = self.rate_limiter.limit_for(decision.limit_type)
            per = "minute" if decision.limit_type == "minute" else "day"
            return RateLimited(
                reason="rate_limited",
                message=(
                    f"Rate limit exceeded. You can make {limit} request(s) per {per}. "
                    f"Try again in {decision.retry_after} seconds."
                ),
                decision=decision,
                limit=limit,
            )

        return Admitted(
            CallContext(
                request_id=request_id,
                headers=lowered,
                body=body,
                account=auth.account,
                credential=auth.credential,
                credential_id=credential_id,
                session=session,
                session_created=created,
                rate_limit=decision,
            )
        )

    def end_session(
        self, headers: Mapping[str, str]
    ) -> OriginRejected | AuthenticationFailed | SessionMismatch | SessionUnknown | SessionEnded:
        """Delete the caller's session named by ``Mcp-Session-Id``.

        Runs the origin and authentication stages; rate limiting does not
        apply to ending a session.
        """
        lowered = normalize_headers(headers)

        rejected = self._check_origin(lowered)
        if rejected is not None:
            return rejected

        auth = authenticate(lowered, self.accounts)
        if not auth.authenticated or auth.credential is None:
            return AuthenticationFailed(
                reason=auth.reason or "unauthorized",
                message=auth.error or "Authentication failed",
            )

        session_id = extract_session_id(lowered)
        session = self.sessions.get(session_id) if session_id else None
        if session_id is None or session is None:
            return SessionUnknown(
                reason="session_not_found",
                message="No live session matches the Mcp-Session-Id header.",
            )
        if session.credential_id != security.credential_fingerprint(auth.credential):
            return _session_mismatch(session_id)

        self.sessions.delete(session_id)
        logger.info("Session ended: %s", session_id)
        return SessionEnded(session_id)
