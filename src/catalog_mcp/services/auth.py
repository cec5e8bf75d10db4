"""API-key authentication for protocol and admin requests."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from catalog_mcp.core import security
from catalog_mcp.models import Account, AccountStatus
from catalog_mcp.services.accounts import AccountStore
from catalog_mcp.utils.headers import normalize_headers

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthResult:
    """Outcome of resolving a request's credential.

    ``reason`` is a short machine-readable code; ``error`` the message shown
    to the caller.
    """

    authenticated: bool
    account: Account | None = None
    credential: str | None = None
    error: str | None = None
    reason: str | None = None

    @property
    def credential_id(self) -> str | None:
        """Return the fingerprint used to key sessions and rate limits."""
        if self.credential is None:
            return None
        return security.credential_fingerprint(self.credential)


@dataclass(frozen=True)
class AdminAuthResult:
    """Outcome of an admin access check."""

    authenticated: bool
    is_admin: bool
    account: Account | None = None
    credential: str | None = None
    error: str | None = None


def extract_credential(headers: Mapping[str, str]) -> str | None:
    """Return the API key from ``Authorization: Bearer`` or ``x-api-key``.

    The bearer header wins when both are present.
    """
    lowered = normalize_headers(headers)
    authorization = lowered.get("authorization", "")
    if authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        if token:
            return token
    api_key = lowered.get("x-api-key", "").strip()
    return api_key or None


def authenticate(headers: Mapping[str, str], accounts: AccountStore) -> AuthResult:
    """Resolve the request credential to an active account.

    Never raises: a failing account store yields ``authenticated=False``.
    """
    api_key = extract_credential(headers)
    if not api_key:
        return AuthResult(
            authenticated=False,
            reason="missing_credential",
            error=(
                "No API key provided. Include your API key in the Authorization "
                "header (Bearer token) or x-api-key header."
            ),
        )

    try:
        account = accounts.get_by_credential(api_key)
    except SQLAlchemyError as exc:
        logger.error("Authentication store error: %s", exc)
        return AuthResult(
            authenticated=False,
            reason="auth_unavailable",
            error="Authentication service temporarily unavailable. Please try again.",
        )

    if account is None:
        logger.warning("Invalid API key: %s", security.display_prefix(api_key))
        return AuthResult(
            authenticated=False,
            reason="invalid_credential",
            error="Invalid API key. Sign up to get your API key.",
        )

    if account.status == AccountStatus.BLOCKED.value:
        logger.warning("Blocked account attempted access: %s", account.email)
        return AuthResult(
            authenticated=False,
            reason="account_blocked",
            error="Your account has been blocked. Contact support for assistance.",
        )

    if account.status == AccountStatus.SUSPENDED.value:
        logger.warning("Suspended account attempted access: %s", account.email)
        return AuthResult(
            authenticated=False,
            reason="account_suspended",
            error="Your account has been suspended. Contact support for assistance.",
        )

    logger.debug("Authentication successful: %s", account.email)
    return AuthResult(authenticated=True, account=account, credential=api_key)


def verify_admin_access(headers: Mapping[str, str], accounts: AccountStore) -> AdminAuthResult:
    """Check that the caller holds an active admin account.

    ``authenticated=True, is_admin=False`` means a valid non-admin caller
    (HTTP 403); ``authenticated=False`` means no usable credential (HTTP 401).
    """
    api_key = extract_credential(headers)
    if not api_key:
        return AdminAuthResult(
            authenticated=False,
            is_admin=False,
            error="No API key provided. Admin access requires authentication.",
        )

    try:
        account = accounts.get_by_credential(api_key)
    except SQLAlchemyError as exc:
        logger.error("Admin auth store error: %s", exc)
        return AdminAuthResult(
            authenticated=False,
            is_admin=False,
            error="Authentication service temporarily unavailable.",
        )

    if account is None:
        return AdminAuthResult(authenticated=False, is_admin=False, error="Invalid API key.")

    if not account.is_active:
        return AdminAuthResult(
            authenticated=False,
            is_admin=False,
            error=f"Account {account.status}. Contact support for assistance.",
        )

    if not account.is_admin:
        return AdminAuthResult(
            authenticated=True,
            is_admin=False,
            account=account,
            credential=api_key,
            error="Insufficient permissions. Admin access required.",
        )

    return AdminAuthResult(authenticated=True, is_admin=True, account=account, credential=api_key)
