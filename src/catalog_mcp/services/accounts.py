"""CRUD-style helpers for managing API accounts."""
from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from catalog_mcp.core import security
from catalog_mcp.db.time import utcnow
from catalog_mcp.models import Account, AccountStatus, AccountTier, UsageLog

__all__ = ["AccountStore"]


class AccountStore:
    """Reads and writes ``Account`` rows through a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_credential(self, api_key: str) -> Account | None:
        """Return the account owning an API key, if any."""
        key_hash = security.credential_fingerprint(api_key)
        return self.db.query(Account).filter(Account.key_hash == key_hash).first()

    def get_by_email(self, email: str) -> Account | None:
        """Return a single account by (normalized) email."""
        return self.db.get(Account, security.normalize_email(email))

    def _issue_key(self, account: Account) -> str:
        api_key = security.generate_api_key()
        account.key_hash = security.credential_fingerprint(api_key)
        account.key_prefix = security.display_prefix(api_key)
        account.updated_at = utcnow()
        return api_key

    def signup(self, email: str) -> tuple[Account, str, bool]:
        """Create an account, or rotate the key of an existing one.

        Returns:
            ``(account, api_key, created)``; the previous key of an existing
            account stops working immediately.
        """
        normalized = security.normalize_email(email)
        account = self.db.get(Account, normalized)
        created = account is None
        if account is None:
            account = Account(
                email=normalized,
                tier=AccountTier.FREE.value,
                status=AccountStatus.ACTIVE.value,
                is_admin=False,
                request_count=0,
            )
            self.db.add(account)
        api_key = self._issue_key(account)
        self.db.commit()
        self.db.refresh(account)
        return account, api_key, created

    def reset_key(self, email: str) -> tuple[Account, str] | None:
        """Issue a new key for an existing account; None if the email is unknown."""
        account = self.get_by_email(email)
        if account is None:
            return None
        api_key = self._issue_key(account)
        self.db.commit()
        self.db.refresh(account)
        return account, api_key

    def set_status(self, email: str, status: AccountStatus) -> Account | None:
        """Change an account's status; None if the email is unknown."""
        account = self.get_by_email(email)
        if account is None:
            return None
        account.status = status.value
        account.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(account)
        return account

    def set_admin(self, email: str, is_admin: bool) -> Account | None:
        """Grant or revoke admin access; None if the email is unknown."""
        account = self.get_by_email(email)
        if account is None:
            return None
        account.is_admin = is_admin
        account.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(account)
        return account

    def list_accounts(self, skip: int = 0, limit: int = 100) -> Sequence[Account]:
        """Return accounts with simple offset-based pagination."""
        return (
            self.db.query(Account)
            .order_by(Account.created_at, Account.email)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def stats(self) -> dict[str, Any]:
        """Aggregate account counts by status, tier and admin flag."""
        by_status = dict(
            self.db.query(Account.status, func.count()).group_by(Account.status).all()
        )
        by_tier = dict(self.db.query(Account.tier, func.count()).group_by(Account.tier).all())
        admins = self.db.query(Account).filter(Account.is_admin.is_(True)).count()
        total_requests = self.db.query(func.coalesce(func.sum(Account.request_count), 0)).scalar()
        return {
            "total_users": sum(int(count) for count in by_status.values()),
            "active_users": int(by_status.get(AccountStatus.ACTIVE.value, 0)),
            "blocked_users": int(by_status.get(AccountStatus.BLOCKED.value, 0)),
            "suspended_users": int(by_status.get(AccountStatus.SUSPENDED.value, 0)),
            "admin_users": int(admins),
            "free_users": int(by_tier.get(AccountTier.FREE.value, 0)),
            "pro_users": int(by_tier.get(AccountTier.PRO.value, 0)),
            "enterprise_users": int(by_tier.get(AccountTier.ENTERPRISE.value, 0)),
            "total_requests": int(total_requests or 0),
        }

    def recent_usage(self, email: str, limit: int = 100) -> Sequence[UsageLog]:
        """Return an account's most recent usage log rows, newest first."""
        return (
            self.db.query(UsageLog)
            .filter(UsageLog.email == security.normalize_email(email))
            .order_by(UsageLog.timestamp.desc(), UsageLog.id.desc())
            .limit(limit)
            .all()
        )
