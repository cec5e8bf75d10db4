"""Admin API for managing accounts."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from catalog_mcp.api.dependencies import AccountStoreDep, AdminDep
from catalog_mcp.models import Account, AccountStatus
from catalog_mcp.schemas.account import (
    AdminActionResponse,
    AdminStats,
    AdminUser,
    AdminUserList,
    UsageHistory,
    UsageRecord,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _found(account: Account | None, email: str) -> Account:
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {email} not found",
        )
    return account


def _action(account: Account, message: str, admin: Account) -> AdminActionResponse:
    logger.info("Admin %s: %s", admin.email, message)
    return AdminActionResponse(message=message, user=AdminUser.model_validate(account))


@router.get("/users", response_model=AdminUserList)
async def list_users(
    admin: AdminDep,
    accounts: AccountStoreDep,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> AdminUserList:
    """List accounts without key material."""
    users = [AdminUser.model_validate(account) for account in accounts.list_accounts(skip, limit)]
    return AdminUserList(users=users, count=len(users))


@router.get("/stats", response_model=AdminStats)
async def get_stats(admin: AdminDep, accounts: AccountStoreDep) -> AdminStats:
    """Aggregate account counts and total requests."""
    return AdminStats(**accounts.stats())


@router.post("/users/{email}/block", response_model=AdminActionResponse)
async def block_user(email: str, admin: AdminDep, accounts: AccountStoreDep) -> AdminActionResponse:
    if email.strip().lower() == admin.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot block themselves",
        )
    account = _found(accounts.set_status(email, AccountStatus.BLOCKED), email)
    return _action(account, f"User {account.email} has been blocked", admin)


@router.post("/users/{email}/unblock", response_model=AdminActionResponse)
async def unblock_user(email: str, admin: AdminDep, accounts: AccountStoreDep) -> AdminActionResponse:
    account = _found(accounts.set_status(email, AccountStatus.ACTIVE), email)
    return _action(account, f"User {account.email} has been unblocked", admin)


@router.post("/users/{email}/make-admin", response_model=AdminActionResponse)
async def make_admin(email: str, admin: AdminDep, accounts: AccountStoreDep) -> AdminActionResponse:
    account = _found(accounts.set_admin(email, True), email)
    return _action(account, f"User {account.email} is now an admin", admin)


@router.post("/users/{email}/revoke-admin", response_model=AdminActionResponse)
async def revoke_admin(email: str, admin: AdminDep, accounts: AccountStoreDep) -> AdminActionResponse:
    if email.strip().lower() == admin.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot revoke their own admin access",
        )
    account = _found(accounts.set_admin(email, False), email)
    return _action(account, f"Admin access revoked for {account.email}", admin)


@router.get("/users/{email}/usage", response_model=UsageHistory)
async def get_user_usage(
    email: str,
    admin: AdminDep,
    accounts: AccountStoreDep,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> UsageHistory:
    """Return an account's most recent protocol calls."""
    account = _found(accounts.get_by_email(email), email)
    rows = accounts.recent_usage(account.email, limit)
    return UsageHistory(
        email=account.email,
        count=len(rows),
        usage=[UsageRecord.model_validate(row) for row in rows],
    )
