"""Self-service signup and key reset."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from catalog_mcp.api.dependencies import AccountStoreDep
from catalog_mcp.schemas.account import KeyIssuedResponse, ResetKeyRequest, SignupRequest
from catalog_mcp.services.accounts import AccountStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["accounts"])


def _refuse_admin_rotation(accounts: AccountStore, email: str) -> None:
    """Admin keys are only re-issued through the account management command."""
    existing = accounts.get_by_email(email)
    if existing is not None and existing.is_admin:
        logger.warning("Refused public key rotation for admin %s", existing.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Keys for admin accounts cannot be re-issued here. Contact an operator.",
        )


@router.post("/signup", response_model=KeyIssuedResponse)
async def signup(
    payload: SignupRequest,
    response: Response,
    accounts: AccountStoreDep,
) -> KeyIssuedResponse:
    """Create an account, or issue a new key for an existing one.

    Args:
        payload: Email to sign up with
        response: Outgoing response, used to report 201 for new accounts
        accounts: Account store

    Returns:
        The new API key, shown only in this response
    """
    _refuse_admin_rotation(accounts, payload.email)
    account, api_key, created = accounts.signup(payload.email)
    if created:
        response.status_code = status.HTTP_201_CREATED
        logger.info("New account created: %s", account.email)
        message = "Account created. Store your API key now; it will not be shown again."
    else:
        logger.info("Existing account re-issued a key: %s", account.email)
        message = "A new API key was issued. Your previous key no longer works."
    return KeyIssuedResponse(
        email=account.email,
        api_key=api_key,
        key_prefix=account.key_prefix,
        created=created,
        message=message,
    )


@router.post("/reset-key", response_model=KeyIssuedResponse)
async def reset_key(payload: ResetKeyRequest, accounts: AccountStoreDep) -> KeyIssuedResponse:
    """Replace the API key of an existing account."""
    _refuse_admin_rotation(accounts, payload.email)
    issued = accounts.reset_key(payload.email)
    if issued is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No account found for this email. Sign up first.",
        )
    account, api_key = issued
    logger.info("API key reset: %s", account.email)
    return KeyIssuedResponse(
        email=account.email,
        api_key=api_key,
        key_prefix=account.key_prefix,
        message="Your API key has been reset. The previous key no longer works.",
    )
