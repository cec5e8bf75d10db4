"""Shared API dependencies.

Process-wide components (rate limiter, lookup cache, dispatcher, usage
recorder) are built once in ``create_app`` and kept on ``app.state``; the
functions here hand them to endpoints so tests can override them.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from catalog_mcp.core.settings import settings
from catalog_mcp.db.session import get_db
from catalog_mcp.middleware.rate_limiter import RateLimiter
from catalog_mcp.models import Account
from catalog_mcp.rpc.dispatcher import RpcDispatcher
from catalog_mcp.services.accounts import AccountStore
from catalog_mcp.services.admission import AdmissionPipeline
from catalog_mcp.services.auth import verify_admin_access
from catalog_mcp.services.cache import LookupCache
from catalog_mcp.services.sessions import SessionStore
from catalog_mcp.services.usage import UsageRecorder

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the process-wide rate limiter."""
    return request.app.state.rate_limiter


def get_lookup_cache(request: Request) -> LookupCache:
    """Return the process-wide lookup cache."""
    return request.app.state.lookup_cache


def get_dispatcher(request: Request) -> RpcDispatcher:
    """Return the JSON-RPC dispatcher."""
    return request.app.state.dispatcher


def get_usage_recorder(request: Request) -> UsageRecorder:
    """Return the background usage recorder."""
    return request.app.state.usage_recorder


def get_account_store(db: SessionDep) -> AccountStore:
    return AccountStore(db)


def get_session_store(db: SessionDep) -> SessionStore:
    return SessionStore(db)


RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
LookupCacheDep = Annotated[LookupCache, Depends(get_lookup_cache)]
DispatcherDep = Annotated[RpcDispatcher, Depends(get_dispatcher)]
UsageRecorderDep = Annotated[UsageRecorder, Depends(get_usage_recorder)]
AccountStoreDep = Annotated[AccountStore, Depends(get_account_store)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]


def get_admission_pipeline(
    accounts: AccountStoreDep,
    sessions: SessionStoreDep,
    rate_limiter: RateLimiterDep,
) -> AdmissionPipeline:
    """Build the admission pipeline for one request.

    Any origin is accepted only in development deployments.
    """
    return AdmissionPipeline(
        accounts,
        sessions,
        rate_limiter,
        allow_any_origin=settings.is_development,
    )


AdmissionPipelineDep = Annotated[AdmissionPipeline, Depends(get_admission_pipeline)]


def require_admin(request: Request, accounts: AccountStoreDep) -> Account:
    """Return the calling admin account.

    Raises:
        HTTPException: 401 without a usable credential, 403 for non-admins.
    """
    result = verify_admin_access(request.headers, accounts)
    if not result.authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.error or "Authentication required",
        )
    if not result.is_admin or result.account is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=result.error or "Admin access required",
        )
    return result.account


AdminDep = Annotated[Account, Depends(require_admin)]
