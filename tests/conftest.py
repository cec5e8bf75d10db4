# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DATABASE_AUTO_CREATE", "false")
os.environ.setdefault("ENVIRONMENT", "production")

from catalog_mcp.api.dependencies import get_rate_limiter, get_usage_recorder
from catalog_mcp.db.session import Base
from catalog_mcp.db.session import get_db as app_get_session
from catalog_mcp.main import app as fastapi_app
from catalog_mcp.middleware.rate_limiter import InMemoryRateLimiter
from catalog_mcp.models import Account
from catalog_mcp.services.accounts import AccountStore
from catalog_mcp.services.usage import UsageEvent

TEST_DB_URL = "sqlite://"


class FakeClock:
    """Manually advanced clock returning seconds as a float."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CollectingUsageRecorder:
    """Stands in for ``UsageRecorder`` and keeps events in memory."""

    def __init__(self) -> None:
        self.events: list[UsageEvent] = []

    def record(self, event: UsageEvent) -> None:
        self.events.append(event)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def rate_limiter(clock: FakeClock) -> InMemoryRateLimiter:
    """A fresh limiter with the production quotas, driven by the fake clock."""
    return InMemoryRateLimiter(
        minute_limit=1,
        day_limit=100,
        minute_window_seconds=60.0,
        day_window_seconds=86_400.0,
        clock=clock,
    )


@pytest.fixture()
def usage_recorder() -> CollectingUsageRecorder:
    return CollectingUsageRecorder()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    rate_limiter: InMemoryRateLimiter,
    usage_recorder: CollectingUsageRecorder,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides: dict[Callable[..., object], Callable[..., object]] = {
        app_get_session: _get_session_override,
        get_rate_limiter: lambda: rate_limiter,
        get_usage_recorder: lambda: usage_recorder,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def accounts(db_session: Session) -> AccountStore:
    return AccountStore(db_session)


@pytest.fixture()
def make_account(accounts: AccountStore) -> Callable[..., tuple[Account, str]]:
    """Return a factory creating an account and its raw API key."""

    def _make(email: str, *, admin: bool = False) -> tuple[Account, str]:
        account, api_key, _ = accounts.signup(email)
        if admin:
            account = accounts.set_admin(email, True) or account
        return account, api_key

    return _make


@pytest.fixture()
def user_key(make_account: Callable[..., tuple[Account, str]]) -> str:
    """Raw API key of the primary test user."""
    return make_account("user@example.com")[1]


@pytest.fixture()
def other_key(make_account: Callable[..., tuple[Account, str]]) -> str:
    """Raw API key of a second, unrelated user."""
    return make_account("other@example.com")[1]


@pytest.fixture()
def admin_key(make_account: Callable[..., tuple[Account, str]]) -> str:
    """Raw API key of an admin account."""
    return make_account("admin@example.com", admin=True)[1]