"""Tests for the account management and sweep commands."""

from catalog_mcp.db.time import from_timestamp
from catalog_mcp.models import UsageLog
from catalog_mcp.scripts.manage_users import build_parser, run
from catalog_mcp.scripts.sweep import sweep
from catalog_mcp.services.sessions import SessionStore


def _run(db, *argv: str) -> int:
    return run(build_parser().parse_args(argv), db)


def test_create_and_get(db_session, accounts, capsys) -> None:
    assert _run(db_session, "create", "ops@example.com", "--admin") == 0
    output = capsys.readouterr().out
    assert "Created ops@example.com" in output
    assert "API key: cmcp_" in output
    assert accounts.get_by_email("ops@example.com").is_admin

    assert _run(db_session, "get", "ops@example.com") == 0
    assert "admin" in capsys.readouterr().out


def test_create_rejects_invalid_email(db_session, capsys) -> None:
    assert _run(db_session, "create", "nope") == 2
    assert "Invalid email address" in capsys.readouterr().err


def test_block_and_list(db_session, user_key, capsys) -> None:
    assert _run(db_session, "block", "user@example.com") == 0
    assert "[blocked]" in capsys.readouterr().out

    assert _run(db_session, "list") == 0
    assert "1 account(s)" in capsys.readouterr().out


def test_unknown_user(db_session, capsys) -> None:
    assert _run(db_session, "make-admin", "ghost@example.com") == 1
    assert "User not found" in capsys.readouterr().err


def test_sweep_removes_expired_rows(db_session) -> None:
    store = SessionStore(db_session, ttl_seconds=60, clock=lambda: 1_000.0)
    store.create("fingerprint", "user@example.com")
    db_session.add(
        UsageLog(
            credential_id="fingerprint",
            email="user@example.com",
            timestamp=from_timestamp(1_000.0),
            method="tools/list",
            status_code=200,
            duration_ms=3,
            expires_at=1_050,
        )
    )
    db_session.commit()

    assert sweep(db_session, now=1_030.0) == {"sessions": 0, "usage_logs": 0}
    assert sweep(db_session, now=1_100.0) == {"sessions": 1, "usage_logs": 1}
