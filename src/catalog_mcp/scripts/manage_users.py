# src/catalog_mcp/scripts/manage_users.py
"""
Command-line account management.

Usage:
    python -m catalog_mcp.scripts.manage_users create user@example.com
    python -m catalog_mcp.scripts.manage_users get user@example.com
    python -m catalog_mcp.scripts.manage_users list --limit 50
    python -m catalog_mcp.scripts.manage_users block user@example.com
    python -m catalog_mcp.scripts.manage_users unblock user@example.com
    python -m catalog_mcp.scripts.manage_users make-admin user@example.com
    python -m catalog_mcp.scripts.manage_users revoke-admin user@example.com
"""
from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Sequence

from sqlalchemy.orm import Session

from catalog_mcp.core.security import is_valid_email
from catalog_mcp.db.session import SessionLocal
from catalog_mcp.models import Account, AccountStatus
from catalog_mcp.services.accounts import AccountStore


def _describe(account: Account) -> str:
    role = " admin" if account.is_admin else ""
    return (
        f"{account.email}  [{account.status}{role}]  tier={account.tier}  "
        f"key={account.key_prefix}  requests={account.request_count}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage catalog MCP accounts")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="create an account (or re-issue its key)")
    create.add_argument("email")
    create.add_argument("--admin", action="store_true", help="grant admin access")

    listing = commands.add_parser("list", help="list accounts")
    listing.add_argument("--skip", type=int, default=0)
    listing.add_argument("--limit", type=int, default=100)

    for name in ("get", "block", "unblock", "make-admin", "revoke-admin"):
        commands.add_parser(name).add_argument("email")

    return parser


def run(args: argparse.Namespace, db: Session) -> int:
    """Execute a parsed command against ``db``; return a process exit code."""
    store = AccountStore(db)

    if args.command == "create":
        if not is_valid_email(args.email):
            print(f"Invalid email address: {args.email}", file=sys.stderr)
            return 2
        account, api_key, created = store.signup(args.email)
        if args.admin:
            store.set_admin(account.email, True)
        print(f"{'Created' if created else 'Re-issued key for'} {account.email}")
        print(f"API key: {api_key}")
        return 0

    if args.command == "list":
        accounts = store.list_accounts(args.skip, args.limit)
        for account in accounts:
            print(_describe(account))
        print(f"{len(accounts)} account(s)")
        return 0

    actions: dict[str, Callable[[str], Account | None]] = {
        "get": store.get_by_email,
        "block": lambda email: store.set_status(email, AccountStatus.BLOCKED),
        "unblock": lambda email: store.set_status(email, AccountStatus.ACTIVE),
        "make-admin": lambda email: store.set_admin(email, True),
        "revoke-admin": lambda email: store.set_admin(email, False),
    }
    account = actions[args.command](args.email)
    if account is None:
        print(f"User not found: {args.email}", file=sys.stderr)
        return 1
    print(_describe(account))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    with SessionLocal() as db:
        return run(args, db)


if __name__ == "__main__":
    sys.exit(main())
