"""Tests for API-key authentication."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from catalog_mcp.models import AccountStatus
from catalog_mcp.services.auth import authenticate, extract_credential, verify_admin_access


class TestExtractCredential:
    def test_bearer_token(self) -> None:
        assert extract_credential({"Authorization": "Bearer cmcp_abc"}) == "cmcp_abc"

    def test_api_key_header_is_case_insensitive(self) -> None:
        assert extract_credential({"X-API-KEY": "cmcp_abc"}) == "cmcp_abc"

    def test_bearer_wins_over_api_key_header(self) -> None:
        headers = {"authorization": "Bearer first", "x-api-key": "second"}
        assert extract_credential(headers) == "first"

    def test_non_bearer_authorization_falls_back(self) -> None:
        headers = {"authorization": "Basic dXNlcg==", "x-api-key": "second"}
        assert extract_credential(headers) == "second"

    @pytest.mark.parametrize(
        "headers",
        [{}, {"authorization": "Bearer "}, {"x-api-key": "   "}, {"authorization": "Token x"}],
    )
    def test_missing_credential(self, headers) -> None:
        assert extract_credential(headers) is None


class TestAuthenticate:
    def test_valid_key(self, accounts, user_key) -> None:
        result = authenticate({"authorization": f"Bearer {user_key}"}, accounts)
        assert result.authenticated
        assert result.account.email == "user@example.com"
        assert result.credential == user_key
        assert result.credential_id != user_key

    def test_missing_key(self, accounts) -> None:
        result = authenticate({}, accounts)
        assert not result.authenticated
        assert result.reason == "missing_credential"
        assert "No API key" in result.error

    def test_unknown_key(self, accounts) -> None:
        result = authenticate({"x-api-key": "cmcp_" + "0" * 32}, accounts)
        assert not result.authenticated
        assert result.reason == "invalid_credential"

    @pytest.mark.parametrize(
        ("status", "reason"),
        [
            (AccountStatus.BLOCKED, "account_blocked"),
            (AccountStatus.SUSPENDED, "account_suspended"),
        ],
    )
    def test_inactive_accounts(self, accounts, user_key, status, reason) -> None:
        accounts.set_status("user@example.com", status)
        result = authenticate({"x-api-key": user_key}, accounts)
        assert not result.authenticated
        assert result.reason == reason
        assert status.value in result.error

    def test_store_failure_fails_closed(self) -> None:
        accounts = MagicMock()
        accounts.get_by_credential.side_effect = OperationalError("SELECT", {}, Exception("down"))

        result = authenticate({"x-api-key": "cmcp_abc"}, accounts)

        assert not result.authenticated
        assert result.reason == "auth_unavailable"
        assert "try again" in result.error


class TestVerifyAdminAccess:
    def test_admin(self, accounts, admin_key) -> None:
        result = verify_admin_access({"x-api-key": admin_key}, accounts)
        assert result.authenticated and result.is_admin

    def test_non_admin_is_authenticated_but_forbidden(self, accounts, user_key) -> None:
        result = verify_admin_access({"x-api-key": user_key}, accounts)
        assert result.authenticated
        assert not result.is_admin
        assert "Admin access required" in result.error

    def test_unauthenticated(self, accounts) -> None:
        assert not verify_admin_access({}, accounts).authenticated
        assert not verify_admin_access({"x-api-key": "bogus"}, accounts).authenticated

    def test_blocked_admin_is_not_authenticated(self, accounts, admin_key) -> None:
        accounts.set_status("admin@example.com", AccountStatus.BLOCKED)
        result = verify_admin_access({"x-api-key": admin_key}, accounts)
        assert not result.authenticated
        assert not result.is_admin
