"""End-to-end tests for the protocol endpoint."""

import json

import pytest
from sqlalchemy.exc import OperationalError

from catalog_mcp.core.security import credential_fingerprint
from catalog_mcp.models import AccountStatus
from catalog_mcp.services.admission import AdmissionPipeline

TOOLS_LIST = {"jsonrpc": "2.0", "id": 1, "method": "tools/list"}


def _auth(key: str, **extra: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {key}", **extra}


def test_admitted_call_carries_session_and_rate_limit_headers(client, user_key, usage_recorder) -> None:
    response = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key, **{"X-Request-Id": "req-42"}))

    assert response.status_code == 200
    assert response.json()["result"]["tools"]
    assert response.headers["Mcp-Session-Id"]
    assert response.headers["X-Request-Id"] == "req-42"
    assert response.headers["X-RateLimit-Limit"] == "1"
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert response.headers["X-RateLimit-Reset"] == "60"
    assert response.headers["X-Processing-Time"].endswith("ms")

    [event] = usage_recorder.events
    assert event.email == "user@example.com"
    assert event.method == "tools/list"
    assert event.status_code == 200
    assert event.credential_id == credential_fingerprint(user_key)


def test_second_call_within_a_minute_is_rate_limited(client, user_key, usage_recorder) -> None:
    first = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key))
    second = client.post(
        "/mcp",
        json=TOOLS_LIST,
        headers=_auth(user_key, **{"Mcp-Session-Id": first.headers["Mcp-Session-Id"]}),
    )

    assert second.status_code == 429
    body = second.json()
    assert body["reason"] == "rate_limited"
    assert body["limit_type"] == "minute"
    assert body["retry_after"] == 60
    assert int(second.headers["Retry-After"]) > 0
    assert second.headers["X-RateLimit-Remaining"] == "0"
    assert "Mcp-Session-Id" not in second.headers
    assert len(usage_recorder.events) == 1


def test_session_is_reused_after_the_window_resets(client, user_key, clock) -> None:
    first = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key))
    session_id = first.headers["Mcp-Session-Id"]

    clock.advance(61)
    second = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key, **{"Mcp-Session-Id": session_id}))

    assert second.status_code == 200
    assert second.headers["Mcp-Session-Id"] == session_id


def test_session_survives_a_failed_touch(client, user_key, clock, db_session, usage_recorder, mocker) -> None:
    first = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key))
    session_id = first.headers["Mcp-Session-Id"]
    clock.advance(61)
    mocker.patch.object(
        db_session, "commit", side_effect=OperationalError("UPDATE", {}, Exception("down"))
    )

    second = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key, **{"Mcp-Session-Id": session_id}))

    assert second.status_code == 200
    assert second.headers["Mcp-Session-Id"] == session_id
    assert usage_recorder.events[-1].email == "user@example.com"


def test_unknown_session_id_gets_a_new_session(client, user_key) -> None:
    response = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key, **{"Mcp-Session-Id": "stale"}))

    assert response.status_code == 200
    assert response.headers["Mcp-Session-Id"] != "stale"


def test_disallowed_origin_is_rejected(client, user_key, rate_limiter) -> None:
    response = client.post(
        "/mcp", json=TOOLS_LIST, headers=_auth(user_key, Origin="https://evil.example")
    )

    assert response.status_code == 403
    body = response.json()
    assert body["reason"] == "origin_not_allowed"
    assert "https://evil.example" in body["message"]
    assert rate_limiter.get_usage(credential_fingerprint(user_key)) is None


def test_allowed_origin_is_admitted(client, user_key) -> None:
    response = client.post(
        "/mcp", json=TOOLS_LIST, headers=_auth(user_key, Origin="https://dev-api.catalogmcp.com")
    )
    assert response.status_code == 200


@pytest.mark.parametrize(
    ("headers", "reason"),
    [
        ({}, "missing_credential"),
        ({"Authorization": "Bearer cmcp_not-a-real-key"}, "invalid_credential"),
        ({"x-api-key": "cmcp_not-a-real-key"}, "invalid_credential"),
    ],
)
def test_authentication_failures(client, headers, reason) -> None:
    response = client.post("/mcp", json=TOOLS_LIST, headers=headers)

    assert response.status_code == 401
    assert response.json()["reason"] == reason
    assert "Mcp-Session-Id" not in response.headers


def test_api_key_header_is_accepted(client, user_key) -> None:
    response = client.post("/mcp", json=TOOLS_LIST, headers={"x-api-key": user_key})
    assert response.status_code == 200


def test_blocked_account_is_rejected(client, user_key, accounts) -> None:
    accounts.set_status("user@example.com", AccountStatus.BLOCKED)

    response = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key))

    assert response.status_code == 401
    assert response.json()["reason"] == "account_blocked"


def test_session_of_another_credential_is_rejected(client, user_key, other_key, rate_limiter) -> None:
    first = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key))

    response = client.post(
        "/mcp",
        json=TOOLS_LIST,
        headers=_auth(other_key, **{"Mcp-Session-Id": first.headers["Mcp-Session-Id"]}),
    )

    assert response.status_code == 403
    assert response.json()["reason"] == "session_mismatch"
    assert rate_limiter.get_usage(credential_fingerprint(other_key)) is None


def test_invalid_envelope_is_admitted_then_rejected(client, user_key, usage_recorder) -> None:
    response = client.post("/mcp", content=json.dumps({"id": 1}), headers=_auth(user_key))

    assert response.status_code == 400
    body = response.json()
    assert body["id"] == 1
    assert body["error"]["code"] == -32600
    assert response.headers["Mcp-Session-Id"]
    assert usage_recorder.events[0].method == "unknown"


def test_tool_call_through_root_alias(client, user_key, usage_recorder) -> None:
    payload = {
        "jsonrpc": "2.0",
        "id": "call-1",
        "method": "tools/call",
        "params": {"name": "search_icons", "arguments": {"query": "arrow"}},
    }

    response = client.post("/", json=payload, headers=_auth(user_key))

    assert response.status_code == 200
    text = response.json()["result"]["content"][0]["text"]
    assert json.loads(text)["icons"] == ["arrow_back", "arrow_forward"]
    assert usage_recorder.events[0].tool_name == "search_icons"


def test_tool_error_is_reported_with_http_200(client, user_key) -> None:
    payload = {"jsonrpc": "2.0", "id": 7, "method": "tools/call", "params": {"name": "nope"}}

    response = client.post("/mcp", json=payload, headers=_auth(user_key))

    assert response.status_code == 200
    assert response.json()["error"]["code"] == -32602


def test_admission_failure_returns_internal_error(client, user_key, mocker) -> None:
    mocker.patch.object(AdmissionPipeline, "admit", side_effect=RuntimeError("store down"))

    response = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key, **{"X-Request-Id": "req-9"}))

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == -32603
    assert error["data"] == {"request_id": "req-9"}


class TestEndSession:
    def test_owner_can_end_session(self, client, user_key) -> None:
        first = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key))
        headers = _auth(user_key, **{"Mcp-Session-Id": first.headers["Mcp-Session-Id"]})

        assert client.delete("/mcp", headers=headers).status_code == 204
        assert client.delete("/mcp", headers=headers).status_code == 404

    def test_other_credential_cannot_end_session(self, client, user_key, other_key) -> None:
        first = client.post("/mcp", json=TOOLS_LIST, headers=_auth(user_key))

        response = client.delete(
            "/mcp", headers=_auth(other_key, **{"Mcp-Session-Id": first.headers["Mcp-Session-Id"]})
        )

        assert response.status_code == 403
        assert response.json()["reason"] == "session_mismatch"

    def test_requires_authentication(self, client) -> None:
        response = client.delete("/mcp", headers={"Mcp-Session-Id": "whatever"})
        assert response.status_code == 401
