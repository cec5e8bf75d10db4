"""Tests for Origin header validation."""

import pytest

from catalog_mcp.middleware.origin import is_stage_origin, validate_origin

ALLOWED = ["https://catalogmcp.com", "http://localhost:3000"]
SUFFIX = "-api.catalogmcp.com"


def check(origin, **kwargs):
    kwargs.setdefault("allowed_origins", ALLOWED)
    kwargs.setdefault("stage_suffix", SUFFIX)
    return validate_origin(origin, **kwargs)


def test_missing_origin_is_accepted() -> None:
    """Server-to-server callers send no Origin header."""
    assert check(None).valid
    assert check("").valid


@pytest.mark.parametrize("origin", ALLOWED)
def test_allow_listed_origins_are_accepted(origin: str) -> None:
    result = check(origin)
    assert result.valid
    assert result.error is None


def test_unknown_origin_is_rejected_with_its_name() -> None:
    result = check("https://evil.example.com")
    assert not result.valid
    assert "https://evil.example.com" in (result.error or "")


def test_allow_list_match_is_exact() -> None:
    assert not check("https://catalogmcp.com.evil.example").valid
    assert not check("http://catalogmcp.com").valid


@pytest.mark.parametrize(
    "origin",
    ["http://localhost:3001", "https://catalogmcp.com:8443", "http://localhost"],
)
def test_allow_listed_host_on_another_port_is_rejected(origin: str) -> None:
    result = check(origin)
    assert not result.valid
    assert origin in (result.error or "")


@pytest.mark.parametrize(
    "origin",
    ["https://dev-api.catalogmcp.com", "https://pr-123-api.catalogmcp.com"],
)
def test_stage_origins_are_accepted(origin: str) -> None:
    assert is_stage_origin(origin, SUFFIX)
    assert check(origin).valid


@pytest.mark.parametrize(
    "origin",
    [
        "http://dev-api.catalogmcp.com",
        "https://dev-api.catalogmcp.com:8443",
        "https://a.b-api.catalogmcp.com",
        "https://-api.catalogmcp.com",
        "https://dev-api.catalogmcp.com.evil.io",
        "https://dev-api.catalogmcp.com/path",
        "not a url",
    ],
)
def test_lookalike_stage_origins_are_rejected(origin: str) -> None:
    assert not is_stage_origin(origin, SUFFIX)
    assert not check(origin).valid


def test_empty_stage_suffix_disables_stage_matching() -> None:
    assert not is_stage_origin("https://dev-api.catalogmcp.com", "")


def test_allow_any_accepts_everything() -> None:
    """Development deployments accept any origin."""
    assert check("https://evil.example.com", allow_any=True).valid


def test_defaults_come_from_settings() -> None:
    assert validate_origin("https://catalogmcp.com").valid
    assert not validate_origin("https://evil.example.com").valid
