"""Origin header validation.

Browser-based callers always send an ``Origin`` header; it is checked against
an allow-list to defeat DNS rebinding against the protocol endpoint. Callers
without an ``Origin`` header are server-to-server clients and are left to the
API-key check.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlsplit

from catalog_mcp.core.settings import settings

_LABEL_PATTERN = r"[a-z0-9-]+"


@dataclass(frozen=True)
class OriginValidationResult:
    """Outcome of an origin check; ``error`` is set only when invalid."""

    valid: bool
    error: str | None = None


@lru_cache(maxsize=8)
def _stage_host_pattern(suffix: str) -> re.Pattern[str]:
    return re.compile(rf"^{_LABEL_PATTERN}{re.escape(suffix)}$")


def is_stage_origin(origin: str, suffix: str | None = None) -> bool:
    """Return True for ``https://<label><suffix>`` origins, e.g. ``https://dev-api.catalogmcp.com``.

    Only a single DNS label may precede the suffix, and neither a port nor a
    path is accepted.
    """
    suffix = settings.stage_origin_suffix if suffix is None else suffix
    if not suffix:
        return False
    try:
        parts = urlsplit(origin)
        port = parts.port
    except ValueError:
        return False
    if parts.scheme != "https" or port is not None or parts.path not in ("", "/"):
        return False
    host = parts.hostname or ""
    return _stage_host_pattern(suffix.lower()).match(host) is not None


def validate_origin(
    origin: str | None,
    *,
    allow_any: bool = False,
    allowed_origins: Iterable[str] | None = None,
    stage_suffix: str | None = None,
) -> OriginValidationResult:
    """Validate a caller-declared origin.

    Args:
        origin: Value of the ``Origin`` header, or None when absent.
        allow_any: Accept every origin (development deployments).
        allowed_origins: Exact-match allow-list; defaults to settings.
        stage_suffix: Domain suffix for per-stage subdomains; defaults to settings.

    Returns:
        OriginValidationResult naming the rejected origin when invalid.
    """
    if not origin:
        return OriginValidationResult(valid=True)

    allowed = settings.allowed_origins if allowed_origins is None else allowed_origins
    if origin in set(allowed):
        return OriginValidationResult(valid=True)

    if is_stage_origin(origin, stage_suffix):
        return OriginValidationResult(valid=True)

    if allow_any:
        return OriginValidationResult(valid=True)

    return OriginValidationResult(
        valid=False,
        error=(
            f"Origin '{origin}' is not allowed. "
            "This server only accepts requests from authorized domains."
        ),
    )
