# src/catalog_mcp/utils/headers.py
"""Case-insensitive header access for plain mappings."""

from __future__ import annotations

from collections.abc import Mapping


def normalize_headers(headers: Mapping[str, str | None]) -> dict[str, str]:
    """Return a copy of ``headers`` with lower-cased names and empty values dropped."""
    return {name.lower(): value for name, value in headers.items() if value is not None}
