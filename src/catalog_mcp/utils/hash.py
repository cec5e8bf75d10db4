# src/catalog_mcp/utils/hash.py
"""BLAKE3 helpers used to fingerprint API keys."""

from __future__ import annotations

from blake3 import blake3


def blake3_hexdigest(data: bytes) -> str:
    """Return the hexadecimal digest of the supplied data."""
    return blake3(data).hexdigest()
