"""API key generation and fingerprinting."""
from __future__ import annotations

import re
import secrets

from catalog_mcp.core.settings import settings
from catalog_mcp.utils.hash import blake3_hexdigest

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
KEY_PREFIX_DISPLAY_LENGTH = 12


def generate_api_key() -> str:
    """Return a new API key: the configured prefix plus 32 random hex characters."""
    return f"{settings.api_key_prefix}{secrets.token_hex(16)}"


def credential_fingerprint(api_key: str) -> str:
    """Return the stable identifier stored in place of a raw API key."""
    return blake3_hexdigest(api_key.encode("utf-8"))


def display_prefix(api_key: str) -> str:
    """Return the leading characters of a key, safe to show in logs and admin views."""
    return api_key[:KEY_PREFIX_DISPLAY_LENGTH] + "..."


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address."""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    """Return True if the address looks like ``local@domain.tld``."""
    return bool(_EMAIL_RE.match(email.strip()))
