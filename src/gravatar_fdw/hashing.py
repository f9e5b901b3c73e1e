"""Lookup key normalization."""

from __future__ import annotations

import hashlib


def normalize_email(raw: str) -> str:
    """Trim surrounding whitespace and lower-case an email address."""
    return raw.strip().lower()


def normalize_and_hash(raw: str) -> str:
    """Return the SHA-256 hex digest of the normalized lookup key.

    Pure function: the same normalized input always yields the same 64
    character lowercase identifier, which addresses the remote profile.
    """
    return hashlib.sha256(normalize_email(raw).encode("utf-8")).hexdigest()


def build_profile_url(base_url: str, raw: str) -> str:
    """Join the API base URL and the lookup identifier for ``raw``."""
    return f"{base_url}/{normalize_and_hash(raw)}"
