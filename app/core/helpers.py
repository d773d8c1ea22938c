"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- String hashing (API key storage)
- Bounding caller-supplied page sizes
- Email normalization for identity keys

Usage:
    from core.helpers import clamp_limit, hash_string, normalize_email

    key_hash = hash_string(raw_key)
    limit = clamp_limit(request_limit, default=50, maximum=200)
"""

from __future__ import annotations

import hashlib


def hash_string(value: str, algorithm: str = "sha256") -> str:
    """
    Hash a string using the specified algorithm.

    Args:
        value: String to hash
        algorithm: Hash algorithm (sha256, sha512, etc.)

    Returns:
        Hexadecimal hash string

    Example:
        hashed = hash_string("sk_live_abc123")
    """
    hasher = hashlib.new(algorithm)
    hasher.update(value.encode("utf-8"))
    return hasher.hexdigest()


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    """
    Bound a page size to [1, maximum], using default when not given.

    Args:
        limit: Requested page size (None for the default)
        default: Page size when none is requested
        maximum: Upper bound

    Returns:
        The effective page size

    Example:
        clamp_limit(None, default=50, maximum=200)   # 50
        clamp_limit(5000, default=50, maximum=200)   # 200
        clamp_limit(0, default=50, maximum=200)      # 1
    """
    if limit is None:
        return default
    return max(1, min(int(limit), maximum))


def normalize_email(email: str | None) -> str:
    """
    Normalize an email address for use as an identity key.

    Lowercases and strips surrounding whitespace. Every read and write
    keyed by email goes through this function.

    Example:
        normalize_email("  Foo@Bar.COM ")  # "foo@bar.com"
    """
    return (email or "").strip().lower()
