"""Helpers for building instance names."""

from __future__ import annotations

import secrets

_LETTERS = "0123456789abcdefghijklmnopqrstuvwxyz"


def random_string(n: int) -> str:
    """Return n random lower-case letters and digits."""
    if n < 0:
        raise ValueError("length must not be negative")
    return "".join(secrets.choice(_LETTERS) for _ in range(n))


def substr_suffix(s: str, max_len: int) -> str:
    """Keep the last max_len characters of s, dropping from the front."""
    if len(s) <= max_len:
        return s
    return s[len(s) - max_len:]