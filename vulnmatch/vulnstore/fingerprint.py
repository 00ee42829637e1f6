"""Prepared statement names derived from query text.

The name only lets structurally identical queries share one server-side
prepared statement. It is not a security boundary and carries no uniqueness
guarantee beyond the 64-bit digest space.
"""

from __future__ import annotations

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF


def fnv1a_64(data: bytes) -> int:
    """64-bit FNV-1a digest of *data*."""
    h = _FNV64_OFFSET
    for byte in data:
        h ^= byte
        h = (h * _FNV64_PRIME) & _MASK64
    return h


def fingerprint(sql: str) -> str:
    """Return the prepared statement name for *sql* (16 hex characters)."""
    return f"{fnv1a_64(sql.encode()):016x}"
