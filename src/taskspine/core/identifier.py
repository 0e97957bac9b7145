"""
Time-sortable identifiers for tasks, results and chains.

IDs are ULID-like: 26 characters of Crockford base32, the first 10 encoding
milliseconds since the epoch, so identifiers of one chain sort in creation
order.

STDLIB ONLY - NO PYDANTIC.
"""

from __future__ import annotations

import secrets
import time

# ULID base32 alphabet (Crockford's)
_ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ENCODING_LEN = len(_ENCODING)


def generate_id() -> str:
    """Generate a 26-char, time-sortable unique identifier."""
    timestamp_ms = int(time.time() * 1000)
    random_part = "".join(secrets.choice(_ENCODING) for _ in range(16))
    return _encode_base32(timestamp_ms, 10) + random_part


def _encode_base32(value: int, length: int) -> str:
    """Encode integer to base32 string of fixed length."""
    result = []
    for _ in range(length):
        result.append(_ENCODING[value % _ENCODING_LEN])
        value //= _ENCODING_LEN
    return "".join(reversed(result))


__all__ = ["generate_id"]
