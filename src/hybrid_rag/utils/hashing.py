"""Content hashing for cache validity."""

from __future__ import annotations
import hashlib
from typing import Optional

DEFAULT_PREFIX_CHARS = 10000

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def content_hash(text: str, prefix_chars: Optional[int] = DEFAULT_PREFIX_CHARS) -> str:
    """
    Compute the cheap rolling hash used as the cache validity key.

    ``hash = hash * 31 + unit`` wrapped to a signed 32-bit integer, over the
    UTF-16 code units of the text. Characters outside the Basic Multilingual
    Plane count as two units (a surrogate pair), both when hashing and when
    measuring the prefix. Edits past the prefix do not change the hash.

    Args:
        text: Document text
        prefix_chars: Number of leading UTF-16 code units hashed. None hashes everything.

    Returns:
        Base-36 string of the absolute hash value
    """
    if prefix_chars is None:
        data = text.encode("utf-16-le")
    else:
        # A prefix of n characters holds at least n code units
        data = text[:prefix_chars].encode("utf-16-le")[:prefix_chars * 2]

    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000

    return _to_base36(abs(h))


def text_digest(text: str) -> str:
    """SHA256 hex digest of a text, used to key in-memory embedding caches."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
