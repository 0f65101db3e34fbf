"""
Human readable size parsing.

Supports a raw byte count ("124") or a number followed directly by a unit
with no intervening whitespace. Supported units: KB, MB, GB, TB (powers of
1000) and KiB, MiB, GiB, TiB (powers of 1024).
"""

import re
from typing import List, Tuple

from uploadperf.exceptions import InvalidSize

MAX_SIZE = 2**63 - 1

# Checked in order; no suffix is a suffix of another.
SIZE_UNITS: List[Tuple[str, int]] = [
    ("KB", 1000),
    ("MB", 1000**2),
    ("GB", 1000**3),
    ("TB", 1000**4),
    ("KiB", 1024),
    ("MiB", 1024**2),
    ("GiB", 1024**3),
    ("TiB", 1024**4),
]

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _parse_int(text: str, original: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise InvalidSize(original)
    value = int(text)
    if value > MAX_SIZE or value < -MAX_SIZE - 1:
        raise InvalidSize(original)
    return value


def parse_size(text: str) -> int:
    """
    Return the number of bytes expressed by a human friendly string.

    >>> parse_size("10KiB")
    10240
    >>> parse_size("1GB")
    1000000000

    Raises InvalidSize if the numeric part is not an integer, or if the
    result is negative or does not fit a signed 64-bit count.
    """
    for suffix, multiplier in SIZE_UNITS:
        if text.endswith(suffix):
            value = _parse_int(text[: -len(suffix)], text) * multiplier
            break
    else:
        value = _parse_int(text, text)

    if value < 0:
        raise InvalidSize(text, "size must not be negative")
    if value > MAX_SIZE:
        raise InvalidSize(text, "size too large")
    return value
