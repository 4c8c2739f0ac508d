"""
Small helpers for plugin authors generating code.
"""

from __future__ import annotations

import itertools
import re
import threading

_INVALID_CHARS = re.compile(r"[^A-Za-z0-9]")
_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193

_counter = itertools.count()
_counter_lock = threading.Lock()


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def fnv1a(text: str) -> int:
    """32-bit FNV-1a hash of the UTF-16 code units of ``text``."""

    h = _FNV_OFFSET
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * _FNV_PRIME) & 0xFFFFFFFF
    return h


def uid(prefix: str) -> str:
    """
    A fresh identifier-safe name starting with ``prefix``.

    The hash keeps names from different prefixes apart; the process-wide
    counter keeps repeated calls with the same prefix distinct.
    """

    with _counter_lock:
        n = next(_counter)
    suffix = _INVALID_CHARS.sub("", _base36(fnv1a(prefix)))
    return f"{prefix}_{suffix}{_base36(n)}"


def escape_quotes(text: str) -> str:
    """Escape single quotes for use inside a single-quoted string literal."""

    return text.replace("'", "\\'")
