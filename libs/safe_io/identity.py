"""
Unique identifiers for backups and refugees.

IDs are the high 32 bits of a time-ordered UUID (version 1), which is the
``time_low`` field and therefore advances every 100ns. Two IDs drawn inside
the same clock tick could still collide, so each generator remembers the
last ID it issued and bumps past it when the clock has not moved on. Within
one process the issued IDs are strictly increasing modulo 2**32.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable

ID_MASK = 0xFFFFFFFF
_HALF_RING = 1 << 31

IDGenerator = Callable[[], int]


class UniqueIDGenerator:
    """Callable source of distinct 32-bit IDs.

    Example:
        >>> next_id = UniqueIDGenerator()
        >>> first, second = next_id(), next_id()
        >>> first != second
        True
    """

    def __init__(self, source: Callable[[], int] | None = None) -> None:
        """Initialize the generator.

        Args:
            source: Candidate supplier returning an int; only its low 32 bits
                are used. Defaults to the time field of ``uuid.uuid1()``.
        """
        self._source = source or _uuid1_high_bits
        self._last: int | None = None
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            candidate = self._source() & ID_MASK
            if self._last is not None:
                step = (candidate - self._last) & ID_MASK
                # candidate must land in the half ring ahead of the last ID
                if step == 0 or step >= _HALF_RING:
                    candidate = (self._last + 1) & ID_MASK
            self._last = candidate
            return candidate


def _uuid1_high_bits() -> int:
    return uuid.uuid1().int >> 96


_default_generator = UniqueIDGenerator()


def unique_id() -> int:
    """Draw an ID from the process-wide generator."""
    return _default_generator()


def reprhex(value: int, prefix: bool = False) -> str:
    """Render a 32-bit ID as 8 lowercase hex digits.

    Example:
        >>> reprhex(0xA8DE13FA)
        'a8de13fa'
        >>> reprhex(0xA8DE13FA, True)
        '0xa8de13fa'
        >>> reprhex(0x1F)
        '0000001f'
    """
    if not 0 <= value <= ID_MASK:
        raise ValueError(f"{value} is not an unsigned 32-bit value")
    digits = f"{value:08x}"
    return f"0x{digits}" if prefix else digits
