"""Symbol generators for synthesized rule heads and logic variables.

Every generated rule references other rules through symbols minted here,
so symbols must never repeat within one compilation. The compiler takes a
generator as a constructor argument:

- UuidSymbolGenerator: random suffixes, the default
- CounterSymbolGenerator: sequential suffixes for reproducible output
"""

from __future__ import annotations

import itertools
import threading
import uuid
from typing import Protocol, runtime_checkable

__all__ = [
    "SymbolGenerator",
    "UuidSymbolGenerator",
    "CounterSymbolGenerator",
]


@runtime_checkable
class SymbolGenerator(Protocol):
    """Protocol for sources of fresh symbols."""

    def next_symbol(self, prefix: str) -> str:
        """Return a symbol starting with `prefix` that was never issued before.

        Args:
            prefix: Leading part of the symbol (e.g., "situation")

        Returns:
            Symbol of the form "<prefix>_<suffix>"
        """
        ...


class UuidSymbolGenerator:
    """Issues symbols with a random UUID4 suffix.

    Hex digits only, so the result is a valid Epilog constant or variable
    name depending on the prefix case. Safe to share between threads.
    """

    def next_symbol(self, prefix: str) -> str:
        return f"{prefix}_{uuid.uuid4().hex}"


class CounterSymbolGenerator:
    """Issues symbols with a monotonically increasing numeric suffix.

    The counter is shared by all prefixes, so "situation_1" and
    "Situation_2" never share a suffix. Thread-safe.
    """

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_symbol(self, prefix: str) -> str:
        with self._lock:
            n = next(self._counter)
        return f"{prefix}_{n}"
