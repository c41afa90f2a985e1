"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/base.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple, Protocol, runtime_checkable


class StoreLookup(NamedTuple):
    """Result of one store read; absence is a normal result."""

    value: Any
    present: bool


MISS = StoreLookup(None, False)


@dataclass(frozen=True, slots=True)
class StoreEntry:
    """One cached value with the time it was written."""

    value: Any
    stored_at_s: float


@runtime_checkable
class StoreAdapter(Protocol):
    """
    Protocol implemented by the backing stores of a cache instance.

    Implementations contain failures of their medium: ``get`` degrades to a
    miss and writes are best effort. The engine never retries a store call.
    """

    backend_id: str

    async def get(self, key: str) -> StoreLookup: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def expire(self, key: str) -> None: ...

    async def reset(self) -> None: ...

    async def keycount(self) -> int: ...

    async def size(self) -> int: ...
