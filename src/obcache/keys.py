"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Deterministic cache-key derivation from a function name and its arguments.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import hashlib
import json
import uuid
from collections.abc import Sequence
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import InvalidArgumentError, KeyGenerationError

KEY_LENGTH = 64


def generate_key(name: str, args: Sequence[Any]) -> str:
    """
    Build the cache key for one invocation of a wrapped function.

    Args:
        name: Name token of the wrapped function. Must be non-empty.
        args: Positional call arguments, excluding any completion callback.

    Returns:
        A 64-character SHA-256 hex digest. Structurally equal arguments yield
        the same key; argument order is significant.
    """
    if not isinstance(name, str) or not name:
        raise InvalidArgumentError("cache key name must be a non-empty string")

    payload = {"f": name, "a": [_canonical(arg, set()) for arg in args]}
    normalized = json.dumps(
        payload, ensure_ascii=True, sort_keys=True, separators=(",", ":")
    )
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def _canonical(value: Any, active: set[int]) -> Any:
    """Convert one value into a type-tagged, JSON-encodable structure."""
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, Enum):
        return {"enum": f"{type(value).__qualname__}.{value.name}"}
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return {"bytes": bytes(value).hex()}
    if isinstance(value, Decimal):
        return {"decimal": str(value)}
    if isinstance(value, uuid.UUID):
        return {"uuid": str(value)}
    if isinstance(value, dt.datetime):
        return {"datetime": value.isoformat()}
    if isinstance(value, dt.date):
        return {"date": value.isoformat()}
    if isinstance(value, dt.time):
        return {"time": value.isoformat()}

    marker = id(value)
    if marker in active:
        raise KeyGenerationError(
            f"cyclic reference in cache key arguments ({type(value).__name__})"
        )
    active.add(marker)
    try:
        return _canonical_container(value, active)
    finally:
        active.discard(marker)


def _canonical_container(value: Any, active: set[int]) -> Any:
    if isinstance(value, list):
        return [_canonical(item, active) for item in value]
    if isinstance(value, tuple):
        return {"tuple": [_canonical(item, active) for item in value]}
    if isinstance(value, dict):
        pairs = [
            [_canonical(key, active), _canonical(item, active)]
            for key, item in value.items()
        ]
        pairs.sort(key=lambda pair: _encode(pair[0]))
        return {"dict": pairs}
    if isinstance(value, (set, frozenset)):
        items = [_canonical(item, active) for item in value]
        return {"set": sorted(items, key=_encode)}
    if isinstance(value, BaseModel):
        return {
            "model": type(value).__qualname__,
            "fields": _canonical(value.model_dump(mode="json"), active),
        }
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {
            field.name: getattr(value, field.name)
            for field in dataclasses.fields(value)
        }
        return {
            "dataclass": type(value).__qualname__,
            "fields": _canonical(fields, active),
        }
    raise KeyGenerationError(
        f"unsupported cache key argument of type {type(value).__qualname__}"
    )


def _encode(value: Any) -> str:
    return json.dumps(value, ensure_ascii=True, sort_keys=True, separators=(",", ":"))
