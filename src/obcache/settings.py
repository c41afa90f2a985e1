"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache instance options and environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any


def _env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def _env_float(*names: str) -> float | None:
    raw = _env_first(*names)
    return None if raw is None else float(raw)


@dataclass(frozen=True, slots=True)
class ResetOptions:
    """
    Periodic whole-cache reset.

    Args:
        interval_s: Seconds between resets. Must be > 0.
        first_reset_at: Absolute epoch time of the first reset. Defaults to
            cache creation time plus one interval.
    """

    interval_s: float
    first_reset_at: float | None = None

    def __post_init__(self) -> None:
        if self.interval_s <= 0:
            raise ValueError("reset interval_s must be > 0")


@dataclass(frozen=True, slots=True)
class CacheOptions:
    """
    Explicit settings for one cache instance.

    The engine reads only ``reset``. Everything else is passed through to the
    store backend selected by ``store``.
    """

    store: str = "memory"

    max_size: int = 1000
    max_age_s: float | None = None

    redis_url: str | None = None
    redis_prefix: str = "obcache"
    redis_ttl_s: float | None = None
    redis_client: Any | None = field(default=None, compare=False, repr=False)

    reset: ResetOptions | None = None

    def with_overrides(self, **overrides: Any) -> "CacheOptions":
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides) if overrides else self

    @staticmethod
    def from_env() -> "CacheOptions":
        """
        Load options from `OBCACHE_*` environment variables.

        Redis resolution uses `OBCACHE_REDIS_URL` (or `REDIS_URL`) when set,
        otherwise builds a URL from host/port/db/password variables.
        """
        reset: ResetOptions | None = None
        interval = _env_float("OBCACHE_RESET_INTERVAL_S")
        if interval is not None:
            reset = ResetOptions(
                interval_s=interval,
                first_reset_at=_env_float("OBCACHE_RESET_FIRST_AT"),
            )

        url = _env_first("OBCACHE_REDIS_URL", "REDIS_URL")
        if not url and _env_first("OBCACHE_REDIS_HOST") is not None:
            host = _env_first("OBCACHE_REDIS_HOST", default="localhost") or "localhost"
            port = _env_first("OBCACHE_REDIS_PORT", default="6379") or "6379"
            db = _env_first("OBCACHE_REDIS_DB", default="0") or "0"
            password = _env_first("OBCACHE_REDIS_PASSWORD", default="") or ""
            if password:
                url = f"redis://:{password}@{host}:{port}/{db}"
            else:
                url = f"redis://{host}:{port}/{db}"

        return CacheOptions(
            store=(_env_first("OBCACHE_STORE", default="memory") or "memory")
            .strip()
            .lower(),
            max_size=int(_env_first("OBCACHE_MAX_SIZE", default="1000") or "1000"),
            max_age_s=_env_float("OBCACHE_MAX_AGE_S"),
            redis_url=url,
            redis_prefix=_env_first("OBCACHE_REDIS_PREFIX", default="obcache")
            or "obcache",
            redis_ttl_s=_env_float("OBCACHE_REDIS_TTL_S"),
            reset=reset,
        )
