"""
In-process cache for reference data.

Entries expire on whichever comes first: the sliding window since the last
hit, or the absolute deadline fixed when the entry was loaded.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Hashable, TypeVar

from cachetools import TLRUCache

from marketplace.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CachePolicy:
    sliding: timedelta
    absolute: timedelta


@dataclass(frozen=True)
class _Entry:
    value: Any
    deadline: float
    sliding_seconds: float


def _time_to_use(_key: Hashable, entry: _Entry, now: float) -> float:
    return min(now + entry.sliding_seconds, entry.deadline)


class LookupCache:
    """Get-or-load cache; callers pass the loader and the expiration policy."""

    def __init__(self, maxsize: int = 256, timer: Callable[[], float] = time.monotonic):
        self._timer = timer
        self._entries: TLRUCache[Hashable, _Entry] = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[T]], policy: CachePolicy) -> T:
        entry = self._entries.get(key)
        if entry is not None:
            # re-insert so the sliding window restarts from this hit
            self._entries[key] = entry
            return entry.value

        # No lock: concurrent misses may each load, loaders are idempotent reads
        value = await loader()
        self._entries[key] = _Entry(
            value=value,
            deadline=self._timer() + policy.absolute.total_seconds(),
            sliding_seconds=policy.sliding.total_seconds(),
        )
        logger.debug("Cache entry %s loaded", key)
        return value

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries


def lookup_cache_policy() -> CachePolicy:
    return CachePolicy(
        sliding=timedelta(hours=settings.CACHE_SLIDING_EXPIRATION_LOOKUP_IN_HOURS),
        absolute=timedelta(days=settings.CACHE_ABSOLUTE_EXPIRATION_RELATIVE_TO_NOW_LOOKUP_IN_DAYS),
    )


def lookup_cache_enabled() -> bool:
    return "lookups" in {value.lower() for value in settings.CACHE_ENABLED_REFERENCE_DATA_TYPES}


# Shared by every lookup service in the process
lookup_cache = LookupCache()
