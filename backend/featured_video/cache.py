"""In-process TTL cache for repository reads, with last-known-good fallback.

Built on cachetools.TTLCache. Each repository module owns one cache and
invalidates its key after every write. A loader gets exactly one attempt per
miss; when it raises, the last value loaded for the same key is served so the
public floating-video payload keeps rendering through short outages.
"""

import asyncio
import functools
import logging
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, TypeVar

from cachetools import TTLCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

# Distinguishes "not cached" from a cached None
_MISSING = object()

F = TypeVar("F", bound=Callable[..., Any])


class AsyncTTLCache:
    """Fresh values in a TTLCache, last-known-good values in a bounded LRU."""

    def __init__(self, maxsize: int = 32, ttl: float = 60.0):
        self._maxsize = maxsize
        self._fresh: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._last_good: OrderedDict[str, Any] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def get(self, key: str) -> Any:
        """Return the fresh value or ``_MISSING``."""
        return self._fresh.get(key, _MISSING)

    def set(self, key: str, value: Any) -> None:
        self._fresh[key] = value
        self._last_good[key] = value
        self._last_good.move_to_end(key)
        while len(self._last_good) > self._maxsize:
            self._last_good.popitem(last=False)

    def invalidate(self, key: str) -> None:
        """Drop the fresh value; the last-known-good copy survives."""
        self._fresh.pop(key, None)

    def reset(self) -> None:
        """Forget everything, last-known-good values included."""
        self._fresh.clear()
        self._last_good.clear()
        self._locks.clear()

    def get_stale(self, key: str) -> Any:
        """Return the last-known-good value or ``_MISSING``."""
        return self._last_good.get(key, _MISSING)

    @property
    def stale_size(self) -> int:
        return len(self._last_good)


def cached(cache: AsyncTTLCache, key_func: Callable[..., str]):
    """Cache the result of an async repository loader under ``key_func(*args)``.

    Concurrent misses for one key share a single load. A failed load falls
    back to the stale value with a warning, or re-raises when there is none.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            key = key_func(*args, **kwargs)
            result = cache.get(key)
            if result is not _MISSING:
                return result

            async with cache.lock_for(key):
                result = cache.get(key)
                if result is not _MISSING:
                    return result
                try:
                    result = await func(*args, **kwargs)
                except Exception as exc:
                    stale = cache.get_stale(key)
                    if stale is _MISSING:
                        raise
                    logger.warning(f"Serving stale value for {key} ({type(exc).__name__})")
                    return stale
                cache.set(key, result)
                return result

        wrapper.cache = cache  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
