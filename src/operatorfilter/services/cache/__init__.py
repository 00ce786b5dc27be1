"""Fast cache backends."""

from operatorfilter.services.cache.fast_cache import (
    FastCache,
    MemoryFastCache,
    RedisFastCache,
    close_fast_cache,
    get_fast_cache,
)

__all__ = [
    "FastCache",
    "MemoryFastCache",
    "RedisFastCache",
    "close_fast_cache",
    "get_fast_cache",
]
