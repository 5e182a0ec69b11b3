"""
Server-side session cache for generation history.

Provides a thread-safe TTL cache holding each UI session's history list.
Idle sessions are dropped automatically once the TTL expires.
"""

from cachetools import TTLCache
from threading import Lock
from typing import Optional, Any, Dict, List

from config.settings import settings

# Thread-safe cache instance
_history_cache: TTLCache = TTLCache(
    maxsize=settings.HISTORY_MAX_SESSIONS,
    ttl=settings.HISTORY_TTL_SECONDS
)
_cache_lock = Lock()


def make_history_cache_key(session_id: str) -> str:
    return f"history:{session_id}"


def get_cached(key: str) -> Optional[Any]:
    """
    Retrieve a cached value by key.

    Args:
        key: The cache key

    Returns:
        The cached value if present and not expired, None otherwise
    """
    with _cache_lock:
        return _history_cache.get(key)


def update_cached_list(key: str, new_items: List[Any], max_items: int) -> List[Any]:
    """
    Prepend items to the cached list under `key`, keeping at most `max_items`.

    Reading and writing happen under one lock so concurrent requests for the
    same session do not lose entries. Writing also refreshes the session TTL.

    Returns:
        The stored list after the update
    """
    with _cache_lock:
        current = _history_cache.get(key) or []
        updated = (list(new_items) + current)[:max_items]
        _history_cache[key] = updated
        return list(updated)


def invalidate(key: str) -> int:
    """
    Remove a key from the cache.

    Returns:
        Number of items the removed entry held (0 if it was missing)
    """
    with _cache_lock:
        removed = _history_cache.pop(key, None)
        return len(removed) if removed else 0


def clear_all() -> int:
    """
    Clear the entire cache.

    Returns:
        Number of entries cleared
    """
    with _cache_lock:
        count = len(_history_cache)
        _history_cache.clear()
        return count


def get_cache_stats() -> Dict[str, Any]:
    """
    Get cache statistics for monitoring.

    Returns:
        Dictionary with cache stats (size, max_size, ttl)
    """
    with _cache_lock:
        return {
            "current_size": len(_history_cache),
            "max_size": settings.HISTORY_MAX_SESSIONS,
            "ttl_seconds": settings.HISTORY_TTL_SECONDS
        }
