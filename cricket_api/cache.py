# cricket_api/cache.py
from __future__ import annotations

import time
from typing import Any, Dict, Optional, Tuple

# In-memory TTL cache for read-side views (scorecards, live listing)
# key -> (expires_at_epoch, value)
_cache: Dict[str, Tuple[float, Any]] = {}


def make_key(*parts: str) -> str:
    """
    Join non-empty parts into a namespaced key.
    Example:
      make_key("scorecard", "ab12", "7") -> "scorecard:ab12:7"
    """
    cleaned = [str(p).strip() for p in parts if str(p).strip()]
    if len(cleaned) < 2:
        raise ValueError("Cache key needs a namespace and at least one part")
    return ":".join(cleaned)


def get(key: str) -> Optional[Any]:
    item = _cache.get(key)
    if not item:
        return None

    expires_at, value = item
    if time.time() > expires_at:
        _cache.pop(key, None)
        return None

    return value


def set(key: str, value: Any, ttl_seconds: int = 60) -> None:
    if ttl_seconds <= 0:
        # Do not cache if TTL is invalid
        return
    _cache[key] = (time.time() + ttl_seconds, value)


def delete(key: str) -> None:
    _cache.pop(key, None)


def clear() -> None:
    _cache.clear()
