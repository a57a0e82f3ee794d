"""Read-through cache for priced catalog pages.

Keys are ``catalog:<generation>:<sha256 of query + viewer>``.  Any catalog
mutation bumps the generation counter, which orphans every previously
written page at once; orphans expire through their TTL.

The cache is a side channel.  Every call is wrapped so that a cache
outage degrades to a miss on read and a no-op on write.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Optional

import structlog
from django.conf import settings
from django.core.cache import cache as default_cache

logger = structlog.get_logger(__name__)

GENERATION_KEY = "catalog:generation"


class CatalogCache:
    def __init__(self, backend=None, ttl: Optional[int] = None) -> None:
        self._cache = backend if backend is not None else default_cache
        self._ttl = ttl if ttl is not None else settings.CATALOG_CACHE_TTL

    # ---- Keys ----

    def _generation(self) -> int:
        try:
            return int(self._cache.get(GENERATION_KEY) or 0)
        except Exception:
            logger.warning("catalog.cache_generation_unavailable", exc_info=True)
            return 0

    def key_for(self, params: dict, user_id: Optional[int]) -> str:
        viewer = str(user_id) if user_id is not None else "anonymous"
        raw = json.dumps({"params": params, "user": viewer}, sort_keys=True)
        digest = hashlib.sha256(raw.encode()).hexdigest()
        return f"catalog:{self._generation()}:{digest}"

    # ---- Operations ----

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self._cache.get(key)
        except Exception:
            logger.warning("catalog.cache_read_failed", key=key, exc_info=True)
            return None
        if value is None:
            logger.debug("catalog.cache_miss", key=key)
        else:
            logger.debug("catalog.cache_hit", key=key)
        return value

    def set(self, key: str, value: Any) -> None:
        try:
            self._cache.set(key, value, self._ttl)
        except Exception:
            logger.warning("catalog.cache_write_failed", key=key, exc_info=True)

    def invalidate_all(self) -> None:
        """Orphan every cached catalog page."""
        try:
            try:
                self._cache.incr(GENERATION_KEY)
            except ValueError:
                # incr on a missing key
                self._cache.add(GENERATION_KEY, 1, timeout=None)
        except Exception:
            logger.warning("catalog.cache_invalidation_failed", exc_info=True)
            return
        logger.info("catalog.cache_invalidated")
