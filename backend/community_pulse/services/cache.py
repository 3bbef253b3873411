"""Redis-backed cache for classifications and dashboard snapshots.

Provides caching for:
- Classifications (no TTL) - a post's text never changes, so neither does its score
- Dashboard snapshots (TTL: DASHBOARD_TTL_SECONDS) - balance freshness vs ingestion cost

Graceful degradation: if Redis is unavailable, reads miss and writes are no-ops.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Optional

from redis import Redis
from redis.exceptions import RedisError

from community_pulse.config import DASHBOARD_RANGES, DASHBOARD_TTL_SECONDS, settings
from community_pulse.models import Classification

logger = logging.getLogger(__name__)

CLASSIFICATION_PREFIX = "class:"
DASHBOARD_PREFIX = "dashboard:"


def _get_redis_client() -> Redis | None:
    """Get Redis client from REDIS_URL, or None if unset or unreachable."""
    if not settings.REDIS_URL:
        return None

    try:
        client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
        client.ping()
        return client
    except (RedisError, ValueError) as e:
        logger.warning("Redis unavailable: %s", e)
        return None


class RedisCache:
    """Redis-backed cache with graceful degradation.

    If Redis is unavailable, every lookup misses and every write returns False.
    """

    _instance: "RedisCache | None" = None

    def __init__(self, client: Redis | None = None, dashboard_ttl: int = DASHBOARD_TTL_SECONDS):
        """Initialize cache.

        Args:
            client: Redis client instance. If None, attempts to connect via REDIS_URL.
            dashboard_ttl: Seconds a dashboard snapshot stays valid
        """
        self._client = client
        self._initialized = False
        self.dashboard_ttl = dashboard_ttl

    @classmethod
    def get_instance(cls) -> "RedisCache":
        """Get singleton cache instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset singleton (for testing)."""
        if cls._instance and cls._instance._client:
            try:
                cls._instance._client.close()
            except RedisError as e:
                logger.debug("Error closing Redis client: %s", e)
        cls._instance = None

    @property
    def client(self) -> Redis | None:
        """Lazy-load Redis client."""
        if not self._initialized:
            self._initialized = True
            if self._client is None:
                self._client = _get_redis_client()
            if self._client:
                logger.info("Redis cache connected")
        return self._client

    @property
    def available(self) -> bool:
        return self.client is not None

    # ---------- Classification Cache ----------

    @staticmethod
    def _classification_key(post_id: str) -> str:
        return f"{CLASSIFICATION_PREFIX}{post_id}"

    def get_classification(self, post_id: str) -> Optional[Classification]:
        return self.get_classifications([post_id]).get(post_id)

    def get_classifications(self, post_ids: Iterable[str]) -> Dict[str, Classification]:
        """Get cached classifications.

        Args:
            post_ids: Stable post identifiers

        Returns:
            Mapping of post id to classification, only for cached ids
        """
        ids = list(post_ids)
        if not self.client or not ids:
            return {}

        try:
            values = self.client.mget([self._classification_key(post_id) for post_id in ids])
        except RedisError as e:
            logger.debug("Cache get error: %s", e)
            return {}

        found: Dict[str, Classification] = {}
        for post_id, raw in zip(ids, values):
            if not raw:
                continue
            try:
                found[post_id] = Classification(**json.loads(raw))
            except (TypeError, ValueError) as e:
                logger.debug("Ignoring unreadable classification for %s: %s", post_id, e)
        return found

    def set_classification(self, post_id: str, classification: Classification) -> bool:
        """Cache a classification with no expiry.

        Returns:
            True if cached successfully
        """
        if not self.client:
            return False

        try:
            self.client.set(self._classification_key(post_id), json.dumps(asdict(classification)))
            return True
        except RedisError as e:
            logger.debug("Cache set error: %s", e)
            return False

    # ---------- Dashboard Cache ----------

    @staticmethod
    def _dashboard_key(fid: int, range_key: str) -> str:
        return f"{DASHBOARD_PREFIX}{fid}:{range_key}"

    def get_dashboard(self, fid: int, range_key: str) -> Optional[Dict[str, Any]]:
        """Get a cached dashboard snapshot.

        Args:
            fid: User identifier
            range_key: Dashboard range label (e.g. "7d")

        Returns:
            The JSON-decoded snapshot, or None if missing or expired
        """
        if not self.client:
            return None

        try:
            data = self.client.get(self._dashboard_key(fid, range_key))
            if data:
                return json.loads(data)
        except (RedisError, ValueError) as e:
            logger.debug("Cache get error: %s", e)
        return None

    def set_dashboard(self, fid: int, range_key: str, data: Dict[str, Any]) -> bool:
        """Cache a JSON-serializable dashboard snapshot for `dashboard_ttl` seconds.

        Returns:
            True if cached successfully
        """
        if not self.client:
            return False

        try:
            self.client.set(self._dashboard_key(fid, range_key), json.dumps(data), ex=self.dashboard_ttl)
            return True
        except RedisError as e:
            logger.debug("Cache set error: %s", e)
            return False

    # ---------- Cache Invalidation ----------

    def invalidate_dashboard(self, fid: int) -> int:
        """Drop every cached dashboard range for a user.

        Returns:
            Number of snapshots removed
        """
        if not self.client:
            return 0

        try:
            removed = self.client.delete(*(self._dashboard_key(fid, range_key) for range_key in DASHBOARD_RANGES))
        except RedisError as e:
            logger.debug("Cache invalidation error: %s", e)
            return 0

        if removed:
            logger.info("Invalidated %d dashboard snapshot(s) for fid %s", removed, fid)
        return removed

    def clear(self) -> int:
        """Delete every classification and dashboard key.

        Returns:
            Number of keys deleted
        """
        if not self.client:
            return 0

        try:
            count = 0
            for prefix in (CLASSIFICATION_PREFIX, DASHBOARD_PREFIX):
                keys: List[str] = list(self.client.scan_iter(match=f"{prefix}*", count=100))
                if keys:
                    count += self.client.delete(*keys)
            return count
        except RedisError as e:
            logger.debug("Cache clear error: %s", e)
            return 0


def get_cache() -> RedisCache:
    """Process-wide cache instance."""
    return RedisCache.get_instance()
