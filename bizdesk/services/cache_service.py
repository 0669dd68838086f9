"""
Redis cache for small read models (the app settings document).

Any Redis failure is logged and treated as a miss; callers always fall back
to the database.
"""

import logging
import json
from typing import Any, Callable, Optional

import redis
from redis.exceptions import RedisError
from flask import Flask

logger = logging.getLogger(__name__)


class CacheService:
    """
    JSON values in Redis under ``{prefix}:{module}:{key}``.

    A service built without an app (or with CACHE_ENABLED off) never touches
    Redis.
    """

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self._enabled = False
        self._prefix = 'bizdesk'
        self._ttl = 300

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self._enabled = bool(app.config.get('CACHE_ENABLED', True))
        self._prefix = app.config.get('CACHE_KEY_PREFIX') or 'bizdesk'
        self._ttl = int(app.config.get('CACHE_SETTINGS_TTL', 300))

        if self._enabled:
            self._connect(app.config.get('REDIS_URL', 'redis://redis:6379/0'))
        else:
            logger.info("[CACHE] disabled by configuration")

    def _connect(self, redis_url: str) -> None:
        try:
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
                socket_timeout=3,
                retry_on_timeout=True,
            )
            client.ping()
        except RedisError as e:
            logger.warning(f"[CACHE] {redis_url} unreachable ({e}), running without cache")
            self._enabled = False
            return
        self.client = client
        logger.info(f"[CACHE] connected to {redis_url}")

    @property
    def enabled(self) -> bool:
        return self._enabled and self.client is not None

    def _build_key(self, module: str, key: str) -> str:
        return f"{self._prefix}:{module}:{key}"

    def get(self, module: str, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            raw = self.client.get(self._build_key(module, key))
            return json.loads(raw) if raw is not None else None
        except (RedisError, ValueError) as e:
            logger.warning(f"[CACHE] read of {module}:{key} failed: {e}")
            return None

    def set(self, module: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.setex(self._build_key(module, key), ttl or self._ttl, json.dumps(value))
        except (RedisError, TypeError) as e:
            logger.warning(f"[CACHE] write of {module}:{key} failed: {e}")
            return False
        return True

    def delete(self, module: str, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.delete(self._build_key(module, key))
        except RedisError as e:
            logger.warning(f"[CACHE] invalidation of {module}:{key} failed: {e}")
            return False
        return True

    def memoize(self, module: str, key: str, loader: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, or call ``loader`` and cache what it returns."""
        value = self.get(module, key)
        if value is None:
            value = loader()
            self.set(module, key, value, ttl)
        return value


_cache: Optional[CacheService] = None


def init_cache(app: Flask) -> CacheService:
    global _cache
    _cache = CacheService(app)
    app.extensions['cache'] = _cache
    return _cache


def get_cache() -> CacheService:
    """The app's cache, or a disabled one when no app initialized it."""
    global _cache
    if _cache is None:
        _cache = CacheService()
    return _cache
