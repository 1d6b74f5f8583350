"""
Caching Service

Cache-aside layer in front of the book read paths.

Features:
- Pluggable store: Redis (production) or in-process TTL cache (dev/tests)
- Consistent "scope:key" cache keys
- @cacheable / @cache_evict decorators for service methods
- Graceful degradation: a store failure is logged and treated as a miss

Cache Strategy:
- books (paged listing): 2 hour TTL
- book (single lookup): 60 minute TTL
- booksByCategory: 15 minute TTL
- Writes evict whole scopes; None results are never stored

Values are stored as JSON produced by the Pydantic response models, so a
hit is revalidated into the same model type the wrapped method returns.
"""

import inspect
import logging
import threading
from abc import ABC, abstractmethod
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import redis
from cachetools import TLRUCache
from pydantic import BaseModel, ValidationError
from redis.exceptions import RedisError

from bookapi.config import get_settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Scope names double as key prefixes
BOOKS_SCOPE = "books"
BOOK_SCOPE = "book"
CATEGORY_SCOPE = "booksByCategory"

DEFAULT_TTL_SECONDS = 1800


# =============================================================================
# Cache Key Generation
# =============================================================================

def make_cache_key(prefix: str, *args, **kwargs) -> str:
    """
    Generate a consistent cache key from prefix and arguments.

    Examples:
        make_cache_key("book", 1) -> "book:1"
        make_cache_key("books", "0-20-title,asc") -> "books:0-20-title,asc"
        make_cache_key("books", page=0, size=20) -> "books:page=0:size=20"
    """
    parts = [prefix]

    for arg in args:
        if arg is not None:
            parts.append(str(arg))

    for key in sorted(kwargs.keys()):
        value = kwargs[key]
        if value is not None:
            parts.append(f"{key}={value}")

    return ":".join(parts)


def scope_ttl(scope: str) -> int:
    """TTL in seconds configured for a cache scope."""
    settings = get_settings()
    ttls = {
        BOOKS_SCOPE: settings.cache_ttl_books,
        BOOK_SCOPE: settings.cache_ttl_book,
        CATEGORY_SCOPE: settings.cache_ttl_category,
    }
    return ttls.get(scope, DEFAULT_TTL_SECONDS)


# =============================================================================
# Stores
# =============================================================================

class CacheStore(ABC):
    """Minimal key-value contract the cache layer needs."""

    backend: str = "abstract"

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str, ttl: int) -> bool:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    def delete_scope(self, scope: str) -> int:
        """Delete every key under `scope:`. Returns the number removed."""

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def stats(self) -> dict:
        ...

    def close(self) -> None:
        pass


class RedisCacheStore(CacheStore):
    """
    Redis-backed store.

    The client is created lazily and re-created after a failed ping, so
    the API keeps serving (uncached) while Redis is down.
    """

    backend = "redis"

    def __init__(self, url: str):
        self.url = url
        self._client: Optional[redis.Redis] = None

    def _get_client(self) -> Optional[redis.Redis]:
        if self._client is not None:
            return self._client

        try:
            client = redis.from_url(
                self.url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            client.ping()
            logger.info("Successfully connected to Redis")
            self._client = client
            return client
        except RedisError as e:
            logger.warning(f"Failed to connect to Redis: {e}. Caching disabled.")
            self._client = None
            return None

    def get(self, key: str) -> Optional[str]:
        client = self._get_client()
        if client is None:
            return None

        try:
            value = client.get(key)
        except RedisError as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None

        if value is None:
            logger.debug(f"Cache MISS: {key}")
        else:
            logger.debug(f"Cache HIT: {key}")
        return value

    def set(self, key: str, value: str, ttl: int) -> bool:
        client = self._get_client()
        if client is None:
            return False

        try:
            client.setex(key, ttl, value)
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
            return True
        except RedisError as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        client = self._get_client()
        if client is None:
            return False

        try:
            client.delete(key)
            logger.debug(f"Cache DELETE: {key}")
            return True
        except RedisError as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return False

    def delete_scope(self, scope: str) -> int:
        client = self._get_client()
        if client is None:
            return 0

        pattern = f"{scope}:*"
        try:
            keys = list(client.scan_iter(match=pattern))
            if not keys:
                return 0
            deleted = client.delete(*keys)
            logger.debug(f"Cache DELETE PATTERN: {pattern} ({deleted} keys)")
            return deleted
        except RedisError as e:
            logger.warning(f"Cache delete pattern error for {pattern}: {e}")
            return 0

    def clear(self) -> None:
        for scope in (BOOKS_SCOPE, BOOK_SCOPE, CATEGORY_SCOPE):
            self.delete_scope(scope)

    def stats(self) -> dict:
        client = self._get_client()
        if client is None:
            return {"backend": self.backend, "status": "disconnected"}

        try:
            info = client.info("stats")
            return {
                "backend": self.backend,
                "status": "connected",
                "hits": info.get("keyspace_hits", 0),
                "misses": info.get("keyspace_misses", 0),
                "keys": client.dbsize(),
            }
        except RedisError:
            return {"backend": self.backend, "status": "error"}

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Redis connection closed")


def _entry_expiry(key: str, value: tuple[str, int], now: float) -> float:
    return now + value[1]


class MemoryCacheStore(CacheStore):
    """
    In-process store with per-entry TTL.

    Backed by cachetools.TLRUCache; a lock serialises access because
    request handlers run on a thread pool.
    """

    backend = "memory"

    def __init__(self, max_size: int = 10_000):
        self.max_size = max_size
        self._cache: TLRUCache = TLRUCache(maxsize=max_size, ttu=_entry_expiry)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self.misses += 1
                logger.debug(f"Cache MISS: {key}")
                return None
            self.hits += 1
        logger.debug(f"Cache HIT: {key}")
        return entry[0]

    def set(self, key: str, value: str, ttl: int) -> bool:
        with self._lock:
            self._cache[key] = (value, ttl)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            removed = self._cache.pop(key, None) is not None
        if removed:
            logger.debug(f"Cache DELETE: {key}")
        return removed

    def delete_scope(self, scope: str) -> int:
        prefix = f"{scope}:"
        with self._lock:
            keys = [key for key in list(self._cache.keys()) if key.startswith(prefix)]
            for key in keys:
                self._cache.pop(key, None)
        logger.debug(f"Cache DELETE PATTERN: {prefix}* ({len(keys)} keys)")
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict:
        with self._lock:
            self._cache.expire()
            return {
                "backend": self.backend,
                "status": "connected",
                "hits": self.hits,
                "misses": self.misses,
                "keys": len(self._cache),
            }


class NullCacheStore(CacheStore):
    """Store used when caching is switched off: every read misses."""

    backend = "none"

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str, ttl: int) -> bool:
        return False

    def delete(self, key: str) -> bool:
        return False

    def delete_scope(self, scope: str) -> int:
        return 0

    def clear(self) -> None:
        pass

    def stats(self) -> dict:
        return {"backend": self.backend, "status": "disabled"}


# =============================================================================
# Store Singleton
# =============================================================================

_store: Optional[CacheStore] = None


def get_cache_store() -> CacheStore:
    """Return the process-wide store, building it from settings on first use."""
    global _store

    if _store is None:
        settings = get_settings()
        if settings.cache_backend == "redis":
            _store = RedisCacheStore(settings.redis_url)
        elif settings.cache_backend == "memory":
            _store = MemoryCacheStore()
        else:
            _store = NullCacheStore()
        logger.info(f"Cache backend: {_store.backend}")

    return _store


def close_cache_store() -> None:
    """Close the store on shutdown."""
    global _store
    if _store is not None:
        _store.close()
        _store = None


def evict_scope(scope: str) -> int:
    return get_cache_store().delete_scope(scope)


def get_cache_stats() -> dict:
    return get_cache_store().stats()


# =============================================================================
# Decorators
# =============================================================================

def cacheable(scope: str, key: str, model: type[ModelT]) -> Callable:
    """
    Cache the return value of a method under `scope:key`.

    `key` is a str.format template filled from the call's bound
    arguments, e.g. "{book_id}" or "{page_request.cache_key}". A hit is
    revalidated into `model`; a None result is returned but not stored.

    Usage:
        @cacheable(BOOK_SCOPE, key="{book_id}", model=BookResponse)
        def find(self, db, book_id): ...
    """

    def decorator(func: Callable[..., Optional[ModelT]]) -> Callable[..., Optional[ModelT]]:
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Optional[ModelT]:
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            cache_key = make_cache_key(scope, key.format(**bound.arguments))
            store = get_cache_store()

            cached = store.get(cache_key)
            if cached is not None:
                try:
                    return model.model_validate_json(cached)
                except ValidationError as e:
                    logger.warning(f"Discarding unreadable cache entry {cache_key}: {e}")
                    store.delete(cache_key)

            result = func(*args, **kwargs)
            if result is not None:
                store.set(cache_key, result.model_dump_json(by_alias=True), scope_ttl(scope))
            return result

        return wrapper

    return decorator


def cache_evict(*scopes: str) -> Callable:
    """
    Evict every entry of the given scopes after the wrapped call succeeds.

    Nothing is evicted when the call raises.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            result = func(*args, **kwargs)
            for scope in scopes:
                evict_scope(scope)
            return result

        return wrapper

    return decorator
