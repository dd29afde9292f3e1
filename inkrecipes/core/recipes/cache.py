"""
Recipe Cache
============

Process-wide memoization for recipe configs, components, resolved props and
render outputs, behind one provider with explicit key types. Entries of a key
type may carry a time-to-live so live data refreshes, and a key type may be
capped at a number of entries, evicting the least recently used. Expired
entries are purged on every write.
"""

import hashlib
import json
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict

from ...config.logging import get_logger
from ...models.schemas import RenderFormat

logger = get_logger(__name__)

T = TypeVar("T")

MISSING: Any = object()


class ConfigKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str


class ComponentKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str


class PropsKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    params_hash: str


class RenderKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    width: int
    height: int
    formats: FrozenSet[RenderFormat]


CacheKey = Union[ConfigKey, ComponentKey, PropsKey, RenderKey]


def hash_params(params: Optional[Dict[str, Any]]) -> str:
    """Stable short hash of a parameter mapping."""
    encoded = json.dumps(params or {}, sort_keys=True, default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:16]


class CacheProvider:
    """
    Keyed cache shared by the resolver and the render pipeline.

    Concurrent callers may compute the same missing entry more than once; the
    last write wins.
    """

    def __init__(
        self,
        ttls: Optional[Dict[Type[BaseModel], Optional[float]]] = None,
        limits: Optional[Dict[Type[BaseModel], int]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger: Any = logger.bind(component="cache")
        self._ttls: Dict[Type[BaseModel], Optional[float]] = dict(ttls or {})
        self._clock = clock
        self._limits: Dict[Type[BaseModel], int] = dict(limits or {})
        self._entries: "OrderedDict[CacheKey, Tuple[Any, Optional[float]]]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def _expiry(self, key: CacheKey) -> Optional[float]:
        ttl = self._ttls.get(type(key))
        if not ttl:
            return None
        return self._clock() + ttl

    def get(self, key: CacheKey, default: Any = MISSING) -> Any:
        """Cached value, or ``default`` when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return default
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            self._entries.pop(key, None)
            self.misses += 1
            return default
        self._entries.move_to_end(key)
        self.hits += 1
        return value

    def set(self, key: CacheKey, value: Any) -> None:
        self.purge_expired()
        self._entries[key] = (value, self._expiry(key))
        self._entries.move_to_end(key)
        self._enforce_limit(type(key))

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were dropped."""
        now = self._clock()
        expired = [
            key for key, (_, expires_at) in self._entries.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _enforce_limit(self, key_type: Type[BaseModel]) -> None:
        limit = self._limits.get(key_type)
        if not limit:
            return
        keys = [key for key in self._entries if type(key) is key_type]
        if len(keys) <= limit:
            return
        for key in keys[: len(keys) - limit]:
            del self._entries[key]
            self.evictions += 1
            self.logger.debug("Cache entry evicted", key_type=key_type.__name__)

    def invalidate(self, key: CacheKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __contains__(self, key: CacheKey) -> bool:
        return self.get(key) is not MISSING

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_compute(self, key: CacheKey, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Return the cached value for ``key``, computing and storing it if missing.

        Args:
            key: Cache key
            factory: Coroutine function producing the value

        Returns:
            Cached or freshly computed value
        """
        value = self.get(key)
        if value is not MISSING:
            return value
        value = await factory()
        self.set(key, value)
        return value

    def stats(self) -> Dict[str, int]:
        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }
