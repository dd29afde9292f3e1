"""
Mixup Store
===========

Persistence of mixups (layout id plus slot assignments). Redis stores each
mixup as a hash; the in-memory store backs development and tests.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import redis.asyncio as redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from pydantic import ValidationError

from ...config.database import get_redis_client
from ...config.logging import get_logger
from ...config.settings import Settings
from ...models.schemas import MixupRecord
from ..errors import PersistenceUnavailable

logger = get_logger(__name__)


class MixupStore(ABC):
    """Lookup and storage of persisted mixups."""

    @abstractmethod
    async def get_mixup(self, mixup_id: str) -> Optional[MixupRecord]:
        """
        Fetch a mixup.

        Returns:
            The record, or None when the id is unknown

        Raises:
            PersistenceUnavailable: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def save_mixup(self, record: MixupRecord) -> None:
        """Create or replace a mixup."""
        pass


class InMemoryMixupStore(MixupStore):
    """Process-local mixup store."""

    def __init__(self) -> None:
        self._records: Dict[str, MixupRecord] = {}

    async def get_mixup(self, mixup_id: str) -> Optional[MixupRecord]:
        return self._records.get(mixup_id)

    async def save_mixup(self, record: MixupRecord) -> None:
        self._records[record.id] = record


class RedisMixupStore(MixupStore):
    """Mixups stored as Redis hashes under ``{prefix}:{id}``."""

    def __init__(
        self,
        client_factory: Callable[[], redis.Redis] = get_redis_client,
        key_prefix: str = "inkrecipes:mixup",
    ):
        self.client_factory = client_factory
        self.key_prefix = key_prefix
        self.logger: Any = logger.bind(component="mixup_store", backend="redis")

    def _key(self, mixup_id: str) -> str:
        return f"{self.key_prefix}:{mixup_id}"

    def _client(self) -> redis.Redis:
        try:
            return self.client_factory()
        except RuntimeError as e:
            raise PersistenceUnavailable(f"Mixup storage not initialized: {e}") from e

    async def get_mixup(self, mixup_id: str) -> Optional[MixupRecord]:
        client = self._client()
        try:
            fields = await client.hgetall(self._key(mixup_id))
        except RedisError as e:
            self.logger.error("Mixup lookup failed", mixup_id=mixup_id, error=str(e))
            raise PersistenceUnavailable(f"Mixup storage unavailable: {e}") from e

        if not fields:
            return None
        data: Dict[str, Any] = {"id": mixup_id, "name": fields.get("name", "")}
        if fields.get("created_at"):
            data["created_at"] = fields["created_at"]
        try:
            data["layout_id"] = fields["layout_id"]
            data["slots"] = json.loads(fields.get("slots") or "[]")
            return MixupRecord(**data)
        except (KeyError, ValueError, ValidationError) as e:
            self.logger.error("Corrupt mixup record", mixup_id=mixup_id, error=str(e))
            raise PersistenceUnavailable(f"Mixup {mixup_id} could not be decoded") from e

    async def save_mixup(self, record: MixupRecord) -> None:
        client = self._client()
        mapping = {
            "name": record.name,
            "layout_id": record.layout_id,
            "slots": json.dumps([slot.model_dump() for slot in record.slots]),
            "created_at": record.created_at.isoformat(),
        }
        try:
            await client.hset(self._key(record.id), mapping=mapping)
        except RedisError as e:
            self.logger.error("Mixup save failed", mixup_id=record.id, error=str(e))
            raise PersistenceUnavailable(f"Mixup storage unavailable: {e}") from e
        self.logger.info("Mixup saved", mixup_id=record.id, layout_id=record.layout_id)


def create_mixup_store(settings: Settings) -> MixupStore:
    """Build the configured mixup store backend."""
    if settings.mixup_store == "memory":
        return InMemoryMixupStore()
    return RedisMixupStore(key_prefix=settings.mixup_key_prefix)
