"""Language preference storage for the Guidebot relay.

Two stores share one contract (``get``/``set`` over string user ids and
language tags):

- ``InMemoryLanguageStore`` -- process-local and volatile. Values are lost
  on restart and never expire. Each key is read and written atomically with
  respect to the event loop.
- ``RedisLanguageStore`` -- durable across restarts and shared between
  workers, with an optional per-key TTL. Redis errors are re-raised as
  ``LanguageStoreError`` so callers never handle redis exceptions directly.

Exactly one store is authoritative per process; ``create_language_store``
picks it from configuration.
"""

from __future__ import annotations

from typing import Protocol

from redis.asyncio import Redis
from redis.asyncio import from_url as redis_from_url
from redis.exceptions import RedisError

from config import logger
from constants import STORE_CONSTANTS
from errors import LanguageStoreError


class LanguageStore(Protocol):
    async def get(self, user_id: str) -> str | None: ...

    async def set(self, user_id: str, language: str) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class InMemoryLanguageStore:
    """Volatile user id -> language tag mapping held in process memory."""

    def __init__(self) -> None:
        self._languages: dict[str, str] = {}

    async def get(self, user_id: str) -> str | None:
        return self._languages.get(user_id)

    async def set(self, user_id: str, language: str) -> None:
        self._languages[user_id] = language

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    def __len__(self) -> int:
        return len(self._languages)


class RedisLanguageStore:
    """Durable user id -> language tag mapping stored in Redis.

    Keys are namespaced with ``STORE_CONSTANTS.REDIS_KEY_PREFIX``. When
    ``ttl_seconds`` is set every write refreshes the key's expiry; otherwise
    preferences persist until deleted.
    """

    def __init__(
        self,
        client: Redis,
        ttl_seconds: int | None = None,
        key_prefix: str = STORE_CONSTANTS.REDIS_KEY_PREFIX,
    ) -> None:
        self._r = client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int | None = None) -> RedisLanguageStore:
        client = redis_from_url(url, decode_responses=True, encoding="utf-8")
        return cls(client, ttl_seconds=ttl_seconds)

    def _key(self, user_id: str) -> str:
        return f"{self._key_prefix}{user_id}"

    async def get(self, user_id: str) -> str | None:
        try:
            value = await self._r.get(self._key(user_id))
        except RedisError as e:
            logger.error(f"Redis GET failed for user {user_id}: {e}")
            raise LanguageStoreError(f"Redis GET failed: {e}") from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, user_id: str, language: str) -> None:
        try:
            if self._ttl_seconds:
                await self._r.setex(self._key(user_id), self._ttl_seconds, language)
            else:
                await self._r.set(self._key(user_id), language)
        except RedisError as e:
            logger.error(f"Redis SET failed for user {user_id}: {e}")
            raise LanguageStoreError(f"Redis SET failed: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._r.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        logger.info("Closing Redis language store")
        await self._r.aclose()


def create_language_store(
    redis_url: str | None, ttl_seconds: int | None = None
) -> LanguageStore:
    """Build the configured store: Redis when a URL is given, memory otherwise."""
    if redis_url:
        logger.info("Using Redis language store")
        return RedisLanguageStore.from_url(redis_url, ttl_seconds=ttl_seconds)
    logger.info("Using in-memory language store (preferences reset on restart)")
    return InMemoryLanguageStore()
