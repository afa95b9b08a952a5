"""Store factory — creates the attendance store matching the configuration."""

from __future__ import annotations

import logging

from src.adapters.memory_store import MemoryAttendanceStore
from src.config import settings
from src.data.models import Member
from src.ports.store_port import AttendanceStore, StoreUnavailableError

logger = logging.getLogger(__name__)


class UnconfiguredStore:
    """AttendanceStore stand-in used when no backend is configured and
    STORE_FALLBACK is off. Every call raises StoreUnavailableError."""

    async def upsert_member(self, chat_id: str, member_id: str, name: str) -> None:
        raise StoreUnavailableError("No attendance store is configured")

    async def list_members(self, chat_id: str) -> list[Member]:
        raise StoreUnavailableError("No attendance store is configured")

    async def mark_complete(self, chat_id: str, date_key: str, member_id: str) -> None:
        raise StoreUnavailableError("No attendance store is configured")

    async def completed_ids(self, chat_id: str, date_key: str) -> set[str]:
        raise StoreUnavailableError("No attendance store is configured")


async def create_attendance_store() -> AttendanceStore:
    """Return the store selected by REDIS_URL / STORE_FALLBACK.

    - REDIS_URL set and reachable → RedisAttendanceStore (with an in-memory
      fallback for later failures when STORE_FALLBACK is on).
    - REDIS_URL set but unreachable → MemoryAttendanceStore when
      STORE_FALLBACK is on, else the Redis store (calls raise until it
      comes back).
    - REDIS_URL empty → MemoryAttendanceStore, or UnconfiguredStore when
      STORE_FALLBACK is off.
    """
    fallback = MemoryAttendanceStore() if settings.STORE_FALLBACK else None

    if not settings.REDIS_URL:
        if fallback is None:
            logger.warning("REDIS_URL not set and STORE_FALLBACK disabled — storage unavailable")
            return UnconfiguredStore()
        logger.info("REDIS_URL not set, using in-memory store")
        return fallback

    from src.adapters.redis_store import RedisAttendanceStore, create_redis_client

    client = create_redis_client(settings.REDIS_URL, settings.REDIS_TIMEOUT_SECONDS)
    store = RedisAttendanceStore(
        client, key_prefix=settings.STORE_KEY_PREFIX, fallback=fallback,
    )
    if await store.ping():
        logger.info("Connected to Redis attendance store")
        return store

    if fallback is not None:
        logger.warning("Redis unreachable at startup, using in-memory store")
        await store.close()
        return fallback

    logger.warning("Redis unreachable at startup and STORE_FALLBACK disabled")
    return store
