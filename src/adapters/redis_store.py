"""Redis attendance store — implements AttendanceStore on a Redis server.

The roster of a chat is a hash (member id → display name) and each day's
completions are a set of member ids, so only four commands are needed:
HSET, HGETALL, SADD and SMEMBERS.

When a command fails the operation is served by the fallback store, if one
was injected; otherwise StoreUnavailableError is raised. Reads merge in
whatever the fallback holds, so writes made during an outage stay visible
until the process restarts.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.data.models import Member
from src.ports.store_port import StoreUnavailableError, completion_key, roster_key

if TYPE_CHECKING:
    from src.ports.store_port import AttendanceStore

logger = logging.getLogger(__name__)

_ERRORS = (RedisError, OSError)


def create_redis_client(url: str, timeout_seconds: float = 5.0) -> Any:
    """Build a redis.asyncio client that returns str instead of bytes."""
    return redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
    )


class RedisAttendanceStore:
    """Redis implementation of AttendanceStore."""

    def __init__(
        self,
        client: Any,
        key_prefix: str = "dailyroll",
        fallback: AttendanceStore | None = None,
    ) -> None:
        self._client = client
        self._prefix = key_prefix
        self._fallback = fallback

    def _degrade(self, operation: str, exc: Exception) -> AttendanceStore:
        """Return the fallback store for a failed command, or raise."""
        if self._fallback is None:
            logger.error("Redis %s failed and no fallback is configured: %s", operation, exc)
            raise StoreUnavailableError(f"Redis {operation} failed: {exc}") from exc
        logger.warning("Redis %s failed, using in-memory fallback: %s", operation, exc)
        return self._fallback

    async def ping(self) -> bool:
        """Check the connection. Never raises."""
        try:
            return bool(await self._client.ping())
        except _ERRORS as exc:
            logger.warning("Redis PING failed: %s", exc)
            return False

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis connection closed")

    async def upsert_member(self, chat_id: str, member_id: str, name: str) -> None:
        try:
            await self._client.hset(roster_key(self._prefix, chat_id), member_id, name)
        except _ERRORS as exc:
            await self._degrade("HSET", exc).upsert_member(chat_id, member_id, name)

    async def list_members(self, chat_id: str) -> list[Member]:
        try:
            roster = await self._client.hgetall(roster_key(self._prefix, chat_id))
        except _ERRORS as exc:
            return await self._degrade("HGETALL", exc).list_members(chat_id)
        merged = dict(roster or {})
        if self._fallback is not None:
            # Writes that landed in the fallback during an outage; Redis wins
            for member in await self._fallback.list_members(chat_id):
                merged.setdefault(member.id, member.name)
        return [Member(id=mid, name=name) for mid, name in merged.items()]

    async def mark_complete(self, chat_id: str, date_key: str, member_id: str) -> None:
        try:
            await self._client.sadd(completion_key(self._prefix, chat_id, date_key), member_id)
        except _ERRORS as exc:
            await self._degrade("SADD", exc).mark_complete(chat_id, date_key, member_id)

    async def completed_ids(self, chat_id: str, date_key: str) -> set[str]:
        try:
            members = await self._client.smembers(completion_key(self._prefix, chat_id, date_key))
        except _ERRORS as exc:
            return await self._degrade("SMEMBERS", exc).completed_ids(chat_id, date_key)
        done = set(members or ())
        if self._fallback is not None:
            done |= await self._fallback.completed_ids(chat_id, date_key)
        return done
