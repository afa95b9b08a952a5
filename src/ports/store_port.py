"""Attendance store port — abstract interface for roster and completion storage.

Core modules depend on this protocol, never on a specific backend.
"""

from __future__ import annotations

from typing import Protocol

from src.data.models import Member


class StoreError(Exception):
    """Raised when a store backend operation fails."""


class StoreUnavailableError(StoreError):
    """Raised when no backend is configured or reachable and there is no fallback."""


def roster_key(prefix: str, chat_id: str) -> str:
    """Hash of member id → display name for one chat."""
    return f"{prefix}:{chat_id}:members"


def completion_key(prefix: str, chat_id: str, date_key: str) -> str:
    """Set of member ids who completed on `date_key` in one chat."""
    return f"{prefix}:{chat_id}:done:{date_key}"


class AttendanceStore(Protocol):
    """Abstract attendance storage used by core modules.

    Every mutation is idempotent so that redelivered webhook events are safe.
    """

    async def upsert_member(self, chat_id: str, member_id: str, name: str) -> None: ...

    async def list_members(self, chat_id: str) -> list[Member]: ...

    async def mark_complete(self, chat_id: str, date_key: str, member_id: str) -> None: ...

    async def completed_ids(self, chat_id: str, date_key: str) -> set[str]: ...
