"""In-memory attendance store — implements AttendanceStore.

Used when Redis is not configured or unreachable. State lives on the
instance and is lost when the process exits.
"""

from __future__ import annotations

import logging

from src.data.models import Member

logger = logging.getLogger(__name__)


class MemoryAttendanceStore:
    """Process-local implementation of AttendanceStore."""

    def __init__(self) -> None:
        self._rosters: dict[str, dict[str, str]] = {}
        self._completions: dict[tuple[str, str], set[str]] = {}

    async def upsert_member(self, chat_id: str, member_id: str, name: str) -> None:
        self._rosters.setdefault(chat_id, {})[member_id] = name
        logger.debug("Member %s upserted in chat %s (memory)", member_id, chat_id)

    async def list_members(self, chat_id: str) -> list[Member]:
        roster = self._rosters.get(chat_id, {})
        return [Member(id=mid, name=name) for mid, name in roster.items()]

    async def mark_complete(self, chat_id: str, date_key: str, member_id: str) -> None:
        self._completions.setdefault((chat_id, date_key), set()).add(member_id)

    async def completed_ids(self, chat_id: str, date_key: str) -> set[str]:
        # Copy so callers can't mutate stored state
        return set(self._completions.get((chat_id, date_key), set()))
