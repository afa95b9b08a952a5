"""Messaging port — abstract interface for the chat platform gateway.

Core modules depend on this protocol, never on a specific messaging provider.
"""

from __future__ import annotations

from typing import Protocol

from src.data.models import Member


class MessagingError(Exception):
    """Raised when any messaging provider call fails."""


class MessagingPort(Protocol):
    """Abstract messaging interface used by the event dispatcher."""

    async def send_reply(self, reply_token: str, texts: list[str]) -> None: ...

    async def send_push(self, chat_id: str, texts: list[str]) -> None: ...

    async def lookup_profile(
        self, chat_id: str, member_id: str, source_type: str = "group"
    ) -> Member | None: ...

    async def count_members(
        self, chat_id: str, source_type: str = "group"
    ) -> int | None: ...
