"""LINE messaging adapter — implements MessagingPort.

All LINE-specific logic lives here and in src.integrations.line_api. The
dispatcher never imports either directly; it depends on MessagingPort.
"""

from __future__ import annotations

import logging

import httpx

from src.data.models import Member
from src.integrations import line_api
from src.ports.messaging_port import MessagingError

logger = logging.getLogger(__name__)


class LineMessagingAdapter:
    """LINE Messaging API implementation of MessagingPort."""

    def __init__(
        self,
        access_token: str,
        base_url: str = line_api.DEFAULT_BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url
        self._timeout = timeout

    async def send_reply(self, reply_token: str, texts: list[str]) -> None:
        # Anything past the per-call limit would be dropped by LINE
        if len(texts) > line_api.MAX_MESSAGES_PER_CALL:
            logger.warning("Reply truncated from %d to %d messages", len(texts), line_api.MAX_MESSAGES_PER_CALL)
        try:
            await line_api.reply_message(
                self._access_token, reply_token, texts,
                base_url=self._base_url, timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("LINE reply error: %s", exc)
            raise MessagingError(f"Failed to send reply: {exc}") from exc

    async def send_push(self, chat_id: str, texts: list[str]) -> None:
        try:
            await line_api.push_message(
                self._access_token, chat_id, texts,
                base_url=self._base_url, timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("LINE push error: %s", exc)
            raise MessagingError(f"Failed to push to {chat_id}: {exc}") from exc

    async def lookup_profile(
        self, chat_id: str, member_id: str, source_type: str = "group"
    ) -> Member | None:
        try:
            profile = await line_api.get_member_profile(
                self._access_token, chat_id, member_id, source_type=source_type,
                base_url=self._base_url, timeout=self._timeout,
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise MessagingError(f"Profile lookup failed for {member_id}: {exc}") from exc
        if not profile:
            return None
        return Member(id=profile.get("userId") or member_id, name=profile.get("displayName") or "")

    async def count_members(self, chat_id: str, source_type: str = "group") -> int | None:
        try:
            return await line_api.get_member_count(
                self._access_token, chat_id, source_type=source_type,
                base_url=self._base_url, timeout=self._timeout,
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("LINE member count failed for %s: %s", chat_id, exc)
            return None
