"""LINE Messaging API integration — reply, push and member lookups.

Thin httpx wrappers around the REST endpoints the bot needs. HTTP errors
propagate as httpx exceptions; the messaging adapter turns them into
MessagingError.
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.line.me"
_TIMEOUT_SECONDS = 10

# A single reply or push call accepts at most five message objects
MAX_MESSAGES_PER_CALL = 5


def _headers(access_token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json",
    }


def _text_messages(texts: list[str]) -> list[dict]:
    return [{"type": "text", "text": t} for t in texts]


def _chat_path(source_type: str, chat_id: str) -> str:
    """'/v2/bot/group/{id}' or '/v2/bot/room/{id}'."""
    kind = "room" if source_type == "room" else "group"
    return f"/v2/bot/{kind}/{chat_id}"


async def reply_message(
    access_token: str,
    reply_token: str,
    texts: list[str],
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = _TIMEOUT_SECONDS,
) -> None:
    """Answer an event through its one-shot reply token (max 5 texts)."""
    if not texts:
        return
    async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
        resp = await client.post(
            "/v2/bot/message/reply",
            json={"replyToken": reply_token, "messages": _text_messages(texts[:MAX_MESSAGES_PER_CALL])},
            headers=_headers(access_token),
        )
        resp.raise_for_status()


async def push_message(
    access_token: str,
    to: str,
    texts: list[str],
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = _TIMEOUT_SECONDS,
) -> None:
    """Push texts to a chat, in order, five per request."""
    if not texts:
        return
    async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
        for start in range(0, len(texts), MAX_MESSAGES_PER_CALL):
            batch = texts[start:start + MAX_MESSAGES_PER_CALL]
            resp = await client.post(
                "/v2/bot/message/push",
                json={"to": to, "messages": _text_messages(batch)},
                headers=_headers(access_token),
            )
            resp.raise_for_status()


async def get_member_profile(
    access_token: str,
    chat_id: str,
    user_id: str,
    source_type: str = "group",
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = _TIMEOUT_SECONDS,
) -> dict | None:
    """Fetch a member's profile in a group/room. None if LINE doesn't know them."""
    async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
        resp = await client.get(
            f"{_chat_path(source_type, chat_id)}/member/{user_id}",
            headers=_headers(access_token),
        )
        if resp.status_code == 404:
            logger.info("Profile not found for %s in %s", user_id, chat_id)
            return None
        resp.raise_for_status()
        return resp.json()


async def get_member_count(
    access_token: str,
    chat_id: str,
    source_type: str = "group",
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = _TIMEOUT_SECONDS,
) -> int | None:
    """Number of members in a group/room (the bot excluded)."""
    async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
        resp = await client.get(
            f"{_chat_path(source_type, chat_id)}/members/count",
            headers=_headers(access_token),
        )
        resp.raise_for_status()
        count = resp.json().get("count")
    return int(count) if count is not None else None
