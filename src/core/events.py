"""
DailyRoll — Inbound webhook event schema.

Only the fields the dispatcher reads are modelled; everything else in the
LINE payload is ignored.

JSON example:
{
    "destination": "U...",
    "events": [
        {
            "type": "message",
            "replyToken": "nHuyWiB7yP5Zw52FIkcQobQuGDXCTA",
            "source": {"type": "group", "groupId": "C4af...", "userId": "U4af..."},
            "message": {"type": "text", "text": "/done"}
        }
    ]
}
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

MULTI_MEMBER_SOURCES = ("group", "room")


class _LineModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class EventSource(_LineModel):
    type: str                                   # "user" | "group" | "room"
    user_id: str | None = Field(default=None, alias="userId")
    group_id: str | None = Field(default=None, alias="groupId")
    room_id: str | None = Field(default=None, alias="roomId")

    @property
    def chat_id(self) -> str | None:
        """Group or room id; None for one-to-one chats."""
        if self.type == "group":
            return self.group_id
        if self.type == "room":
            return self.room_id
        return None

    @property
    def is_multi_member(self) -> bool:
        return self.type in MULTI_MEMBER_SOURCES and self.chat_id is not None


class EventMessage(_LineModel):
    type: str
    text: str | None = None


class MemberRef(_LineModel):
    type: str = "user"
    user_id: str | None = Field(default=None, alias="userId")


class MemberChange(_LineModel):
    members: list[MemberRef] = []


class WebhookEvent(_LineModel):
    type: str                                   # "message" | "memberJoined" | "memberLeft" | "join" | ...
    source: EventSource | None = None
    reply_token: str | None = Field(default=None, alias="replyToken")
    message: EventMessage | None = None
    joined: MemberChange | None = None
    left: MemberChange | None = None

    @property
    def text(self) -> str | None:
        """Text payload of a text message event, else None."""
        if self.type == "message" and self.message is not None and self.message.type == "text":
            return self.message.text or ""
        return None
