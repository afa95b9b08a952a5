"""
DailyRoll — Event Dispatcher.

Drives one webhook batch through the pipeline:

    filter → scope check → implicit registration → command → reply

Each event is handled on its own: a failure is logged and swallowed so it
never blocks sibling events or the webhook response. Events of one batch
run concurrently; the stages of a single event run in order.

This module is provider-agnostic: it depends on the AttendanceStore and
MessagingPort protocols, not on Redis or LINE.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from pydantic import ValidationError

from src.core.chunker import DEFAULT_CHUNK_LIMIT, chunk_lines
from src.core.commands import (
    DEFAULT_STATS_DAYS,
    HELP_LINES,
    MAX_STATS_DAYS,
    Command,
    Help,
    MarkDone,
    Register,
    Roster,
    Stats,
    Status,
    clean_display_name,
    parse_command,
)
from src.core.dates import last_n_days, month_days, today_key
from src.core.events import WebhookEvent
from src.core.stats import aggregate, format_roster, format_stats_report, format_status
from src.ports.store_port import StoreUnavailableError

if TYPE_CHECKING:
    from src.ports.messaging_port import MessagingPort
    from src.ports.store_port import AttendanceStore

logger = logging.getLogger(__name__)

DIRECT_CHAT_NOTICE = "Please use DailyRoll commands in a group chat. Add me to a group to get started!"
STORAGE_NOTICE = "⚠️ Attendance storage is not configured. Ask the bot admin to set REDIS_URL."
UNKNOWN_SENDER_NOTICE = "I couldn't identify you. Please add the bot as a friend and try again."
NO_NAME_NOTICE = "I couldn't read your LINE profile. Use /register <name> to set a name."


@dataclass
class CommandContext:
    """Where a command came from and where its answer goes."""

    chat_id: str
    member_id: str | None
    source_type: str                 # "group" | "room"
    reply_token: str | None = None


class EventDispatcher:
    """Routes inbound chat events to commands, the store and the messenger."""

    def __init__(
        self,
        store: AttendanceStore,
        messaging: MessagingPort,
        timezone: str = "Asia/Taipei",
        chunk_limit: int = DEFAULT_CHUNK_LIMIT,
        default_days: int = DEFAULT_STATS_DAYS,
        max_days: int = MAX_STATS_DAYS,
        vacuous_full: bool = True,
        today: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._messaging = messaging
        self._timezone = timezone
        self._chunk_limit = chunk_limit
        self._default_days = default_days
        self._max_days = max_days
        self._vacuous_full = vacuous_full
        self._today = today or (lambda: today_key(self._timezone))
        self._known: dict[str, set[str]] = {}

    # -----------------------------------------------------------------------
    # Batch entry point
    # -----------------------------------------------------------------------

    async def dispatch(self, events: list[dict[str, Any]]) -> None:
        """Handle every event of a batch concurrently. Never raises."""
        await asyncio.gather(*(self._handle_isolated(raw) for raw in events))

    async def _handle_isolated(self, raw: dict[str, Any]) -> None:
        try:
            event = WebhookEvent.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Skipping malformed event: %s", exc)
            return
        try:
            await self.handle_event(event)
        except Exception:
            logger.exception("Event %s failed", event.type)

    # -----------------------------------------------------------------------
    # Per-event pipeline
    # -----------------------------------------------------------------------

    async def handle_event(self, event: WebhookEvent) -> None:
        """Run one event through filter → scope → capture → command → reply."""
        text = event.text
        if event.source is None:
            return
        if text is None and event.type not in ("memberJoined", "memberLeft", "join"):
            return

        source = event.source
        if not source.is_multi_member:
            # One-to-one chat: at most a redirect notice, never a mutation
            if text is not None and event.reply_token and self._parse(text) is not None:
                await self._messaging.send_reply(event.reply_token, [DIRECT_CHAT_NOTICE])
            return

        chat_id = source.chat_id
        ctx = CommandContext(
            chat_id=chat_id,
            member_id=source.user_id,
            source_type=source.type,
            reply_token=event.reply_token,
        )

        if event.type == "memberJoined":
            for ref in (event.joined.members if event.joined else []):
                if ref.user_id:
                    await self._capture_member(ctx, ref.user_id)
            return
        if event.type == "memberLeft":
            left = [ref.user_id for ref in (event.left.members if event.left else [])]
            logger.info("Members left chat %s: %s", chat_id, left)
            return
        if event.type == "join":
            await self._emit(ctx, HELP_LINES)
            return

        if ctx.member_id:
            await self._capture_member(ctx, ctx.member_id)

        command = self._parse(text)
        if command is None:
            return

        try:
            lines = await self.execute(command, ctx)
        except StoreUnavailableError as exc:
            logger.error("Store unavailable for %s in %s: %s", command.command, chat_id, exc)
            lines = [STORAGE_NOTICE]
        await self._emit(ctx, lines)

    def _parse(self, text: str) -> Command | None:
        return parse_command(text, default_days=self._default_days, max_days=self._max_days)

    async def _capture_member(self, ctx: CommandContext, member_id: str) -> None:
        """Add a newly seen member to the roster. Best-effort: never raises.

        Known members are left alone so a custom /register name is not
        replaced by the profile name on the next message. Ids already seen
        are remembered per chat, so ordinary chatter does not re-read the
        roster; members are never removed, so the memo cannot go stale.
        """
        known = self._known.setdefault(ctx.chat_id, set())
        if member_id in known:
            return
        try:
            members = await self._store.list_members(ctx.chat_id)
            known.update(m.id for m in members)
            if member_id in known:
                return
            profile = await self._messaging.lookup_profile(ctx.chat_id, member_id, ctx.source_type)
            if profile is None or not profile.name:
                return
            await self._store.upsert_member(ctx.chat_id, member_id, clean_display_name(profile.name))
            known.add(member_id)
            logger.info("Captured member %s in chat %s", member_id, ctx.chat_id)
        except Exception as exc:
            logger.warning("Implicit registration of %s failed: %s", member_id, exc)

    async def _emit(self, ctx: CommandContext, lines: list[str]) -> None:
        """First chunk as the reply, the rest pushed to the chat in order."""
        chunks = chunk_lines(lines, self._chunk_limit)
        if not chunks:
            return
        if ctx.reply_token:
            await self._messaging.send_reply(ctx.reply_token, chunks[:1])
            rest = chunks[1:]
        else:
            rest = chunks
        if rest:
            await self._messaging.send_push(ctx.chat_id, rest)

    # -----------------------------------------------------------------------
    # Commands
    # -----------------------------------------------------------------------

    async def execute(self, command: Command, ctx: CommandContext) -> list[str]:
        """Run one command and return the reply lines."""
        if isinstance(command, Register):
            return await self._register(command, ctx)
        if isinstance(command, MarkDone):
            return await self._mark_done(ctx)
        if isinstance(command, Status):
            return await self._status(ctx)
        if isinstance(command, Roster):
            return format_roster(await self._store.list_members(ctx.chat_id))
        if isinstance(command, Stats):
            return await self._stats(command, ctx)
        if isinstance(command, Help):
            return list(HELP_LINES)
        logger.error("Unhandled command variant: %r", command)
        return []

    async def _register(self, command: Register, ctx: CommandContext) -> list[str]:
        if not ctx.member_id:
            return [UNKNOWN_SENDER_NOTICE]

        name = command.name
        if not name:
            try:
                profile = await self._messaging.lookup_profile(ctx.chat_id, ctx.member_id, ctx.source_type)
            except Exception as exc:
                logger.warning("Profile lookup for /register failed: %s", exc)
                profile = None
            name = clean_display_name(profile.name) if profile else ""
        if not name:
            return [NO_NAME_NOTICE]

        await self._store.upsert_member(ctx.chat_id, ctx.member_id, name)
        self._known.setdefault(ctx.chat_id, set()).add(ctx.member_id)
        logger.info("Member %s registered as '%s' in %s", ctx.member_id, name, ctx.chat_id)
        return [f"✅ Registered: {name}"]

    async def _mark_done(self, ctx: CommandContext) -> list[str]:
        if not ctx.member_id:
            return [UNKNOWN_SENDER_NOTICE]

        date_key = self._today()
        await self._store.mark_complete(ctx.chat_id, date_key, ctx.member_id)
        done = await self._store.completed_ids(ctx.chat_id, date_key)
        logger.info("Member %s done for %s in %s", ctx.member_id, date_key, ctx.chat_id)
        return [f"✅ Marked done for {date_key} ({len(done)} done today)"]

    async def _status(self, ctx: CommandContext) -> list[str]:
        date_key = self._today()
        members = await self._store.list_members(ctx.chat_id)
        done = await self._store.completed_ids(ctx.chat_id, date_key)
        try:
            group_size = await self._messaging.count_members(ctx.chat_id, ctx.source_type)
        except Exception as exc:
            logger.warning("Member count failed for %s: %s", ctx.chat_id, exc)
            group_size = None
        return format_status(members, done, date_key, group_size=group_size)

    async def _stats(self, command: Stats, ctx: CommandContext) -> list[str]:
        if command.month:
            date_keys = month_days(command.month)
            title = f"Month {command.month}"
        else:
            days = command.days or self._default_days
            date_keys = last_n_days(self._today(), days)
            title = f"Last {days} days"

        members = await self._store.list_members(ctx.chat_id)
        sets = await asyncio.gather(
            *(self._store.completed_ids(ctx.chat_id, d) for d in date_keys)
        )
        report = aggregate(
            members, date_keys, dict(zip(date_keys, sets)),
            vacuous_full=self._vacuous_full,
        )
        return format_stats_report(report, title)
