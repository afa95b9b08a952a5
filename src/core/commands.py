"""
DailyRoll — Command Interpreter.

Turns the raw text of a chat message into one of a closed set of commands.
Anything that is not a command yields None: the bot never answers
free-form chatter.

Width folding applies to the whole text so that full-width input typed on
CJK keyboards ("／ｄｏｎｅ") still matches. Only the verb is case-folded;
arguments keep their casing and script.
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel

from src.core.dates import is_valid_month

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 50
DEFAULT_STATS_DAYS = 7
MAX_STATS_DAYS = 90

# Full-width ASCII block (U+FF01–U+FF5E) maps onto U+0021–U+007E
_WIDTH_FOLD = {code: code - 0xFEE0 for code in range(0xFF01, 0xFF5F)}
_WIDTH_FOLD[0x3000] = ord(" ")

_DAYS_RE = re.compile(r"^\d+$")
_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_WHITESPACE_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Command variants
# ---------------------------------------------------------------------------


class Register(BaseModel):
    """Add or rename the sender in the roster. `name` None → profile name."""
    command: str = "register"
    name: str | None = None


class MarkDone(BaseModel):
    """Mark the sender's practice as complete for today."""
    command: str = "done"


class Status(BaseModel):
    """Today's done / not-done split."""
    command: str = "status"


class Roster(BaseModel):
    """List every known member."""
    command: str = "roster"


class Stats(BaseModel):
    """Range report. Exactly one of `days` / `month` is set.

    JSON examples:
    {"command": "stats", "days": 7, "month": null}
    {"command": "stats", "days": null, "month": "2025-08"}
    """
    command: str = "stats"
    days: int | None = None
    month: str | None = None  # YYYY-MM


class Help(BaseModel):
    """Command listing."""
    command: str = "help"


Command = Register | MarkDone | Status | Roster | Stats | Help

# Verb → variant. Each command has a slash form and a short alias.
_VERBS: dict[str, type[BaseModel]] = {
    "/register": Register,
    "/r": Register,
    "/done": MarkDone,
    "/d": MarkDone,
    "/status": Status,
    "/t": Status,
    "/roster": Roster,
    "/s": Roster,
    "/stats": Stats,
    "/st": Stats,
    "/help": Help,
    "/h": Help,
}

HELP_LINES = [
    "📖 Commands",
    "/register [name] (/r) — join the roster, optionally with a custom name",
    "/done (/d) — mark today's practice as complete",
    "/status (/t) — who has / hasn't finished today",
    "/roster (/s) — list all members",
    "/stats [N | YYYY-MM] (/st) — last N days (max 90) or a whole month; default 7 days",
    "/help (/h) — show this message",
]


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_text(text: str) -> str:
    """Fold full-width punctuation and spaces to half-width, then trim."""
    return (text or "").translate(_WIDTH_FOLD).strip()


def clean_display_name(raw: str) -> str:
    """Strip newlines, collapse whitespace and cap the length of a custom name."""
    name = _WHITESPACE_RE.sub(" ", raw or "").strip()
    return name[:MAX_NAME_LENGTH].rstrip()


def parse_stats_argument(
    arg: str,
    default_days: int = DEFAULT_STATS_DAYS,
    max_days: int = MAX_STATS_DAYS,
) -> Stats:
    """Read `N` or `YYYY-MM`; anything else falls back to the default range."""
    arg = arg.strip()
    if _DAYS_RE.match(arg):
        days = int(arg)
        if days > 0:
            return Stats(days=min(days, max_days))
    elif _MONTH_RE.match(arg) and is_valid_month(arg):
        return Stats(month=arg)
    return Stats(days=default_days)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_command(
    text: str,
    default_days: int = DEFAULT_STATS_DAYS,
    max_days: int = MAX_STATS_DAYS,
) -> Command | None:
    """Classify a message. Returns None for anything that isn't a command.

    Examples:
        "/done"              → MarkDone()
        "／ＤＯＮＥ"          → MarkDone()
        "/register 王小明"    → Register(name="王小明")
        "/stats 2025-08"     → Stats(month="2025-08")
        "/stats abc"         → Stats(days=7)
        "hello"              → None
    """
    normalized = normalize_text(text)
    if not normalized:
        return None

    parts = normalized.split(maxsplit=1)
    verb = parts[0].lower()
    arg = parts[1] if len(parts) > 1 else ""

    variant = _VERBS.get(verb)
    if variant is None:
        return None

    if variant is Register:
        name = clean_display_name(arg)
        return Register(name=name or None)
    if variant is Stats:
        return parse_stats_argument(arg, default_days=default_days, max_days=max_days)
    return variant()
