"""
DailyRoll — Statistics Aggregator.

Pure functions over a chat's roster and its per-date completion sets:
aggregate() computes the numbers, the format_* helpers turn them into
message lines for the chunker.

Names are ordered with the Unicode Collation Algorithm (pyuca) rather than
code points, so mixed Latin / CJK rosters sort the way readers expect.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Mapping

from pyuca import Collator

from src.data.models import Member

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _collator() -> Collator:
    # Loads the DUCET table once per process
    return Collator()


def sort_members(members: Iterable[Member]) -> list[Member]:
    """Sort members by display name (UCA collation), then by id."""
    collator = _collator()
    return sorted(members, key=lambda m: (collator.sort_key(m.label), m.id))


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


@dataclass
class StatsReport:
    """Aggregate attendance over an ordered range of date keys."""

    total_members: int
    date_keys: list[str]
    per_date_counts: dict[str, int]
    average_per_date: float
    full_attendance: set[str]
    any_attendance: set[str]
    never_attended: set[str]
    missed_dates: dict[str, list[str]]        # member id → dates absent, ascending
    not_full_attendance: list[Member] = field(default_factory=list)

    @property
    def has_records(self) -> bool:
        return any(self.per_date_counts.values())


def aggregate(
    members: Iterable[Member],
    date_keys: list[str],
    completions: Mapping[str, set[str]],
    vacuous_full: bool = True,
) -> StatsReport:
    """Compute a StatsReport.

    Args:
        members: The chat's roster.
        date_keys: Ascending date keys of the range.
        completions: date key → member ids who completed that day. Missing
            keys count as empty sets.
        vacuous_full: When True, full attendance is judged only against the
            days that have at least one completion, so a range without any
            record reports everyone as full attendance. When False every
            day in the range is required.
    """
    roster = {m.id: m for m in members}
    day_sets = {d: set(completions.get(d, set())) for d in date_keys}

    per_date_counts = {d: len(day_sets[d]) for d in date_keys}
    average = round(sum(per_date_counts.values()) / len(date_keys), 1) if date_keys else 0.0

    if vacuous_full:
        required = [d for d in date_keys if day_sets[d]]
    else:
        required = list(date_keys)

    full = {mid for mid in roster if all(mid in day_sets[d] for d in required)}
    attended = {mid for mid in roster if any(mid in day_sets[d] for d in date_keys)}
    any_attendance = attended | full
    never = set(roster) - any_attendance

    missed = {
        mid: [d for d in date_keys if mid not in day_sets[d]]
        for mid in roster
    }
    not_full = sort_members(m for mid, m in roster.items() if mid not in full)

    unknown = set().union(*day_sets.values()) - set(roster) if day_sets else set()
    if unknown:
        logger.debug("Ignoring %d completion ids missing from roster", len(unknown))

    return StatsReport(
        total_members=len(roster),
        date_keys=list(date_keys),
        per_date_counts=per_date_counts,
        average_per_date=average,
        full_attendance=full,
        any_attendance=any_attendance,
        never_attended=never,
        missed_dates=missed,
        not_full_attendance=not_full,
    )


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def _short(date_key: str) -> str:
    """'2025-08-01' → '08-01'."""
    return date_key[5:]


def format_stats_report(report: StatsReport, title: str) -> list[str]:
    """Render a StatsReport as message lines."""
    if not report.date_keys:
        return [title, "No dates in range."]

    lines = [
        f"📊 {title} ({report.date_keys[0]} ~ {report.date_keys[-1]}, {len(report.date_keys)} days)",
        f"Members: {report.total_members} | Avg done/day: {report.average_per_date:.1f}",
        f"Full attendance: {len(report.full_attendance)} | "
        f"At least once: {len(report.any_attendance)} | "
        f"Never: {len(report.never_attended)}",
    ]
    if not report.has_records:
        lines.append("No completions recorded in this range.")

    lines.append("")
    lines.append("Daily:")
    for d in report.date_keys:
        lines.append(f"{d}: {report.per_date_counts[d]}")

    if report.not_full_attendance:
        lines.append("")
        lines.append("Not full attendance:")
        for m in report.not_full_attendance:
            missed = report.missed_dates.get(m.id, [])
            days = ", ".join(_short(d) for d in missed)
            lines.append(f"• {m.label}: missed {len(missed)} ({days})")
    return lines


def format_status(
    members: Iterable[Member],
    done_ids: set[str],
    date_key: str,
    group_size: int | None = None,
) -> list[str]:
    """Today's done / not-done split."""
    ordered = sort_members(members)
    done = [m for m in ordered if m.id in done_ids]
    pending = [m for m in ordered if m.id not in done_ids]

    lines = [f"📅 {date_key}: {len(done)}/{len(ordered)} done"]
    if group_size is not None:
        lines.append(f"Group members: {group_size} (registered: {len(ordered)})")
    lines.append("")
    lines.append(f"✅ Done ({len(done)}):")
    lines.extend(f"• {m.label}" for m in done)
    lines.append("")
    lines.append(f"⬜ Not yet ({len(pending)}):")
    lines.extend(f"• {m.label}" for m in pending)
    return lines


def format_roster(members: Iterable[Member]) -> list[str]:
    """Full roster listing, one member per line."""
    ordered = sort_members(members)
    if not ordered:
        return ["No members registered yet. Use /register to join."]
    return [f"👥 Members ({len(ordered)}):"] + [f"{i}. {m.label}" for i, m in enumerate(ordered, 1)]
