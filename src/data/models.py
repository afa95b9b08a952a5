"""
DailyRoll — Data Models.

Members and their display names live in a per-chat roster; completion
records are plain sets of member ids keyed by chat and date, so they
need no model of their own.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Member:
    """A chat participant as stored in the roster.

    `id` is the platform-assigned user id and never changes; `name` is
    overwritten by every registration (last write wins).
    """

    id: str
    name: str

    @property
    def label(self) -> str:
        """Name to show in reports, falling back to the raw id."""
        return self.name or self.id
