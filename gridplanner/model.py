"""
Central data model definitions used across the project.

This module defines the canonical structure of lectures, placed schedule
entries and grid geometry so that:
- all modules share the same field names
- catalog records are normalized once, when they enter the session
- entries stay immutable, so "changed" can be detected by identity
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Sequence, Tuple

from gridplanner import config
from gridplanner.errors import CatalogRecordError


def _safe_str(x: Any) -> str:
    return "" if x is None else str(x).strip()


@dataclass(frozen=True)
class Lecture:
    """
    One catalog record. Created once per session by the catalog fetch and
    shared (never copied) by every entry that places it on a table.
    """

    id: str
    title: str
    credits: str
    major: str
    schedule: str
    grade: int

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Lecture":
        lecture_id = _safe_str(record.get("id"))
        if not lecture_id:
            raise CatalogRecordError(f"Catalog record without id: {dict(record)!r}")

        try:
            grade = int(record.get("grade"))
        except (TypeError, ValueError):
            raise CatalogRecordError(f"Catalog record {lecture_id!r} has invalid grade {record.get('grade')!r}")

        return cls(
            id=lecture_id,
            title=_safe_str(record.get("title")),
            credits=_safe_str(record.get("credits")),
            major=_safe_str(record.get("major")),
            schedule=_safe_str(record.get("schedule")),
            grade=grade,
        )


@dataclass(frozen=True)
class ParsedSegment:
    """One (day, period range, room) part of a schedule descriptor."""

    day: str
    range: Tuple[int, ...]
    room: Optional[str] = None


@dataclass(frozen=True)
class ScheduleEntry:
    """
    A lecture placed on a table at one day and a contiguous period range.
    """

    lecture: Lecture
    day: str
    range: Tuple[int, ...]
    room: Optional[str] = None

    @classmethod
    def from_segment(cls, lecture: Lecture, segment: ParsedSegment) -> "ScheduleEntry":
        return cls(lecture=lecture, day=segment.day, range=segment.range, room=segment.room)

    def with_position(self, day: str, periods: Sequence[int]) -> "ScheduleEntry":
        return replace(self, day=day, range=tuple(periods))

    def covers(self, day: str, period: int) -> bool:
        return self.day == day and period in self.range


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True)
class GridGeometry:
    """
    Pixel layout of one table grid.

    Column 0 is the period-label column (header_width wide), row 0 the
    day-label row (header_height tall); every other cell is
    cell_width x cell_height.
    """

    cell_width: int = config.CELL_WIDTH
    cell_height: int = config.CELL_HEIGHT
    header_width: int = config.HEADER_WIDTH
    header_height: int = config.HEADER_HEIGHT
    days: Tuple[str, ...] = field(default=config.DAY_LABELS)
    periods: int = config.PERIOD_COUNT

    def day_index(self, day: str) -> int:
        """Position of day in the day sequence, -1 if unknown."""
        try:
            return self.days.index(day)
        except ValueError:
            return -1

    def grid_rect(self) -> Rect:
        return Rect(
            left=0,
            top=0,
            right=self.header_width + self.cell_width * len(self.days),
            bottom=self.header_height + self.cell_height * self.periods,
        )

    def entry_rect(self, entry: ScheduleEntry) -> Optional[Rect]:
        """
        Pixel box of a placed entry (1px inset from the grid lines).
        Returns None when the entry is not on a known day.
        """
        day_index = self.day_index(entry.day)
        if day_index < 0 or not entry.range:
            return None

        left = self.header_width + self.cell_width * day_index + 1
        top = self.header_height + (entry.range[0] - 1) * self.cell_height + 1
        return Rect(
            left=left,
            top=top,
            right=left + self.cell_width - 1,
            bottom=top + self.cell_height * len(entry.range) - 1,
        )

    def on_grid(self, day: str, periods: Sequence[int]) -> bool:
        return day in self.days and bool(periods) and all(1 <= p <= self.periods for p in periods)
