"""
Entry relocation (pointer drag -> new day / period range).

Two stages:
1. Continuous clamp: the raw pixel transform is snapped to the nearest
   multiple of the cell size and clamped so the dragged box stays inside the
   grid interior (right of the period-label column, below the day-label row,
   inside the far edges of the container).
2. Discrete delta: floor(x / cell_width) days, floor(y / cell_height) periods.

Because stage 1 already bounds the transform, stage 2 cannot leave the day
sequence or the period rows for an entry that is on the grid. Entries that
are not (unknown day, removed mid-gesture) are returned unchanged.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple

from gridplanner.model import GridGeometry, Rect, ScheduleEntry
from gridplanner.store import replace_at

logger = logging.getLogger(__name__)

Delta = Tuple[float, float]


def _snap(value: float, step: int) -> float:
    # half rounds up, like the pointer library does
    return math.floor(value / step + 0.5) * step


def snap_transform(
    dx: float,
    dy: float,
    geometry: GridGeometry,
    container: Rect,
    node: Rect,
) -> Tuple[float, float]:
    """
    Snap a raw drag transform to the cell grid and clamp it so `node`
    (the dragged box, at its resting position) stays inside `container`.
    """
    min_x = container.left - node.left + geometry.header_width + 1
    min_y = container.top - node.top + geometry.header_height + 1
    max_x = container.right - node.right
    max_y = container.bottom - node.bottom

    x = min(max(_snap(dx, geometry.cell_width), min_x), max_x)
    y = min(max(_snap(dy, geometry.cell_height), min_y), max_y)
    return x, y


def relocate(
    entry: ScheduleEntry,
    delta: Delta,
    geometry: Optional[GridGeometry] = None,
    container: Optional[Rect] = None,
) -> ScheduleEntry:
    """
    Return the entry moved by a cumulative pixel displacement.

    The same entry object is returned when nothing moves, so callers can
    detect "no change" by identity.
    """
    geometry = geometry or GridGeometry()

    day_index = geometry.day_index(entry.day)
    node = geometry.entry_rect(entry)
    if day_index < 0 or node is None:
        logger.debug("Entry %s on unknown day %r left in place", entry.lecture.id, entry.day)
        return entry

    x, y = snap_transform(delta[0], delta[1], geometry, container or geometry.grid_rect(), node)

    day_delta = math.floor(x / geometry.cell_width)
    period_delta = math.floor(y / geometry.cell_height)
    if day_delta == 0 and period_delta == 0:
        return entry

    new_index = day_index + day_delta
    if not 0 <= new_index < len(geometry.days):
        return entry

    return entry.with_position(geometry.days[new_index], [p + period_delta for p in entry.range])


def move_entry(
    entries: Sequence[ScheduleEntry],
    index: int,
    delta: Delta,
    geometry: Optional[GridGeometry] = None,
) -> Sequence[ScheduleEntry]:
    """
    Table updater for a finished drag: relocate entries[index].
    A stale index or a zero move returns `entries` itself.
    """
    if not 0 <= index < len(entries):
        logger.debug("Drag end for stale index %d ignored", index)
        return entries

    moved = relocate(entries[index], delta, geometry)
    if moved is entries[index]:
        return entries
    return replace_at(entries, index, moved)


# ---------------------------------------------------------------------------
# Drag identifiers ("<tableId>:<entryIndex>")
# ---------------------------------------------------------------------------


def drag_id(table_id: str, index: int) -> str:
    return f"{table_id}:{index}"


def parse_drag_id(identifier: object) -> Optional[Tuple[str, int]]:
    """Recover (table_id, index); None for anything that does not parse."""
    table_id, sep, index_s = str(identifier).rpartition(":")
    if not sep or not table_id:
        return None
    try:
        index = int(index_s)
    except ValueError:
        return None
    if index < 0:
        return None
    return table_id, index
