"""
Catalog search: filter pipeline, incremental reveal and commit to a table.

Filter rules (AND across fields, OR within a field; an empty field matches
everything):
- query:   case-insensitive substring of lecture id OR title
- grades:  lecture grade is selected
- majors:  lecture major is selected (exact)
- credits: lecture credits text starts with the selected value
- days:    some parsed schedule segment falls on a selected day
- times:   some parsed schedule segment covers a selected period
"""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass, field, fields
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from gridplanner import config
from gridplanner.model import GridGeometry, Lecture, ScheduleEntry
from gridplanner.parse import parse_schedule
from gridplanner.store import TableMap, TableStore

logger = logging.getLogger(__name__)

_SET_FIELDS = ("grades", "days", "times", "majors")


@dataclass(frozen=True)
class SearchOption:
    query: str = ""
    grades: frozenset = field(default_factory=frozenset)
    days: frozenset = field(default_factory=frozenset)
    times: frozenset = field(default_factory=frozenset)
    majors: frozenset = field(default_factory=frozenset)
    credits: Optional[int] = None

    def __post_init__(self) -> None:
        # accept lists/tuples from callers, store frozensets
        for name in _SET_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, frozenset):
                object.__setattr__(self, name, frozenset(value or ()))
        if self.query is None:
            object.__setattr__(self, "query", "")

    def replace(self, **changes: Any) -> "SearchOption":
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"Unknown search option(s): {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **changes)


# ---------------------------------------------------------------------------
# Filter pipeline
# ---------------------------------------------------------------------------


def _matches_query(lecture: Lecture, query: str) -> bool:
    q = query.lower()
    return q in lecture.title.lower() or q in lecture.id.lower()


def _matches_schedule(lecture: Lecture, days: frozenset, times: frozenset) -> bool:
    if not days and not times:
        return True

    segments = parse_schedule(lecture.schedule, strict=False)
    if days and not any(s.day in days for s in segments):
        return False
    if times and not any(p in times for s in segments for p in s.range):
        return False
    return True


def search(lectures: Iterable[Lecture], options: Optional[SearchOption] = None) -> List[Lecture]:
    """Filter lectures by every predicate in `options`, keeping catalog order."""
    options = options or SearchOption()
    credits = "" if options.credits is None else str(options.credits)

    out: List[Lecture] = []
    for lecture in lectures:
        if options.query and not _matches_query(lecture, options.query):
            continue
        if options.grades and lecture.grade not in options.grades:
            continue
        if options.majors and lecture.major not in options.majors:
            continue
        if credits and not lecture.credits.startswith(credits):
            continue
        if not _matches_schedule(lecture, options.days, options.times):
            continue
        out.append(lecture)
    return out


def all_majors(lectures: Iterable[Lecture]) -> List[str]:
    """Distinct majors, first-seen order."""
    return list(dict.fromkeys(lecture.major for lecture in lectures))


def lecture_entries(lecture: Lecture, geometry: Optional[GridGeometry] = None) -> List[ScheduleEntry]:
    """
    Entries a lecture places on a table. Segments that do not land on the
    grid (unknown day, periods outside the rows) are dropped.
    """
    geometry = geometry or GridGeometry()
    entries: List[ScheduleEntry] = []
    for segment in parse_schedule(lecture.schedule, strict=False):
        if not geometry.on_grid(segment.day, segment.range):
            logger.debug("Lecture %s: segment %r is off the grid", lecture.id, segment)
            continue
        entries.append(ScheduleEntry.from_segment(lecture, segment))
    return entries


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


class Pagination:
    """
    Incremental reveal: the first page * page_size items are visible.
    """

    def __init__(self, page_size: int = config.PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = page_size
        self.page = 1
        self.total = 0

    @property
    def last_page(self) -> int:
        return math.ceil(self.total / self.page_size)

    def reset(self, total: int) -> None:
        self.total = total
        self.page = 1

    def advance(self) -> int:
        """
        "User scrolled near the end" signal. Clamped to the last page, so
        duplicate signals are harmless.
        """
        self.page = max(1, min(self.last_page, self.page + 1))
        return self.page

    def visible(self, items: Sequence[Any]) -> Sequence[Any]:
        return items[: self.page * self.page_size]


# ---------------------------------------------------------------------------
# Search dialog state
# ---------------------------------------------------------------------------


class SearchSession:
    """
    State of one search dialog: the loaded lectures, the current options,
    pagination and the table (and optionally the grid cell) it was opened
    from.
    """

    def __init__(self, page_size: int = config.PAGE_SIZE, geometry: Optional[GridGeometry] = None) -> None:
        self.geometry = geometry or GridGeometry()
        self.pagination = Pagination(page_size)
        self.lectures: Tuple[Lecture, ...] = ()
        self.options = SearchOption()
        self.table_id: Optional[str] = None
        self._filtered: Optional[Tuple[Tuple[Lecture, ...], SearchOption, List[Lecture]]] = None
        self._majors: Optional[Tuple[Tuple[Lecture, ...], List[str]]] = None

    # -- lifecycle ---------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.table_id is not None

    def open(self, table_id: str, day: Optional[str] = None, period: Optional[int] = None) -> None:
        """Start a dialog session; day/period seed the filters from the clicked cell."""
        self.table_id = table_id
        self.options = SearchOption(
            days=frozenset([day]) if day else frozenset(),
            times=frozenset([period]) if period else frozenset(),
        )
        self._refresh()

    def close(self) -> None:
        self.table_id = None

    def reset(self) -> None:
        self.close()
        self.lectures = ()
        self.options = SearchOption()
        self._filtered = None
        self._majors = None
        self.pagination.reset(0)

    def set_lectures(self, lectures: Iterable[Lecture]) -> None:
        self.lectures = tuple(lectures)
        self._refresh()

    # -- filtering ---------------------------------------------------------

    def set_options(self, options: SearchOption) -> None:
        self.options = options
        self._refresh()

    def change_option(self, name: str, value: Any) -> None:
        self.set_options(self.options.replace(**{name: value}))

    def _refresh(self) -> None:
        self.pagination.reset(len(self.filtered))

    @property
    def filtered(self) -> List[Lecture]:
        memo = self._filtered
        if memo is None or memo[0] is not self.lectures or memo[1] is not self.options:
            memo = (self.lectures, self.options, search(self.lectures, self.options))
            self._filtered = memo
        return memo[2]

    @property
    def majors(self) -> List[str]:
        memo = self._majors
        if memo is None or memo[0] is not self.lectures:
            memo = (self.lectures, all_majors(self.lectures))
            self._majors = memo
        return memo[1]

    # -- pagination --------------------------------------------------------

    @property
    def last_page(self) -> int:
        return self.pagination.last_page

    @property
    def visible(self) -> Sequence[Lecture]:
        return self.pagination.visible(self.filtered)

    def near_end(self) -> int:
        return self.pagination.advance()

    # -- commit ------------------------------------------------------------

    def commit(self, lecture: Lecture, store: TableStore) -> TableMap:
        """
        Place the lecture on the dialog's table and close the dialog.
        Without an open dialog this is a no-op.
        """
        if self.table_id is None:
            return store.tables

        tables = store.add_entries(self.table_id, lecture_entries(lecture, self.geometry))
        logger.info("Added lecture %s to %s", lecture.id, self.table_id)
        self.close()
        return tables
