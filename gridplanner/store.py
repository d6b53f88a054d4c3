"""
Table store: table id -> ordered entries.

Structural sharing contract:
- A mutation that changes nothing returns the SAME mapping object.
- A mutation of one table returns a new mapping in which every other table
  keeps its previous tuple object.
- Replacing one entry keeps every other entry object of that table.

Consumers rely on identity (`is`) to skip re-evaluating unchanged tables and
rows, so this is implemented as explicit copy-on-write of the single changed
key / index. Tables are tuples and the mapping is a read-only proxy, so
nothing handed out can be mutated in place.

The module has two layers:
- pure functions taking and returning a mapping
- TableStore, which holds the current mapping for a session
"""

from __future__ import annotations

import logging
import time
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Sequence, Tuple

from gridplanner import config
from gridplanner.model import ScheduleEntry

logger = logging.getLogger(__name__)

Entries = Tuple[ScheduleEntry, ...]
TableMap = Mapping[str, Entries]
Updater = Callable[[Entries], Sequence[ScheduleEntry]]


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def make_tables(tables: Mapping[str, Iterable[ScheduleEntry]]) -> TableMap:
    return MappingProxyType({table_id: tuple(entries) for table_id, entries in tables.items()})


def _with_table(tables: TableMap, table_id: str, entries: Entries) -> TableMap:
    # dict() copies only the key -> tuple references
    out = dict(tables)
    out[table_id] = entries
    return MappingProxyType(out)


def replace_at(entries: Sequence[ScheduleEntry], index: int, new_entry: ScheduleEntry) -> Sequence[ScheduleEntry]:
    """New tuple with position `index` replaced; `entries` itself if index is invalid."""
    if not 0 <= index < len(entries) or entries[index] is new_entry:
        return entries
    return tuple(entries[:index]) + (new_entry,) + tuple(entries[index + 1 :])


def get_table(tables: TableMap, table_id: str) -> Entries:
    return tables.get(table_id, ())


def update_table(tables: TableMap, table_id: str, updater: Updater) -> TableMap:
    """
    Apply `updater` to one table. Unknown table or an updater returning its
    input object -> `tables` is returned unchanged.
    """
    current = tables.get(table_id)
    if current is None:
        return tables

    updated = updater(current)
    if updated is current:
        return tables
    return _with_table(tables, table_id, tuple(updated))


def replace_one(tables: TableMap, table_id: str, index: int, new_entry: ScheduleEntry) -> TableMap:
    return update_table(tables, table_id, lambda entries: replace_at(entries, index, new_entry))


def add_entries(tables: TableMap, table_id: str, entries: Iterable[ScheduleEntry]) -> TableMap:
    added = tuple(entries)
    if not added:
        return tables
    return update_table(tables, table_id, lambda current: current + added)


def remove_where(tables: TableMap, table_id: str, predicate: Callable[[ScheduleEntry], bool]) -> TableMap:
    def _remove(current: Entries) -> Entries:
        kept = tuple(entry for entry in current if not predicate(entry))
        return current if len(kept) == len(current) else kept

    return update_table(tables, table_id, _remove)


def duplicate_table(tables: TableMap, new_table_id: str, source_table_id: str) -> TableMap:
    """
    Copy a table under a fresh id. Entries are shared, not cloned; since
    tables are tuples the copy can share the source tuple as well.
    """
    if not new_table_id or new_table_id in tables or source_table_id not in tables:
        return tables
    return _with_table(tables, new_table_id, tables[source_table_id])


def remove_table(tables: TableMap, table_id: str) -> TableMap:
    """Delete a table. Refused when it is the last one."""
    if table_id not in tables or len(tables) <= 1:
        return tables
    out = dict(tables)
    del out[table_id]
    return MappingProxyType(out)


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class TableStore:
    """
    Holds the current table mapping. Every mutating method returns the
    (possibly unchanged) current mapping.
    """

    def __init__(self, initial: Optional[Mapping[str, Iterable[ScheduleEntry]]] = None) -> None:
        # at least one table must exist at all times
        self._initial = make_tables(initial or {config.DEFAULT_TABLE_ID: ()})
        self._tables: TableMap = self._initial

    @property
    def tables(self) -> TableMap:
        return self._tables

    @property
    def table_ids(self) -> list[str]:
        return list(self._tables)

    def can_remove(self) -> bool:
        return len(self._tables) > 1

    def _commit(self, tables: TableMap, action: str, table_id: str) -> TableMap:
        if tables is not self._tables:
            logger.debug("%s %s", action, table_id)
            self._tables = tables
        return self._tables

    def reset(self) -> TableMap:
        self._tables = self._initial
        return self._tables

    def get(self, table_id: str) -> Entries:
        return get_table(self._tables, table_id)

    def update(self, table_id: str, updater: Updater) -> TableMap:
        return self._commit(update_table(self._tables, table_id, updater), "update", table_id)

    def replace_one(self, table_id: str, index: int, new_entry: ScheduleEntry) -> TableMap:
        return self._commit(replace_one(self._tables, table_id, index, new_entry), "replace entry in", table_id)

    def add_entries(self, table_id: str, entries: Iterable[ScheduleEntry]) -> TableMap:
        return self._commit(add_entries(self._tables, table_id, entries), "add entries to", table_id)

    def remove_where(self, table_id: str, predicate: Callable[[ScheduleEntry], bool]) -> TableMap:
        return self._commit(remove_where(self._tables, table_id, predicate), "remove entries from", table_id)

    def remove_at(self, table_id: str, day: str, period: int) -> TableMap:
        """Remove every entry covering (day, period), i.e. the clicked block."""
        return self.remove_where(table_id, lambda entry: entry.covers(day, period))

    def new_table_id(self) -> str:
        base = f"schedule-{int(time.time() * 1000)}"
        candidate = base
        n = 1
        while candidate in self._tables:
            candidate = f"{base}-{n}"
            n += 1
        return candidate

    def duplicate(self, new_table_id: str, source_table_id: str) -> TableMap:
        return self._commit(duplicate_table(self._tables, new_table_id, source_table_id), "duplicate into", new_table_id)

    def remove_table(self, table_id: str) -> TableMap:
        if table_id in self._tables and not self.can_remove():
            logger.debug("Refusing to remove the last table %s", table_id)
        return self._commit(remove_table(self._tables, table_id), "remove table", table_id)
