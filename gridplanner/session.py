"""
Session context.

One Session object owns all state that lives for an application session:
- the table store
- the search dialog state
- the catalog cache
- the drag gesture in progress

Lifecycle: create (init), use, reset(). Nothing is module-global, so every
engine function stays independently testable.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional

from gridplanner import config
from gridplanner.catalog import CatalogCache, fetch_catalog
from gridplanner.model import GridGeometry, Lecture, ScheduleEntry
from gridplanner.relocate import move_entry, parse_drag_id
from gridplanner.search import SearchSession
from gridplanner.store import TableMap, TableStore

logger = logging.getLogger(__name__)


class DragController:
    """
    Consumes gesture events: start / end (with cumulative dx, dy) / cancel.
    Identifiers are "<tableId>:<entryIndex>"; anything else is ignored.
    """

    def __init__(self, store: TableStore, geometry: GridGeometry) -> None:
        self.store = store
        self.geometry = geometry
        self.active_table_id: Optional[str] = None

    def start(self, identifier: object) -> None:
        parsed = parse_drag_id(identifier)
        if parsed is None:
            logger.debug("Ignoring drag start for %r", identifier)
            return
        self.active_table_id = parsed[0]

    def end(self, identifier: object, dx: float, dy: float) -> TableMap:
        self.active_table_id = None

        parsed = parse_drag_id(identifier)
        if parsed is None:
            logger.debug("Ignoring drag end for %r", identifier)
            return self.store.tables

        table_id, index = parsed
        return self.store.update(table_id, lambda entries: move_entry(entries, index, (dx, dy), self.geometry))

    def cancel(self) -> None:
        self.active_table_id = None


class Session:
    def __init__(
        self,
        geometry: Optional[GridGeometry] = None,
        initial_tables: Optional[Mapping[str, Iterable[ScheduleEntry]]] = None,
        catalog_sources: Optional[Mapping[str, str]] = None,
        page_size: int = config.PAGE_SIZE,
    ) -> None:
        self.geometry = geometry or GridGeometry()
        self.catalog_sources = catalog_sources
        self.store = TableStore(initial_tables)
        self.search = SearchSession(page_size=page_size, geometry=self.geometry)
        self.catalog = CatalogCache()
        self.drag = DragController(self.store, self.geometry)

    def reset(self, keep_catalog: bool = True) -> None:
        """
        Back to the initial state: initial tables, closed search, no drag.
        The fetched catalog survives unless keep_catalog is False.
        """
        self.store.reset()
        self.drag.cancel()
        lectures = self.search.lectures
        self.search.reset()
        if keep_catalog:
            self.search.set_lectures(lectures)
        else:
            self.catalog.clear()

    @property
    def tables(self) -> TableMap:
        return self.store.tables

    async def load_catalog(self) -> List[Lecture]:
        lectures = await fetch_catalog(self.catalog, self.catalog_sources)
        if tuple(lectures) != self.search.lectures:
            self.search.set_lectures(lectures)
        return lectures

    def add_lecture(self, lecture: Lecture) -> TableMap:
        """Commit a selection from the open search dialog."""
        return self.search.commit(lecture, self.store)

    def duplicate_table(self, source_table_id: str) -> TableMap:
        return self.store.duplicate(self.store.new_table_id(), source_table_id)
