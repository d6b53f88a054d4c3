"""
Catalog loading.

Two catalog sources (majors / liberal arts) are fetched as JSON arrays of
lecture records and merged. Fetches go through CatalogCache:
- at most ONE in-flight request per source key
- every concurrent caller awaits the same task (shielded per caller)
- a settled result is reused for the rest of the session
- a failed or cancelled fetch clears its key, so a later call may retry

No retries, no timeouts beyond the HTTP client timeout.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

import requests

from gridplanner import config
from gridplanner.errors import CatalogFetchError, CatalogRecordError
from gridplanner.model import Lecture

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Single-flight cache
# ---------------------------------------------------------------------------


class CatalogCache:
    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    def get(self, key: str, fetcher: Callable[[], Awaitable[Any]]) -> Awaitable[Any]:
        """
        Return an awaitable for `key`, starting `fetcher()` only if there is
        no task for it yet. Each caller gets its own shield around the shared
        task, so cancelling one caller never cancels the fetch.
        Must be called from a running event loop.
        """
        task = self._tasks.get(key)
        if task is not None:
            logger.debug("Catalog %s: reusing %s request", key, "settled" if task.done() else "pending")
            return asyncio.shield(task)

        logger.debug("Catalog %s: new request", key)
        task = asyncio.ensure_future(self._run(key, fetcher))
        task.add_done_callback(lambda t, key=key: self._forget(key, t))
        self._tasks[key] = task
        return asyncio.shield(task)

    async def _run(self, key: str, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await fetcher()
        except Exception:
            # drop the key before any awaiter sees the error
            self._forget(key, asyncio.current_task())
            raise

    def _forget(self, key: str, task: Optional[asyncio.Future]) -> None:
        # only failed or cancelled tasks leave the cache
        if task is None or self._tasks.get(key) is not task:
            return
        if task.done() and not task.cancelled() and task.exception() is None:
            return
        del self._tasks[key]
        logger.debug("Catalog %s: request dropped", key)

    def clear(self) -> None:
        self._tasks.clear()


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


def _is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def _read_json(location: str, http: Optional[requests.Session] = None) -> Any:
    if _is_url(location):
        resp = (http or requests).get(location, timeout=config.HTTP_TIMEOUT)
        resp.raise_for_status()
        return resp.json()
    return json.loads(Path(location).read_text(encoding="utf-8"))


def to_lectures(records: Any, source: str = "") -> List[Lecture]:
    """
    Convert raw records to lectures. Records that are not lecture-shaped are
    skipped with a warning instead of failing the whole source.
    """
    lectures: List[Lecture] = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Catalog %s: skipping non-object record %r", source, record)
            continue
        try:
            lectures.append(Lecture.from_dict(record))
        except CatalogRecordError as e:
            logger.warning("Catalog %s: %s", source, e)
    return lectures


async def load_source(location: str, http: Optional[requests.Session] = None) -> Tuple[Lecture, ...]:
    """
    Fetch one source (URL or local JSON file) in a worker thread and convert
    it to lectures.
    """
    try:
        records = await asyncio.to_thread(_read_json, location, http)
    except (requests.RequestException, OSError, ValueError) as e:
        raise CatalogFetchError(location, e) from e

    if not isinstance(records, list):
        raise CatalogFetchError(location, ValueError(f"expected a JSON array, got {type(records).__name__}"))

    lectures = tuple(to_lectures(records, location))
    logger.info("Catalog %s: %d lectures", location, len(lectures))
    return lectures


async def fetch_catalog(
    cache: CatalogCache,
    sources: Optional[Mapping[str, str]] = None,
    http: Optional[requests.Session] = None,
) -> List[Lecture]:
    """
    Fetch every source concurrently through the cache and merge the results
    in source order.
    """
    sources = config.CATALOG_SOURCES if sources is None else sources

    tasks = [
        cache.get(key, lambda location=location: load_source(location, http))
        for key, location in sources.items()
    ]
    results = await asyncio.gather(*tasks)

    lectures: List[Lecture] = []
    for chunk in results:
        lectures.extend(chunk)
    return lectures
