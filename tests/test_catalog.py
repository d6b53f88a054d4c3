"""
Unit tests for catalog loading and the single-flight cache.

These tests never touch the network: HTTP sources use a fake session,
file sources use temporary JSON files.
"""

import asyncio
import json
import tempfile
import unittest
from pathlib import Path

import requests

from gridplanner.catalog import CatalogCache, fetch_catalog, load_source, to_lectures
from gridplanner.errors import CatalogFetchError
from gridplanner.model import Lecture


RECORDS_A = [
    {"id": "CS101", "title": "Data Structures", "credits": "3", "major": "CS", "schedule": "월1~2(A101)", "grade": 2},
    {"id": "CS102", "title": "Algorithms", "credits": "3", "major": "CS", "schedule": "화3", "grade": "3"},
]
RECORDS_B = [
    {"id": "LA001", "title": "Writing", "credits": "2", "major": "LA", "schedule": "목7", "grade": 1},
]


class _FakeResponse:
    def __init__(self, payload, status: int = 200) -> None:
        self.payload = payload
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class _FakeHTTP:
    def __init__(self, payload, status: int = 200) -> None:
        self.payload = payload
        self.status = status
        self.urls: list[str] = []

    def get(self, url: str, timeout: float = 0):
        self.urls.append(url)
        return _FakeResponse(self.payload, self.status)


class TestCatalogCache(unittest.IsolatedAsyncioTestCase):
    async def test_concurrent_requests_share_one_fetch(self) -> None:
        cache = CatalogCache()
        calls = 0
        release = asyncio.Event()

        async def fetcher():
            nonlocal calls
            calls += 1
            await release.wait()
            return ("result",)

        tasks = [cache.get("majors", fetcher) for _ in range(3)]
        await asyncio.sleep(0)
        self.assertEqual(calls, 1)

        release.set()
        results = await asyncio.gather(*tasks)
        self.assertEqual(results, [("result",)] * 3)
        self.assertEqual(calls, 1)

        # settled result is reused
        self.assertEqual(await cache.get("majors", fetcher), ("result",))
        self.assertEqual(calls, 1)

    async def test_keys_are_independent(self) -> None:
        cache = CatalogCache()
        seen: list[str] = []

        def make(key: str):
            async def fetcher():
                seen.append(key)
                return key

            return fetcher

        results = await asyncio.gather(cache.get("a", make("a")), cache.get("b", make("b")), cache.get("a", make("a")))
        self.assertEqual(results, ["a", "b", "a"])
        self.assertEqual(sorted(seen), ["a", "b"])

    async def test_failure_clears_key_for_retry(self) -> None:
        cache = CatalogCache()
        calls = 0

        async def flaky():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise CatalogFetchError("majors", OSError("down"))
            return ("ok",)

        with self.assertRaises(CatalogFetchError):
            await cache.get("majors", flaky)
        self.assertNotIn("majors", cache)

        self.assertEqual(await cache.get("majors", flaky), ("ok",))
        self.assertEqual(calls, 2)
        self.assertIn("majors", cache)

    async def test_timed_out_caller_does_not_cancel_shared_fetch(self) -> None:
        """One caller giving up leaves the fetch running for everyone else."""
        cache = CatalogCache()
        calls = 0
        release = asyncio.Event()

        async def fetcher():
            nonlocal calls
            calls += 1
            await release.wait()
            return ("result",)

        impatient = cache.get("majors", fetcher)
        patient = cache.get("majors", fetcher)
        with self.assertRaises(asyncio.TimeoutError):
            await asyncio.wait_for(impatient, timeout=0.01)

        release.set()
        self.assertEqual(await patient, ("result",))
        self.assertIn("majors", cache)

        self.assertEqual(await cache.get("majors", fetcher), ("result",))
        self.assertEqual(calls, 1)

    async def test_cancelled_fetch_clears_key_for_retry(self) -> None:
        cache = CatalogCache()
        calls = 0

        async def interrupted():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise asyncio.CancelledError()
            return ("ok",)

        with self.assertRaises(asyncio.CancelledError):
            await cache.get("majors", interrupted)
        await asyncio.sleep(0)
        self.assertNotIn("majors", cache)

        self.assertEqual(await cache.get("majors", interrupted), ("ok",))
        self.assertEqual(calls, 2)


class TestSources(unittest.IsolatedAsyncioTestCase):
    def _write(self, directory: str, name: str, payload) -> str:
        path = Path(directory) / name
        path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        return str(path)

    async def test_fetch_catalog_merges_sources_in_order(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            sources = {
                "majors": self._write(d, "majors.json", RECORDS_A),
                "liberal-arts": self._write(d, "liberal.json", RECORDS_B),
            }
            cache = CatalogCache()
            first = await fetch_catalog(cache, sources)
            second = await fetch_catalog(cache, sources)

        self.assertEqual([lecture.id for lecture in first], ["CS101", "CS102", "LA001"])
        self.assertEqual(first[1].grade, 3)
        # same lecture objects for the whole session
        for a, b in zip(first, second):
            self.assertIs(a, b)

    async def test_missing_file_raises_fetch_error(self) -> None:
        with self.assertRaises(CatalogFetchError) as ctx:
            await load_source("/nonexistent/catalog.json")
        self.assertEqual(ctx.exception.source, "/nonexistent/catalog.json")

    async def test_non_array_payload_raises_fetch_error(self) -> None:
        with self.assertRaises(CatalogFetchError):
            await load_source("http://catalog.test/majors.json", http=_FakeHTTP({"not": "a list"}))

    async def test_http_source(self) -> None:
        http = _FakeHTTP(RECORDS_B)
        lectures = await load_source("https://catalog.test/liberal.json", http=http)
        self.assertEqual([lecture.id for lecture in lectures], ["LA001"])
        self.assertEqual(http.urls, ["https://catalog.test/liberal.json"])

    async def test_http_error_is_wrapped(self) -> None:
        with self.assertRaises(CatalogFetchError) as ctx:
            await load_source("https://catalog.test/x.json", http=_FakeHTTP([], status=503))
        self.assertIsInstance(ctx.exception.cause, requests.HTTPError)


class TestToLectures(unittest.TestCase):
    def test_invalid_records_are_skipped(self) -> None:
        records = [
            RECORDS_B[0],
            {"title": "no id", "grade": 1},
            {"id": "BAD", "grade": "first"},
            "not a record",
        ]
        with self.assertLogs("gridplanner.catalog", level="WARNING") as logs:
            lectures = to_lectures(records, "test")
        self.assertEqual([lecture.id for lecture in lectures], ["LA001"])
        self.assertEqual(len(logs.output), 3)

    def test_record_fields_are_normalized(self) -> None:
        lecture = Lecture.from_dict({"id": " CS1 ", "title": None, "credits": 3, "grade": "2"})
        self.assertEqual(lecture, Lecture(id="CS1", title="", credits="3", major="", schedule="", grade=2))


if __name__ == "__main__":
    unittest.main()
