"""
gridplanner – weekly course timetables built from a lecture catalog.
"""

from pathlib import Path

from gridplanner.model import GridGeometry, Lecture, ParsedSegment, Rect, ScheduleEntry
from gridplanner.parse import parse_schedule
from gridplanner.relocate import relocate
from gridplanner.search import SearchOption, search
from gridplanner.session import Session
from gridplanner.store import TableStore

__version__ = (Path(__file__).resolve().parent / "VERSION").read_text(encoding="utf-8").strip()

__all__ = [
    "GridGeometry",
    "Lecture",
    "ParsedSegment",
    "Rect",
    "ScheduleEntry",
    "SearchOption",
    "Session",
    "TableStore",
    "parse_schedule",
    "relocate",
    "search",
]
