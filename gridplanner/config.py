"""
Grid and catalog configuration.

Everything the engine needs to know about the timetable grid lives here:
- the ordered day labels (grid columns)
- the number of period rows
- the pixel geometry of a cell and of the header insets
- where the two catalog sources are fetched from

Values that differ between deployments can be overridden with environment
variables (GRIDPLANNER_*).
"""

from __future__ import annotations

import os
from pathlib import Path


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PACKAGE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------

# Mon..Sat, as written in the catalog descriptors
DAY_LABELS: tuple[str, ...] = ("월", "화", "수", "목", "금", "토")

PERIOD_COUNT = 24

# Periods 1-18 are half-hour slots, 19-24 are 50 minute evening slots
DAYTIME_PERIODS = 18

CELL_WIDTH = 80
CELL_HEIGHT = 30

# Left column with period labels / top row with day labels
HEADER_WIDTH = 120
HEADER_HEIGHT = 40

DEFAULT_TABLE_ID = "schedule-1"


# ---------------------------------------------------------------------------
# Descriptor text
# ---------------------------------------------------------------------------

SEGMENT_DELIMITER = "<p>"
RANGE_SEPARATOR = "~"

STRICT_DESCRIPTORS = _env_bool("GRIDPLANNER_STRICT_DESCRIPTORS")


# ---------------------------------------------------------------------------
# Search / catalog
# ---------------------------------------------------------------------------

PAGE_SIZE = _env_int("GRIDPLANNER_PAGE_SIZE", 100)

CATALOG_URL = os.environ.get("GRIDPLANNER_CATALOG_URL", "http://localhost:5173").rstrip("/")

# Cache key -> location. Order matters: results are merged in this order.
CATALOG_SOURCES: dict[str, str] = {
    "majors": f"{CATALOG_URL}/schedules-majors.json",
    "liberal-arts": f"{CATALOG_URL}/schedules-liberal-arts.json",
}

HTTP_TIMEOUT = 30


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.environ.get("GRIDPLANNER_LOG_LEVEL", "WARNING").upper()
