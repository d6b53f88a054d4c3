"""
Schedule descriptor parsing (catalog text -> structured segments).

A descriptor is the free-form "schedule" field of a catalog record, e.g.

    월1~2(A101)<p>수3(B202)

Segments are separated by "<p>". Each segment is:
- a leading day token (all characters before the first digit)
- a period: a single integer, or "start~end" (inclusive)
- an optional "(room)"

Important rules:
- The default (lenient) policy NEVER raises. A malformed segment still
  yields a segment with best-effort fields, so one dirty catalog record
  cannot block the rest of the catalog.
- Strict parsing reports every malformed segment as a DescriptorError.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from functools import lru_cache
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from gridplanner import config
from gridplanner.errors import DescriptorError
from gridplanner.model import ParsedSegment


_SEGMENT_RE = re.compile(r"^(\D*)(\d+)(?:" + re.escape(config.RANGE_SEPARATOR) + r"(\d+))?(.*)$", re.DOTALL)

# Period 0 is never on the grid; used when a segment carries no period at all
NO_PERIOD = 0


# ---------------------------------------------------------------------------
# Segment parsing (CORE LOGIC)
# ---------------------------------------------------------------------------


def _parse_segment(raw: str) -> Tuple[ParsedSegment, List[str]]:
    """
    Parse one segment. Returns the segment plus a list of problems found
    (empty for a well-formed segment).
    """
    problems: List[str] = []

    m = _SEGMENT_RE.match(raw)
    if not m:
        return ParsedSegment(day=raw, range=(NO_PERIOD,), room=None), [f"no period in segment {raw!r}"]

    day, start_s, end_s, rest = m.groups()
    day = day.strip()
    if not day:
        problems.append(f"no day in segment {raw!r}")

    start = int(start_s)
    periods: Tuple[int, ...] = (start,)
    if end_s is not None:
        end = int(end_s)
        if end < start:
            problems.append(f"descending period range in segment {raw!r}")
        elif end - start >= config.PERIOD_COUNT:
            # longer than a whole day; keep the start only
            problems.append(f"period range too long in segment {raw!r}")
        else:
            periods = tuple(range(start, end + 1))

    rest = rest.strip()
    if rest and not (rest.startswith("(") and rest.endswith(")")):
        problems.append(f"unexpected text {rest!r} in segment {raw!r}")

    room = rest.replace("(", "").replace(")", "").strip()

    return ParsedSegment(day=day, range=periods, room=room or None), problems


@lru_cache(maxsize=4096)
def _parse_cached(text: str) -> Tuple[Tuple[ParsedSegment, ...], Tuple[str, ...]]:
    segments: List[ParsedSegment] = []
    problems: List[str] = []

    for raw in text.split(config.SEGMENT_DELIMITER):
        raw = raw.strip()
        # "<p><p>" and trailing delimiters produce blank segments
        if not raw:
            continue
        segment, segment_problems = _parse_segment(raw)
        segments.append(segment)
        problems.extend(segment_problems)

    return tuple(segments), tuple(problems)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_schedule(text: Optional[str], strict: Optional[bool] = None) -> List[ParsedSegment]:
    """
    Parse a schedule descriptor into ordered segments.

    strict=None uses config.STRICT_DESCRIPTORS.
    """
    if strict is None:
        strict = config.STRICT_DESCRIPTORS

    if not isinstance(text, str) or not text.strip():
        return []

    segments, problems = _parse_cached(text)
    if strict and problems:
        raise DescriptorError(text, list(problems))
    return list(segments)


def descriptor_problems(text: Optional[str]) -> List[str]:
    """
    Return a human readable list of everything lenient parsing had to
    absorb. Empty list means the descriptor is well-formed.
    """
    if not isinstance(text, str) or not text.strip():
        return []
    return list(_parse_cached(text)[1])


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def period_labels() -> List[str]:
    """
    Time labels of the grid rows, index 0 = period 1.

    Daytime periods are 30 minutes starting 09:00; evening periods are
    50 minutes long and start every 55 minutes from 18:00.
    """
    base = datetime(2000, 1, 1, 9, 0)
    labels: List[str] = []

    for k in range(config.DAYTIME_PERIODS):
        start = base + timedelta(minutes=30 * k)
        end = start + timedelta(minutes=30)
        labels.append(f"{start:%H:%M}~{end:%H:%M}")

    evening = base + timedelta(minutes=30 * config.DAYTIME_PERIODS)
    for k in range(config.PERIOD_COUNT - config.DAYTIME_PERIODS):
        start = evening + timedelta(minutes=55 * k)
        end = start + timedelta(minutes=50)
        labels.append(f"{start:%H:%M}~{end:%H:%M}")

    return labels


def markup_text(text: str) -> str:
    """
    Catalog fields embed "<p>" separators; turn them into plain display text.
    """
    if not text:
        return ""
    soup = BeautifulSoup(text, "html.parser")
    return soup.get_text(" ", strip=True)


def major_short_label(major: str) -> str:
    """Last "<p>" part of a major, e.g. the department without the college."""
    return markup_text(major.split(config.SEGMENT_DELIMITER)[-1])
