"""
CLI (Command Line Interface).

Quick terminal commands around the timetable engine, e.g.:

    gridplanner parse "월1~2(A101)<p>수3"
    gridplanner periods
    gridplanner search --catalog majors.json --grade 2 --day 월
    gridplanner table --catalog majors.json --add 100001 --move 0 80 30

Catalogs default to the two configured sources (GRIDPLANNER_CATALOG_URL).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Mapping, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from gridplanner import config
from gridplanner.errors import CatalogFetchError, DescriptorError
from gridplanner.model import Lecture
from gridplanner.parse import major_short_label, markup_text, parse_schedule, period_labels
from gridplanner.relocate import drag_id
from gridplanner.search import SearchOption
from gridplanner.session import Session

console = Console()


def _log_level(verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    level = logging.getLevelName(config.LOG_LEVEL)
    # getLevelName returns "Level X" for names it does not know
    return level if isinstance(level, int) else logging.WARNING


def _setup_logging(verbose: bool) -> None:
    level = _log_level(verbose)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _sources(locations: Optional[list[str]]) -> Optional[Mapping[str, str]]:
    if not locations:
        return None
    return {f"source-{i}": loc for i, loc in enumerate(locations, start=1)}


def _load(session: Session) -> bool:
    try:
        asyncio.run(session.load_catalog())
    except CatalogFetchError as e:
        console.print(f"[red]{e}[/]")
        return False
    return True


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_parse(args: argparse.Namespace) -> int:
    try:
        segments = parse_schedule(args.text, strict=args.strict)
    except DescriptorError as e:
        for problem in e.problems:
            console.print(f"[red]{problem}[/]")
        return 1

    if not segments:
        console.print("No segments.")
        return 0

    for s in segments:
        periods = f"{s.range[0]}~{s.range[-1]}" if len(s.range) > 1 else str(s.range[0])
        room = f" ({s.room})" if s.room else ""
        console.print(f"{s.day or '?'} {periods}{room}")
    return 0


def _cmd_periods(args: argparse.Namespace) -> int:
    for i, label in enumerate(period_labels(), start=1):
        console.print(f"{i:02d} ({label})")
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    session = Session(catalog_sources=_sources(args.catalog))
    if not _load(session):
        return 1

    search = session.search
    search.set_options(
        SearchOption(
            query=args.query or "",
            grades=args.grade or (),
            days=args.day or (),
            times=args.period or (),
            majors=args.major or (),
            credits=args.credits,
        )
    )
    for _ in range(max(args.pages, 1) - 1):
        search.near_end()

    lectures = search.visible
    if not lectures:
        console.print("No results.")
        return 0

    table = Table(title=f"Results: {len(search.filtered)}", box=box.SIMPLE)
    for column in ("Code", "Grade", "Title", "Credits", "Major", "Schedule"):
        table.add_column(column)
    for lecture in lectures:
        table.add_row(
            lecture.id,
            str(lecture.grade),
            lecture.title,
            lecture.credits,
            major_short_label(lecture.major),
            markup_text(lecture.schedule),
        )
    console.print(table)

    if search.pagination.page < search.last_page:
        console.print(f"... page {search.pagination.page}/{search.last_page}, use --pages to reveal more")
    return 0


def _render_table(session: Session, table_id: str) -> Table:
    geometry = session.geometry
    cells: dict[tuple[str, int], list[str]] = {}
    for entry in session.store.get(table_id):
        label = entry.lecture.title + (f" ({entry.room})" if entry.room else "")
        for period in entry.range:
            cells.setdefault((entry.day, period), []).append(label)

    table = Table(title=table_id, box=box.SIMPLE, show_lines=False)
    table.add_column("교시", justify="right")
    for day in geometry.days:
        table.add_column(day)

    labels = period_labels()
    for period in range(1, geometry.periods + 1):
        row = [f"{period:02d} ({labels[period - 1]})"]
        row.extend("\n".join(cells.get((day, period), [])) for day in geometry.days)
        table.add_row(*row)
    return table


def _cmd_table(args: argparse.Namespace) -> int:
    session = Session(catalog_sources=_sources(args.catalog))
    if not _load(session):
        return 1

    by_id: dict[str, Lecture] = {lecture.id: lecture for lecture in session.search.lectures}
    table_id = session.store.table_ids[0]
    rc = 0

    for lecture_id in args.add or []:
        lecture = by_id.get(lecture_id.strip())
        if lecture is None:
            console.print(f"Unknown lecture: {lecture_id}")
            rc = 1
            continue
        session.search.open(table_id)
        session.add_lecture(lecture)

    for index, dx, dy in args.move or []:
        try:
            delta = (float(dx), float(dy))
        except ValueError:
            console.print(f"Invalid move: {index} {dx} {dy}")
            rc = 1
            continue
        identifier = drag_id(table_id, index)
        session.drag.start(identifier)
        session.drag.end(identifier, *delta)

    console.print(_render_table(session, table_id))
    return rc


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="gridplanner", description="Weekly timetable planner")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", help="Parse a schedule descriptor")
    p_parse.add_argument("text", type=str, help="Descriptor, e.g. '월1~2(A101)<p>수3'")
    p_parse.add_argument("--strict", action="store_true", help="Fail on malformed segments")

    sub.add_parser("periods", help="List the period rows and their times")

    p_search = sub.add_parser("search", help="Search the lecture catalog")
    p_search.add_argument("--catalog", action="append", help="Catalog URL or JSON file (repeatable)")
    p_search.add_argument("--query", "-q", type=str, default="", help="Text in lecture code or title")
    p_search.add_argument("--grade", type=int, action="append", help="Grade (repeatable)")
    p_search.add_argument("--day", action="append", choices=config.DAY_LABELS, help="Day (repeatable)")
    p_search.add_argument("--period", type=int, action="append", help="Period (repeatable)")
    p_search.add_argument("--major", action="append", help="Major, exact (repeatable)")
    p_search.add_argument("--credits", type=int, help="Credits prefix")
    p_search.add_argument("--pages", type=int, default=1, help=f"Pages of {config.PAGE_SIZE} to reveal")

    p_table = sub.add_parser("table", help="Build a table from lecture codes and print it")
    p_table.add_argument("--catalog", action="append", help="Catalog URL or JSON file (repeatable)")
    p_table.add_argument("--add", action="append", help="Lecture code to add (repeatable)")
    p_table.add_argument(
        "--move",
        nargs=3,
        action="append",
        metavar=("INDEX", "DX", "DY"),
        help="Drag entry INDEX by DX, DY pixels (repeatable)",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if args.command == "parse":
        raise SystemExit(_cmd_parse(args))
    if args.command == "periods":
        raise SystemExit(_cmd_periods(args))
    if args.command == "search":
        raise SystemExit(_cmd_search(args))
    if args.command == "table":
        raise SystemExit(_cmd_table(args))

    raise SystemExit(2)
