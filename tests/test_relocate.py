"""
Unit tests for entry relocation.

Default grid: 6 days x 24 periods, cells 80x30 px, header insets 120/40 px.
"""

import unittest

from gridplanner.model import GridGeometry, Lecture, Rect, ScheduleEntry
from gridplanner.relocate import drag_id, move_entry, parse_drag_id, relocate, snap_transform


LECTURE = Lecture(id="CS101", title="Data Structures", credits="3", major="CS", schedule="월1~2(A101)", grade=2)


def _entry(day: str = "월", periods: tuple = (1, 2)) -> ScheduleEntry:
    return ScheduleEntry(lecture=LECTURE, day=day, range=periods, room="A101")


class TestSnapTransform(unittest.TestCase):
    def setUp(self) -> None:
        self.geometry = GridGeometry()
        self.container = self.geometry.grid_rect()
        self.node = self.geometry.entry_rect(_entry())

    def test_rounds_to_cell_multiples(self) -> None:
        self.assertEqual(snap_transform(45, 14, self.geometry, self.container, self.node), (80, 0))
        self.assertEqual(snap_transform(39, 15, self.geometry, self.container, self.node), (0, 30))

    def test_clamps_to_grid_interior(self) -> None:
        self.assertEqual(snap_transform(-500, -500, self.geometry, self.container, self.node), (0, 0))
        self.assertEqual(snap_transform(10_000, 10_000, self.geometry, self.container, self.node), (400, 660))

    def test_custom_container(self) -> None:
        container = Rect(left=0, top=0, right=360, bottom=400)
        self.assertEqual(snap_transform(10_000, 0, self.geometry, container, self.node), (160, 0))


class TestRelocate(unittest.TestCase):
    def test_zero_displacement_keeps_day_and_range(self) -> None:
        geometry = GridGeometry()
        for day in geometry.days:
            for start in (1, 10, 23):
                entry = _entry(day, (start, start + 1))
                moved = relocate(entry, (0, 0), geometry)
                self.assertEqual((moved.day, moved.range), (day, (start, start + 1)))
                self.assertIs(moved, entry)

    def test_moves_by_whole_cells(self) -> None:
        entry = _entry()
        moved = relocate(entry, (80, 30))
        self.assertEqual(moved.day, "화")
        self.assertEqual(moved.range, (2, 3))
        self.assertIs(moved.lecture, entry.lecture)
        self.assertEqual(moved.room, "A101")
        # input untouched
        self.assertEqual((entry.day, entry.range), ("월", (1, 2)))

    def test_never_leaves_the_grid(self) -> None:
        moved = relocate(_entry(), (10_000, 10_000))
        self.assertEqual(moved.day, "토")
        self.assertEqual(moved.range, (23, 24))

        moved = relocate(_entry("토", (23, 24)), (-10_000, -10_000))
        self.assertEqual(moved.day, "월")
        self.assertEqual(moved.range, (1, 2))

    def test_unknown_day_is_noop(self) -> None:
        entry = _entry("일")
        self.assertIs(relocate(entry, (80, 30)), entry)


class TestMoveEntry(unittest.TestCase):
    def test_only_moved_entry_changes_identity(self) -> None:
        entries = (_entry("월", (1,)), _entry("화", (2,)), _entry("수", (3,)))
        out = move_entry(entries, 1, (80, 0))
        self.assertIsNot(out, entries)
        self.assertIs(out[0], entries[0])
        self.assertIs(out[2], entries[2])
        self.assertEqual(out[1].day, "수")

    def test_stale_index_returns_input(self) -> None:
        entries = (_entry(),)
        self.assertIs(move_entry(entries, 3, (80, 0)), entries)
        self.assertIs(move_entry(entries, -1, (80, 0)), entries)

    def test_zero_move_returns_input(self) -> None:
        entries = (_entry(),)
        self.assertIs(move_entry(entries, 0, (10, 10)), entries)


class TestDragId(unittest.TestCase):
    def test_roundtrip(self) -> None:
        self.assertEqual(parse_drag_id(drag_id("schedule-1", 4)), ("schedule-1", 4))

    def test_invalid_identifiers(self) -> None:
        for identifier in ["", "schedule-1", ":3", "schedule-1:x", "schedule-1:-1", None]:
            self.assertIsNone(parse_drag_id(identifier), identifier)


if __name__ == "__main__":
    unittest.main()
