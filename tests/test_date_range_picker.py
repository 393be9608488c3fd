from __future__ import annotations

import unittest
from datetime import date
from unittest.mock import MagicMock

from layout.date_range_picker import DateRangePicker, day_cell_classes
from services.date_range import DateRange, DayCell, ViewMode


def _cell(**overrides) -> DayCell:
    values = dict(day=date(2025, 1, 13), in_month=True, selected=False, in_range=False,
                  round_left=False, round_right=False, today=False)
    values.update(overrides)
    return DayCell(**values)


class DayCellClassesTests(unittest.TestCase):
    def test_selected_endpoint_is_filled_circle(self) -> None:
        cell_cls, text_cls = day_cell_classes(_cell(selected=True))
        self.assertIn("bg-lime-400", cell_cls)
        self.assertIn("rounded-full", cell_cls)
        self.assertEqual(text_cls, "text-black")

    def test_in_range_band_caps(self) -> None:
        cell_cls, _ = day_cell_classes(_cell(in_range=True, round_left=True))
        self.assertIn("bg-lime-400/20", cell_cls)
        self.assertIn("rounded-l-full", cell_cls)
        self.assertNotIn("rounded-r-full", cell_cls)

        middle_cls, _ = day_cell_classes(_cell(in_range=True))
        self.assertNotIn("rounded", middle_cls)

    def test_adjacent_month_day_is_dimmed(self) -> None:
        _, text_cls = day_cell_classes(_cell(in_month=False))
        self.assertEqual(text_cls, "text-zinc-700")


class DateRangePickerWiringTests(unittest.TestCase):
    def test_top_bar_step_reaches_caller(self) -> None:
        seen: list[DateRange] = []
        picker = DateRangePicker(
            DateRange(date(2025, 2, 1), date(2025, 2, 28)),
            seen.append,
            view=ViewMode.MONTH,
            clock=lambda: date(2025, 2, 14),
        )
        picker._on_prev()
        self.assertEqual(seen, [DateRange(date(2025, 1, 1), date(2025, 1, 31))])
        self.assertEqual(picker.date_range, seen[0])

    def test_top_bar_step_keeps_open_popover_in_sync(self) -> None:
        seen: list[DateRange] = []
        picker = DateRangePicker(
            DateRange(date(2025, 2, 1), date(2025, 2, 28)),
            seen.append,
            view=ViewMode.MONTH,
            clock=lambda: date(2025, 2, 14),
        )
        picker._refresh_popover = MagicMock()
        picker.state.open()

        picker._on_next()

        march = DateRange(date(2025, 3, 1), date(2025, 3, 31))
        self.assertTrue(picker.state.is_open)
        self.assertEqual(picker.state.temp_range, march)
        self.assertEqual(picker.state.current_month.month, 3)
        self.assertEqual(seen, [march])
        picker._refresh_popover.assert_called_once()

    def test_set_date_range_does_not_notify(self) -> None:
        seen: list[DateRange] = []
        picker = DateRangePicker(DateRange.single(date(2025, 2, 3)), seen.append)
        picker.set_date_range(DateRange(date(2025, 3, 1), date(2025, 3, 31)))
        self.assertEqual(picker.date_range, DateRange(date(2025, 3, 1), date(2025, 3, 31)))
        self.assertEqual(seen, [])

    def test_menu_hide_discards_pending_edits(self) -> None:
        seen: list[DateRange] = []
        committed = DateRange.single(date(2025, 2, 3))
        picker = DateRangePicker(committed, seen.append)
        picker.state.open()
        picker._on_day(date(2025, 2, 20))
        picker._on_menu_hide()
        self.assertFalse(picker.state.is_open)
        self.assertEqual(picker.state.temp_range, committed)
        self.assertEqual(seen, [])


if __name__ == "__main__":
    unittest.main()
