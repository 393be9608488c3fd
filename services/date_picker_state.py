from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from loguru import logger

from services.date_range import (
    Clock,
    DateRange,
    ViewMode,
    add_months,
    build_month_grid,
    DayCell,
    infer_view,
    month_range,
    month_range_for,
    range_for_click,
    step_range,
    week_range,
    is_same_month,
)

OnChangeFn = Callable[[DateRange], None]


class DateRangePickerState:
    """
    View-state machine behind the date range picker.

    - `date_range` is the committed value, owned by the caller; it only changes
      through `apply()`, `step()` or a caller push via `sync()`.
    - `temp_range` is the working copy edited inside the popover. It is
      re-snapshotted from `date_range` on every open and thrown away on cancel.
    - `current_month` is the navigation cursor of the rendered grid(s).

    No UI here: the NiceGUI component calls these methods from its handlers
    and re-renders from the resulting attributes.
    """

    def __init__(
        self,
        date_range: DateRange,
        on_change: Optional[OnChangeFn] = None,
        *,
        view: ViewMode = ViewMode.MONTH,
        clock: Clock = date.today,
    ) -> None:
        self.on_change = on_change
        self.clock = clock
        self.view: ViewMode = view
        self.is_open: bool = False

        self.date_range: DateRange = date_range
        self.temp_range: DateRange = date_range
        self.current_month: date = clock()
        self._warn_if_unordered(date_range, "init")

    # ---------- committed value ----------
    def sync(self, date_range: DateRange) -> None:
        """Caller pushed a new committed value (controlled update)."""
        self._warn_if_unordered(date_range, "sync")
        self.date_range = date_range
        if not self.is_open:
            self.temp_range = date_range

    def _commit(self, rng: DateRange) -> None:
        self.date_range = rng
        if self.on_change is not None:
            self.on_change(rng)

    def _warn_if_unordered(self, rng: DateRange, source: str) -> None:
        if not rng.is_ordered:
            logger.warning(f"[DateRangePickerState] - unordered_range_accepted - source={source} start={rng.start} end={rng.end}")

    # ---------- popover lifecycle ----------
    def open(self) -> None:
        if self.is_open:
            return
        self.is_open = True
        self.temp_range = self.date_range
        self.current_month = self.date_range.start
        self.view = infer_view(self.date_range, self.view)
        logger.debug(f"[open] - popover_opened - view={self.view} range={self.date_range}")

    def toggle(self) -> None:
        if self.is_open:
            self.cancel()
        else:
            self.open()

    def apply(self) -> None:
        if not self.is_open:
            return
        self.is_open = False
        logger.debug(f"[apply] - range_applied - range={self.temp_range}")
        self._commit(self.temp_range)

    def cancel(self) -> None:
        """Cancel button, outside click and trigger re-click all discard edits."""
        if not self.is_open:
            return
        self.is_open = False
        self.temp_range = self.date_range

    # ---------- tabs ----------
    def set_view(self, view: ViewMode) -> None:
        self.view = view

    # ---------- in-popover edits ----------
    def click_day(self, day: date) -> None:
        self.temp_range = range_for_click(self.view, self.temp_range, day)

    def select_month(self, month_index: int) -> None:
        self.temp_range = month_range_for(self.current_month.year, month_index)

    def is_month_selected(self, month_index: int) -> bool:
        return is_same_month(date(self.current_month.year, month_index + 1, 1), self.temp_range.start)

    def prev_month(self) -> None:
        self.current_month = add_months(self.current_month, -1)

    def next_month(self) -> None:
        self.current_month = add_months(self.current_month, 1)

    def prev_year(self) -> None:
        self.current_month = add_months(self.current_month, -12)

    def next_year(self) -> None:
        self.current_month = add_months(self.current_month, 12)

    # ---------- footer shortcuts ----------
    def select_today(self) -> None:
        today = self.clock()
        self.temp_range = DateRange.single(today)
        self.view = ViewMode.DAY
        self.current_month = today

    def select_current_week(self) -> None:
        today = self.clock()
        self.temp_range = week_range(today)
        self.view = ViewMode.WEEK
        self.current_month = today

    def select_current_month(self) -> None:
        today = self.clock()
        self.temp_range = month_range(today)
        self.view = ViewMode.MONTH
        self.current_month = today

    # ---------- top bar ----------
    def step(self, direction: int) -> DateRange:
        # reads the committed value, pending popover edits are not consulted
        new_range = step_range(self.view, self.date_range, direction)
        logger.debug(f"[step] - committed_range_stepped - view={self.view} direction={direction} range={new_range}")
        self.temp_range = new_range
        self.current_month = new_range.start
        self._commit(new_range)
        return new_range

    def prev(self) -> DateRange:
        return self.step(-1)

    def next(self) -> DateRange:
        return self.step(1)

    # ---------- render helpers ----------
    def visible_months(self) -> list[date]:
        if self.view == ViewMode.MONTH:
            return []
        if self.view == ViewMode.RANGE:
            return [self.current_month, add_months(self.current_month, 1)]
        return [self.current_month]

    def month_grid(self, month: date) -> list[list[DayCell]]:
        return build_month_grid(month, self.temp_range, self.clock())

    def display_text(self, fmt: Optional[str] = None) -> str:
        return self.date_range.display_text(fmt) if fmt else self.date_range.display_text()
