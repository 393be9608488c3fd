from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum
from typing import Callable

# ------------------------------------------------------------------ Types

Clock = Callable[[], date]

WEEKDAY_LABELS = ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]
MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

QUERY_DATE_FORMAT = "%Y-%m-%d"
DISPLAY_DATE_FORMAT = "%d/%m/%Y"


class ViewModeError(ValueError):
    pass


class ViewMode(StrEnum):
    DAY = "Day"
    WEEK = "Week"
    MONTH = "Month"
    RANGE = "Range"


def parse_view_mode(value: str | ViewMode) -> ViewMode:
    """Accepts 'Day' / 'day' / ViewMode.DAY, raises ViewModeError otherwise."""
    if isinstance(value, ViewMode):
        return value
    text = str(value or "").strip().lower()
    for mode in ViewMode:
        if mode.value.lower() == text:
            return mode
    raise ViewModeError(f"Unknown view mode: {value!r}")


@dataclass(frozen=True)
class DateRange:
    """Closed inclusive interval of calendar days."""

    start: date
    end: date

    @classmethod
    def single(cls, day: date) -> "DateRange":
        return cls(day, day)

    @property
    def is_single_day(self) -> bool:
        return self.start == self.end

    @property
    def is_ordered(self) -> bool:
        return self.start <= self.end

    @property
    def span_days(self) -> int:
        return (self.end - self.start).days + 1

    def shift(self, days: int) -> "DateRange":
        delta = timedelta(days=days)
        return DateRange(self.start + delta, self.end + delta)

    def as_query_params(self) -> dict[str, str]:
        return {
            "startDate": self.start.strftime(QUERY_DATE_FORMAT),
            "endDate": self.end.strftime(QUERY_DATE_FORMAT),
        }

    def display_text(self, fmt: str = DISPLAY_DATE_FORMAT) -> str:
        return f"{self.start.strftime(fmt)} to {self.end.strftime(fmt)}"


# ------------------------------------------------------------------ Calendar helpers
# Weeks start on Monday (ISO).

def start_of_week(day: date) -> date:
    return day - timedelta(days=day.weekday())


def end_of_week(day: date) -> date:
    return start_of_week(day) + timedelta(days=6)


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def week_range(day: date) -> DateRange:
    return DateRange(start_of_week(day), end_of_week(day))


def month_range(day: date) -> DateRange:
    return DateRange(start_of_month(day), end_of_month(day))


def month_range_for(year: int, month_index: int) -> DateRange:
    """month_index is 0-based (0 = January), as laid out in the month picker."""
    return month_range(date(year, month_index + 1, 1))


def is_full_month(rng: DateRange) -> bool:
    return rng.start == start_of_month(rng.start) and rng.end == end_of_month(rng.start)


def is_same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month


# ------------------------------------------------------------------ View rules

def infer_view(rng: DateRange, current: ViewMode) -> ViewMode:
    """View to show when the popover opens on `rng`."""
    if rng.is_single_day:
        return ViewMode.DAY
    if is_full_month(rng):
        return ViewMode.MONTH
    return current


def range_for_click(view: ViewMode, working: DateRange, day: date) -> DateRange:
    """Working range after a day-cell click in `view`."""
    if view == ViewMode.DAY:
        return DateRange.single(day)
    if view == ViewMode.WEEK:
        return week_range(day)
    if view == ViewMode.RANGE:
        # singleton = anchored, this click closes the range in either direction
        if working.is_single_day:
            anchor = working.start
            if day < anchor:
                return DateRange(day, anchor)
            return DateRange(anchor, day)
        return DateRange.single(day)
    # Month view selects through the month picker only
    return working


def step_range(view: ViewMode, rng: DateRange, direction: int) -> DateRange:
    """One top-bar page forward (direction=1) or back (direction=-1)."""
    if view == ViewMode.DAY:
        day = rng.start + timedelta(days=direction)
        return DateRange.single(day)
    if view == ViewMode.WEEK:
        return week_range(rng.start + timedelta(weeks=direction))
    if view == ViewMode.MONTH:
        return month_range(add_months(start_of_month(rng.start), direction))
    return rng.shift(direction * rng.span_days)


# ------------------------------------------------------------------ Grid

@dataclass(frozen=True)
class DayCell:
    day: date
    in_month: bool
    selected: bool
    in_range: bool
    round_left: bool
    round_right: bool
    today: bool

    @property
    def label(self) -> str:
        return str(self.day.day)


def calendar_days(month: date) -> list[date]:
    first = start_of_week(start_of_month(month))
    last = end_of_week(end_of_month(month))
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]


def build_day_cell(day: date, month: date, working: DateRange, today: date) -> DayCell:
    selected = day == working.start or day == working.end
    in_range = not selected and working.start < day < working.end
    return DayCell(
        day=day,
        in_month=is_same_month(day, month),
        selected=selected,
        in_range=in_range,
        round_left=in_range and day == start_of_week(day),
        round_right=in_range and day == end_of_week(day),
        today=day == today,
    )


def build_month_grid(month: date, working: DateRange, today: date) -> list[list[DayCell]]:
    """Week rows (Monday..Sunday) covering `month`, including adjacent-month days."""
    cells = [build_day_cell(d, month, working, today) for d in calendar_days(month)]
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def month_title(month: date) -> str:
    return f"{MONTH_LABELS[month.month - 1]} {month.year}"
