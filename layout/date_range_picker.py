from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from loguru import logger
from nicegui import ui

from services.date_picker_state import DateRangePickerState
from services.date_range import (
	Clock,
	DateRange,
	DayCell,
	DISPLAY_DATE_FORMAT,
	MONTH_LABELS,
	ViewMode,
	WEEKDAY_LABELS,
	month_title,
)
from services.i18n import t


OnChangeFn = Callable[[DateRange], None]

CELL_BASE = "h-8 w-8 mx-auto flex items-center justify-center text-sm cursor-pointer relative"
TAB_ACTIVE = "text-lime-400 border-b-2 border-lime-400 pb-2"
TAB_INACTIVE = "text-zinc-400 hover:text-zinc-200 pb-2"


def day_cell_classes(cell: DayCell) -> tuple[str, str]:
	"""(cell classes, text classes) for one grid day."""
	bg = ""
	text = "text-zinc-400"
	if cell.selected:
		bg = "bg-lime-400 font-bold rounded-full"
		text = "text-black"
	elif cell.in_range:
		bg = "bg-lime-400/20"
		text = "text-lime-400"
		# caps at the visual row ends keep the band reading as one pill
		if cell.round_left:
			bg += " rounded-l-full"
		if cell.round_right:
			bg += " rounded-r-full"
	else:
		bg = "hover:bg-white/5 rounded-full"

	if not cell.in_month:
		text = "text-zinc-700"
	if cell.today and not cell.selected:
		text += " underline"
	return f"{CELL_BASE} {bg}", text


class DateRangePicker:
	"""
	Trigger bar (prev / label / next) plus a popover calendar.

	The caller owns the committed range: it passes the initial value in and is
	told about every new committed value through `on_change` (OK in the popover
	or the top-bar arrows). Everything done inside the popover stays on the
	working copy until OK.
	"""

	def __init__(
		self,
		date_range: DateRange,
		on_change: OnChangeFn,
		*,
		view: ViewMode = ViewMode.MONTH,
		clock: Clock = date.today,
		display_format: str = DISPLAY_DATE_FORMAT,
	) -> None:
		self._on_change = on_change
		self.display_format = display_format
		self.state = DateRangePickerState(date_range, on_change=self._handle_committed, view=view, clock=clock)

		self._label: Optional[ui.label] = None
		self._menu: Optional[ui.menu] = None
		self._refresh_popover: Callable[[], None] = lambda: None

	# ---------- external API ----------
	@property
	def date_range(self) -> DateRange:
		return self.state.date_range

	def set_date_range(self, date_range: DateRange) -> None:
		self.state.sync(date_range)
		self._update_label()

	# ---------- UI ----------
	def render(self) -> None:
		# arrows live inside the menu anchor: their clicks are not outside clicks for the popover
		with ui.element("div").classes("relative select-none"):
			with ui.row().classes("items-center gap-2 no-wrap"):
				ui.button(icon="chevron_left", on_click=self._on_prev).props("flat round dense color=grey-5")
				with ui.row().classes(
					"items-center gap-2 cursor-pointer bg-zinc-900 border border-white/10 rounded-lg px-3 py-1.5 "
					"hover:border-lime-400/50 no-wrap"
				).on("click", self._on_trigger):
					ui.icon("calendar_today").classes("text-lime-400 text-base")
					self._label = ui.label(self._display_text()).classes("text-sm font-mono text-zinc-200")
				ui.button(icon="chevron_right", on_click=self._on_next).props("flat round dense color=grey-5")

			with ui.menu().props("no-parent-event anchor='bottom left' self='top left'") as menu:
				self._menu = menu
				self._build_popover()
			menu.on("hide", self._on_menu_hide)

	def _build_popover(self) -> None:
		state = self.state

		@ui.refreshable
		def popover() -> None:
			with ui.column().classes("gap-0 min-w-[320px]").style("background:#121212; color:#e4e4e7;"):
				# tabs
				with ui.row().classes("w-full border-b border-white/10 px-4 pt-3 gap-6 text-sm font-medium"):
					for mode in ViewMode:
						ui.label(t(f"picker.tab.{mode.value}", mode.value)) \
							.classes("cursor-pointer " + (TAB_ACTIVE if state.view == mode else TAB_INACTIVE)) \
							.on("click", lambda m=mode: self._on_tab(m))

				# calendar content
				with ui.row().classes("p-4 gap-4 no-wrap").style("background:#0a0a0a;"):
					if state.view == ViewMode.MONTH:
						self._month_picker()
					else:
						months = state.visible_months()
						for idx, month in enumerate(months):
							self._month_grid(month, is_second=idx > 0)

				# footer
				with ui.row().classes("w-full items-center justify-between p-4 border-t border-white/10 no-wrap"):
					if state.view == ViewMode.DAY:
						ui.button(t("picker.today", "Today"), on_click=lambda: self._edit(state.select_today)) \
							.props("flat dense no-caps").classes("text-lime-400")
					elif state.view == ViewMode.WEEK:
						ui.button(t("picker.current_week", "Current Week"), on_click=lambda: self._edit(state.select_current_week)) \
							.props("flat dense no-caps").classes("text-lime-400")
					else:
						ui.button(t("picker.current_month", "Current Month"), on_click=lambda: self._edit(state.select_current_month)) \
							.props("flat dense no-caps").classes("text-lime-400")
					with ui.row().classes("gap-2"):
						ui.button(t("picker.cancel", "Cancel"), on_click=self._on_cancel) \
							.props("outline dense no-caps color=white").classes("px-4")
						ui.button(t("picker.ok", "OK"), on_click=self._on_apply) \
							.props("unelevated dense no-caps").classes("px-4 bg-lime-400 text-black font-bold")

		popover()
		self._refresh_popover = popover.refresh

	def _month_grid(self, month: date, *, is_second: bool) -> None:
		state = self.state
		is_range = state.view == ViewMode.RANGE
		with ui.column().classes("w-[280px] gap-1"):
			with ui.row().classes("w-full items-center justify-between mb-2 px-2 no-wrap"):
				if not is_second:
					ui.button(icon="chevron_left", on_click=lambda: self._edit(state.prev_month)).props("flat round dense size=sm color=grey-6")
				else:
					ui.element("div").classes("w-8")
				ui.label(month_title(month)).classes("font-medium text-white")
				if (not is_second and not is_range) or (is_second and is_range):
					ui.button(icon="chevron_right", on_click=lambda: self._edit(state.next_month)).props("flat round dense size=sm color=grey-6")
				else:
					ui.element("div").classes("w-8")

			with ui.grid(columns=7).classes("w-full gap-0 text-center"):
				for label in WEEKDAY_LABELS:
					ui.label(label).classes("text-[10px] font-bold text-zinc-500")

			with ui.grid(columns=7).classes("w-full gap-x-0 gap-y-1"):
				for row in state.month_grid(month):
					for cell in row:
						cell_classes, text_classes = day_cell_classes(cell)
						with ui.element("div").classes(cell_classes).on("click", lambda d=cell.day: self._on_day(d)):
							ui.label(cell.label).classes(text_classes)

	def _month_picker(self) -> None:
		state = self.state
		with ui.column().classes("w-[280px] p-2 gap-4"):
			with ui.row().classes("w-full items-center justify-between px-2 no-wrap"):
				ui.button(icon="chevron_left", on_click=lambda: self._edit(state.prev_year)).props("flat round dense size=sm color=grey-6")
				ui.label(str(state.current_month.year)).classes("font-medium text-white")
				ui.button(icon="chevron_right", on_click=lambda: self._edit(state.next_year)).props("flat round dense size=sm color=grey-6")
			with ui.grid(columns=4).classes("w-full gap-4"):
				for idx, name in enumerate(MONTH_LABELS):
					selected = state.is_month_selected(idx)
					ui.button(name, on_click=lambda i=idx: self._edit(lambda: state.select_month(i))) \
						.props("flat dense rounded no-caps" + (" color=black" if selected else " color=grey-5")) \
						.classes("py-2 text-sm font-medium" + (" bg-lime-400" if selected else ""))

	# ---------- handlers ----------
	def _edit(self, fn: Callable[[], None]) -> None:
		fn()
		self._refresh_popover()

	def _on_tab(self, view: ViewMode) -> None:
		self._edit(lambda: self.state.set_view(view))

	def _on_day(self, day: date) -> None:
		self._edit(lambda: self.state.click_day(day))

	def _on_trigger(self) -> None:
		self.state.toggle()
		if self.state.is_open:
			self._refresh_popover()
			if self._menu is not None:
				self._menu.open()
		elif self._menu is not None:
			self._menu.close()

	def _on_apply(self) -> None:
		self.state.apply()
		if self._menu is not None:
			self._menu.close()

	def _on_cancel(self) -> None:
		self.state.cancel()
		if self._menu is not None:
			self._menu.close()

	def _on_menu_hide(self) -> None:
		# outside click / escape closes the menu without going through our buttons
		if self.state.is_open:
			self.state.cancel()

	def _on_prev(self) -> None:
		self.state.prev()
		self._refresh_popover()

	def _on_next(self) -> None:
		self.state.next()
		self._refresh_popover()

	def _handle_committed(self, rng: DateRange) -> None:
		self._update_label()
		try:
			self._on_change(rng)
		except Exception:
			logger.exception(f"[DateRangePicker] - on_change_failed - range={rng}")
			raise

	# ---------- helpers ----------
	def _display_text(self) -> str:
		return self.state.display_text(self.display_format)

	def _update_label(self) -> None:
		if self._label is not None:
			self._label.text = self._display_text()
