# pages/time_logs.py
from __future__ import annotations

from typing import Any, Callable

from loguru import logger
from nicegui import background_tasks, run, ui

from layout.context import PageContext
from layout.date_range_picker import DateRangePicker
from services.date_range import DateRange, month_range
from services.i18n import t
from services.time_logs_api import TimeLogsApiError, table_row, total_minutes


COLUMNS: list[dict[str, Any]] = [
	{"name": "date", "label": "Date", "field": "date", "align": "left", "sortable": True},
	{"name": "employee", "label": "Employee", "field": "employee", "align": "left", "sortable": True},
	{"name": "project", "label": "Project", "field": "project", "align": "left"},
	{"name": "task", "label": "Task", "field": "task", "align": "left"},
	{"name": "duration", "label": "Duration", "field": "duration", "align": "right"},
	{"name": "billing", "label": "Billing", "field": "billing", "align": "left"},
	{"name": "status", "label": "Status", "field": "status", "align": "left"},
]


def report_load_failure(rng: DateRange, ex: TimeLogsApiError, notify: Callable[..., Any] = ui.notify) -> None:
	"""Tell the user once; the log record stays below ERROR so the toast sink skips it."""
	logger.opt(exception=ex).warning(f"[time_logs.reload] - load_failed - range={rng} status={ex.status}")
	notify(t("time_logs.load_failed", "Failed to load time logs: {error}", error=str(ex)), type="negative")


def render(container: ui.element, ctx: PageContext) -> None:
	cfg = ctx.config
	logs: list[dict[str, Any]] = []

	async def reload(rng: DateRange) -> None:
		if ctx.api is None:
			return
		with container:
			try:
				rows = await run.io_bound(ctx.api.list_time_logs, rng)
			except TimeLogsApiError as ex:
				report_load_failure(rng, ex)
				return
			# a newer range may have been committed while this one was loading
			if picker.date_range != rng:
				return
			logs[:] = rows
			table.refresh()

	def on_range_changed(rng: DateRange) -> None:
		logger.info(f"[time_logs.on_range_changed] - range_committed - params={rng.as_query_params()}")
		background_tasks.create(reload(rng), name="time_logs_reload")

	picker = DateRangePicker(
		month_range(ctx.clock()),
		on_range_changed,
		view=cfg.picker.default_view,
		clock=ctx.clock,
		display_format=cfg.picker.display_format,
	)

	@ui.refreshable
	def table() -> None:
		if not logs:
			ui.label(t("time_logs.empty", "No time logs in this period.")).classes("text-sm text-zinc-500 py-6")
			return
		minutes = total_minutes(logs)
		ui.label(
			t("time_logs.total", "Total: {hours} h in {count} entries", hours=f"{minutes / 60:.2f}", count=len(logs))
		).classes("text-sm text-zinc-400")
		ui.table(columns=COLUMNS, rows=[table_row(log) for log in logs], row_key="id") \
			.props("flat dense dark").classes("w-full")

	with container:
		with ui.column().classes("w-full gap-4"):
			with ui.row().classes("w-full items-center justify-between"):
				ui.label(t("time_logs.title", "Time Logs")).classes("text-2xl font-bold")
				picker.render()
			table()

	background_tasks.create(reload(picker.date_range), name="time_logs_initial_load")
