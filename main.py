import os
from nicegui import ui, app

from layout.context import PageContext
from pages import time_logs

from services.app_config import load_app_config
from services.logging_setup import (
	setup_logging,
	get_error_popup_events_since,
	get_latest_error_popup_event_id,
)
from services.time_logs_api import TimeLogsApi
from loguru import logger


# ------------------------------------------------------------------
# PROCESS LIFETIME
# ------------------------------------------------------------------

setup_logging(app_name="time_logs", log_level=os.getenv("LOG_LEVEL", "INFO"))
logger.info("Starting NiceGUI")

APP_CONFIG = load_app_config()


# ------------------------------------------------------------------
# UI
# ------------------------------------------------------------------

@ui.page("/")
def index():
	ui.colors(primary=APP_CONFIG.ui.primary_color)
	ui.dark_mode(APP_CONFIG.ui.dark_mode)
	app.storage.user.setdefault("language", APP_CONFIG.ui.language)

	ui.add_head_html("""
	<style>
		html, body { height: 100%; margin: 0; }
	</style>
	""")

	# --------- PER SESSION CONTEXT ---------
	ctx = PageContext(config=APP_CONFIG)
	ctx.api = TimeLogsApi(APP_CONFIG.time_logs_api)

	# ERROR+ log records become toasts for this client
	last_error_id = get_latest_error_popup_event_id()

	def _drain_error_events() -> None:
		nonlocal last_error_id
		last_error_id, events = get_error_popup_events_since(last_error_id)
		for evt in events[-3:]:
			ui.notify(evt["message"], type="negative", position="bottom-right")

	error_timer = ui.timer(1.0, _drain_error_events)

	def _cleanup() -> None:
		error_timer.cancel()
		ctx.close()
		logger.debug("[index] - client_disconnected - context_closed")

	ui.context.client.on_disconnect(_cleanup)

	# --------- LAYOUT ---------
	main_area = ui.column().classes("w-full min-h-0 min-w-0 p-4 pb-6 gap-4")
	time_logs.render(main_area, ctx)


if __name__ in {"__main__", "__mp_main__"}:
	ui.run(
		title=APP_CONFIG.ui.title,
		reload=False,
		storage_secret=os.environ["NICEGUI_STORAGE_SECRET"],
	)
