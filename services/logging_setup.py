from __future__ import annotations

import logging
import os
import sys
import threading
import time
import traceback
from collections import deque
from contextlib import contextmanager
from typing import Any

from loguru import logger


LOG_FORMAT = (
	"{level.icon} <green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
	"<blue>{thread.name:^10}-{thread.id:^8}</blue> | "
	"[<level>{level:<8}</level>] | "
	"<white>{name}.{function}:{line}</white> | "
	"<level>{message}</level>"
)

DEFAULT_FILE_LEVEL = "DEBUG"

_ERROR_EVENTS_MAX = 200
_error_events_lock = threading.Lock()
_error_events: deque[dict[str, Any]] = deque(maxlen=_ERROR_EVENTS_MAX)
_error_event_id = 0


def _error_popup_sink(message) -> None:
	"""Capture ERROR+ records so page sessions can show them as toasts."""
	global _error_event_id
	record = message.record
	text = str(record.get("message") or "").strip()

	exc = record.get("exception")
	if exc and getattr(exc, "value", None):
		exc_text = str(exc.value)
		if exc_text:
			text = f"{text} | {exc_text}" if text else exc_text

	with _error_events_lock:
		_error_event_id += 1
		_error_events.append(
			{
				"id": _error_event_id,
				"level": str(record.get("level").name),
				"message": text or "An unknown error was logged.",
			}
		)


def get_latest_error_popup_event_id() -> int:
	with _error_events_lock:
		return int(_error_event_id)


def get_error_popup_events_since(last_seen_id: int) -> tuple[int, list[dict[str, Any]]]:
	with _error_events_lock:
		current = int(_error_event_id)
		events = [evt for evt in _error_events if int(evt.get("id", 0)) > int(last_seen_id)]
	return current, events


def install_error_popup_sink(*, enqueue: bool = True) -> int:
	return logger.add(_error_popup_sink, level="ERROR", catch=True, enqueue=enqueue, format="{message}")


def _install_global_exception_hooks() -> None:
	"""Ensure uncaught exceptions always end up in logs."""
	def _sys_hook(exc_type, exc_value, exc_tb):
		try:
			logger.opt(exception=(exc_type, exc_value, exc_tb)).critical("Uncaught exception")
		except Exception:
			sys.stderr.write("Uncaught exception:\n")
			traceback.print_exception(exc_type, exc_value, exc_tb, file=sys.stderr)

	def _thread_hook(args):
		thread_name = getattr(args.thread, "name", "unknown")
		try:
			logger.opt(exception=(args.exc_type, args.exc_value, args.exc_traceback)).critical(
				f"[_thread_hook] - uncaught_thread_exception - thread={thread_name}"
			)
		except Exception:
			sys.stderr.write("Uncaught thread exception:\n")
			traceback.print_exception(args.exc_type, args.exc_value, args.exc_traceback, file=sys.stderr)

	sys.excepthook = _sys_hook
	threading.excepthook = _thread_hook


def parse_level(level_value) -> str:
	"""
	Accepts:
	- int (logging.INFO style)
	- str ("INFO")
	Returns a Loguru level name, INFO when unrecognised.
	"""
	if isinstance(level_value, int):
		mapping = {
			logging.CRITICAL: "CRITICAL",
			logging.ERROR: "ERROR",
			logging.WARNING: "WARNING",
			logging.INFO: "INFO",
			logging.DEBUG: "DEBUG",
		}
		return mapping.get(level_value, "INFO")

	if isinstance(level_value, str):
		val = level_value.strip().upper()
		if val in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
			return val

	return "INFO"


def setup_logging(
	app_name: str = "app",
	log_dir: str = "log",
	log_level: str | int | None = None,
	file_level: str | int | None = None,
) -> None:
	"""
	- console colored
	- rotating file (10 MB) with zip compression, 50 files kept
	- in-memory ERROR sink feeding the page toasts
	"""

	configured_level = log_level if log_level is not None else os.getenv("LOG_LEVEL", "INFO")
	console_level = parse_level(configured_level)
	configured_file_level = file_level if file_level is not None else os.getenv("LOG_FILE_LEVEL", DEFAULT_FILE_LEVEL)
	resolved_file_level = parse_level(configured_file_level)

	os.makedirs(log_dir, exist_ok=True)
	log_path = os.path.join(log_dir, f"{app_name}.log")

	logger.remove()
	logger.configure(
		handlers=[
			{
				"sink": sys.stdout,
				"format": LOG_FORMAT,
				"colorize": True,
				"level": console_level,
			},
			{
				"sink": log_path,
				"format": LOG_FORMAT,
				"rotation": "10 MB",
				"compression": "zip",
				"retention": 50,
				"colorize": False,
				"level": resolved_file_level,
			},
		]
	)

	install_error_popup_sink()
	_install_global_exception_hooks()

	logger.level("ERROR", color="<fg #ff0000>")
	logger.level("WARNING", color="<fg #f9ff5c>")
	logger.level("INFO", color="<cyan>")
	logger.level("DEBUG", color="<fg #1cfc03>")

	logger.info(
		f"[setup_logging] - logger_initialized - app_name={app_name} console_level={console_level} file_level={resolved_file_level} log_path={log_path}"
	)


def summarize_for_log(payload: Any, *, max_items: int = 10, max_text: int = 140) -> Any:
	if payload is None:
		return None
	if isinstance(payload, dict):
		items = list(payload.items())[:max_items]
		return {str(k): summarize_for_log(v, max_items=max_items, max_text=max_text) for k, v in items}
	if isinstance(payload, (list, tuple, set)):
		limited = list(payload)[:max_items]
		return [summarize_for_log(v, max_items=max_items, max_text=max_text) for v in limited]
	text = str(payload)
	if len(text) > max_text:
		return f"{text[:max_text]}...({len(text)} chars)"
	return text


@contextmanager
def log_timing(method_name: str, *, failure_level: str = "ERROR", **context: Any):
	"""Debug-log start/end of a block. Failures are logged at `failure_level` and re-raised."""
	start = time.perf_counter()
	context_txt = " ".join([f"{k}={summarize_for_log(v)}" for k, v in context.items()])
	logger.debug(f"[{method_name}] - start {context_txt}".strip())
	try:
		yield
		duration_ms = round((time.perf_counter() - start) * 1000, 2)
		logger.debug(f"[{method_name}] - end - duration_ms={duration_ms} {context_txt}".strip())
	except Exception:
		duration_ms = round((time.perf_counter() - start) * 1000, 2)
		logger.opt(exception=True).log(
			failure_level, f"[{method_name}] - failed - duration_ms={duration_ms} {context_txt}".strip()
		)
		raise
