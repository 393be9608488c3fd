from __future__ import annotations

import time
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlencode

import requests
from loguru import logger

from services.app_config import TimeLogsApiConfig
from services.date_range import DateRange
from services.logging_setup import log_timing


class TimeLogsApiError(RuntimeError):
	def __init__(self, message: str, *, status: Optional[int] = None, url: str = "") -> None:
		super().__init__(message)
		self.status = status
		self.url = url


def normalize_items(payload: Any) -> List[Dict[str, Any]]:
	"""
	Single decoder for the list envelopes the backend has been seen to return:
	  [...]                       bare array
	  {"items": [...]}
	  {"data": [...]}
	  {"data": {"items": [...]}}
	  {"data": {"data": [...]}} / {"data": {"data": {"items": [...]}}}
	"""
	node = payload
	for _ in range(4):
		if isinstance(node, list):
			return [row for row in node if isinstance(row, dict)]
		if not isinstance(node, dict):
			break
		if isinstance(node.get("items"), list):
			node = node["items"]
			continue
		if "data" in node:
			node = node["data"]
			continue
		break
	if isinstance(node, list):
		return [row for row in node if isinstance(row, dict)]
	raise TimeLogsApiError(f"Unrecognised list envelope: {type(payload).__name__}")


def build_query(
	date_range: DateRange,
	*,
	project_ids: Iterable[str] = (),
	user_ids: Iterable[str] = (),
	status: str = "",
	billing_type: str = "",
	client_names: Iterable[str] = (),
) -> List[tuple[str, str]]:
	params: List[tuple[str, str]] = list(date_range.as_query_params().items())
	if status:
		params.append(("status", status))
	if billing_type:
		params.append(("billingType", billing_type))
	params.extend(("projectIds", str(v)) for v in project_ids)
	params.extend(("userIds", str(v)) for v in user_ids)
	params.extend(("clientNames", str(v)) for v in client_names)
	return params


class TimeLogsApi:
	"""Read-only client for the time-logs collaborator API."""

	def __init__(self, config: TimeLogsApiConfig, *, session: Optional[requests.Session] = None) -> None:
		self.config = config
		self._session = session or requests.Session()

	def close(self) -> None:
		self._session.close()

	def _url(self, path: str) -> str:
		base = str(self.config.base_url or "").rstrip("/")
		return f"{base}/{path.lstrip('/')}"

	def list_time_logs(
		self,
		date_range: DateRange,
		*,
		project_ids: Iterable[str] = (),
		user_ids: Iterable[str] = (),
		status: str = "",
		billing_type: str = "",
		client_names: Iterable[str] = (),
	) -> List[Dict[str, Any]]:
		params = build_query(
			date_range,
			project_ids=project_ids,
			user_ids=user_ids,
			status=status,
			billing_type=billing_type,
			client_names=client_names,
		)
		url = f"{self._url('time-logs')}?{urlencode(params)}"

		# callers report TimeLogsApiError to the user themselves
		with log_timing("list_time_logs", failure_level="WARNING", url=url):
			payload = self._get_json(url)
		rows = normalize_items(payload)
		logger.info(f"[list_time_logs] - loaded - count={len(rows)} range={date_range.display_text()}")
		return rows

	def _get_json(self, url: str) -> Any:
		start = time.time()
		try:
			resp = self._session.get(
				url,
				headers=dict(self.config.headers),
				timeout=self.config.timeout_s,
				verify=self.config.verify_ssl,
			)
		except requests.RequestException as exc:
			raise TimeLogsApiError(f"Request failed: {exc}", url=url) from exc

		elapsed_ms = round((time.time() - start) * 1000.0, 2)
		logger.debug(f"HTTP RESP: status={resp.status_code} elapsed_ms={elapsed_ms} url={url}")

		if not 200 <= int(resp.status_code) < 300:
			raise TimeLogsApiError(f"HTTP {resp.status_code} from time-logs API", status=int(resp.status_code), url=url)
		try:
			return resp.json()
		except ValueError as exc:
			raise TimeLogsApiError("Response is not valid JSON", status=int(resp.status_code), url=url) from exc


def format_duration(minutes: int) -> str:
	"""Minutes as HH:MM for the table."""
	minutes = max(int(minutes or 0), 0)
	return f"{minutes // 60:02d}:{minutes % 60:02d}"


def total_minutes(rows: Iterable[Dict[str, Any]]) -> int:
	return sum(int(row.get("durationMinutes") or 0) for row in rows)


def table_row(log: Dict[str, Any]) -> Dict[str, Any]:
	"""Flatten one time-log record into the page table's columns."""
	employee = log.get("employee") or {}
	project = log.get("project") or {}
	task = log.get("task") or {}
	raw_date = str(log.get("date") or "")
	return {
		"id": log.get("id"),
		"date": raw_date[:10],
		"employee": f"{employee.get('firstName', '')} {employee.get('lastName', '')}".strip() or "N/A",
		"project": project.get("title") or "N/A",
		"task": task.get("name") or "N/A",
		"duration": format_duration(log.get("durationMinutes") or 0),
		"billing": "Billable" if log.get("billingType") == "BILLABLE" else "Non-Billable",
		"status": str(log.get("status") or ""),
	}
