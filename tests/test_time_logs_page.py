from __future__ import annotations

import unittest
from datetime import date
from unittest.mock import MagicMock

import requests
from loguru import logger

from pages.time_logs import report_load_failure
from services.app_config import TimeLogsApiConfig
from services.date_range import DateRange
from services.logging_setup import get_error_popup_events_since, get_latest_error_popup_event_id, install_error_popup_sink, log_timing
from services.time_logs_api import TimeLogsApi, TimeLogsApiError

JANUARY = DateRange(date(2025, 1, 1), date(2025, 1, 31))


class LoadFailureReportingTests(unittest.TestCase):
    def setUp(self) -> None:
        sink_id = install_error_popup_sink(enqueue=False)
        self.addCleanup(logger.remove, sink_id)
        self.session = MagicMock(spec=requests.Session)
        self.api = TimeLogsApi(TimeLogsApiConfig(base_url="http://api.local/api/v1"), session=self.session)
        self.last_seen = get_latest_error_popup_event_id()

    def _toasts(self) -> list:
        _, events = get_error_popup_events_since(self.last_seen)
        return events

    def test_unavailable_backend_shows_one_message(self) -> None:
        resp = MagicMock()
        resp.status_code = 503
        self.session.get.return_value = resp
        notify = MagicMock()

        with self.assertRaises(TimeLogsApiError) as cm:
            self.api.list_time_logs(JANUARY)
        report_load_failure(JANUARY, cm.exception, notify=notify)

        notify.assert_called_once()
        self.assertIn("503", notify.call_args.args[0])
        self.assertEqual(notify.call_args.kwargs["type"], "negative")
        self.assertEqual(self._toasts(), [])

    def test_unhandled_block_failure_still_reaches_toasts(self) -> None:
        with self.assertRaises(ValueError):
            with log_timing("import_rows", source="upload.csv"):
                raise ValueError("bad row")

        events = self._toasts()
        self.assertEqual(len(events), 1)
        self.assertIn("[import_rows] - failed", events[0]["message"])
        self.assertIn("bad row", events[0]["message"])


if __name__ == "__main__":
    unittest.main()
