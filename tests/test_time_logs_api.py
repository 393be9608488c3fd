from __future__ import annotations

import unittest
from datetime import date
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import requests

from services.app_config import TimeLogsApiConfig
from services.date_range import DateRange
from services.time_logs_api import (
    TimeLogsApi,
    TimeLogsApiError,
    build_query,
    format_duration,
    normalize_items,
    table_row,
    total_minutes,
)

JANUARY = DateRange(date(2025, 1, 1), date(2025, 1, 31))

LOG = {
    "id": "tl-1",
    "date": "2025-01-14T00:00:00.000Z",
    "durationMinutes": 135,
    "billingType": "BILLABLE",
    "status": "APPROVED",
    "project": {"id": "p1", "title": "Payroll revamp"},
    "task": {"id": "t1", "name": "API review"},
    "employee": {"id": "e1", "firstName": "Ada", "lastName": "Lovelace"},
}


def _response(status: int = 200, payload=None, *, bad_json: bool = False) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    if bad_json:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    return resp


class NormalizeItemsTests(unittest.TestCase):
    def test_known_envelopes(self) -> None:
        for payload in (
            [LOG],
            {"items": [LOG]},
            {"data": [LOG]},
            {"data": {"items": [LOG]}},
            {"data": {"data": [LOG]}},
            {"data": {"data": {"items": [LOG]}}},
        ):
            self.assertEqual(normalize_items(payload), [LOG], payload)

    def test_non_dict_rows_are_dropped(self) -> None:
        self.assertEqual(normalize_items({"data": [LOG, None, "x"]}), [LOG])

    def test_unknown_envelope_raises(self) -> None:
        for payload in ({}, {"data": None}, "nope", {"rows": []}):
            with self.assertRaises(TimeLogsApiError):
                normalize_items(payload)


class QueryTests(unittest.TestCase):
    def test_build_query_repeats_multi_value_params(self) -> None:
        params = build_query(JANUARY, project_ids=["p1", "p2"], status="PENDING", client_names=["Acme"])
        self.assertEqual(params[:2], [("startDate", "2025-01-01"), ("endDate", "2025-01-31")])
        self.assertIn(("status", "PENDING"), params)
        self.assertIn(("projectIds", "p1"), params)
        self.assertIn(("projectIds", "p2"), params)
        self.assertIn(("clientNames", "Acme"), params)
        self.assertNotIn("billingType", [k for k, _ in params])


class ClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock(spec=requests.Session)
        config = TimeLogsApiConfig(base_url="http://api.local/api/v1/", headers={"Authorization": "Bearer x"}, timeout_s=3.0)
        self.api = TimeLogsApi(config, session=self.session)

    def test_list_time_logs_sends_iso_dates(self) -> None:
        self.session.get.return_value = _response(200, {"data": [LOG]})
        rows = self.api.list_time_logs(JANUARY, user_ids=["u1"])

        self.assertEqual(rows, [LOG])
        url = self.session.get.call_args.args[0]
        parsed = urlparse(url)
        self.assertEqual(parsed.path, "/api/v1/time-logs")
        query = parse_qs(parsed.query)
        self.assertEqual(query["startDate"], ["2025-01-01"])
        self.assertEqual(query["endDate"], ["2025-01-31"])
        self.assertEqual(query["userIds"], ["u1"])
        kwargs = self.session.get.call_args.kwargs
        self.assertEqual(kwargs["timeout"], 3.0)
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer x"})

    def test_http_error_status(self) -> None:
        self.session.get.return_value = _response(500, {"message": "boom"})
        with self.assertRaises(TimeLogsApiError) as cm:
            self.api.list_time_logs(JANUARY)
        self.assertEqual(cm.exception.status, 500)

    def test_transport_error(self) -> None:
        self.session.get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(TimeLogsApiError):
            self.api.list_time_logs(JANUARY)

    def test_invalid_json(self) -> None:
        self.session.get.return_value = _response(200, bad_json=True)
        with self.assertRaises(TimeLogsApiError):
            self.api.list_time_logs(JANUARY)

    def test_close_closes_session(self) -> None:
        self.api.close()
        self.session.close.assert_called_once()


class TableHelpersTests(unittest.TestCase):
    def test_table_row(self) -> None:
        row = table_row(LOG)
        self.assertEqual(row["date"], "2025-01-14")
        self.assertEqual(row["employee"], "Ada Lovelace")
        self.assertEqual(row["duration"], "02:15")
        self.assertEqual(row["billing"], "Billable")

    def test_table_row_missing_relations(self) -> None:
        row = table_row({"id": "x", "durationMinutes": 5, "billingType": "NON_BILLABLE"})
        self.assertEqual(row["project"], "N/A")
        self.assertEqual(row["employee"], "N/A")
        self.assertEqual(row["billing"], "Non-Billable")

    def test_totals(self) -> None:
        self.assertEqual(total_minutes([LOG, {"durationMinutes": 45}, {}]), 180)
        self.assertEqual(format_duration(0), "00:00")
        self.assertEqual(format_duration(605), "10:05")


if __name__ == "__main__":
    unittest.main()
