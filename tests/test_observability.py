import json
import logging
import unittest

from followup.observability import (
    JsonLogFormatter,
    bind_request_id,
    current_request_id,
    new_run_id,
)


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("followup", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class RunIdTest(unittest.TestCase):
    def test_new_run_id_has_prefix(self) -> None:
        run_id = new_run_id("import")
        self.assertTrue(run_id.startswith("import-"))
        self.assertEqual(len(run_id), len("import-") + 12)

    def test_bind_request_id_restores_previous_value(self) -> None:
        self.assertEqual(current_request_id(default="fora"), "fora")
        with bind_request_id("overdue-abc") as bound:
            self.assertEqual(bound, "overdue-abc")
            self.assertEqual(current_request_id(), "overdue-abc")
        self.assertEqual(current_request_id(default="fora"), "fora")


class JsonLogFormatterTest(unittest.TestCase):
    def test_payload_includes_extra_fields_and_bound_id(self) -> None:
        formatter = JsonLogFormatter()
        with bind_request_id("import-123"):
            line = formatter.format(_record("order_import_completed", created_count=2, schema="OLD"))
        payload = json.loads(line)
        self.assertEqual(payload["message"], "order_import_completed")
        self.assertEqual(payload["level"], "info")
        self.assertEqual(payload["logger"], "followup")
        self.assertEqual(payload["request_id"], "import-123")
        self.assertEqual(payload["created_count"], 2)
        self.assertEqual(payload["schema"], "OLD")

    def test_record_request_id_wins(self) -> None:
        formatter = JsonLogFormatter()
        with bind_request_id("import-123"):
            payload = json.loads(formatter.format(_record("order_import_row_failed", request_id="worker-run")))
        self.assertEqual(payload["request_id"], "worker-run")

    def test_non_json_values_are_stringified(self) -> None:
        from datetime import date

        payload = json.loads(JsonLogFormatter().format(_record("x", reference_date=date(2026, 10, 19))))
        self.assertEqual(payload["reference_date"], "2026-10-19")


if __name__ == "__main__":
    unittest.main()
