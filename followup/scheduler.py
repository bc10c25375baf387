from __future__ import annotations

import os
import threading
from datetime import date

from flask import Flask

from followup.application.followup_service import FollowUpService
from followup.db import close_db, get_db
from followup.observability import bind_request_id, new_run_id


class OverdueScheduler:
    def __init__(self, app: Flask, service: FollowUpService | None = None) -> None:
        self.app = app
        self.interval_seconds = _int_config(app, "OVERDUE_SCHEDULER_INTERVAL_SECONDS", 3600, 60, 86_400)
        self.service = service or FollowUpService()

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run_loop, name="overdue-scheduler", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self.interval_seconds)

    def run_once(self, today: date | None = None) -> int:
        with self.app.app_context(), bind_request_id(new_run_id("overdue")):
            db = get_db()
            try:
                return self.service.mark_overdue_orders(db, today)
            except Exception:  # noqa: BLE001
                db.rollback()
                self.app.logger.exception("overdue_pass_failed")
                return 0
            finally:
                close_db()


def start_overdue_scheduler(app: Flask) -> OverdueScheduler | None:
    if not _should_start_scheduler(app):
        return None
    scheduler = OverdueScheduler(app)
    scheduler.start()
    app.extensions["overdue_scheduler"] = scheduler
    app.logger.info("Overdue scheduler started: interval=%ss", scheduler.interval_seconds)
    return scheduler


def _should_start_scheduler(app: Flask) -> bool:
    if not app.config.get("OVERDUE_SCHEDULER_ENABLED", False):
        return False
    if app.config.get("TESTING"):
        return False
    if app.debug:
        run_main = os.environ.get("WERKZEUG_RUN_MAIN")
        if run_main and run_main.lower() != "true":
            return False
    return True


def _int_config(app: Flask, key: str, default: int, min_value: int, max_value: int) -> int:
    try:
        value = int(app.config.get(key, default))
    except (TypeError, ValueError):
        value = default
    return max(min_value, min(value, max_value))
