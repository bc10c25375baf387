from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Callable, Dict, List, Sequence, Tuple

from followup.db import Database, open_database
from followup.domain.contracts import ImportResult, NormalizedRow, ParsedImport
from followup.errors import AppError, HeaderNotFoundError
from followup.ingest.normalizer import DEFAULT_DEPARTMENT, MAX_PV_CODE_LENGTH
from followup.ingest.parser import parse_import_bytes
from followup.ingest.schemas import get_layout
from followup.infrastructure.repositories import FollowUpRequestRepository, OrderRepository, UserRepository
from followup.infrastructure.repositories.user_repository import ROLE_SALES
from followup.observability import bind_request_id, current_request_id, new_run_id


IMPORTED_REQUEST_NOTE = "Importado via Planilha Geral"

OUTCOME_CREATED = "created"
OUTCOME_UPDATED = "updated"
OUTCOME_FAILED = "failed"

RowOutcome = Tuple[NormalizedRow, str, str | None]


class _ThreadConnections:
    """One write connection per worker thread, closed together at the end of a run."""

    def __init__(self, connect: Callable[[], Database]) -> None:
        self._connect = connect
        self._local = threading.local()
        self._lock = threading.Lock()
        self._opened: List[Database] = []

    def get(self) -> Database:
        db = getattr(self._local, "db", None)
        if db is None:
            db = self._connect()
            self._local.db = db
            with self._lock:
                self._opened.append(db)
        return db

    def close_all(self) -> None:
        with self._lock:
            opened, self._opened = self._opened, []
        for db in opened:
            db.close()


class OrderImportService:
    def __init__(
        self,
        connect: Callable[[], Database],
        *,
        batch_size: int = 50,
        max_workers: int = 4,
        max_pv_length: int = MAX_PV_CODE_LENGTH,
        default_department: str = DEFAULT_DEPARTMENT,
        order_repository: OrderRepository | None = None,
        request_repository: FollowUpRequestRepository | None = None,
    ) -> None:
        self.connect = connect
        self.batch_size = max(1, int(batch_size))
        self.max_workers = max(1, int(max_workers))
        self.max_pv_length = int(max_pv_length)
        self.default_department = default_department
        self.orders = order_repository or OrderRepository()
        self.requests = request_repository or FollowUpRequestRepository()
        self._logger = logging.getLogger("followup")

    @classmethod
    def from_config(cls, config) -> "OrderImportService":
        db_path = config["DB_PATH"]
        return cls(
            lambda: open_database(db_path, transactional=True),
            batch_size=_clamp(config.get("IMPORT_BATCH_SIZE"), 50, 1, 1000),
            max_workers=_clamp(config.get("IMPORT_MAX_WORKERS"), 4, 1, 32),
            max_pv_length=_clamp(config.get("IMPORT_MAX_PV_CODE_LENGTH"), MAX_PV_CODE_LENGTH, 1, 255),
            default_department=str(config.get("IMPORT_DEFAULT_DEPARTMENT") or DEFAULT_DEPARTMENT),
        )

    def import_bytes(self, raw: bytes | None, requester_id: int, *, today: date | None = None) -> ImportResult:
        """Parse and reconcile one exported file. Never raises; failures come back in the result."""
        today = today or date.today()
        with bind_request_id(new_run_id("import")):
            try:
                parsed = parse_import_bytes(
                    raw,
                    today=today,
                    max_pv_length=self.max_pv_length,
                    default_department=self.default_department,
                )
            except HeaderNotFoundError as exc:
                self._logger.warning(
                    "order_import_header_not_found",
                    extra={"snippet_lines": len(exc.snippet)},
                )
                return ImportResult.failure(exc.user_message())
            except AppError as exc:
                self._logger.warning("order_import_rejected", extra={"error_code": exc.code})
                return ImportResult.failure(exc.user_message())
            except Exception as exc:  # noqa: BLE001
                self._logger.exception("order_import_parse_failed")
                return ImportResult.failure(str(exc))
            return self.reconcile(parsed, requester_id)

    def reconcile(self, parsed: ParsedImport, requester_id: int) -> ImportResult:
        self._logger.info(
            "order_import_schema_detected",
            extra={
                "schema": parsed.schema,
                "encoding": parsed.encoding,
                "header_index": parsed.header_index,
                "rows": len(parsed.rows),
                "skipped": parsed.skipped_count,
                "duplicates": parsed.duplicate_count,
            },
        )
        if parsed.inconsistent_dates:
            self._logger.warning(
                "order_import_response_before_request",
                extra={"rows": parsed.inconsistent_dates},
            )

        try:
            existing = self._load_existing_ids(parsed.rows)
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("order_import_lookup_failed")
            return ImportResult.failure(str(exc))

        try:
            outcomes = self._write_batches(parsed.rows, existing, requester_id)
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("order_import_write_failed")
            return ImportResult.failure(str(exc))
        created = sum(1 for _, outcome, _ in outcomes if outcome == OUTCOME_CREATED)
        updated = sum(1 for _, outcome, _ in outcomes if outcome == OUTCOME_UPDATED)
        failures = [(row.pv_code, error or "") for row, outcome, error in outcomes if outcome == OUTCOME_FAILED]

        result = ImportResult(
            success=True,
            created_count=created,
            updated_count=updated,
            skipped_count=parsed.skipped_count,
            duplicate_count=parsed.duplicate_count,
            failed_count=len(failures),
            failures=failures,
            schema=parsed.schema,
            encoding=parsed.encoding,
        )
        self._logger.info(
            "order_import_completed",
            extra={
                "schema": parsed.schema,
                "created_count": created,
                "updated_count": updated,
                "skipped": parsed.skipped_count,
                "duplicates": parsed.duplicate_count,
                "failed": len(failures),
            },
        )
        return result

    def _load_existing_ids(self, rows: Sequence[NormalizedRow]) -> Dict[str, int]:
        db = self.connect()
        try:
            return self.orders.map_ids_by_pv_codes(db, [row.pv_code for row in rows])
        finally:
            db.close()

    def _write_batches(
        self,
        rows: Sequence[NormalizedRow],
        existing: Dict[str, int],
        requester_id: int,
    ) -> List[RowOutcome]:
        connections = _ThreadConnections(self.connect)
        run_id = current_request_id()
        outcomes: List[RowOutcome] = []
        executor = None
        if self.max_workers > 1 and len(rows) > 1:
            executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="order-import")
        try:
            for start in range(0, len(rows), self.batch_size):
                batch = rows[start : start + self.batch_size]
                if executor is None:
                    outcomes.extend(
                        self._write_row(connections, row, existing.get(row.pv_code), requester_id, run_id)
                        for row in batch
                    )
                    continue
                futures = [
                    executor.submit(
                        self._write_row,
                        connections,
                        row,
                        existing.get(row.pv_code),
                        requester_id,
                        run_id,
                    )
                    for row in batch
                ]
                outcomes.extend(future.result() for future in futures)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)
            connections.close_all()
        return outcomes

    def _write_row(
        self,
        connections: _ThreadConnections,
        row: NormalizedRow,
        existing_id: int | None,
        requester_id: int,
        run_id: str,
    ) -> RowOutcome:
        try:
            db = connections.get()
        except Exception as exc:  # noqa: BLE001
            return self._row_failed(row, exc, run_id)
        try:
            if existing_id is not None:
                self._update_order(db, existing_id, row)
                outcome = OUTCOME_UPDATED
            else:
                self._create_order(db, row, requester_id)
                outcome = OUTCOME_CREATED
            db.commit()
        except Exception as exc:  # noqa: BLE001
            try:
                db.rollback()
            except Exception:  # noqa: BLE001
                self._logger.exception(
                    "order_import_rollback_failed",
                    extra={"request_id": run_id, "pv_code": row.pv_code},
                )
            return self._row_failed(row, exc, run_id)
        return row, outcome, None

    def _row_failed(self, row: NormalizedRow, exc: Exception, run_id: str) -> RowOutcome:
        self._logger.warning(
            "order_import_row_failed",
            extra={
                "request_id": run_id,
                "pv_code": row.pv_code,
                "line_number": row.line_number,
                "error": str(exc)[:300],
            },
        )
        return row, OUTCOME_FAILED, str(exc)

    def _update_order(self, db: Database, order_id: int, row: NormalizedRow) -> None:
        self.orders.update_import_fields(
            db,
            order_id,
            client_name=row.client_name,
            salesperson=row.salesperson,
            status=row.status,
            invoiced=row.invoiced,
            invoiced_date=row.invoiced_date,
        )

    def _create_order(self, db: Database, row: NormalizedRow, requester_id: int) -> None:
        order_id = self.orders.create(
            db,
            pv_code=row.pv_code,
            client_name=row.client_name,
            salesperson=row.salesperson,
            order_date=row.order_date,
            status=row.status,
            invoiced=row.invoiced,
            invoiced_date=row.invoiced_date,
        )
        layout = get_layout(row.schema)
        if layout.creates_request_without_forecast:
            self.requests.create(
                db,
                order_id=order_id,
                requester_id=requester_id,
                requester_name=row.requester_name,
                requested_dept=row.requested_dept or self.default_department,
                request_date=row.request_date or row.order_date,
                response_date=row.response_date,
                forecast_date=row.forecast_date,
                notes=row.notes,
            )
        elif row.forecast_date is not None:
            self.requests.create(
                db,
                order_id=order_id,
                requester_id=requester_id,
                requested_dept=self.default_department,
                request_date=row.order_date,
                forecast_date=row.forecast_date,
                notes=IMPORTED_REQUEST_NOTE,
            )


def _clamp(value, default: int, min_value: int, max_value: int) -> int:
    try:
        parsed = int(value if value is not None else default)
    except (TypeError, ValueError):
        parsed = default
    return max(min_value, min(parsed, max_value))


def run_import(db, config, raw: bytes | None, *, today: date | None = None) -> ImportResult:
    """Import ``raw`` on behalf of the default salesperson."""
    requester = UserRepository().get_or_create_default(db, ROLE_SALES)
    db.commit()
    service = OrderImportService.from_config(config)
    return service.import_bytes(raw, int(requester["id"]), today=today)
