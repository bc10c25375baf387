from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List

from followup.domain.status import ACTIVE_STATUSES, OrderStatus
from followup.infrastructure.repositories.base import (
    BaseRepository,
    chunked,
    placeholders,
    to_db_date,
)


PV_LOOKUP_CHUNK_SIZE = 500

_LATEST_REQUEST_JOIN = """
    {join} followup_requests r ON r.id = (
        SELECT r2.id
        FROM followup_requests r2
        WHERE r2.order_id = o.id
        ORDER BY r2.request_date DESC, r2.id DESC
        LIMIT 1
    )
"""
_JOIN_LATEST_REQUEST = _LATEST_REQUEST_JOIN.format(join="JOIN")
_LEFT_JOIN_LATEST_REQUEST = _LATEST_REQUEST_JOIN.format(join="LEFT JOIN")


class OrderRepository(BaseRepository):
    def get(self, db, order_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM orders
            WHERE id = ?
            LIMIT 1
            """,
            (order_id,),
        ).fetchone()
        return self.row_to_dict(row) if row else None

    def get_by_pv_code(self, db, pv_code: str) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM orders
            WHERE pv_code = ?
            LIMIT 1
            """,
            (pv_code,),
        ).fetchone()
        return self.row_to_dict(row) if row else None

    def map_ids_by_pv_codes(self, db, pv_codes: Iterable[str]) -> Dict[str, int]:
        codes = sorted(set(pv_codes))
        mapping: Dict[str, int] = {}
        for chunk in chunked(codes, PV_LOOKUP_CHUNK_SIZE):
            rows = db.execute(
                f"SELECT id, pv_code FROM orders WHERE pv_code IN ({placeholders(len(chunk))})",
                tuple(chunk),
            ).fetchall()
            for row in rows:
                mapping[row["pv_code"]] = int(row["id"])
        return mapping

    def create(
        self,
        db,
        *,
        pv_code: str,
        client_name: str,
        salesperson: str,
        order_date: date,
        status: str = OrderStatus.PENDENTE,
        invoiced: bool = False,
        invoiced_date: date | None = None,
    ) -> int:
        cursor = db.execute(
            """
            INSERT INTO orders (pv_code, client_name, salesperson, order_date, status, invoiced, invoiced_date)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (
                pv_code,
                client_name,
                salesperson,
                to_db_date(order_date),
                status,
                bool(invoiced),
                to_db_date(invoiced_date),
            ),
        )
        return self.inserted_id(cursor)

    def update_import_fields(
        self,
        db,
        order_id: int,
        *,
        client_name: str,
        salesperson: str,
        status: str,
        invoiced: bool,
        invoiced_date: date | None,
    ) -> None:
        db.execute(
            """
            UPDATE orders
            SET client_name = ?, salesperson = ?, status = ?, invoiced = ?, invoiced_date = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (client_name, salesperson, status, bool(invoiced), to_db_date(invoiced_date), order_id),
        )

    def update_status(self, db, order_id: int, status: str) -> None:
        db.execute(
            """
            UPDATE orders
            SET status = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (status, order_id),
        )

    def update_invoicing(self, db, order_id: int, *, invoiced: bool, invoiced_date: date | None) -> None:
        db.execute(
            """
            UPDATE orders
            SET invoiced = ?, invoiced_date = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (bool(invoiced), to_db_date(invoiced_date), order_id),
        )

    def update_details(
        self,
        db,
        order_id: int,
        *,
        pv_code: str,
        client_name: str,
        salesperson: str,
        order_date: date,
    ) -> None:
        db.execute(
            """
            UPDATE orders
            SET pv_code = ?, client_name = ?, salesperson = ?, order_date = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (pv_code, client_name, salesperson, to_db_date(order_date), order_id),
        )

    def update_text_fields(self, db, order_id: int, *, client_name: str, salesperson: str) -> None:
        db.execute(
            """
            UPDATE orders
            SET client_name = ?, salesperson = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (client_name, salesperson, order_id),
        )

    def delete(self, db, order_id: int) -> None:
        db.execute("DELETE FROM orders WHERE id = ?", (order_id,))

    def list_text_fields(self, db) -> List[dict]:
        rows = db.execute("SELECT id, client_name, salesperson FROM orders ORDER BY id").fetchall()
        return self.rows_to_dicts(rows)

    def list_overdue_candidates(self, db, today: date) -> List[dict]:
        """Active, non-invoiced orders whose latest request forecast is before ``today``."""
        rows = db.execute(
            f"""
            SELECT o.id, o.pv_code, o.status, r.id AS request_id, r.forecast_date
            FROM orders o
            {_JOIN_LATEST_REQUEST}
            WHERE o.invoiced = ?
              AND o.status IN ({placeholders(len(ACTIVE_STATUSES))})
              AND r.forecast_date IS NOT NULL
              AND r.forecast_date < ?
            ORDER BY o.id
            """,
            (False, *ACTIVE_STATUSES, to_db_date(today)),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def list_delayed(self, db) -> List[dict]:
        rows = db.execute(
            f"""
            SELECT o.id, o.pv_code, o.client_name, o.salesperson, o.status,
                   r.id AS request_id, r.forecast_date, r.request_date
            FROM orders o
            {_LEFT_JOIN_LATEST_REQUEST}
            WHERE o.status = ?
            ORDER BY r.forecast_date ASC, o.id ASC
            """,
            (OrderStatus.ATRASADO,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def count_all(self, db) -> int:
        row = db.execute("SELECT COUNT(*) AS total FROM orders").fetchone()
        return int(row["total"])

    def count_invoiced(self, db) -> int:
        row = db.execute("SELECT COUNT(*) AS total FROM orders WHERE invoiced = ?", (True,)).fetchone()
        return int(row["total"])

    def list_lead_time_inputs(self, db) -> List[dict]:
        rows = db.execute(
            """
            SELECT id, order_date, invoiced, invoiced_date
            FROM orders
            WHERE invoiced = ? OR invoiced_date IS NOT NULL
            ORDER BY id
            """,
            (False,),
        ).fetchall()
        return self.rows_to_dicts(rows)
