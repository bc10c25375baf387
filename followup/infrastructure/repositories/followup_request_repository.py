from __future__ import annotations

from datetime import date
from typing import List

from followup.infrastructure.repositories.base import BaseRepository, to_db_date


class FollowUpRequestRepository(BaseRepository):
    def create(
        self,
        db,
        *,
        order_id: int,
        requester_id: int | None,
        request_date: date,
        requested_dept: str = "PCP",
        requester_name: str | None = None,
        response_date: date | None = None,
        forecast_date: date | None = None,
        notes: str | None = None,
        pcp_email: str | None = None,
        pcp_name: str | None = None,
    ) -> int:
        cursor = db.execute(
            """
            INSERT INTO followup_requests (
                order_id, requester_id, requester_name, requested_dept, request_date,
                response_date, forecast_date, notes, pcp_email, pcp_name
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (
                order_id,
                requester_id,
                requester_name,
                requested_dept,
                to_db_date(request_date),
                to_db_date(response_date),
                to_db_date(forecast_date),
                notes,
                pcp_email,
                pcp_name,
            ),
        )
        return self.inserted_id(cursor)

    def get(self, db, request_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM followup_requests
            WHERE id = ?
            LIMIT 1
            """,
            (request_id,),
        ).fetchone()
        return self.row_to_dict(row) if row else None

    def latest_for_order(self, db, order_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM followup_requests
            WHERE order_id = ?
            ORDER BY request_date DESC, id DESC
            LIMIT 1
            """,
            (order_id,),
        ).fetchone()
        return self.row_to_dict(row) if row else None

    def list_for_order(self, db, order_id: int) -> List[dict]:
        rows = db.execute(
            """
            SELECT *
            FROM followup_requests
            WHERE order_id = ?
            ORDER BY request_date ASC, id ASC
            """,
            (order_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def list_ids_for_order(self, db, order_id: int) -> List[int]:
        rows = db.execute("SELECT id FROM followup_requests WHERE order_id = ? ORDER BY id", (order_id,)).fetchall()
        return [int(row["id"]) for row in rows]

    def record_response(
        self,
        db,
        request_id: int,
        *,
        response_date: date,
        forecast_date: date | None,
    ) -> None:
        db.execute(
            """
            UPDATE followup_requests
            SET response_date = ?, forecast_date = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (to_db_date(response_date), to_db_date(forecast_date), request_id),
        )

    def list_pending_older_than(self, db, cutoff: date) -> List[dict]:
        """Unanswered requests made before ``cutoff`` on orders not yet invoiced."""
        rows = db.execute(
            """
            SELECT r.id, r.order_id, r.request_date, r.requested_dept, r.requester_name,
                   o.pv_code, o.client_name, u.name AS requester_user_name
            FROM followup_requests r
            JOIN orders o ON o.id = r.order_id
            LEFT JOIN users u ON u.id = r.requester_id
            WHERE r.response_date IS NULL
              AND r.request_date < ?
              AND o.invoiced = ?
            ORDER BY r.request_date ASC, r.id ASC
            """,
            (to_db_date(cutoff), False),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def count_pending(self, db) -> int:
        row = db.execute("SELECT COUNT(*) AS total FROM followup_requests WHERE response_date IS NULL").fetchone()
        return int(row["total"])

    def list_response_windows(self, db) -> List[dict]:
        rows = db.execute("SELECT id, request_date, response_date FROM followup_requests ORDER BY id").fetchall()
        return self.rows_to_dicts(rows)

    def list_all(self, db) -> List[dict]:
        rows = db.execute(
            """
            SELECT id, order_id, request_date, notes
            FROM followup_requests
            ORDER BY order_id ASC, id ASC
            """
        ).fetchall()
        return self.rows_to_dicts(rows)

    def update_notes(self, db, request_id: int, notes: str | None) -> None:
        db.execute(
            """
            UPDATE followup_requests
            SET notes = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (notes, request_id),
        )

    def delete(self, db, request_id: int) -> None:
        db.execute("DELETE FROM followup_requests WHERE id = ?", (request_id,))

    def delete_for_order(self, db, order_id: int) -> None:
        db.execute("DELETE FROM followup_requests WHERE order_id = ?", (order_id,))
