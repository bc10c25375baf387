from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Dict, List

from followup.domain.contracts import DashboardSummary
from followup.domain.status import OrderStatus, days_overdue, normalize_status
from followup.errors import NotFoundError, UserActionError, ValidationError
from followup.ingest.dates import format_br_date
from followup.ingest.normalizer import DEFAULT_DEPARTMENT, MAX_PV_CODE_LENGTH, is_valid_pv_code
from followup.infrastructure.repositories import (
    CommentRepository,
    FollowUpRequestRepository,
    OrderRepository,
    SettingsRepository,
    UserRepository,
)
from followup.infrastructure.repositories.user_repository import ROLE_PCP, ROLE_SALES


MANUAL_SALESPERSON_FALLBACK = "N/A"


class FollowUpService:
    """Order and follow-up request actions used by the UI layer and the CLI.

    Every mutating method commits on ``db`` before returning.
    """

    def __init__(
        self,
        *,
        max_pv_length: int = MAX_PV_CODE_LENGTH,
        orders: OrderRepository | None = None,
        requests: FollowUpRequestRepository | None = None,
        comments: CommentRepository | None = None,
        users: UserRepository | None = None,
        settings: SettingsRepository | None = None,
    ) -> None:
        self.max_pv_length = max_pv_length
        self.orders = orders or OrderRepository()
        self.requests = requests or FollowUpRequestRepository()
        self.comments = comments or CommentRepository()
        self.users = users or UserRepository()
        self.settings = settings or SettingsRepository()
        self._logger = logging.getLogger("followup")

    def _require_order(self, db, order_id: int) -> dict:
        order = self.orders.get(db, order_id)
        if not order:
            raise NotFoundError(message_key="order_not_found", details=f"order_id={order_id}")
        return order

    def _validate_order_fields(self, db, pv_code: str, client_name: str, *, order_id: int | None = None) -> None:
        if not is_valid_pv_code(pv_code, self.max_pv_length):
            raise ValidationError(code="pv_code_invalid", message_key="pv_code_invalid", details=pv_code)
        if not client_name:
            raise ValidationError(code="client_name_required", message_key="client_name_required")
        existing = self.orders.get_by_pv_code(db, pv_code)
        if existing and existing["id"] != order_id:
            raise UserActionError(
                code="pv_code_duplicated",
                message_key="pv_code_duplicated",
                http_status=409,
                details=pv_code,
            )

    def create_order(
        self,
        db,
        *,
        pv_code: str,
        client_name: str,
        salesperson: str | None = None,
        order_date: date | None = None,
        today: date | None = None,
    ) -> dict:
        pv_code = (pv_code or "").strip()
        client_name = (client_name or "").strip()
        self._validate_order_fields(db, pv_code, client_name)
        order_id = self.orders.create(
            db,
            pv_code=pv_code,
            client_name=client_name,
            salesperson=(salesperson or "").strip() or MANUAL_SALESPERSON_FALLBACK,
            order_date=order_date or today or date.today(),
            status=OrderStatus.PENDENTE,
        )
        db.commit()
        return self.orders.get(db, order_id)

    def update_order_details(
        self,
        db,
        order_id: int,
        *,
        pv_code: str,
        client_name: str,
        salesperson: str | None,
        order_date: date,
    ) -> dict:
        self._require_order(db, order_id)
        pv_code = (pv_code or "").strip()
        client_name = (client_name or "").strip()
        self._validate_order_fields(db, pv_code, client_name, order_id=order_id)
        self.orders.update_details(
            db,
            order_id,
            pv_code=pv_code,
            client_name=client_name,
            salesperson=(salesperson or "").strip() or MANUAL_SALESPERSON_FALLBACK,
            order_date=order_date,
        )
        db.commit()
        return self.orders.get(db, order_id)

    def update_order_status(self, db, order_id: int, status: str, *, today: date | None = None) -> dict:
        normalized = normalize_status(status)
        if normalized is None:
            raise ValidationError(details=f"status={status}")
        self._require_order(db, order_id)

        if normalized == OrderStatus.CONCLUIDO:
            self.orders.update_invoicing(db, order_id, invoiced=True, invoiced_date=today or date.today())
        elif normalized in (OrderStatus.PENDENTE, OrderStatus.RESPONDIDO):
            self.orders.update_invoicing(db, order_id, invoiced=False, invoiced_date=None)
        self.orders.update_status(db, order_id, normalized)
        db.commit()
        return self.orders.get(db, order_id)

    def delete_order(self, db, order_id: int) -> None:
        self._require_order(db, order_id)
        request_ids = self.requests.list_ids_for_order(db, order_id)
        self.comments.delete_for_requests(db, request_ids)
        self.requests.delete_for_order(db, order_id)
        self.orders.delete(db, order_id)
        db.commit()

    def create_followup_request(
        self,
        db,
        order_id: int,
        *,
        requester_id: int | None = None,
        requested_dept: str | None = None,
        notes: str | None = None,
        pcp_email: str | None = None,
        pcp_name: str | None = None,
        today: date | None = None,
    ) -> int:
        self._require_order(db, order_id)
        requester = self.users.get(db, requester_id) if requester_id else None
        if not requester:
            requester = self.users.get_or_create_default(db, ROLE_SALES)

        request_id = self.requests.create(
            db,
            order_id=order_id,
            requester_id=requester["id"],
            requested_dept=(requested_dept or "").strip() or DEFAULT_DEPARTMENT,
            request_date=today or date.today(),
            notes=notes,
            pcp_email=(pcp_email or "").strip() or None,
            pcp_name=(pcp_name or "").strip() or None,
        )
        self.orders.update_status(db, order_id, OrderStatus.PENDENTE)
        db.commit()
        return request_id

    def add_response(
        self,
        db,
        request_id: int,
        *,
        response_text: str,
        forecast_date: date | None,
        today: date | None = None,
    ) -> int:
        request = self.requests.get(db, request_id)
        if not request:
            raise NotFoundError(message_key="request_not_found", details=f"request_id={request_id}")
        text = (response_text or "").strip()
        if not text:
            raise ValidationError(code="response_required", message_key="response_required")

        self.requests.record_response(
            db,
            request_id,
            response_date=today or date.today(),
            forecast_date=forecast_date,
        )
        responder = self.users.get_or_create_default(db, ROLE_PCP)
        content = f"Resposta: {text}."
        if forecast_date is not None:
            content = f"{content} Previsao: {format_br_date(forecast_date)}"
        comment_id = self.comments.create(db, request_id=request_id, author_id=responder["id"], content=content)
        self.orders.update_status(db, request["order_id"], OrderStatus.RESPONDIDO)
        db.commit()
        return comment_id

    def record_overdue_followup(self, db, order_id: int, *, today: date | None = None) -> int:
        """Register a reminder request for an order whose latest forecast has passed."""
        today = today or date.today()
        order = self._require_order(db, order_id)
        latest = self.requests.latest_for_order(db, order_id)
        if not latest:
            raise UserActionError(code="request_missing", message_key="request_missing")
        if latest.get("forecast_date") is None:
            raise UserActionError(code="forecast_missing", message_key="forecast_missing")
        overdue_days = days_overdue(latest["forecast_date"], today)
        if overdue_days <= 0:
            raise UserActionError(code="order_not_overdue", message_key="order_not_overdue")

        pcp_email = latest.get("pcp_email")
        pcp_name = latest.get("pcp_name")
        if not pcp_email:
            settings = self.settings.get(db) or {}
            if settings.get("pcp_email"):
                pcp_email = settings["pcp_email"]
                pcp_name = settings.get("pcp_name") or pcp_name

        unit = "dia" if overdue_days == 1 else "dias"
        request_id = self.requests.create(
            db,
            order_id=order_id,
            requester_id=latest.get("requester_id"),
            requested_dept=latest.get("requested_dept") or DEFAULT_DEPARTMENT,
            request_date=today,
            pcp_email=pcp_email,
            pcp_name=pcp_name,
            notes=f"Cobranca - Prazo vencido ha {overdue_days} {unit}",
        )
        if order["status"] != OrderStatus.ATRASADO:
            self.orders.update_status(db, order_id, OrderStatus.ATRASADO)
        db.commit()
        return request_id

    def mark_overdue_orders(self, db, today: date | None = None) -> int:
        """Promote active orders whose latest forecast is before ``today`` to ATRASADO."""
        today = today or date.today()
        candidates = self.orders.list_overdue_candidates(db, today)
        for candidate in candidates:
            self.orders.update_status(db, candidate["id"], OrderStatus.ATRASADO)
        db.commit()
        self._logger.info(
            "overdue_orders_marked",
            extra={"updated": len(candidates), "reference_date": today.isoformat()},
        )
        return len(candidates)

    def list_delayed_orders(self, db) -> List[dict]:
        return self.orders.list_delayed(db)

    def list_pending_requests(self, db, *, today: date | None = None, min_days: int = 3) -> List[dict]:
        cutoff = (today or date.today()) - timedelta(days=min_days)
        return self.requests.list_pending_older_than(db, cutoff)

    def dashboard_summary(self, db, *, today: date | None = None) -> DashboardSummary:
        today = today or date.today()

        windows = self.requests.list_response_windows(db)
        response_days = [
            ((item["response_date"] or today) - item["request_date"]).days
            for item in windows
            if item["request_date"] is not None
        ]

        lead_days = []
        for item in self.orders.list_lead_time_inputs(db):
            if not item["invoiced"]:
                lead_days.append((today - item["order_date"]).days)
            elif item["invoiced_date"] is not None:
                lead_days.append((item["invoiced_date"] - item["order_date"]).days)

        return DashboardSummary(
            total_orders=self.orders.count_all(db),
            pending_requests=self.requests.count_pending(db),
            invoiced_orders=self.orders.count_invoiced(db),
            avg_response_days=_average(response_days),
            avg_lead_days=_average(lead_days),
        )

    def get_settings(self, db) -> Dict[str, str | None]:
        settings = self.settings.get(db) or {}
        return {"pcp_email": settings.get("pcp_email"), "pcp_name": settings.get("pcp_name")}

    def update_settings(self, db, *, pcp_email: str | None, pcp_name: str | None) -> Dict[str, str | None]:
        saved = self.settings.save(
            db,
            pcp_email=(pcp_email or "").strip() or None,
            pcp_name=(pcp_name or "").strip() or None,
        )
        db.commit()
        return {"pcp_email": saved["pcp_email"], "pcp_name": saved["pcp_name"]}


def _average(values: List[int]) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)
