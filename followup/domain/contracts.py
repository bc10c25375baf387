from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Tuple

from followup.ui_strings import success_message


@dataclass(frozen=True)
class HeaderMatch:
    index: int
    schema: str


@dataclass(frozen=True)
class NormalizedRow:
    pv_code: str
    client_name: str
    salesperson: str
    order_date: date
    invoiced: bool
    invoiced_date: date | None
    forecast_date: date | None
    status: str
    schema: str
    requester_name: str | None = None
    requested_dept: str | None = None
    request_date: date | None = None
    response_date: date | None = None
    notes: str | None = None
    line_number: int = 0


@dataclass(frozen=True)
class ParsedImport:
    schema: str
    encoding: str
    header_index: int
    rows: List[NormalizedRow]
    skipped_count: int = 0
    duplicate_count: int = 0
    inconsistent_dates: int = 0


@dataclass(frozen=True)
class ImportResult:
    success: bool
    created_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    duplicate_count: int = 0
    failed_count: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)
    schema: str | None = None
    encoding: str | None = None
    error_message: str | None = None

    @classmethod
    def failure(cls, message: str) -> "ImportResult":
        return cls(success=False, error_message=message)

    @property
    def message(self) -> str:
        if not self.success:
            return self.error_message or ""
        template = success_message(
            "import_completed",
            "Importacao concluida! {created} novos pedidos, {updated} atualizados.",
        )
        return template.format(created=self.created_count, updated=self.updated_count)

    def to_payload(self) -> Dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error_message}
        return {
            "success": True,
            "created_count": self.created_count,
            "updated_count": self.updated_count,
            "skipped_count": self.skipped_count,
            "duplicate_count": self.duplicate_count,
            "failed_count": self.failed_count,
            "failures": [{"pv_code": pv_code, "error": error} for pv_code, error in self.failures],
            "schema": self.schema,
            "encoding": self.encoding,
            "message": self.message,
        }


@dataclass(frozen=True)
class DashboardSummary:
    total_orders: int
    pending_requests: int
    invoiced_orders: int
    avg_response_days: float
    avg_lead_days: float

    def to_payload(self) -> Dict[str, Any]:
        return {
            "total_orders": self.total_orders,
            "pending_requests": self.pending_requests,
            "invoiced_orders": self.invoiced_orders,
            "avg_response_days": self.avg_response_days,
            "avg_lead_days": self.avg_lead_days,
        }
