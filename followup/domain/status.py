from __future__ import annotations

from datetime import date


class OrderStatus:
    PENDENTE = "PENDENTE"
    RESPONDIDO = "RESPONDIDO"
    ATRASADO = "ATRASADO"
    CONCLUIDO = "CONCLUIDO"


ORDER_STATUSES = (
    OrderStatus.PENDENTE,
    OrderStatus.RESPONDIDO,
    OrderStatus.ATRASADO,
    OrderStatus.CONCLUIDO,
)

# Statuses the overdue pass may still promote to ATRASADO.
ACTIVE_STATUSES = (OrderStatus.PENDENTE, OrderStatus.RESPONDIDO)


class ImportSchema:
    OLD = "OLD"
    NEW = "NEW"


def normalize_status(value: str | None) -> str | None:
    status = str(value or "").strip().upper()
    return status if status in ORDER_STATUSES else None


def derive_status(
    *,
    invoiced: bool,
    forecast_date: date | None,
    response_date: date | None,
    today: date,
) -> str:
    """Lifecycle status of an imported order.

    Priority: invoiced wins, then a forecast strictly before ``today``, then a
    recorded response. ``response_date`` is only ever set for OLD rows.
    """
    if invoiced:
        return OrderStatus.CONCLUIDO
    if is_overdue(forecast_date, today):
        return OrderStatus.ATRASADO
    if response_date is not None:
        return OrderStatus.RESPONDIDO
    return OrderStatus.PENDENTE


def is_overdue(forecast_date: date | None, today: date) -> bool:
    return forecast_date is not None and forecast_date < today


def days_overdue(forecast_date: date | None, today: date) -> int:
    if not is_overdue(forecast_date, today):
        return 0
    return (today - forecast_date).days
