from __future__ import annotations

from datetime import date
from typing import Iterable, List, Sequence, Tuple

from followup.domain.contracts import NormalizedRow
from followup.domain.status import ImportSchema, derive_status
from followup.ingest.dates import parse_br_date
from followup.ingest.records import field_at, split_fields
from followup.ingest.schemas import ColumnMap


MAX_PV_CODE_LENGTH = 20
DEFAULT_DEPARTMENT = "PCP"
UNKNOWN_CLIENT = "Cliente Desconhecido"
UNKNOWN_SALESPERSON = "Vendedor Desconhecido"
NFE_PLACEHOLDERS = {"0", "0,00"}


def is_valid_pv_code(value: str | None, max_length: int = MAX_PV_CODE_LENGTH) -> bool:
    pv_code = (value or "").strip()
    if not pv_code:
        return False
    # Date-looking values come from rows shifted one column to the left.
    if "/" in pv_code:
        return False
    return len(pv_code) <= max_length


def strip_enclosing_quotes(value: str) -> str:
    if value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def _detect_invoicing_old(fields: Sequence[str], columns: ColumnMap) -> Tuple[bool, date | None]:
    flag = field_at(fields, columns.invoiced_flag).strip().lower()
    invoiced = flag == "sim"
    if not invoiced:
        return False, None
    return True, parse_br_date(field_at(fields, columns.invoice_date_index))


def _detect_invoicing_new(fields: Sequence[str], columns: ColumnMap, today: date) -> Tuple[bool, date | None]:
    nfe_number = field_at(fields, columns.nfe_number).strip()
    departure = field_at(fields, columns.departure_date).strip()
    has_nfe = bool(nfe_number) and nfe_number not in NFE_PLACEHOLDERS
    if not (has_nfe or departure):
        return False, None
    invoiced_date = (
        parse_br_date(field_at(fields, columns.nfe_date))
        or parse_br_date(departure)
        or today
    )
    return True, invoiced_date


def normalize_row(
    fields: Sequence[str],
    columns: ColumnMap,
    *,
    today: date,
    line_number: int = 0,
    max_pv_length: int = MAX_PV_CODE_LENGTH,
    default_department: str = DEFAULT_DEPARTMENT,
) -> NormalizedRow | None:
    """Build one ``NormalizedRow`` or return ``None`` when the key is unusable."""
    pv_code = field_at(fields, columns.pv).strip()
    if not is_valid_pv_code(pv_code, max_pv_length):
        return None

    client_name = field_at(fields, columns.client).strip() or UNKNOWN_CLIENT
    salesperson = field_at(fields, columns.salesperson).strip() or UNKNOWN_SALESPERSON
    order_date = parse_br_date(field_at(fields, columns.order_date)) or today
    forecast_date = parse_br_date(field_at(fields, columns.forecast_date))

    if columns.schema == ImportSchema.OLD:
        invoiced, invoiced_date = _detect_invoicing_old(fields, columns)
        response_date = parse_br_date(field_at(fields, columns.response_date))
        request_date = parse_br_date(field_at(fields, columns.request_date)) or today
        requester_name = field_at(fields, columns.requester).strip() or None
        requested_dept = field_at(fields, columns.requested_dept).strip() or default_department
        notes = strip_enclosing_quotes(field_at(fields, columns.notes).strip())
    else:
        invoiced, invoiced_date = _detect_invoicing_new(fields, columns, today)
        response_date = None
        request_date = order_date
        requester_name = None
        requested_dept = default_department
        notes = None

    status = derive_status(
        invoiced=invoiced,
        forecast_date=forecast_date,
        response_date=response_date,
        today=today,
    )
    return NormalizedRow(
        pv_code=pv_code,
        client_name=client_name,
        salesperson=salesperson,
        order_date=order_date,
        invoiced=invoiced,
        invoiced_date=invoiced_date,
        forecast_date=forecast_date,
        status=status,
        schema=columns.schema,
        requester_name=requester_name,
        requested_dept=requested_dept,
        request_date=request_date,
        response_date=response_date,
        notes=notes,
        line_number=line_number,
    )


def normalize_rows(
    lines: Sequence[str],
    header_index: int,
    columns: ColumnMap,
    *,
    today: date,
    line_numbers: Sequence[int] | None = None,
    max_pv_length: int = MAX_PV_CODE_LENGTH,
    default_department: str = DEFAULT_DEPARTMENT,
) -> Tuple[List[NormalizedRow], int]:
    """Normalize every data line after the header.

    Returns ``(rows, skipped_count)``. Blank lines are ignored and not counted.
    ``line_numbers`` gives the physical line each record starts on; without it
    the record position is used.
    """
    rows: List[NormalizedRow] = []
    skipped = 0
    for index in range(header_index + 1, len(lines)):
        line = lines[index].strip()
        if not line:
            continue
        row = normalize_row(
            split_fields(line),
            columns,
            today=today,
            line_number=line_numbers[index] if line_numbers is not None else index + 1,
            max_pv_length=max_pv_length,
            default_department=default_department,
        )
        if row is None:
            skipped += 1
            continue
        rows.append(row)
    return rows, skipped


def deduplicate_rows(rows: Iterable[NormalizedRow]) -> Tuple[List[NormalizedRow], int]:
    unique: List[NormalizedRow] = []
    seen: set[str] = set()
    duplicates = 0
    for row in rows:
        if row.pv_code in seen:
            duplicates += 1
            continue
        seen.add(row.pv_code)
        unique.append(row)
    return unique, duplicates
