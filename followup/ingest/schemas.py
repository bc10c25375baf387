from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Sequence, Tuple

from followup.domain.status import ImportSchema


ABSENT = -1

MATCH_EXACT = "exact"
MATCH_CONTAINS = "contains"


@dataclass(frozen=True)
class FieldRule:
    field: str
    labels: Tuple[str, ...]
    match: str = MATCH_EXACT

    def matches(self, header_cell: str) -> bool:
        cell = header_cell.strip()
        if self.match == MATCH_CONTAINS:
            return any(label in cell for label in self.labels)
        return cell in self.labels


@dataclass(frozen=True)
class SchemaLayout:
    schema: str
    rules: Tuple[FieldRule, ...]
    # OLD exports carry the invoice date in the column right after "Faturado".
    invoice_date_offset: int | None = None
    creates_request_without_forecast: bool = False


OLD_LAYOUT = SchemaLayout(
    schema=ImportSchema.OLD,
    rules=(
        FieldRule("pv", ("PV",)),
        FieldRule("client", ("Cliente",)),
        FieldRule("salesperson", ("Vend.",)),
        FieldRule("requester", ("Solicitante",)),
        FieldRule("requested_dept", ("Solicitado",)),
        FieldRule("request_date", ("Dt. Sol.",)),
        FieldRule("response_date", ("Dt. Resp.",)),
        FieldRule("order_date", ("Data Ped.",)),
        FieldRule("forecast_date", ("Previsão",)),
        FieldRule("notes", ("Observação",)),
        FieldRule("invoiced_flag", ("Faturado",)),
    ),
    invoice_date_offset=1,
    creates_request_without_forecast=True,
)

NEW_LAYOUT = SchemaLayout(
    schema=ImportSchema.NEW,
    rules=(
        FieldRule("pv", ("Número", "Numero"), MATCH_CONTAINS),
        FieldRule("client", ("Cliente",)),
        FieldRule("salesperson", ("Vendedor",)),
        FieldRule("order_date", ("Dt. Cadastro",)),
        FieldRule("nfe_number", ("Nro. Nfe.",)),
        FieldRule("nfe_date", ("Dt. Nfe.",)),
        FieldRule("departure_date", ("Saída", "Saida"), MATCH_CONTAINS),
        FieldRule("forecast_date", ("Dt. Prev. Fechamento",)),
    ),
)

LAYOUTS: Dict[str, SchemaLayout] = {
    ImportSchema.OLD: OLD_LAYOUT,
    ImportSchema.NEW: NEW_LAYOUT,
}


@dataclass(frozen=True)
class ColumnMap:
    schema: str
    pv: int = ABSENT
    client: int = ABSENT
    salesperson: int = ABSENT
    requester: int = ABSENT
    requested_dept: int = ABSENT
    request_date: int = ABSENT
    response_date: int = ABSENT
    order_date: int = ABSENT
    forecast_date: int = ABSENT
    notes: int = ABSENT
    invoiced_flag: int = ABSENT
    nfe_number: int = ABSENT
    nfe_date: int = ABSENT
    departure_date: int = ABSENT

    @property
    def layout(self) -> SchemaLayout:
        return LAYOUTS[self.schema]

    @property
    def invoice_date_index(self) -> int:
        offset = self.layout.invoice_date_offset
        if offset is None or self.invoiced_flag == ABSENT:
            return ABSENT
        return self.invoiced_flag + offset


def get_layout(schema: str) -> SchemaLayout:
    try:
        return LAYOUTS[schema]
    except KeyError:
        raise ValueError(f"Layout de importacao desconhecido: {schema}") from None


def map_columns(header_fields: Sequence[str], schema: str) -> ColumnMap:
    """Resolve each field of ``schema`` to the first header cell it matches."""
    layout = get_layout(schema)
    positions: Dict[str, int] = {}
    for rule in layout.rules:
        for index, cell in enumerate(header_fields):
            if rule.matches(cell):
                positions[rule.field] = index
                break
    return replace(ColumnMap(schema=schema), **positions)
