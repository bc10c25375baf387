from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Iterator, List, Sequence, TypeVar


T = TypeVar("T")

DATE_COLUMNS = (
    "order_date",
    "invoiced_date",
    "request_date",
    "response_date",
    "forecast_date",
)


def to_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def to_db_date(value: date | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def chunked(values: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


def placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class BaseRepository:
    @staticmethod
    def rows_to_dicts(rows: Iterable[Any]) -> List[dict]:
        return [BaseRepository.row_to_dict(row) for row in rows]

    @staticmethod
    def row_to_dict(row: Any) -> dict:
        data = dict(row)
        for column in DATE_COLUMNS:
            if column in data:
                data[column] = to_date(data[column])
        if "invoiced" in data:
            data["invoiced"] = bool(data["invoiced"])
        return data

    @staticmethod
    def inserted_id(cursor) -> int:
        # fetchall() finalizes the sqlite statement before the caller commits.
        row = cursor.fetchall()[0]
        return int(row["id"] if isinstance(row, dict) else row[0])
