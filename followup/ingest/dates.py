from __future__ import annotations

from datetime import date


def parse_br_date(value: str | None) -> date | None:
    """Parse ``dd/mm/yyyy`` with an optional time suffix; anything else is ``None``."""
    text = (value or "").strip()
    if not text:
        return None
    parts = text.split(" ")[0].strip().split("/")
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(part) for part in parts)
        return date(year, month, day)
    except (ValueError, OverflowError):
        return None


def format_br_date(value: date | None) -> str:
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")
