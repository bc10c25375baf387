from __future__ import annotations

from typing import List, Sequence

from followup.domain.contracts import HeaderMatch
from followup.domain.status import ImportSchema


SNIPPET_LINES = 5

_CLIENT_MARKER = "Cliente"
_OLD_KEY_MARKER = "PV"
_NEW_KEY_MARKERS = ("Número", "Numero")


def classify_header_line(line: str) -> str | None:
    if _CLIENT_MARKER not in line:
        return None
    if _OLD_KEY_MARKER in line:
        return ImportSchema.OLD
    if any(marker in line for marker in _NEW_KEY_MARKERS):
        return ImportSchema.NEW
    return None


def locate_header(lines: Sequence[str]) -> HeaderMatch | None:
    for index, line in enumerate(lines):
        schema = classify_header_line(line)
        if schema is not None:
            return HeaderMatch(index=index, schema=schema)
    return None


def header_snippet(lines: Sequence[str], limit: int = SNIPPET_LINES) -> List[str]:
    return list(lines[:limit])
