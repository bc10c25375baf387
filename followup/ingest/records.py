from __future__ import annotations

import re
from typing import Iterable, List, Tuple


FIELD_DELIMITER = ";"

_LINE_BREAK_PATTERN = re.compile(r"\r\n|\n|\r")


def split_physical_lines(text: str) -> List[str]:
    return _LINE_BREAK_PATTERN.split(text)


def reassemble_numbered_records(lines: Iterable[str]) -> Tuple[List[str], List[int]]:
    """Merge physical lines that belong to one quoted field.

    A record is complete once its accumulated text holds an even number of
    double quotes. An unterminated quote at end of input keeps accumulating
    and the partial record is never emitted.

    Returns the records and, for each one, the 1-based physical line it
    starts on.
    """
    records: List[str] = []
    starts: List[int] = []
    current = ""
    start = 0
    for number, line in enumerate(lines, start=1):
        if current:
            current = f"{current}\n{line}"
        else:
            current = line
            start = number
        if current.count('"') % 2 == 0:
            records.append(current)
            starts.append(start)
            current = ""
    return records, starts


def reassemble_records(lines: Iterable[str]) -> List[str]:
    return reassemble_numbered_records(lines)[0]


def split_fields(line: str) -> List[str]:
    return line.split(FIELD_DELIMITER)


def field_at(fields: List[str], index: int) -> str:
    if index < 0 or index >= len(fields):
        return ""
    return fields[index]


def read_records(text: str) -> List[str]:
    return reassemble_records(split_physical_lines(text))


def read_numbered_records(text: str) -> Tuple[List[str], List[int]]:
    return reassemble_numbered_records(split_physical_lines(text))
