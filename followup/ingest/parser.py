from __future__ import annotations

from datetime import date
from typing import List, Tuple

from followup.domain.contracts import HeaderMatch, ParsedImport
from followup.errors import HeaderNotFoundError, ImportFileError
from followup.ingest.decoding import decode_with_probe
from followup.ingest.header import header_snippet, locate_header
from followup.ingest.normalizer import (
    DEFAULT_DEPARTMENT,
    MAX_PV_CODE_LENGTH,
    deduplicate_rows,
    normalize_rows,
)
from followup.ingest.records import read_numbered_records, read_records, split_fields
from followup.ingest.schemas import map_columns


def _probe_header(text: str) -> Tuple[List[str], List[int], HeaderMatch] | None:
    lines, line_numbers = read_numbered_records(text)
    match = locate_header(lines)
    if match is None:
        return None
    return lines, line_numbers, match


def parse_import_bytes(
    raw: bytes | None,
    *,
    today: date | None = None,
    max_pv_length: int = MAX_PV_CODE_LENGTH,
    default_department: str = DEFAULT_DEPARTMENT,
) -> ParsedImport:
    """Turn an exported spreadsheet into deduplicated normalized rows.

    Raises ``ImportFileError`` when no file was given and
    ``HeaderNotFoundError`` when neither UTF-8 nor Latin-1 exposes a known
    header row.
    """
    if raw is None:
        raise ImportFileError()
    today = today or date.today()

    encoding, text, probed = decode_with_probe(raw, _probe_header)
    if probed is None:
        raise HeaderNotFoundError(snippet=header_snippet(read_records(text)))
    lines, line_numbers, match = probed

    columns = map_columns(split_fields(lines[match.index]), match.schema)
    rows, skipped = normalize_rows(
        lines,
        match.index,
        columns,
        today=today,
        line_numbers=line_numbers,
        max_pv_length=max_pv_length,
        default_department=default_department,
    )
    unique_rows, duplicates = deduplicate_rows(rows)
    inconsistent = sum(
        1
        for row in unique_rows
        if row.response_date is not None
        and row.request_date is not None
        and row.response_date < row.request_date
    )
    return ParsedImport(
        schema=match.schema,
        encoding=encoding,
        header_index=match.index,
        rows=unique_rows,
        skipped_count=skipped,
        duplicate_count=duplicates,
        inconsistent_dates=inconsistent,
    )
