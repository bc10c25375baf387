import unittest
from datetime import date

from followup.domain.status import ImportSchema
from followup.errors import HeaderNotFoundError, ImportFileError
from followup.ingest.parser import parse_import_bytes
from tests.helpers.csv_samples import OLD_HEADER, build_csv, new_csv, new_row, old_csv, old_row


TODAY = date(2026, 10, 19)


class ParseImportBytesTest(unittest.TestCase):
    def test_old_file_with_bom_and_bare_cr_endings(self) -> None:
        raw = b"\xef\xbb\xbf" + old_csv([old_row("1"), old_row("2")], newline="\r")
        parsed = parse_import_bytes(raw, today=TODAY)

        self.assertEqual(parsed.schema, ImportSchema.OLD)
        self.assertEqual(parsed.encoding, "utf-8")
        self.assertEqual(parsed.header_index, 2)
        self.assertEqual([row.pv_code for row in parsed.rows], ["1", "2"])

    def test_header_on_first_line(self) -> None:
        parsed = parse_import_bytes(new_csv([new_row("10")], preamble=()), today=TODAY)
        self.assertEqual(parsed.header_index, 0)
        self.assertEqual(parsed.schema, ImportSchema.NEW)

    def test_quoted_notes_span_lines(self) -> None:
        row = old_row("3", obs='"linha um\nlinha dois"')
        parsed = parse_import_bytes(old_csv([row, old_row("4")], newline="\n"), today=TODAY)

        self.assertEqual([item.pv_code for item in parsed.rows], ["3", "4"])
        self.assertEqual(parsed.rows[0].notes, "linha um\nlinha dois")
        self.assertEqual([item.line_number for item in parsed.rows], [4, 6])

    def test_counts_skipped_duplicates_and_inconsistent_dates(self) -> None:
        raw = old_csv(
            [
                old_row("5", dt_sol="10/10/2026", dt_resp="05/10/2026"),
                old_row("5"),
                old_row(""),
                old_row("6"),
            ]
        )
        parsed = parse_import_bytes(raw, today=TODAY)

        self.assertEqual(len(parsed.rows), 2)
        self.assertEqual(parsed.skipped_count, 1)
        self.assertEqual(parsed.duplicate_count, 1)
        self.assertEqual(parsed.inconsistent_dates, 1)

    def test_missing_file(self) -> None:
        with self.assertRaises(ImportFileError):
            parse_import_bytes(None)

    def test_missing_header_carries_first_lines(self) -> None:
        raw = "\n".join(f"linha {index}" for index in range(7)).encode("utf-8")
        with self.assertRaises(HeaderNotFoundError) as ctx:
            parse_import_bytes(raw, today=TODAY)
        self.assertEqual(ctx.exception.snippet, [f"linha {index}" for index in range(5)])

    def test_empty_file_has_no_header(self) -> None:
        with self.assertRaises(HeaderNotFoundError):
            parse_import_bytes(b"", today=TODAY)

    def test_latin1_old_file_keeps_ascii_columns(self) -> None:
        raw = build_csv(
            OLD_HEADER,
            [old_row("7", cliente="Indústria", previsao="30/10/2026")],
            encoding="latin-1",
        )
        parsed = parse_import_bytes(raw, today=TODAY)

        # The ASCII markers still match under UTF-8, so accented headers are lost.
        self.assertEqual(parsed.encoding, "utf-8")
        self.assertEqual(parsed.rows[0].pv_code, "7")
        self.assertIsNone(parsed.rows[0].forecast_date)


if __name__ == "__main__":
    unittest.main()
