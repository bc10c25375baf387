import unittest
from datetime import date

from followup.domain.status import ImportSchema, OrderStatus, derive_status
from followup.ingest.dates import format_br_date, parse_br_date
from followup.ingest.normalizer import (
    UNKNOWN_CLIENT,
    UNKNOWN_SALESPERSON,
    deduplicate_rows,
    is_valid_pv_code,
    normalize_row,
    normalize_rows,
    strip_enclosing_quotes,
)
from followup.ingest.records import split_fields
from followup.ingest.schemas import map_columns
from tests.helpers.csv_samples import NEW_HEADER, OLD_HEADER, new_row, old_row


TODAY = date(2026, 10, 19)
OLD_COLUMNS = map_columns(list(OLD_HEADER), ImportSchema.OLD)
NEW_COLUMNS = map_columns(list(NEW_HEADER), ImportSchema.NEW)


def _old(line: str, **kwargs):
    return normalize_row(split_fields(line), OLD_COLUMNS, today=TODAY, **kwargs)


def _new(line: str, **kwargs):
    return normalize_row(split_fields(line), NEW_COLUMNS, today=TODAY, **kwargs)


class BrazilianDateTest(unittest.TestCase):
    def test_parses_day_month_year(self) -> None:
        self.assertEqual(parse_br_date("05/11/2026"), date(2026, 11, 5))
        self.assertEqual(parse_br_date(" 5/1/2026 "), date(2026, 1, 5))

    def test_ignores_time_suffix(self) -> None:
        self.assertEqual(parse_br_date("05/11/2026 14:30:00"), date(2026, 11, 5))
        self.assertEqual(parse_br_date("06/10/2025 00:00:00"), date(2025, 10, 6))

    def test_rejects_malformed_values(self) -> None:
        for value in (None, "", "   ", "2026-11-05", "05/11", "aa/bb/cccc", "05/11/2026/1"):
            with self.subTest(value=value):
                self.assertIsNone(parse_br_date(value))

    def test_invalid_calendar_date_is_none(self) -> None:
        self.assertIsNone(parse_br_date("31/02/2026"))
        self.assertIsNone(parse_br_date("10/13/2026"))

    def test_out_of_range_year_is_none(self) -> None:
        self.assertIsNone(parse_br_date("01/01/99999999999999999999"))
        self.assertIsNone(parse_br_date("01/01/0"))

    def test_format(self) -> None:
        self.assertEqual(format_br_date(date(2026, 3, 7)), "07/03/2026")
        self.assertEqual(format_br_date(None), "")


class StatusDerivationTest(unittest.TestCase):
    def test_invoiced_wins_over_everything(self) -> None:
        status = derive_status(
            invoiced=True,
            forecast_date=date(2026, 1, 1),
            response_date=date(2026, 1, 2),
            today=TODAY,
        )
        self.assertEqual(status, OrderStatus.CONCLUIDO)

    def test_past_forecast_is_late_even_with_response(self) -> None:
        status = derive_status(
            invoiced=False,
            forecast_date=date(2026, 10, 18),
            response_date=date(2026, 10, 1),
            today=TODAY,
        )
        self.assertEqual(status, OrderStatus.ATRASADO)

    def test_forecast_today_is_not_late(self) -> None:
        status = derive_status(invoiced=False, forecast_date=TODAY, response_date=None, today=TODAY)
        self.assertEqual(status, OrderStatus.PENDENTE)

    def test_response_without_late_forecast(self) -> None:
        status = derive_status(
            invoiced=False,
            forecast_date=date(2026, 11, 1),
            response_date=date(2026, 10, 2),
            today=TODAY,
        )
        self.assertEqual(status, OrderStatus.RESPONDIDO)


class PvCodeTest(unittest.TestCase):
    def test_valid_and_invalid_codes(self) -> None:
        self.assertTrue(is_valid_pv_code("12345"))
        self.assertTrue(is_valid_pv_code("x" * 20))
        self.assertFalse(is_valid_pv_code("x" * 21))
        self.assertFalse(is_valid_pv_code(""))
        self.assertFalse(is_valid_pv_code("   "))
        self.assertFalse(is_valid_pv_code("01/10/2026"))

    def test_custom_max_length(self) -> None:
        self.assertFalse(is_valid_pv_code("123456", 5))
        self.assertTrue(is_valid_pv_code("12345", 5))


class OldRowNormalizationTest(unittest.TestCase):
    def test_full_row(self) -> None:
        row = _old(
            old_row(
                "1001",
                dt_resp="03/10/2026",
                previsao="30/10/2026",
                obs='"Aguardando materia-prima"',
            ),
            line_number=7,
        )
        self.assertEqual(row.pv_code, "1001")
        self.assertEqual(row.client_name, "Metalurgica Alfa")
        self.assertEqual(row.salesperson, "Carlos")
        self.assertEqual(row.order_date, date(2026, 9, 28))
        self.assertEqual(row.request_date, date(2026, 10, 1))
        self.assertEqual(row.response_date, date(2026, 10, 3))
        self.assertEqual(row.forecast_date, date(2026, 10, 30))
        self.assertEqual(row.requester_name, "Ana")
        self.assertEqual(row.requested_dept, "PCP")
        self.assertEqual(row.notes, "Aguardando materia-prima")
        self.assertEqual(row.status, OrderStatus.RESPONDIDO)
        self.assertFalse(row.invoiced)
        self.assertIsNone(row.invoiced_date)
        self.assertEqual(row.schema, ImportSchema.OLD)
        self.assertEqual(row.line_number, 7)

    def test_invoiced_uses_column_after_flag(self) -> None:
        row = _old(old_row("1002", faturado=" SIM ", dt_fat="10/10/2026"))
        self.assertTrue(row.invoiced)
        self.assertEqual(row.invoiced_date, date(2026, 10, 10))
        self.assertEqual(row.status, OrderStatus.CONCLUIDO)

    def test_invoiced_without_date(self) -> None:
        row = _old(old_row("1003", faturado="Sim"))
        self.assertTrue(row.invoiced)
        self.assertIsNone(row.invoiced_date)

    def test_other_flag_values_mean_not_invoiced(self) -> None:
        for flag in ("Nao", "", "S", "yes"):
            with self.subTest(flag=flag):
                self.assertFalse(_old(old_row("1004", faturado=flag, dt_fat="10/10/2026")).invoiced)

    def test_fallbacks(self) -> None:
        row = _old(old_row("1005", cliente=" ", vendedor="", solicitante="", solicitado="", dt_sol="", data_ped="xx"))
        self.assertEqual(row.client_name, UNKNOWN_CLIENT)
        self.assertEqual(row.salesperson, UNKNOWN_SALESPERSON)
        self.assertIsNone(row.requester_name)
        self.assertEqual(row.requested_dept, "PCP")
        self.assertEqual(row.request_date, TODAY)
        self.assertEqual(row.order_date, TODAY)

    def test_custom_default_department(self) -> None:
        row = _old(old_row("1006", solicitado=""), default_department="Engenharia")
        self.assertEqual(row.requested_dept, "Engenharia")

    def test_nao_with_forecast_yesterday_is_late(self) -> None:
        row = _old(old_row("1009", faturado="Não", previsao="18/10/2026"))
        self.assertFalse(row.invoiced)
        self.assertEqual(row.status, OrderStatus.ATRASADO)

    def test_sim_wins_over_late_forecast(self) -> None:
        row = _old(old_row("1010", faturado="Sim", previsao="01/01/2026"))
        self.assertEqual(row.status, OrderStatus.CONCLUIDO)

    def test_late_forecast(self) -> None:
        self.assertEqual(_old(old_row("1007", previsao="18/10/2026")).status, OrderStatus.ATRASADO)

    def test_short_row_reads_missing_cells_as_empty(self) -> None:
        row = _old("1008;Cliente Curto")
        self.assertEqual(row.client_name, "Cliente Curto")
        self.assertEqual(row.salesperson, UNKNOWN_SALESPERSON)
        self.assertIsNone(row.forecast_date)
        self.assertEqual(row.notes, "")
        self.assertEqual(row.status, OrderStatus.PENDENTE)

    def test_invalid_key_returns_none(self) -> None:
        self.assertIsNone(_old(old_row("")))
        self.assertIsNone(_old(old_row("28/09/2026")))
        self.assertIsNone(_old(old_row("9" * 21)))


class StripQuotesTest(unittest.TestCase):
    def test_only_enclosing_pair_is_removed(self) -> None:
        self.assertEqual(strip_enclosing_quotes('"abc"'), "abc")
        self.assertEqual(strip_enclosing_quotes('"a "b" c"'), 'a "b" c')
        self.assertEqual(strip_enclosing_quotes('"abc'), '"abc')
        self.assertEqual(strip_enclosing_quotes("abc"), "abc")


class NewRowNormalizationTest(unittest.TestCase):
    def test_open_order(self) -> None:
        row = _new(new_row("2001", previsao="25/10/2026"))
        self.assertEqual(row.pv_code, "2001")
        self.assertEqual(row.client_name, "Construtora Beta")
        self.assertEqual(row.salesperson, "Paula")
        self.assertEqual(row.order_date, date(2026, 9, 15))
        self.assertEqual(row.request_date, date(2026, 9, 15))
        self.assertEqual(row.forecast_date, date(2026, 10, 25))
        self.assertFalse(row.invoiced)
        self.assertIsNone(row.response_date)
        self.assertIsNone(row.notes)
        self.assertEqual(row.requested_dept, "PCP")
        self.assertEqual(row.status, OrderStatus.PENDENTE)

    def test_nfe_number_with_date(self) -> None:
        row = _new(new_row("2002", nfe="4471", dt_nfe="12/10/2026", dt_saida="13/10/2026"))
        self.assertTrue(row.invoiced)
        self.assertEqual(row.invoiced_date, date(2026, 10, 12))
        self.assertEqual(row.status, OrderStatus.CONCLUIDO)

    def test_departure_only_uses_departure_date(self) -> None:
        row = _new(new_row("2003", dt_saida="14/10/2026"))
        self.assertTrue(row.invoiced)
        self.assertEqual(row.invoiced_date, date(2026, 10, 14))

    def test_nfe_without_any_date_uses_today(self) -> None:
        row = _new(new_row("2004", nfe="99"))
        self.assertTrue(row.invoiced)
        self.assertEqual(row.invoiced_date, TODAY)

    def test_placeholder_nfe_numbers_are_not_invoices(self) -> None:
        for placeholder in ("0", "0,00", " 0 "):
            with self.subTest(nfe=placeholder):
                row = _new(new_row("2005", nfe=placeholder, dt_nfe="12/10/2026"))
                self.assertFalse(row.invoiced)
                self.assertIsNone(row.invoiced_date)

    def test_past_forecast_is_late(self) -> None:
        self.assertEqual(_new(new_row("2006", previsao="01/10/2026")).status, OrderStatus.ATRASADO)


class NormalizeRowsTest(unittest.TestCase):
    def test_counts_skipped_rows_and_ignores_blank_lines(self) -> None:
        lines = [
            "preambulo",
            ";".join(OLD_HEADER),
            old_row("1"),
            "",
            "   ",
            old_row(""),
            old_row("01/10/2026"),
            old_row("2"),
        ]
        rows, skipped = normalize_rows(lines, 1, OLD_COLUMNS, today=TODAY)
        self.assertEqual([row.pv_code for row in rows], ["1", "2"])
        self.assertEqual([row.line_number for row in rows], [3, 8])
        self.assertEqual(skipped, 2)

    def test_header_only_file_has_no_rows(self) -> None:
        rows, skipped = normalize_rows([";".join(NEW_HEADER)], 0, NEW_COLUMNS, today=TODAY)
        self.assertEqual(rows, [])
        self.assertEqual(skipped, 0)

    def test_deduplicate_keeps_first_occurrence(self) -> None:
        first = _old(old_row("7", cliente="Primeiro"))
        second = _old(old_row("8"))
        third = _old(old_row("7", cliente="Segundo"))
        unique, duplicates = deduplicate_rows([first, second, third])
        self.assertEqual([row.pv_code for row in unique], ["7", "8"])
        self.assertEqual(unique[0].client_name, "Primeiro")
        self.assertEqual(duplicates, 1)


if __name__ == "__main__":
    unittest.main()
