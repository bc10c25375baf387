import unittest

from followup.errors import (
    AppError,
    HeaderNotFoundError,
    ImportFileError,
    NotFoundError,
    SystemError as FollowUpSystemError,
    UserActionError,
    ValidationError,
)
from followup.ui_strings import error_message


class AppErrorTest(unittest.TestCase):
    def test_defaults(self) -> None:
        error = AppError()
        self.assertEqual(error.code, "system_error")
        self.assertEqual(error.http_status, 500)
        self.assertTrue(error.critical)
        self.assertEqual(error.user_message(), error_message("unexpected_error"))

    def test_user_errors_are_not_critical(self) -> None:
        for cls, status in ((UserActionError, 400), (ValidationError, 400), (NotFoundError, 404)):
            with self.subTest(cls=cls.__name__):
                error = cls()
                self.assertFalse(error.critical)
                self.assertEqual(error.http_status, status)

    def test_system_error_is_critical(self) -> None:
        error = FollowUpSystemError(details="falha inesperada")
        self.assertTrue(error.critical)
        self.assertEqual(error.http_status, 500)
        self.assertEqual(error.user_message(), error_message("unexpected_error"))

    def test_unknown_message_key_falls_back(self) -> None:
        error = UserActionError(message_key="sem_traducao")
        self.assertEqual(error.user_message(), error_message("unexpected_error"))

    def test_response_payload(self) -> None:
        error = NotFoundError(message_key="request_not_found", payload={"request_id_ref": 7})
        payload = error.to_response_payload("req-1")
        self.assertEqual(payload["error"], "not_found")
        self.assertEqual(payload["message"], error_message("request_not_found"))
        self.assertEqual(payload["request_id"], "req-1")
        self.assertEqual(payload["request_id_ref"], 7)

    def test_details_become_exception_text(self) -> None:
        self.assertEqual(str(ValidationError(details=" status=X ")), "status=X")
        self.assertEqual(str(ValidationError()), "validation_error")


class ImportErrorsTest(unittest.TestCase):
    def test_missing_file_message(self) -> None:
        self.assertEqual(ImportFileError().user_message(), "Nenhum arquivo enviado")

    def test_header_not_found_lists_first_lines(self) -> None:
        error = HeaderNotFoundError(snippet=["linha 1", "linha 2"])
        self.assertIsInstance(error, ImportFileError)
        self.assertEqual(error.code, "import_header_not_found")
        self.assertEqual(
            error.user_message(),
            error_message("import_header_not_found") + "\nPrimeiras linhas:\nlinha 1\nlinha 2",
        )


if __name__ == "__main__":
    unittest.main()
