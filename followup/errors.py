from __future__ import annotations

from typing import Any, Dict, Sequence

from followup.ui_strings import error_message


class AppError(Exception):
    default_code = "system_error"
    default_message_key = "unexpected_error"
    default_http_status = 500
    default_critical = True

    def __init__(
        self,
        code: str | None = None,
        message_key: str | None = None,
        http_status: int | None = None,
        critical: bool | None = None,
        details: str | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> None:
        self.code = (code or self.default_code).strip()
        self.message_key = (message_key or self.default_message_key).strip()
        self.http_status = int(http_status or self.default_http_status)
        self.critical = bool(self.default_critical if critical is None else critical)
        self.details = (details or "").strip() or None
        self.payload = dict(payload or {})
        super().__init__(self.details or self.code)

    def user_message(self) -> str:
        fallback = error_message("unexpected_error", "Nao foi possivel concluir a operacao.")
        return error_message(self.message_key, fallback)

    def to_response_payload(self, request_id: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error": self.code,
            "message": self.user_message(),
            "request_id": request_id,
        }
        if self.payload:
            payload.update(self.payload)
        return payload


class UserActionError(AppError):
    default_code = "action_invalid"
    default_message_key = "action_invalid"
    default_http_status = 400
    default_critical = False


class ValidationError(UserActionError):
    default_code = "validation_error"
    default_message_key = "status_invalid"
    default_http_status = 400
    default_critical = False


class NotFoundError(UserActionError):
    default_code = "not_found"
    default_message_key = "order_not_found"
    default_http_status = 404
    default_critical = False


class ImportFileError(UserActionError):
    default_code = "import_file_missing"
    default_message_key = "import_file_missing"
    default_http_status = 400
    default_critical = False


class HeaderNotFoundError(ImportFileError):
    default_code = "import_header_not_found"
    default_message_key = "import_header_not_found"

    def __init__(self, snippet: Sequence[str] | None = None, **kwargs: Any) -> None:
        self.snippet = list(snippet or [])
        super().__init__(**kwargs)

    def user_message(self) -> str:
        message = super().user_message()
        return f"{message}\nPrimeiras linhas:\n" + "\n".join(self.snippet)


class SystemError(AppError):
    default_code = "system_error"
    default_message_key = "unexpected_error"
    default_http_status = 500
    default_critical = True
