import os


def _bool_env(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Config:
    BASE_DIR = os.path.dirname(os.path.dirname(__file__))
    DATABASE_URL = os.environ.get("DATABASE_URL")
    DATABASE_DIR = None if DATABASE_URL else os.path.join(BASE_DIR, "database")
    DB_PATH = DATABASE_URL or os.path.join(DATABASE_DIR, "followup_pedidos.db")
    DB_AUTO_INIT = _bool_env("DB_AUTO_INIT", False)

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-followup-pedidos")
    LOG_JSON = _bool_env("LOG_JSON", True)
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    IMPORT_BATCH_SIZE = _int_env("IMPORT_BATCH_SIZE", 50)
    IMPORT_MAX_WORKERS = _int_env("IMPORT_MAX_WORKERS", 4)
    IMPORT_MAX_PV_CODE_LENGTH = _int_env("IMPORT_MAX_PV_CODE_LENGTH", 20)
    IMPORT_DEFAULT_DEPARTMENT = os.environ.get("IMPORT_DEFAULT_DEPARTMENT", "PCP")
    PENDING_RESPONSE_ALERT_DAYS = _int_env("PENDING_RESPONSE_ALERT_DAYS", 3)

    OVERDUE_SCHEDULER_ENABLED = _bool_env("OVERDUE_SCHEDULER_ENABLED", True)
    OVERDUE_SCHEDULER_INTERVAL_SECONDS = _int_env("OVERDUE_SCHEDULER_INTERVAL_SECONDS", 3600)

    def __init__(self):
        env = os.environ.get("FLASK_ENV", "development").lower()
        if env == "production" and not self.DATABASE_URL:
            raise RuntimeError("DATABASE_URL nao definida para ambiente de producao.")
        if env == "production" and self.SECRET_KEY == "dev-secret-followup-pedidos":
            raise RuntimeError("SECRET_KEY insegura para producao.")
