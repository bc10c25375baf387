import os

from flask import Flask

from followup.config import Config
from followup.db import close_db, init_db
from followup.db_migrations import register_db_cli
from followup.observability import configure_json_logging


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_json_logging(app)

    _ensure_database_dir(app)
    register_db_cli(app)
    _register_commands(app)
    _maybe_init_schema(app)

    _register_scheduler(app)
    app.teardown_appcontext(close_db)
    return app


def _ensure_database_dir(app: Flask) -> None:
    database_dir = app.config.get("DATABASE_DIR")
    if database_dir:
        os.makedirs(database_dir, exist_ok=True)


def _maybe_init_schema(app: Flask) -> None:
    auto_init = bool(app.config.get("DB_AUTO_INIT", False))
    if app.testing:
        auto_init = True
    if not auto_init:
        return

    flask_env = (os.environ.get("FLASK_ENV", "development") or "development").strip().lower()
    if not app.testing and flask_env != "development":
        app.logger.warning("DB_AUTO_INIT ignorado fora de development.")
        return

    with app.app_context():
        init_db()


def _register_commands(app: Flask) -> None:
    from followup.commands import register_followup_cli

    register_followup_cli(app)


def _register_scheduler(app: Flask) -> None:
    from followup.scheduler import start_overdue_scheduler

    start_overdue_scheduler(app)
