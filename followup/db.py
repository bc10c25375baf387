import sqlite3
from typing import Iterable

try:
    import psycopg2
    import psycopg2.extras
except ImportError:  # pragma: no cover - optional dependency for postgres
    psycopg2 = None

from flask import current_app, g


SQLITE_BUSY_TIMEOUT_SECONDS = 30.0


class Database:
    def __init__(self, backend: str, connection):
        self.backend = backend
        self._conn = connection

    def execute(self, sql: str, params: Iterable | None = None):
        if self.backend == "postgres":
            cursor = self._conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            if params:
                sql = _convert_qmark_to_pg(sql)
                cursor.execute(sql, list(params))
            else:
                cursor.execute(sql)
            return cursor
        return self._conn.execute(sql, params or ())

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._conn.close()


def _convert_qmark_to_pg(sql: str) -> str:
    return sql.replace("?", "%s")


def _connect_database(db_path: str, *, transactional: bool = False) -> Database:
    """Open a connection for ``db_path``.

    ``transactional`` connections group several statements into one unit of
    work: postgres leaves autocommit off and sqlite takes the write lock at
    ``BEGIN IMMEDIATE`` so concurrent writers wait on the busy timeout.
    """
    if db_path.lower().startswith("postgres"):
        if psycopg2 is None:
            raise RuntimeError("psycopg2 nao instalado.")
        conn = psycopg2.connect(db_path)
        conn.autocommit = not transactional
        return Database("postgres", conn)

    if transactional:
        conn = sqlite3.connect(
            db_path,
            timeout=SQLITE_BUSY_TIMEOUT_SECONDS,
            isolation_level="IMMEDIATE",
            check_same_thread=False,
        )
    else:
        conn = sqlite3.connect(db_path, timeout=SQLITE_BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    return Database("sqlite", conn)


def open_database(db_path: str, *, transactional: bool = False) -> Database:
    return _connect_database(db_path, transactional=transactional)


def get_db():
    if "db" not in g:
        db_path = current_app.config["DB_PATH"]
        g.db = _connect_database(db_path)
    return g.db


def close_db(_error=None):
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db():
    init_schema(get_db())


def init_schema(db: Database) -> None:
    if db.backend == "postgres":
        _init_db_postgres(db)
    else:
        _init_db_sqlite(db)
    db.commit()


def _init_db_sqlite(db: Database):
    db.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            role TEXT NOT NULL DEFAULT 'VENDAS' CHECK (
                role IN ('VENDAS','PCP','ADMIN')
            ),
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS orders (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            pv_code TEXT NOT NULL UNIQUE,
            client_name TEXT NOT NULL,
            salesperson TEXT NOT NULL,
            order_date TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'PENDENTE' CHECK (
                status IN ('PENDENTE','RESPONDIDO','ATRASADO','CONCLUIDO')
            ),
            invoiced INTEGER NOT NULL DEFAULT 0,
            invoiced_date TEXT,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS followup_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            order_id INTEGER NOT NULL REFERENCES orders (id),
            requester_id INTEGER REFERENCES users (id),
            requester_name TEXT,
            requested_dept TEXT NOT NULL DEFAULT 'PCP',
            request_date TEXT NOT NULL,
            response_date TEXT,
            forecast_date TEXT,
            notes TEXT,
            pcp_email TEXT,
            pcp_name TEXT,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS comments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            request_id INTEGER NOT NULL REFERENCES followup_requests (id),
            author_id INTEGER REFERENCES users (id),
            content TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS settings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            pcp_email TEXT,
            pcp_name TEXT,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute("CREATE INDEX IF NOT EXISTS idx_orders_status ON orders (status)")
    db.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_followup_requests_order_date
        ON followup_requests (order_id, request_date)
        """
    )
    db.execute("CREATE INDEX IF NOT EXISTS idx_comments_request ON comments (request_id)")


def _init_db_postgres(db: Database) -> None:
    db.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            role TEXT NOT NULL DEFAULT 'VENDAS' CHECK (
                role IN ('VENDAS','PCP','ADMIN')
            ),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS orders (
            id SERIAL PRIMARY KEY,
            pv_code TEXT NOT NULL UNIQUE,
            client_name TEXT NOT NULL,
            salesperson TEXT NOT NULL,
            order_date DATE NOT NULL,
            status TEXT NOT NULL DEFAULT 'PENDENTE' CHECK (
                status IN ('PENDENTE','RESPONDIDO','ATRASADO','CONCLUIDO')
            ),
            invoiced BOOLEAN NOT NULL DEFAULT FALSE,
            invoiced_date DATE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS followup_requests (
            id SERIAL PRIMARY KEY,
            order_id INTEGER NOT NULL REFERENCES orders (id),
            requester_id INTEGER REFERENCES users (id),
            requester_name TEXT,
            requested_dept TEXT NOT NULL DEFAULT 'PCP',
            request_date DATE NOT NULL,
            response_date DATE,
            forecast_date DATE,
            notes TEXT,
            pcp_email TEXT,
            pcp_name TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS comments (
            id SERIAL PRIMARY KEY,
            request_id INTEGER NOT NULL REFERENCES followup_requests (id),
            author_id INTEGER REFERENCES users (id),
            content TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS settings (
            id SERIAL PRIMARY KEY,
            pcp_email TEXT,
            pcp_name TEXT,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )

    db.execute("CREATE INDEX IF NOT EXISTS idx_orders_status ON orders (status)")
    db.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_followup_requests_order_date
        ON followup_requests (order_id, request_date)
        """
    )
    db.execute("CREATE INDEX IF NOT EXISTS idx_comments_request ON comments (request_id)")

