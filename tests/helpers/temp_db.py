from __future__ import annotations

import shutil
import sqlite3
import tempfile
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path


_REPO_ROOT = Path(__file__).resolve().parents[2]
_TEMP_ROOT = Path(tempfile.gettempdir()).resolve()


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


def assert_safe_temp_db_path(db_path: str) -> None:
    """Refuse any test database outside TEMP or inside the working tree."""
    resolved = Path(db_path).resolve()
    if not _is_within(resolved, _TEMP_ROOT):
        raise ValueError(f"Temporary DB must live under TEMP: {resolved}")
    if _is_within(resolved, _REPO_ROOT):
        raise ValueError(f"Temporary DB cannot live inside repository: {resolved}")
    if resolved.name == "followup_pedidos.db":
        raise ValueError(f"Temporary DB cannot reuse the application DB name: {resolved}")


def open_sqlite_temp_connection(db_path: str) -> sqlite3.Connection:
    assert_safe_temp_db_path(db_path)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=30.0, isolation_level=None)
    conn.execute("PRAGMA journal_mode=DELETE")
    return conn


def remove_tree_with_retry(path: str, attempts: int = 6, base_delay: float = 0.05) -> None:
    root = Path(path)
    for attempt in range(attempts):
        if not root.exists():
            return
        try:
            shutil.rmtree(root)
            return
        except OSError:
            # sqlite handles from worker threads may still be closing.
            time.sleep(base_delay * (2**attempt))
    shutil.rmtree(root, ignore_errors=True)


@dataclass
class TempDbSandbox:
    prefix: str = "followup_tests"
    db_name: str = "followup_pedidos_test.db"
    temp_dir: str = field(init=False)
    db_path: str = field(init=False)

    def __post_init__(self) -> None:
        folder = _TEMP_ROOT / f"{self.prefix}_{uuid.uuid4().hex}"
        folder.mkdir(parents=True, exist_ok=False)
        self.temp_dir = str(folder)
        self.db_path = str(folder / self.db_name)
        open_sqlite_temp_connection(self.db_path).close()

    def make_config(self, base_config, **overrides):
        attrs = {
            "DATABASE_DIR": self.temp_dir,
            "DB_PATH": self.db_path,
            "OVERDUE_SCHEDULER_ENABLED": False,
            "LOG_JSON": False,
        }
        attrs.update(overrides)
        return type("TempConfig", (base_config,), attrs)

    def cleanup(self) -> None:
        remove_tree_with_retry(self.temp_dir)


def build_temp_app(sandbox: TempDbSandbox, **overrides):
    from followup import create_app
    from followup.config import Config

    attrs = {"TESTING": True}
    attrs.update(overrides)
    return create_app(sandbox.make_config(Config, **attrs))
