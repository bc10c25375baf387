from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

# Permite executar este script diretamente sem configurar PYTHONPATH manualmente.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from followup.application.import_service import run_import
from followup.config import Config
from followup.db import _connect_database, init_schema


def _config_mapping(db_path: str) -> dict:
    mapping = {key: getattr(Config, key) for key in dir(Config) if key.isupper()}
    mapping["DB_PATH"] = db_path
    return mapping


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Importa a planilha de follow-up (layout antigo ou novo) para a base de pedidos."
    )
    parser.add_argument("csv_path", help="Arquivo CSV separado por ';'.")
    parser.add_argument("--db", default=Config.DB_PATH, help="SQLite DB path ou URL postgres.")
    parser.add_argument("--date", dest="reference_date", help="Data de referencia (YYYY-MM-DD).")
    parser.add_argument("--init-schema", action="store_true", help="Cria as tabelas antes de importar.")
    args = parser.parse_args()

    csv_path = Path(args.csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(csv_path)
    today = date.fromisoformat(args.reference_date) if args.reference_date else None

    db = _connect_database(args.db)
    try:
        if args.init_schema:
            init_schema(db)
        result = run_import(db, _config_mapping(args.db), csv_path.read_bytes(), today=today)
    finally:
        db.close()

    print(result.message)
    if result.success:
        print(
            f"Ignoradas: {result.skipped_count} | Repetidas: {result.duplicate_count} "
            f"| Falhas: {result.failed_count} | Layout: {result.schema} ({result.encoding})"
        )
    for pv_code, error in result.failures:
        print(f"  PV {pv_code}: {error}", file=sys.stderr)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
