#!/usr/bin/env python3
"""
CLI utility to apply the SQL files in migrations/ in name order.

Every statement is idempotent (CREATE ... IF NOT EXISTS), so the script
can be re-run safely.

Usage:
    python scripts/init_db.py
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from loguru import logger

from vault_core.infrastructure.postgres import get_db_connection
from vault_core.logging import setup_logging

MIGRATIONS_DIR = ROOT / "migrations"


def apply_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """Execute each .sql file and return the names applied."""
    applied = []
    with get_db_connection() as conn:
        cursor = conn.cursor()
        for sql_file in sorted(migrations_dir.glob("*.sql")):
            logger.info(f"Applying {sql_file.name}")
            cursor.execute(sql_file.read_text())
            applied.append(sql_file.name)
        conn.commit()
    return applied


def main():
    parser = argparse.ArgumentParser(description="Apply database migrations")
    parser.add_argument(
        "--dir",
        type=Path,
        default=MIGRATIONS_DIR,
        help="Directory containing .sql migration files",
    )
    args = parser.parse_args()

    setup_logging()
    applied = apply_migrations(args.dir)
    logger.info(f"Applied {len(applied)} migration file(s)")


if __name__ == "__main__":
    main()
