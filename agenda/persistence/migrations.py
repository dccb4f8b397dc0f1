"""Sequential, idempotent SQL migrations with SHA-256 checksums."""

from __future__ import annotations

import hashlib
import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

from agenda.errors import StoreError

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def _checksum(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def _run_migrations_sync(db_path: str, migrations_dir: Path) -> list[str]:
    """Apply pending ``*.sql`` files in name order; return the names applied.

    Uses plain sqlite3 because aiosqlite's ``executescript`` treats BEGIN/END
    inside trigger bodies as transaction boundaries.
    """
    applied_now: list[str] = []
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS _migrations ("
            "  name TEXT PRIMARY KEY,"
            "  checksum TEXT NOT NULL,"
            "  applied_at TEXT NOT NULL"
            ")"
        )
        conn.commit()

        applied = dict(conn.execute("SELECT name, checksum FROM _migrations").fetchall())

        for sql_file in sorted(migrations_dir.glob("*.sql")):
            name = sql_file.name
            checksum = _checksum(sql_file)
            if name in applied:
                if applied[name] != checksum:
                    raise StoreError(
                        f"migration {name} was modified after being applied "
                        f"(applied={applied[name]}, current={checksum})"
                    )
                continue

            conn.executescript(sql_file.read_text(encoding="utf-8"))
            conn.execute(
                "INSERT OR IGNORE INTO _migrations (name, checksum, applied_at) VALUES (?, ?, ?)",
                (name, checksum, datetime.now(UTC).isoformat()),
            )
            conn.commit()
            applied_now.append(name)
    finally:
        conn.close()
    return applied_now


async def run_migrations(db_path: str, migrations_dir: Path | None = None) -> list[str]:
    """Bring the schema up to date. Fails fast on a checksum mismatch."""
    applied = _run_migrations_sync(db_path, migrations_dir or MIGRATIONS_DIR)
    if applied:
        logger.info("Applied migrations to %s: %s", db_path, ", ".join(applied))
    return applied


__all__ = ["MIGRATIONS_DIR", "run_migrations"]
