from __future__ import annotations

import os
import sqlite3
from pathlib import Path

from printvault.domain.models.category import CATEGORIES, partition_table

DEFAULT_SQLITE_CONNECT_TIMEOUT_SECONDS = 30.0
DEFAULT_SQLITE_BUSY_TIMEOUT_MS = 30_000

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

RESOURCE_COLUMNS: tuple[str, ...] = (
    "id",
    "title",
    "slug",
    "category",
    "tags_json",
    "description",
    "preview_url",
    "drive_pdf_id",
    "drive_cdr_id",
    "drive_ai_id",
    "drive_svg_id",
    "drive_eps_id",
    "formats_json",
    "featured",
    "download_count",
    "created_at",
    "updated_at",
)


def _read_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _sqlite_connect_timeout_seconds() -> float:
    return _read_float_env(
        "PRINTVAULT_SQLITE_CONNECT_TIMEOUT_SECONDS", DEFAULT_SQLITE_CONNECT_TIMEOUT_SECONDS
    )


def _sqlite_busy_timeout_ms() -> int:
    return _read_int_env("PRINTVAULT_SQLITE_BUSY_TIMEOUT_MS", DEFAULT_SQLITE_BUSY_TIMEOUT_MS)


def _configure_connection(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA journal_mode = WAL;")
    conn.execute("PRAGMA synchronous = NORMAL;")
    conn.execute(f"PRAGMA busy_timeout = {_sqlite_busy_timeout_ms()};")


def get_connection(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, timeout=_sqlite_connect_timeout_seconds())
    conn.row_factory = sqlite3.Row
    _configure_connection(conn)
    return conn


def initialize_schema(db_path: Path, schema_path: Path = SCHEMA_PATH) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with get_connection(db_path) as conn:
        conn.executescript(schema_path.read_text(encoding="utf-8"))
        _create_partition_tables(conn)
        conn.commit()


def _partition_ddl(table: str) -> str:
    # Partitions mirror the unified table; slug uniqueness is enforced there.
    return f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            slug TEXT NOT NULL,
            category TEXT NOT NULL,
            tags_json TEXT NOT NULL DEFAULT '[]',
            description TEXT NOT NULL,
            preview_url TEXT NOT NULL DEFAULT '',
            drive_pdf_id TEXT,
            drive_cdr_id TEXT,
            drive_ai_id TEXT,
            drive_svg_id TEXT,
            drive_eps_id TEXT,
            formats_json TEXT NOT NULL DEFAULT '[]',
            featured INTEGER NOT NULL DEFAULT 0,
            download_count INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_{table}_slug ON {table}(slug);
        CREATE INDEX IF NOT EXISTS idx_{table}_created_at ON {table}(created_at);
        CREATE INDEX IF NOT EXISTS idx_{table}_download_count ON {table}(download_count);
    """


def _create_partition_tables(conn: sqlite3.Connection) -> None:
    for category in CATEGORIES:
        conn.executescript(_partition_ddl(partition_table(category)))
