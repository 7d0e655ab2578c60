from __future__ import annotations

import threading
import time
from pathlib import Path

from printvault.domain.models.category import CATEGORIES, partition_table
from printvault.infrastructure.db.sqlite import get_connection, initialize_schema


def test_connection_enables_wal_and_busy_timeout(tmp_path: Path) -> None:
    db_path = tmp_path / "printvault.db"
    initialize_schema(db_path=db_path)

    with get_connection(db_path) as conn:
        journal_mode = conn.execute("PRAGMA journal_mode;").fetchone()[0]
        busy_timeout = conn.execute("PRAGMA busy_timeout;").fetchone()[0]

    assert str(journal_mode).lower() == "wal"
    assert int(busy_timeout) >= 30_000


def test_schema_creates_unified_partition_and_search_tables(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "printvault.db"
    initialize_schema(db_path=db_path)

    with get_connection(db_path) as conn:
        names = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        }

    assert "resources" in names
    assert "resources_fts" in names
    for category in CATEGORIES:
        assert partition_table(category) in names


def test_initialize_schema_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "printvault.db"
    initialize_schema(db_path=db_path)
    initialize_schema(db_path=db_path)

    with get_connection(db_path) as conn:
        count = conn.execute("SELECT COUNT(*) FROM resources").fetchone()[0]
    assert int(count) == 0


def test_write_waits_for_lock_instead_of_failing_immediately(tmp_path: Path) -> None:
    db_path = tmp_path / "printvault.db"
    initialize_schema(db_path=db_path)

    with get_connection(db_path) as conn:
        conn.execute("CREATE TABLE IF NOT EXISTS lock_test (id INTEGER PRIMARY KEY, value TEXT NOT NULL);")
        conn.commit()

    writer_1 = get_connection(db_path)
    writer_1.execute("BEGIN IMMEDIATE;")
    writer_1.execute("INSERT INTO lock_test (value) VALUES (?)", ("first",))

    out: dict[str, object] = {}

    def _writer_2() -> None:
        started = time.perf_counter()
        try:
            with get_connection(db_path) as conn_2:
                conn_2.execute("INSERT INTO lock_test (value) VALUES (?)", ("second",))
                conn_2.commit()
            out["ok"] = True
        except Exception as exc:  # pragma: no cover
            out["ok"] = False
            out["error"] = str(exc)
        finally:
            out["elapsed"] = time.perf_counter() - started

    t = threading.Thread(target=_writer_2)
    t.start()
    time.sleep(0.25)
    writer_1.commit()
    writer_1.close()
    t.join(timeout=5)

    assert out.get("ok") is True, str(out.get("error"))
    assert float(out.get("elapsed", 0.0)) >= 0.2

    with get_connection(db_path) as conn:
        count = conn.execute("SELECT COUNT(*) FROM lock_test").fetchone()[0]
    assert int(count) == 2
