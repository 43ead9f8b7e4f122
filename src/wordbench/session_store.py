"""DuckDB-backed store for bench sessions.

Manages a single DuckDB file (``bench.duckdb`` by default) holding every
harness run ("session"):

    bench_session_info  free-form key/value metadata per session (upsert)
    bench_run           one row per raw trial outcome (append-only)
    _schema_version     schema version tracking

Session ids are epoch seconds at mint time, bumped until unused, so ids sort
by start time. Writers are the run CLI only; reporting opens read-only.
"""
from __future__ import annotations

import contextlib
import importlib
import time
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from wordbench.outcomes import TrialOutcome

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")

SCHEMA_VERSION = "1.0.0"

_SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS _schema_version (
    table_name VARCHAR PRIMARY KEY,
    version VARCHAR NOT NULL
);

CREATE TABLE IF NOT EXISTS bench_session_info (
    session_id UBIGINT NOT NULL,
    name VARCHAR NOT NULL,
    value VARCHAR NOT NULL,
    PRIMARY KEY (session_id, name)
);

CREATE TABLE IF NOT EXISTS bench_run (
    session_id UBIGINT NOT NULL,
    bench VARCHAR NOT NULL,
    duration DOUBLE NOT NULL,
    found_at INTEGER,
    err VARCHAR
);
CREATE INDEX IF NOT EXISTS idx_bench_run_bench ON bench_run(bench, session_id);
"""


class PersistenceError(RuntimeError):
    """Raised when the session store cannot be read or written."""


class SchemaVersionError(RuntimeError):
    """Raised when a session DB schema version does not match expected."""


def session_started_at(session_id: int) -> datetime:
    """Wall-clock start of a session (ids are epoch seconds)."""
    return datetime.fromtimestamp(session_id, UTC)


class SessionStore:
    """Read/write interface to a bench session database."""

    def __init__(
        self,
        db_path: Path | str,
        *,
        read_only: bool = False,
    ) -> None:
        self._db_path = Path(db_path)
        if read_only and not self._db_path.exists():
            raise FileNotFoundError(f"Bench database not found: {self._db_path}")
        with self._wrap_errors("open"):
            self._conn: Any = _duckdb_mod.connect(str(self._db_path), read_only=read_only)
        try:
            if read_only:
                self._check_schema_version()
            else:
                self._create_schema()
        except (PersistenceError, SchemaVersionError):
            self.close()
            raise

    @classmethod
    def in_memory(cls) -> SessionStore:
        return cls(":memory:")

    @contextlib.contextmanager
    def _wrap_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except _duckdb_mod.Error as exc:
            raise PersistenceError(f"Bench DB {action} failed ({self._db_path}): {exc}") from exc

    def _create_schema(self) -> None:
        with self._wrap_errors("schema setup"):
            for stmt in _SCHEMA_DDL.split(";"):
                stmt = stmt.strip()
                if stmt:
                    self._conn.execute(stmt)
            self._conn.execute(
                "INSERT INTO _schema_version VALUES ('bench', ?) ON CONFLICT DO NOTHING",
                [SCHEMA_VERSION],
            )
        self._check_schema_version()

    def _check_schema_version(self) -> None:
        with self._wrap_errors("schema check"):
            row = self._conn.execute(
                "SELECT version FROM _schema_version WHERE table_name = 'bench'"
            ).fetchone()
        actual = str(row[0]) if row else "unknown"
        if actual != SCHEMA_VERSION:
            raise SchemaVersionError(
                f"Schema version mismatch in {self._db_path}: "
                f"expected {SCHEMA_VERSION}, got {actual}"
            )

    # ─── Sessions ─────────────────────────────────────────────────

    def _session_exists(self, session_id: int) -> bool:
        row = self._conn.execute(
            """
            SELECT 1 FROM bench_session_info WHERE session_id = ?
            UNION ALL
            SELECT 1 FROM bench_run WHERE session_id = ?
            LIMIT 1
            """,
            [session_id, session_id],
        ).fetchone()
        return row is not None

    def new_session_id(self, *, now: float | None = None) -> int:
        session_id = int(time.time() if now is None else now)
        with self._wrap_errors("session id"):
            while self._session_exists(session_id):
                session_id += 1
        return session_id

    def list_sessions(self) -> list[tuple[int, int]]:
        """(session id, distinct bench count), newest first.

        Sessions with metadata but no trial rows report zero benches.
        """
        with self._wrap_errors("list sessions"):
            rows = self._conn.execute("""
                SELECT s.session_id, COUNT(DISTINCT r.bench)
                FROM (
                    SELECT session_id FROM bench_session_info
                    UNION
                    SELECT session_id FROM bench_run
                ) AS s
                LEFT JOIN bench_run AS r ON r.session_id = s.session_id
                GROUP BY s.session_id
                ORDER BY s.session_id DESC
            """).fetchall()
        return [(int(r[0]), int(r[1])) for r in rows]

    # ─── Metadata ─────────────────────────────────────────────────

    def set_info(self, session_id: int, name: str, value: str) -> None:
        with self._wrap_errors("set info"):
            self._conn.execute(
                """
                INSERT INTO bench_session_info (session_id, name, value)
                VALUES (?, ?, ?)
                ON CONFLICT (session_id, name) DO UPDATE SET value = excluded.value
                """,
                [session_id, name, value],
            )

    def get_info(self, session_id: int, name: str) -> str:
        """Metadata value, or an empty string when unset."""
        with self._wrap_errors("get info"):
            row = self._conn.execute(
                "SELECT value FROM bench_session_info WHERE session_id = ? AND name = ?",
                [session_id, name],
            ).fetchone()
        return str(row[0]) if row else ""

    def get_all_info(self, session_id: int) -> dict[str, str]:
        with self._wrap_errors("get all info"):
            rows = self._conn.execute(
                "SELECT name, value FROM bench_session_info WHERE session_id = ? ORDER BY name",
                [session_id],
            ).fetchall()
        return {str(name): str(value) for name, value in rows}

    # ─── Trial rows ───────────────────────────────────────────────

    @staticmethod
    def _row(session_id: int, bench: str, outcome: TrialOutcome) -> list[Any]:
        return [session_id, bench, outcome.elapsed_sec, outcome.found_at, outcome.error]

    def add_result(self, session_id: int, bench: str, outcome: TrialOutcome) -> None:
        with self._wrap_errors("add result"):
            self._conn.execute(
                "INSERT INTO bench_run (session_id, bench, duration, found_at, err) "
                "VALUES (?, ?, ?, ?, ?)",
                self._row(session_id, bench, outcome),
            )

    def add_results(self, session_id: int, rows: Iterable[tuple[str, TrialOutcome]]) -> int:
        """Append many (bench, outcome) rows in one transaction."""
        params = [self._row(session_id, bench, outcome) for bench, outcome in rows]
        if not params:
            return 0
        with self._wrap_errors("add results"):
            self._conn.execute("BEGIN TRANSACTION")
            try:
                self._conn.executemany(
                    "INSERT INTO bench_run (session_id, bench, duration, found_at, err) "
                    "VALUES (?, ?, ?, ?, ?)",
                    params,
                )
            except Exception:
                self._conn.execute("ROLLBACK")
                raise
            self._conn.execute("COMMIT")
        return len(params)

    def get_results(self, session_id: int, bench: str) -> list[TrialOutcome]:
        """Outcomes for one bench of one session, in insertion order."""
        with self._wrap_errors("get results"):
            rows = self._conn.execute(
                "SELECT duration, found_at, err FROM bench_run "
                "WHERE session_id = ? AND bench = ? ORDER BY rowid",
                [session_id, bench],
            ).fetchall()
        return [
            TrialOutcome(
                elapsed_sec=float(duration),
                found_at=None if err is not None or found_at is None else int(found_at),
                error=None if err is None else str(err),
            )
            for duration, found_at, err in rows
        ]

    def session_benches(self, session_id: int) -> list[str]:
        with self._wrap_errors("session benches"):
            rows = self._conn.execute(
                "SELECT DISTINCT bench FROM bench_run WHERE session_id = ? ORDER BY bench",
                [session_id],
            ).fetchall()
        return [str(r[0]) for r in rows]

    def common_benches(self, session_a: int, session_b: int) -> list[str]:
        with self._wrap_errors("common benches"):
            rows = self._conn.execute(
                """
                SELECT DISTINCT r_a.bench
                FROM bench_run AS r_a
                JOIN bench_run AS r_b ON r_a.bench = r_b.bench
                WHERE r_a.session_id = ? AND r_b.session_id = ?
                ORDER BY 1
                """,
                [session_a, session_b],
            ).fetchall()
        return [str(r[0]) for r in rows]

    def close(self) -> None:
        """Close the DuckDB connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SessionStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
