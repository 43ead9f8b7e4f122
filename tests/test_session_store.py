"""Tests for wordbench.session_store: DuckDB session persistence."""
from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import duckdb
import pytest

from wordbench.outcomes import TrialOutcome
from wordbench.session_store import (
    SCHEMA_VERSION,
    PersistenceError,
    SchemaVersionError,
    SessionStore,
    session_started_at,
)


# ───────────────────── Fixtures ──────────────────────────────────────


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "bench.duckdb"


@pytest.fixture()
def store(db_path: Path) -> Iterator[SessionStore]:
    s = SessionStore(db_path)
    yield s
    s.close()


# ───────────────────── Schema ────────────────────────────────────────


class TestSchema:
    def test_creates_file_and_version(self, db_path: Path) -> None:
        with SessionStore(db_path):
            pass
        assert db_path.exists()
        con = duckdb.connect(str(db_path), read_only=True)
        row = con.execute("SELECT version FROM _schema_version WHERE table_name = 'bench'").fetchone()
        con.close()
        assert row == (SCHEMA_VERSION,)

    def test_reopen_is_idempotent(self, db_path: Path) -> None:
        with SessionStore(db_path) as s:
            s.set_info(1, "k", "v")
        with SessionStore(db_path) as s:
            assert s.get_info(1, "k") == "v"

    def test_read_only_requires_existing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SessionStore(tmp_path / "missing.duckdb", read_only=True)

    def test_version_mismatch(self, db_path: Path) -> None:
        with SessionStore(db_path):
            pass
        con = duckdb.connect(str(db_path))
        con.execute("UPDATE _schema_version SET version = '0.0.1' WHERE table_name = 'bench'")
        con.close()
        with pytest.raises(SchemaVersionError):
            SessionStore(db_path, read_only=True)

    def test_not_a_database(self, tmp_path: Path) -> None:
        path = tmp_path / "garbage.duckdb"
        path.write_bytes(b"this is not a duckdb file at all" * 64)
        with pytest.raises(PersistenceError):
            SessionStore(path)

    def test_in_memory(self) -> None:
        with SessionStore.in_memory() as s:
            s.add_result(5, "a = b", TrialOutcome.found(0, 0.1))
            assert s.session_benches(5) == ["a = b"]


# ───────────────────── Sessions and metadata ─────────────────────────


class TestSessions:
    def test_new_session_id_is_epoch_seconds(self, store: SessionStore) -> None:
        assert store.new_session_id(now=1_700_000_000.7) == 1_700_000_000

    def test_new_session_id_skips_used_ids(self, store: SessionStore) -> None:
        store.set_info(100, "machine", "m")
        store.add_result(101, "a = b", TrialOutcome.not_found(1.0))
        assert store.new_session_id(now=100) == 102
        assert store.new_session_id(now=99) == 99

    def test_session_started_at(self) -> None:
        assert session_started_at(0) == datetime(1970, 1, 1, tzinfo=UTC)

    def test_list_sessions_newest_first(self, store: SessionStore) -> None:
        store.add_result(10, "a = b", TrialOutcome.found(0, 1.0))
        store.add_result(10, "a = b", TrialOutcome.found(0, 1.0))
        store.add_result(10, "c = d", TrialOutcome.not_found(1.0))
        store.add_result(20, "a = b", TrialOutcome.found(1, 1.0))
        store.set_info(30, "machine", "m")
        assert store.list_sessions() == [(30, 0), (20, 1), (10, 2)]

    def test_info_upsert_and_default(self, store: SessionStore) -> None:
        assert store.get_info(1, "machine") == ""
        store.set_info(1, "machine", "old")
        store.set_info(1, "machine", "new")
        store.set_info(1, "engine", "pkg:make")
        store.set_info(2, "machine", "other")
        assert store.get_info(1, "machine") == "new"
        assert store.get_all_info(1) == {"engine": "pkg:make", "machine": "new"}
        assert store.get_all_info(3) == {}

    def test_multiline_values_round_trip(self, store: SessionStore) -> None:
        store.set_info(1, "search_rules", "a -> b\nc -> d\n")
        assert store.get_info(1, "search_rules") == "a -> b\nc -> d\n"


# ───────────────────── Trial rows ────────────────────────────────────


class TestResults:
    def test_results_keep_insertion_order(self, store: SessionStore) -> None:
        outcomes = [
            TrialOutcome.not_found(2.0),
            TrialOutcome.found(3, 0.25),
            TrialOutcome.errored("engine down", 0.01),
        ]
        for outcome in outcomes:
            store.add_result(1, "a = b", outcome)
        assert store.get_results(1, "a = b") == outcomes
        assert store.get_results(1, "other") == []
        assert store.get_results(2, "a = b") == []

    def test_add_results_batch(self, store: SessionStore) -> None:
        rows = [
            ("a = b", TrialOutcome.found(0, 0.5)),
            ("c = d", TrialOutcome.not_found(1.0)),
            ("a = b", TrialOutcome.found(1, 0.75)),
        ]
        assert store.add_results(7, rows) == 3
        assert store.add_results(7, []) == 0
        assert store.get_results(7, "a = b") == [TrialOutcome.found(0, 0.5), TrialOutcome.found(1, 0.75)]
        assert store.session_benches(7) == ["a = b", "c = d"]

    def test_common_benches(self, store: SessionStore) -> None:
        store.add_results(1, [("x = y", TrialOutcome.found(0, 1.0)), ("a = b", TrialOutcome.found(0, 1.0))])
        store.add_results(2, [("a = b", TrialOutcome.found(0, 1.0)), ("x = y", TrialOutcome.not_found(1.0))])
        store.add_results(2, [("only = two", TrialOutcome.found(0, 1.0))])
        assert store.common_benches(1, 2) == ["a = b", "x = y"]
        assert store.common_benches(1, 3) == []

    def test_read_only_store_sees_written_rows(self, db_path: Path) -> None:
        with SessionStore(db_path) as s:
            s.add_result(1, "a = b", TrialOutcome.found(2, 0.5))
        with SessionStore(db_path, read_only=True) as s:
            assert s.get_results(1, "a = b") == [TrialOutcome.found(2, 0.5)]

    def test_read_only_store_rejects_writes(self, db_path: Path) -> None:
        with SessionStore(db_path):
            pass
        with SessionStore(db_path, read_only=True) as s:
            with pytest.raises(PersistenceError):
                s.set_info(1, "k", "v")
