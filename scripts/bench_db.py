#!/usr/bin/env python3
"""Inspect and compare stored bench sessions.

Opens the bench database read-only and renders aligned text tables (or JSON
with ``--json``).

Usage::

    python3 scripts/bench_db.py [--db bench.duckdb] list-sessions
    python3 scripts/bench_db.py show SESSION
    python3 scripts/bench_db.py get SESSION KEY
    python3 scripts/bench_db.py stats SESSION
    python3 scripts/bench_db.py results SESSION
    python3 scripts/bench_db.py compare SESSION_A SESSION_B
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from wordbench.compare import (
    COMPARE_DROP_FRACTION,
    COMPARE_INDEX_EQUIVALENT,
    COMPARE_MIN_DIFFERENCE,
    BenchComparison,
    compare_sessions,
    compile_session,
    summarize,
)
from wordbench.compiler import FloatRange, IntRange, ResultCompiler
from wordbench.io_utils import write_stdout_json
from wordbench.session_store import (
    PersistenceError,
    SchemaVersionError,
    SessionStore,
    session_started_at,
)

log = logging.getLogger("bench_db")

LIST_SESSIONS_EXTRA_COLUMNS: tuple[str, ...] = ("engine", "machine", "search_rules_hash")
NOT_FOUND_MSG = "Session not found"


# ── Formatting ─────────────────────────────────────────────────────────


def fmt_duration(value: float | None) -> str:
    return f"{value:7.4f}" if value is not None else "--"


def fmt_duration_range(rng: FloatRange | None) -> str:
    if rng is None:
        return "--"
    start, end = rng
    if start == end:
        return f"{start:7.4f}"
    return f"{start:7.4f} .. {end:7.4f}"


def fmt_range(rng: IntRange | None) -> str:
    if rng is None:
        return "--"
    start, end = rng
    return str(start) if start == end else f"{start} .. {end}"


def render_table(header: Sequence[str], rows: Sequence[Sequence[str]], sep: str = " | ") -> str:
    """Left-aligned columns padded to the widest cell."""
    widths = [len(h) for h in header]
    for row in rows:
        if len(row) != len(header):
            raise ValueError(f"Row has {len(row)} cells, header has {len(header)}")
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))
    lines = [
        sep.join(cell.ljust(width) for cell, width in zip(row, widths, strict=True)).rstrip()
        for row in [list(header), *rows]
    ]
    return "\n".join(lines)


# ── Commands ───────────────────────────────────────────────────────────


def cmd_list_sessions(store: SessionStore, args: argparse.Namespace) -> int:
    sessions = store.list_sessions()
    records = []
    for session_id, num_benches in sessions:
        record = {
            "session_id": session_id,
            "when": session_started_at(session_id).strftime("%Y-%m-%d %H:%M:%S"),
            "num_benches": num_benches,
        }
        for key in LIST_SESSIONS_EXTRA_COLUMNS:
            record[key] = store.get_info(session_id, key)
        records.append(record)
    if args.json:
        write_stdout_json(records)
        return 0
    header = ["SESSION ID", "WHEN", "NUM BENCHES", *LIST_SESSIONS_EXTRA_COLUMNS]
    rows = [[str(r[key]) for key in ("session_id", "when", "num_benches", *LIST_SESSIONS_EXTRA_COLUMNS)] for r in records]
    print(render_table(header, rows))
    return 0


def cmd_show(store: SessionStore, args: argparse.Namespace) -> int:
    info = store.get_all_info(args.session)
    if args.json:
        write_stdout_json(info)
        return 0 if info else 1
    if not info:
        print(NOT_FOUND_MSG)
        return 1
    rows = [[key, "<...>" if "\n" in value else value] for key, value in info.items()]
    print(render_table(["KEY", "VALUE"], rows))
    return 0


def cmd_get(store: SessionStore, args: argparse.Namespace) -> int:
    value = store.get_info(args.session, args.info_key)
    sys.stdout.write(value)
    if value and not value.endswith("\n"):
        sys.stdout.write("\n")
    return 0


def _compiler(args: argparse.Namespace) -> ResultCompiler:
    return ResultCompiler(args.index_equivalent, args.drop_fraction)


def cmd_stats(store: SessionStore, args: argparse.Namespace) -> int:
    results = compile_session(store, args.session, _compiler(args))
    if not results:
        print(NOT_FOUND_MSG)
        return 1
    stats = summarize(results)
    if args.json:
        write_stdout_json(stats.as_dict())
        return 0
    print(f"Found {stats.num_found} / {stats.num_benches} ({stats.found_percent:.1f}%)")
    if stats.num_found > 0:
        print(f"Average score: {fmt_duration(stats.average_score_sec)} sec")
        print(f"Score range: {fmt_duration_range(stats.score_range)}")
        print(f"Seconds to find: {fmt_duration_range(stats.elapsed_range)}")
    return 0


def cmd_results(store: SessionStore, args: argparse.Namespace) -> int:
    results = compile_session(store, args.session, _compiler(args))
    if not results:
        print(NOT_FOUND_MSG)
        return 1
    if args.json:
        write_stdout_json({bench: compiled.as_dict() for bench, compiled in results.items()})
        return 0
    rows = [
        [
            bench,
            fmt_duration(compiled.score_sec),
            fmt_range(compiled.rank_range),
            fmt_duration_range(compiled.elapsed_range),
        ]
        for bench, compiled in results.items()
    ]
    print(render_table(["BENCH", "SCORE", "INDEX", "TIME (sec)"], rows))
    return 0


def _comparison_rows(items: list[BenchComparison]) -> list[list[str]]:
    return [
        [
            c.bench,
            fmt_duration(c.result_a.score_sec),
            fmt_duration(c.result_b.score_sec),
            fmt_range(c.result_a.rank_range),
            fmt_duration_range(c.result_a.elapsed_range),
            fmt_range(c.result_b.rank_range),
            fmt_duration_range(c.result_b.elapsed_range),
        ]
        for c in items
    ]


def cmd_compare(store: SessionStore, args: argparse.Namespace) -> int:
    comparison = compare_sessions(
        store,
        args.session_a,
        args.session_b,
        _compiler(args),
        min_difference=args.min_difference,
    )
    if comparison.num_common == 0:
        print("Session not found, or no benches in common")
        return 1
    if args.json:
        write_stdout_json(comparison.as_dict())
        return 0

    if comparison.wins_a > 0:
        print(f"A found {comparison.wins_a} that B didn't")
    if comparison.wins_b > 0:
        print(f"B found {comparison.wins_b} that A didn't")
    total = comparison.total_difference
    verdict = comparison.verdict()
    if verdict == "none":
        print("Total minor score differences: none")
    else:
        print(f"Total minor score differences: {verdict} better by {fmt_duration(abs(total))} sec")

    header = [
        "BENCH", "A: SCORE", "B: SCORE",
        "A: INDEX", "A: TIME (sec)", "B: INDEX", "B: TIME (sec)",
    ]
    for name, items in (("A", comparison.better_in_a), ("B", comparison.better_in_b)):
        if items:
            print(f"\nBetter in {name}:\n{render_table(header, _comparison_rows(items))}")
    return 0


# ── CLI ────────────────────────────────────────────────────────────────


def _add_compiler_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--index-equivalent", type=float, default=COMPARE_INDEX_EQUIVALENT,
        help="Seconds charged per rank position (default: %(default)s).",
    )
    parser.add_argument(
        "--drop-fraction", type=float, default=COMPARE_DROP_FRACTION,
        help="Fraction of sorted trials trimmed, half from each end (default: %(default)s).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and compare bench sessions.")
    parser.add_argument("--db", type=Path, default=Path("bench.duckdb"), help="Database file.")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of tables.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list-sessions", help="List all sessions.")
    p.set_defaults(func=cmd_list_sessions)

    p = sub.add_parser("show", help="Show a session's metadata (multiline values elided).")
    p.add_argument("session", type=int, help="Session ID.")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("get", help="Output a single metadata value from a session.")
    p.add_argument("session", type=int, help="Session ID.")
    p.add_argument("info_key")
    p.set_defaults(func=cmd_get)

    p = sub.add_parser("stats", help="Quick statistics of a session's results.")
    p.add_argument("session", type=int, help="Session ID.")
    _add_compiler_args(p)
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("results", help="Compiled statistics of every bench in a session.")
    p.add_argument("session", type=int, help="Session ID.")
    _add_compiler_args(p)
    p.set_defaults(func=cmd_results)

    p = sub.add_parser("compare", help="Compare the results of two sessions.")
    p.add_argument("session_a", type=int, help="Session ID (A).")
    p.add_argument("session_b", type=int, help="Session ID (B).")
    _add_compiler_args(p)
    p.add_argument(
        "--min-difference", type=float, default=COMPARE_MIN_DIFFERENCE,
        help="Smallest |score difference| (sec) listed per bench (default: %(default)s).",
    )
    p.set_defaults(func=cmd_compare)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    if hasattr(args, "drop_fraction") and not 0.0 <= args.drop_fraction < 1.0:
        parser.error("--drop-fraction must be in [0, 1)")
    if hasattr(args, "index_equivalent") and args.index_equivalent < 0:
        parser.error("--index-equivalent must be >= 0")

    try:
        with SessionStore(args.db, read_only=True) as store:
            return args.func(store, args)
    except FileNotFoundError as exc:
        log.error("%s", exc)
        return 2
    except (PersistenceError, SchemaVersionError) as exc:
        log.error("Error reading bench DB: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
