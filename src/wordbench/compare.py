"""Session-level statistics and two-session comparison over compiled results."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from wordbench.compiler import CompiledResult, FloatRange, ResultCompiler, combine_ranges, extend_range
from wordbench.session_store import SessionStore

COMPARE_INDEX_EQUIVALENT = 1.0 / 8.0
COMPARE_DROP_FRACTION = 1.0 / 4.0
COMPARE_MIN_DIFFERENCE = 1.0 / 32.0


def default_compiler() -> ResultCompiler:
    return ResultCompiler(COMPARE_INDEX_EQUIVALENT, COMPARE_DROP_FRACTION)


def compile_session(store: SessionStore, session_id: int, compiler: ResultCompiler) -> dict[str, CompiledResult]:
    """Compiled result for every bench of a session, keyed by bench name."""
    return {
        bench: compiler.compile(store.get_results(session_id, bench))
        for bench in store.session_benches(session_id)
    }


@dataclass(frozen=True, slots=True)
class SessionStats:
    num_benches: int
    num_found: int
    average_score_sec: float | None
    score_range: FloatRange | None
    elapsed_range: FloatRange | None

    @property
    def found_percent(self) -> float:
        return self.num_found / self.num_benches * 100.0 if self.num_benches else 0.0

    def as_dict(self) -> dict[str, Any]:
        return {
            "num_benches": self.num_benches,
            "num_found": self.num_found,
            "found_percent": self.found_percent,
            "average_score_sec": self.average_score_sec,
            "score_range": list(self.score_range) if self.score_range else None,
            "elapsed_range": list(self.elapsed_range) if self.elapsed_range else None,
        }


def summarize(results: dict[str, CompiledResult]) -> SessionStats:
    """Aggregate the benches that have a score, a rank range and an elapsed range."""
    num_found = 0
    total_score = 0.0
    score_range: FloatRange | None = None
    elapsed_range: FloatRange | None = None
    for compiled in results.values():
        if compiled.score_sec is None or compiled.rank_range is None or compiled.elapsed_range is None:
            continue
        score = compiled.score_sec
        total_score += score
        score_range = (score, score) if score_range is None else extend_range(score_range, score)
        elapsed_range = (
            compiled.elapsed_range
            if elapsed_range is None
            else combine_ranges(elapsed_range, compiled.elapsed_range)
        )
        num_found += 1
    return SessionStats(
        num_benches=len(results),
        num_found=num_found,
        average_score_sec=total_score / num_found if num_found else None,
        score_range=score_range,
        elapsed_range=elapsed_range,
    )


@dataclass(frozen=True, slots=True)
class BenchComparison:
    bench: str
    result_a: CompiledResult
    result_b: CompiledResult

    @property
    def difference(self) -> float:
        return self.result_a.difference(self.result_b)

    @property
    def a_is_better(self) -> bool:
        return self.result_a.is_better_than(self.result_b)


@dataclass(slots=True)
class SessionComparison:
    """Outcome of comparing session A against session B bench by bench.

    ``total_difference`` sums finite differences (A minus B, so negative
    favours A). Benches scored by only one side are counted in ``wins_a`` /
    ``wins_b`` instead. ``better_in_a`` / ``better_in_b`` list benches whose
    absolute difference reaches the comparison threshold.
    """

    num_common: int = 0
    wins_a: int = 0
    wins_b: int = 0
    total_difference: float = 0.0
    better_in_a: list[BenchComparison] = field(default_factory=list)
    better_in_b: list[BenchComparison] = field(default_factory=list)

    def verdict(self) -> str:
        if self.total_difference < 0:
            return "A"
        if self.total_difference > 0:
            return "B"
        return "none"

    def as_dict(self) -> dict[str, Any]:
        def rows(items: list[BenchComparison]) -> list[dict[str, Any]]:
            return [
                {
                    "bench": c.bench,
                    "difference_sec": c.difference,
                    "a": c.result_a.as_dict(),
                    "b": c.result_b.as_dict(),
                }
                for c in items
            ]

        return {
            "num_common": self.num_common,
            "wins_a": self.wins_a,
            "wins_b": self.wins_b,
            "total_difference_sec": self.total_difference,
            "verdict": self.verdict(),
            "better_in_a": rows(self.better_in_a),
            "better_in_b": rows(self.better_in_b),
        }


def compare_results(
    pairs: list[tuple[str, CompiledResult, CompiledResult]],
    *,
    min_difference: float = COMPARE_MIN_DIFFERENCE,
) -> SessionComparison:
    comparison = SessionComparison(num_common=len(pairs))
    for bench, result_a, result_b in pairs:
        item = BenchComparison(bench, result_a, result_b)
        difference = item.difference
        if math.isfinite(difference):
            comparison.total_difference += difference
        elif difference < 0:
            comparison.wins_a += 1
        else:
            comparison.wins_b += 1
        if abs(difference) >= min_difference:
            if item.a_is_better:
                comparison.better_in_a.append(item)
            else:
                comparison.better_in_b.append(item)
    return comparison


def compare_sessions(
    store: SessionStore,
    session_a: int,
    session_b: int,
    compiler: ResultCompiler,
    *,
    min_difference: float = COMPARE_MIN_DIFFERENCE,
) -> SessionComparison:
    pairs = [
        (
            bench,
            compiler.compile(store.get_results(session_a, bench)),
            compiler.compile(store.get_results(session_b, bench)),
        )
        for bench in store.common_benches(session_a, session_b)
    ]
    return compare_results(pairs, min_difference=min_difference)
