"""Compile repeated trial outcomes into one comparable result.

Each outcome gets a cost in seconds: ``rank * index_equivalent + elapsed``
when found, infinity otherwise. The compiled score is the trimmed mean of
those costs, dropping ``drop_fraction / 2`` of the sorted outcomes from each
end. Rank and elapsed ranges cover the finite outcomes that survive trimming;
error messages are collected before trimming so none are hidden.
"""
from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from wordbench.outcomes import TrialOutcome

IntRange = tuple[int, int]
FloatRange = tuple[float, float]


def extend_range(rng: FloatRange, value: float) -> FloatRange:
    """Widen an inclusive (min, max) range to cover ``value``."""
    return (min(rng[0], value), max(rng[1], value))


def combine_ranges(a: FloatRange, b: FloatRange) -> FloatRange:
    """Smallest inclusive range covering both ``a`` and ``b``."""
    return (min(a[0], b[0]), max(a[1], b[1]))


def _span(values: Iterable[Any]) -> tuple[Any, Any] | None:
    items = list(values)
    if not items:
        return None
    return (min(items), max(items))


@dataclass(frozen=True, slots=True)
class CompiledResult:
    score_sec: float | None
    rank_range: IntRange | None
    elapsed_range: FloatRange | None
    errors: tuple[str, ...] = field(default_factory=tuple)

    def is_better_than(self, other: CompiledResult) -> bool:
        """A present score beats an absent one; lower present score wins."""
        if self.score_sec is None:
            return False
        if other.score_sec is None:
            return True
        return self.score_sec < other.score_sec

    def difference(self, other: CompiledResult) -> float:
        """Signed seconds ``self - other``; negative means ``self`` is better.

        Infinite when exactly one side has a score, zero when neither has.
        """
        if self.score_sec is not None and other.score_sec is not None:
            return self.score_sec - other.score_sec
        if self.score_sec is not None:
            return -math.inf
        if other.score_sec is not None:
            return math.inf
        return 0.0

    def as_dict(self) -> dict[str, Any]:
        return {
            "score_sec": self.score_sec,
            "rank_range": list(self.rank_range) if self.rank_range else None,
            "elapsed_range": list(self.elapsed_range) if self.elapsed_range else None,
            "errors": list(self.errors),
        }


class ResultCompiler:
    def __init__(self, index_equivalent_sec: float, drop_fraction: float) -> None:
        if index_equivalent_sec < 0 or not math.isfinite(index_equivalent_sec):
            raise ValueError(f"index_equivalent must be finite and >= 0, got {index_equivalent_sec}")
        if not 0.0 <= drop_fraction < 1.0:
            raise ValueError(f"drop_fraction must be in [0, 1), got {drop_fraction}")
        self.index_equivalent_sec = index_equivalent_sec
        self.drop_fraction = drop_fraction

    def score(self, outcome: TrialOutcome) -> float:
        if outcome.found_at is None:
            return math.inf
        return outcome.found_at * self.index_equivalent_sec + outcome.elapsed_sec

    def compile(self, outcomes: Iterable[TrialOutcome]) -> CompiledResult:
        """Compile a non-empty outcome history. Empty input is a caller bug."""
        scored = [(self.score(o), o) for o in outcomes]
        if not scored:
            raise ValueError("Cannot compile an empty outcome history")

        errors: list[str] = []
        for _, outcome in scored:
            if outcome.error is not None and outcome.error not in errors:
                errors.append(outcome.error)

        scored.sort(key=lambda pair: (pair[0], pair[1].sort_key()))
        n = len(scored)
        drop = math.floor(self.drop_fraction / 2 * n)
        kept = scored[drop : n - drop]

        finite = [o for s, o in kept if math.isfinite(s)]
        rank_range = _span(o.found_at for o in finite if o.found_at is not None)
        elapsed_range = _span(o.elapsed_sec for o in finite)

        mean = sum(s for s, _ in kept) / len(kept)
        return CompiledResult(
            score_sec=mean if math.isfinite(mean) else None,
            rank_range=rank_range,
            elapsed_range=elapsed_range,
            errors=tuple(errors),
        )
