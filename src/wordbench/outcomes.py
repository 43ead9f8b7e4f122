"""Trial outcome model.

A single probe of one (start word, target group) pair ends in exactly one of:

- Found: a group member appeared at zero-based ``found_at`` rank
- NotFound: timeout or stream exhaustion before any member appeared
- Errored: the search engine failed for the start word

Outcomes order Found < NotFound < Errored (lower is better). Ties inside
Errored fall back to the message text; that tiebreak only keeps sorting
deterministic and carries no meaning.
"""
from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any

FOUND = "found"
NOT_FOUND = "not_found"
ERRORED = "errored"

_KIND_ORDER: dict[str, int] = {FOUND: 0, NOT_FOUND: 1, ERRORED: 2}


@functools.total_ordering
@dataclass(frozen=True, slots=True, eq=True)
class TrialOutcome:
    """Result of one probe. Build with :meth:`found`, :meth:`not_found`, :meth:`errored`."""

    elapsed_sec: float
    found_at: int | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.found_at is not None and self.error is not None:
            raise ValueError("An outcome cannot be both found and errored")
        if self.found_at is not None and self.found_at < 0:
            raise ValueError(f"Rank must be >= 0, got {self.found_at}")
        if self.elapsed_sec < 0:
            raise ValueError(f"Elapsed time must be >= 0, got {self.elapsed_sec}")

    @classmethod
    def found(cls, rank: int, elapsed_sec: float) -> TrialOutcome:
        return cls(elapsed_sec=float(elapsed_sec), found_at=int(rank))

    @classmethod
    def not_found(cls, elapsed_sec: float) -> TrialOutcome:
        return cls(elapsed_sec=float(elapsed_sec))

    @classmethod
    def errored(cls, message: str, elapsed_sec: float) -> TrialOutcome:
        return cls(elapsed_sec=float(elapsed_sec), error=str(message))

    @property
    def kind(self) -> str:
        if self.error is not None:
            return ERRORED
        if self.found_at is not None:
            return FOUND
        return NOT_FOUND

    @property
    def is_found(self) -> bool:
        return self.found_at is not None

    def sort_key(self) -> tuple[int, int, float, str]:
        return (
            _KIND_ORDER[self.kind],
            self.found_at if self.found_at is not None else 0,
            self.elapsed_sec,
            self.error or "",
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TrialOutcome):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "found_at": self.found_at,
            "elapsed_sec": self.elapsed_sec,
            "error": self.error,
        }


def best_outcome(outcomes: list[TrialOutcome]) -> TrialOutcome:
    """Return the best (lowest-ordered) outcome of a non-empty history."""
    if not outcomes:
        raise ValueError("Cannot pick the best of an empty outcome history")
    return min(outcomes)
