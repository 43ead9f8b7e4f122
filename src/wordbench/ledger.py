"""In-memory ledger of trial outcomes per (start word, target group)."""
from __future__ import annotations

from collections.abc import Iterator

from wordbench.definitions import BenchDefinitions, TargetGroup, bench_name
from wordbench.outcomes import TrialOutcome


class ResultLedger:
    """Append-only outcome histories, keyed by start word then target group."""

    def __init__(self, definitions: BenchDefinitions) -> None:
        self._entries: dict[str, dict[TargetGroup, list[TrialOutcome]]] = {
            start_word: {group: [] for group in definitions.groups(start_word)}
            for start_word in definitions.start_words()
        }

    def outcomes(self, start_word: str, group: TargetGroup) -> list[TrialOutcome]:
        """Recorded outcomes in trial order (a copy)."""
        return list(self._entries[start_word][group])

    def groups(self, start_word: str) -> list[TargetGroup]:
        return list(self._entries[start_word])

    def append(self, start_word: str, group: TargetGroup, outcome: TrialOutcome) -> None:
        try:
            history = self._entries[start_word][group]
        except KeyError:
            raise KeyError(f"Unregistered bench: {bench_name(start_word, group)}") from None
        history.append(outcome)

    def clear_results(self) -> None:
        for groups in self._entries.values():
            for history in groups.values():
                history.clear()

    def clear_successes(self) -> None:
        """Drop every Found outcome, keeping the rest in order."""
        for groups in self._entries.values():
            for history in groups.values():
                history[:] = [o for o in history if not o.is_found]

    def items(self) -> Iterator[tuple[str, TargetGroup, list[TrialOutcome]]]:
        for start_word, groups in self._entries.items():
            for group, history in groups.items():
                yield start_word, group, list(history)

    def rows(self) -> Iterator[tuple[str, TrialOutcome]]:
        """(bench name, outcome) for every recorded trial, ready for storage."""
        for start_word, group, history in self.items():
            name = bench_name(start_word, group)
            for outcome in history:
                yield name, outcome

    def trial_count(self) -> int:
        return sum(len(h) for groups in self._entries.values() for h in groups.values())
