"""Multi-target match state machine for one start word.

The matcher tracks the target groups still unresolved and the union of their
words. Feeding it the candidate stream one word at a time returns the groups
closed by that word, so a caller records outcomes without callbacks.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from wordbench.definitions import TargetGroup
from wordbench.engine import EngineStartError, SearchEngine
from wordbench.outcomes import TrialOutcome

log = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(slots=True)
class TargetMatcher:
    """Unresolved target groups for one trial, in scheduling order."""

    remaining: list[TargetGroup] = field(default_factory=list)
    all_words: set[str] = field(default_factory=set)

    def add_targets(self, group: TargetGroup) -> None:
        if not group:
            raise ValueError("Target group must contain at least one word")
        self.remaining.append(group)
        self.all_words.update(group)

    def is_done(self) -> bool:
        return not self.remaining

    def on_word(self, word: str) -> list[TargetGroup]:
        """Close and return every unresolved group containing ``word``."""
        if word not in self.all_words:
            return []
        hit = [group for group in self.remaining if word in group]
        if hit:
            self.remaining = [group for group in self.remaining if word not in group]
        return hit


def run_trial(
    engine: SearchEngine,
    start_word: str,
    pending: Iterable[TargetGroup],
    *,
    registered: Iterable[TargetGroup],
    timeout_sec: float,
    clock: Clock,
) -> list[tuple[TargetGroup, TrialOutcome]]:
    """Probe ``engine`` once for ``start_word`` and resolve ``pending`` groups.

    Returns (group, outcome) pairs in resolution order. When the engine cannot
    start, every group in ``registered`` gets an errored outcome, not only the
    pending ones. An ``EngineStartError`` raised before the first stream step
    counts as a start failure.
    """
    matcher = TargetMatcher()
    for group in pending:
        matcher.add_targets(group)
    results: list[tuple[TargetGroup, TrialOutcome]] = []
    if matcher.is_done():
        return results

    start = clock()
    try:
        stream = iter(engine.search(start_word))
    except Exception as exc:  # noqa: BLE001 - engine failures become outcomes
        elapsed = clock() - start
        message = str(exc) or type(exc).__name__
        log.debug("Engine failed to start for %r: %s", start_word, message)
        return [(group, TrialOutcome.errored(message, elapsed)) for group in registered]

    rank = 0
    steps = 0
    try:
        while not matcher.is_done():
            try:
                word = next(stream)
            except StopIteration:
                break
            steps += 1
            if word is not None:
                elapsed = clock() - start
                for group in matcher.on_word(word):
                    results.append((group, TrialOutcome.found(rank, elapsed)))
                rank += 1
            if clock() - start >= timeout_sec:
                break
    except Exception as exc:  # noqa: BLE001 - mid-stream failures close the trial
        elapsed = clock() - start
        message = str(exc) or type(exc).__name__
        if steps == 0 and isinstance(exc, EngineStartError):
            # lazy engines report start failures on the first step
            log.debug("Engine failed to start for %r: %s", start_word, message)
            return [(group, TrialOutcome.errored(message, elapsed)) for group in registered]
        log.debug("Engine stream failed for %r after %d words: %s", start_word, rank, message)
        results.extend(
            (group, TrialOutcome.errored(message, elapsed)) for group in matcher.remaining
        )
        return results
    finally:
        close = getattr(stream, "close", None)
        if close is not None:
            close()

    elapsed = clock() - start
    results.extend((group, TrialOutcome.not_found(elapsed)) for group in matcher.remaining)
    return results
