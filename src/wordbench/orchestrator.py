"""Trial orchestration: warm-up, shuffled passes, skip of hopeless benches.

A run is one warm-up pass followed by ``repeat`` scored passes. Every pass
visits the start words in a fresh random order and probes the engine once per
start word for the target groups still worth trying.

Warm-up successes are discarded (cache priming must not skew timings) but
warm-up failures are kept: they count toward ``repeat_failed``, so a bench
that keeps failing is skipped before the scored passes begin.
"""
from __future__ import annotations

import logging
import random
import time
from collections.abc import Sequence

from wordbench.config import BenchRunConfig
from wordbench.definitions import BenchDefinitions, TargetGroup, bench_name
from wordbench.engine import SearchEngine
from wordbench.ledger import ResultLedger
from wordbench.matcher import Clock, run_trial
from wordbench.outcomes import TrialOutcome

log = logging.getLogger(__name__)


def should_schedule(history: Sequence[TrialOutcome], repeat_failed: int) -> bool:
    """A bench runs while it has < ``repeat_failed`` outcomes or has ever been found."""
    return len(history) < repeat_failed or any(o.is_found for o in history)


class TrialOrchestrator:
    """Runs every bench of a definition set against one engine."""

    def __init__(
        self,
        definitions: BenchDefinitions,
        engine: SearchEngine,
        config: BenchRunConfig,
        *,
        rng: random.Random | None = None,
        clock: Clock = time.perf_counter,
    ) -> None:
        self.definitions = definitions
        self.engine = engine
        self.config = config
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock
        self.ledger = ResultLedger(definitions)
        self._skipped: set[tuple[str, TargetGroup]] = set()

    def _notice(self, msg: str, *args: object) -> None:
        if self.config.verbose > 1:
            log.info(msg, *args)

    def scheduled_groups(self, start_word: str) -> list[TargetGroup]:
        """Target groups of ``start_word`` that still qualify for a trial."""
        scheduled: list[TargetGroup] = []
        for group in self.ledger.groups(start_word):
            if should_schedule(self.ledger.outcomes(start_word, group), self.config.repeat_failed):
                scheduled.append(group)
            elif (start_word, group) not in self._skipped:
                self._skipped.add((start_word, group))
                self._notice("Giving up on %s", bench_name(start_word, group))
        return scheduled

    def run_word(self, start_word: str) -> int:
        """Probe the engine once for ``start_word``. Returns outcomes recorded."""
        pending = self.scheduled_groups(start_word)
        if not pending:
            self._notice("Skipping %s", start_word)
            return 0
        results = run_trial(
            self.engine,
            start_word,
            pending,
            registered=self.ledger.groups(start_word),
            timeout_sec=self.config.timeout_sec,
            clock=self.clock,
        )
        for group, outcome in results:
            self.ledger.append(start_word, group, outcome)
        return len(results)

    def run_pass(self, start_words: list[str]) -> int:
        self.rng.shuffle(start_words)
        recorded = 0
        for word in start_words:
            recorded += self.run_word(word)
        return recorded

    def run(self) -> ResultLedger:
        start_words = self.definitions.start_words()
        num_to_do = len(start_words) * self.config.repeat
        num_complete = 0

        self._notice("warmup run")
        self.run_pass(start_words)
        self.ledger.clear_successes()

        self._notice("(0/%d)", num_to_do)
        for _ in range(self.config.repeat):
            self.rng.shuffle(start_words)
            for word in start_words:
                self.run_word(word)
                num_complete += 1
                self._notice("(%d/%d)", num_complete, num_to_do)
        return self.ledger
