"""Tests for wordbench.ledger outcome histories."""
from __future__ import annotations

import pytest

from wordbench.definitions import BenchDefinitions
from wordbench.ledger import ResultLedger
from wordbench.outcomes import TrialOutcome

X = frozenset({"x"})
YZ = frozenset({"y", "z"})


@pytest.fixture()
def ledger() -> ResultLedger:
    defs = BenchDefinitions()
    defs.load(["a = x, y | z", "b = x"])
    return ResultLedger(defs)


class TestResultLedger:
    def test_starts_empty(self, ledger: ResultLedger) -> None:
        assert ledger.groups("a") == [X, YZ]
        assert ledger.outcomes("a", X) == []
        assert ledger.trial_count() == 0

    def test_append_and_copy(self, ledger: ResultLedger) -> None:
        ledger.append("a", X, TrialOutcome.found(0, 1.0))
        history = ledger.outcomes("a", X)
        history.append(TrialOutcome.not_found(1.0))
        assert ledger.outcomes("a", X) == [TrialOutcome.found(0, 1.0)]
        assert ledger.outcomes("b", X) == []

    def test_append_unknown_bench(self, ledger: ResultLedger) -> None:
        with pytest.raises(KeyError, match="a = q"):
            ledger.append("a", frozenset({"q"}), TrialOutcome.not_found(1.0))

    def test_clear_successes_keeps_failures_in_order(self, ledger: ResultLedger) -> None:
        ledger.append("a", X, TrialOutcome.not_found(1.0))
        ledger.append("a", X, TrialOutcome.found(0, 0.5))
        ledger.append("a", X, TrialOutcome.errored("e", 0.1))
        ledger.clear_successes()
        assert ledger.outcomes("a", X) == [TrialOutcome.not_found(1.0), TrialOutcome.errored("e", 0.1)]

    def test_clear_results(self, ledger: ResultLedger) -> None:
        ledger.append("b", X, TrialOutcome.found(0, 0.5))
        ledger.clear_results()
        assert ledger.trial_count() == 0

    def test_rows(self, ledger: ResultLedger) -> None:
        ledger.append("a", YZ, TrialOutcome.found(1, 0.5))
        ledger.append("b", X, TrialOutcome.not_found(2.0))
        assert list(ledger.rows()) == [
            ("a = y | z", TrialOutcome.found(1, 0.5)),
            ("b = x", TrialOutcome.not_found(2.0)),
        ]
