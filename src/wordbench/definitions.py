"""Benchmark definitions: start words mapped to target groups.

Bench files hold one definition per line::

    bulacha = bolacha
    abc, def = one, two | three   ; trailing comment

Each start word on the left gets every target group on the right. A target
group (``two | three``) succeeds when the engine yields any of its words.
Start words are also registered without diacritics (``café`` -> ``cafe``).
"""
from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Iterator
from pathlib import Path

TargetGroup = frozenset[str]

_BLANK = r"[ \t]*"
_WORD = r"[^\W_]+"
_WORD_LIST = rf"{_WORD}(?:{_BLANK}[,|]{_BLANK}{_WORD})*"
_LINE_RE = re.compile(
    rf"^{_BLANK}"
    rf"(?:(?P<starts>{_WORD}(?:{_BLANK},{_BLANK}{_WORD})*)"
    rf"{_BLANK}={_BLANK}"
    rf"(?P<targets>{_WORD_LIST}))?"
    rf"{_BLANK}(?:;.*)?$"
)
_COMMA_RE = re.compile(rf"{_BLANK},{_BLANK}")
_BAR_RE = re.compile(rf"{_BLANK}\|{_BLANK}")


class DefinitionParseError(ValueError):
    """Raised when a bench file line does not follow the definition grammar."""

    def __init__(self, line_no: int, text: str) -> None:
        super().__init__(f"Parsing error on line {line_no}: {text!r}")
        self.line_no = line_no
        self.text = text


def parse_bench_line(line: str) -> tuple[list[str], list[list[str]]] | None:
    """Parse one line into (start words, target groups).

    Returns None for blank and comment-only lines. Raises ValueError when the
    line is malformed; :meth:`BenchDefinitions.load` adds the line number.
    """
    m = _LINE_RE.match(line.rstrip("\r\n"))
    if m is None:
        raise ValueError(f"Malformed bench line: {line!r}")
    if m.group("starts") is None:
        return None
    starts = _COMMA_RE.split(m.group("starts"))
    targets = [_BAR_RE.split(group) for group in _COMMA_RE.split(m.group("targets"))]
    return starts, targets


def unaccented(word: str) -> str:
    """Strip combining marks after canonical decomposition."""
    decomposed = unicodedata.normalize("NFD", word)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def bench_name(start_word: str, group: Iterable[str]) -> str:
    """Canonical, order-independent name for a (start word, target group) pair."""
    return f"{start_word} = {' | '.join(sorted(group))}"


class BenchDefinitions:
    """Start words and their registered target groups, in registration order."""

    def __init__(self) -> None:
        self._benches: dict[str, dict[TargetGroup, None]] = {}

    def add_bench(self, start_word: str, targets: Iterable[str]) -> TargetGroup:
        """Register one target group under ``start_word``. Idempotent."""
        if not start_word:
            raise ValueError("Start word must be non-empty")
        group: TargetGroup = frozenset(targets)
        if not group:
            raise ValueError(f"Empty target group for start word {start_word!r}")
        if any(not word for word in group):
            raise ValueError(f"Empty target word for start word {start_word!r}")
        self._benches.setdefault(start_word, {})[group] = None
        return group

    def add_definition(self, start_words: Iterable[str], groups: Iterable[Iterable[str]]) -> None:
        """Register every group under every start word and its unaccented form."""
        group_list = [list(g) for g in groups]
        for start_word in start_words:
            plain = unaccented(start_word)
            for group in group_list:
                self.add_bench(start_word, group)
                if plain != start_word:
                    self.add_bench(plain, group)

    def load(self, lines: Iterable[str]) -> int:
        """Load definitions from bench-file lines. Returns definitions read."""
        count = 0
        for line_no, line in enumerate(lines, start=1):
            try:
                parsed = parse_bench_line(line)
            except ValueError:
                raise DefinitionParseError(line_no, line.rstrip("\r\n")) from None
            if parsed is None:
                continue
            start_words, groups = parsed
            self.add_definition(start_words, groups)
            count += 1
        return count

    @classmethod
    def from_file(cls, path: Path) -> BenchDefinitions:
        defs = cls()
        with open(path, encoding="utf-8") as f:
            defs.load(f)
        return defs

    def start_words(self) -> list[str]:
        return list(self._benches)

    def groups(self, start_word: str) -> list[TargetGroup]:
        return list(self._benches.get(start_word, {}))

    def items(self) -> Iterator[tuple[str, TargetGroup]]:
        for start_word, groups in self._benches.items():
            for group in groups:
                yield start_word, group

    def bench_names(self) -> list[str]:
        return [bench_name(start, group) for start, group in self.items()]

    def __contains__(self, start_word: object) -> bool:
        return start_word in self._benches

    def __len__(self) -> int:
        return sum(len(groups) for groups in self._benches.values())
