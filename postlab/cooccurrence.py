from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, Iterable, List, Tuple

from postlab.word_parser import Window

log = logging.getLogger(__name__)

Pair = Tuple[str, str]


@dataclass(frozen=True)
class CountConfig:
    include_diagonal: bool = True
    log_every: int = 100000


@dataclass
class UnigramTable:
    counts: Dict[str, int] = field(default_factory=dict)
    total: int = 0

    def probability(self, word: str) -> float:
        if self.total == 0:
            return 0.0
        return self.counts.get(word, 0) / self.total

    def probabilities(self) -> Dict[str, float]:
        return {w: self.probability(w) for w in self.counts}

    def most_common(self, n: int | None = None) -> List[Tuple[str, int]]:
        # count desc, then word for a stable display order
        items = sorted(self.counts.items(), key=lambda t: (-t[1], t[0]))
        return items if n is None else items[:n]

    def __len__(self) -> int:
        return len(self.counts)


@dataclass
class PairTable:
    """Unordered word pairs keyed as ``(word1, word2)`` with ``word1 <= word2``."""

    counts: Dict[Pair, int] = field(default_factory=dict)
    total: int = 0
    n_windows: int = 0

    def count(self, a: str, b: str) -> int:
        return self.counts.get(canonical_pair(a, b), 0)

    def probability(self, a: str, b: str) -> float:
        if self.total == 0:
            return 0.0
        return self.count(a, b) / self.total

    def most_common(self, n: int | None = None) -> List[Tuple[Pair, int]]:
        items = sorted(self.counts.items(), key=lambda t: (-t[1], t[0]))
        return items if n is None else items[:n]

    def __len__(self) -> int:
        return len(self.counts)


def canonical_pair(a: str, b: str) -> Pair:
    return (a, b) if a <= b else (b, a)


def count_unigrams(token_streams: Iterable[List[str]]) -> UnigramTable:
    counts: Counter = Counter()
    for seq in token_streams:
        counts.update(seq)
    table = UnigramTable(counts=dict(counts), total=sum(counts.values()))
    log.info("Counted %d tokens over %d distinct words", table.total, len(table))
    return table


def count_pairs(windows: Iterable[Window], cfg: CountConfig = CountConfig()) -> PairTable:
    """Count, for each unordered word pair, the number of windows containing both.

    A window contributes at most once to a pair no matter how often the words
    repeat inside it. With ``include_diagonal`` every distinct word in a window
    is also paired with itself.
    """
    counts: Counter = Counter()
    n_windows = 0
    for win in windows:
        n_windows += 1
        words = sorted(set(win.tokens))
        # sorted input keeps combinations() canonical without re-sorting each pair
        counts.update(combinations(words, 2))
        if cfg.include_diagonal:
            counts.update((w, w) for w in words)
        if cfg.log_every and n_windows % cfg.log_every == 0:
            log.info("Processed %d windows (%d pairs so far)...", n_windows, len(counts))
    table = PairTable(counts=dict(counts), total=sum(counts.values()), n_windows=n_windows)
    log.info("Counted %d distinct pairs over %d windows", len(table), n_windows)
    return table
