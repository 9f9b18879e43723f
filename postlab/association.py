from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List

from postlab.cooccurrence import PairTable, UnigramTable

log = logging.getLogger(__name__)


class ZeroMarginalError(ValueError):
    """A scored pair references a word with no unigram probability."""

    def __init__(self, word: str):
        super().__init__(f"word {word!r} has zero marginal probability; pair and unigram tables disagree")
        self.word = word


@dataclass(frozen=True)
class AssociationConfig:
    min_count: int = 20

    def __post_init__(self):
        if self.min_count < 1:
            raise ValueError(f"min_count must be >= 1, got {self.min_count}")


@dataclass(frozen=True)
class AssociationScore:
    word1: str
    word2: str
    count: int
    p_pair: float
    p_word1: float
    p_word2: float
    score: float


def pmi(p_pair: float, p_a: float, p_b: float) -> float:
    # PMI = log( P(a,b) / (P(a) * P(b)) )
    return math.log(p_pair / (p_a * p_b))


def score_pairs(unigrams: UnigramTable, pairs: PairTable, cfg: AssociationConfig = AssociationConfig()) -> List[AssociationScore]:
    """Score every pair seen at least ``cfg.min_count`` times by pointwise mutual information.

    Joint probabilities are taken over the full pair table, before filtering.
    """
    out: List[AssociationScore] = []
    dropped = 0
    for (w1, w2), n in pairs.counts.items():
        if n < cfg.min_count:
            dropped += 1
            continue
        p1 = unigrams.probability(w1)
        if p1 <= 0.0:
            raise ZeroMarginalError(w1)
        p2 = unigrams.probability(w2)
        if p2 <= 0.0:
            raise ZeroMarginalError(w2)
        p = n / pairs.total
        out.append(AssociationScore(w1, w2, n, p, p1, p2, pmi(p, p1, p2)))
    if not out and pairs.counts:
        log.warning("No pairs reached min_count=%d (%d pairs dropped)", cfg.min_count, dropped)
    else:
        log.info("Scored %d pairs; dropped %d below min_count=%d", len(out), dropped, cfg.min_count)
    return out
