from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

import numpy as np
from scipy import sparse

from postlab.association import AssociationScore

log = logging.getLogger(__name__)

Triple = Tuple[str, str, float]


class DuplicatePolicy(enum.Enum):
    """How repeated (row, col) triples combine during assembly."""

    SUM = "sum"
    LAST = "last"


@dataclass(frozen=True)
class MatrixConfig:
    mirror: bool = True
    duplicates: DuplicatePolicy = DuplicatePolicy.SUM


@dataclass
class AssociationMatrix:
    """Square word x word sparse matrix sharing one sorted word index on both axes."""

    matrix: sparse.csr_matrix
    words: List[str]
    index: Dict[str, int]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.matrix.shape

    def value(self, row_word: str, col_word: str) -> float:
        i = self.index.get(row_word)
        j = self.index.get(col_word)
        if i is None or j is None:
            return 0.0
        return float(self.matrix[i, j])


def triples_from_scores(scores: Iterable[AssociationScore]) -> List[Triple]:
    return [(s.word1, s.word2, s.score) for s in scores]


def _expand(triples: Iterable[Triple], mirror: bool) -> List[Triple]:
    out: List[Triple] = []
    for w1, w2, val in triples:
        out.append((w1, w2, val))
        # the diagonal maps onto itself; mirroring it would double the cell
        if mirror and w1 != w2:
            out.append((w2, w1, val))
    return out


def build_matrix(triples: Iterable[Triple], cfg: MatrixConfig = MatrixConfig()) -> AssociationMatrix:
    entries = _expand(triples, cfg.mirror)
    if not entries:
        raise ValueError("no association scores to assemble; corpus empty or min_count too high")

    words = sorted({w for w1, w2, _ in entries for w in (w1, w2)})
    index = {w: i for i, w in enumerate(words)}

    if cfg.duplicates is DuplicatePolicy.LAST:
        last: Dict[Tuple[int, int], float] = {}
        for w1, w2, val in entries:
            last[(index[w1], index[w2])] = val
        rows = [r for r, _ in last.keys()]
        cols = [c for _, c in last.keys()]
        data = list(last.values())
    else:
        rows = [index[w1] for w1, _, _ in entries]
        cols = [index[w2] for _, w2, _ in entries]
        data = [val for _, _, val in entries]

    n = len(words)
    # coo -> csr sums duplicate coordinates
    matrix = sparse.coo_matrix(
        (np.asarray(data, dtype=float), (np.asarray(rows), np.asarray(cols))),
        shape=(n, n),
    ).tocsr()
    log.info("Assembled %dx%d association matrix with %d non-zeros", n, n, matrix.nnz)
    return AssociationMatrix(matrix=matrix, words=words, index=index)
