from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np


class WordVectors:
    """Fixed-length vectors for a vocabulary, searched by brute-force dot product."""

    def __init__(self, words: Sequence[str], vectors: np.ndarray, normalize: bool = True,
                 singular_values: Optional[np.ndarray] = None):
        E = np.asarray(vectors, dtype=float)
        if E.ndim != 2 or E.shape[0] != len(words):
            raise ValueError(f"expected a ({len(words)}, dim) array, got shape {E.shape}")
        if len(set(words)) != len(words):
            raise ValueError("words must be unique")
        if normalize:
            norms = np.linalg.norm(E, axis=1, keepdims=True)
            # all-zero rows stay zero
            E = np.divide(E, norms, out=np.zeros_like(E), where=norms > 0)
        self.words: List[str] = list(words)
        self.vectors = E
        self.index: Dict[str, int] = {w: i for i, w in enumerate(self.words)}
        self.singular_values = singular_values

    @property
    def dim(self) -> int:
        return self.vectors.shape[1]

    def __len__(self) -> int:
        return len(self.words)

    def __contains__(self, word: str) -> bool:
        return word in self.index

    def vector(self, word: str) -> np.ndarray:
        i = self.index.get(word)
        if i is None:
            raise KeyError(f"word not in vocabulary: {word!r}")
        return self.vectors[i]

    def combine(self, plus: Iterable[str] = (), minus: Iterable[str] = ()) -> np.ndarray:
        """Vector arithmetic: sum of ``plus`` vectors minus sum of ``minus`` vectors."""
        q = np.zeros(self.dim, dtype=float)
        for w in plus:
            q = q + self.vector(w)
        for w in minus:
            q = q - self.vector(w)
        return q

    def _scores(self, query: np.ndarray) -> np.ndarray:
        q = np.asarray(query, dtype=float)
        if q.shape != (self.dim,):
            raise ValueError(f"query must have shape ({self.dim},), got {q.shape}")
        return self.vectors @ q

    def _ranked(self, scores: np.ndarray, order: List[int], n: Optional[int]) -> List[Tuple[str, float]]:
        if n is not None:
            order = order[:n]
        return [(self.words[i], float(scores[i])) for i in order]

    def search(self, query: np.ndarray, n: Optional[int] = None) -> List[Tuple[str, float]]:
        scores = self._scores(query)
        # score desc, then word asc so ties rank the same way every run
        order = sorted(range(len(self.words)), key=lambda i: (-scores[i], self.words[i]))
        return self._ranked(scores, order, n)

    def nearest(self, word: str, n: Optional[int] = 10) -> List[Tuple[str, float]]:
        """Search with a word's own vector; the word itself always ranks first.

        Rows scoring at or above the word's own score (parallel rows, rounding,
        longer unnormalized rows) tie with it and rank after it.
        """
        own = self.index.get(word)
        if own is None:
            raise KeyError(f"word not in vocabulary: {word!r}")
        scores = self._scores(self.vectors[own])
        top = scores[own]
        tied = np.isclose(scores, top) | (scores >= top)
        # clamp ties and overshoots to the own score so the word sorts first
        eff = np.where(tied, top, scores)
        order = sorted(range(len(self.words)), key=lambda i: (-eff[i], i != own, self.words[i]))
        return self._ranked(scores, order, n)
