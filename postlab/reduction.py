from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import svds

from postlab.sparse_matrix import AssociationMatrix
from postlab.word_vectors import WordVectors

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReductionConfig:
    dim: int = 256
    maxiter: int = 1000
    random_state: int = 0
    normalize: bool = True


@dataclass
class SvdResult:
    u: np.ndarray   # (n_rows, k)
    s: np.ndarray   # (k,) descending
    vt: np.ndarray  # (k, n_cols)


class Reducer(Protocol):
    def reduce(self, matrix: sparse.spmatrix, k: int) -> SvdResult:
        ...


def check_rank(shape, k: int) -> None:
    limit = min(shape)
    if k < 1 or k >= limit:
        raise ValueError(f"number of components must satisfy 1 <= k < {limit} for a {shape[0]}x{shape[1]} matrix, got {k}")


class ScipySvdReducer:
    """Truncated SVD via ``scipy.sparse.linalg.svds`` (ARPACK)."""

    def __init__(self, maxiter: int = 1000, random_state: int = 0):
        self.maxiter = maxiter
        self.random_state = random_state

    def reduce(self, matrix: sparse.spmatrix, k: int) -> SvdResult:
        check_rank(matrix.shape, k)
        u, s, vt = svds(matrix.astype(float), k=k, maxiter=self.maxiter, random_state=self.random_state)
        # ARPACK hands back ascending singular values
        order = np.argsort(s)[::-1]
        return SvdResult(u=u[:, order], s=s[order], vt=vt[order, :])


class WordVectorModel:
    """Configured reduction stage; ``fit`` returns the fitted ``WordVectors``."""

    def __init__(self, cfg: ReductionConfig = ReductionConfig(), reducer: Reducer | None = None):
        self.cfg = cfg
        self.reducer = reducer if reducer is not None else ScipySvdReducer(cfg.maxiter, cfg.random_state)

    def fit(self, assoc: AssociationMatrix) -> WordVectors:
        cfg = self.cfg
        log.info("Reducing %dx%d matrix to %d dimensions...", assoc.shape[0], assoc.shape[1], cfg.dim)
        result = self.reducer.reduce(assoc.matrix, cfg.dim)
        if result.u.shape != (len(assoc.words), cfg.dim):
            raise ValueError(f"reducer returned vectors of shape {result.u.shape}, expected {(len(assoc.words), cfg.dim)}")
        log.info("Top singular values: %s", np.round(result.s[:5], 4).tolist())
        return WordVectors(assoc.words, result.u, normalize=cfg.normalize, singular_values=result.s)
