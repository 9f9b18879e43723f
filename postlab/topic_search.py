from __future__ import annotations

import logging
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from postlab.topic_models import (
    DocumentTermMatrix,
    FittedTopicModel,
    Heldout,
    LdaConfig,
    LdaTrainer,
    TopicModelTrainer,
    exclusivity,
    heldout_likelihood,
    make_heldout,
    residual_dispersion,
    semantic_coherence,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicSearchConfig:
    ks: Tuple[int, ...] = (20, 40, 50, 60, 70, 80, 100)
    max_workers: Optional[int] = None
    use_processes: bool = True
    heldout_doc_prop: float = 0.5
    heldout_word_prop: float = 0.5
    seed: int = 0
    n_top_terms: int = 10
    lda: LdaConfig = field(default_factory=LdaConfig)


@dataclass
class KResult:
    k: int
    model: FittedTopicModel
    heldout_likelihood: float
    residual: float
    bound: float
    lbound: float
    iterations: int
    semantic_coherence: np.ndarray
    exclusivity: np.ndarray

    def summary(self) -> Dict[str, float]:
        return {
            "k": self.k,
            "heldout_likelihood": self.heldout_likelihood,
            "residual": self.residual,
            "bound": self.bound,
            "lbound": self.lbound,
            "iterations": self.iterations,
            "semantic_coherence": float(np.mean(self.semantic_coherence)),
            "exclusivity": float(np.mean(self.exclusivity)),
        }


def fit_and_evaluate(trainer: TopicModelTrainer, heldout: Heldout, k: int, n_top_terms: int = 10) -> KResult:
    """Train one model on the held-out training matrix and compute its diagnostics."""
    model = trainer.fit(heldout.train, k)
    return KResult(
        k=k,
        model=model,
        heldout_likelihood=heldout_likelihood(model, heldout),
        residual=residual_dispersion(model, heldout.train),
        bound=model.bound,
        lbound=model.lbound,
        iterations=model.iterations,
        semantic_coherence=semantic_coherence(model, heldout.train, n_top_terms),
        exclusivity=exclusivity(model, n_top_terms),
    )


def _check_ks(ks: Sequence[int]) -> None:
    if not ks:
        raise ValueError("at least one topic count is required")
    if len(set(ks)) != len(ks):
        raise ValueError(f"topic counts must be unique, got {list(ks)}")
    bad = [k for k in ks if k < 1]
    if bad:
        raise ValueError(f"topic counts must be >= 1, got {bad}")


def _make_executor(cfg: TopicSearchConfig) -> Executor:
    if cfg.use_processes:
        return ProcessPoolExecutor(max_workers=cfg.max_workers)
    return ThreadPoolExecutor(max_workers=cfg.max_workers)


def search_k(dtm: DocumentTermMatrix, cfg: TopicSearchConfig = TopicSearchConfig(),
             trainer: TopicModelTrainer | None = None, heldout: Heldout | None = None) -> List[KResult]:
    """Fit one topic model per K in parallel workers and evaluate each.

    Results are keyed by K, so worker completion order does not matter. The
    first worker error cancels outstanding work and is re-raised.
    """
    _check_ks(cfg.ks)
    if trainer is None:
        trainer = LdaTrainer(cfg.lda)
    if heldout is None:
        heldout = make_heldout(dtm.matrix, cfg.heldout_doc_prop, cfg.heldout_word_prop, cfg.seed)

    results: Dict[int, KResult] = {}
    with _make_executor(cfg) as pool:
        futures = {pool.submit(fit_and_evaluate, trainer, heldout, k, cfg.n_top_terms): k for k in cfg.ks}
        try:
            for fut in as_completed(futures):
                k = futures[fut]
                results[k] = fut.result()
                log.info("Fitted K=%d (%d/%d)", k, len(results), len(futures))
        except BaseException:
            for f in futures:
                f.cancel()
            raise
    return [results[k] for k in sorted(results)]
