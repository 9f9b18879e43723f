from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.feature_selection import VarianceThreshold
from sklearn.linear_model import Lasso
from sklearn.metrics import mean_squared_error
from sklearn.model_selection import GridSearchCV
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LassoConfig:
    n_bootstraps: int = 25
    n_penalties: int = 50
    penalty_range: Tuple[float, float] = (1e-5, 1.0)
    max_iter: int = 10000
    random_state: int = 1234
    n_jobs: Optional[int] = None


def make_pipeline(max_iter: int = 10000, alpha: float = 0.1) -> Pipeline:
    """Zero-variance filter, normalization, then the L1-penalized linear model."""
    return Pipeline([
        ("zv", VarianceThreshold(0.0)),
        ("normalize", StandardScaler()),
        ("lasso", Lasso(alpha=alpha, max_iter=max_iter)),
    ])


def bootstrap_splits(n_rows: int, n_bootstraps: int, seed: int) -> List[Tuple[np.ndarray, np.ndarray]]:
    """Analysis rows drawn with replacement; the out-of-bag rows are the assessment set."""
    rng = np.random.default_rng(seed)
    splits = []
    while len(splits) < n_bootstraps:
        analysis = rng.integers(0, n_rows, size=n_rows)
        assessment = np.setdiff1d(np.arange(n_rows), analysis)
        if assessment.size == 0:
            continue
        splits.append((analysis, assessment))
    return splits


@dataclass
class FinalLasso:
    pipeline: Pipeline
    feature_names: List[str]
    penalty: float

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        return self.pipeline.predict(X[self.feature_names])

    def rmse(self, X: pd.DataFrame, y: Sequence[float]) -> float:
        return float(np.sqrt(mean_squared_error(y, self.predict(X))))

    def importance(self) -> pd.DataFrame:
        """Predictors ranked by absolute normalized coefficient, with the sign kept apart."""
        kept = self.pipeline.named_steps["zv"].get_support()
        names = [n for n, k in zip(self.feature_names, kept) if k]
        coef = self.pipeline.named_steps["lasso"].coef_
        df = pd.DataFrame({
            "variable": names,
            "importance": np.abs(coef),
            "sign": np.where(coef >= 0, "POS", "NEG"),
        })
        return df.sort_values(["importance", "variable"], ascending=[False, True]).reset_index(drop=True)


@dataclass
class TunedLasso:
    results: pd.DataFrame  # penalty, mean_rmse, std_err
    feature_names: List[str]
    max_iter: int

    def select_best(self) -> float:
        row = self.results.sort_values(["mean_rmse", "penalty"], ascending=[True, False]).iloc[0]
        return float(row["penalty"])

    def select_by_one_std_err(self) -> float:
        """Largest penalty whose RMSE is within one standard error of the best."""
        best = self.results.sort_values(["mean_rmse", "penalty"], ascending=[True, False]).iloc[0]
        limit = best["mean_rmse"] + best["std_err"]
        ok = self.results[self.results["mean_rmse"] <= limit]
        return float(ok["penalty"].max())

    def finalize(self, X: pd.DataFrame, y: Sequence[float], penalty: Optional[float] = None) -> FinalLasso:
        alpha = self.select_best() if penalty is None else penalty
        pipe = make_pipeline(self.max_iter, alpha)
        pipe.fit(X[self.feature_names], y)
        log.info("Finalized LASSO at penalty %.6g", alpha)
        return FinalLasso(pipeline=pipe, feature_names=self.feature_names, penalty=alpha)


class LassoWorkflow:
    """Configured LASSO tuning workflow; ``tune`` returns a ``TunedLasso``."""

    def __init__(self, cfg: LassoConfig = LassoConfig()):
        lo, hi = cfg.penalty_range
        if not 0 < lo < hi:
            raise ValueError(f"penalty_range must satisfy 0 < low < high, got {cfg.penalty_range}")
        if cfg.n_bootstraps < 1 or cfg.n_penalties < 1:
            raise ValueError("n_bootstraps and n_penalties must be positive")
        self.cfg = cfg

    def penalties(self) -> np.ndarray:
        lo, hi = self.cfg.penalty_range
        return np.logspace(np.log10(lo), np.log10(hi), self.cfg.n_penalties)

    def tune(self, X: pd.DataFrame, y: Sequence[float]) -> TunedLasso:
        cfg = self.cfg
        feature_names = [str(c) for c in X.columns]
        splits = bootstrap_splits(len(X), cfg.n_bootstraps, cfg.random_state)
        log.info("Tuning LASSO penalty over %d values x %d bootstraps", cfg.n_penalties, len(splits))
        grid = GridSearchCV(
            make_pipeline(cfg.max_iter),
            param_grid={"lasso__alpha": self.penalties()},
            scoring="neg_root_mean_squared_error",
            cv=splits,
            n_jobs=cfg.n_jobs,
            refit=False,
        )
        grid.fit(X[feature_names], np.asarray(y, dtype=float))
        cv = grid.cv_results_
        results = pd.DataFrame({
            "penalty": np.asarray(cv["param_lasso__alpha"], dtype=float),
            "mean_rmse": -np.asarray(cv["mean_test_score"], dtype=float),
            "std_err": np.asarray(cv["std_test_score"], dtype=float) / np.sqrt(len(splits)),
        })
        return TunedLasso(results=results, feature_names=feature_names, max_iter=cfg.max_iter)


def prepare_features(df: pd.DataFrame, outcome: str, id_columns: Sequence[str] = ()) -> Tuple[pd.DataFrame, pd.Series]:
    """Split a tidy frame into numeric predictors and the outcome; ID columns are kept out."""
    if outcome not in df.columns:
        raise KeyError(f"outcome column not found: {outcome!r}")
    X = df.drop(columns=[outcome, *id_columns])
    X = pd.get_dummies(X, dtype=float)
    return X, df[outcome]
