import numpy as np
import pandas as pd
import pytest

from postlab.lasso import LassoConfig, LassoWorkflow, bootstrap_splits, prepare_features


@pytest.fixture
def linear_data():
    rng = np.random.default_rng(42)
    n = 200
    X = pd.DataFrame(rng.normal(size=(n, 5)), columns=[f"x{i}" for i in range(1, 6)])
    X["constant"] = 1.0
    y = 3.0 * X["x1"] - 2.0 * X["x2"] + rng.normal(scale=0.1, size=n)
    return X, y


def test_bootstrap_assessment_rows_are_out_of_bag():
    for analysis, assessment in bootstrap_splits(50, 5, seed=0):
        assert len(analysis) == 50
        assert len(assessment) > 0
        assert not set(assessment) & set(analysis)


def test_lasso_recovers_informative_predictors(linear_data):
    X, y = linear_data
    cfg = LassoConfig(n_bootstraps=5, n_penalties=10, penalty_range=(1e-4, 1.0))
    tuned = LassoWorkflow(cfg).tune(X, y)
    assert len(tuned.results) == 10
    assert tuned.select_by_one_std_err() >= tuned.select_best()

    final = tuned.finalize(X, y)
    assert final.rmse(X, y) < 0.5
    imp = final.importance()
    assert imp["variable"].tolist()[:2] == ["x1", "x2"]
    assert imp["sign"].tolist()[:2] == ["POS", "NEG"]
    # zero-variance predictors are filtered before the fit
    assert "constant" not in imp["variable"].tolist()


def test_penalty_range_is_validated():
    with pytest.raises(ValueError):
        LassoWorkflow(LassoConfig(penalty_range=(1.0, 0.1)))


def test_prepare_features_keeps_ids_out():
    df = pd.DataFrame({
        "episode_name": ["a", "b", "c"],
        "season": ["s1", "s1", "s2"],
        "lines": [10, 20, 30],
        "rating": [8.1, 7.9, 8.5],
    })
    X, y = prepare_features(df, "rating", ["episode_name"])
    assert y.tolist() == [8.1, 7.9, 8.5]
    assert sorted(X.columns) == ["lines", "season_s1", "season_s2"]


def test_prepare_features_requires_outcome():
    with pytest.raises(KeyError):
        prepare_features(pd.DataFrame({"a": [1]}), "rating")
