"""
Tests for the model wrappers.

What we test
------------
1. Metrics: regression metrics on known values, binary sensitivity/specificity.
2. Regression trees: pruning table shape and ordering, alpha selection rules.
3. KNN: k search bounded by fold size, tidy CV table.
4. Logistic regression: odds ratios, pseudo R^2, probabilities, stepwise AIC down
   to the intercept-only model.
5. Thresholds: ROC/AUC on separable data, Youden threshold (chosen on training
   scores, applied to held-out data), threshold sweep.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from reportkit.data_loader import clean_hitters, clean_stroke, encode_hitters, encode_stroke
from reportkit.ml_helpers import (
    backward_stepwise_aic,
    classification_metrics,
    fit_logit,
    fit_regression_tree,
    knn_cv_table,
    mcfadden_r2,
    odds_ratio_table,
    predict_proba,
    prepare_classification_data,
    prepare_regression_data,
    pruning_path_cv,
    regression_metrics,
    roc_summary,
    select_alpha,
    threshold_table,
    tree_rules,
    tune_knn,
    youden_threshold,
)


@pytest.fixture
def hitters_xy(raw_hitters: pd.DataFrame) -> tuple[pd.DataFrame, pd.Series]:
    df = clean_hitters(raw_hitters)
    return encode_hitters(df), df["LogSalary"]


@pytest.fixture
def stroke_xy(raw_stroke: pd.DataFrame) -> tuple[pd.DataFrame, pd.Series]:
    return encode_stroke(clean_stroke(raw_stroke))


# ── Metrics ────────────────────────────────────────────────────────────────────

def test_regression_metrics_known_values() -> None:
    m = regression_metrics([1.0, 2.0, 3.0], [1.0, 2.0, 5.0])
    assert m["mse"] == pytest.approx(4 / 3)
    assert m["rmse"] == pytest.approx(np.sqrt(4 / 3))
    assert m["mae"] == pytest.approx(2 / 3)


def test_classification_metrics_binary_rates() -> None:
    y_true = [1, 1, 1, 1, 0, 0, 0, 0, 0, 0]
    y_pred = [1, 1, 1, 0, 0, 0, 0, 0, 1, 1]
    m = classification_metrics(y_true, y_pred, labels=["No stroke", "Stroke"])
    assert m["accuracy"] == pytest.approx(0.7)
    assert m["sensitivity"] == pytest.approx(0.75)
    assert m["specificity"] == pytest.approx(4 / 6)
    assert m["precision"] == pytest.approx(0.6)
    assert m["confusion_matrix"].tolist() == [[4, 2], [1, 3]]


def test_classification_metrics_no_positive_predictions() -> None:
    m = classification_metrics([0, 0, 1], [0, 0, 0])
    assert m["sensitivity"] == 0.0
    assert m["precision"] == 0.0
    assert m["confusion_matrix"].shape == (2, 2)


def test_prepare_regression_data_split_sizes(raw_hitters: pd.DataFrame) -> None:
    df = clean_hitters(raw_hitters)
    X_train, X_test, y_train, y_test, scaler = prepare_regression_data(
        df, ["Years", "Hits"], "LogSalary", test_size=0.3, scale=True
    )
    assert len(X_train) + len(X_test) == len(df)
    assert scaler is not None
    assert X_train["Years"].mean() == pytest.approx(0.0, abs=1e-9)


def test_prepare_classification_data_is_stratified(stroke_xy) -> None:
    X, y = stroke_xy
    X_train, X_test, y_train, y_test = prepare_classification_data(X, y, test_size=0.3)
    assert abs(y_train.mean() - y_test.mean()) < 0.03


# ── Regression trees ───────────────────────────────────────────────────────────

def test_small_tree_splits_on_years_first(raw_hitters: pd.DataFrame) -> None:
    df = clean_hitters(raw_hitters)
    tree = fit_regression_tree(df[["Years", "Hits"]], df["LogSalary"], max_depth=1)
    assert tree.tree_.feature[0] == 0
    assert "Years" in tree_rules(tree, ["Years", "Hits"]).splitlines()[0]


def test_pruning_path_cv_table(hitters_xy) -> None:
    X, y = hitters_xy
    table = pruning_path_cv(X, y, cv=5)
    assert list(table.columns) == ["alpha", "n_leaves", "cv_rmse", "cv_se"]
    assert table["alpha"].is_monotonic_increasing
    assert table["n_leaves"].is_monotonic_decreasing
    assert table["n_leaves"].iloc[-1] == 1
    assert (table["cv_rmse"] > 0).all()


def test_pruning_path_cv_needs_enough_rows(hitters_xy) -> None:
    X, y = hitters_xy
    with pytest.raises(ValueError):
        pruning_path_cv(X.iloc[:5], y.iloc[:5], cv=10)


def test_select_alpha_rules() -> None:
    table = pd.DataFrame({
        "alpha": [0.0, 0.01, 0.02, 0.05, 0.2],
        "n_leaves": [20, 10, 6, 3, 1],
        "cv_rmse": [0.60, 0.52, 0.50, 0.53, 0.80],
        "cv_se": [0.04, 0.04, 0.04, 0.04, 0.05],
    })
    assert select_alpha(table, rule="min") == pytest.approx(0.02)
    # 0.53 <= 0.50 + 0.04, so the 1-SE rule prefers the 3-leaf tree
    assert select_alpha(table, rule="1se") == pytest.approx(0.05)


def test_select_alpha_rejects_unknown_rule_and_empty_table() -> None:
    table = pd.DataFrame({"alpha": [0.0], "n_leaves": [1], "cv_rmse": [1.0], "cv_se": [0.1]})
    with pytest.raises(ValueError):
        select_alpha(table, rule="best")
    with pytest.raises(ValueError):
        select_alpha(table.iloc[0:0])


def test_pruned_tree_is_smaller(hitters_xy) -> None:
    X, y = hitters_xy
    table = pruning_path_cv(X, y, cv=5)
    full = fit_regression_tree(X, y)
    pruned = fit_regression_tree(X, y, ccp_alpha=select_alpha(table, "1se"))
    assert pruned.get_n_leaves() <= full.get_n_leaves()


# ── KNN ────────────────────────────────────────────────────────────────────────

def test_tune_knn_picks_k_in_grid(hitters_xy) -> None:
    X, y = hitters_xy
    search = tune_knn(X, y, k_values=range(1, 16), n_splits=5, n_repeats=2)
    assert 1 <= search.best_params_["knn__n_neighbors"] <= 15
    table = knn_cv_table(search)
    assert table["k"].tolist() == list(range(1, 16))
    assert (table["cv_rmse"] > 0).all()
    best_row = table.loc[table["cv_rmse"].idxmin()]
    assert best_row["k"] == search.best_params_["knn__n_neighbors"]


def test_tune_knn_drops_k_larger_than_fold() -> None:
    X = pd.DataFrame({"a": np.arange(10.0)})
    y = pd.Series(np.arange(10.0))
    search = tune_knn(X, y, k_values=[1, 2, 50], n_splits=5, n_repeats=1)
    assert knn_cv_table(search)["k"].tolist() == [1, 2]


def test_tune_knn_no_valid_k_raises() -> None:
    X = pd.DataFrame({"a": np.arange(10.0)})
    y = pd.Series(np.arange(10.0))
    with pytest.raises(ValueError):
        tune_knn(X, y, k_values=[100], n_splits=5)


# ── Logistic regression ────────────────────────────────────────────────────────

def test_fit_logit_age_raises_odds(stroke_xy) -> None:
    X, y = stroke_xy
    fit = fit_logit(X, y)
    table = odds_ratio_table(fit)
    assert "const" not in table.index
    assert table.loc["age", "odds_ratio"] > 1.0
    assert table.loc["age", "p_value"] < 0.01
    assert (table["ci_lower"] <= table["odds_ratio"]).all()
    assert (table["odds_ratio"] <= table["ci_upper"]).all()
    assert table["odds_ratio"].is_monotonic_decreasing


def test_mcfadden_r2_in_unit_interval(stroke_xy) -> None:
    X, y = stroke_xy
    r2 = mcfadden_r2(fit_logit(X, y))
    assert 0.0 < r2 < 1.0


def test_predict_proba_bounds_and_columns(stroke_xy) -> None:
    X, y = stroke_xy
    fit = fit_logit(X[["age", "avg_glucose_level"]], y)
    proba = predict_proba(fit, X)
    assert proba.shape == (len(X),)
    assert ((proba > 0) & (proba < 1)).all()


def test_backward_stepwise_aic_never_increases_aic(stroke_xy, rng) -> None:
    X, y = stroke_xy
    X = X.assign(noise=rng.normal(size=len(X)))
    full = fit_logit(X, y)
    final, dropped, history = backward_stepwise_aic(X, y)
    assert final.aic <= full.aic
    assert history["aic"].is_monotonic_decreasing
    assert len(history) == len(dropped) + 1
    assert "age" in final.params.index
    assert set(dropped).isdisjoint(final.params.index)


def test_backward_stepwise_aic_can_reach_intercept_only() -> None:
    # noise has the same mean in both outcome groups, so its MLE slope is zero
    pattern = [-1.0, 0.0, 1.0]
    X = pd.DataFrame({"noise": pattern * 40 + pattern * 90})
    y = pd.Series([1] * 120 + [0] * 270)
    intercept_only = fit_logit(X[[]], y)
    assert fit_logit(X, y).aic == pytest.approx(intercept_only.aic + 2.0)

    final, dropped, history = backward_stepwise_aic(X, y)
    assert dropped == ["noise"]
    assert list(final.params.index) == ["const"]
    assert final.aic == pytest.approx(intercept_only.aic)
    assert history["dropped"].tolist() == [None, "noise"]


def test_intercept_only_fit_predicts_base_rate(rng) -> None:
    n = 200
    X = pd.DataFrame({"noise": rng.standard_normal(n)})
    y = pd.Series([1] * 50 + [0] * 150)
    fit = fit_logit(X[[]], y)
    np.testing.assert_allclose(predict_proba(fit, X), 0.25, rtol=1e-6)
    assert odds_ratio_table(fit).empty


# ── Thresholds and ROC ─────────────────────────────────────────────────────────

def test_roc_summary_perfect_separation() -> None:
    roc = roc_summary([0, 0, 1, 1], [0.1, 0.2, 0.8, 0.9])
    assert roc["auc"] == pytest.approx(1.0)


def test_youden_threshold_separates_classes() -> None:
    y = [0, 0, 0, 1, 1]
    proba = [0.05, 0.10, 0.20, 0.60, 0.70]
    t = youden_threshold(y, proba)
    assert 0.20 < t <= 0.60


def test_youden_threshold_chosen_on_training_scores(stroke_xy) -> None:
    X, y = stroke_xy
    X_train, X_test, y_train, y_test = prepare_classification_data(X, y, test_size=0.3, seed=0)
    fit = fit_logit(X_train, y_train)
    t = youden_threshold(y_train, predict_proba(fit, X_train))
    assert 0.0 < t < 1.0
    m = classification_metrics(y_test, (predict_proba(fit, X_test) >= t).astype(int))
    assert m["sensitivity"] + m["specificity"] > 1.0


def test_threshold_table_sweep() -> None:
    y = np.array([0, 0, 0, 1, 1])
    proba = np.array([0.05, 0.10, 0.20, 0.60, 0.70])
    table = threshold_table(y, proba, thresholds=[0.01, 0.5, 0.99])
    assert table["sensitivity"].tolist() == [1.0, 1.0, 0.0]
    assert table["specificity"].tolist() == [0.0, 1.0, 1.0]
