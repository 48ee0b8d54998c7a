"""Machine learning model training and evaluation wrappers."""
import logging

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.model_selection import (
    train_test_split, cross_val_score, KFold, RepeatedKFold, GridSearchCV,
)
from sklearn.neighbors import KNeighborsRegressor
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.tree import DecisionTreeRegressor, export_text
from sklearn.metrics import (
    accuracy_score, classification_report, confusion_matrix,
    mean_squared_error, r2_score, mean_absolute_error,
    roc_auc_score, roc_curve,
)

logger = logging.getLogger(__name__)


def prepare_classification_data(X, y, test_size=0.3, seed=42):
    """Stratified train/test split for a binary outcome."""
    return train_test_split(X, y, test_size=test_size, random_state=seed, stratify=y)


def prepare_regression_data(df, features, target, test_size=0.3, scale=False, seed=42):
    """Prepare data for regression: split and optionally scale."""
    clean = df[features + [target]].dropna()
    X = clean[features]
    y = clean[target]

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=test_size, random_state=seed
    )

    scaler = None
    if scale:
        scaler = StandardScaler()
        X_train = pd.DataFrame(scaler.fit_transform(X_train), columns=features, index=X_train.index)
        X_test = pd.DataFrame(scaler.transform(X_test), columns=features, index=X_test.index)

    return X_train, X_test, y_train, y_test, scaler


def classification_metrics(y_true, y_pred, labels=None):
    """Compute binary classification metrics (class 1 is the positive class)."""
    cm = confusion_matrix(y_true, y_pred, labels=[0, 1])
    tn, fp, fn, tp = cm.ravel()
    report = classification_report(
        y_true, y_pred, labels=[0, 1], target_names=labels,
        output_dict=True, zero_division=0,
    )
    return {
        "accuracy": accuracy_score(y_true, y_pred),
        "sensitivity": tp / (tp + fn) if (tp + fn) else 0.0,
        "specificity": tn / (tn + fp) if (tn + fp) else 0.0,
        "precision": tp / (tp + fp) if (tp + fp) else 0.0,
        "report": report,
        "confusion_matrix": cm,
    }


def regression_metrics(y_true, y_pred):
    """Compute regression metrics."""
    return {
        "mse": mean_squared_error(y_true, y_pred),
        "rmse": np.sqrt(mean_squared_error(y_true, y_pred)),
        "mae": mean_absolute_error(y_true, y_pred),
        "r2": r2_score(y_true, y_pred),
    }


def plot_confusion_matrix(cm, labels, title="Confusion Matrix"):
    """Return a Plotly heatmap of a confusion matrix."""
    import plotly.graph_objects as go
    fig = go.Figure(data=go.Heatmap(
        z=cm, x=labels, y=labels,
        colorscale="Blues", text=cm, texttemplate="%{text}",
    ))
    fig.update_layout(
        xaxis_title="Predicted", yaxis_title="Actual",
        title=title, height=450,
        template="plotly_white",
    )
    return fig


# ── Regression trees ─────────────────────────────────────────────────────────

def fit_regression_tree(X, y, max_depth=None, min_samples_leaf=5, ccp_alpha=0.0, seed=42):
    """Fit a CART regression tree."""
    tree = DecisionTreeRegressor(
        max_depth=max_depth,
        min_samples_leaf=min_samples_leaf,
        ccp_alpha=ccp_alpha,
        random_state=seed,
    )
    tree.fit(X, y)
    return tree


def pruning_path_cv(X, y, cv=10, min_samples_leaf=5, seed=42):
    """Cross-validated cost-complexity table for a fully grown tree.

    Each row is one candidate ``ccp_alpha`` from the pruning path of the tree
    grown on all of ``X``, with the number of leaves at that alpha and the
    mean / standard error of the K-fold RMSE.
    """
    if len(X) < cv:
        raise ValueError(f"Need at least {cv} rows for {cv}-fold CV, got {len(X)}")

    full = DecisionTreeRegressor(min_samples_leaf=min_samples_leaf, random_state=seed)
    path = full.cost_complexity_pruning_path(X, y)
    alphas = np.unique(np.clip(path.ccp_alphas, 0.0, None))

    folds = KFold(n_splits=cv, shuffle=True, random_state=seed)
    rows = []
    for alpha in alphas:
        tree = fit_regression_tree(X, y, min_samples_leaf=min_samples_leaf, ccp_alpha=alpha, seed=seed)
        scores = cross_val_score(
            DecisionTreeRegressor(min_samples_leaf=min_samples_leaf, ccp_alpha=alpha, random_state=seed),
            X, y, cv=folds, scoring="neg_root_mean_squared_error",
        )
        rmse = -scores
        rows.append({
            "alpha": alpha,
            "n_leaves": tree.get_n_leaves(),
            "cv_rmse": rmse.mean(),
            "cv_se": rmse.std(ddof=1) / np.sqrt(len(rmse)),
        })
    return pd.DataFrame(rows)


def select_alpha(table, rule="1se"):
    """Pick ccp_alpha from a pruning table.

    ``"min"`` takes the lowest CV error. ``"1se"`` takes the largest alpha
    (smallest tree) whose error is within one standard error of the minimum.
    """
    if table.empty:
        raise ValueError("Empty pruning table")
    best = table.loc[table["cv_rmse"].idxmin()]
    if rule == "min":
        return float(best["alpha"])
    if rule == "1se":
        limit = best["cv_rmse"] + best["cv_se"]
        eligible = table[table["cv_rmse"] <= limit]
        return float(eligible["alpha"].max())
    raise ValueError(f"Unknown rule {rule!r}; use 'min' or '1se'")


def tree_rules(model, feature_names, max_depth=10):
    """Text rendering of a fitted tree's splits."""
    return export_text(model, feature_names=list(feature_names), max_depth=max_depth, decimals=2)


# ── K-nearest neighbours ─────────────────────────────────────────────────────

def tune_knn(X, y, k_values=range(1, 31), n_splits=10, n_repeats=3, seed=42):
    """Grid search k for a scaled KNN regressor with repeated K-fold CV."""
    k_values = [k for k in k_values if k <= len(X) * (n_splits - 1) // n_splits]
    if not k_values:
        raise ValueError("No candidate k is smaller than the CV training fold size")

    pipe = Pipeline([
        ("scale", StandardScaler()),
        ("knn", KNeighborsRegressor()),
    ])
    search = GridSearchCV(
        pipe,
        param_grid={"knn__n_neighbors": k_values},
        cv=RepeatedKFold(n_splits=n_splits, n_repeats=n_repeats, random_state=seed),
        scoring="neg_root_mean_squared_error",
    )
    search.fit(X, y)
    logger.info("KNN CV picked k=%d", search.best_params_["knn__n_neighbors"])
    return search


def knn_cv_table(search):
    """Tidy k / RMSE table from a fitted ``tune_knn`` search."""
    res = search.cv_results_
    return pd.DataFrame({
        "k": np.asarray(res["param_knn__n_neighbors"], dtype=int),
        "cv_rmse": -res["mean_test_score"],
        "cv_std": res["std_test_score"],
    }).sort_values("k").reset_index(drop=True)


# ── Logistic regression ──────────────────────────────────────────────────────

def _logit_design(X):
    if X.shape[1] == 0:
        return pd.DataFrame({"const": 1.0}, index=X.index)
    return sm.add_constant(X, has_constant="add")


def fit_logit(X, y):
    """Fit a binomial GLM with a logit link (intercept added).

    A frame with no columns gives the intercept-only model.
    """
    return sm.GLM(y, _logit_design(X), family=sm.families.Binomial()).fit()


def predict_proba(results, X):
    """Predicted probabilities from a ``fit_logit`` result."""
    design = _logit_design(X)
    return np.asarray(results.predict(design[results.params.index]))


def odds_ratio_table(results, alpha=0.05):
    """Odds ratios with Wald confidence intervals, largest effect first."""
    ci = results.conf_int(alpha=alpha)
    table = pd.DataFrame({
        "coef": results.params,
        "std_err": results.bse,
        "p_value": results.pvalues,
        "odds_ratio": np.exp(results.params),
        "ci_lower": np.exp(ci[0]),
        "ci_upper": np.exp(ci[1]),
    })
    table = table.drop(index="const", errors="ignore")
    return table.sort_values("odds_ratio", ascending=False)


def mcfadden_r2(results):
    """McFadden pseudo R-squared: 1 - llf / llnull."""
    return 1.0 - results.llf / results.llnull


def backward_stepwise_aic(X, y):
    """Backward elimination by AIC.

    Starting from all columns of ``X``, repeatedly drop the term whose removal
    lowers AIC the most, stopping when no removal helps. The intercept-only
    model is a candidate once one term is left. Returns the final
    fit, the dropped columns in order, and a history table of AIC per step.
    """
    kept = list(X.columns)
    current = fit_logit(X[kept], y)
    dropped = []
    history = [{"step": 0, "dropped": None, "aic": current.aic}]

    while kept:
        candidates = []
        for col in kept:
            trial = [c for c in kept if c != col]
            candidates.append((fit_logit(X[trial], y).aic, col))
        best_aic, best_col = min(candidates)
        if best_aic >= current.aic:
            break
        kept.remove(best_col)
        dropped.append(best_col)
        current = fit_logit(X[kept], y)
        history.append({"step": len(dropped), "dropped": best_col, "aic": current.aic})
        logger.info("Stepwise AIC dropped %s (AIC %.2f)", best_col, current.aic)

    return current, dropped, pd.DataFrame(history)


def threshold_table(y_true, proba, thresholds=None):
    """Accuracy, sensitivity, specificity and precision per threshold."""
    if thresholds is None:
        thresholds = np.linspace(0.01, 0.99, 99)
    y_true = np.asarray(y_true)
    proba = np.asarray(proba)
    rows = []
    for t in thresholds:
        m = classification_metrics(y_true, (proba >= t).astype(int))
        rows.append({
            "threshold": t,
            "accuracy": m["accuracy"],
            "sensitivity": m["sensitivity"],
            "specificity": m["specificity"],
            "precision": m["precision"],
        })
    return pd.DataFrame(rows)


def roc_summary(y_true, proba):
    """ROC curve points and AUC."""
    fpr, tpr, thresholds = roc_curve(y_true, proba)
    return {
        "fpr": fpr,
        "tpr": tpr,
        "thresholds": thresholds,
        "auc": roc_auc_score(y_true, proba),
    }


def youden_threshold(y_true, proba):
    """Threshold maximising sensitivity + specificity - 1."""
    roc = roc_summary(y_true, proba)
    j = roc["tpr"] - roc["fpr"]
    idx = int(np.argmax(j))
    return float(min(roc["thresholds"][idx], 1.0))
