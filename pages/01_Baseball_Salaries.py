"""Report 1: Baseball Salaries -- Regression trees and K-nearest neighbours on Hitters."""
import streamlit as st
import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from reportkit.data_loader import load_hitters, encode_hitters
from reportkit.plotting import apply_common_layout, histogram_chart, heatmap_chart, scatter_chart, bar_chart
from reportkit.ml_helpers import (
    prepare_regression_data, regression_metrics, fit_regression_tree,
    pruning_path_cv, select_alpha, tree_rules, tune_knn, knn_cv_table,
)
from reportkit.stats_helpers import correlation_matrix
from reportkit.constants import (
    HITTERS_LABELS, HITTERS_SMALL_TREE_FEATURES, HITTERS_TEST_SIZE, SEED,
)
from reportkit.ui_components import (
    report_header, concept_box, formula_box, insight_box,
    warning_box, code_example, takeaways, require_dataset,
)

# ── Page config ──────────────────────────────────────────────────────────────
report_header(1, "Baseball Salaries", dataset="ISLR Hitters, 1986/87 MLB season")
st.markdown(
    "What is a baseball player worth? The Hitters data records 1986 batting and "
    "fielding statistics, career totals and the 1987 opening-day salary for a few "
    "hundred major-league players. We will try to predict salary two ways: with a "
    "**regression tree**, which carves players into boxes by asking yes/no questions, "
    "and with **K-nearest neighbours**, which prices a player by looking at the players "
    "most like him. Neither method needs a formula for how salary depends on the "
    "statistics, which is exactly why they are a good first pass."
)

# ── Load data ────────────────────────────────────────────────────────────────
df = require_dataset(load_hitters)
X_all = encode_hitters(df)
features = X_all.columns.tolist()
model_df = X_all.join(df[["LogSalary"]])

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("Model Settings")
small_depth = st.sidebar.slider("Small tree depth", 1, 4, 2, key="hit_small_depth")
min_leaf = st.sidebar.slider("Minimum players per leaf", 1, 20, 5, key="hit_min_leaf")
prune_rule = st.sidebar.selectbox("Pruning rule", ["1se", "min"], key="hit_rule")
k_max = st.sidebar.slider("Largest k to try", 5, 40, 30, key="hit_kmax")
cv_repeats = st.sidebar.slider("CV repeats", 1, 5, 3, key="hit_repeats")

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 1 -- The Data
# ══════════════════════════════════════════════════════════════════════════════
st.header("1. The Data")

col1, col2, col3 = st.columns(3)
col1.metric("Players with a salary", len(df))
col2.metric("Median salary", f"${df['Salary'].median() * 1000:,.0f}")
col3.metric("Predictors", len(features))

st.markdown(
    "Players without a recorded salary are dropped -- there is nothing to learn from a "
    "missing answer. Salary is in thousands of dollars and it is heavily right-skewed: "
    "a handful of stars earn several times what a typical player earns. Trees and KNN "
    "both average salaries inside a group, and averages get dragged around by the stars, "
    "so we model **log(Salary)** instead."
)

col_raw, col_log = st.columns(2)
with col_raw:
    st.plotly_chart(
        histogram_chart(df, "Salary", title="Salary ($ thousands)", labels=HITTERS_LABELS),
        use_container_width=True,
    )
with col_log:
    st.plotly_chart(
        histogram_chart(df, "LogSalary", title="log(Salary)", labels=HITTERS_LABELS),
        use_container_width=True,
    )

with st.expander("Summary table"):
    st.dataframe(df.describe().T.round(2), use_container_width=True)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 2 -- Exploring Predictors
# ══════════════════════════════════════════════════════════════════════════════
st.header("2. Which Statistics Track Salary?")

corr = correlation_matrix(model_df)
top_corr = corr["LogSalary"].drop("LogSalary").sort_values(ascending=False)
corr_df = pd.DataFrame({
    "Predictor": [HITTERS_LABELS.get(f, f) for f in top_corr.index],
    "Correlation with log(Salary)": top_corr.values,
})
st.plotly_chart(
    bar_chart(corr_df.iloc[::-1], x="Correlation with log(Salary)", y="Predictor",
              orientation="h", title="Correlation with log(Salary)", height=550),
    use_container_width=True,
)

insight_box(
    f"The strongest single correlate is **{HITTERS_LABELS.get(top_corr.index[0], top_corr.index[0])}** "
    f"(r = {top_corr.iloc[0]:.2f}). Career totals dominate the top of the list: "
    "salary rewards accumulated track record more than one good season. Notice that "
    "the career statistics are also strongly correlated with each other, so much of "
    "this is one signal -- seniority -- counted several times."
)

with st.expander("Career statistics correlation heatmap"):
    career = ["Years", "CAtBat", "CHits", "CHmRun", "CRuns", "CRBI", "CWalks", "LogSalary"]
    st.plotly_chart(
        heatmap_chart(corr.loc[career, career], title="Career Statistics", zmid=0),
        use_container_width=True,
    )

st.plotly_chart(
    scatter_chart(df.reset_index(), "Years", "Hits", color="LogSalary",
                  title="Years vs Hits, coloured by log(Salary)", labels=HITTERS_LABELS,
                  hover_name="Player", color_continuous_scale="Viridis"),
    use_container_width=True,
)

st.markdown(
    "The picture above is the whole story of the next section. Rookies (few years) "
    "are cheap no matter how they hit. Among veterans, the ones who also hit a lot "
    "are the expensive ones. That is a piecewise-constant pattern, and piecewise "
    "constants are what regression trees produce."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 3 -- A Small Tree on Years and Hits
# ══════════════════════════════════════════════════════════════════════════════
st.header("3. A Small Tree: Years and Hits")

concept_box(
    "Recursive Binary Splitting",
    "A regression tree looks for the single predictor and cut-point that, if we split "
    "the players in two and predict each group by its mean, reduces the residual sum "
    "of squares the most. It then repeats inside each half. Every leaf predicts the "
    "average log salary of the training players who land there."
)

formula_box(
    "Split Criterion",
    r"\min_{j,\,s}\;\sum_{i:\,x_{ij} < s} (y_i - \bar{y}_{L})^2 + \sum_{i:\,x_{ij} \geq s} (y_i - \bar{y}_{R})^2",
    "j is the predictor, s the cut-point, and the two means are the left and right "
    "leaf predictions."
)

small_tree = fit_regression_tree(
    df[HITTERS_SMALL_TREE_FEATURES], df["LogSalary"],
    max_depth=small_depth, min_samples_leaf=min_leaf, seed=SEED,
)
st.code(tree_rules(small_tree, HITTERS_SMALL_TREE_FEATURES), language="text")

leaf_ids = small_tree.apply(df[HITTERS_SMALL_TREE_FEATURES])
leaf_df = (
    df.assign(leaf=leaf_ids)
    .groupby("leaf")
    .agg(players=("LogSalary", "size"),
         mean_log_salary=("LogSalary", "mean"),
         min_years=("Years", "min"), max_years=("Years", "max"),
         min_hits=("Hits", "min"), max_hits=("Hits", "max"))
    .reset_index()
)
leaf_df["predicted_salary_$"] = (np.exp(leaf_df["mean_log_salary"]) * 1000).round(0)
st.dataframe(leaf_df, use_container_width=True, hide_index=True)

insight_box(
    "Read the rules from the top. The first question is about **experience**, "
    "and for players on the short side of that cut the tree barely cares about "
    "anything else. Only for veterans does the number of hits matter. Exponentiating "
    "the leaf means turns them back into dollars: the gap between the cheapest and "
    "most expensive leaf is several-fold."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 4 -- Full Tree and Cost-Complexity Pruning
# ══════════════════════════════════════════════════════════════════════════════
st.header("4. A Full Tree and Cost-Complexity Pruning")

X_train, X_test, y_train, y_test, _ = prepare_regression_data(
    model_df, features, "LogSalary", test_size=HITTERS_TEST_SIZE, seed=SEED,
)
st.markdown(
    f"Now we use all {len(features)} predictors and hold out **{len(X_test)} players** "
    f"({HITTERS_TEST_SIZE:.0%}) as a test set. The tree is grown deep on the "
    f"{len(X_train)} training players and then pruned back."
)

concept_box(
    "Cost-Complexity Pruning",
    "A fully grown tree memorises the training players. Pruning asks, for each "
    "penalty alpha, for the subtree that minimises RSS + alpha x (number of leaves). "
    "As alpha grows the tree shrinks. We choose alpha by 10-fold cross-validation, and "
    "by default use the <b>1-SE rule</b>: take the smallest tree whose CV error is "
    "within one standard error of the best, because the differences inside that band "
    "are noise."
)

full_tree = fit_regression_tree(X_train, y_train, min_samples_leaf=min_leaf, seed=SEED)
with st.spinner("Cross-validating the pruning path..."):
    prune_table = pruning_path_cv(X_train, y_train, cv=10, min_samples_leaf=min_leaf, seed=SEED)
best_alpha = select_alpha(prune_table, rule=prune_rule)
pruned_tree = fit_regression_tree(
    X_train, y_train, min_samples_leaf=min_leaf, ccp_alpha=best_alpha, seed=SEED,
)

fig_cp = go.Figure()
fig_cp.add_trace(go.Scatter(
    x=prune_table["n_leaves"], y=prune_table["cv_rmse"],
    error_y=dict(type="data", array=prune_table["cv_se"], visible=True),
    mode="lines+markers", name="10-fold CV RMSE", line=dict(color="#2E86C1"),
))
fig_cp.add_vline(x=pruned_tree.get_n_leaves(), line_dash="dash", line_color="#E63946",
                 annotation_text=f"chosen: {pruned_tree.get_n_leaves()} leaves")
apply_common_layout(fig_cp, "Cross-Validated Error vs Tree Size", 420)
fig_cp.update_layout(xaxis_title="Number of leaves", yaxis_title="CV RMSE (log salary)")
st.plotly_chart(fig_cp, use_container_width=True)

with st.expander("Cost-complexity table"):
    st.dataframe(prune_table.round(4), use_container_width=True, hide_index=True)

full_metrics = regression_metrics(y_test, full_tree.predict(X_test))
pruned_metrics = regression_metrics(y_test, pruned_tree.predict(X_test))

c1, c2, c3, c4 = st.columns(4)
c1.metric("Unpruned leaves", full_tree.get_n_leaves())
c2.metric("Unpruned test RMSE", f"{full_metrics['rmse']:.3f}")
c3.metric("Pruned leaves", pruned_tree.get_n_leaves())
c4.metric("Pruned test RMSE", f"{pruned_metrics['rmse']:.3f}",
          delta=f"{pruned_metrics['rmse'] - full_metrics['rmse']:+.3f}", delta_color="inverse")

st.subheader("Pruned Tree Rules")
st.code(tree_rules(pruned_tree, features), language="text")

imp_df = pd.DataFrame({
    "Predictor": [HITTERS_LABELS.get(f, f) for f in features],
    "Importance": pruned_tree.feature_importances_,
}).query("Importance > 0").sort_values("Importance")
st.plotly_chart(
    bar_chart(imp_df, x="Importance", y="Predictor", orientation="h",
              title="Pruned Tree Variable Importance", height=380),
    use_container_width=True,
)

insight_box(
    f"The pruned tree keeps **{pruned_tree.get_n_leaves()} leaves** against "
    f"{full_tree.get_n_leaves()} for the unpruned one, and its test RMSE is "
    f"{pruned_metrics['rmse']:.3f} versus {full_metrics['rmse']:.3f}. Most of the deep "
    "tree's extra splits were fitting individual players. The surviving splits are "
    "almost all on career totals, which is the seniority story again."
)

warning_box(
    "With only a couple of hundred players, the tree you get depends noticeably on "
    "which players land in the training set. Change the seed and the lower splits "
    "move around. Trust the top splits, not the exact cut-points."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 5 -- K-Nearest Neighbours
# ══════════════════════════════════════════════════════════════════════════════
st.header("5. K-Nearest Neighbours Regression")

concept_box(
    "Pricing a Player by His Neighbours",
    "KNN predicts a player's log salary as the average over the k most similar training "
    "players, using Euclidean distance on the predictors. The statistics live on wildly "
    "different scales (career at-bats run into the thousands, errors into the tens), so "
    "every predictor is <b>standardised</b> inside each CV fold before distances are "
    "computed. Small k chases noise, large k washes everything toward the overall mean."
)

with st.spinner("Tuning k with repeated cross-validation..."):
    search = tune_knn(X_train, y_train, k_values=range(1, k_max + 1),
                      n_splits=10, n_repeats=cv_repeats, seed=SEED)
knn_table = knn_cv_table(search)
best_k = search.best_params_["knn__n_neighbors"]
knn_metrics = regression_metrics(y_test, search.predict(X_test))

fig_k = go.Figure()
fig_k.add_trace(go.Scatter(
    x=knn_table["k"], y=knn_table["cv_rmse"], mode="lines+markers",
    name="CV RMSE", line=dict(color="#2A9D8F"),
))
fig_k.add_vline(x=best_k, line_dash="dash", line_color="#E63946", annotation_text=f"k = {best_k}")
apply_common_layout(fig_k, f"10-fold CV ({cv_repeats} repeats) RMSE by k", 400)
fig_k.update_layout(xaxis_title="k", yaxis_title="CV RMSE (log salary)")
st.plotly_chart(fig_k, use_container_width=True)

c1, c2 = st.columns(2)
c1.metric("Chosen k", best_k)
c2.metric("KNN test RMSE", f"{knn_metrics['rmse']:.3f}")

insight_box(
    f"Cross-validation settles on **k = {best_k}**. The curve drops steeply from k = 1, "
    "where each prediction copies one neighbour's salary, then flattens: beyond a "
    "handful of neighbours, adding more mostly blurs veterans into rookies."
)

code_example("""
from sklearn.model_selection import GridSearchCV, RepeatedKFold
from sklearn.neighbors import KNeighborsRegressor
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

pipe = Pipeline([("scale", StandardScaler()), ("knn", KNeighborsRegressor())])
search = GridSearchCV(
    pipe, {"knn__n_neighbors": range(1, 31)},
    cv=RepeatedKFold(n_splits=10, n_repeats=3, random_state=42),
    scoring="neg_root_mean_squared_error",
)
search.fit(X_train, y_train)
""")

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 6 -- Comparison
# ══════════════════════════════════════════════════════════════════════════════
st.header("6. Which Model Prices Players Better?")

baseline_metrics = regression_metrics(y_test, np.full(len(y_test), y_train.mean()))
compare_df = pd.DataFrame([
    {"Model": "Mean of training salaries", "Test RMSE": baseline_metrics["rmse"], "Test R2": baseline_metrics["r2"]},
    {"Model": "Unpruned tree", "Test RMSE": full_metrics["rmse"], "Test R2": full_metrics["r2"]},
    {"Model": f"Pruned tree ({prune_rule})", "Test RMSE": pruned_metrics["rmse"], "Test R2": pruned_metrics["r2"]},
    {"Model": f"KNN (k = {best_k})", "Test RMSE": knn_metrics["rmse"], "Test R2": knn_metrics["r2"]},
]).round(3)
st.dataframe(compare_df, use_container_width=True, hide_index=True)

pred_df = pd.DataFrame({
    "Actual log(Salary)": y_test,
    "Pruned tree": pruned_tree.predict(X_test),
    "KNN": search.predict(X_test),
}).melt(id_vars="Actual log(Salary)", var_name="Model", value_name="Predicted log(Salary)")
fig_pred = px.scatter(pred_df, x="Actual log(Salary)", y="Predicted log(Salary)", color="Model",
                      color_discrete_map={"Pruned tree": "#E63946", "KNN": "#2A9D8F"},
                      opacity=0.7)
lo, hi = y_test.min(), y_test.max()
fig_pred.add_trace(go.Scatter(x=[lo, hi], y=[lo, hi], mode="lines", name="Perfect",
                              line=dict(color="gray", dash="dash")))
apply_common_layout(fig_pred, "Predicted vs Actual (test players)", 480)
st.plotly_chart(fig_pred, use_container_width=True)

better = "KNN" if knn_metrics["rmse"] < pruned_metrics["rmse"] else "the pruned tree"
insight_box(
    f"On the held-out players, **{better}** has the lower error. A test RMSE of "
    f"{min(knn_metrics['rmse'], pruned_metrics['rmse']):.2f} on the log scale means a "
    f"typical prediction is off by a factor of about "
    f"{np.exp(min(knn_metrics['rmse'], pruned_metrics['rmse'])):.1f}x in dollars. Both "
    "models beat the mean-only baseline comfortably; neither is close to perfect. The "
    "tree buys interpretability (you can read its rules), KNN buys smoothness."
)

# ── Takeaways ────────────────────────────────────────────────────────────────
st.divider()
takeaways([
    "Salary is right-skewed, so both models are fit to log(Salary) and predictions are exponentiated back to dollars.",
    "A two-variable tree already captures the main structure: experience first, then hits for the veterans.",
    "Cost-complexity pruning with 10-fold CV and the 1-SE rule cuts the deep tree down to a handful of leaves with similar or better test error.",
    "KNN needs standardised predictors; k is tuned with repeated 10-fold CV.",
    "With a few hundred players, test RMSE differences between the two models are small compared with split-to-split variation.",
])
