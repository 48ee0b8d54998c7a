"""Report 2: Stroke Risk -- Logistic regression on the stroke prediction dataset."""
import streamlit as st
import numpy as np
import pandas as pd
import plotly.graph_objects as go

from reportkit.data_loader import load_stroke, encode_stroke
from reportkit.plotting import apply_common_layout, box_chart, bar_chart, roc_chart
from reportkit.ml_helpers import (
    prepare_classification_data, classification_metrics, plot_confusion_matrix,
    fit_logit, predict_proba, odds_ratio_table, mcfadden_r2, backward_stepwise_aic,
    threshold_table, roc_summary, youden_threshold,
)
from reportkit.stats_helpers import perform_ttest, chi_square_test
from reportkit.constants import (
    STROKE_NUMERIC, STROKE_BINARY, STROKE_CATEGORICAL, STROKE_TARGET, STROKE_LABELS,
    STROKE_TEST_SIZE, OUTCOME_NAMES, OUTCOME_COLORS, SEED,
)
from reportkit.ui_components import (
    report_header, concept_box, formula_box, insight_box,
    warning_box, code_example, takeaways, require_dataset,
)

# ── Page config ──────────────────────────────────────────────────────────────
report_header(2, "Stroke Risk", dataset="Stroke prediction dataset (Kaggle, fedesoriano)")
st.markdown(
    "Strokes are rare, serious and -- to a surprising degree -- predictable from a "
    "handful of routine measurements. This report asks which patient characteristics "
    "are associated with having had a stroke, and how well a **logistic regression** "
    "built on them can flag at-risk patients. The second question turns out to be "
    "mostly a question about where you put the decision threshold."
)

# ── Load data ────────────────────────────────────────────────────────────────
df = require_dataset(load_stroke)
df["outcome"] = df[STROKE_TARGET].map(OUTCOME_NAMES)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("Model Settings")
use_stepwise = st.sidebar.checkbox("Evaluate the stepwise-AIC model", value=True, key="stroke_step")
threshold = st.sidebar.slider("Decision threshold", 0.01, 0.50, 0.50, 0.01, key="stroke_threshold")

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 1 -- The Data
# ══════════════════════════════════════════════════════════════════════════════
st.header("1. The Data")

n_stroke = int(df[STROKE_TARGET].sum())
col1, col2, col3, col4 = st.columns(4)
col1.metric("Patients", f"{len(df):,}")
col2.metric("Strokes", n_stroke)
col3.metric("Stroke rate", f"{n_stroke / len(df):.1%}")
col4.metric("Rows dropped", df.attrs.get("dropped_missing_bmi", 0) + df.attrs.get("dropped_other_gender", 0))

st.markdown(
    f"Two cleaning steps: `bmi` is stored as text with the literal string `N/A` for "
    f"missing values, and those **{df.attrs.get('dropped_missing_bmi', 0)}** patients are "
    f"dropped rather than imputed. The gender column has "
    f"**{df.attrs.get('dropped_other_gender', 0)}** patient recorded as `Other` -- a single "
    "observation cannot support its own coefficient, so it is dropped too."
)

warning_box(
    f"Only {n_stroke / len(df):.1%} of patients had a stroke. A model that always says "
    f"'no stroke' is {1 - n_stroke / len(df):.1%} accurate and completely useless. "
    "Accuracy is therefore the wrong headline number for this report; sensitivity, "
    "specificity and AUC are the ones to watch."
)

with st.expander("Preview"):
    st.dataframe(df.head(20), use_container_width=True)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 2 -- Exploration
# ══════════════════════════════════════════════════════════════════════════════
st.header("2. Who Has Strokes?")

st.subheader("Numeric measurements")
num_col = st.selectbox("Measurement", STROKE_NUMERIC,
                       format_func=lambda c: STROKE_LABELS.get(c, c), key="stroke_num")
st.plotly_chart(
    box_chart(df, "outcome", num_col, labels={**STROKE_LABELS, "outcome": "Outcome"},
              color_map=OUTCOME_COLORS, title=f"{STROKE_LABELS[num_col]} by outcome"),
    use_container_width=True,
)

ttest_rows = []
for col in STROKE_NUMERIC:
    res = perform_ttest(df.loc[df[STROKE_TARGET] == 1, col], df.loc[df[STROKE_TARGET] == 0, col])
    ttest_rows.append({
        "Measurement": STROKE_LABELS[col],
        "Mean (stroke)": df.loc[df[STROKE_TARGET] == 1, col].mean(),
        "Mean (no stroke)": df.loc[df[STROKE_TARGET] == 0, col].mean(),
        "Welch t": res["t_stat"],
        "p-value": res["p_value"],
        "Cohen's d": res["cohens_d"],
    })
ttest_df = pd.DataFrame(ttest_rows)
st.dataframe(ttest_df.round(4), use_container_width=True, hide_index=True)

insight_box(
    "Age is the dominant difference: stroke patients are on average decades older, "
    "an effect size far beyond anything else in the table. Glucose level also differs "
    "clearly. BMI differs much less than one might guess, which will show up again "
    "in the regression."
)

st.subheader("Categorical characteristics")
chi_rows = []
for col in STROKE_BINARY + STROKE_CATEGORICAL:
    res = chi_square_test(df, col, STROKE_TARGET)
    chi_rows.append({
        "Characteristic": STROKE_LABELS.get(col, col),
        "Chi-square": res["chi2"],
        "dof": res["dof"],
        "p-value": res["p_value"],
        "Cramer's V": res["cramers_v"],
    })
st.dataframe(pd.DataFrame(chi_rows).round(4), use_container_width=True, hide_index=True)

cat_col = st.selectbox("Stroke rate by", STROKE_BINARY + STROKE_CATEGORICAL, key="stroke_cat")
rates = chi_square_test(df, cat_col, STROKE_TARGET)["rates"].reset_index()
rates.columns = ["Level", "Stroke rate"]
rates["Level"] = rates["Level"].astype(str)
st.plotly_chart(
    bar_chart(rates, x="Level", y="Stroke rate", title=f"Stroke rate by {cat_col}",
              color_discrete_sequence=[OUTCOME_COLORS["Stroke"]]),
    use_container_width=True,
)

warning_box(
    "Many of these categorical associations are age in disguise. Married patients "
    "and former smokers have more strokes largely because they are older. The "
    "regression below estimates each effect holding the others -- including age -- fixed."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 3 -- Logistic Regression
# ══════════════════════════════════════════════════════════════════════════════
st.header("3. Logistic Regression on All Predictors")

concept_box(
    "Modelling Log-Odds",
    "Logistic regression models the log-odds of a stroke as a linear function of the "
    "predictors, then squeezes it through the sigmoid to get a probability. Each "
    "coefficient is the change in log-odds for a one-unit change in its predictor with "
    "the others held fixed; exponentiate it and you get an <b>odds ratio</b>. The fit is "
    "maximum likelihood, done by iteratively reweighted least squares inside statsmodels."
)

formula_box(
    "Logistic Model",
    r"\log\frac{P(\text{stroke})}{1 - P(\text{stroke})} = \beta_0 + \beta_1 x_1 + \cdots + \beta_p x_p",
    "The odds ratio for predictor j is exp(beta_j)."
)

X, y = encode_stroke(df.drop(columns=["outcome"]))
X_train, X_test, y_train, y_test = prepare_classification_data(
    X, y, test_size=STROKE_TEST_SIZE, seed=SEED,
)
st.markdown(
    f"Categorical predictors are dummy-coded against their first level. We fit on a "
    f"stratified **{1 - STROKE_TEST_SIZE:.0%}** training split ({len(X_train):,} patients, "
    f"{int(y_train.sum())} strokes) and keep {len(X_test):,} patients for evaluation."
)

try:
    full_fit = fit_logit(X_train, y_train)
except Exception as e:
    st.error(f"Logistic regression failed to fit: {e}")
    st.stop()

c1, c2, c3 = st.columns(3)
c1.metric("AIC", f"{full_fit.aic:.1f}")
c2.metric("Residual deviance", f"{full_fit.deviance:.1f}")
c3.metric("McFadden R²", f"{mcfadden_r2(full_fit):.3f}")

or_full = odds_ratio_table(full_fit)
st.dataframe(or_full.round(4), use_container_width=True)

sig = or_full[or_full["p_value"] < 0.05]
fig_or = go.Figure()
fig_or.add_trace(go.Scatter(
    x=or_full["odds_ratio"], y=or_full.index, mode="markers",
    error_x=dict(type="data", symmetric=False,
                 array=or_full["ci_upper"] - or_full["odds_ratio"],
                 arrayminus=or_full["odds_ratio"] - or_full["ci_lower"]),
    marker=dict(color=["#E63946" if t in sig.index else "#8D99AE" for t in or_full.index], size=9),
    showlegend=False,
))
fig_or.add_vline(x=1, line_dash="dash", line_color="gray")
apply_common_layout(fig_or, "Odds Ratios with 95% Confidence Intervals", 520)
fig_or.update_layout(xaxis_type="log", xaxis_title="Odds ratio (log scale)")
st.plotly_chart(fig_or, use_container_width=True)

if "age" in or_full.index:
    age_or = or_full.loc["age", "odds_ratio"]
    insight_box(
        f"Each additional year of age multiplies the odds of stroke by about "
        f"**{age_or:.3f}**, i.e. roughly {age_or ** 10:.1f}x per decade. "
        f"{len(sig)} term(s) are significant at the 5% level (red). Most of the "
        "categorical effects from section 2 shrink toward an odds ratio of 1 once age "
        "is in the model, which is what confounding looks like."
    )

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 4 -- Stepwise AIC Selection
# ══════════════════════════════════════════════════════════════════════════════
st.header("4. A Smaller Model by Stepwise AIC")

st.markdown(
    "Backward elimination starts from the full model and repeatedly removes the term "
    "whose removal lowers AIC the most, stopping when every removal would raise it. "
    "AIC rewards fit and charges two units per parameter, so terms that do not pull "
    "their weight go."
)

with st.spinner("Running backward elimination..."):
    step_fit, dropped, step_history = backward_stepwise_aic(X_train, y_train)

c1, c2 = st.columns(2)
c1.metric("Terms kept", len(step_fit.params) - 1)
c2.metric("AIC", f"{step_fit.aic:.1f}", delta=f"{step_fit.aic - full_fit.aic:+.1f}", delta_color="inverse")
st.dataframe(step_history.round(2), use_container_width=True, hide_index=True)
st.dataframe(odds_ratio_table(step_fit).round(4), use_container_width=True)

insight_box(
    f"Stepwise selection drops **{len(dropped)}** term(s) and keeps "
    f"{', '.join(c for c in step_fit.params.index if c != 'const')}. The survivors are the "
    "clinically expected ones. Stepwise p-values are optimistic, since the same data "
    "chose the model and then tested it, so read this table as a summary, not a discovery."
)

code_example("""
import statsmodels.api as sm

design = sm.add_constant(X_train)
fit = sm.GLM(y_train, design, family=sm.families.Binomial()).fit()
print(fit.summary())
odds_ratios = np.exp(fit.params)
""")

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 5 -- Evaluation
# ══════════════════════════════════════════════════════════════════════════════
st.header("5. How Well Does It Flag Strokes?")

final_fit = step_fit if use_stepwise else full_fit
proba = predict_proba(final_fit, X_test)
roc = roc_summary(y_test, proba)
j_threshold = youden_threshold(y_train, predict_proba(final_fit, X_train))

st.plotly_chart(roc_chart(roc["fpr"], roc["tpr"], roc["auc"],
                          title=f"ROC Curve ({'stepwise' if use_stepwise else 'full'} model)"),
                use_container_width=True)

insight_box(
    f"AUC is **{roc['auc']:.3f}**: pick one stroke patient and one non-stroke patient "
    f"at random and the model ranks the stroke patient as higher-risk "
    f"{roc['auc']:.0%} of the time. That is good discrimination from a few routine "
    "measurements, almost all of it coming from age."
)

labels = [OUTCOME_NAMES[0], OUTCOME_NAMES[1]]
col_a, col_b = st.columns(2)
for col, t in ((col_a, threshold), (col_b, j_threshold)):
    m = classification_metrics(y_test, (proba >= t).astype(int), labels=labels)
    with col:
        st.plotly_chart(plot_confusion_matrix(m["confusion_matrix"], labels,
                                              title=f"Threshold = {t:.3f}"),
                        use_container_width=True)
        st.markdown(
            f"Accuracy **{m['accuracy']:.1%}** | sensitivity **{m['sensitivity']:.1%}** | "
            f"specificity **{m['specificity']:.1%}**"
        )

st.markdown(
    f"Left: the sidebar threshold ({threshold:.2f}). Right: the threshold that "
    f"maximises Youden's J = sensitivity + specificity - 1 on the training set "
    f"(**{j_threshold:.3f}**), then scored on the held-out test set."
)

sweep = threshold_table(y_test, proba, thresholds=np.linspace(0.01, 0.5, 50))
fig_sweep = go.Figure()
for metric, color in (("sensitivity", "#E63946"), ("specificity", "#2A9D8F"), ("accuracy", "#264653")):
    fig_sweep.add_trace(go.Scatter(x=sweep["threshold"], y=sweep[metric], name=metric.title(),
                                   mode="lines", line=dict(color=color, width=2)))
fig_sweep.add_vline(x=threshold, line_dash="dash", line_color="gray",
                    annotation_text=f"Current: {threshold:.2f}")
apply_common_layout(fig_sweep, "Sensitivity, Specificity and Accuracy by Threshold", 420)
fig_sweep.update_layout(xaxis_title="Threshold", yaxis_title="Rate")
st.plotly_chart(fig_sweep, use_container_width=True)

warning_box(
    "At the conventional 0.5 threshold the model almost never predicts a stroke, "
    "because no patient's predicted probability gets that high when the base rate is "
    "about 5%. High accuracy, near-zero sensitivity. For screening, where a missed "
    "stroke costs far more than a false alarm, a threshold near the base rate is the "
    "sensible starting point."
)

# ── Takeaways ────────────────────────────────────────────────────────────────
st.divider()
takeaways([
    "Cleaning: 'N/A' BMI values and the single 'Other' gender record are dropped before modelling.",
    "Strokes are rare (about 5%), so accuracy is misleading; judge the model by AUC, sensitivity and specificity.",
    "Age is by far the strongest predictor; hypertension and glucose level add to it.",
    "Many raw categorical associations (marriage, work type, smoking) are largely explained by age once it is in the model.",
    "Backward stepwise AIC gives a smaller model with essentially the same discrimination.",
    "The decision threshold should be chosen for the use case, not left at 0.5.",
])
