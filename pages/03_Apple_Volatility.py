"""Report 3: Apple Volatility -- ARMA mean model and eGARCH volatility on AAPL returns."""
import streamlit as st
import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from reportkit.data_loader import load_prices, log_returns, sidebar_date_filter
from reportkit.plotting import apply_common_layout, line_chart, histogram_chart, acf_chart, forecast_band_chart
from reportkit.ts_helpers import (
    adf_test, ljung_box, arch_lm_test, acf_pacf, select_arma_order, fit_arma,
    fit_egarch, compare_volatility_models, egarch_persistence, egarch_news_impact,
    volatility_forecast, annualize_vol,
)
from reportkit.stats_helpers import descriptive_stats, normality_test
from reportkit.constants import TICKER, TRADING_DAYS, VOL_MODEL_SPECS, SERIES_COLORS, SEED
from reportkit.ui_components import (
    report_header, concept_box, formula_box, insight_box,
    warning_box, code_example, takeaways, require_dataset,
)

# ── Page config ──────────────────────────────────────────────────────────────
report_header(3, "Apple Volatility", dataset=f"{TICKER} daily adjusted close prices")
st.markdown(
    "Stock returns are famously hard to predict. Stock *volatility* is not: calm days "
    "follow calm days and turbulent days cluster together. This report takes Apple's "
    "daily returns, checks how much predictable structure there is in their level "
    "(very little) and in their size (a lot), fits a small **ARMA** model for the "
    "mean and an **eGARCH** model for the variance, and uses the result to forecast "
    "volatility."
)

# ── Load data ────────────────────────────────────────────────────────────────
prices_all = require_dataset(load_prices)
prices = sidebar_date_filter(prices_all, key="aapl_dates")
if len(prices) < 250:
    st.warning("Please select at least one year of prices.")
    st.stop()
returns = log_returns(prices)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.subheader("Model Settings")
max_p = st.sidebar.slider("Largest AR order p", 0, 5, 3, key="aapl_max_p")
max_q = st.sidebar.slider("Largest MA order q", 0, 5, 3, key="aapl_max_q")
dist = st.sidebar.selectbox("eGARCH innovation distribution", ["t", "normal", "skewt"], key="aapl_dist")
horizon = st.sidebar.slider("Forecast horizon (trading days)", 1, 60, 20, key="aapl_horizon")

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 1 -- Prices and Returns
# ══════════════════════════════════════════════════════════════════════════════
st.header("1. Prices and Returns")

st.plotly_chart(line_chart(prices, title=f"{TICKER} Adjusted Close", name="Price",
                           y_label="USD"), use_container_width=True)

formula_box(
    "Log Returns (percent)",
    r"r_t = 100 \times \left(\ln P_t - \ln P_{t-1}\right)",
    "Prices trend and are non-stationary; returns fluctuate around a small mean. "
    "Percent units keep the GARCH optimiser's numbers in a comfortable range."
)

st.plotly_chart(line_chart(returns, title="Daily Log Returns (%)", name="Return",
                           color=SERIES_COLORS["returns"], y_label="%"),
                use_container_width=True)

desc = descriptive_stats(returns)
norm = normality_test(returns)
c1, c2, c3, c4 = st.columns(4)
c1.metric("Trading days", desc["count"])
c2.metric("Mean daily return", f"{desc['mean']:.3f}%")
c3.metric("Daily std dev", f"{desc['std']:.3f}%")
c4.metric("Excess kurtosis", f"{desc['kurtosis']:.2f}")

st.plotly_chart(
    histogram_chart(returns.to_frame(), "returns", nbins=100, title="Distribution of Daily Returns",
                    labels={"returns": "Daily log return (%)"}),
    use_container_width=True,
)

insight_box(
    f"Excess kurtosis of **{desc['kurtosis']:.1f}** (a normal distribution has 0) and a "
    f"Jarque-Bera p-value of {norm['jb_p_value']:.2g} say the same thing: returns have far "
    "fatter tails than a bell curve. Big moves happen much more often than a normal "
    "model would predict. That is one reason to let the eGARCH innovations follow a "
    "Student-t distribution below."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 2 -- Serial Dependence
# ══════════════════════════════════════════════════════════════════════════════
st.header("2. Is There Structure to Model?")

adf_price = adf_test(np.log(prices))
adf_ret = adf_test(returns)
adf_df = pd.DataFrame([
    {"Series": "log price", "ADF statistic": adf_price["adf_stat"], "p-value": adf_price["p_value"]},
    {"Series": "log return", "ADF statistic": adf_ret["adf_stat"], "p-value": adf_ret["p_value"]},
]).round(4)
st.dataframe(adf_df, use_container_width=True, hide_index=True)
st.markdown(
    "The augmented Dickey-Fuller test cannot reject a unit root in log prices but "
    "rejects it decisively for returns, so returns are what we model, with no further "
    "differencing (d = 0)."
)

col_r, col_sq = st.columns(2)
with col_r:
    ap = acf_pacf(returns, nlags=20)
    st.plotly_chart(acf_chart(ap["acf"], ap["pacf"], ap["band"], title="Returns"),
                    use_container_width=True)
with col_sq:
    ap_sq = acf_pacf(returns ** 2, nlags=20)
    st.plotly_chart(acf_chart(ap_sq["acf"], ap_sq["pacf"], ap_sq["band"], title="Squared returns"),
                    use_container_width=True)

lb_ret = ljung_box(returns, lags=(5, 10, 20))
lb_sq = ljung_box(returns ** 2, lags=(5, 10, 20))
lm = arch_lm_test(returns, nlags=10)
c1, c2, c3 = st.columns(3)
c1.metric("Ljung-Box p (returns, lag 10)", f"{lb_ret.loc[10, 'p_value']:.3g}")
c2.metric("Ljung-Box p (squared, lag 10)", f"{lb_sq.loc[10, 'p_value']:.3g}")
c3.metric("ARCH LM p (10 lags)", f"{lm['p_value']:.3g}")

insight_box(
    "The return autocorrelations are small -- a few bars poke outside the band, which "
    "is why the ARMA search below may still find something. The squared returns are a "
    "different animal: their autocorrelations are positive, significant and decay "
    "slowly. Big moves predict big moves. The ARCH LM test confirms it. That is "
    "**volatility clustering**, and it is what a GARCH-family model is built for."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 3 -- Mean Model
# ══════════════════════════════════════════════════════════════════════════════
st.header("3. The Mean Model: ARMA(p, q) by AIC")

concept_box(
    "ARMA(p, q)",
    "An ARMA model explains today's return with a constant, the last p returns (AR) "
    "and the last q forecast errors (MA). We fit every combination up to the sidebar "
    "bounds and keep the one with the lowest AIC, which rewards likelihood but charges "
    "for every extra coefficient."
)

with st.spinner("Fitting ARMA grid..."):
    try:
        order_table = select_arma_order(returns, max_p=max_p, max_q=max_q)
    except ValueError as e:
        st.error(f"ARMA selection failed: {e}")
        st.stop()

st.dataframe(order_table.head(10).round(2), use_container_width=True, hide_index=True)
best_p, best_q = int(order_table.loc[0, "p"]), int(order_table.loc[0, "q"])
arma_fit = fit_arma(returns, (best_p, best_q))

with st.expander(f"ARMA({best_p},{best_q}) summary"):
    st.text(str(arma_fit.summary()))

resid = pd.Series(np.asarray(arma_fit.resid), index=returns.index, name="resid")
lb_resid = ljung_box(resid, lags=(5, 10, 20))
st.dataframe(lb_resid.round(4), use_container_width=True)

insight_box(
    f"AIC prefers **ARMA({best_p},{best_q})**. The AIC gaps at the top of the table "
    "are small, and so are the fitted coefficients: the mean is nearly unpredictable, "
    "as an efficient market would have it. The Ljung-Box test on the residuals checks "
    "that whatever linear structure existed has been absorbed."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 4 -- eGARCH Volatility Model
# ══════════════════════════════════════════════════════════════════════════════
st.header("4. The Volatility Model: eGARCH(1,1)")

formula_box(
    "eGARCH(1,1)",
    r"\ln \sigma_t^2 = \omega + \alpha\left(|z_{t-1}| - E|z_{t-1}|\right) + \gamma z_{t-1} + \beta \ln \sigma_{t-1}^2",
    "z is the standardised shock. Alpha is the size effect, gamma the sign effect "
    "(gamma < 0 means bad news raises volatility more than good news of the same size), "
    "and beta the persistence. Modelling the log variance keeps it positive without "
    "parameter constraints."
)

st.markdown(
    f"The eGARCH model is fitted to the ARMA({best_p},{best_q}) residuals with a zero "
    f"mean and **{dist}** innovations."
)

try:
    egarch = fit_egarch(resid, p=1, o=1, q=1, dist=dist)
except Exception as e:
    st.error(f"eGARCH fit failed: {e}. Try a different distribution or date range.")
    st.stop()

params_df = pd.DataFrame({
    "estimate": egarch.params,
    "std_err": egarch.std_err,
    "t": egarch.tvalues,
    "p_value": egarch.pvalues,
})
st.dataframe(params_df.round(4), use_container_width=True)

persistence = egarch_persistence(egarch)
c1, c2, c3 = st.columns(3)
c1.metric("Persistence (beta)", f"{persistence:.4f}")
c2.metric("Half-life of a shock", f"{np.log(0.5) / np.log(persistence):.0f} days" if 0 < persistence < 1 else "n/a")
c3.metric("Leverage (gamma)", f"{egarch.params['gamma[1]']:.4f}")

cond_vol = egarch.conditional_volatility
ann_cond_vol = pd.Series(annualize_vol(cond_vol), index=cond_vol.index)
realized = returns.rolling(21).std() * np.sqrt(TRADING_DAYS)

fig_vol = go.Figure()
fig_vol.add_trace(go.Scatter(x=realized.index, y=realized.values, mode="lines",
                             name="21-day realised", line=dict(color="#8D99AE", width=1)))
fig_vol.add_trace(go.Scatter(x=ann_cond_vol.index, y=ann_cond_vol.values, mode="lines",
                             name="eGARCH conditional", line=dict(color=SERIES_COLORS["volatility"], width=1.5)))
apply_common_layout(fig_vol, "Annualised Volatility (%)", 450)
st.plotly_chart(fig_vol, use_container_width=True)

insight_box(
    f"Persistence of **{persistence:.3f}** means a volatility shock fades slowly -- "
    "turbulent regimes last weeks, not days. The conditional volatility tracks the "
    "rolling realised volatility closely but reacts faster, since it updates on each "
    "day's shock instead of averaging a month of them."
)

std_resid = (egarch.resid / egarch.conditional_volatility).dropna()
fig_diag = make_subplots(rows=1, cols=2, subplot_titles=["Standardised residuals", "Squared standardised residuals ACF"])
fig_diag.add_trace(go.Scatter(x=std_resid.index, y=std_resid.values, mode="lines",
                              line=dict(color="#264653", width=0.7), showlegend=False), row=1, col=1)
ap_std = acf_pacf(std_resid ** 2, nlags=20)
fig_diag.add_trace(go.Bar(x=list(range(1, len(ap_std["acf"]))), y=ap_std["acf"][1:],
                          marker_color="#2E86C1", showlegend=False), row=1, col=2)
fig_diag.add_hline(y=ap_std["band"], line_dash="dash", line_color="red", row=1, col=2)
fig_diag.add_hline(y=-ap_std["band"], line_dash="dash", line_color="red", row=1, col=2)
apply_common_layout(fig_diag, None, 380)
st.plotly_chart(fig_diag, use_container_width=True)

lb_std = ljung_box(std_resid ** 2, lags=(5, 10, 20))
st.markdown(
    f"Ljung-Box on squared standardised residuals, lag 10: p = "
    f"**{lb_std.loc[10, 'p_value']:.3f}**. A large p-value means the model has soaked up "
    "the volatility clustering."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 5 -- Model Comparison
# ══════════════════════════════════════════════════════════════════════════════
st.header("5. Is eGARCH the Right Choice?")

with st.spinner("Fitting competing volatility models..."):
    try:
        compare = compare_volatility_models(resid, VOL_MODEL_SPECS)
    except ValueError as e:
        st.error(f"Model comparison failed: {e}")
        compare = None

if compare is not None:
    st.dataframe(compare.round(2), use_container_width=True, hide_index=True)
    fig_aic = go.Figure(go.Bar(x=compare["model"], y=compare["aic"], marker_color="#2E86C1"))
    apply_common_layout(fig_aic, "AIC by Volatility Model (lower is better)", 380)
    fig_aic.update_yaxes(range=[compare["aic"].min() * 0.998, compare["aic"].max() * 1.002])
    st.plotly_chart(fig_aic, use_container_width=True)

    insight_box(
        f"The lowest AIC belongs to **{compare.loc[0, 'model']}**. Two patterns usually "
        "hold for a single stock: Student-t innovations beat normal ones by a wide "
        "margin (the fat tails again), and the asymmetric models (GJR, eGARCH) beat "
        "plain GARCH (the leverage effect)."
    )

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 6 -- News Impact and Forecast
# ══════════════════════════════════════════════════════════════════════════════
st.header("6. News Impact and Volatility Forecast")

try:
    nic = egarch_news_impact(egarch)
except ValueError as e:
    st.error(f"News impact curve unavailable: {e}")
    nic = None

if nic is not None:
    fig_nic = go.Figure(go.Scatter(x=nic["shock"], y=nic["variance"], mode="lines",
                                   line=dict(color=SERIES_COLORS["volatility"], width=3)))
    apply_common_layout(fig_nic, "News Impact Curve", 400)
    fig_nic.update_layout(xaxis_title="Yesterday's shock (%)", yaxis_title="Today's conditional variance")
    st.plotly_chart(fig_nic, use_container_width=True)
    st.markdown(
        "The curve is lopsided whenever gamma is non-zero: a 3% drop moves tomorrow's "
        "variance more than a 3% gain does. This is the **leverage effect**, and eGARCH "
        "captures it with a single parameter."
    )

fc = volatility_forecast(egarch, horizon=horizon, seed=SEED)
history = ann_cond_vol.iloc[-60:]
forecast_path = pd.Series(fc["annual_vol"].values, index=fc["step"].values)
st.plotly_chart(
    forecast_band_chart(history, forecast_path, title=f"{horizon}-Day Volatility Forecast (annualised %)",
                        y_label="Annualised volatility (%)"),
    use_container_width=True,
)

long_run = np.sqrt(np.exp(egarch.params["omega"] / (1 - persistence))) * np.sqrt(TRADING_DAYS) if persistence < 1 else np.nan
c1, c2, c3 = st.columns(3)
c1.metric("Current (annualised)", f"{ann_cond_vol.iloc[-1]:.1f}%")
c2.metric(f"Day {horizon} forecast", f"{fc['annual_vol'].iloc[-1]:.1f}%")
c3.metric("Long-run level (approx.)", f"{long_run:.1f}%")

insight_box(
    "Volatility forecasts mean-revert: from an unusually calm or unusually wild "
    "starting point, the forecast path bends toward the long-run level at a speed set "
    "by the persistence. Multi-step eGARCH forecasts have no closed form, so they are "
    "averaged over simulated paths."
)

warning_box(
    "These are in-sample fits on one stock's history. The parameters drift over time, "
    "and a volatility forecast is a statement about the spread of tomorrow's return, "
    "not its direction."
)

code_example("""
from arch import arch_model
from statsmodels.tsa.arima.model import ARIMA

arma = ARIMA(returns, order=(p, 0, q), trend="c").fit()
egarch = arch_model(arma.resid, mean="Zero", vol="EGARCH", p=1, o=1, q=1,
                    dist="t", rescale=False).fit(disp="off")
fc = egarch.forecast(horizon=20, method="simulation", reindex=False)
""")

# ── Takeaways ────────────────────────────────────────────────────────────────
st.divider()
takeaways([
    "Log returns are stationary and fat-tailed; prices are not stationary.",
    "Returns show almost no linear predictability, and the best ARMA by AIC is small with tiny coefficients.",
    "Squared returns are strongly autocorrelated: volatility clusters, and the ARCH LM test confirms it.",
    "eGARCH(1,1) with Student-t innovations captures persistence, fat tails and the leverage effect.",
    "AIC comparison across GARCH, GJR and eGARCH with normal and t innovations favours asymmetric, fat-tailed specifications.",
    "Volatility forecasts revert toward a long-run level at a rate set by the persistence.",
])
