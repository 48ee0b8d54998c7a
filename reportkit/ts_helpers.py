"""Time series wrappers: stationarity and dependence tests, ARMA, eGARCH."""
import logging
import warnings

import numpy as np
import pandas as pd
from arch import arch_model
from statsmodels.stats.diagnostic import acorr_ljungbox, het_arch
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.stattools import acf, adfuller, pacf

from reportkit.constants import TRADING_DAYS

logger = logging.getLogger(__name__)

# E|z| for a standard normal, the centring term arch uses in EGARCH
_ABS_NORMAL_MEAN = np.sqrt(2.0 / np.pi)


def adf_test(series):
    """Augmented Dickey-Fuller test with AIC lag selection."""
    stat, p, lags, nobs, crit, _ = adfuller(np.asarray(series), autolag="AIC")
    return {
        "adf_stat": stat,
        "p_value": p,
        "lags_used": lags,
        "nobs": nobs,
        "critical_values": crit,
    }


def ljung_box(series, lags=(5, 10, 20)):
    """Ljung-Box Q statistics at the requested lags."""
    out = acorr_ljungbox(np.asarray(series), lags=list(lags), return_df=True)
    out.index.name = "lag"
    return out.rename(columns={"lb_stat": "q_stat", "lb_pvalue": "p_value"})


def arch_lm_test(series, nlags=10):
    """Engle's LM test for ARCH effects."""
    lm, lm_p, f, f_p = het_arch(np.asarray(series), nlags=nlags)
    return {"lm_stat": lm, "p_value": lm_p, "f_stat": f, "f_p_value": f_p}


def acf_pacf(series, nlags=20):
    """ACF and PACF values plus the +/- 1.96/sqrt(n) band."""
    values = np.asarray(series)
    nlags = min(nlags, len(values) // 2 - 1)
    return {
        "acf": acf(values, nlags=nlags, fft=True),
        "pacf": pacf(values, nlags=nlags),
        "band": 1.96 / np.sqrt(len(values)),
    }


def fit_arma(series, order):
    """Fit an ARMA(p, q) with constant via statsmodels ARIMA (d = 0)."""
    p, q = order
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        return ARIMA(series, order=(p, 0, q), trend="c").fit()


def select_arma_order(series, max_p=3, max_q=3):
    """Fit every ARMA(p, q) up to the bounds and rank by AIC."""
    rows = []
    for p in range(max_p + 1):
        for q in range(max_q + 1):
            try:
                res = fit_arma(series, (p, q))
            except (ValueError, np.linalg.LinAlgError) as exc:
                logger.warning("ARMA(%d,%d) failed to fit: %s", p, q, exc)
                continue
            rows.append({
                "p": p, "q": q,
                "order": f"ARMA({p},{q})",
                "aic": res.aic, "bic": res.bic, "llf": res.llf,
            })
    if not rows:
        raise ValueError("No ARMA order could be fitted")
    table = pd.DataFrame(rows).sort_values("aic").reset_index(drop=True)
    logger.info("Lowest-AIC mean model: %s", table.loc[0, "order"])
    return table


def fit_egarch(series, p=1, o=1, q=1, dist="t", mean="Zero"):
    """Fit an eGARCH(p, o, q) volatility model with arch.

    arch mean models have no MA terms, so the conditional mean is handled
    first: pass the residuals of ``fit_arma`` and keep ``mean="Zero"``.
    Passing raw returns with ``mean="Constant"`` also works when no ARMA
    structure is needed.
    """
    model = arch_model(
        series, mean=mean, vol="EGARCH", p=p, o=o, q=q,
        dist=dist, rescale=False,
    )
    return model.fit(disp="off", show_warning=False)


def compare_volatility_models(series, specs, mean="Zero"):
    """AIC / BIC / log-likelihood for a grid of GARCH-family specs."""
    rows = []
    for spec in specs:
        try:
            res = arch_model(
                series, mean=mean, vol=spec["vol"], p=1, o=spec["o"], q=1,
                dist=spec["dist"], rescale=False,
            ).fit(disp="off", show_warning=False)
        except (ValueError, np.linalg.LinAlgError) as exc:
            logger.warning("%s failed to fit: %s", spec["name"], exc)
            continue
        rows.append({
            "model": spec["name"],
            "aic": res.aic, "bic": res.bic, "llf": res.loglikelihood,
        })
    if not rows:
        raise ValueError("No volatility model could be fitted")
    return pd.DataFrame(rows).sort_values("aic").reset_index(drop=True)


def egarch_persistence(results):
    """Sum of the beta coefficients of an eGARCH fit."""
    return float(sum(v for k, v in results.params.items() if k.startswith("beta")))


def egarch_news_impact(results, z_grid=None):
    """News impact curve of an EGARCH(1,1,1) fit.

    Holds yesterday's log variance at its unconditional level and traces
    today's conditional variance as a function of yesterday's standardized
    shock ``z``. ``gamma < 0`` makes the curve steeper for bad news.
    """
    if z_grid is None:
        z_grid = np.linspace(-5, 5, 201)
    z_grid = np.asarray(z_grid, dtype=float)
    params = results.params
    omega = params["omega"]
    alpha = params["alpha[1]"]
    gamma = params["gamma[1]"]
    beta = params["beta[1]"]
    if beta >= 1:
        raise ValueError(f"Non-stationary eGARCH fit (beta={beta:.4f})")

    log_var_bar = omega / (1.0 - beta)
    log_var = omega + alpha * (np.abs(z_grid) - _ABS_NORMAL_MEAN) + gamma * z_grid + beta * log_var_bar
    return pd.DataFrame({
        "z": z_grid,
        "shock": z_grid * np.exp(log_var_bar / 2.0),
        "variance": np.exp(log_var),
    })


def volatility_forecast(results, horizon=20, simulations=1000, seed=42, periods=TRADING_DAYS):
    """Forecast conditional volatility ``horizon`` steps past the sample end."""
    if horizon < 1:
        raise ValueError("horizon must be at least 1")
    method = "analytic" if horizon == 1 else "simulation"
    fc = results.forecast(
        horizon=horizon, method=method, simulations=simulations,
        random_state=np.random.RandomState(seed), reindex=False,
    )
    variance = fc.variance.iloc[-1].to_numpy()
    daily_vol = np.sqrt(variance)
    return pd.DataFrame({
        "step": np.arange(1, horizon + 1),
        "variance": variance,
        "daily_vol": daily_vol,
        "annual_vol": annualize_vol(daily_vol, periods),
    })


def annualize_vol(vol, periods=TRADING_DAYS):
    """Scale per-period volatility to an annual figure."""
    return np.asarray(vol) * np.sqrt(periods)
