"""
Tests for the time series wrappers.

What we test
------------
1. Stationarity: ADF separates a random walk from white noise.
2. Dependence: Ljung-Box table layout, ARCH LM detects GARCH clustering.
3. ARMA: order grid size and AIC ordering.
4. eGARCH: parameter names, persistence, two-step fit on ARMA residuals,
   model comparison ordering.
5. News impact curve: asymmetry sign and non-stationary guard.
6. Forecasts: horizon length, positivity, annualisation.
"""

from __future__ import annotations

from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest

from reportkit.constants import TRADING_DAYS
from reportkit.ts_helpers import (
    acf_pacf,
    adf_test,
    annualize_vol,
    arch_lm_test,
    compare_volatility_models,
    egarch_news_impact,
    egarch_persistence,
    fit_arma,
    fit_egarch,
    ljung_box,
    select_arma_order,
    volatility_forecast,
)


@pytest.fixture
def egarch_fit(garch_returns: pd.Series):
    return fit_egarch(garch_returns, dist="t")


def _fake_egarch(omega=0.0, alpha=0.1, gamma=-0.1, beta=0.9):
    params = pd.Series({"omega": omega, "alpha[1]": alpha, "gamma[1]": gamma, "beta[1]": beta})
    return SimpleNamespace(params=params)


# ── Stationarity and dependence ────────────────────────────────────────────────

def test_adf_random_walk_vs_white_noise(rng) -> None:
    noise = rng.standard_normal(1000)
    assert adf_test(noise)["p_value"] < 0.01
    assert adf_test(np.cumsum(noise))["p_value"] > 0.05


def test_ljung_box_table(garch_returns: pd.Series) -> None:
    table = ljung_box(garch_returns, lags=(5, 10))
    assert list(table.index) == [5, 10]
    assert list(table.columns) == ["q_stat", "p_value"]


def test_squared_garch_returns_are_autocorrelated(garch_returns: pd.Series) -> None:
    table = ljung_box(garch_returns ** 2, lags=(10,))
    assert table.loc[10, "p_value"] < 0.01


def test_arch_lm_detects_clustering(garch_returns: pd.Series, rng) -> None:
    assert arch_lm_test(garch_returns, nlags=5)["p_value"] < 0.01
    assert arch_lm_test(rng.standard_normal(1500), nlags=5)["p_value"] > 0.001


def test_acf_pacf_shapes(garch_returns: pd.Series) -> None:
    out = acf_pacf(garch_returns, nlags=15)
    assert len(out["acf"]) == 16
    assert len(out["pacf"]) == 16
    assert out["acf"][0] == pytest.approx(1.0)
    assert out["band"] == pytest.approx(1.96 / np.sqrt(len(garch_returns)))


def test_acf_pacf_caps_lags_on_short_series(rng) -> None:
    out = acf_pacf(rng.standard_normal(20), nlags=50)
    assert len(out["acf"]) == 10


# ── ARMA ───────────────────────────────────────────────────────────────────────

def test_select_arma_order_grid(garch_returns: pd.Series) -> None:
    table = select_arma_order(garch_returns.iloc[:600], max_p=1, max_q=1)
    assert len(table) == 4
    assert table["aic"].is_monotonic_increasing
    assert set(zip(table["p"], table["q"])) == {(0, 0), (0, 1), (1, 0), (1, 1)}
    assert table.loc[0, "order"] == f"ARMA({table.loc[0, 'p']},{table.loc[0, 'q']})"


def test_fit_arma_residuals_align(garch_returns: pd.Series) -> None:
    res = fit_arma(garch_returns.iloc[:500], (1, 0))
    assert len(res.resid) == 500
    assert "ar.L1" in res.params.index


# ── eGARCH ─────────────────────────────────────────────────────────────────────

def test_fit_egarch_parameters(egarch_fit) -> None:
    for name in ("omega", "alpha[1]", "gamma[1]", "beta[1]", "nu"):
        assert name in egarch_fit.params.index
    assert 0.0 < egarch_persistence(egarch_fit) < 1.0
    assert (egarch_fit.conditional_volatility > 0).all()


def test_fit_egarch_on_arma_residuals(garch_returns: pd.Series) -> None:
    arma = fit_arma(garch_returns, (1, 0))
    res = fit_egarch(arma.resid, dist="t")
    assert "mu" not in res.params.index
    assert len(res.conditional_volatility) == len(garch_returns)


def test_compare_volatility_models_sorted(garch_returns: pd.Series) -> None:
    specs = [
        {"name": "GARCH-norm", "vol": "GARCH", "o": 0, "dist": "normal"},
        {"name": "eGARCH-norm", "vol": "EGARCH", "o": 1, "dist": "normal"},
    ]
    table = compare_volatility_models(garch_returns, specs)
    assert set(table["model"]) == {"GARCH-norm", "eGARCH-norm"}
    assert table["aic"].is_monotonic_increasing


def test_news_impact_negative_gamma_is_asymmetric() -> None:
    nic = egarch_news_impact(_fake_egarch(gamma=-0.1), z_grid=[-2.0, 0.0, 2.0])
    bad, neutral, good = nic["variance"]
    assert bad > good
    assert bad > neutral


def test_news_impact_symmetric_without_gamma() -> None:
    nic = egarch_news_impact(_fake_egarch(gamma=0.0), z_grid=[-2.0, 2.0])
    assert nic["variance"].iloc[0] == pytest.approx(nic["variance"].iloc[1])
    assert nic["shock"].iloc[0] == pytest.approx(-nic["shock"].iloc[1])


def test_news_impact_rejects_unit_root() -> None:
    with pytest.raises(ValueError):
        egarch_news_impact(_fake_egarch(beta=1.0))


# ── Forecasts ──────────────────────────────────────────────────────────────────

def test_volatility_forecast_horizon(egarch_fit) -> None:
    fc = volatility_forecast(egarch_fit, horizon=5, simulations=200)
    assert fc["step"].tolist() == [1, 2, 3, 4, 5]
    assert (fc["variance"] > 0).all()
    np.testing.assert_allclose(fc["daily_vol"], np.sqrt(fc["variance"]))
    np.testing.assert_allclose(fc["annual_vol"], fc["daily_vol"] * np.sqrt(TRADING_DAYS))


def test_volatility_forecast_one_step_is_analytic(egarch_fit) -> None:
    fc = volatility_forecast(egarch_fit, horizon=1)
    assert len(fc) == 1


def test_volatility_forecast_rejects_zero_horizon(egarch_fit) -> None:
    with pytest.raises(ValueError):
        volatility_forecast(egarch_fit, horizon=0)


def test_annualize_vol() -> None:
    assert annualize_vol(1.0, periods=4) == pytest.approx(2.0)
