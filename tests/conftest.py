"""
Shared pytest fixtures for the analysis reports test suite.

Provides small synthetic datasets laid out exactly like the real CSVs:
  - ``raw_hitters``: ISLR Hitters export (player names in ``rownames``,
    some missing salaries).
  - ``raw_stroke``: stroke prediction CSV (``N/A`` bmi strings, one
    ``Other`` gender row, stroke odds rising with age).
  - ``raw_prices``: yfinance-style price frame driven by GARCH(1,1) returns.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def raw_hitters(rng: np.random.Generator) -> pd.DataFrame:
    """120 players; salary driven by years and hits, 10 salaries missing."""
    n = 120
    years = rng.integers(1, 20, n)
    hits = rng.integers(30, 220, n)
    at_bat = hits * 4 + rng.integers(0, 60, n)
    df = pd.DataFrame({
        "rownames": [f"-Player {i}" for i in range(n)],
        "AtBat": at_bat,
        "Hits": hits,
        "HmRun": rng.integers(0, 40, n),
        "Runs": rng.integers(10, 120, n),
        "RBI": rng.integers(10, 120, n),
        "Walks": rng.integers(5, 100, n),
        "Years": years,
        "CAtBat": at_bat * years,
        "CHits": hits * years,
        "CHmRun": rng.integers(0, 300, n),
        "CRuns": rng.integers(10, 1500, n),
        "CRBI": rng.integers(10, 1500, n),
        "CWalks": rng.integers(5, 1000, n),
        "League": rng.choice(["A", "N"], n),
        "Division": rng.choice(["E", "W"], n),
        "PutOuts": rng.integers(0, 1300, n),
        "Assists": rng.integers(0, 450, n),
        "Errors": rng.integers(0, 30, n),
        "NewLeague": rng.choice(["A", "N"], n),
    })
    log_salary = 4.5 + 0.12 * np.minimum(years, 10) + 0.004 * hits + rng.normal(0, 0.3, n)
    salary = np.exp(log_salary)
    salary[:10] = np.nan
    df["Salary"] = salary
    return df


@pytest.fixture
def raw_stroke(rng: np.random.Generator) -> pd.DataFrame:
    """500 patients with stroke probability increasing in age."""
    n = 500
    age = rng.uniform(20, 85, n).round(0)
    glucose = rng.normal(105, 35, n).clip(55, 270).round(2)
    logit = -6.0 + 0.07 * age + 0.006 * glucose
    stroke = (rng.uniform(size=n) < 1 / (1 + np.exp(-logit))).astype(int)
    bmi = rng.normal(29, 6, n).round(1).astype(object)
    bmi[rng.choice(n, 15, replace=False)] = "N/A"
    gender = rng.choice(["Male", "Female"], n).astype(object)
    gender[7] = "Other"
    return pd.DataFrame({
        "id": np.arange(10_000, 10_000 + n),
        "gender": gender,
        "age": age,
        "hypertension": rng.binomial(1, 0.1, n),
        "heart_disease": rng.binomial(1, 0.05, n),
        "ever_married": rng.choice(["Yes", "No"], n),
        "work_type": rng.choice(["Private", "Self-employed", "Govt_job"], n),
        "Residence_type": rng.choice(["Urban", "Rural"], n),
        "avg_glucose_level": glucose,
        "bmi": bmi,
        "smoking_status": rng.choice(["never smoked", "formerly smoked", "smokes", "Unknown"], n),
        "stroke": stroke,
    })


def _garch_returns(rng: np.random.Generator, n: int) -> np.ndarray:
    """Percent returns from a GARCH(1,1) with omega=0.05, alpha=0.1, beta=0.85."""
    omega, alpha, beta = 0.05, 0.10, 0.85
    var = omega / (1 - alpha - beta)
    out = np.empty(n)
    for t in range(n):
        out[t] = np.sqrt(var) * rng.standard_normal()
        var = omega + alpha * out[t] ** 2 + beta * var
    return out


@pytest.fixture
def garch_returns(rng: np.random.Generator) -> pd.Series:
    """1500 business days of GARCH(1,1) percent returns."""
    idx = pd.bdate_range("2018-01-01", periods=1500)
    return pd.Series(_garch_returns(rng, len(idx)), index=idx, name="returns")


@pytest.fixture
def raw_prices(rng: np.random.Generator) -> pd.DataFrame:
    """yfinance-style CSV frame with a Date column, unsorted and one duplicate day."""
    idx = pd.bdate_range("2020-01-01", periods=400)
    adj = 100 * np.exp(np.cumsum(_garch_returns(rng, len(idx)) / 100))
    df = pd.DataFrame({
        "Date": idx.strftime("%Y-%m-%d"),
        "Open": adj * 1.01,
        "High": adj * 1.02,
        "Low": adj * 0.98,
        "Close": adj * 1.05,
        "Adj Close": adj,
        "Volume": rng.integers(1_000_000, 5_000_000, len(idx)),
    })
    shuffled = df.sample(frac=1.0, random_state=0)
    return pd.concat([shuffled, df.iloc[[5]]], ignore_index=True)
