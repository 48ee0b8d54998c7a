"""Cached data loading, cleaning and encoding utilities."""
import logging
import os

import numpy as np
import pandas as pd
import streamlit as st

from reportkit.constants import (
    DATA_DIR, HITTERS_FILE, STROKE_FILE, PRICES_FILE,
    HITTERS_CATEGORICAL, STROKE_BINARY, STROKE_CATEGORICAL, STROKE_TARGET,
    RETURN_SCALE,
)

logger = logging.getLogger(__name__)


def _data_path(filename):
    path = os.path.join(DATA_DIR, filename)
    if not os.path.exists(path):
        raise FileNotFoundError(
            f"{path} not found. Run `python fetch_data.py` (or place the file "
            f"there by hand) before opening this report."
        )
    return path


# ── Baseball salaries ────────────────────────────────────────────────────────

def clean_hitters(raw):
    """Index by player, drop players without a salary, add LogSalary."""
    df = raw.copy()
    name_col = df.columns[0]
    if name_col in ("rownames", "Player") or name_col.startswith("Unnamed"):
        df[name_col] = df[name_col].astype(str).str.lstrip("-").str.strip()
        df = df.rename(columns={name_col: "Player"}).set_index("Player")

    n_before = len(df)
    df = df.dropna(subset=["Salary"])
    logger.info("Dropped %d players with no salary (%d remain)", n_before - len(df), len(df))
    if df.empty:
        raise ValueError("No players with a recorded salary")

    df["LogSalary"] = np.log(df["Salary"])
    for col in HITTERS_CATEGORICAL:
        df[col] = df[col].astype("category")
    return df


def encode_hitters(df):
    """Return the numeric design frame: dummies for League/Division/NewLeague."""
    X = df.drop(columns=["Salary", "LogSalary"], errors="ignore")
    X = pd.get_dummies(X, columns=HITTERS_CATEGORICAL, drop_first=True, dtype=float)
    return X


@st.cache_data
def load_hitters():
    """Load and clean the Hitters dataset."""
    raw = pd.read_csv(_data_path(HITTERS_FILE))
    return clean_hitters(raw)


# ── Stroke risk ──────────────────────────────────────────────────────────────

def clean_stroke(raw):
    """Coerce bmi, drop the id column, the 'Other' gender row and missing bmi."""
    df = raw.drop(columns=["id"], errors="ignore").copy()
    df["bmi"] = pd.to_numeric(df["bmi"], errors="coerce")

    n_other = int((df["gender"] == "Other").sum())
    df = df[df["gender"] != "Other"]
    n_missing_bmi = int(df["bmi"].isna().sum())
    df = df.dropna(subset=["bmi"])
    logger.info(
        "Stroke cleaning: dropped %d 'Other' gender and %d missing bmi rows",
        n_other, n_missing_bmi,
    )
    if df.empty:
        raise ValueError("No complete stroke records after cleaning")

    for col in STROKE_BINARY + [STROKE_TARGET]:
        df[col] = df[col].astype(int)
    for col in STROKE_CATEGORICAL:
        df[col] = df[col].astype(str).astype("category")
    df = df.reset_index(drop=True)
    df.attrs["dropped_other_gender"] = n_other
    df.attrs["dropped_missing_bmi"] = n_missing_bmi
    return df


def encode_stroke(df):
    """Split into a float design matrix X and integer target y."""
    y = df[STROKE_TARGET].astype(int)
    X = df.drop(columns=[STROKE_TARGET])
    X = pd.get_dummies(X, columns=STROKE_CATEGORICAL, drop_first=True, dtype=float)
    X.columns = [c.replace(" ", "_").replace("-", "_") for c in X.columns]
    return X.astype(float), y


@st.cache_data
def load_stroke():
    """Load and clean the stroke prediction dataset."""
    raw = pd.read_csv(_data_path(STROKE_FILE))
    return clean_stroke(raw)


# ── Apple prices ─────────────────────────────────────────────────────────────

DATE_COLUMNS = ("date", "datetime")
HEADER_ROWS = ("ticker", "date", "datetime")


def _index_by_date(df):
    """Move the date column (or, failing that, the first column) to the index.

    Newer yfinance CSVs carry extra ``Ticker`` and ``Date`` header rows under a
    ``Price`` column; those rows are discarded here.
    """
    if isinstance(df.index, pd.DatetimeIndex):
        return df

    lookup = {str(c).strip().lower(): c for c in df.columns}
    date_col = next((lookup[name] for name in DATE_COLUMNS if name in lookup), None)
    if date_col is None and pd.api.types.is_string_dtype(df.index):
        df = df.reset_index()
        date_col = df.columns[0]
    if date_col is None:
        if len(df.columns) == 0:
            raise ValueError("Price data has no columns")
        date_col = df.columns[0]

    values = df[date_col]
    if pd.api.types.is_numeric_dtype(values):
        raise ValueError(f"Column '{date_col}' holds numbers, not dates")

    labels = values.astype(str).str.strip()
    keep = ~labels.str.lower().isin(HEADER_ROWS)
    df = df[keep]
    dates = pd.to_datetime(labels[keep], errors="coerce")
    if dates.notna().sum() == 0:
        raise ValueError(f"No dates could be parsed from column '{date_col}'")

    df = df.drop(columns=[date_col])
    df.index = pd.DatetimeIndex(dates)
    return df[df.index.notna()]


def clean_prices(raw):
    """Return a date-indexed price Series, preferring adjusted close.

    Accepts a ``Date``/``date``/``Datetime`` column, a frame already indexed by
    dates, or the multi-row-header CSV that current yfinance writes.
    """
    df = _index_by_date(raw.copy())

    price_col = "Adj Close" if "Adj Close" in df.columns else "Close"
    if price_col not in df.columns:
        raise ValueError(f"No 'Adj Close' or 'Close' column in {list(df.columns)}")

    prices = pd.to_numeric(df[price_col], errors="coerce").dropna()
    prices = prices[~prices.index.duplicated(keep="last")].sort_index()
    prices.name = "price"
    prices.index.name = "date"
    return prices


def log_returns(prices, scale=RETURN_SCALE):
    """Percentage log returns: scale * diff(ln p)."""
    if len(prices) < 2:
        raise ValueError("Need at least two prices to compute returns")
    if (prices <= 0).any():
        raise ValueError("Prices must be strictly positive")
    returns = scale * np.log(prices).diff().dropna()
    returns.name = "returns"
    return returns


@st.cache_data
def load_prices():
    """Load the AAPL price history."""
    raw = pd.read_csv(_data_path(PRICES_FILE))
    return clean_prices(raw)


def sidebar_date_filter(series, key="date_filter"):
    """Render a sidebar date range filter; return the sliced series."""
    st.sidebar.header("Filters")
    min_date = series.index.min().date()
    max_date = series.index.max().date()
    date_range = st.sidebar.date_input(
        "Date range", value=(min_date, max_date),
        min_value=min_date, max_value=max_date,
        key=key,
    )
    if len(date_range) == 2:
        start, end = date_range
    else:
        start, end = min_date, max_date
    return series.loc[str(start):str(end)].copy()
