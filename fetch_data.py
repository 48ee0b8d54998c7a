import io
import logging
import os

import pandas as pd
import requests
import yfinance as yf

from reportkit.constants import (
    DATA_DIR, HITTERS_FILE, STROKE_FILE, PRICES_FILE, TICKER, PRICE_START, PRICE_END,
)

logger = logging.getLogger("fetch_data")

# Rdatasets mirrors the ISLR package data as plain CSV (no key needed)
HITTERS_URL = "https://vincentarelbundock.github.io/Rdatasets/csv/ISLR/Hitters.csv"

# The stroke data sits behind a Kaggle login, so it is downloaded by hand
STROKE_SOURCE = "https://www.kaggle.com/datasets/fedesoriano/stroke-prediction-dataset"


def fetch_hitters(out_path):
    """Download the Hitters CSV."""
    logger.info("Fetching Hitters from %s", HITTERS_URL)
    resp = requests.get(HITTERS_URL, timeout=60)
    resp.raise_for_status()
    df = pd.read_csv(io.StringIO(resp.text))
    df.to_csv(out_path, index=False)
    return len(df)


def fetch_prices(out_path, ticker=TICKER, start=PRICE_START, end=PRICE_END):
    """Download daily prices from Yahoo Finance, keeping the adjusted close."""
    logger.info("Fetching %s prices (%s to %s)", ticker, start, end)
    df = yf.download(ticker, start=start, end=end, auto_adjust=False, progress=False)
    if df.empty:
        raise ValueError(f"No data downloaded for {ticker}")
    # Single-ticker downloads still come back with (field, ticker) columns
    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)
    df.index.name = "Date"
    df.to_csv(out_path)
    return len(df)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    os.makedirs(DATA_DIR, exist_ok=True)

    n = fetch_hitters(os.path.join(DATA_DIR, HITTERS_FILE))
    logger.info("  -> %d players", n)

    n = fetch_prices(os.path.join(DATA_DIR, PRICES_FILE))
    logger.info("  -> %d trading days", n)

    stroke_path = os.path.join(DATA_DIR, STROKE_FILE)
    if os.path.exists(stroke_path):
        logger.info("Found %s", stroke_path)
    else:
        logger.warning(
            "Stroke data not found. Download %s from %s and save it as %s",
            STROKE_FILE, STROKE_SOURCE, stroke_path,
        )

    logger.info("Done. Data directory: %s", DATA_DIR)


if __name__ == "__main__":
    main()
