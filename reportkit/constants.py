"""Shared constants: data paths, column groups, labels, colors."""
import os

DATA_DIR = os.environ.get(
    "REPORTS_DATA_DIR",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "data"),
)

HITTERS_FILE = "Hitters.csv"
STROKE_FILE = "healthcare-dataset-stroke-data.csv"
PRICES_FILE = "AAPL.csv"

SEED = 42
TRADING_DAYS = 252

# ── Baseball salaries ────────────────────────────────────────────────────────
HITTERS_CATEGORICAL = ["League", "Division", "NewLeague"]

HITTERS_SMALL_TREE_FEATURES = ["Years", "Hits"]

HITTERS_TEST_SIZE = 0.3

HITTERS_LABELS = {
    "AtBat": "At-bats (1986)",
    "Hits": "Hits (1986)",
    "HmRun": "Home runs (1986)",
    "Runs": "Runs (1986)",
    "RBI": "Runs batted in (1986)",
    "Walks": "Walks (1986)",
    "Years": "Years in the majors",
    "CAtBat": "Career at-bats",
    "CHits": "Career hits",
    "CHmRun": "Career home runs",
    "CRuns": "Career runs",
    "CRBI": "Career RBI",
    "CWalks": "Career walks",
    "PutOuts": "Put-outs (1986)",
    "Assists": "Assists (1986)",
    "Errors": "Errors (1986)",
    "Salary": "Salary ($ thousands)",
    "LogSalary": "log(Salary)",
}

# ── Stroke risk ──────────────────────────────────────────────────────────────
STROKE_TARGET = "stroke"

STROKE_NUMERIC = ["age", "avg_glucose_level", "bmi"]
STROKE_BINARY = ["hypertension", "heart_disease"]
STROKE_CATEGORICAL = [
    "gender", "ever_married", "work_type", "Residence_type", "smoking_status",
]

STROKE_TEST_SIZE = 0.3

STROKE_LABELS = {
    "age": "Age (years)",
    "avg_glucose_level": "Average glucose level (mg/dL)",
    "bmi": "Body mass index",
    "hypertension": "Hypertension",
    "heart_disease": "Heart disease",
    "stroke": "Stroke",
}

OUTCOME_NAMES = {0: "No stroke", 1: "Stroke"}
OUTCOME_COLORS = {"No stroke": "#2A9D8F", "Stroke": "#E63946"}

# ── Apple volatility ─────────────────────────────────────────────────────────
TICKER = "AAPL"
PRICE_START = "2015-01-01"
PRICE_END = "2024-12-31"

RETURN_SCALE = 100.0

VOL_MODEL_SPECS = [
    {"name": "GARCH(1,1)-norm", "vol": "GARCH", "o": 0, "dist": "normal"},
    {"name": "GARCH(1,1)-t", "vol": "GARCH", "o": 0, "dist": "t"},
    {"name": "GJR-GARCH(1,1)-norm", "vol": "GARCH", "o": 1, "dist": "normal"},
    {"name": "GJR-GARCH(1,1)-t", "vol": "GARCH", "o": 1, "dist": "t"},
    {"name": "eGARCH(1,1)-norm", "vol": "EGARCH", "o": 1, "dist": "normal"},
    {"name": "eGARCH(1,1)-t", "vol": "EGARCH", "o": 1, "dist": "t"},
]

SERIES_COLORS = {
    "price": "#264653",
    "returns": "#2E86C1",
    "volatility": "#E63946",
    "forecast": "#7209B7",
}

REPORT_TITLES = {
    1: "Baseball Salaries",
    2: "Stroke Risk",
    3: "Apple Volatility",
}
