"""Statistical Analysis Reports -- Main Entry Point."""
import streamlit as st

from reportkit.constants import REPORT_TITLES, TICKER
from reportkit.data_loader import load_hitters, load_stroke, load_prices

st.set_page_config(
    page_title="Statistical Analysis Reports",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.title("Statistical Analysis Reports")
st.subheader("Three small datasets, three classic models, and what the numbers actually say")

st.markdown(f"""
Each report below loads one small public dataset, cleans it, fits off-the-shelf
models with well-tested libraries, and walks through the results in plain language.
No model here is novel. The value is in the choices -- what to transform, which
parameters to tune, which diagnostics to believe -- and in reading the output honestly.

### The Reports

1. **{REPORT_TITLES[1]}** -- regression trees (with cross-validated cost-complexity
   pruning) and K-nearest-neighbours regression on the 1986/87 MLB Hitters data.
2. **{REPORT_TITLES[2]}** -- logistic regression, odds ratios, stepwise AIC selection and
   threshold choice for a rare outcome.
3. **{REPORT_TITLES[3]}** -- ARMA order selection by AIC and an eGARCH volatility model
   for {TICKER} daily returns.

Pick a report from the sidebar. Every report is a straight line from raw CSV to
conclusions; the sidebar only exposes the parameters worth playing with.
""")

st.divider()
st.subheader("Datasets")

loaders = {
    REPORT_TITLES[1]: load_hitters,
    REPORT_TITLES[2]: load_stroke,
    REPORT_TITLES[3]: load_prices,
}

cols = st.columns(3)
for col, (title, loader) in zip(cols, loaders.items()):
    with col:
        st.markdown(f"**{title}**")
        try:
            data = loader()
        except (FileNotFoundError, ValueError) as e:
            st.warning(str(e))
            continue
        st.metric("Rows", f"{len(data):,}")
        if hasattr(data, "columns"):
            st.caption(f"{data.shape[1]} columns")
            st.dataframe(data.head(10), use_container_width=True)
        else:
            st.caption(f"{data.index.min():%Y-%m-%d} to {data.index.max():%Y-%m-%d}")
            st.dataframe(data.tail(10), use_container_width=True)

st.divider()
st.markdown("**Missing a dataset?** Run `python fetch_data.py` from the repository root.")
