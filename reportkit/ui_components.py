"""Shared UI components: report headers, narrative boxes, code examples."""
import streamlit as st


def report_header(number, title, dataset=None):
    """Render a report header with the dataset caption."""
    if dataset:
        st.caption(f"Dataset: {dataset}")
    st.title(f"Report {number}: {title}")
    st.divider()


def concept_box(title, content):
    """Render a highlighted concept/theory box."""
    st.markdown(f"""
<div style="background-color: #EBF5FB; padding: 20px; border-radius: 10px; border-left: 5px solid #2E86C1; margin: 10px 0;">
<h4 style="color: #2E86C1; margin-top: 0;">{title}</h4>
<p style="color: #1B4F72;">{content}</p>
</div>
""", unsafe_allow_html=True)


def formula_box(title, formula, explanation=""):
    """Render a formula with explanation."""
    st.markdown(f"**{title}**")
    st.latex(formula)
    if explanation:
        st.caption(explanation)


def insight_box(text):
    """Render a key insight callout."""
    st.info(f"**Key Insight:** {text}")


def warning_box(text):
    """Render a caveat callout."""
    st.warning(f"**Caveat:** {text}")


def code_example(code, language="python"):
    """Render a collapsible code example."""
    with st.expander("Show Code"):
        st.code(code, language=language)


def takeaways(points):
    """Render key takeaways as a list."""
    st.subheader("Key Takeaways")
    for p in points:
        st.markdown(f"- {p}")


def require_dataset(loader):
    """Call a data loader; on a missing or malformed file show the error and stop."""
    try:
        return loader()
    except (FileNotFoundError, ValueError) as e:
        st.error(f"Could not load the dataset: {e}")
        st.stop()
