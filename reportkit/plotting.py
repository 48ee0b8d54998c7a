"""Shared Plotly plotting helpers."""
import numpy as np
import plotly.express as px
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from reportkit.constants import SERIES_COLORS


def apply_common_layout(fig, title=None, height=500):
    """Apply common layout settings to a Plotly figure."""
    fig.update_layout(
        template="plotly_white",
        height=height,
        title=title,
        title_x=0.5,
        margin=dict(t=60, b=40, l=60, r=40),
    )
    return fig


def histogram_chart(df, x, color=None, title=None, nbins=40, labels=None, color_map=None,
                    height=450, marginal=None):
    """Create an overlaid histogram."""
    fig = px.histogram(df, x=x, color=color, color_discrete_map=color_map,
                       nbins=nbins, labels=labels or {}, title=title, barmode="overlay",
                       opacity=0.7, marginal=marginal)
    return apply_common_layout(fig, title, height)


def scatter_chart(df, x, y, color=None, title=None, labels=None, color_map=None,
                  height=500, opacity=0.7, **kwargs):
    """Create a scatter plot."""
    fig = px.scatter(df, x=x, y=y, color=color, color_discrete_map=color_map,
                     labels=labels or {}, title=title, opacity=opacity, **kwargs)
    return apply_common_layout(fig, title, height)


def box_chart(df, x, y, color=None, title=None, labels=None, color_map=None, height=450):
    """Create a box plot."""
    fig = px.box(df, x=x, y=y, color=color or x,
                 color_discrete_map=color_map, labels=labels or {}, title=title)
    return apply_common_layout(fig, title, height)


def heatmap_chart(data, x_label="", y_label="", title=None, height=500, color_scale="RdBu_r",
                  zmid=None):
    """Create a heatmap from a DataFrame."""
    fig = go.Figure(data=go.Heatmap(
        z=data.values,
        x=data.columns.tolist(),
        y=data.index.tolist(),
        colorscale=color_scale,
        zmid=zmid,
        text=np.round(data.values, 2),
        texttemplate="%{text}",
    ))
    fig.update_layout(xaxis_title=x_label, yaxis_title=y_label)
    return apply_common_layout(fig, title, height)


def bar_chart(df, x, y, title=None, orientation="v", color=None, height=400, **kwargs):
    """Create a bar chart."""
    fig = px.bar(df, x=x, y=y, orientation=orientation, color=color, title=title, **kwargs)
    return apply_common_layout(fig, title, height)


def line_chart(series, title=None, name=None, color=None, height=400, y_label=None):
    """Line chart of a single date-indexed series."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=series.index, y=series.values, mode="lines",
        name=name or series.name,
        line=dict(color=color or SERIES_COLORS["price"], width=1),
    ))
    fig.update_layout(yaxis_title=y_label)
    return apply_common_layout(fig, title, height)


def roc_chart(fpr, tpr, auc, title="ROC Curve", height=450):
    """ROC curve with the chance diagonal."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=fpr, y=tpr, mode="lines", name=f"Model (AUC = {auc:.3f})",
                             line=dict(color="#E63946", width=3)))
    fig.add_trace(go.Scatter(x=[0, 1], y=[0, 1], mode="lines", name="Chance",
                             line=dict(color="gray", dash="dash")))
    fig.update_layout(xaxis_title="False positive rate (1 - specificity)",
                      yaxis_title="True positive rate (sensitivity)")
    return apply_common_layout(fig, title, height)


def acf_chart(acf_vals, pacf_vals, band, title=None, height=550):
    """Stacked ACF / PACF bar panel with the 95% band."""
    fig = make_subplots(rows=2, cols=1, subplot_titles=["ACF", "PACF"],
                        shared_xaxes=True, vertical_spacing=0.12)
    for row, vals, color in ((1, acf_vals, "#2E86C1"), (2, pacf_vals, "#2A9D8F")):
        fig.add_trace(go.Bar(
            x=list(range(1, len(vals))), y=vals[1:], marker_color=color, showlegend=False,
        ), row=row, col=1)
        fig.add_hline(y=band, line_dash="dash", line_color="red", row=row, col=1)
        fig.add_hline(y=-band, line_dash="dash", line_color="red", row=row, col=1)
    fig.update_xaxes(title_text="Lag (trading days)", row=2, col=1)
    return apply_common_layout(fig, title, height)


def forecast_band_chart(history, forecast, title=None, height=450, y_label=None):
    """Recent in-sample series followed by a dashed forecast path.

    ``forecast`` is a Series indexed by forecast step.
    """
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=list(range(-len(history) + 1, 1)), y=history.values, mode="lines",
        name="In-sample", line=dict(color=SERIES_COLORS["volatility"]),
    ))
    fig.add_trace(go.Scatter(
        x=forecast.index, y=forecast.values, mode="lines+markers",
        name="Forecast", line=dict(color=SERIES_COLORS["forecast"], dash="dash"),
    ))
    fig.update_layout(xaxis_title="Trading days relative to sample end", yaxis_title=y_label)
    return apply_common_layout(fig, title, height)
