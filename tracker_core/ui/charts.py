# =============================================================================
# tracker_core/ui/charts.py
# Plotly Charts for the Tracker Pages
# =============================================================================

from __future__ import annotations
from datetime import date
from typing import List, Optional, Sequence, Tuple

import plotly.graph_objects as go
import streamlit as st

COLORS = {
    "bar": "#3b82f6",
    "goal": "#22c55e",
    "text_dim": "#94a3b8",
    "grid": "rgba(255,255,255,0.06)",
}


def build_weekly_chart(
    week: Sequence[Tuple[date, float]],
    goal: Optional[float] = None,
    unit: str = "h",
    height: int = 260,
) -> go.Figure:
    """
    Bar chart of per-day totals (output of weekly_totals).

    A dashed line marks the daily goal when one is given.
    """
    days: List[str] = [day.strftime("%a %d") for day, _ in week]
    values = [value for _, value in week]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=days,
        y=values,
        marker_color=COLORS["bar"],
        hovertemplate=f"%{{x}}: %{{y}}{unit}<extra></extra>",
    ))

    if goal is not None:
        fig.add_hline(y=goal, line_dash="dash", line_color=COLORS["goal"])

    fig.update_layout(
        height=height,
        margin=dict(l=40, r=20, t=20, b=40),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color=COLORS["text_dim"], size=11),
        showlegend=False,
        xaxis=dict(showgrid=False, zeroline=False),
        yaxis=dict(showgrid=True, gridcolor=COLORS["grid"], zeroline=False),
    )
    return fig


def render_weekly_chart(
    week: Sequence[Tuple[date, float]],
    goal: Optional[float] = None,
    unit: str = "h",
    chart_key: Optional[str] = None,
) -> None:
    fig = build_weekly_chart(week, goal=goal, unit=unit)
    st.plotly_chart(fig, use_container_width=True, key=chart_key or "weekly_chart")
