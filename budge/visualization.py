"""Plotly visualisation helpers for the Budge dashboard.

Each function accepts the records produced by :mod:`budge.aggregates`
and returns a ``plotly.graph_objects.Figure`` that Streamlit can render
via ``st.plotly_chart``.  Colours come from an explicit :class:`Theme`
rather than any global state, so the same data renders identically in
every caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .aggregates import BudgetUtilization, CategorySpend, MonthBucket


@dataclass(frozen=True)
class Theme:
    background: str
    text: str
    primary: str
    income: str
    expense: str
    grid: str


LIGHT_THEME = Theme(
    background="#FFFFFF",
    text="#111827",
    primary="#6366F1",
    income="#10B981",
    expense="#EF4444",
    grid="#E5E7EB",
)
DARK_THEME = Theme(
    background="#111827",
    text="#F9FAFB",
    primary="#818CF8",
    income="#34D399",
    expense="#F87171",
    grid="#374151",
)


def apply_theme(fig: go.Figure, theme: Theme) -> go.Figure:
    fig.update_layout(
        paper_bgcolor=theme.background,
        plot_bgcolor=theme.background,
        font_color=theme.text,
    )
    fig.update_xaxes(gridcolor=theme.grid)
    fig.update_yaxes(gridcolor=theme.grid)
    return fig


def _empty_figure(theme: Theme) -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return apply_theme(fig, theme)


def breakdown_frame(breakdown: Sequence[CategorySpend]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"Category": row.name, "Spent": row.spent, "Percentage": row.percentage, "Color": row.color}
            for row in breakdown
        ],
        columns=["Category", "Spent", "Percentage", "Color"],
    )


def trend_frame(trend: Sequence[MonthBucket]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"Month": bucket.key, "Income": bucket.income, "Expenses": bucket.expenses, "Net": bucket.balance}
            for bucket in trend
        ],
        columns=["Month", "Income", "Expenses", "Net"],
    )


def create_category_pie_chart(
    breakdown: Sequence[CategorySpend],
    theme: Theme = LIGHT_THEME,
    title: str | None = None,
) -> go.Figure:
    """Pie chart of expense share per category, in each category's colour."""
    if not breakdown:
        return _empty_figure(theme)
    df = breakdown_frame(breakdown)
    fig = px.pie(
        df,
        names="Category",
        values="Spent",
        color="Category",
        color_discrete_map=dict(zip(df["Category"], df["Color"])),
    )
    fig.update_layout(title=title or "Spending by category")
    return apply_theme(fig, theme)


def create_monthly_trend_chart(
    trend: Sequence[MonthBucket],
    theme: Theme = LIGHT_THEME,
    title: str | None = None,
) -> go.Figure:
    """Grouped income/expense bars per month with the net balance as a line."""
    if not trend:
        return _empty_figure(theme)
    df = trend_frame(trend)
    fig = go.Figure()
    fig.add_trace(go.Bar(x=df["Month"], y=df["Income"], name="Income", marker_color=theme.income))
    fig.add_trace(go.Bar(x=df["Month"], y=df["Expenses"], name="Expenses", marker_color=theme.expense))
    fig.add_trace(go.Scatter(
        x=df["Month"], y=df["Net"], name="Net", mode="lines+markers",
        line={"color": theme.primary},
    ))
    fig.update_layout(
        title=title or "Monthly trend",
        barmode="group",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return apply_theme(fig, theme)


def create_budget_gauge(
    utilization: BudgetUtilization,
    theme: Theme = LIGHT_THEME,
    title: str | None = None,
) -> go.Figure:
    """Gauge of spend against the monthly budget, red once over budget."""
    bar_color = theme.expense if utilization.over_budget else theme.income
    upper = max(100.0, utilization.percentage)
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=utilization.percentage,
        number={"suffix": "%"},
        gauge={
            "axis": {"range": [0, upper]},
            "bar": {"color": bar_color},
            "threshold": {"line": {"color": theme.text, "width": 2}, "value": 100},
        },
    ))
    fig.update_layout(title=title or "Budget used")
    return apply_theme(fig, theme)
