from __future__ import annotations

from datetime import datetime

import plotly.graph_objects as go

from budge import aggregates
from budge.dashboard import load_dashboard_data
from budge.formatting import CurrencyFormat, format_currency, format_percent
from budge.transactions import TransactionStore
from budge.visualization import (
    DARK_THEME,
    LIGHT_THEME,
    create_budget_gauge,
    create_category_pie_chart,
    create_monthly_trend_chart,
    trend_frame,
)


def _breakdown():
    return [
        aggregates.CategorySpend(category_id=1, name="Housing", color="#EF4444", spent=1200, budget=1200, percentage=80),
        aggregates.CategorySpend(category_id=2, name="Food", color="#F59E0B", spent=300, budget=400, percentage=20),
    ]


def test_empty_inputs_render_placeholder() -> None:
    for fig in (create_category_pie_chart([]), create_monthly_trend_chart([])):
        assert isinstance(fig, go.Figure)
        assert fig.layout.title.text == "No data to display"
        assert len(fig.data) == 0


def test_pie_chart_uses_category_colours() -> None:
    fig = create_category_pie_chart(_breakdown(), DARK_THEME)
    assert len(fig.data) == 1
    assert list(fig.data[0].values) == [1200, 300]
    assert fig.layout.paper_bgcolor == DARK_THEME.background


def test_monthly_trend_chart() -> None:
    trend = aggregates.monthly_trend([], 3, now=datetime(2025, 3, 1))
    fig = create_monthly_trend_chart(trend, LIGHT_THEME)
    assert [trace.name for trace in fig.data] == ["Income", "Expenses", "Net"]
    assert list(fig.data[0].x) == ["2025-01", "2025-02", "2025-03"]
    assert list(trend_frame(trend).columns) == ["Month", "Income", "Expenses", "Net"]


def test_budget_gauge_turns_red_over_budget() -> None:
    over = create_budget_gauge(aggregates.budget_utilization(450, 400))
    assert over.data[0].value == 112.5
    assert over.data[0].gauge.bar.color == LIGHT_THEME.expense
    under = create_budget_gauge(aggregates.budget_utilization(120, 400))
    assert under.data[0].gauge.bar.color == LIGHT_THEME.income


def test_load_dashboard_data(user, db_path, categories, named) -> None:
    food = named(categories, "Food")
    TransactionStore(user.id, db_path).create(
        amount=120, description="Groceries", category_id=food.id, type="expense",
    )
    data = load_dashboard_data(user, db_path, months=4)
    assert data.summary.total_expenses == 120
    assert data.budget.percentage == 4
    assert [row.name for row in data.breakdown] == ["Food"]
    assert len(data.trend) == 4
    assert data.trend[-1].expenses == 120


def test_format_currency() -> None:
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-5) == "-$5.00"
    assert format_currency(1234.5, include_sign=False) == "1,234.50"
    assert format_currency(1500, CurrencyFormat.for_code("jpy")) == "¥1,500"
    assert format_currency(10, CurrencyFormat.for_code("CHF")) == "CHF 10.00"
    assert format_percent(112.5) == "112.5%"
