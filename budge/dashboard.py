"""Streamlit dashboard for a Budge account.

The dashboard reads the ledger directly and renders the same aggregates
the API and the export report, via :mod:`budge.aggregates`.

To run the dashboard from the command line::

    streamlit run budge/dashboard.py
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import List, Optional

import streamlit as st

# Support both ``streamlit run budge/dashboard.py`` and package imports
if __package__:
    from . import aggregates, config
    from . import visualization as viz
    from .budget_settings import BudgetSettings
    from .categories import CategoryStore
    from .db import PathLike, init_db
    from .errors import AuthenticationError
    from .formatting import CurrencyFormat, format_currency, format_percent
    from .models import User
    from .transactions import TransactionStore
    from .users import authenticate
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from budge import aggregates, config  # type: ignore
    from budge import visualization as viz  # type: ignore
    from budge.budget_settings import BudgetSettings  # type: ignore
    from budge.categories import CategoryStore  # type: ignore
    from budge.db import PathLike, init_db  # type: ignore
    from budge.errors import AuthenticationError  # type: ignore
    from budge.formatting import CurrencyFormat, format_currency, format_percent  # type: ignore
    from budge.models import User  # type: ignore
    from budge.transactions import TransactionStore  # type: ignore
    from budge.users import authenticate  # type: ignore


@dataclass
class DashboardData:
    summary: aggregates.Summary
    budget: aggregates.BudgetUtilization
    breakdown: List[aggregates.CategorySpend]
    trend: List[aggregates.MonthBucket]


def load_dashboard_data(
    user: User,
    db_path: Optional[PathLike] = None,
    months: int = config.DEFAULT_TREND_MONTHS,
) -> DashboardData:
    transactions = TransactionStore(user.id, db_path).all()
    categories = CategoryStore(user.id, db_path).list()
    monthly_budget = BudgetSettings(user.id, db_path).get()
    return DashboardData(
        summary=aggregates.summarize(transactions, monthly_budget),
        budget=aggregates.budget_utilization(aggregates.total_expenses(transactions), monthly_budget),
        breakdown=aggregates.category_breakdown(transactions, categories),
        trend=aggregates.monthly_trend(transactions, months),
    )


def main() -> None:
    """Entry point for the Streamlit app."""
    st.set_page_config(page_title="Budge", layout="wide", initial_sidebar_state="expanded")
    st.title("Budge")
    config.configure_logging()
    init_db()

    token = st.sidebar.text_input("API token", type="password")
    theme_label = st.sidebar.radio("Theme", options=["Light", "Dark"], horizontal=True)
    months = st.sidebar.slider("Trend months", min_value=1, max_value=24, value=config.DEFAULT_TREND_MONTHS)
    theme = viz.DARK_THEME if theme_label == "Dark" else viz.LIGHT_THEME

    if not token:
        st.info("Enter your API token to load your ledger.")
        st.stop()
    try:
        user = authenticate(token)
    except AuthenticationError as exc:
        st.error(exc.message)
        st.stop()

    fmt = CurrencyFormat.for_code(user.currency)
    data = load_dashboard_data(user, months=months)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", format_currency(data.summary.total_income, fmt))
    col2.metric("Expenses", format_currency(data.summary.total_expenses, fmt))
    col3.metric("Balance", format_currency(data.summary.balance, fmt))
    col4.metric("Savings rate", format_percent(data.summary.savings_rate))

    left, right = st.columns(2)
    with left:
        st.plotly_chart(viz.create_budget_gauge(data.budget, theme), use_container_width=True)
    with right:
        st.plotly_chart(viz.create_category_pie_chart(data.breakdown, theme), use_container_width=True)

    st.subheader("Monthly trend")
    st.plotly_chart(viz.create_monthly_trend_chart(data.trend, theme), use_container_width=True)
    st.dataframe(viz.trend_frame(data.trend))


if __name__ == "__main__":  # pragma: no cover
    main()
