from __future__ import annotations

import io
from datetime import datetime

import pandas as pd
import pytest

from budge import aggregates
from budge.categories import CategoryStore
from budge.export import CSV_COLUMNS, build_export, export_filename, transactions_csv, transactions_frame
from budge.transactions import TransactionStore
from budge.users import create_user

NOW = datetime(2025, 1, 20, 9, 30)


@pytest.fixture
def demo(db_path):
    user, _ = create_user("Demo", "demo@example.com", db_path, seed_samples=True)
    return (
        user,
        TransactionStore(user.id, db_path).all(),
        CategoryStore(user.id, db_path).list(),
    )


def test_export_analytics_match_aggregates(demo) -> None:
    user, transactions, categories = demo
    bundle = build_export(user, transactions, categories, now=NOW)
    summary = bundle["analytics"]["summary"]
    assert summary == {
        "totalIncome": 3500,
        "totalExpenses": 1415,
        "balance": 2085,
        "savingsRate": aggregates.savings_rate(transactions),
        "budgetUtilization": aggregates.budget_utilization(1415, user.monthly_budget).percentage,
    }
    breakdown = bundle["analytics"]["categoryBreakdown"]
    assert [row["name"] for row in breakdown] == ["Housing", "Food", "Entertainment", "Transportation"]
    assert breakdown[1]["spent"] == 110


def test_export_trend_covers_twelve_months(demo) -> None:
    user, transactions, categories = demo
    trend = build_export(user, transactions, categories, now=NOW)["analytics"]["monthlyTrend"]
    assert len(trend) == 12
    assert trend[0]["key"] == "2024-02"
    assert trend[-1]["key"] == "2025-01"
    assert trend[-1]["income"] == 3500
    assert all(bucket["income"] == 0 for bucket in trend[:-1])


def test_export_bundle_shape(demo) -> None:
    user, transactions, categories = demo
    bundle = build_export(user, transactions, categories, start_date="2025-01-01", now=NOW)
    info = bundle["exportInfo"]
    assert info["exportDate"] == "2025-01-20T09:30:00"
    assert info["dateRange"] == {"start": "2025-01-01", "end": "All time"}
    assert info["totalRecords"] == {"transactions": 6, "categories": 12, "bankAccounts": 0}
    assert bundle["user"]["email"] == "demo@example.com"
    assert bundle["bankAccounts"] == []
    assert len(bundle["transactions"]) == 6
    assert bundle["transactions"][0]["category"]["name"] == "Salary"
    pie = bundle["analytics"]["pieChartData"]
    assert pie[0] == {
        "name": "Housing",
        "value": 1200,
        "color": "#EF4444",
        "percentage": pytest.approx(1200 * 100 / 1415),
    }


def test_export_for_empty_ledger(user, db_path) -> None:
    categories = CategoryStore(user.id, db_path).list()
    bundle = build_export(user, [], categories, now=NOW)
    assert bundle["analytics"]["summary"]["totalExpenses"] == 0
    assert bundle["analytics"]["categoryBreakdown"] == []
    assert bundle["analytics"]["pieChartData"] == []
    assert bundle["exportInfo"]["dateRange"] == {"start": "All time", "end": "All time"}


def test_transactions_csv(demo) -> None:
    _, transactions, categories = demo
    text = transactions_csv(transactions, categories)
    assert text.splitlines()[0] == ",".join(CSV_COLUMNS)
    frame = pd.read_csv(io.StringIO(text))
    assert len(frame) == 6
    assert frame.loc[0, "Description"] == "Monthly Salary"
    assert frame.loc[0, "Date"] == "2025-01-15"
    assert set(frame["Category"]) == {"Salary", "Housing", "Food", "Transportation", "Entertainment"}


def test_transactions_frame_marks_unknown_categories(demo) -> None:
    _, transactions, _ = demo
    frame = transactions_frame(transactions, [])
    assert list(frame.columns) == CSV_COLUMNS
    assert set(frame["Category"]) == {"Uncategorized"}


def test_export_filename() -> None:
    assert export_filename("csv", NOW) == "budge-export-2025-01-20.csv"
