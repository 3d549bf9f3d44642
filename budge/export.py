"""Data export: the JSON bundle and the transactions CSV.

The analytics section is produced by :mod:`budge.aggregates`, so exported
figures match the dashboard and the AI insights for the same snapshot.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from . import aggregates, config
from .models import Category, Transaction, User, utcnow

CSV_COLUMNS = ["Date", "Description", "Category", "Type", "Amount", "Notes"]
PIE_CHART_SLICES = 6


def transactions_frame(
    transactions: Sequence[Transaction],
    categories: Sequence[Category],
) -> pd.DataFrame:
    """One row per transaction with the category name resolved."""
    names = {category.id: category.name for category in categories}
    records = [
        {
            "Date": txn.date.date().isoformat(),
            "Description": txn.description,
            "Category": names.get(txn.category_id, "Uncategorized"),
            "Type": txn.type,
            "Amount": txn.amount,
            "Notes": txn.notes or "",
        }
        for txn in transactions
    ]
    return pd.DataFrame(records, columns=CSV_COLUMNS)


def transactions_csv(
    transactions: Sequence[Transaction],
    categories: Sequence[Category],
) -> str:
    return transactions_frame(transactions, categories).to_csv(index=False)


def export_filename(extension: str, now: Optional[datetime] = None) -> str:
    return f"budge-export-{(now or utcnow()).date().isoformat()}.{extension}"


def build_export(
    user: User,
    transactions: Sequence[Transaction],
    categories: Sequence[Category],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Assemble the full JSON export for one user."""
    now = now or utcnow()
    by_id = {category.id: category for category in categories}
    summary = aggregates.summarize(transactions, user.monthly_budget)
    breakdown = aggregates.category_breakdown(transactions, categories)
    trend = aggregates.monthly_trend(transactions, config.EXPORT_TREND_MONTHS, now=now)
    # Bank accounts live with the bank-sync service
    bank_accounts: List[Dict[str, Any]] = []

    summary_dict = summary.to_dict()
    analytics_summary = {
        key: summary_dict[key]
        for key in ("totalIncome", "totalExpenses", "balance", "savingsRate", "budgetUtilization")
    }

    return {
        "exportInfo": {
            "exportDate": now.isoformat(),
            "dateRange": {
                "start": start_date or "All time",
                "end": end_date or "All time",
            },
            "totalRecords": {
                "transactions": len(transactions),
                "categories": len(categories),
                "bankAccounts": len(bank_accounts),
            },
        },
        "user": user.to_dict(),
        "analytics": {
            "summary": analytics_summary,
            "categoryBreakdown": [row.to_dict() for row in breakdown],
            "monthlyTrend": [bucket.to_dict() for bucket in trend],
            "pieChartData": [
                {
                    "name": row.name,
                    "value": row.spent,
                    "color": row.color,
                    "percentage": row.percentage,
                }
                for row in aggregates.top_categories(breakdown, PIE_CHART_SLICES)
            ],
        },
        "transactions": [txn.to_dict(by_id.get(txn.category_id)) for txn in transactions],
        "categories": [category.to_dict() for category in categories],
        "bankAccounts": bank_accounts,
    }
