"""Derived-aggregate calculations over a snapshot of ledger rows.

These functions are the single source of truth for totals, savings rate,
budget utilization, category breakdowns and monthly trends.  The HTTP
analytics routes, the data export, the AI insight generator and the
Streamlit dashboard all call them.

All functions are pure and do no I/O.  Empty input yields zero-valued
aggregates rather than an error.
They rely on the stores having validated every row at write time
(positive numeric amounts, a type of ``income`` or ``expense``, a
category reference).

Percentages are computed as ``part * 100 / whole``
(``120 * 100 / 400 == 30.0``; ``120 / 400 * 100`` is not).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import EXPENSE, INCOME, Category, Transaction, utcnow


def _percent(part: float, whole: float) -> float:
    return part * 100.0 / whole if whole > 0 else 0.0


def _sum_amounts(transactions: Iterable[Transaction], txn_type: str) -> float:
    return float(sum(t.amount for t in transactions if t.type == txn_type))


def total_income(transactions: Iterable[Transaction]) -> float:
    return _sum_amounts(transactions, INCOME)


def total_expenses(transactions: Iterable[Transaction]) -> float:
    return _sum_amounts(transactions, EXPENSE)


def balance(transactions: Sequence[Transaction]) -> float:
    return total_income(transactions) - total_expenses(transactions)


def savings_rate(transactions: Sequence[Transaction]) -> float:
    """Share of income kept, as a percentage; 0 when there is no income."""
    income = total_income(transactions)
    return _percent(income - total_expenses(transactions), income)


@dataclass
class CategorySpend:
    category_id: int
    name: str
    color: str
    spent: float
    budget: float
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categoryId": self.category_id,
            "name": self.name,
            "color": self.color,
            "spent": self.spent,
            "budget": self.budget,
            "percentage": self.percentage,
        }


def category_breakdown(
    transactions: Sequence[Transaction],
    categories: Iterable[Category],
) -> List[CategorySpend]:
    """Expense totals per expense category, largest first.

    Categories with no matching spend are left out.  ``percentage`` is each
    category's share of *all* expenses, so expenses whose category is not
    in ``categories`` make the shares sum to less than 100.
    """
    expenses = total_expenses(transactions)
    spend: Dict[int, float] = {}
    for txn in transactions:
        if txn.type == EXPENSE:
            spend[txn.category_id] = spend.get(txn.category_id, 0.0) + txn.amount

    rows: List[CategorySpend] = []
    for category in categories:
        if category.type != EXPENSE:
            continue
        spent = spend.get(category.id, 0.0)
        if spent <= 0:
            continue
        rows.append(CategorySpend(
            category_id=category.id,
            name=category.name,
            color=category.color,
            spent=spent,
            budget=category.budget or 0.0,
            percentage=_percent(spent, expenses),
        ))
    # Name breaks ties so equal spends keep a stable order
    rows.sort(key=lambda row: (-row.spent, row.name))
    return rows


def top_categories(breakdown: Sequence[CategorySpend], limit: int = 6) -> List[CategorySpend]:
    return list(breakdown[:max(limit, 0)])


@dataclass
class BudgetUtilization:
    spent: float
    budget: float
    percentage: float
    over_budget: bool

    @property
    def remaining(self) -> float:
        return self.budget - self.spent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spent": self.spent,
            "budget": self.budget,
            "percentage": self.percentage,
            "overBudget": self.over_budget,
            "remaining": self.remaining,
        }


def budget_utilization(total_spent: float, monthly_budget: float) -> BudgetUtilization:
    return BudgetUtilization(
        spent=total_spent,
        budget=monthly_budget,
        percentage=_percent(total_spent, monthly_budget),
        over_budget=total_spent > monthly_budget,
    )


def per_category_budget_utilization(
    category: Category,
    transactions: Iterable[Transaction],
) -> Optional[BudgetUtilization]:
    """Utilization of one expense category's own budget.

    Returns ``None`` when the category has no budget or is an income
    category, since a ceiling only applies to spending.
    """
    if category.budget is None or category.type != EXPENSE:
        return None
    spent = float(sum(
        t.amount for t in transactions
        if t.type == EXPENSE and t.category_id == category.id
    ))
    return budget_utilization(spent, category.budget)


@dataclass
class MonthBucket:
    year: int
    month: int
    income: float
    expenses: float

    @property
    def balance(self) -> float:
        return self.income - self.expenses

    @property
    def key(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @property
    def label(self) -> str:
        return datetime(self.year, self.month, 1).strftime("%B %Y")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.label,
            "key": self.key,
            "income": self.income,
            "expenses": self.expenses,
            "balance": self.balance,
        }


def _shift_month(year: int, month: int, offset: int) -> tuple:
    index = year * 12 + (month - 1) - offset
    return index // 12, index % 12 + 1


def monthly_trend(
    transactions: Sequence[Transaction],
    month_count: int,
    now: Optional[datetime] = None,
) -> List[MonthBucket]:
    """Income/expense buckets for the ``month_count`` months ending now.

    Every calendar month in the window appears exactly once, oldest first,
    with zeros when it has no transactions.  A transaction belongs to a
    bucket when its date falls anywhere inside that calendar month.
    """
    current = now or utcnow()
    buckets: List[MonthBucket] = []
    for offset in range(max(month_count, 0)):
        year, month = _shift_month(current.year, current.month, offset)
        in_month = [t for t in transactions if t.date.year == year and t.date.month == month]
        buckets.append(MonthBucket(
            year=year,
            month=month,
            income=total_income(in_month),
            expenses=total_expenses(in_month),
        ))
    buckets.reverse()
    return buckets


@dataclass
class Summary:
    total_income: float
    total_expenses: float
    balance: float
    savings_rate: float
    budget_utilization: float
    over_budget: bool
    transaction_count: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "totalIncome": data["total_income"],
            "totalExpenses": data["total_expenses"],
            "balance": data["balance"],
            "savingsRate": data["savings_rate"],
            "budgetUtilization": data["budget_utilization"],
            "overBudget": data["over_budget"],
            "transactionCount": data["transaction_count"],
        }


def summarize(transactions: Sequence[Transaction], monthly_budget: float = 0.0) -> Summary:
    """Headline numbers for a snapshot, compared against ``monthly_budget``."""
    income = total_income(transactions)
    expenses = total_expenses(transactions)
    utilization = budget_utilization(expenses, monthly_budget)
    return Summary(
        total_income=income,
        total_expenses=expenses,
        balance=income - expenses,
        savings_rate=_percent(income - expenses, income),
        budget_utilization=utilization.percentage,
        over_budget=utilization.over_budget,
        transaction_count=len(transactions),
    )
