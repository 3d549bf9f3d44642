from __future__ import annotations

from datetime import datetime

import pytest

from budge import aggregates
from budge.errors import CategoryMismatchError, NotFoundError, ValidationError
from budge.models import utcnow
from budge.transactions import TransactionStore, date_bounds


def _expense(store, category, amount=10.0, when="2025-01-05T12:00:00", description="Expense"):
    return store.create(
        amount=amount,
        description=description,
        category_id=category.id,
        type="expense",
        date=when,
    )


def test_create_and_get(transactions, categories, named) -> None:
    food = named(categories, "Food")
    created = transactions.create(
        amount=19.99,
        description="  Groceries ",
        category_id=food.id,
        type="expense",
        date="2025-01-05",
        notes="weekly shop",
        tags=["food", "weekly", "food"],
    )
    assert created.description == "Groceries"
    assert created.date == datetime(2025, 1, 5)
    assert created.tags == ["food", "weekly"]
    assert created.is_recurring is False
    assert transactions.get(created.id) == created
    rendered = created.to_dict(food)
    assert rendered["category"] == {"id": food.id, "name": "Food", "color": "#F59E0B", "type": "expense"}
    assert rendered["date"] == "2025-01-05T00:00:00"


def test_create_defaults_date_to_now(transactions, categories, named) -> None:
    before = utcnow().replace(microsecond=0)
    created = transactions.create(
        amount=5, description="Coffee", category_id=named(categories, "Food").id, type="expense",
    )
    assert created.date >= before


def test_create_with_timezone_offset_is_stored_as_utc(transactions, categories, named) -> None:
    created = _expense(transactions, named(categories, "Food"), when="2025-01-05T10:00:00+02:00")
    assert created.date == datetime(2025, 1, 5, 8, 0)


@pytest.mark.parametrize(
    "txn_type,category_name",
    [("income", "Food"), ("expense", "Salary")],
)
def test_create_rejects_type_mismatch(transactions, categories, named, txn_type, category_name) -> None:
    category = named(categories, category_name)
    with pytest.raises(CategoryMismatchError) as excinfo:
        transactions.create(amount=10, description="Mismatch", category_id=category.id, type=txn_type)
    assert excinfo.value.code == "category_mismatch"
    assert transactions.list().total == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": 0},
        {"amount": -5},
        {"amount": float("inf")},
        {"amount": True},
        {"description": ""},
        {"description": "x" * 201},
        {"notes": "x" * 501},
        {"type": "transfer"},
        {"date": "not a date"},
        {"is_recurring": True},
        {"is_recurring": True, "recurrence": {"frequency": "hourly"}},
        {"is_recurring": True, "recurrence": {"frequency": "weekly", "interval": 0}},
        {"tags": "food"},
        {"tags": ["x" * 31]},
        {"category_id": "abc"},
    ],
)
def test_create_rejects_invalid_fields(transactions, categories, named, overrides) -> None:
    fields = {
        "amount": 10,
        "description": "Lunch",
        "category_id": named(categories, "Food").id,
        "type": "expense",
    }
    fields.update(overrides)
    with pytest.raises(ValidationError):
        transactions.create(**fields)


def test_create_recurring(transactions, categories, named) -> None:
    housing = named(categories, "Housing")
    created = transactions.create(
        amount=1200,
        description="Rent",
        category_id=housing.id,
        type="expense",
        is_recurring=True,
        recurrence={"frequency": "monthly", "endDate": "2025-12-31"},
    )
    assert created.is_recurring is True
    assert created.recurrence.frequency == "monthly"
    assert created.recurrence.interval == 1
    assert created.recurrence.end_date == datetime(2025, 12, 31)


def test_create_with_foreign_category(transactions, other_user, db_path, named) -> None:
    from budge.categories import CategoryStore

    foreign = named(CategoryStore(other_user.id, db_path), "Food")
    with pytest.raises(NotFoundError) as excinfo:
        transactions.create(amount=10, description="Lunch", category_id=foreign.id, type="expense")
    assert excinfo.value.message == "Category not found or does not belong to user"


def test_update_checks_effective_category_type(transactions, categories, named) -> None:
    food = named(categories, "Food")
    salary = named(categories, "Salary")
    created = _expense(transactions, food)

    with pytest.raises(CategoryMismatchError):
        transactions.update(created.id, category_id=salary.id)
    with pytest.raises(CategoryMismatchError):
        transactions.update(created.id, type="income")

    moved = transactions.update(created.id, type="income", category_id=salary.id)
    assert (moved.type, moved.category_id) == ("income", salary.id)


def test_update_partial_fields(transactions, categories, named) -> None:
    created = _expense(transactions, named(categories, "Food"))
    updated = transactions.update(created.id, amount=42.5, notes="split bill", tags=["friends"])
    assert updated.amount == 42.5
    assert updated.notes == "split bill"
    assert updated.tags == ["friends"]
    assert updated.description == created.description
    assert updated.updated_at >= created.updated_at
    with pytest.raises(ValidationError):
        transactions.update(created.id, amount=-1)
    assert transactions.get(created.id).amount == 42.5


def test_update_and_delete_missing(transactions) -> None:
    with pytest.raises(NotFoundError):
        transactions.update(999, amount=5)
    with pytest.raises(NotFoundError):
        transactions.delete(999)


def test_delete_removes_from_aggregates(transactions, categories, named) -> None:
    food = named(categories, "Food")
    keep = _expense(transactions, food, amount=20)
    drop = _expense(transactions, food, amount=30)
    assert aggregates.total_expenses(transactions.all()) == 50
    transactions.delete(drop.id)
    with pytest.raises(NotFoundError):
        transactions.get(drop.id)
    assert aggregates.total_expenses(transactions.all()) == 50 - 30
    assert transactions.get(keep.id).amount == 20


def test_created_transaction_counts_once_in_breakdown(transactions, categories, named) -> None:
    pets = categories.create(name="Pets", color="#123456", type="expense")
    _expense(transactions, pets, amount=33)
    breakdown = aggregates.category_breakdown(transactions.all(), categories.list())
    rows = [row for row in breakdown if row.category_id == pets.id]
    assert len(rows) == 1
    assert rows[0].spent == 33


def test_list_orders_newest_first_with_id_tie_break(transactions, categories, named) -> None:
    food = named(categories, "Food")
    first = _expense(transactions, food, when="2025-01-05", description="First")
    second = _expense(transactions, food, when="2025-01-05", description="Second")
    older = _expense(transactions, food, when="2025-01-01", description="Older")
    newer = _expense(transactions, food, when="2025-02-01", description="Newer")
    ids = [t.id for t in transactions.list().items]
    assert ids == [newer.id, second.id, first.id, older.id]


def test_list_pagination(transactions, categories, named) -> None:
    food = named(categories, "Food")
    for day in range(1, 6):
        _expense(transactions, food, when=f"2025-01-{day:02d}")
    page = transactions.list(page=1, page_size=2)
    assert page.pagination() == {"page": 1, "limit": 2, "total": 5, "pages": 3}
    assert page.items[0].date == datetime(2025, 1, 5)
    last = transactions.list(page=3, page_size=2)
    assert [t.date for t in last.items] == [datetime(2025, 1, 1)]
    assert transactions.list(page=4, page_size=2).items == []


def test_list_page_size_is_capped(transactions) -> None:
    assert transactions.list(page_size=500).limit == 100
    with pytest.raises(ValidationError):
        transactions.list(page=0)
    with pytest.raises(ValidationError):
        transactions.list(page_size=0)


def test_list_filters(transactions, categories, named) -> None:
    food = named(categories, "Food")
    salary = named(categories, "Salary")
    _expense(transactions, food, when="2025-01-31T23:59:00")
    _expense(transactions, food, when="2025-02-01T00:00:00")
    transactions.create(amount=3000, description="Pay", category_id=salary.id, type="income", date="2025-01-15")

    assert transactions.list(txn_type="income").total == 1
    assert transactions.list(category_id=food.id).total == 2
    january = transactions.list(start_date="2025-01-01", end_date="2025-01-31")
    assert january.total == 2
    assert transactions.list(start_date="2025-02-01").total == 1
    with pytest.raises(ValidationError):
        transactions.list(txn_type="transfer")


def test_date_bounds() -> None:
    start, end = date_bounds("2025-01-01", "2025-01-31")
    assert start == datetime(2025, 1, 1)
    assert end.date() == datetime(2025, 1, 31).date()
    assert end.hour == 23
    assert date_bounds(None, "") == (None, None)
    with pytest.raises(ValidationError) as excinfo:
        date_bounds("garbage", None)
    assert excinfo.value.message == "Invalid start date"
    with pytest.raises(ValidationError) as excinfo:
        date_bounds(None, "garbage")
    assert excinfo.value.message == "Invalid end date"


def test_owner_isolation(transactions, categories, named, other_user, db_path) -> None:
    created = _expense(transactions, named(categories, "Food"))
    other = TransactionStore(other_user.id, db_path)
    assert other.list().total == 0
    with pytest.raises(NotFoundError):
        other.get(created.id)
    with pytest.raises(NotFoundError):
        other.delete(created.id)


def test_summary(transactions, categories, named) -> None:
    salary = named(categories, "Salary")
    food = named(categories, "Food")
    transactions.create(amount=1000, description="Pay", category_id=salary.id, type="income", date="2025-01-01")
    _expense(transactions, food, amount=120)
    summary = transactions.summary(monthly_budget=400)
    assert summary.total_income == 1000
    assert summary.total_expenses == 120
    assert summary.balance == 880
    assert summary.savings_rate == 88
    assert summary.budget_utilization == 30
    assert transactions.summary(start_date="2025-02-01").transaction_count == 0


def test_update_to_one_off_clears_recurrence(transactions, categories, named) -> None:
    housing = named(categories, "Housing")
    created = transactions.create(
        amount=1200,
        description="Rent",
        category_id=housing.id,
        type="expense",
        is_recurring=True,
        recurrence={"frequency": "monthly"},
    )
    updated = transactions.update(created.id, is_recurring=False)
    assert updated.is_recurring is False
    assert updated.recurrence is None
    assert updated.to_dict()["recurringPattern"] is None
    assert transactions.get(created.id).recurrence is None

    restored = transactions.update(created.id, is_recurring=True, recurrence={"frequency": "yearly"})
    assert restored.recurrence.frequency == "yearly"
