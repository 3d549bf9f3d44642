"""Default categories and demo data created for a new account."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from .categories import CategoryStore
from .db import PathLike
from .models import Category, Transaction
from .transactions import TransactionStore

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: List[Dict[str, object]] = [
    # Income categories
    {"name": "Salary", "color": "#10B981", "type": "income", "icon": "briefcase"},
    {"name": "Freelance", "color": "#059669", "type": "income", "icon": "laptop"},
    {"name": "Investment", "color": "#34D399", "type": "income", "icon": "trending-up"},
    {"name": "Other Income", "color": "#6EE7B7", "type": "income", "icon": "plus-circle"},
    # Expense categories
    {"name": "Housing", "color": "#EF4444", "type": "expense", "budget": 1200, "icon": "home"},
    {"name": "Food", "color": "#F59E0B", "type": "expense", "budget": 400, "icon": "utensils"},
    {"name": "Transportation", "color": "#3B82F6", "type": "expense", "budget": 200, "icon": "car"},
    {"name": "Entertainment", "color": "#8B5CF6", "type": "expense", "budget": 150, "icon": "film"},
    {"name": "Healthcare", "color": "#EC4899", "type": "expense", "budget": 100, "icon": "heart"},
    {"name": "Shopping", "color": "#F97316", "type": "expense", "budget": 200, "icon": "shopping-bag"},
    {"name": "Utilities", "color": "#06B6D4", "type": "expense", "budget": 150, "icon": "zap"},
    {"name": "Education", "color": "#84CC16", "type": "expense", "budget": 100, "icon": "book"},
]

# (category name, amount, description, date, recurring)
SAMPLE_TRANSACTIONS = [
    ("Salary", 3500, "Monthly Salary", datetime(2025, 1, 15), True),
    ("Housing", 1200, "Rent Payment", datetime(2025, 1, 1), True),
    ("Food", 85, "Grocery Shopping", datetime(2025, 1, 12), False),
    ("Transportation", 45, "Gas Station", datetime(2025, 1, 10), False),
    ("Food", 25, "Coffee Shop", datetime(2025, 1, 9), False),
    ("Entertainment", 60, "Movie Night", datetime(2025, 1, 8), False),
]


def create_default_categories(user_id: int, db_path: Optional[PathLike] = None) -> List[Category]:
    store = CategoryStore(user_id, db_path)
    return [
        store.create(
            name=entry["name"],
            color=entry["color"],
            type=entry["type"],
            budget=entry.get("budget"),
            icon=entry["icon"],
            is_default=True,
        )
        for entry in DEFAULT_CATEGORIES
    ]


def create_sample_transactions(
    user_id: int,
    categories: List[Category],
    db_path: Optional[PathLike] = None,
) -> List[Transaction]:
    by_name = {category.name: category for category in categories}
    store = TransactionStore(user_id, db_path)
    created = []
    for name, amount, description, when, recurring in SAMPLE_TRANSACTIONS:
        category = by_name[name]
        created.append(store.create(
            amount=amount,
            description=description,
            category_id=category.id,
            type=category.type,
            date=when,
            is_recurring=recurring,
            recurrence={"frequency": "monthly"} if recurring else None,
        ))
    return created


def seed_user_data(user_id: int, db_path: Optional[PathLike] = None, samples: bool = False) -> List[Category]:
    categories = create_default_categories(user_id, db_path)
    if samples:
        create_sample_transactions(user_id, categories, db_path)
    logger.info("Seeded data for user %s", user_id)
    return categories
