from __future__ import annotations

import pytest

from budge import config
from budge.budget_settings import BudgetSettings
from budge.categories import CategoryStore
from budge.db import init_db
from budge.transactions import TransactionStore
from budge.users import create_user


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "budge.db"
    monkeypatch.setattr(config, "DB_PATH", path)
    monkeypatch.setattr(config, "OPENAI_API_KEY", None)
    init_db(path)
    return path


@pytest.fixture
def user(db_path):
    created, _ = create_user("Test User", "test@example.com", db_path)
    return created


@pytest.fixture
def other_user(db_path):
    created, _ = create_user("Other User", "other@example.com", db_path)
    return created


@pytest.fixture
def categories(user, db_path):
    return CategoryStore(user.id, db_path)


@pytest.fixture
def transactions(user, db_path):
    return TransactionStore(user.id, db_path)


@pytest.fixture
def settings(user, db_path):
    return BudgetSettings(user.id, db_path)


@pytest.fixture
def named():
    """Look a category up by name in a store."""
    def lookup(store: CategoryStore, name: str):
        return next(category for category in store.list() if category.name == name)
    return lookup
