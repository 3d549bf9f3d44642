"""Category storage for one user.

Categories are unique per (owner, name, type).  A category's ``type`` is
fixed at creation, and a category cannot be deleted while transactions
still reference it.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from . import aggregates
from . import validation as check
from .db import PathLike, connect
from .errors import ConflictError, DuplicateNameError, NotFoundError, ValidationError
from .models import Category, Transaction, to_db_datetime, utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"name", "color", "budget", "icon", "type"}


class CategoryStore:
    """Create, read, update and delete the categories of a single owner."""

    def __init__(self, user_id: int, db_path: Optional[PathLike] = None):
        self.user_id = user_id
        self.db_path = db_path

    def _fetch(self, conn: sqlite3.Connection, category_id: int) -> Category:
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ? AND user_id = ?",
            (category_id, self.user_id),
        ).fetchone()
        if row is None:
            raise NotFoundError("Category not found", {"categoryId": category_id})
        return Category.from_row(row)

    def _ensure_unique(
        self,
        conn: sqlite3.Connection,
        name: str,
        category_type: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        row = conn.execute(
            "SELECT id FROM categories WHERE user_id = ? AND name = ? AND type = ?",
            (self.user_id, name, category_type),
        ).fetchone()
        if row is not None and row["id"] != exclude_id:
            raise DuplicateNameError(
                "Category with this name already exists",
                {"name": name, "type": category_type},
            )

    def get(self, category_id: int) -> Category:
        with connect(self.db_path) as conn:
            return self._fetch(conn, category_id)

    def list(self, category_type: Optional[str] = None) -> List[Category]:
        """All categories of the owner ordered by (type, name)."""
        sql = "SELECT * FROM categories WHERE user_id = ?"
        params: List[Any] = [self.user_id]
        if category_type is not None:
            check.transaction_type(category_type)
            sql += " AND type = ?"
            params.append(category_type)
        sql += " ORDER BY type ASC, name ASC, id ASC"
        with connect(self.db_path) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [Category.from_row(row) for row in rows]

    def create(
        self,
        name: str,
        color: str,
        type: str,
        budget: Optional[float] = None,
        icon: Optional[str] = None,
        is_default: bool = False,
    ) -> Category:
        name = check.category_name(name)
        color = check.color(color)
        category_type = check.transaction_type(type)
        budget = check.category_budget(budget)
        icon = check.icon(icon)
        now = to_db_datetime(utcnow())

        with connect(self.db_path) as conn:
            self._ensure_unique(conn, name, category_type)
            try:
                cursor = conn.execute(
                    "INSERT INTO categories (user_id, name, color, type, budget, icon, "
                    "is_default, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (self.user_id, name, color, category_type, budget, icon,
                     int(is_default), now, now),
                )
            except sqlite3.IntegrityError:
                # Lost a race with a concurrent insert of the same name
                raise DuplicateNameError(
                    "Category with this name already exists",
                    {"name": name, "type": category_type},
                ) from None
            conn.commit()
            category = self._fetch(conn, cursor.lastrowid)
        logger.info("Created %s category %r for user %s", category_type, name, self.user_id)
        return category

    def update(self, category_id: int, **fields: Any) -> Category:
        """Apply a partial update.

        ``budget=None`` clears the budget.  ``type`` may be passed only with
        its current value.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown category fields: {', '.join(sorted(unknown))}",
                {"fields": sorted(unknown)},
            )

        with connect(self.db_path) as conn:
            current = self._fetch(conn, category_id)
            if "type" in fields and fields["type"] != current.type:
                raise ValidationError(
                    "Category type cannot be changed after creation",
                    {"field": "type"},
                )

            updates: Dict[str, Any] = {}
            if "name" in fields:
                updates["name"] = check.category_name(fields["name"])
            if "color" in fields:
                updates["color"] = check.color(fields["color"])
            if "budget" in fields:
                updates["budget"] = check.category_budget(fields["budget"])
            if "icon" in fields:
                updates["icon"] = check.icon(fields["icon"])
            if not updates:
                return current

            if updates.get("name", current.name) != current.name:
                self._ensure_unique(conn, updates["name"], current.type, exclude_id=category_id)

            updates["updated_at"] = to_db_datetime(utcnow())
            assignments = ", ".join(f"{column} = ?" for column in updates)
            params = list(updates.values()) + [category_id, self.user_id]
            try:
                conn.execute(
                    f"UPDATE categories SET {assignments} WHERE id = ? AND user_id = ?",
                    params,
                )
            except sqlite3.IntegrityError:
                raise DuplicateNameError(
                    "Category with this name already exists",
                    {"name": updates.get("name"), "type": current.type},
                ) from None
            conn.commit()
            return self._fetch(conn, category_id)

    def count_transactions(self, category_id: int) -> int:
        with connect(self.db_path) as conn:
            return self._count_transactions(conn, category_id)

    def _count_transactions(self, conn: sqlite3.Connection, category_id: int) -> int:
        row = conn.execute(
            "SELECT COUNT(*) FROM transactions WHERE category_id = ? AND user_id = ?",
            (category_id, self.user_id),
        ).fetchone()
        return int(row[0])

    def delete(self, category_id: int) -> None:
        with connect(self.db_path) as conn:
            category = self._fetch(conn, category_id)
            transaction_count = self._count_transactions(conn, category_id)
            if transaction_count > 0:
                raise ConflictError(
                    "Cannot delete category with existing transactions",
                    {"transactionCount": transaction_count},
                )
            conn.execute(
                "DELETE FROM categories WHERE id = ? AND user_id = ?",
                (category_id, self.user_id),
            )
            conn.commit()
        logger.info("Deleted category %r for user %s", category.name, self.user_id)

    def stats(self, category_id: int) -> Dict[str, Any]:
        """Spending statistics for one category.

        Includes the category's budget utilization when it carries a budget.
        """
        with connect(self.db_path) as conn:
            category = self._fetch(conn, category_id)
            rows = conn.execute(
                "SELECT * FROM transactions WHERE category_id = ? AND user_id = ? "
                "ORDER BY date ASC, id ASC",
                (category_id, self.user_id),
            ).fetchall()
        transactions = [Transaction.from_row(row) for row in rows]
        amounts = [t.amount for t in transactions]
        total = aggregates.total_income(transactions) + aggregates.total_expenses(transactions)

        result: Dict[str, Any] = {
            "totalSpent": total,
            "transactionCount": len(amounts),
            "avgAmount": total / len(amounts) if amounts else 0.0,
            "maxAmount": max(amounts) if amounts else 0.0,
            "minAmount": min(amounts) if amounts else 0.0,
        }
        utilization = aggregates.per_category_budget_utilization(category, transactions)
        if utilization is not None:
            result["budgetUtilization"] = utilization.percentage
            result["remainingBudget"] = utilization.remaining
            result["overBudget"] = utilization.over_budget
        return {
            "category": {
                "id": category.id,
                "name": category.name,
                "type": category.type,
                "budget": category.budget,
            },
            "stats": result,
        }
