"""Transaction storage for one user.

Every write checks that the transaction's type equals the type of the
category it references; the database itself does not enforce this.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import aggregates, config
from . import validation as check
from .db import PathLike, connect
from .errors import CategoryMismatchError, NotFoundError, ValidationError
from .models import (
    Category,
    Page,
    Recurrence,
    Transaction,
    parse_datetime,
    to_db_datetime,
    utcnow,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "amount", "description", "category_id", "type", "date", "notes",
    "is_recurring", "recurrence", "tags",
}


def date_bounds(start_date: Any = None, end_date: Any = None) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Parse an inclusive date range; a date-only end covers that whole day."""
    start = parse_datetime(start_date)
    if start_date not in (None, "") and start is None:
        raise ValidationError("Invalid start date", {"field": "startDate"})
    end = parse_datetime(end_date, end_of_day=True)
    if end_date not in (None, "") and end is None:
        raise ValidationError("Invalid end date", {"field": "endDate"})
    return start, end


def _recurrence_columns(recurrence: Optional[Recurrence]) -> Tuple[Optional[str], Optional[int], Optional[str]]:
    if recurrence is None:
        return None, None, None
    return recurrence.frequency, recurrence.interval, to_db_datetime(recurrence.end_date)


class TransactionStore:
    """Create, read, update and delete the transactions of a single owner."""

    def __init__(self, user_id: int, db_path: Optional[PathLike] = None):
        self.user_id = user_id
        self.db_path = db_path

    def _fetch(self, conn: sqlite3.Connection, transaction_id: int) -> Transaction:
        row = conn.execute(
            "SELECT * FROM transactions WHERE id = ? AND user_id = ?",
            (transaction_id, self.user_id),
        ).fetchone()
        if row is None:
            raise NotFoundError("Transaction not found", {"transactionId": transaction_id})
        return Transaction.from_row(row)

    def _owned_category(self, conn: sqlite3.Connection, category_id: Any) -> Category:
        if isinstance(category_id, bool) or not isinstance(category_id, int):
            raise ValidationError("Invalid category ID", {"field": "category"})
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ? AND user_id = ?",
            (category_id, self.user_id),
        ).fetchone()
        if row is None:
            raise NotFoundError(
                "Category not found or does not belong to user",
                {"categoryId": category_id},
            )
        return Category.from_row(row)

    @staticmethod
    def _check_category_type(category: Category, txn_type: str) -> None:
        if category.type != txn_type:
            raise CategoryMismatchError(
                "Category type does not match transaction type",
                {"categoryType": category.type, "transactionType": txn_type},
            )

    def get(self, transaction_id: int) -> Transaction:
        with connect(self.db_path) as conn:
            return self._fetch(conn, transaction_id)

    def create(
        self,
        amount: float,
        description: str,
        category_id: int,
        type: str,
        date: Any = None,
        notes: Optional[str] = None,
        is_recurring: bool = False,
        recurrence: Any = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Transaction:
        amount = check.amount(amount)
        description = check.description(description)
        txn_type = check.transaction_type(type)
        when = check.when(date) if date is not None else utcnow()
        notes = check.notes(notes)
        pattern = check.recurrence(bool(is_recurring), recurrence)
        tag_list = check.tags(tags)
        now = to_db_datetime(utcnow())

        with connect(self.db_path) as conn:
            category = self._owned_category(conn, category_id)
            self._check_category_type(category, txn_type)
            frequency, interval, end_date = _recurrence_columns(pattern)
            cursor = conn.execute(
                "INSERT INTO transactions (user_id, amount, description, category_id, type, date, "
                "notes, is_recurring, recurrence_frequency, recurrence_interval, recurrence_end_date, "
                "tags, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (self.user_id, amount, description, category.id, txn_type, to_db_datetime(when),
                 notes, int(bool(is_recurring)), frequency, interval, end_date,
                 json.dumps(tag_list), now, now),
            )
            conn.commit()
            transaction = self._fetch(conn, cursor.lastrowid)
        logger.info(
            "Created %s transaction %s (%.2f) for user %s",
            txn_type, transaction.id, amount, self.user_id,
        )
        return transaction

    def update(self, transaction_id: int, **fields: Any) -> Transaction:
        """Apply a partial update.

        When ``type`` or ``category_id`` is supplied, the type in effect
        after the update (new or stored) must equal the type of the
        category in effect after the update.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown transaction fields: {', '.join(sorted(unknown))}",
                {"fields": sorted(unknown)},
            )

        updates: Dict[str, Any] = {}
        if "amount" in fields:
            updates["amount"] = check.amount(fields["amount"])
        if "description" in fields:
            updates["description"] = check.description(fields["description"])
        if "type" in fields:
            updates["type"] = check.transaction_type(fields["type"])
        if "date" in fields:
            updates["date"] = to_db_datetime(check.when(fields["date"]))
        if "notes" in fields:
            updates["notes"] = check.notes(fields["notes"])
        if "tags" in fields:
            updates["tags"] = json.dumps(check.tags(fields["tags"]))

        with connect(self.db_path) as conn:
            current = self._fetch(conn, transaction_id)

            if "category_id" in fields or "type" in fields:
                category_id = fields.get("category_id", current.category_id)
                category = self._owned_category(conn, category_id)
                self._check_category_type(category, updates.get("type", current.type))
                updates["category_id"] = category.id

            if "is_recurring" in fields or "recurrence" in fields:
                is_recurring = bool(fields.get("is_recurring", current.is_recurring))
                pattern = check.recurrence(
                    is_recurring, fields.get("recurrence", current.recurrence),
                )
                if not is_recurring:
                    # A one-off transaction carries no recurrence metadata
                    pattern = None
                frequency, interval, end_date = _recurrence_columns(pattern)
                updates.update({
                    "is_recurring": int(is_recurring),
                    "recurrence_frequency": frequency,
                    "recurrence_interval": interval,
                    "recurrence_end_date": end_date,
                })

            if not updates:
                return current

            updates["updated_at"] = to_db_datetime(utcnow())
            assignments = ", ".join(f"{column} = ?" for column in updates)
            params = list(updates.values()) + [transaction_id, self.user_id]
            conn.execute(
                f"UPDATE transactions SET {assignments} WHERE id = ? AND user_id = ?",
                params,
            )
            conn.commit()
            return self._fetch(conn, transaction_id)

    def delete(self, transaction_id: int) -> None:
        with connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE id = ? AND user_id = ?",
                (transaction_id, self.user_id),
            )
            conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError("Transaction not found", {"transactionId": transaction_id})
        logger.info("Deleted transaction %s for user %s", transaction_id, self.user_id)

    def _where(
        self,
        txn_type: Optional[str] = None,
        category_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
    ) -> Tuple[str, List[Any]]:
        where: List[str] = ["user_id = ?"]
        params: List[Any] = [self.user_id]
        if txn_type is not None:
            check.transaction_type(txn_type)
            where.append("type = ?")
            params.append(txn_type)
        if category_id is not None:
            where.append("category_id = ?")
            params.append(category_id)
        start, end = date_bounds(start_date, end_date)
        if start is not None:
            where.append("date >= ?")
            params.append(to_db_datetime(start))
        if end is not None:
            where.append("date <= ?")
            params.append(to_db_datetime(end))
        return " WHERE " + " AND ".join(where), params

    def list(
        self,
        txn_type: Optional[str] = None,
        category_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
        page: int = 1,
        page_size: int = config.DEFAULT_PAGE_SIZE,
    ) -> Page:
        """One page of transactions, newest first.

        Rows sharing a date are ordered by id, newest insert first.
        ``page_size`` is capped at ``config.MAX_PAGE_SIZE``.
        """
        if page < 1:
            raise ValidationError("Page must be a positive integer", {"field": "page"})
        if page_size < 1:
            raise ValidationError("Limit must be a positive integer", {"field": "limit"})
        limit = min(page_size, config.MAX_PAGE_SIZE)
        where_sql, params = self._where(txn_type, category_id, start_date, end_date)

        with connect(self.db_path) as conn:
            total = conn.execute(
                "SELECT COUNT(*) FROM transactions" + where_sql, params,
            ).fetchone()[0]
            rows = conn.execute(
                "SELECT * FROM transactions" + where_sql
                + " ORDER BY date DESC, id DESC LIMIT ? OFFSET ?",
                params + [limit, (page - 1) * limit],
            ).fetchall()
        return Page(
            items=[Transaction.from_row(row) for row in rows],
            page=page,
            limit=limit,
            total=int(total),
        )

    def all(
        self,
        start_date: Any = None,
        end_date: Any = None,
        limit: Optional[int] = None,
    ) -> List[Transaction]:
        """Unpaginated snapshot, newest first, for aggregation."""
        where_sql, params = self._where(start_date=start_date, end_date=end_date)
        sql = "SELECT * FROM transactions" + where_sql + " ORDER BY date DESC, id DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with connect(self.db_path) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [Transaction.from_row(row) for row in rows]

    def summary(
        self,
        start_date: Any = None,
        end_date: Any = None,
        monthly_budget: float = 0.0,
    ) -> aggregates.Summary:
        return aggregates.summarize(self.all(start_date, end_date), monthly_budget)
