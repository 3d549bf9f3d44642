"""Ledger record types.

Plain dataclasses mirror the SQLite rows.  ``to_dict`` renders the
camelCase JSON shape the mobile client and the export bundle expect.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

import pandas as pd

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)
RECURRENCE_FREQUENCIES = ("daily", "weekly", "monthly", "yearly")

DB_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime is naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_db_datetime(value: Optional[datetime]) -> Optional[str]:
    # Fixed width so lexicographic order in SQLite matches chronological order
    if value is None:
        return None
    return value.strftime(DB_DATETIME_FORMAT)


def from_db_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return datetime.strptime(value, DB_DATETIME_FORMAT)


def parse_datetime(value: Any, end_of_day: bool = False) -> Optional[datetime]:
    """Coerce a datetime, date or ISO-8601 string into a naive UTC datetime.

    Date-only input resolves to midnight, or to the last microsecond of
    that day when ``end_of_day`` is set.  Returns ``None`` for empty input
    and for text pandas cannot read as a date.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)
    if not isinstance(value, str):
        return None
    text = value.strip()
    ts = pd.to_datetime(text, errors="coerce")
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    parsed = ts.to_pydatetime()
    if end_of_day and len(text) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class Recurrence:
    frequency: str
    interval: int = 1
    end_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frequency": self.frequency,
            "interval": self.interval,
            "endDate": _iso(self.end_date),
        }


@dataclass
class Category:
    id: int
    user_id: int
    name: str
    color: str
    type: str
    budget: Optional[float] = None
    icon: str = "folder"
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Category":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            color=row["color"],
            type=row["type"],
            budget=row["budget"],
            icon=row["icon"] or "folder",
            is_default=bool(row["is_default"]),
            created_at=from_db_datetime(row["created_at"]),
            updated_at=from_db_datetime(row["updated_at"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "type": self.type,
            "budget": self.budget,
            "icon": self.icon,
            "isDefault": self.is_default,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class Transaction:
    id: int
    user_id: int
    amount: float
    description: str
    category_id: int
    type: str
    date: datetime
    notes: Optional[str] = None
    is_recurring: bool = False
    recurrence: Optional[Recurrence] = None
    tags: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Transaction":
        recurrence = None
        if row["recurrence_frequency"]:
            recurrence = Recurrence(
                frequency=row["recurrence_frequency"],
                interval=row["recurrence_interval"] or 1,
                end_date=from_db_datetime(row["recurrence_end_date"]),
            )
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            amount=row["amount"],
            description=row["description"],
            category_id=row["category_id"],
            type=row["type"],
            date=from_db_datetime(row["date"]),
            notes=row["notes"],
            is_recurring=bool(row["is_recurring"]),
            recurrence=recurrence,
            tags=json.loads(row["tags"]) if row["tags"] else [],
            created_at=from_db_datetime(row["created_at"]),
            updated_at=from_db_datetime(row["updated_at"]),
        )

    def to_dict(self, category: Optional[Category] = None) -> Dict[str, Any]:
        """Render the transaction, embedding the category summary when given."""
        if category is not None:
            category_value: Any = {
                "id": category.id,
                "name": category.name,
                "color": category.color,
                "type": category.type,
            }
        else:
            category_value = self.category_id
        return {
            "id": self.id,
            "amount": self.amount,
            "description": self.description,
            "category": category_value,
            "type": self.type,
            "date": _iso(self.date),
            "notes": self.notes,
            "isRecurring": self.is_recurring,
            "recurringPattern": self.recurrence.to_dict() if self.recurrence else None,
            "tags": list(self.tags),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class User:
    id: int
    name: str
    email: str
    monthly_budget: float
    currency: str = "USD"
    is_pro: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "User":
        return cls(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            monthly_budget=row["monthly_budget"],
            currency=row["currency"] or "USD",
            is_pro=bool(row["is_pro"]),
            created_at=from_db_datetime(row["created_at"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "isPro": self.is_pro,
            "monthlyBudget": self.monthly_budget,
            "preferences": {"currency": self.currency},
            "createdAt": _iso(self.created_at),
        }


@dataclass
class Page:
    """One page of a paginated listing."""

    items: List[Transaction]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "pages": self.pages,
        }
