"""
Request bodies for the Budge HTTP API.

Field aliases follow the camelCase JSON the mobile client sends; the
Python attribute names match the store keyword arguments, so
``model_dump(exclude_unset=True)`` can be passed straight to a store's
``update``.  The stores re-validate every value.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TransactionType = Literal["income", "expense"]
Frequency = Literal["daily", "weekly", "monthly", "yearly"]


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RecurringPattern(_Body):
    frequency: Frequency
    interval: int = Field(1, ge=1)
    end_date: Optional[datetime] = Field(None, alias="endDate")


class TransactionCreate(_Body):
    amount: float = Field(..., gt=0, description="Transaction amount (positive number)")
    description: str = Field(..., min_length=1, max_length=200)
    category_id: int = Field(..., alias="category", description="Owned category id")
    type: TransactionType
    date: Optional[datetime] = Field(None, description="Defaults to now")
    notes: Optional[str] = Field(None, max_length=500)
    is_recurring: bool = Field(False, alias="isRecurring")
    recurrence: Optional[RecurringPattern] = Field(None, alias="recurringPattern")
    tags: Optional[List[str]] = None


class TransactionUpdate(_Body):
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    category_id: Optional[int] = Field(None, alias="category")
    type: Optional[TransactionType] = None
    date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)
    is_recurring: Optional[bool] = Field(None, alias="isRecurring")
    recurrence: Optional[RecurringPattern] = Field(None, alias="recurringPattern")
    tags: Optional[List[str]] = None


class CategoryCreate(_Body):
    name: str = Field(..., min_length=1, max_length=50, description="Category name")
    color: str = Field(..., description="Hex color, #RGB or #RRGGBB")
    type: TransactionType
    budget: Optional[float] = Field(None, ge=0, description="Monthly ceiling for expense categories")
    icon: Optional[str] = Field(None, max_length=50)


class CategoryUpdate(_Body):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = None
    budget: Optional[float] = Field(None, ge=0)
    icon: Optional[str] = Field(None, max_length=50)
    # Accepted only so a changed type can be rejected explicitly
    type: Optional[TransactionType] = None


class MonthlyBudgetUpdate(_Body):
    monthly_budget: Optional[float] = Field(None, alias="monthlyBudget")


class PreferencesUpdate(_Body):
    currency: str = Field(..., min_length=3, max_length=3)


class RegisterRequest(_Body):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    seed_samples: bool = Field(False, alias="seedSamples")


class ChatRequest(_Body):
    message: str = Field(..., min_length=1, max_length=1000)


class AccountDelete(_Body):
    confirm_email: str = Field(..., alias="confirmEmail", min_length=3, max_length=254)
    # Verified by the external auth service; accepted and ignored here
    password: Optional[str] = None


class PrivacySettingsUpdate(_Body):
    analytics: Optional[bool] = None
    marketing: Optional[bool] = None
