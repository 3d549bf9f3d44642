"""Write-path field validators.

Each validator returns the normalized value or raises
:class:`~budge.errors.ValidationError` naming the offending field.  The
stores run these before anything touches the database, which is what lets
the aggregate functions assume well-formed rows.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, Iterable, List, Optional

from .errors import ValidationError
from .models import RECURRENCE_FREQUENCIES, TRANSACTION_TYPES, Recurrence, parse_datetime

HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
CURRENCY_RE = re.compile(r"^[A-Z]{3}$")

NAME_MAX = 50
ICON_MAX = 50
DESCRIPTION_MAX = 200
NOTES_MAX = 500
TAG_MAX = 30


def _fail(field_name: str, message: str) -> ValidationError:
    return ValidationError(message, {"field": field_name})


def _bounded_text(value: Any, field_name: str, label: str, max_len: int) -> str:
    if not isinstance(value, str):
        raise _fail(field_name, f"{label} must be a string")
    text = value.strip()
    if not 1 <= len(text) <= max_len:
        raise _fail(field_name, f"{label} must be between 1 and {max_len} characters")
    return text


def _number(value: Any, field_name: str, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise _fail(field_name, f"{label} must be a number")
    try:
        number = float(value)
    except ValueError:
        raise _fail(field_name, f"{label} must be a number") from None
    if not math.isfinite(number):
        raise _fail(field_name, f"{label} must be a finite number")
    return number


def category_name(value: Any) -> str:
    return _bounded_text(value, "name", "Name", NAME_MAX)


def color(value: Any) -> str:
    if not isinstance(value, str) or not HEX_COLOR_RE.match(value):
        raise _fail("color", "Please enter a valid hex color")
    return value


def transaction_type(value: Any, field_name: str = "type") -> str:
    if value not in TRANSACTION_TYPES:
        raise _fail(field_name, "Type must be income or expense")
    return value


def category_budget(value: Any) -> Optional[float]:
    if value is None:
        return None
    number = _number(value, "budget", "Budget")
    if number < 0:
        raise _fail("budget", "Budget cannot be negative")
    return number


def icon(value: Any) -> str:
    if value is None:
        return "folder"
    return _bounded_text(value, "icon", "Icon", ICON_MAX)


def amount(value: Any) -> float:
    number = _number(value, "amount", "Amount")
    if number <= 0:
        raise _fail("amount", "Amount must be greater than 0")
    return number


def description(value: Any) -> str:
    return _bounded_text(value, "description", "Description", DESCRIPTION_MAX)


def notes(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise _fail("notes", "Notes must be a string")
    if len(value) > NOTES_MAX:
        raise _fail("notes", f"Notes cannot exceed {NOTES_MAX} characters")
    return value


def when(value: Any, field_name: str = "date") -> datetime:
    parsed = parse_datetime(value)
    if parsed is None:
        raise _fail(field_name, "Invalid date format")
    return parsed


def recurrence(is_recurring: bool, value: Any) -> Optional[Recurrence]:
    """Validate recurrence metadata; a frequency is required when recurring."""
    if value is None:
        if is_recurring:
            raise _fail("recurringPattern", "Recurring transactions need a frequency")
        return None
    if isinstance(value, Recurrence):
        frequency, interval, end_date = value.frequency, value.interval, value.end_date
    elif isinstance(value, dict):
        frequency = value.get("frequency")
        interval = value.get("interval", 1)
        end_date = value.get("end_date", value.get("endDate"))
    else:
        raise _fail("recurringPattern", "Recurring pattern must be an object")
    if frequency not in RECURRENCE_FREQUENCIES:
        raise _fail("recurringPattern", "Frequency must be daily, weekly, monthly or yearly")
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        raise _fail("recurringPattern", "Interval must be a positive integer")
    return Recurrence(
        frequency=frequency,
        interval=interval,
        end_date=when(end_date, "recurringPattern") if end_date is not None else None,
    )


def tags(values: Optional[Iterable[Any]]) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise _fail("tags", "Tags must be a list of strings")
    cleaned: List[str] = []
    for value in values:
        tag = _bounded_text(value, "tags", "Tag", TAG_MAX)
        if tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def monthly_budget(value: Any) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise _fail("monthlyBudget", "Monthly budget is required")
    number = _number(value, "monthlyBudget", "Monthly budget")
    if number < 0:
        raise _fail("monthlyBudget", "Monthly budget must be a positive number")
    return number


def currency(value: Any) -> str:
    if not isinstance(value, str) or not CURRENCY_RE.match(value.strip().upper()):
        raise _fail("currency", "Currency must be a 3-letter code")
    return value.strip().upper()


def user_name(value: Any) -> str:
    return _bounded_text(value, "name", "Name", 100)


def email(value: Any) -> str:
    text = _bounded_text(value, "email", "Email", 254).lower()
    if "@" not in text or text.startswith("@") or text.endswith("@"):
        raise _fail("email", "Please provide a valid email")
    return text
