"""Domain error taxonomy.

Every error carries a machine-readable ``code`` and the HTTP status the
API layer answers with.  ``details`` is merged into the JSON error body.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BudgeError(Exception):
    code = "error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.code}
        body.update(self.details)
        return body


class ValidationError(BudgeError, ValueError):
    """Malformed or out-of-range input."""

    code = "validation_error"


class NotFoundError(BudgeError, LookupError):
    """The record does not exist or is not owned by the caller."""

    code = "not_found"
    status_code = 404


class DuplicateNameError(BudgeError):
    """A category with the same (name, type) already exists for the owner."""

    code = "duplicate_name"


class CategoryMismatchError(BudgeError):
    """Transaction type differs from its category's type."""

    code = "category_mismatch"


class ConflictError(BudgeError):
    """Delete blocked by dependent records."""

    code = "conflict"


class AuthenticationError(BudgeError):
    code = "unauthorized"
    status_code = 401
