"""Per-user monthly budget and display preferences.

The monthly budget is independent of category budgets; the two are
never reconciled.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from . import config
from . import validation as check
from .db import PathLike, connect
from .errors import NotFoundError

logger = logging.getLogger(__name__)


class BudgetSettings:
    def __init__(self, user_id: int, db_path: Optional[PathLike] = None):
        self.user_id = user_id
        self.db_path = db_path

    def _row(self, conn):
        row = conn.execute(
            "SELECT monthly_budget, currency FROM users WHERE id = ?", (self.user_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError("User not found", {"userId": self.user_id})
        return row

    def get(self) -> float:
        """Current monthly budget, or the configured default if never set."""
        with connect(self.db_path) as conn:
            value = self._row(conn)["monthly_budget"]
        return float(value) if value is not None else config.DEFAULT_MONTHLY_BUDGET

    def set(self, value: Any) -> float:
        monthly_budget = check.monthly_budget(value)
        with connect(self.db_path) as conn:
            self._row(conn)
            conn.execute(
                "UPDATE users SET monthly_budget = ? WHERE id = ?",
                (monthly_budget, self.user_id),
            )
            conn.commit()
        logger.info("Monthly budget for user %s set to %.2f", self.user_id, monthly_budget)
        return monthly_budget

    def preferences(self) -> Dict[str, Any]:
        with connect(self.db_path) as conn:
            row = self._row(conn)
        return {"currency": row["currency"] or config.DEFAULT_CURRENCY}

    def set_currency(self, code: Any) -> Dict[str, Any]:
        currency = check.currency(code)
        with connect(self.db_path) as conn:
            self._row(conn)
            conn.execute("UPDATE users SET currency = ? WHERE id = ?", (currency, self.user_id))
            conn.commit()
        return {"currency": currency}
