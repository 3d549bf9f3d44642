"""Accounts and bearer-token lookup.

Tokens are opaque random strings handed out once at registration; only
their SHA-256 digest is stored.  Password login and token refresh belong
to the external auth service.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import sqlite3
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from . import config
from . import validation as check
from .db import PathLike, connect
from .errors import AuthenticationError, DuplicateNameError, NotFoundError, ValidationError
from .models import User, to_db_datetime, utcnow
from .seed import seed_user_data

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_user(
    name: str,
    email: str,
    db_path: Optional[PathLike] = None,
    seed_samples: bool = False,
) -> Tuple[User, str]:
    """Register an account, seed its default categories and issue a token."""
    name = check.user_name(name)
    email = check.email(email)
    token = secrets.token_urlsafe(32)

    with connect(db_path) as conn:
        try:
            cursor = conn.execute(
                "INSERT INTO users (name, email, monthly_budget, currency, is_pro, "
                "api_token_hash, created_at) VALUES (?, ?, ?, ?, 0, ?, ?)",
                (name, email, config.DEFAULT_MONTHLY_BUDGET, config.DEFAULT_CURRENCY,
                 hash_token(token), to_db_datetime(utcnow())),
            )
        except sqlite3.IntegrityError:
            raise DuplicateNameError("An account with this email already exists", {"field": "email"}) from None
        conn.commit()
        user_id = cursor.lastrowid

    try:
        seed_user_data(user_id, db_path, samples=seed_samples)
    except Exception:
        logger.error("Seeding failed for user %s; removing the account", user_id)
        with connect(db_path) as conn:
            _purge_user(conn, user_id)
            conn.commit()
        raise
    logger.info("Registered user %s", user_id)
    return get_user(user_id, db_path), token


def get_user(user_id: int, db_path: Optional[PathLike] = None) -> User:
    with connect(db_path) as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    if row is None:
        raise NotFoundError("User not found", {"userId": user_id})
    return User.from_row(row)


def authenticate(token: Optional[str], db_path: Optional[PathLike] = None) -> User:
    if not token:
        raise AuthenticationError("Authentication required")
    with connect(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE api_token_hash = ?", (hash_token(token),),
        ).fetchone()
    if row is None:
        raise AuthenticationError("Invalid token")
    return User.from_row(row)


def _purge_user(conn, user_id: int) -> None:
    # Children first; the schema's foreign keys forbid orphans
    conn.execute("DELETE FROM transactions WHERE user_id = ?", (user_id,))
    conn.execute("DELETE FROM categories WHERE user_id = ?", (user_id,))
    conn.execute("DELETE FROM users WHERE id = ?", (user_id,))


def delete_user(user_id: int, confirm_email: Any, db_path: Optional[PathLike] = None) -> datetime:
    """Permanently remove an account with all its transactions and categories.

    ``confirm_email`` must match the account email.  Unlike
    :meth:`CategoryStore.delete`, referenced categories are removed too.
    Returns the deletion timestamp.
    """
    user = get_user(user_id, db_path)
    if check.email(confirm_email) != user.email:
        raise ValidationError(
            "Email confirmation does not match your account email",
            {"field": "confirmEmail"},
        )
    with connect(db_path) as conn:
        _purge_user(conn, user_id)
        conn.commit()
    deleted_at = utcnow()
    logger.info("Deleted user %s and all associated data", user_id)
    return deleted_at


def privacy_settings(user_id: int, db_path: Optional[PathLike] = None) -> Dict[str, Any]:
    user = get_user(user_id, db_path)
    with connect(db_path) as conn:
        row = conn.execute(
            "SELECT share_analytics, share_marketing FROM users WHERE id = ?", (user_id,)
        ).fetchone()
    return {
        "dataRetention": {
            "transactionHistory": "Indefinite",
            "loginActivity": "90 days",
            "analyticsData": "2 years",
        },
        "dataSharing": {
            # Unset analytics means opted in; marketing is opt-in
            "analytics": row["share_analytics"] != 0,
            "marketing": row["share_marketing"] == 1,
            "thirdParty": False,
        },
        "accountInfo": {"createdAt": user.created_at.isoformat() if user.created_at else None},
    }


def update_privacy_settings(
    user_id: int,
    analytics: Optional[bool] = None,
    marketing: Optional[bool] = None,
    db_path: Optional[PathLike] = None,
) -> Dict[str, Any]:
    get_user(user_id, db_path)
    updates = {
        column: int(value)
        for column, value in (("share_analytics", analytics), ("share_marketing", marketing))
        if value is not None
    }
    if updates:
        assignments = ", ".join(f"{column} = ?" for column in updates)
        with connect(db_path) as conn:
            conn.execute(
                f"UPDATE users SET {assignments} WHERE id = ?",
                list(updates.values()) + [user_id],
            )
            conn.commit()
    return privacy_settings(user_id, db_path)["dataSharing"]
