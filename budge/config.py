"""Configuration management for the Budge ledger service.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in budge/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directory
DATA_DIR = Path(os.getenv("BUDGE_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("BUDGE_DB_PATH", DATA_DIR / "budge.db")
).resolve()

# Ledger defaults
DEFAULT_MONTHLY_BUDGET = float(os.getenv("BUDGE_DEFAULT_MONTHLY_BUDGET", "3000"))
DEFAULT_CURRENCY = "USD"
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
DEFAULT_TREND_MONTHS = 6
EXPORT_TREND_MONTHS = 12

# Number of most recent transactions the insight generator looks at
AI_CONTEXT_TRANSACTIONS = 100

# Text generation service
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY") or None
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "30"))

# Logging
LOG_LEVEL = os.getenv("BUDGE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install the process-wide log format.

    Safe to call more than once; ``logging.basicConfig`` is a no-op when
    handlers are already configured.
    """
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)
