"""Top-level package for Budge, a personal budgeting ledger.

The primary modules are:

* ``categories`` / ``transactions`` / ``budget_settings`` – per-user stores
* ``aggregates`` – totals, budget utilization, breakdowns and trends
* ``api`` – the FastAPI application
* ``dashboard`` – a Streamlit app that renders the same aggregates

To serve the API from the command line you can execute:

```bash
budge-api
```
"""

from . import aggregates  # noqa: F401  # re-exported for convenience
from . import errors  # noqa: F401  # re-exported for convenience
# Streamlit may not be installed in all environments (e.g. during
# unit testing), so the dashboard is optional.
try:
    from . import dashboard  # type: ignore  # noqa: F401
except ModuleNotFoundError:
    dashboard = None  # type: ignore


__version__ = "0.1.0"

__all__ = ["aggregates", "errors", "dashboard"]
