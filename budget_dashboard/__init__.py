"""Top-level package for the weekly budget dashboard.

The primary modules are:

* ``normalization`` - turns raw server documents into the canonical model
* ``aggregation`` - pure per-category and budget-level stats and warnings
* ``realtime`` - push-event channel and versioned document cache
* ``visualization`` - functions that generate Plotly figures
* ``dashboard`` - a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run budget_dashboard/dashboard.py
```
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import normalization  # noqa: F401  # re-exported for convenience
from . import visualization  # noqa: F401  # re-exported for convenience
from .aggregation import aggregate, budget_totals, budget_warnings, category_stats
from .models import BudgetValidationError, PaymentStatus, WeeklyBudget
from .normalization import normalize_budget_document

# Streamlit may not be installed in all environments (e.g. during unit
# testing); the dashboard module is then unavailable.
try:
    from . import dashboard  # type: ignore  # noqa: F401
except ModuleNotFoundError:
    dashboard = None  # type: ignore


__all__ = [
    "aggregation",
    "normalization",
    "visualization",
    "dashboard",
    "aggregate",
    "budget_totals",
    "budget_warnings",
    "category_stats",
    "BudgetValidationError",
    "PaymentStatus",
    "WeeklyBudget",
    "normalize_budget_document",
]
