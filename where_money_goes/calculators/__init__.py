"""Pure calculators behind the allocation view.

* ``taxes`` – NYC resident income tax from a piecewise-linear bracket schedule.
* ``allocation`` – sibling-normalized weights and top-down dollar allocation.
* ``dataset`` – loader for the static budget tree, agency splits and mandates.

Nothing in this package touches Streamlit or Plotly; see individual
docstrings for details.
"""

from . import taxes, allocation, dataset  # noqa: F401
from .errors import BudgetDataError

__all__ = ["taxes", "allocation", "dataset", "BudgetDataError"]
