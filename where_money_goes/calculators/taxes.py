"""City income tax calculation.

This module estimates New York City resident income tax from a single annual
income figure.  The rate schedule is a piecewise-linear bracket table: each
bracket carries the tax owed at its lower bound (``base``) and the marginal
rate applied above it.  The shipped defaults embed the NYC rate schedule from
the 2025 IT-201 instructions (rates are unchanged for 2026) and the NY
standard deduction for a single filer.

Income is reduced by the standard deduction and floored at zero before the
schedule is evaluated, so every real input, negative income included, yields
a tax amount and nothing is ever rejected.

Example
-------

>>> # $50 000 of income leaves $42 000 taxable after the $8 000 deduction
>>> round(compute_tax(50000), 2)
1507.23

>>> compute_tax(8000)
0.0

A different schedule can be used by passing a ``BracketSchedule`` or a JSON
file matching the schema in ``data/tax_schedule.json``.
"""

from __future__ import annotations

import json
import logging
from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .errors import BudgetDataError

logger = logging.getLogger(__name__)

_DEFAULT_SCHEDULE_PATH = Path(__file__).resolve().parent.parent / "data" / "tax_schedule.json"

# Published bases are rounded to whole dollars, so adjacent brackets only
# agree to within a dollar at each threshold.
CONTINUITY_TOLERANCE = 1.0


@dataclass(frozen=True)
class Bracket:
    """One segment of the schedule; ``upper`` is ``None`` for the last one."""

    upper: Optional[float]
    base: float
    rate: float


@dataclass(frozen=True)
class BracketSchedule:
    """Ordered brackets plus the standard deduction applied before them."""

    brackets: Tuple[Bracket, ...]
    standard_deduction: float = 0.0

    def __post_init__(self):
        brackets = tuple(self.brackets)
        object.__setattr__(self, "brackets", brackets)
        if not brackets:
            raise BudgetDataError("tax schedule needs at least one bracket")
        if brackets[-1].upper is not None:
            raise BudgetDataError("last tax bracket must be unbounded (upper = null)")
        if brackets[0].base != 0:
            raise BudgetDataError("first tax bracket must start from a base of 0")
        if self.standard_deduction < 0:
            raise BudgetDataError("standard deduction must be non-negative")

        lower = 0.0
        for i, bracket in enumerate(brackets):
            if bracket.rate < 0:
                raise BudgetDataError(f"bracket {i}: rate must be non-negative")
            if i < len(brackets) - 1:
                if bracket.upper is None:
                    raise BudgetDataError(f"bracket {i}: only the last bracket may be unbounded")
                if bracket.upper <= lower:
                    raise BudgetDataError(f"bracket {i}: thresholds must be strictly increasing")
                expected = bracket.base + bracket.rate * (bracket.upper - lower)
                following = brackets[i + 1].base
                if abs(following - expected) > CONTINUITY_TOLERANCE:
                    raise BudgetDataError(
                        f"bracket {i + 1}: base {following} does not continue "
                        f"the schedule (expected about {expected:.2f})"
                    )
                lower = bracket.upper

    @property
    def lower_bounds(self) -> List[float]:
        """Lower bound of every bracket; the first starts at zero."""
        return [0.0] + [float(b.upper) for b in self.brackets[:-1]]

    @property
    def thresholds(self) -> List[float]:
        return [float(b.upper) for b in self.brackets[:-1]]


@dataclass(frozen=True)
class TaxResult:
    income: float
    taxable_income: float
    tax: float


def _parse_schedule(raw: dict) -> BracketSchedule:
    try:
        brackets = tuple(
            Bracket(
                upper=None if b.get("upper") is None else float(b["upper"]),
                base=float(b["base"]),
                rate=float(b["rate"]),
            )
            for b in raw["brackets"]
        )
        deduction = float(raw.get("standard_deduction", 0.0))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise BudgetDataError(f"malformed tax schedule: {exc}") from exc
    return BracketSchedule(brackets=brackets, standard_deduction=deduction)


def load_schedule(path: Optional[Path] = None) -> BracketSchedule:
    """Load a bracket schedule from JSON.

    Parameters
    ----------
    path : Path, optional
        JSON file with ``standard_deduction`` and a ``brackets`` list of
        ``{"upper", "base", "rate"}`` objects.  Defaults to the schedule
        shipped with the package.

    Returns
    -------
    BracketSchedule
        The validated schedule.

    Raises
    ------
    BudgetDataError
        If the file is malformed or the schedule is not continuous.
    """
    p = path or _DEFAULT_SCHEDULE_PATH
    with open(p, "r", encoding="utf-8") as f:
        raw = json.load(f)
    schedule = _parse_schedule(raw)
    logger.debug("Loaded %d tax brackets from %s", len(schedule.brackets), p)
    return schedule


_default_schedule: Optional[BracketSchedule] = None


def default_schedule() -> BracketSchedule:
    """The shipped NYC schedule, parsed once."""
    global _default_schedule
    if _default_schedule is None:
        _default_schedule = load_schedule()
    return _default_schedule


def _bracket_index(x: float, schedule: BracketSchedule) -> int:
    return bisect_right(schedule.lower_bounds, x) - 1


def evaluate_schedule(amount: float, schedule: Optional[BracketSchedule] = None) -> float:
    """Tax owed on an already-deducted amount.

    Picks the highest bracket whose lower bound does not exceed the amount and
    returns ``base + rate * (x - lower)``.  Amounts below zero count as zero.
    """
    schedule = schedule or default_schedule()
    x = max(0.0, float(amount))
    i = _bracket_index(x, schedule)
    bracket = schedule.brackets[i]
    return bracket.base + bracket.rate * (x - schedule.lower_bounds[i])


def taxable_income(income: float, schedule: Optional[BracketSchedule] = None) -> float:
    schedule = schedule or default_schedule()
    return max(0.0, float(income) - schedule.standard_deduction)


def compute_tax(income: float, schedule: Optional[BracketSchedule] = None) -> float:
    """Compute city income tax on gross annual income.

    Income is reduced by the schedule's standard deduction and floored at
    zero, so anything at or below the deduction owes nothing.
    """
    schedule = schedule or default_schedule()
    return evaluate_schedule(taxable_income(income, schedule), schedule)


def compute_city_income_tax(income: float, schedule: Optional[BracketSchedule] = None) -> TaxResult:
    """Like :func:`compute_tax` but also reports the taxable income."""
    schedule = schedule or default_schedule()
    x = taxable_income(income, schedule)
    return TaxResult(income=float(income), taxable_income=x, tax=evaluate_schedule(x, schedule))


def marginal_rate(income: float, schedule: Optional[BracketSchedule] = None) -> float:
    """Rate applied to the next dollar of income (zero below the deduction)."""
    schedule = schedule or default_schedule()
    if float(income) < schedule.standard_deduction:
        return 0.0
    x = taxable_income(income, schedule)
    return schedule.brackets[_bracket_index(x, schedule)].rate


def schedule_segments(schedule: Optional[BracketSchedule] = None) -> Sequence[Tuple[float, Optional[float], float]]:
    """``(lower, upper, rate)`` for every linear segment of the schedule."""
    schedule = schedule or default_schedule()
    return [
        (lower, b.upper, b.rate)
        for lower, b in zip(schedule.lower_bounds, schedule.brackets)
    ]


__all__ = [
    "Bracket",
    "BracketSchedule",
    "TaxResult",
    "CONTINUITY_TOLERANCE",
    "load_schedule",
    "default_schedule",
    "evaluate_schedule",
    "taxable_income",
    "compute_tax",
    "compute_city_income_tax",
    "marginal_rate",
    "schedule_segments",
]
