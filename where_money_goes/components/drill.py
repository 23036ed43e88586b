"""Progressive-disclosure state for the allocation view.

Levels::

    0  income only
    1  tax visible
    2  top-level category ring visible
    3  subcategory ring for the selected category

``DrillState`` is a frozen record.  Every transition returns a new record, so
the page holds exactly one copy and hands it to the chart code by value.

Unlock policy: editing the income never changes ``unlocked_level``; only
explicit actions raise it (confirming the income, picking a category).  The
level is a high-water mark that only ``reset`` (or navigating back to the
income breadcrumb) lowers.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

INCOME = 0
TAX = 1
CATEGORIES = 2
SUBCATEGORIES = 3

LEVEL_NAMES = {
    INCOME: "Income",
    TAX: "Tax",
    CATEGORIES: "Budget",
    SUBCATEGORIES: "Category",
}


@dataclass(frozen=True)
class DrillState:
    income: float = 0.0
    unlocked_level: int = INCOME
    selected_category_id: Optional[str] = None
    selected_subcategory_label: Optional[str] = None

    # ---------- transitions ----------
    def set_income(self, income: float) -> "DrillState":
        """Store a new income; visibility is unchanged."""
        return replace(self, income=max(0.0, float(income)))

    def confirm_income(self) -> "DrillState":
        target = CATEGORIES if self.income > 0 else TAX
        return self._unlock(target)

    def select_category(self, category_id: Optional[str]) -> "DrillState":
        """Pick a category; always drops the subcategory and unlocks level 3."""
        if category_id is None:
            return replace(self, selected_category_id=None, selected_subcategory_label=None)
        return replace(
            self._unlock(SUBCATEGORIES),
            selected_category_id=category_id,
            selected_subcategory_label=None,
        )

    def select_subcategory(self, label: Optional[str], available: Iterable[str]) -> "DrillState":
        """Pick a subcategory among ``available`` siblings of the selected category."""
        if self.selected_category_id is None or label not in set(available):
            label = None
        return replace(self, selected_subcategory_label=label)

    def resolve_subcategory(self, available: Iterable[str]) -> "DrillState":
        """Drop a subcategory selection that is not among ``available``."""
        label = self.selected_subcategory_label
        if label is None:
            return self
        if self.selected_category_id is None or label not in set(available):
            return replace(self, selected_subcategory_label=None)
        return self

    def navigate(self, level: int) -> "DrillState":
        """Breadcrumb navigation to an already unlocked level."""
        if level <= INCOME:
            return self.reset()
        if level > self.unlocked_level:
            return self
        if level < SUBCATEGORIES:
            return replace(self, selected_category_id=None, selected_subcategory_label=None)
        return self

    def reset(self) -> "DrillState":
        return replace(
            self,
            unlocked_level=INCOME,
            selected_category_id=None,
            selected_subcategory_label=None,
        )

    def _unlock(self, level: int) -> "DrillState":
        return replace(self, unlocked_level=max(self.unlocked_level, level))

    # ---------- visibility ----------
    @property
    def has_income(self) -> bool:
        return self.income > 0

    @property
    def shows_tax(self) -> bool:
        return self.unlocked_level >= TAX

    @property
    def shows_categories(self) -> bool:
        return (
            self.has_income
            and self.unlocked_level >= CATEGORIES
            and self.selected_category_id is None
        )

    @property
    def shows_subcategories(self) -> bool:
        return (
            self.has_income
            and self.unlocked_level >= SUBCATEGORIES
            and self.selected_category_id is not None
        )

    @property
    def view_level(self) -> int:
        if self.shows_subcategories:
            return SUBCATEGORIES
        if self.shows_categories:
            return CATEGORIES
        if self.shows_tax:
            return TAX
        return INCOME

    def breadcrumbs(self):
        """``(level, name)`` for every level the user may navigate to."""
        return [(lvl, LEVEL_NAMES[lvl]) for lvl in range(INCOME, self.unlocked_level + 1)]


__all__ = [
    "INCOME",
    "TAX",
    "CATEGORIES",
    "SUBCATEGORIES",
    "LEVEL_NAMES",
    "DrillState",
]
