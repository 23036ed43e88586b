"""Hierarchical budget allocation.

The city budget is a two-level tree of weighted nodes.  Weights are only
meaningful relative to a node's siblings: the top-level categories carry
"dollars per $100 of budget" while, for example, the Miscellaneous children
are plain 60/40 percentages and agency splits are raw dollar totals.  A node's
share is therefore always computed against its own sibling group and never
against a global pool.

Allocating a dollar amount walks the tree top-down: each sibling group is
normalized, every child receives ``parent_dollars * fraction`` and the walk
recurses into that child with its own dollars.

Example
-------

>>> kids = (BudgetNode("A", 3.0), BudgetNode("B", 1.0))
>>> [round(a.dollars, 2) for a in allocate(kids, 100.0)]
[75.0, 25.0]
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import BudgetDataError

PERSONAL_SERVICES = "Personal Services"
OTHER_THAN_PERSONAL_SERVICES = "Other Than Personal Services"


@dataclass(frozen=True)
class SourceLink:
    label: str
    href: str


@dataclass(frozen=True)
class BudgetNode:
    """A weighted budget line with optional children."""

    label: str
    weight: float
    sources: Tuple[SourceLink, ...] = ()
    children: Tuple["BudgetNode", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "sources", tuple(self.sources))
        object.__setattr__(self, "children", tuple(self.children))
        _check_unique_labels(self.children, where=self.label)

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class Category:
    """Top-level budget node plus a stable id for selection keys."""

    id: str
    node: BudgetNode
    split_fallback: Optional[str] = None

    @property
    def label(self) -> str:
        return self.node.label

    @property
    def weight(self) -> float:
        return self.node.weight

    @property
    def children(self) -> Tuple[BudgetNode, ...]:
        return self.node.children

    @property
    def sources(self) -> Tuple[SourceLink, ...]:
        return self.node.sources


@dataclass(frozen=True)
class CategoryTree:
    categories: Tuple[Category, ...] = ()

    def __post_init__(self):
        categories = tuple(self.categories)
        object.__setattr__(self, "categories", categories)
        ids = [c.id for c in categories]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise BudgetDataError(f"duplicate category ids: {', '.join(dupes)}")
        _check_unique_labels([c.node for c in categories], where="categories")

    def __iter__(self):
        return iter(self.categories)

    def __len__(self) -> int:
        return len(self.categories)

    def by_id(self, category_id: Optional[str]) -> Optional[Category]:
        for c in self.categories:
            if c.id == category_id:
                return c
        return None

    def by_label(self, label: Optional[str]) -> Optional[Category]:
        for c in self.categories:
            if c.label == label:
                return c
        return None

    @property
    def nodes(self) -> Tuple[BudgetNode, ...]:
        return tuple(c.node for c in self.categories)


@dataclass(frozen=True)
class SecondarySplit:
    """Agency spending split into personnel and non-personnel dollars."""

    personal_services: float
    other_than_personal_services: float


@dataclass(frozen=True)
class Allocation:
    """Dollars flowing to one node; derived, never stored."""

    node: BudgetNode
    fraction: float
    dollars: float
    children: Tuple["Allocation", ...] = field(default=())

    @property
    def label(self) -> str:
        return self.node.label

    def child(self, label: Optional[str]) -> Optional["Allocation"]:
        for c in self.children:
            if c.label == label:
                return c
        return None


@dataclass(frozen=True)
class CategoryAllocation:
    category: Category
    allocation: Allocation

    @property
    def id(self) -> str:
        return self.category.id

    @property
    def label(self) -> str:
        return self.category.label

    @property
    def fraction(self) -> float:
        return self.allocation.fraction

    @property
    def dollars(self) -> float:
        return self.allocation.dollars

    @property
    def children(self) -> Tuple[Allocation, ...]:
        return self.allocation.children


@dataclass(frozen=True)
class SplitShares:
    personal_services: float
    other_than_personal_services: float
    personal_services_dollars: float
    other_than_personal_services_dollars: float


def _check_unique_labels(nodes: Iterable[BudgetNode], where: str) -> None:
    seen = set()
    for n in nodes:
        if n.label in seen:
            raise BudgetDataError(f"duplicate label {n.label!r} under {where!r}")
        seen.add(n.label)


def normalize(siblings: Sequence[BudgetNode]) -> List[Tuple[BudgetNode, float]]:
    """Pair each sibling with its share of the group's total weight.

    Negative weights count as zero.  When the group's weights sum to zero
    every share is zero.
    """
    weights = [max(0.0, float(n.weight)) for n in siblings]
    total = sum(weights)
    if total <= 0:
        return [(n, 0.0) for n in siblings]
    return [(n, w / total) for n, w in zip(siblings, weights)]


def allocate(siblings: Sequence[BudgetNode], parent_dollars: float) -> Tuple[Allocation, ...]:
    """Split ``parent_dollars`` across ``siblings`` and recurse into children."""
    out = []
    for node, fraction in normalize(siblings):
        dollars = parent_dollars * fraction
        out.append(Allocation(
            node=node,
            fraction=fraction,
            dollars=dollars,
            children=allocate(node.children, dollars),
        ))
    return tuple(out)


def allocate_categories(tree: CategoryTree, amount: float) -> Tuple[CategoryAllocation, ...]:
    """Allocate a tax amount across every top-level category."""
    allocations = allocate(tree.nodes, amount)
    return tuple(
        CategoryAllocation(category=c, allocation=a)
        for c, a in zip(tree.categories, allocations)
    )


def _split_children(split: SecondarySplit, sources: Tuple[SourceLink, ...]) -> Tuple[BudgetNode, ...]:
    return (
        BudgetNode(PERSONAL_SERVICES, split.personal_services, sources),
        BudgetNode(OTHER_THAN_PERSONAL_SERVICES, split.other_than_personal_services, sources),
    )


def with_secondary_splits(
    category: Category,
    splits: Mapping[str, SecondarySplit],
    sources: Tuple[SourceLink, ...] = (),
) -> Category:
    """Return ``category`` with PS/OTPS children attached to its leaves.

    A leaf takes the split keyed by its own label, else the category's
    ``split_fallback`` split.  Leaves without either stay leaves, and nodes
    that already have children are left untouched.
    """
    if not splits:
        return category
    fallback = splits.get(category.split_fallback) if category.split_fallback else None
    children = []
    for child in category.children:
        split = None if child.children else splits.get(child.label, fallback)
        if split is None:
            children.append(child)
        else:
            children.append(replace(child, children=_split_children(split, sources)))
    return replace(category, node=replace(category.node, children=tuple(children)))


def split_shares(allocation: Optional[Allocation]) -> Optional[SplitShares]:
    """PS/OTPS shares of an allocated node, or ``None`` if it has no split."""
    if allocation is None or not allocation.children:
        return None
    ps = allocation.child(PERSONAL_SERVICES)
    otps = allocation.child(OTHER_THAN_PERSONAL_SERVICES)
    if ps is None and otps is None:
        return None
    ps_frac = ps.fraction if ps else 0.0
    otps_frac = otps.fraction if otps else 0.0
    return SplitShares(
        personal_services=ps_frac,
        other_than_personal_services=otps_frac,
        personal_services_dollars=allocation.dollars * ps_frac,
        other_than_personal_services_dollars=allocation.dollars * otps_frac,
    )


__all__ = [
    "SourceLink",
    "BudgetNode",
    "Category",
    "CategoryTree",
    "SecondarySplit",
    "Allocation",
    "CategoryAllocation",
    "SplitShares",
    "PERSONAL_SERVICES",
    "OTHER_THAN_PERSONAL_SERVICES",
    "normalize",
    "allocate",
    "allocate_categories",
    "with_secondary_splits",
    "split_shares",
]
