"""Static budget reference data.

``data/budget.json`` holds everything the allocation view needs that is not
computed: the category tree with its citations, the per-agency PS/OTPS
splits, short agency mandates and page footnotes.  Sources are declared once
under ``sources`` and referenced by key from nodes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .allocation import (
    BudgetNode,
    Category,
    CategoryTree,
    SecondarySplit,
    SourceLink,
    with_secondary_splits,
)
from .errors import BudgetDataError

logger = logging.getLogger(__name__)

_DEFAULT_DATASET_PATH = Path(__file__).resolve().parent.parent / "data" / "budget.json"

UNMAPPED_MANDATE = "Official mission/mandate wording is not yet mapped for this line item."


@dataclass(frozen=True)
class BudgetDataset:
    tree: CategoryTree
    sources: Mapping[str, SourceLink] = field(default_factory=dict)
    splits: Mapping[str, SecondarySplit] = field(default_factory=dict)
    split_sources: Tuple[SourceLink, ...] = ()
    mandates: Mapping[str, str] = field(default_factory=dict)
    footnotes: Tuple[str, ...] = ()
    fiscal_year: Optional[int] = None

    def mandate_for(self, label: Optional[str]) -> str:
        return self.mandates.get(label, UNMAPPED_MANDATE)

    def expanded(self, category: Optional[Category]) -> Optional[Category]:
        """``category`` with secondary splits attached, when split data exists."""
        if category is None:
            return None
        return with_secondary_splits(category, self.splits, self.split_sources)


def _resolve_sources(keys, sources: Mapping[str, SourceLink], where: str) -> Tuple[SourceLink, ...]:
    out = []
    for key in keys or []:
        if key not in sources:
            raise BudgetDataError(f"{where}: unknown source {key!r}")
        out.append(sources[key])
    return tuple(out)


def _parse_node(raw: dict, sources: Mapping[str, SourceLink], where: str) -> BudgetNode:
    try:
        label = str(raw["label"])
        weight = float(raw["weight"])
    except (KeyError, TypeError, ValueError) as exc:
        raise BudgetDataError(f"{where}: malformed node ({exc})") from exc
    if weight < 0:
        raise BudgetDataError(f"{where}: weight of {label!r} must be non-negative")
    raw_children = raw.get("children") or []
    if not isinstance(raw_children, list):
        raise BudgetDataError(f"{where}: children of {label!r} must be a list")
    children = tuple(
        _parse_node(child, sources, f"{where} > {label}")
        for child in raw_children
    )
    return BudgetNode(
        label=label,
        weight=weight,
        sources=_resolve_sources(raw.get("sources"), sources, f"{where} > {label}"),
        children=children,
    )


def parse_dataset(raw: dict) -> BudgetDataset:
    """Build a dataset from the decoded JSON document."""
    if not isinstance(raw, dict):
        raise BudgetDataError("budget file must be a JSON object")
    try:
        sources: Dict[str, SourceLink] = {
            key: SourceLink(label=str(s["label"]), href=str(s["href"]))
            for key, s in (raw.get("sources") or {}).items()
        }
        splits: Dict[str, SecondarySplit] = {
            label: SecondarySplit(float(s["ps"]), float(s["otps"]))
            for label, s in (raw.get("secondary_splits") or {}).items()
        }
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise BudgetDataError(f"malformed sources or splits: {exc}") from exc

    raw_categories = raw.get("categories")
    if raw_categories is None:
        raise BudgetDataError("budget file has no 'categories'")
    if not isinstance(raw_categories, list):
        raise BudgetDataError("'categories' must be a list")

    categories: List[Category] = []
    for i, c in enumerate(raw_categories):
        if not isinstance(c, dict):
            raise BudgetDataError(f"category {i} must be an object")
        if "id" not in c:
            raise BudgetDataError(f"category {i} has no 'id'")
        categories.append(Category(
            id=str(c["id"]),
            node=_parse_node(c, sources, f"category {c['id']}"),
            split_fallback=c.get("split_fallback"),
        ))

    split_source = raw.get("split_source")
    split_sources = _resolve_sources([split_source] if split_source else [], sources, "split_source")

    mandates = raw.get("mandates") or {}
    if not isinstance(mandates, dict):
        raise BudgetDataError("'mandates' must map labels to text")
    footnotes = raw.get("footnotes") or []
    if not isinstance(footnotes, list):
        raise BudgetDataError("'footnotes' must be a list")

    return BudgetDataset(
        tree=CategoryTree(tuple(categories)),
        sources=sources,
        splits=splits,
        split_sources=split_sources,
        mandates={str(k): str(v) for k, v in mandates.items()},
        footnotes=tuple(str(n) for n in footnotes),
        fiscal_year=raw.get("fiscal_year"),
    )


def load_dataset(path: Optional[Path] = None) -> BudgetDataset:
    """Load the budget dataset from JSON.

    Parameters
    ----------
    path : Path, optional
        Alternative file following the ``data/budget.json`` layout.

    Returns
    -------
    BudgetDataset
        Validated, immutable reference data.
    """
    p = path or _DEFAULT_DATASET_PATH
    with open(p, "r", encoding="utf-8") as f:
        raw = json.load(f)
    dataset = parse_dataset(raw)
    logger.info(
        "Loaded %d budget categories and %d agency splits from %s",
        len(dataset.tree), len(dataset.splits), p,
    )
    return dataset


__all__ = ["BudgetDataset", "UNMAPPED_MANDATE", "parse_dataset", "load_dataset"]
