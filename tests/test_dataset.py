"""Tests for the shipped budget reference data."""

import pytest

from where_money_goes.calculators import allocation as alloc
from where_money_goes.calculators.dataset import UNMAPPED_MANDATE, load_dataset, parse_dataset
from where_money_goes.calculators.errors import BudgetDataError


def test_default_dataset_loads():
    ds = load_dataset()
    assert len(ds.tree) == 14
    assert ds.tree.categories[0].id == "education"
    assert ds.tree.by_id("education").weight == 29.71
    assert len(ds.splits) == 22
    assert ds.fiscal_year == 2026
    assert len(ds.footnotes) == 2
    assert ds.split_sources[0].label.startswith("NYC Open Data")


def test_mandate_lookup():
    ds = load_dataset()
    assert "homelessness" in ds.mandate_for("Department of Homeless Services")
    assert ds.mandate_for("Pension obligations") == UNMAPPED_MANDATE
    assert ds.mandate_for(None) == UNMAPPED_MANDATE


def test_education_uses_department_split():
    ds = load_dataset()
    education = ds.expanded(ds.tree.by_id("education"))
    for child in education.children:
        assert [k.label for k in child.children] == [
            alloc.PERSONAL_SERVICES, alloc.OTHER_THAN_PERSONAL_SERVICES
        ]
        assert child.children[0].weight == 58402434309


def test_agency_split_and_plain_leaf():
    ds = load_dataset()
    human = ds.expanded(ds.tree.by_id("human_services"))
    dss = next(c for c in human.children if c.label == "Department of Social Services")
    assert dss.children[1].weight == 32684557554

    pensions = ds.expanded(ds.tree.by_id("pensions"))
    assert pensions.children[0].children == ()
    assert ds.expanded(None) is None


def test_unknown_source_rejected():
    raw = {
        "sources": {},
        "categories": [{"id": "a", "label": "A", "weight": 1, "sources": ["nope"]}],
    }
    with pytest.raises(BudgetDataError):
        parse_dataset(raw)


def test_missing_category_id_rejected():
    with pytest.raises(BudgetDataError):
        parse_dataset({"categories": [{"label": "A", "weight": 1}]})


def test_negative_weight_rejected():
    with pytest.raises(BudgetDataError):
        parse_dataset({"categories": [{"id": "a", "label": "A", "weight": -1}]})


def test_minimal_dataset():
    ds = parse_dataset({
        "categories": [
            {"id": "a", "label": "A", "weight": 2, "children": [{"label": "x", "weight": 1}]},
            {"id": "b", "label": "B", "weight": 1},
        ]
    })
    assert [c.label for c in ds.tree] == ["A", "B"]
    assert ds.splits == {}
    assert ds.expanded(ds.tree.by_id("a")).children[0].children == ()


@pytest.mark.parametrize("raw", [
    {"categories": [1]},
    {"categories": None},
    {"categories": {"a": 1}},
    {"categories": [{"id": "a", "label": "A", "weight": 1, "children": 3}]},
    {"categories": [{"id": "a", "label": "A", "weight": 1}], "mandates": ["x"]},
    {"categories": [{"id": "a", "label": "A", "weight": 1}], "footnotes": "note"},
    [],
])
def test_malformed_shapes_rejected(raw):
    with pytest.raises(BudgetDataError):
        parse_dataset(raw)
