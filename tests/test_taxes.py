"""Unit tests for the taxes module.

These tests verify the NYC resident rate schedule shipped with the package
and the clamping rules around the standard deduction.
"""

import json
import math

import pytest

from where_money_goes.calculators import taxes as tax_calc
from where_money_goes.calculators.errors import BudgetDataError


def test_city_tax_example():
    """$50k of income: $42k taxable, third bracket."""
    tax = tax_calc.compute_tax(50000)
    assert math.isclose(tax, 858 + 0.03819 * (42000 - 25000), rel_tol=1e-9)
    assert math.isclose(tax, 1507.23, rel_tol=1e-6)


def test_taxable_income_reported():
    res = tax_calc.compute_city_income_tax(50000)
    assert res.taxable_income == 42000
    assert math.isclose(res.tax, 1507.23, rel_tol=1e-6)


def test_no_tax_at_or_below_deduction():
    deduction = tax_calc.default_schedule().standard_deduction
    assert deduction == 8000
    assert tax_calc.compute_tax(deduction) == 0.0
    assert tax_calc.compute_tax(5000) == 0.0
    assert tax_calc.compute_tax(0) == 0.0


def test_negative_income_is_clamped():
    assert tax_calc.compute_tax(-25000) == 0.0
    assert tax_calc.evaluate_schedule(-1.0) == 0.0


def test_each_bracket():
    """One point inside every segment of the published schedule."""
    cases = [
        (8000 + 10000, 0.03078 * 10000),
        (8000 + 20000, 369 + 0.03762 * 8000),
        (8000 + 40000, 858 + 0.03819 * 15000),
        (8000 + 100000, 1813 + 0.03876 * 50000),
    ]
    for income, expected in cases:
        assert tax_calc.compute_tax(income) == pytest.approx(expected)


def test_threshold_belongs_to_upper_bracket():
    """At a threshold the higher bracket (lower bound <= x) applies."""
    assert tax_calc.evaluate_schedule(12000) == pytest.approx(369.0)
    assert tax_calc.evaluate_schedule(25000) == pytest.approx(858.0)
    assert tax_calc.evaluate_schedule(50000) == pytest.approx(1813.0)


def test_four_linear_segments():
    segments = tax_calc.schedule_segments()
    assert [(lo, hi) for lo, hi, _ in segments] == [
        (0.0, 12000.0), (12000.0, 25000.0), (25000.0, 50000.0), (50000.0, None)
    ]
    assert [rate for _, _, rate in segments] == [0.03078, 0.03762, 0.03819, 0.03876]


def test_continuous_and_non_decreasing_within_rounding():
    """Published bases are whole dollars, so jumps stay under the tolerance."""
    tol = tax_calc.CONTINUITY_TOLERANCE
    for t in tax_calc.default_schedule().thresholds:
        left = tax_calc.evaluate_schedule(t - 1e-6)
        right = tax_calc.evaluate_schedule(t)
        assert abs(right - left) < tol

    prev = 0.0
    for income in range(0, 200001, 250):
        tax = tax_calc.compute_tax(income)
        assert tax >= prev - tol
        prev = tax


def test_strictly_continuous_custom_schedule():
    schedule = tax_calc.BracketSchedule(
        brackets=(
            tax_calc.Bracket(upper=100.0, base=0.0, rate=0.10),
            tax_calc.Bracket(upper=None, base=10.0, rate=0.20),
        ),
        standard_deduction=50.0,
    )
    assert tax_calc.compute_tax(50, schedule) == 0.0
    assert tax_calc.compute_tax(150, schedule) == pytest.approx(10.0)
    assert tax_calc.compute_tax(250, schedule) == pytest.approx(30.0)
    values = [tax_calc.compute_tax(x, schedule) for x in range(0, 400, 5)]
    assert all(b >= a for a, b in zip(values, values[1:]))


def test_marginal_rate():
    assert tax_calc.marginal_rate(5000) == 0.0
    assert tax_calc.marginal_rate(50000) == 0.03819
    assert tax_calc.marginal_rate(1_000_000) == 0.03876


def test_discontinuous_schedule_rejected():
    with pytest.raises(BudgetDataError):
        tax_calc.BracketSchedule(
            brackets=(
                tax_calc.Bracket(upper=100.0, base=0.0, rate=0.10),
                tax_calc.Bracket(upper=None, base=50.0, rate=0.20),
            )
        )


def test_bounded_last_bracket_rejected():
    with pytest.raises(BudgetDataError):
        tax_calc.BracketSchedule(brackets=(tax_calc.Bracket(upper=100.0, base=0.0, rate=0.1),))


def test_decreasing_thresholds_rejected():
    with pytest.raises(BudgetDataError):
        tax_calc.BracketSchedule(
            brackets=(
                tax_calc.Bracket(upper=100.0, base=0.0, rate=0.0),
                tax_calc.Bracket(upper=50.0, base=0.0, rate=0.0),
                tax_calc.Bracket(upper=None, base=0.0, rate=0.0),
            )
        )


def test_load_schedule_from_file(tmp_path):
    path = tmp_path / "schedule.json"
    path.write_text(json.dumps({
        "standard_deduction": 1000,
        "brackets": [
            {"upper": 10000, "base": 0, "rate": 0.01},
            {"upper": None, "base": 100, "rate": 0.02},
        ],
    }), encoding="utf-8")
    schedule = tax_calc.load_schedule(path)
    assert schedule.standard_deduction == 1000
    assert tax_calc.compute_tax(21000, schedule) == pytest.approx(100 + 0.02 * 10000)


def test_load_schedule_malformed(tmp_path):
    path = tmp_path / "schedule.json"
    path.write_text(json.dumps({"brackets": [{"upper": None, "rate": 0.02}]}), encoding="utf-8")
    with pytest.raises(BudgetDataError):
        tax_calc.load_schedule(path)


def test_jump_at_each_threshold():
    """Whole-dollar published bases move the tax by cents at each threshold."""
    jumps = {12000: -0.36, 25000: -0.06, 50000: 0.25}
    for t, expected in jumps.items():
        left = tax_calc.evaluate_schedule(t - 0.01)
        right = tax_calc.evaluate_schedule(t)
        assert right - left == pytest.approx(expected, abs=1e-3)
        assert abs(right - left) < tax_calc.CONTINUITY_TOLERANCE
    # Seen from gross income, the first drop is at 8 000 + 12 000
    assert tax_calc.compute_tax(20000) == pytest.approx(369.0)
    assert tax_calc.compute_tax(19999.99) == pytest.approx(369.36, abs=1e-3)


def test_first_bracket_must_start_at_zero():
    with pytest.raises(BudgetDataError):
        tax_calc.BracketSchedule(
            brackets=(tax_calc.Bracket(upper=None, base=5.0, rate=0.1),),
            standard_deduction=100.0,
        )


@pytest.mark.parametrize("raw", [
    {"brackets": [1]},
    {"brackets": None},
    {"brackets": [{"upper": None, "base": "x", "rate": 0.1}]},
    [],
])
def test_malformed_schedule_shapes(raw):
    with pytest.raises(BudgetDataError):
        tax_calc._parse_schedule(raw)
