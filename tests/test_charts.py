"""Tests for the Plotly donut, the rail placement and the legend table."""

from types import SimpleNamespace

import plotly.graph_objects as go
import pytest

from where_money_goes.components import charts, radial
from where_money_goes.components.forms import parse_income
from where_money_goes.components.rail import LabelRailRouter, RailHighlight, Viewport, assign_rails


def _allocs(*pairs):
    return [SimpleNamespace(label=l, dollars=d) for l, d in pairs]


def test_format_usd():
    assert charts.format_usd(1507.23) == "$1,507"
    assert charts.format_usd2(1507.234) == "$1,507.23"
    assert charts.format_usd(0) == "$0"
    assert charts.format_usd2(-12.5) == "-$12.50"


def test_ring_items_cycle_palette():
    items = charts.ring_items(_allocs(*[(f"c{i}", 1.0) for i in range(14)]))
    assert [i.label for i in items][:2] == ["c0", "c1"]
    assert items[0].color == charts.PALETTE[0]
    assert items[12].color == charts.PALETTE[0]
    assert items[13].color == charts.PALETTE[1]


def test_legend_sorted_by_dollars():
    slices = radial.layout_ring(charts.ring_items(_allocs(("a", 10.0), ("b", 30.0), ("c", 10.0))))
    df = charts.legend_frame(slices)
    assert list(df["Label"]) == ["b", "a", "c"]       # ties keep input order
    assert df["Share"].sum() == pytest.approx(1.0)
    assert df.loc[0, "Share"] == pytest.approx(0.6)


def test_legend_share_against_total():
    slices = radial.layout_ring(charts.ring_items(_allocs(("a", 25.0))))
    df = charts.legend_frame(slices, total=100.0)
    assert df.loc[0, "Share"] == pytest.approx(0.25)
    assert charts.legend_frame([]).empty


def test_rail_boxes_sit_beside_chart():
    slices = radial.layout_ring(charts.ring_items(_allocs(*[(f"c{i}", 1.0) for i in range(8)])))
    columns = assign_rails(slices)
    m = charts.layout_rail_boxes(columns, Viewport(1100, 460))
    assert set(m.label_boxes) == {s.label for s in slices}
    for s in columns.left:
        assert m.label_boxes[s.label].right <= m.chart_box.left
    for s in columns.right:
        assert m.label_boxes[s.label].left >= m.chart_box.right
    # rows never overlap within a rail
    for rail in (columns.left, columns.right):
        tops = [m.label_boxes[s.label].top for s in rail]
        assert all(b - a >= charts.ROW_HEIGHT for a, b in zip(tops, tops[1:]))


def test_narrow_viewport_shrinks_chart():
    m = charts.layout_rail_boxes(assign_rails([]), Viewport(760, 460))
    assert m.chart_box.width < radial.DEFAULT_RING.size
    assert m.chart_box.width >= charts.MIN_CHART_SIZE
    assert m.chart_size == radial.DEFAULT_RING.size


def test_donut_chart_traces():
    slices = radial.layout_ring(charts.ring_items(_allocs(("a", 3.0), ("b", 1.0))))
    router = LabelRailRouter(charts.measure_with())
    router.set_slices(slices)
    router.attach(Viewport(1100, 460))
    fig = charts.donut_chart(
        slices, "Budget", router.measurement, router.connectors,
        highlight=RailHighlight().hover("a"),
    )
    assert isinstance(fig, go.Figure)
    # one fill per slice, one marker trace, one line per connector
    assert len(fig.data) == 2 + 1 + 2
    markers = fig.data[2]
    assert list(markers.customdata) == ["a", "b"]
    assert fig.data[1].opacity == charts.OPACITY["dim"]
    texts = [a.text for a in fig.layout.annotations]
    assert "<b>a</b>" in texts
    assert "BUDGET" in texts


def test_parse_income():
    assert parse_income("$85,000 / yr") == 85000.0
    assert parse_income("") == 0.0
    assert parse_income(None) == 0.0
    assert parse_income("abc") == 0.0
