# components/charts.py
# Plotly rendering for the allocation donuts and their label rails.
# Figures are drawn in viewport pixels with y growing downward, the same
# space the rail router measures in.

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd
import plotly.graph_objects as go

from .radial import RIGHT, RingGeometry, RingItem, Slice, DEFAULT_RING, arc_polygon
from .rail import ACTIVE, DIM, Box, ConnectorLine, Measurement, RailColumns, RailHighlight, Viewport

PALETTE = [
    "#1f1f1f", "#4aa7d8", "#e36a2e", "#6c7a89", "#9c7a3f", "#4a6b60",
    "#b8695b", "#7a6f9f", "#9bb3a6", "#b5a27f", "#546b9a", "#a96f86",
]
BACKGROUND = "#f6f4ee"

# Rail layout (pixels)
RAIL_WIDTH = 230.0
RAIL_GAP = 48.0
ROW_HEIGHT = 22.0
ROW_SPACING = 4.0
TOP_MARGIN = 20.0
MIN_CHART_SIZE = 180.0

OPACITY = {None: 1.0, ACTIVE: 1.0, DIM: 0.35}


def format_usd(n: float) -> str:
    """Whole dollars, e.g. ``$1,507``."""
    sign = "-" if n < 0 else ""
    return f"{sign}${abs(n):,.0f}"


def format_usd2(n: float) -> str:
    """Dollars and cents, e.g. ``$1,507.23``."""
    sign = "-" if n < 0 else ""
    return f"{sign}${abs(n):,.2f}"


def ring_items(allocations: Iterable) -> List[RingItem]:
    """Colour allocations (anything with ``label`` and ``dollars``) by index."""
    return [
        RingItem(label=a.label, value=a.dollars, color=PALETTE[i % len(PALETTE)])
        for i, a in enumerate(allocations)
    ]


# ---------- Rail placement (the render layer's "measurement") ----------
def _chart_box(viewport: Viewport, geometry: RingGeometry) -> Box:
    room = viewport.width - 2 * (RAIL_WIDTH + RAIL_GAP)
    size = max(MIN_CHART_SIZE, min(geometry.size, room))
    return Box((viewport.width - size) / 2, TOP_MARGIN, size, size)


def _stack(desired: Sequence[float], top: float, bottom: float) -> List[float]:
    """Row tops as close to ``desired`` centres as the rail allows, in order."""
    step = ROW_HEIGHT + ROW_SPACING
    tops = []
    cursor = top
    for d in desired:
        y = max(cursor, d - ROW_HEIGHT / 2)
        tops.append(y)
        cursor = y + step
    # Push back up if the rail ran past the bottom
    overflow = (tops[-1] + ROW_HEIGHT - bottom) if tops else 0.0
    if overflow > 0:
        limit = bottom - ROW_HEIGHT
        for i in range(len(tops) - 1, -1, -1):
            tops[i] = min(tops[i], limit)
            limit = tops[i] - step
        shift = top - tops[0]
        if shift > 0:
            tops = [t + shift for t in tops]
    return tops


def layout_rail_boxes(
    columns: RailColumns,
    viewport: Viewport,
    geometry: RingGeometry = DEFAULT_RING,
) -> Measurement:
    """Place every rail label beside the chart and report the boxes."""
    chart = _chart_box(viewport, geometry)
    scale = chart.width / geometry.size
    bottom = max(chart.bottom, viewport.height - TOP_MARGIN)
    boxes: Dict[str, Box] = {}
    for rail, x in (
        (columns.left, chart.left - RAIL_GAP - RAIL_WIDTH),
        (columns.right, chart.right + RAIL_GAP),
    ):
        desired = [chart.y + s.mid_y * scale for s in rail]
        for s, top in zip(rail, _stack(desired, TOP_MARGIN, bottom)):
            boxes[s.label] = Box(x, top, RAIL_WIDTH, ROW_HEIGHT)
    return Measurement(label_boxes=boxes, chart_box=chart, chart_size=geometry.size)


def measure_with(geometry: RingGeometry = DEFAULT_RING):
    """Measure callback for ``LabelRailRouter`` bound to one ring geometry."""
    def _measure(columns: RailColumns, viewport: Viewport) -> Measurement:
        return layout_rail_boxes(columns, viewport, geometry)
    return _measure


# ---------- Donut with rails ----------
def donut_chart(slices: Sequence[Slice],
                center_label: str,
                measurement: Measurement,
                connectors: Sequence[ConnectorLine] = (),
                highlight: RailHighlight = RailHighlight(),
                geometry: RingGeometry = DEFAULT_RING,
                height: Optional[float] = None) -> go.Figure:
    """
    One ring, its two label rails and the connectors between them.
    Every slice trace carries its label in ``customdata`` so selection events
    can be mapped back to the budget line.
    """
    chart = measurement.chart_box
    scale = chart.width / geometry.size
    fig = go.Figure()

    for s in slices:
        xs, ys = arc_polygon(geometry.cx, geometry.cy, geometry.outer_radius,
                             geometry.inner_radius, s.start_angle, s.end_angle)
        fig.add_trace(go.Scatter(
            x=chart.x + xs * scale, y=chart.y + ys * scale,
            mode="lines", fill="toself", fillcolor=s.color,
            line=dict(color=BACKGROUND, width=1),
            opacity=OPACITY[highlight.emphasis(s.label)],
            name=s.label, hoveron="fills",
            text=f"{s.label}<br>{format_usd(s.value)} • {s.fraction * 100:.1f}%",
            hoverinfo="text", showlegend=False,
        ))

    # Clickable midpoints (fills cannot be selected)
    fig.add_trace(go.Scatter(
        x=[chart.x + s.mid_x * scale for s in slices],
        y=[chart.y + s.mid_y * scale for s in slices],
        mode="markers+text",
        marker=dict(size=18, color="rgba(0,0,0,0)"),
        text=[s.percent_text if s.show_percent else "" for s in slices],
        textfont=dict(size=12, color="rgba(255,255,255,0.95)"),
        customdata=[s.label for s in slices],
        hovertemplate="%{customdata}<extra></extra>",
        showlegend=False, name="slices",
    ))

    for line in connectors:
        state = highlight.emphasis(line.label)
        xs, ys = zip(*line.points)
        fig.add_trace(go.Scatter(
            x=list(xs), y=list(ys), mode="lines",
            line=dict(color="#333333", width=2 if state == ACTIVE else 1),
            opacity=OPACITY[state] if state else 0.6,
            hoverinfo="skip", showlegend=False,
        ))

    sides = {s.label: s.side for s in slices}
    for label, box in measurement.label_boxes.items():
        right = sides.get(label) == RIGHT
        fig.add_annotation(
            x=box.left if right else box.right, y=box.center_y,
            text=f"<b>{label}</b>" if highlight.emphasis(label) == ACTIVE else label,
            showarrow=False, xanchor="left" if right else "right", yanchor="middle",
            font=dict(size=12), opacity=OPACITY[highlight.emphasis(label)],
        )

    fig.add_annotation(
        x=chart.x + geometry.cx * scale, y=chart.y + geometry.cy * scale,
        text=center_label.upper(), showarrow=False, font=dict(size=20, color="#333333"),
    )

    bottom = max([chart.bottom] + [b.bottom for b in measurement.label_boxes.values()])
    fig_height = height or bottom + TOP_MARGIN
    # chart is centred, so the viewport spans left margin + chart + right margin
    width = chart.left + chart.right
    fig.update_layout(
        template="plotly_white",
        height=fig_height,
        margin=dict(l=0, r=0, t=0, b=0),
        paper_bgcolor=BACKGROUND, plot_bgcolor=BACKGROUND,
        xaxis=dict(range=[0, width], visible=False, fixedrange=True),
        yaxis=dict(range=[fig_height, 0], visible=False, fixedrange=True,
                   scaleanchor="x", scaleratio=1),
        clickmode="event+select",
        dragmode=False,
    )
    return fig


# ---------- Legend table ----------
def legend_frame(slices: Sequence[Slice], total: Optional[float] = None) -> pd.DataFrame:
    """
    Legend rows sorted by dollars, largest first.
    Share is against ``total`` when given (floored at 1 like the ring itself).
    """
    denom = max(1.0, total if total is not None else sum(max(0.0, s.value) for s in slices))
    df = pd.DataFrame({
        "Label": [s.label for s in slices],
        "Dollars": [s.value for s in slices],
        "Share": [s.value / denom for s in slices],
        "Color": [s.color for s in slices],
    })
    if df.empty:
        return df
    return df.sort_values("Dollars", ascending=False, kind="stable").reset_index(drop=True)
