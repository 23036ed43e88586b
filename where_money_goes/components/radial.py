"""Donut slice geometry.

Turns an ordered list of ``(label, value, color)`` items into annulus
segments.  Angles are in degrees and coordinates are screen coordinates (y
grows downward), so the default start angle of -90 puts the first slice at
12 o'clock and slices run clockwise in input order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

DEFAULT_START_ANGLE = -90.0
# Slices smaller than this share of the ring get no percentage text.
PERCENT_LABEL_MIN_SHARE = 0.04
# cos() values this close to zero are treated as exactly zero.
SIDE_EPSILON = 1e-9

RIGHT = "right"
LEFT = "left"


@dataclass(frozen=True)
class RingItem:
    label: str
    value: float
    color: str = "#6c7a89"


@dataclass(frozen=True)
class RingGeometry:
    """Square drawing area of side ``size`` with the ring centred in it."""

    size: float = 420.0
    outer_radius: float = 180.0
    inner_radius: float = 128.0

    @property
    def cx(self) -> float:
        return self.size / 2

    @property
    def cy(self) -> float:
        return self.size / 2

    @property
    def mid_radius(self) -> float:
        return (self.outer_radius + self.inner_radius) / 2


DEFAULT_RING = RingGeometry()


@dataclass(frozen=True)
class Slice:
    label: str
    value: float
    fraction: float
    color: str
    start_angle: float
    end_angle: float
    mid_angle: float
    mid_x: float
    mid_y: float
    side: str

    @property
    def sweep(self) -> float:
        return self.end_angle - self.start_angle

    @property
    def show_percent(self) -> bool:
        return self.fraction >= PERCENT_LABEL_MIN_SHARE

    @property
    def percent_text(self) -> str:
        return f"{self.fraction * 100:.0f}%"


def classify_side(mid_angle: float) -> str:
    """Rail side for a slice: right iff cos(mid) >= 0, boundary included."""
    c = math.cos(math.radians(mid_angle))
    if abs(c) < SIDE_EPSILON:
        c = 0.0
    return RIGHT if c >= 0 else LEFT


def polar(cx: float, cy: float, r: float, angle: float) -> Tuple[float, float]:
    rad = math.radians(angle)
    return cx + r * math.cos(rad), cy + r * math.sin(rad)


def layout_ring(
    items: Sequence[RingItem],
    geometry: RingGeometry = DEFAULT_RING,
    start_angle: float = DEFAULT_START_ANGLE,
) -> List[Slice]:
    """Lay out one ring.

    Parameters
    ----------
    items : sequence of RingItem
        Display order is input order; nothing is sorted.
    geometry : RingGeometry
        Centre and radii of the annulus.
    start_angle : float
        Angle of the first slice's leading edge, in degrees.

    Returns
    -------
    list of Slice
        One slice per item.  Negative values get a zero sweep.  The total
        floors at 1 so an all-zero ring yields zero-width slices instead of
        dividing by zero.
    """
    total = max(1.0, sum(max(0.0, float(it.value)) for it in items))
    cursor = float(start_angle)
    slices = []
    for it in items:
        share = max(0.0, float(it.value)) / total
        sweep = 360.0 * share
        mid = cursor + sweep / 2
        mx, my = polar(geometry.cx, geometry.cy, geometry.mid_radius, mid)
        slices.append(Slice(
            label=it.label,
            value=float(it.value),
            fraction=share,
            color=it.color,
            start_angle=cursor,
            end_angle=cursor + sweep,
            mid_angle=mid,
            mid_x=mx,
            mid_y=my,
            side=classify_side(mid),
        ))
        cursor += sweep
    return slices


def arc_path(cx: float, cy: float, r_outer: float, r_inner: float, start: float, end: float) -> str:
    """SVG path for one annulus segment.

    Outer arc from ``start`` to ``end`` in the increasing-angle direction,
    radial line in, inner arc back, close.
    """
    x1, y1 = polar(cx, cy, r_outer, start)
    x2, y2 = polar(cx, cy, r_outer, end)
    x3, y3 = polar(cx, cy, r_inner, end)
    x4, y4 = polar(cx, cy, r_inner, start)
    large = 1 if end - start > 180 else 0
    return (
        f"M {x1} {y1} "
        f"A {r_outer} {r_outer} 0 {large} 1 {x2} {y2} "
        f"L {x3} {y3} "
        f"A {r_inner} {r_inner} 0 {large} 0 {x4} {y4} Z"
    )


def slice_path(s: Slice, geometry: RingGeometry = DEFAULT_RING) -> str:
    return arc_path(geometry.cx, geometry.cy, geometry.outer_radius, geometry.inner_radius,
                    s.start_angle, s.end_angle)


def arc_polygon(
    cx: float,
    cy: float,
    r_outer: float,
    r_inner: float,
    start: float,
    end: float,
    step: float = 2.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """The same segment as a closed polygon, sampled every ``step`` degrees.

    Plotly shapes have no arc command, so the chart fills these instead.
    """
    n = max(2, int(math.ceil(abs(end - start) / step)) + 1)
    outer = np.radians(np.linspace(start, end, n))
    inner = outer[::-1]
    xs = np.concatenate([cx + r_outer * np.cos(outer), cx + r_inner * np.cos(inner), [cx + r_outer * np.cos(outer[0])]])
    ys = np.concatenate([cy + r_outer * np.sin(outer), cy + r_inner * np.sin(inner), [cy + r_outer * np.sin(outer[0])]])
    return xs, ys


__all__ = [
    "DEFAULT_START_ANGLE",
    "PERCENT_LABEL_MIN_SHARE",
    "RIGHT",
    "LEFT",
    "RingItem",
    "RingGeometry",
    "DEFAULT_RING",
    "Slice",
    "classify_side",
    "polar",
    "layout_ring",
    "arc_path",
    "slice_path",
    "arc_polygon",
]
