"""Label rails and connector routing for a donut ring.

Each ring gets two rails of labels, one left and one right of the chart.
Routing happens in two phases because a label's box is only known once the
render layer has placed it:

1. ``assign_rails`` is pure geometry: split the slices by side and order each
   rail top to bottom by the slice midpoint's y.
2. ``route_connectors`` takes the measured label boxes and the chart box (all
   in one shared coordinate space) and builds a three-point polyline per
   slice: label anchor, elbow, slice midpoint.

``LabelRailRouter`` owns the recompute contract.  Phase 2 reruns when the
router is attached to a viewport, whenever the slice set changes, and on
every viewport resize until it is detached.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .radial import LEFT, RIGHT, Slice

logger = logging.getLogger(__name__)

# Horizontal distance from a label's inner edge to the connector elbow.
ELBOW_OFFSET = 16.0


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class RailColumns:
    left: Tuple[Slice, ...] = ()
    right: Tuple[Slice, ...] = ()


@dataclass(frozen=True)
class ConnectorLine:
    label: str
    anchor_x: float
    anchor_y: float
    elbow_x: float
    elbow_y: float
    target_x: float
    target_y: float

    @property
    def points(self) -> List[Tuple[float, float]]:
        return [
            (self.anchor_x, self.anchor_y),
            (self.elbow_x, self.elbow_y),
            (self.target_x, self.target_y),
        ]


@dataclass(frozen=True)
class Measurement:
    """Rendered positions of the labels and the chart, in one space.

    ``chart_size`` is the chart's intrinsic drawing size; when the chart box
    is wider or narrower, slice midpoints are scaled to match.
    """

    label_boxes: Mapping[str, Box] = field(default_factory=dict)
    chart_box: Box = Box(0.0, 0.0, 0.0, 0.0)
    chart_size: Optional[float] = None


def assign_rails(slices: Sequence[Slice]) -> RailColumns:
    """Phase 1: partition by side, then sort each rail by midpoint y."""
    left = sorted((s for s in slices if s.side == LEFT), key=lambda s: s.mid_y)
    right = sorted((s for s in slices if s.side == RIGHT), key=lambda s: s.mid_y)
    return RailColumns(left=tuple(left), right=tuple(right))


def route_connectors(
    slices: Sequence[Slice],
    label_boxes: Mapping[str, Box],
    chart_box: Box,
    chart_size: Optional[float] = None,
    elbow_offset: float = ELBOW_OFFSET,
) -> List[ConnectorLine]:
    """Phase 2: one connector per slice whose label has been measured.

    Slices whose label is missing from ``label_boxes`` (for instance while a
    transition is still rendering) are skipped.
    """
    scale = chart_box.width / chart_size if chart_size else 1.0
    lines = []
    for s in slices:
        box = label_boxes.get(s.label)
        if box is None:
            logger.debug("No measured box for label %r; skipping its connector", s.label)
            continue
        if s.side == RIGHT:
            anchor_x = box.left
            elbow_x = anchor_x - elbow_offset
        else:
            anchor_x = box.right
            elbow_x = anchor_x + elbow_offset
        anchor_y = box.center_y
        lines.append(ConnectorLine(
            label=s.label,
            anchor_x=anchor_x,
            anchor_y=anchor_y,
            elbow_x=elbow_x,
            elbow_y=anchor_y,
            target_x=chart_box.x + s.mid_x * scale,
            target_y=chart_box.y + s.mid_y * scale,
        ))
    return lines


ResizeListener = Callable[[float, float], None]


class Viewport:
    """Resize event source standing in for the browser window."""

    def __init__(self, width: float, height: float):
        self.width = float(width)
        self.height = float(height)
        self._listeners: List[ResizeListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_resize_listener(self, listener: ResizeListener) -> None:
        self._listeners.append(listener)

    def remove_resize_listener(self, listener: ResizeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def resize(self, width: float, height: float) -> None:
        width, height = float(width), float(height)
        if (width, height) == (self.width, self.height):
            return
        self.width, self.height = width, height
        for listener in list(self._listeners):
            listener(width, height)


MeasureFn = Callable[[RailColumns, Viewport], Measurement]


class LabelRailRouter:
    """Keeps one ring's connectors in step with its slices and the viewport.

    ``measure`` is called with the current rails and viewport after the slice
    set has been rendered and must return where the labels and the chart
    ended up.  ``on_update`` (optional) receives every freshly routed list.
    """

    def __init__(
        self,
        measure: MeasureFn,
        on_update: Optional[Callable[[List[ConnectorLine]], None]] = None,
        elbow_offset: float = ELBOW_OFFSET,
    ):
        self._measure = measure
        self._on_update = on_update
        self.elbow_offset = elbow_offset
        self._slices: Tuple[Slice, ...] = ()
        self._viewport: Optional[Viewport] = None
        self.columns = RailColumns()
        self.measurement = Measurement()
        self.connectors: List[ConnectorLine] = []

    @property
    def slices(self) -> Tuple[Slice, ...]:
        return self._slices

    @property
    def viewport(self) -> Optional[Viewport]:
        return self._viewport

    @property
    def is_attached(self) -> bool:
        return self._viewport is not None

    def attach(self, viewport: Viewport) -> None:
        if self._viewport is viewport:
            return
        if self._viewport is not None:
            self.detach()
        viewport.add_resize_listener(self._on_resize)
        self._viewport = viewport
        logger.debug("Rail router attached to viewport %sx%s", viewport.width, viewport.height)
        self.remeasure()

    def detach(self) -> None:
        if self._viewport is None:
            return
        self._viewport.remove_resize_listener(self._on_resize)
        self._viewport = None
        logger.debug("Rail router detached")

    @contextmanager
    def mounted(self, viewport: Viewport) -> Iterator["LabelRailRouter"]:
        """Attach for the duration of the block; always detaches."""
        self.attach(viewport)
        try:
            yield self
        finally:
            self.detach()

    def set_slices(self, slices: Sequence[Slice]) -> RailColumns:
        self._slices = tuple(slices)
        self.columns = assign_rails(self._slices)
        if self._viewport is not None:
            self.remeasure()
        return self.columns

    def _on_resize(self, width: float, height: float) -> None:
        self.remeasure()

    def remeasure(self) -> List[ConnectorLine]:
        if self._viewport is None:
            return self.connectors
        m = self._measure(self.columns, self._viewport)
        self.measurement = m
        self.connectors = route_connectors(
            self._slices, m.label_boxes, m.chart_box, m.chart_size, self.elbow_offset
        )
        if self._on_update is not None:
            self._on_update(self.connectors)
        return self.connectors


ACTIVE = "active"
DIM = "dim"


@dataclass(frozen=True)
class RailHighlight:
    """Which label of a ring is emphasized; slices and labels share it."""

    active: Optional[str] = None

    def hover(self, label: Optional[str]) -> "RailHighlight":
        return replace(self, active=label)

    def leave(self, label: Optional[str]) -> "RailHighlight":
        if label is None or label == self.active:
            return replace(self, active=None)
        return self

    def emphasis(self, label: str) -> Optional[str]:
        if self.active is None:
            return None
        return ACTIVE if label == self.active else DIM


__all__ = [
    "ELBOW_OFFSET",
    "ACTIVE",
    "DIM",
    "Box",
    "RailColumns",
    "ConnectorLine",
    "Measurement",
    "assign_rails",
    "route_connectors",
    "Viewport",
    "LabelRailRouter",
    "RailHighlight",
]
