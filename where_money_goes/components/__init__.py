"""Expose component submodules for convenience."""

from .radial import layout_ring, arc_path, classify_side
from .rail import assign_rails, route_connectors, LabelRailRouter, RailHighlight, Viewport
from .drill import DrillState
from .charts import donut_chart, legend_frame, ring_items

__all__ = [
    "layout_ring",
    "arc_path",
    "classify_side",
    "assign_rails",
    "route_connectors",
    "LabelRailRouter",
    "RailHighlight",
    "Viewport",
    "DrillState",
    "donut_chart",
    "legend_frame",
    "ring_items",
]
