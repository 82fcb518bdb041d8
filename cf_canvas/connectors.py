"""Curves linking each branch layer to the layer it grew from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from .colors import DEFAULT_STROKE, layer_color
from .layout import find_parent_layer
from .types import Layer, Point


@dataclass(frozen=True)
class Connector:
    layer_id: str
    parent_id: str
    start: Point
    control1: Point
    control2: Point
    end: Point
    stroke: str

    def path(self) -> str:
        return (
            f"M {self.start.x:g} {self.start.y:g} "
            f"C {self.control1.x:g} {self.control1.y:g}, "
            f"{self.control2.x:g} {self.control2.y:g}, "
            f"{self.end.x:g} {self.end.y:g}"
        )


def entry_point(child: Layer, start: Point) -> Point:
    """Midpoint of the child's edge that faces ``start``."""
    center = child.center
    dx = center.x - start.x
    dy = center.y - start.y
    if abs(dx) >= abs(dy):
        edge_x = child.x if dx >= 0 else child.x + child.width
        return Point(edge_x, center.y)
    edge_y = child.y if dy >= 0 else child.y + child.height
    return Point(center.x, edge_y)


def bend(start: Point, end: Point) -> tuple[Point, Point]:
    dx = end.x - start.x
    dy = end.y - start.y
    if abs(dx) >= abs(dy):
        mid_x = start.x + dx * 0.5
        return Point(mid_x, start.y), Point(mid_x, end.y)
    mid_y = start.y + dy * 0.5
    return Point(start.x, mid_y), Point(end.x, mid_y)


def route_connectors(
    layers: Sequence[Layer],
    *,
    zoom: float = 1.0,
    message_centers: Optional[Mapping[str, Point]] = None,
    container_offset: Point = Point(0, 0),
) -> List[Connector]:
    """Compute one connector per branch layer whose parent layer is present.

    ``message_centers`` holds measured on-screen centres of message elements.
    When a branch's source message is among them, the curve starts there
    (converted to logical space); otherwise it starts at the parent centre.
    """
    centers = message_centers or {}
    connectors: List[Connector] = []
    for layer in layers:
        parent = find_parent_layer(layer, layers)
        if parent is None:
            continue

        measured = centers.get(layer.source_message_id) if layer.source_message_id else None
        if measured is not None:
            start = Point(
                (measured.x - container_offset.x) / zoom,
                (measured.y - container_offset.y) / zoom,
            )
        else:
            start = parent.center

        end = entry_point(layer, start)
        control1, control2 = bend(start, end)
        color = layer_color(layer)
        connectors.append(
            Connector(
                layer_id=layer.id,
                parent_id=parent.id,
                start=start,
                control1=control1,
                control2=control2,
                end=end,
                stroke=color.stroke if color else DEFAULT_STROKE,
            )
        )
    return connectors
