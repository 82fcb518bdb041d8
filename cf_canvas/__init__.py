"""Canvas layout, interaction and connector geometry for cogniflow-python."""

from .colors import BRANCH_COLORS, BranchColor, branched_message_color, is_message_branched, layer_color, next_branch_color
from .connectors import Connector, route_connectors
from .interaction import CanvasInteraction, Dragging, Idle, PointerPoint, Resizing, ZoomConfig
from .layout import CanvasConfig, LayerBoard, OverviewConfig, find_parent_layer, overview_layout, place_branch
from .types import Layer, Point

__all__ = [
    "BRANCH_COLORS",
    "BranchColor",
    "CanvasConfig",
    "CanvasInteraction",
    "Connector",
    "Dragging",
    "Idle",
    "Layer",
    "LayerBoard",
    "OverviewConfig",
    "Point",
    "PointerPoint",
    "Resizing",
    "ZoomConfig",
    "branched_message_color",
    "find_parent_layer",
    "is_message_branched",
    "layer_color",
    "next_branch_color",
    "overview_layout",
    "place_branch",
    "route_connectors",
]
