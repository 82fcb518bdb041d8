"""Layer placement for the free canvas and the tree overview.

The free canvas keeps one layer per chat node. New layers are placed under
the layer they branched from:

- siblings grow along a row centred on the parent's horizontal midpoint
- each row sits one vertical gap below the parent's bottom edge
- dragged or resized geometry is kept across reconciles

The tree overview is rank based: depth picks the column, sibling index picks
the row, and the whole thing is recomputed from the node list each time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from cf_tree.ancestry import depth_of
from cf_tree.store import TreeStore

from .colors import BRANCH_COLORS, next_branch_color
from .types import Layer, Point


@dataclass(frozen=True)
class CanvasConfig:
    # Distance between sibling slots along a row.
    horizontal_spacing: float = 520
    # Gap between a parent's bottom edge and its children's row.
    vertical_spacing: float = 150
    width: float = 480
    height: float = 360
    min_width: float = 300
    min_height: float = 250
    # Top-left of the primary layer.
    origin: Tuple[float, float] = (80, 80)


@dataclass(frozen=True)
class OverviewConfig:
    x0: float = 80
    y0: float = 80
    depth_spacing: float = 400
    sibling_spacing: float = 200
    width: float = 280
    height: float = 120
    min_width: float = 200
    min_height: float = 100


def find_parent_layer(layer: Layer, layers: Sequence[Layer]) -> Optional[Layer]:
    if layer.root_parent_id is None:
        return None
    for candidate in layers:
        if candidate.id == layer.root_parent_id:
            return candidate
    return None


def count_children(parent: Layer, layers: Sequence[Layer]) -> int:
    count = 0
    for layer in layers:
        resolved = find_parent_layer(layer, layers)
        if resolved is not None and resolved.id == parent.id:
            count += 1
    return count


def place_branch(parent: Layer, layers: Sequence[Layer], cfg: CanvasConfig = CanvasConfig()) -> Point:
    # Consecutive siblings land spacing/2 apart, so default-sized siblings overlap.
    # The tree overview is the non-overlapping view.
    sibling_count = count_children(parent, layers)
    spacing = cfg.horizontal_spacing
    center_x = parent.x + parent.width / 2
    start_x = center_x - (sibling_count * spacing) / 2
    return Point(start_x + sibling_count * spacing, parent.y + parent.height + cfg.vertical_spacing)


def next_z(layers: Sequence[Layer]) -> int:
    return max((layer.z for layer in layers), default=0) + 1


def clamp_size(width: float, height: float, min_width: float, min_height: float) -> Tuple[float, float]:
    return max(min_width, width), max(min_height, height)


class LayerBoard:
    """Owns the free-canvas layers derived from a ``TreeStore``."""

    def __init__(self, config: Optional[CanvasConfig] = None) -> None:
        self.config = config or CanvasConfig()
        self._layers: Dict[str, Layer] = {}
        self.active_layer_id: Optional[str] = None

    @property
    def layers(self) -> List[Layer]:
        return list(self._layers.values())

    @classmethod
    def for_overview(cls, store: TreeStore, cfg: OverviewConfig = OverviewConfig()) -> "LayerBoard":
        board = cls(
            CanvasConfig(
                width=cfg.width,
                height=cfg.height,
                min_width=cfg.min_width,
                min_height=cfg.min_height,
                origin=(cfg.x0, cfg.y0),
            )
        )
        board.load(overview_layout(store, cfg))
        return board

    def load(self, layers: Sequence[Layer]) -> None:
        self._layers = {layer.id: layer for layer in layers}
        if self.active_layer_id not in self._layers:
            self.active_layer_id = None

    def get(self, layer_id: str) -> Optional[Layer]:
        return self._layers.get(layer_id)

    def require(self, layer_id: str) -> Layer:
        layer = self._layers.get(layer_id)
        if layer is None:
            raise KeyError(f"Layer not found: {layer_id}")
        return layer

    def reconcile(self, store: TreeStore) -> List[Layer]:
        """Rebuild the layer set from the store's nodes.

        Identity, parentage and titles always come from the store; position,
        size, stacking and colour are kept for layers that already exist.
        """
        previous = self._layers
        self._layers = {}
        for node in store.nodes():
            layer = previous.get(node.id)
            if layer is None:
                layer = self._new_layer(node.id, node.parent_id, node.source_message_id)
            layer.root_parent_id = node.parent_id
            layer.source_message_id = node.source_message_id
            layer.title = node.title
            self._layers[node.id] = layer

        if self.active_layer_id not in self._layers:
            self.active_layer_id = None
        return self.layers

    def bring_to_front(self, layer_id: str) -> Layer:
        layer = self.require(layer_id)
        layer.z = next_z(self.layers)
        self.active_layer_id = layer_id
        return layer

    def move_to(self, layer_id: str, x: float, y: float) -> Layer:
        layer = self.require(layer_id)
        layer.x = x
        layer.y = y
        return layer

    def resize_to(self, layer_id: str, width: float, height: float) -> Layer:
        layer = self.require(layer_id)
        layer.width, layer.height = clamp_size(width, height, self.config.min_width, self.config.min_height)
        return layer

    def _new_layer(self, node_id: str, parent_id: Optional[str], source_message_id: Optional[str]) -> Layer:
        existing = list(self._layers.values())
        cfg = self.config
        parent = self._layers.get(parent_id) if parent_id is not None else None

        if parent_id is None:
            x, y = cfg.origin
            color = None
        elif parent is None:
            # Parent layer is gone; start a fresh row under the origin.
            x, y = cfg.origin[0], cfg.origin[1] + cfg.height + cfg.vertical_spacing
            color = next_branch_color(existing)
        else:
            x, y = place_branch(parent, existing, cfg)
            color = next_branch_color(existing)

        return Layer(
            id=node_id,
            root_parent_id=parent_id,
            x=x,
            y=y,
            width=cfg.width,
            height=cfg.height,
            z=next_z(existing),
            color=color,
            source_message_id=source_message_id,
        )


def overview_layout(store: TreeStore, cfg: OverviewConfig = OverviewConfig()) -> List[Layer]:
    """Pure rank-based placement: depth gives x, sibling index gives y."""
    layers: List[Layer] = []
    sibling_index: Dict[Optional[str], int] = {}
    branch_count = 0
    for index, node in enumerate(store.nodes()):
        depth = depth_of(store, node.id)
        row = sibling_index.get(node.parent_id, 0)
        sibling_index[node.parent_id] = row + 1

        color: Optional[int] = None
        if node.parent_id is not None:
            color = branch_count % len(BRANCH_COLORS)
            branch_count += 1

        layers.append(
            Layer(
                id=node.id,
                root_parent_id=node.parent_id,
                x=cfg.x0 + depth * cfg.depth_spacing,
                y=cfg.y0 + row * cfg.sibling_spacing,
                width=cfg.width,
                height=cfg.height,
                z=index + 1,
                title=node.title or "Untitled",
                color=color,
                source_message_id=node.source_message_id,
            )
        )
    return layers
