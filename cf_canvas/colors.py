"""Branch palette and colour assignment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .types import Layer


@dataclass(frozen=True)
class BranchColor:
    name: str
    stroke: str


BRANCH_COLORS: List[BranchColor] = [
    BranchColor("yellow", "rgb(234, 179, 8)"),
    BranchColor("red", "rgb(239, 68, 68)"),
    BranchColor("green", "rgb(34, 197, 94)"),
    BranchColor("blue", "rgb(59, 130, 246)"),
    BranchColor("purple", "rgb(168, 85, 247)"),
    BranchColor("pink", "rgb(236, 72, 153)"),
    BranchColor("indigo", "rgb(99, 102, 241)"),
    BranchColor("orange", "rgb(249, 115, 22)"),
]

DEFAULT_STROKE = "rgb(59, 130, 246)"


def next_branch_color(layers: Sequence[Layer]) -> int:
    """Lowest free palette slot; once all are taken, colours repeat by count."""
    branch_layers = [layer for layer in layers if not layer.is_primary]
    used = {layer.color for layer in branch_layers}
    for index in range(len(BRANCH_COLORS)):
        if index not in used:
            return index
    return len(branch_layers) % len(BRANCH_COLORS)


def layer_color(layer: Layer) -> Optional[BranchColor]:
    if layer.color is None:
        return None
    return BRANCH_COLORS[layer.color % len(BRANCH_COLORS)]


def branched_message_color(message_id: str, layers: Sequence[Layer]) -> Optional[BranchColor]:
    for layer in layers:
        if layer.source_message_id == message_id:
            return layer_color(layer)
    return None


def is_message_branched(message_id: str, layers: Sequence[Layer]) -> bool:
    return any(layer.source_message_id == message_id for layer in layers)
