"""Spatial projection of chat nodes for the canvas views."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Optional


class Point(NamedTuple):
    x: float
    y: float


@dataclass
class Layer:
    id: str
    # Parent chat id; None for the primary layer.
    root_parent_id: Optional[str]
    x: float
    y: float
    width: float
    height: float
    z: int
    title: str = ""
    # Palette index; None leaves the layer unstyled.
    color: Optional[int] = None
    source_message_id: Optional[str] = None

    @property
    def is_primary(self) -> bool:
        return self.root_parent_id is None

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def overlaps(self, other: "Layer") -> bool:
        return (
            self.x < other.x + other.width
            and other.x < self.x + self.width
            and self.y < other.y + other.height
            and other.y < self.y + self.height
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "rootParentId": self.root_parent_id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "z": self.z,
            "title": self.title,
            "color": "primary" if self.color is None else str(self.color),
            "sourceMessageId": self.source_message_id,
        }
