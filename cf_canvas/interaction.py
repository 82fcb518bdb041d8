"""Pointer-driven drag, resize and zoom for canvas layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from .layout import LayerBoard
from .types import Point


@dataclass(frozen=True)
class ZoomConfig:
    minimum: float = 0.3
    maximum: float = 2.5
    step: float = 0.1
    wheel_step: float = 0.05


@dataclass(frozen=True)
class PointerPoint:
    """Screen-space pointer position, shared by mouse and touch input."""

    x: float
    y: float

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "PointerPoint":
        touches = event.get("touches")
        if touches:
            event = touches[0]
        return cls(x=float(event["clientX"]), y=float(event["clientY"]))


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    layer_id: str
    start: PointerPoint
    origin: Point


@dataclass(frozen=True)
class Resizing:
    layer_id: str
    start: PointerPoint
    origin_size: Point


Gesture = Union[Idle, Dragging, Resizing]


class CanvasInteraction:
    """Turns pointer events into layer moves and resizes.

    There is a single gesture slot. While a drag or resize is in progress,
    further pointer-downs are ignored until ``pointer_up`` (or ``cancel``)
    returns the machine to ``Idle``.
    """

    def __init__(self, board: LayerBoard, zoom_config: Optional[ZoomConfig] = None) -> None:
        self.board = board
        self.zoom_config = zoom_config or ZoomConfig()
        self._zoom = 1.0
        self._gesture: Gesture = Idle()

    @property
    def gesture(self) -> Gesture:
        return self._gesture

    @property
    def is_idle(self) -> bool:
        return isinstance(self._gesture, Idle)

    @property
    def zoom(self) -> float:
        return self._zoom

    # Gestures

    def begin_drag(self, layer_id: str, point: PointerPoint) -> bool:
        if not self.is_idle:
            return False
        layer = self.board.bring_to_front(layer_id)
        self._gesture = Dragging(layer_id=layer_id, start=point, origin=Point(layer.x, layer.y))
        return True

    def begin_resize(self, layer_id: str, point: PointerPoint) -> bool:
        if not self.is_idle:
            return False
        layer = self.board.bring_to_front(layer_id)
        self._gesture = Resizing(layer_id=layer_id, start=point, origin_size=Point(layer.width, layer.height))
        return True

    def pointer_move(self, point: PointerPoint) -> bool:
        gesture = self._gesture
        if isinstance(gesture, Idle):
            return False
        if self.board.get(gesture.layer_id) is None:
            self._gesture = Idle()
            return False

        dx = (point.x - gesture.start.x) / self._zoom
        dy = (point.y - gesture.start.y) / self._zoom
        if isinstance(gesture, Dragging):
            self.board.move_to(gesture.layer_id, gesture.origin.x + dx, gesture.origin.y + dy)
        else:
            self.board.resize_to(gesture.layer_id, gesture.origin_size.x + dx, gesture.origin_size.y + dy)
        return True

    def pointer_up(self) -> None:
        self._gesture = Idle()

    def cancel(self) -> None:
        """Abort the gesture and put the layer back where it started."""
        gesture = self._gesture
        self._gesture = Idle()
        if isinstance(gesture, Idle) or self.board.get(gesture.layer_id) is None:
            return
        if isinstance(gesture, Dragging):
            self.board.move_to(gesture.layer_id, gesture.origin.x, gesture.origin.y)
        else:
            self.board.resize_to(gesture.layer_id, gesture.origin_size.x, gesture.origin_size.y)

    # Zoom

    def set_zoom(self, value: float) -> float:
        cfg = self.zoom_config
        self._zoom = round(max(cfg.minimum, min(cfg.maximum, value)), 4)
        return self._zoom

    def zoom_in(self) -> float:
        return self.set_zoom(self._zoom + self.zoom_config.step)

    def zoom_out(self) -> float:
        return self.set_zoom(self._zoom - self.zoom_config.step)

    def on_wheel(self, delta_y: float, *, ctrl: bool = False, meta: bool = False) -> bool:
        """Zoom on modifier-qualified wheel ticks; plain scrolling is left alone."""
        if not (ctrl or meta) or delta_y == 0:
            return False
        step = self.zoom_config.wheel_step
        self.set_zoom(self._zoom + (step if delta_y < 0 else -step))
        return True

    def to_screen(self, point: Point) -> Point:
        return Point(point.x * self._zoom, point.y * self._zoom)

    def to_logical(self, point: Point, container_offset: Point = Point(0, 0)) -> Point:
        return Point(
            (point.x - container_offset.x) / self._zoom,
            (point.y - container_offset.y) / self._zoom,
        )
