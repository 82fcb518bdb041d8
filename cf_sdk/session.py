"""Branching conversation session: the single owner of tree, canvas and service state."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from cf_api.client import CompletionClient
from cf_api.errors import CompletionServiceError
from cf_canvas.connectors import Connector, route_connectors
from cf_canvas.interaction import CanvasInteraction, PointerPoint, ZoomConfig
from cf_canvas.layout import CanvasConfig, LayerBoard, OverviewConfig, overview_layout
from cf_canvas.types import Layer, Point
from cf_tree.ancestry import NavigationHistory, ancestors_of
from cf_tree.store import TreeEvent, TreeStore
from cf_tree.types import ChatNode, Message

logger = logging.getLogger(__name__)

SessionEvent = Dict[str, Any]

ERROR_PREFIX = "Error: "


class BranchingSession:
    """Everything the view layer reads and every action it can take.

    Tree mutations happen synchronously; calls to the completion service are
    awaited afterwards. Replies that come back for a node which has since been
    merged or pruned are dropped.
    """

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        *,
        store: Optional[TreeStore] = None,
        canvas_config: Optional[CanvasConfig] = None,
        zoom_config: Optional[ZoomConfig] = None,
        send_history: bool = True,
    ) -> None:
        self.client = client
        self.store = store or TreeStore()
        self.board = LayerBoard(canvas_config)
        self.interaction = CanvasInteraction(self.board, zoom_config)
        self.history = NavigationHistory(self.store)
        self.send_history = send_history
        # Local node id -> completion service node id.
        self.node_map: Dict[str, str] = {}
        self.service_root_id: Optional[str] = None
        self.api_error: Optional[str] = None
        self._active_node_id: Optional[str] = None
        self._listeners: set[Callable[[SessionEvent], None]] = set()
        self.store.subscribe(self._on_tree_event)
        self.board.reconcile(self.store)

    def subscribe(self, fn: Callable[[SessionEvent], None]) -> Callable[[], None]:
        self._listeners.add(fn)

        def unsubscribe() -> None:
            self._listeners.discard(fn)

        return unsubscribe

    # Derived views

    @property
    def active_node_id(self) -> Optional[str]:
        return self._active_node_id

    @property
    def active_node(self) -> Optional[ChatNode]:
        return self.store.find_node(self._active_node_id)

    @property
    def is_root_chat(self) -> bool:
        node = self.active_node
        return node is None or node.parent_id is None

    @property
    def visible_messages(self) -> List[Message]:
        if not self.store.has_node(self._active_node_id):
            return []
        return self.store.messages_of(self._active_node_id)  # type: ignore[arg-type]

    @property
    def breadcrumbs(self) -> List[ChatNode]:
        return ancestors_of(self.store, self._active_node_id)

    @property
    def layers(self) -> List[Layer]:
        return self.board.layers

    def overview_layers(self, cfg: OverviewConfig = OverviewConfig()) -> List[Layer]:
        return overview_layout(self.store, cfg)

    def connectors(
        self,
        message_centers: Optional[Mapping[str, Point]] = None,
        container_offset: Point = Point(0, 0),
    ) -> List[Connector]:
        return route_connectors(
            self.board.layers,
            zoom=self.interaction.zoom,
            message_centers=message_centers,
            container_offset=container_offset,
        )

    def display_title(self, node_id: str) -> str:
        node = self.store.get_node(node_id)
        title = node.title or "Untitled"
        if node.source_message_id is not None and node.title:
            return f"{title}..."
        return title

    def snapshot(self) -> Dict[str, Any]:
        return {
            "chats": [node.to_dict() for node in self.store.nodes()],
            "messages": [message.to_dict() for message in self.visible_messages],
            "layers": [layer.to_dict() for layer in self.board.layers],
            "activeChatId": self._active_node_id,
            "zoom": self.interaction.zoom,
            "apiError": self.api_error,
        }

    # Navigation

    async def start(self) -> str:
        root_id = self.store.ensure_root()
        if self._active_node_id is None:
            self.history.reset(root_id)
            self._set_active(root_id)
        if self.client is not None and root_id not in self.node_map:
            try:
                service_root = await self.client.get_root_node_id()
            except CompletionServiceError as exc:
                self.api_error = str(exc)
                logger.warning("Could not resolve service root: %s", exc)
            else:
                self.service_root_id = service_root
                self.node_map[root_id] = service_root
        return root_id

    async def select(self, node_id: str) -> None:
        self.store.get_node(node_id)
        self.history.visit(node_id)
        self._set_active(node_id)
        await self._hydrate(node_id)

    def jump_to(self, node_id: str) -> None:
        self.history.jump_to(node_id)
        self._set_active(node_id)

    def go_back(self) -> Optional[str]:
        previous = self.history.go_back()
        if previous is not None:
            self._set_active(previous)
        return previous

    # Canvas gestures

    def begin_drag(self, layer_id: str, point: PointerPoint) -> bool:
        if not self.interaction.begin_drag(layer_id, point):
            return False
        self._focus_layer(layer_id)
        return True

    def begin_resize(self, layer_id: str, point: PointerPoint) -> bool:
        if not self.interaction.begin_resize(layer_id, point):
            return False
        self._focus_layer(layer_id)
        return True

    # Conversation

    async def send(self, node_id: str, content: str) -> Optional[str]:
        """Append the user's message now and the reply when it arrives.

        Returns the id of the appended reply (or error) message, or ``None``
        when there is nothing to send, no client, or the node went away.
        """
        text = content.strip()
        if not text:
            return None
        self.store.send_message(node_id, text, "user")
        if self.client is None:
            return None

        history = self.store.history_of(node_id)[:-1] if self.send_history else None
        try:
            service_id = await self._service_node(node_id)
            reply = await self.client.chat(text, service_id, history)
        except CompletionServiceError as exc:
            return self._append_error(node_id, exc)

        if self.store.has_node(node_id):
            self.node_map[node_id] = reply.node_id
        return self.store.append_if_present(node_id, reply.response, "assistant")

    async def branch_from_selection(self, message_id: str, selected_text: Optional[str] = None) -> str:
        """Open a branch from a message, seeded with the selected text."""
        message = self.store.get_message(message_id)
        text = (selected_text or "").strip() or message.content
        node_id = self.store.branch(message.chat_id, message.id, text)
        self.history.visit(node_id)
        self._set_active(node_id)

        if self.client is not None:
            try:
                parent_service = await self._service_node(message.chat_id)
                branch_id = await self.client.branch(parent_service, carry_messages=True)
            except CompletionServiceError as exc:
                self.store.append_if_present(node_id, text, "user")
                self._append_error(node_id, exc)
                return node_id
            if not self.store.has_node(node_id):
                return node_id
            self.node_map[node_id] = branch_id

        await self.send(node_id, text)
        return node_id

    async def merge(self, node_id: Optional[str] = None) -> str:
        """Fold a branch into its parent locally, then tell the service.

        The local merge is authoritative; a failing service call is logged
        and otherwise ignored.
        """
        node = self.store.get_node(node_id or self._require_active())
        source_service = self.node_map.get(node.id)
        target_service = self.node_map.get(node.parent_id) if node.parent_id else None

        parent_id = self.store.merge(node.id)
        self.history.visit(parent_id)
        self._set_active(parent_id)

        if self.client is not None and source_service and target_service and source_service != target_service:
            try:
                await self.client.merge(target_service, source_service)
            except CompletionServiceError as exc:
                logger.warning("Service merge of %s into %s failed: %s", source_service, target_service, exc)
        return parent_id

    def prune(self, node_id: Optional[str] = None) -> str:
        parent_id = self.store.prune(node_id or self._require_active())
        self.history.visit(parent_id)
        self._set_active(parent_id)
        return parent_id

    def rename(self, node_id: str, title: str) -> None:
        self.store.rename(node_id, title)

    async def summarize(self, node_id: Optional[str] = None) -> str:
        """Create a child holding the service's summary of a branch."""
        source = self.store.get_node(node_id or self._require_active())
        title = f"Summary of {source.title}"
        summary_id = self.store.branch(source.id, None, title)
        self.store.rename(summary_id, title)
        self.history.visit(summary_id)
        self._set_active(summary_id)
        if self.client is None:
            return summary_id

        try:
            service_source = await self._service_node(source.id)
            branch_id = await self.client.summarize_branch(service_source)
            if not self.store.has_node(summary_id):
                return summary_id
            self.node_map[summary_id] = branch_id
            detail = await self.client.get_node(branch_id)
        except CompletionServiceError as exc:
            self._append_error(summary_id, exc)
            return summary_id

        if self.store.has_node(summary_id) and not self.store.messages_of(summary_id):
            self.store.load_messages(summary_id, detail.conversation())
        return summary_id

    # Internals

    async def _service_node(self, node_id: str) -> str:
        mapped = self.node_map.get(node_id) or self.service_root_id
        if mapped:
            return mapped
        if self.client is None:
            raise RuntimeError("No completion client configured")
        service_root = await self.client.get_root_node_id()
        self.service_root_id = service_root
        if self.store.has_node(node_id):
            self.node_map[node_id] = service_root
        return service_root

    async def _hydrate(self, node_id: str) -> None:
        service_id = self.node_map.get(node_id)
        if self.client is None or service_id is None or self.store.messages_of(node_id):
            return
        try:
            detail = await self.client.get_node(service_id)
        except CompletionServiceError as exc:
            logger.warning("Could not load messages for %s: %s", node_id, exc)
            return
        if self.store.has_node(node_id) and not self.store.messages_of(node_id):
            self.store.load_messages(node_id, detail.conversation())

    def _append_error(self, node_id: str, exc: CompletionServiceError) -> Optional[str]:
        return self.store.append_if_present(node_id, f"{ERROR_PREFIX}{exc}", "assistant", is_error=True)

    def _require_active(self) -> str:
        if self._active_node_id is None:
            return self.store.ensure_root()
        return self._active_node_id

    def _focus_layer(self, layer_id: str) -> None:
        if layer_id == self._active_node_id or not self.store.has_node(layer_id):
            return
        self.history.visit(layer_id)
        self._set_active(layer_id)

    def _set_active(self, node_id: Optional[str]) -> None:
        if node_id == self._active_node_id:
            return
        self._active_node_id = node_id
        if node_id is not None and self.board.get(node_id) is not None:
            self.board.active_layer_id = node_id
        self._emit({"type": "focus_changed", "node_id": node_id})

    def _on_tree_event(self, event: TreeEvent) -> None:
        event_type = event.get("type")
        if event_type == "node_pruned":
            for removed in event["removed"]:
                self.node_map.pop(removed, None)
        elif event_type == "node_merged":
            self.node_map.pop(event["node_id"], None)

        self.board.reconcile(self.store)
        if self._active_node_id is not None and not self.store.has_node(self._active_node_id):
            self._set_active(event.get("parent_id"))
        self._emit(event)

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
