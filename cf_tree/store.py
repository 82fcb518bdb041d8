"""In-memory tree of chat nodes and their messages."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from .errors import InvalidOperation
from .ids import generate_id
from .types import DEFAULT_ROOT_TITLE, ChatNode, Message, Role, derive_title

logger = logging.getLogger(__name__)

TreeEvent = Dict[str, Any]


class TreeStore:
    """Owns every chat node and message.

    All structural changes go through the methods below. Each one validates
    its arguments before touching state, so a rejected call leaves the tree
    exactly as it was.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, ChatNode] = {}
        self._children: Dict[str, List[str]] = {}
        self._messages: Dict[str, Message] = {}
        self._messages_by_node: Dict[str, List[str]] = {}
        self._sequence: Dict[str, int] = {}
        self._next_sequence = 0
        self._root_id: Optional[str] = None
        self._listeners: set[Callable[[TreeEvent], None]] = set()

    def subscribe(self, fn: Callable[[TreeEvent], None]) -> Callable[[], None]:
        self._listeners.add(fn)

        def unsubscribe() -> None:
            self._listeners.discard(fn)

        return unsubscribe

    # Queries

    def root_id(self) -> Optional[str]:
        return self._root_id

    def has_node(self, node_id: Optional[str]) -> bool:
        return node_id is not None and node_id in self._nodes

    def get_node(self, node_id: str) -> ChatNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise InvalidOperation(f"Node not found: {node_id}")
        return node

    def find_node(self, node_id: Optional[str]) -> Optional[ChatNode]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def get_message(self, message_id: str) -> Message:
        message = self._messages.get(message_id)
        if message is None:
            raise InvalidOperation(f"Message not found: {message_id}")
        return message

    def nodes(self) -> List[ChatNode]:
        return list(self._nodes.values())

    def is_root(self, node_id: str) -> bool:
        return self.get_node(node_id).parent_id is None

    def children_of(self, node_id: str) -> List[str]:
        self.get_node(node_id)
        return list(self._children[node_id])

    def messages_of(self, node_id: str) -> List[Message]:
        self.get_node(node_id)
        return [self._messages[message_id] for message_id in self._messages_by_node[node_id]]

    def history_of(self, node_id: str) -> List[Dict[str, str]]:
        """Conversation history in the shape the completion service accepts."""
        return [
            {"role": message.role, "content": message.content}
            for message in self.messages_of(node_id)
            if not message.is_error
        ]

    # Mutations

    def create_root(self, title: str = DEFAULT_ROOT_TITLE) -> str:
        if self._root_id is not None:
            raise InvalidOperation("Root already exists")
        node_id = generate_id()
        self._insert_node(ChatNode(id=node_id, parent_id=None, title=title))
        self._root_id = node_id
        logger.debug("Created root node %s", node_id)
        self._emit({"type": "node_created", "node_id": node_id, "parent_id": None})
        return node_id

    def ensure_root(self, title: str = DEFAULT_ROOT_TITLE) -> str:
        if self._root_id is not None:
            return self._root_id
        return self.create_root(title)

    def send_message(
        self,
        node_id: str,
        content: str,
        role: Role = "user",
        *,
        is_error: bool = False,
    ) -> str:
        node = self.get_node(node_id)
        if role not in ("user", "assistant"):
            raise InvalidOperation(f"Unknown role: {role}")

        if not is_error and not self._messages_by_node[node_id]:
            node.title = derive_title(content)

        message = Message(
            id=generate_id(),
            chat_id=node_id,
            role=role,
            content=content,
            is_error=is_error,
        )
        self._messages[message.id] = message
        self._messages_by_node[node_id].append(message.id)
        self._emit({"type": "message_added", "node_id": node_id, "message_id": message.id})
        return message.id

    def append_if_present(
        self,
        node_id: str,
        content: str,
        role: Role = "assistant",
        *,
        is_error: bool = False,
    ) -> Optional[str]:
        if node_id not in self._nodes:
            logger.warning("Dropping %s message for missing node %s", role, node_id)
            return None
        return self.send_message(node_id, content, role, is_error=is_error)

    def branch(
        self,
        source_node_id: str,
        source_message_id: Optional[str],
        selected_text: str,
    ) -> str:
        self.get_node(source_node_id)
        if source_message_id is not None:
            message = self.get_message(source_message_id)
            if message.chat_id != source_node_id:
                raise InvalidOperation(
                    f"Message {source_message_id} does not belong to node {source_node_id}"
                )

        node_id = generate_id()
        self._insert_node(
            ChatNode(
                id=node_id,
                parent_id=source_node_id,
                title=derive_title(selected_text),
                source_message_id=source_message_id,
            )
        )
        logger.debug("Branched %s from %s", node_id, source_node_id)
        self._emit({"type": "node_created", "node_id": node_id, "parent_id": source_node_id})
        return node_id

    def merge(self, node_id: str) -> str:
        node = self.get_node(node_id)
        parent_id = node.parent_id
        if parent_id is None:
            raise InvalidOperation("Cannot merge the root node")

        moved = self._messages_by_node.pop(node_id)
        for message_id in moved:
            self._messages[message_id].chat_id = parent_id
        self._messages_by_node[parent_id].extend(moved)

        orphans = self._children.pop(node_id)
        for child_id in orphans:
            self._nodes[child_id].parent_id = parent_id
        siblings = [child for child in self._children[parent_id] if child != node_id]
        siblings.extend(orphans)
        siblings.sort(key=self._sequence.__getitem__)
        self._children[parent_id] = siblings

        del self._nodes[node_id]
        del self._sequence[node_id]
        logger.debug("Merged %s into %s (%d messages)", node_id, parent_id, len(moved))
        self._emit(
            {
                "type": "node_merged",
                "node_id": node_id,
                "parent_id": parent_id,
                "message_ids": list(moved),
                "reparented": list(orphans),
            }
        )
        return parent_id

    def prune(self, node_id: str) -> str:
        node = self.get_node(node_id)
        parent_id = node.parent_id
        if parent_id is None:
            raise InvalidOperation("Cannot prune the root node")

        removed: List[str] = []
        stack = [node_id]
        while stack:
            current = stack.pop()
            removed.append(current)
            stack.extend(self._children.pop(current))
            for message_id in self._messages_by_node.pop(current):
                del self._messages[message_id]
            del self._nodes[current]
            del self._sequence[current]

        self._children[parent_id].remove(node_id)
        logger.debug("Pruned %s and %d descendants", node_id, len(removed) - 1)
        self._emit({"type": "node_pruned", "node_id": node_id, "parent_id": parent_id, "removed": removed})
        return parent_id

    def rename(self, node_id: str, title: str) -> None:
        self.get_node(node_id).title = title
        self._emit({"type": "node_renamed", "node_id": node_id, "title": title})

    def load_messages(self, node_id: str, messages: List[Dict[str, str]]) -> List[str]:
        """Append service-provided messages to a node that has none locally."""
        self.get_node(node_id)
        if self._messages_by_node[node_id]:
            raise InvalidOperation(f"Node {node_id} already has messages")
        added: List[str] = []
        for item in messages:
            role = item.get("role")
            if role not in ("user", "assistant"):
                continue
            message = Message(id=generate_id(), chat_id=node_id, role=role, content=item.get("content", ""))
            self._messages[message.id] = message
            self._messages_by_node[node_id].append(message.id)
            added.append(message.id)
        if added:
            self._emit({"type": "messages_loaded", "node_id": node_id, "message_ids": added})
        return added

    def _insert_node(self, node: ChatNode) -> None:
        self._nodes[node.id] = node
        self._children[node.id] = []
        self._messages_by_node[node.id] = []
        self._sequence[node.id] = self._next_sequence
        self._next_sequence += 1
        if node.parent_id is not None:
            self._children[node.parent_id].append(node.id)

    def _emit(self, event: TreeEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
