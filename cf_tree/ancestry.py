"""Ancestor chains, breadcrumbs and navigation history."""

from __future__ import annotations

from typing import List, Optional, Tuple

from .store import TreeStore
from .types import ChatNode


def ancestors_of(store: TreeStore, node_id: Optional[str]) -> List[ChatNode]:
    """Return the chain from the root down to ``node_id`` (inclusive).

    The walk is iterative and stops quietly at the first parent that cannot
    be resolved, so a chain cut by a prune yields the surviving tail rather
    than an error. A repeated id also ends the walk.
    """
    trail: List[ChatNode] = []
    seen: set[str] = set()
    current = node_id
    while current is not None and current not in seen:
        node = store.find_node(current)
        if node is None:
            break
        seen.add(current)
        trail.append(node)
        current = node.parent_id
    trail.reverse()
    return trail


def depth_of(store: TreeStore, node_id: str) -> int:
    return max(len(ancestors_of(store, node_id)) - 1, 0)


def walk_tree(store: TreeStore, start_id: Optional[str] = None) -> List[Tuple[ChatNode, int]]:
    """Pre-order listing of the tree with explicit depth, children in creation order."""
    start_id = start_id if start_id is not None else store.root_id()
    start = store.find_node(start_id)
    if start is None:
        return []

    ordered: List[Tuple[ChatNode, int]] = []
    stack: List[Tuple[str, int]] = [(start.id, 0)]
    while stack:
        node_id, depth = stack.pop()
        ordered.append((store.get_node(node_id), depth))
        for child_id in reversed(store.children_of(node_id)):
            stack.append((child_id, depth + 1))
    return ordered


class NavigationHistory:
    """Back-stack of focused nodes.

    ``jump_to`` rebuilds the stack from the ancestor chain of the target's
    parent instead of pushing onto it, so going back from a breadcrumb jump
    climbs the tree.
    """

    def __init__(self, store: TreeStore) -> None:
        self._store = store
        self._stack: List[str] = []
        self._current: Optional[str] = None

    @property
    def current(self) -> Optional[str]:
        return self._current

    @property
    def stack(self) -> List[str]:
        return list(self._stack)

    @property
    def can_go_back(self) -> bool:
        return any(self._store.has_node(node_id) for node_id in self._stack)

    def visit(self, node_id: str) -> None:
        self._store.get_node(node_id)
        if self._current is not None and self._current != node_id:
            self._stack.append(self._current)
        self._current = node_id

    def jump_to(self, node_id: str) -> None:
        node = self._store.get_node(node_id)
        self._stack = [ancestor.id for ancestor in ancestors_of(self._store, node.parent_id)]
        self._current = node_id

    def go_back(self) -> Optional[str]:
        while self._stack:
            candidate = self._stack.pop()
            if self._store.has_node(candidate):
                self._current = candidate
                return candidate
        return None

    def reset(self, node_id: Optional[str] = None) -> None:
        self._stack = []
        self._current = node_id
