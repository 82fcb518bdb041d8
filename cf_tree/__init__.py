"""Branching conversation tree for cogniflow-python."""

from .ancestry import NavigationHistory, ancestors_of, depth_of, walk_tree
from .errors import InvalidOperation
from .ids import generate_id
from .store import TreeStore
from .types import ChatNode, Message

__all__ = [
    "ChatNode",
    "InvalidOperation",
    "Message",
    "NavigationHistory",
    "TreeStore",
    "ancestors_of",
    "depth_of",
    "generate_id",
    "walk_tree",
]
