"""Test helpers for cogniflow-python."""

from __future__ import annotations

from typing import Tuple

from cf_tree.store import TreeStore


def build_chain(depth: int) -> Tuple[TreeStore, list[str]]:
    """A root followed by ``depth - 1`` nested branches, ids root-first."""
    store = TreeStore()
    ids = [store.create_root()]
    for index in range(depth - 1):
        ids.append(store.branch(ids[-1], None, f"level {index + 1}"))
    return store, ids


def conversation_root(store: TreeStore) -> Tuple[str, str, str]:
    root = store.create_root()
    hello = store.send_message(root, "hello", "user")
    reply = store.send_message(root, "hi there", "assistant")
    return root, hello, reply
