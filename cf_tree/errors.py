"""Errors raised by the tree store."""

from __future__ import annotations


class InvalidOperation(ValueError):
    """A mutation or lookup that the tree rejects without changing state."""
