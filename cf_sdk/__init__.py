"""Session facade for cogniflow-python."""

from .sdk import create_session
from .session import BranchingSession

__all__ = [
    "BranchingSession",
    "create_session",
]
