"""Completion service client for cogniflow-python."""

from .client import CompletionClient
from .config import ApiConfig
from .errors import CompletionServiceError
from .types import ChatResponse, NodeDetail, NodeSummary

__all__ = [
    "ApiConfig",
    "ChatResponse",
    "CompletionClient",
    "CompletionServiceError",
    "NodeDetail",
    "NodeSummary",
]
