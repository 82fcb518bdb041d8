"""Chat nodes and messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

Role = Literal["user", "assistant"]

DEFAULT_ROOT_TITLE = "Primary Chat"
TITLE_LIMIT = 40


@dataclass
class Message:
    id: str
    chat_id: str
    role: Role
    content: str
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "chatId": self.chat_id,
            "role": self.role,
            "content": self.content,
        }
        if self.is_error:
            data["isError"] = True
        return data


@dataclass
class ChatNode:
    id: str
    parent_id: Optional[str]
    title: str
    source_message_id: Optional[str] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "parentId": self.parent_id,
            "title": self.title,
        }
        if self.source_message_id:
            data["sourceMessageId"] = self.source_message_id
        return data


def derive_title(text: str) -> str:
    return text[:TITLE_LIMIT]
