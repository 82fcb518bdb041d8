"""Wire models for the completion service."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class HistoryMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str
    node_id: Optional[str] = None
    conversation_history: Optional[List[HistoryMessage]] = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    response: str
    node_id: str
    message_id: Optional[str] = None


class BranchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    parent_id: str
    new_id: Optional[str] = None
    carry_messages: Optional[bool] = None
    seed_message: Optional[str] = None


class BranchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    branch_id: str


class MergeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    target_id: str
    source_id: str


class MergeResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    merged_id: str


class SummarizeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source_id: str
    new_id: Optional[str] = None


class NodeSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    parent_id: Optional[str] = None


class NodeList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nodes: List[NodeSummary] = Field(default_factory=list)


class NodeDetail(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    parent_id: Optional[str] = None
    child_ids: List[str] = Field(default_factory=list)
    messages: List[HistoryMessage] = Field(default_factory=list)

    def conversation(self) -> List[dict]:
        return [
            {"role": message.role, "content": message.content}
            for message in self.messages
            if message.role in ("user", "assistant")
        ]
