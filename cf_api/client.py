"""Async client for the remote completion service."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from .config import ApiConfig
from .errors import CompletionServiceError
from .types import (
    BranchRequest,
    BranchResponse,
    ChatRequest,
    ChatResponse,
    HistoryMessage,
    MergeRequest,
    MergeResponse,
    NodeDetail,
    NodeList,
    NodeSummary,
    SummarizeRequest,
)

logger = logging.getLogger(__name__)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


def _body_of(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class CompletionClient:
    """Thin wrapper over the service's JSON endpoints.

    Every failure (transport error, non-2xx status, malformed payload) is
    raised as ``CompletionServiceError`` so callers have one thing to catch.
    """

    def __init__(
        self,
        config: Optional[ApiConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or ApiConfig.from_env()
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            headers=self.config.headers,
            transport=transport,
        )

    async def __aenter__(self) -> "CompletionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def chat(
        self,
        message: str,
        node_id: Optional[str] = None,
        conversation_history: Optional[List[Dict[str, str]]] = None,
    ) -> ChatResponse:
        request = ChatRequest(
            message=message,
            node_id=node_id,
            conversation_history=(
                [HistoryMessage.model_validate(item) for item in conversation_history]
                if conversation_history is not None
                else None
            ),
        )
        return await self._request("Chat", "POST", "/api/chat", ChatResponse, payload=request)

    async def branch(
        self,
        parent_id: str,
        *,
        carry_messages: Optional[bool] = None,
        seed_message: Optional[str] = None,
        new_id: Optional[str] = None,
    ) -> str:
        request = BranchRequest(
            parent_id=parent_id,
            new_id=new_id,
            carry_messages=carry_messages,
            seed_message=seed_message,
        )
        result = await self._request("Branch", "POST", "/api/branch", BranchResponse, payload=request)
        return result.branch_id

    async def merge(self, target_id: str, source_id: str) -> str:
        request = MergeRequest(target_id=target_id, source_id=source_id)
        result = await self._request("Merge", "POST", "/api/merge", MergeResponse, payload=request)
        return result.merged_id

    async def summarize_branch(self, source_id: str, new_id: Optional[str] = None) -> str:
        request = SummarizeRequest(source_id=source_id, new_id=new_id)
        result = await self._request("Summarize", "POST", "/api/summarize_branch", BranchResponse, payload=request)
        return result.branch_id

    async def get_node(self, node_id: str) -> NodeDetail:
        path = f"/api/nodes/{quote(node_id, safe='')}"
        return await self._request(f"Load node {node_id}", "GET", path, NodeDetail)

    async def list_nodes(self) -> List[NodeSummary]:
        result = await self._request("Load nodes", "GET", "/api/nodes", NodeList)
        return result.nodes

    async def get_root_node_id(self) -> str:
        nodes = await self.list_nodes()
        if not nodes:
            raise CompletionServiceError("No nodes available")
        root = next((node for node in nodes if node.parent_id is None), nodes[0])
        return root.id

    async def health_check(self) -> bool:
        try:
            await self.list_nodes()
        except CompletionServiceError:
            return False
        return True

    async def _request(
        self,
        action: str,
        method: str,
        path: str,
        response_model: Type[ResponseModel],
        *,
        payload: Optional[BaseModel] = None,
    ) -> ResponseModel:
        body = payload.model_dump(exclude_none=True) if payload is not None else None
        try:
            response = await self._client.request(method, path, json=body)
        except httpx.HTTPError as exc:
            logger.warning("%s request to %s failed: %s", action, path, exc)
            raise CompletionServiceError(
                "Network error - Unable to reach the server. Please check if the backend is running."
            ) from exc

        if response.is_error:
            logger.warning("%s returned HTTP %d", action, response.status_code)
            raise CompletionServiceError.from_status(action, response.status_code, _body_of(response))

        try:
            return response_model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise CompletionServiceError(
                f"{action} returned an invalid payload", status=response.status_code
            ) from exc
