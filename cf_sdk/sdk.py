"""SDK entry points for embedding cogniflow-python."""

from __future__ import annotations

from typing import Optional

from cf_api.client import CompletionClient
from cf_api.config import ApiConfig
from cf_canvas.interaction import ZoomConfig
from cf_canvas.layout import CanvasConfig

from .session import BranchingSession


def create_session(
    *,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    offline: bool = False,
    client: Optional[CompletionClient] = None,
    canvas_config: Optional[CanvasConfig] = None,
    zoom_config: Optional[ZoomConfig] = None,
    send_history: bool = True,
) -> BranchingSession:
    resolved_client = client
    if resolved_client is None and not offline:
        config = ApiConfig.from_env()
        if base_url:
            config.base_url = base_url.rstrip("/")
        if timeout is not None:
            config.timeout = timeout
        resolved_client = CompletionClient(config)

    return BranchingSession(
        resolved_client,
        canvas_config=canvas_config,
        zoom_config=zoom_config,
        send_history=send_history,
    )
