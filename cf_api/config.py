"""Connection settings for the completion service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "http://localhost:5001"
DEFAULT_TIMEOUT = 30.0

BASE_URL_ENV = "COGNIFLOW_API_BASE_URL"
TIMEOUT_ENV = "COGNIFLOW_API_TIMEOUT"


@dataclass
class ApiConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    headers: Dict[str, str] = field(
        default_factory=lambda: {"Content-Type": "application/json", "Accept": "application/json"}
    )

    @classmethod
    def from_env(cls, *, dotenv_path: Optional[str] = None) -> "ApiConfig":
        load_dotenv(dotenv_path=dotenv_path, override=False)
        base_url = os.getenv(BASE_URL_ENV) or DEFAULT_BASE_URL
        raw_timeout = os.getenv(TIMEOUT_ENV)
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            timeout = DEFAULT_TIMEOUT
        return cls(base_url=base_url.rstrip("/"), timeout=timeout)
