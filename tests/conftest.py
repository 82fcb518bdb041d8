"""Shared pytest setup for the cf_* packages."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

load_dotenv(dotenv_path=ROOT / ".env", override=False)


@pytest.fixture(autouse=True)
def _isolate_service_env(monkeypatch):
    # A developer's .env must not redirect tests at a live completion service.
    monkeypatch.delenv("COGNIFLOW_API_BASE_URL", raising=False)
    monkeypatch.delenv("COGNIFLOW_API_TIMEOUT", raising=False)
