from __future__ import annotations

import json
from typing import Callable, Optional
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.analysis.page import Prompt


class FakeInvoker:
    """``ModelInvoker`` double that records prompts and replays a response."""

    def __init__(self, response: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.prompts: list[Prompt] = []

    async def invoke(self, prompt: Prompt) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response or ""


@pytest.fixture
def make_invoker() -> Callable[..., FakeInvoker]:
    def _make(payload=None, *, raw: Optional[str] = None, error: Optional[Exception] = None):
        if raw is None and payload is not None:
            raw = json.dumps(payload)
        return FakeInvoker(response=raw, error=error)

    return _make


@pytest.fixture
def model_payload() -> dict:
    return {
        "title": "Widgets Inc",
        "description": "Widgets Inc makes and sells widgets for small workshops.",
        "tags": ["Widgets", "manufacturing", "shop", "tools"],
    }


@pytest.fixture
def client():
    """TestClient with the shared client shutdown hooks mocked."""
    with patch("app.main.close_http_client", new_callable=AsyncMock), patch(
        "app.main.close_model_invoker", new_callable=AsyncMock
    ):
        with TestClient(app) as c:
            yield c
    app.dependency_overrides.clear()
