"""Shared test fixtures.

HTTP is faked with ``httpx.MockTransport``; every adapter accepts a
``transport`` argument so requests can be captured and inspected.
"""

import json
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest

from echoclip.config import Settings
from echoclip.schemas.provider import ProviderSpec
from echoclip.services.registry import ProviderRegistry

PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="
PNG_DATA_URI = f"data:image/png;base64,{PNG_B64}"


class RecordedRequests(list):
    """Requests captured by a mock transport, with JSON helpers."""

    @property
    def last(self) -> httpx.Request:
        return self[-1]

    def last_json(self) -> dict:
        return json.loads(self[-1].content)


@pytest.fixture
def http_recorder() -> Callable:
    """Build a MockTransport answering every request the same way.

    Usage:
        transport, requests = http_recorder(json_body={"choices": [...]})
        transport, requests = http_recorder(status_code=401, text="denied")
        transport, requests = http_recorder(exc=httpx.ConnectError("refused"))
    """

    def _make(
        status_code: int = 200,
        json_body: Optional[dict] = None,
        text: Optional[str] = None,
        exc: Optional[Exception] = None,
    ):
        requests = RecordedRequests()

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if exc is not None:
                raise exc
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json_body if json_body is not None else {})

        return httpx.MockTransport(handler), requests

    return _make


@pytest.fixture
def openai_spec() -> ProviderSpec:
    return ProviderSpec(
        id="prov-openai",
        label="OpenAI (prod)",
        type="openai",
        api_base="https://api.openai.com/v1",
        api_key_env="OPENAI_API_KEY",
        model="gpt-4o-mini",
    )


@pytest.fixture
def ollama_spec() -> ProviderSpec:
    return ProviderSpec(
        id="prov-ollama",
        label="Ollama (localhost)",
        type="ollama",
        host="http://localhost:11434",
        model="llama3.1:8b",
    )


@pytest.fixture
def gemini_spec() -> ProviderSpec:
    return ProviderSpec(
        id="prov-gemini",
        label="Gemini",
        type="gemini",
        api_key_env="GEMINI_API_KEY",
        model="gemini-2.5-flash",
    )


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated from the developer's config.yaml and .env."""
    return Settings(
        storage={"providers_path": tmp_path / "config.json"},
        credentials={"backend": "env", "env_file": None},
        http={"timeout_seconds": 5.0, "connect_timeout_seconds": 2.0},
    )


@pytest.fixture
def registry(tmp_path: Path) -> ProviderRegistry:
    return ProviderRegistry(tmp_path / "config.json")
