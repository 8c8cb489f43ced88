"""Tests for the Ollama adapter.

Covers the exact ``/api/chat`` body, base64 prefix stripping, content
fallbacks, and that every error comes back as a Failure.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from echoclip.schemas.run import FailureKind, Success
from echoclip.services.llm.ollama_adapter import IMAGE_ONLY_PROMPT, OllamaAdapter

from tests.conftest import PNG_B64, PNG_DATA_URI


def _adapter(transport=None) -> OllamaAdapter:
    return OllamaAdapter("http://localhost:11434", "llama3.1:8b", transport=transport)


@pytest.mark.asyncio
async def test_text_only_request_matches_wire_format(http_recorder):
    transport, requests = http_recorder(json_body={"message": {"role": "assistant", "content": " Hi! "}})

    result = await _adapter(transport).run("", "Hello", None)

    assert result == Success(text="Hi!")
    assert str(requests.last.url) == "http://localhost:11434/api/chat"
    assert requests.last_json() == {
        "model": "llama3.1:8b",
        "messages": [{"role": "user", "content": "Hello"}],
        "stream": False,
    }


@pytest.mark.asyncio
async def test_system_message_precedes_user(http_recorder):
    transport, requests = http_recorder(json_body={"message": {"content": "ok"}})

    await _adapter(transport).run("Be terse.", "Hello", None)

    assert requests.last_json()["messages"] == [
        {"role": "system", "content": "Be terse."},
        {"role": "user", "content": "Hello"},
    ]


@pytest.mark.asyncio
async def test_data_uri_and_raw_base64_send_identical_bytes(http_recorder):
    transport_a, requests_a = http_recorder(json_body={"message": {"content": "ok"}})
    transport_b, requests_b = http_recorder(json_body={"message": {"content": "ok"}})

    await _adapter(transport_a).run("SYS", "read", PNG_DATA_URI)
    await _adapter(transport_b).run("SYS", "read", PNG_B64)

    assert requests_a.last.content == requests_b.last.content
    assert requests_a.last_json()["messages"][-1]["images"] == [PNG_B64]


def test_image_without_text_uses_fixed_instruction():
    payload = _adapter().build_payload("", "   ", [PNG_DATA_URI, PNG_B64])

    user = payload["messages"][-1]
    assert user["content"] == IMAGE_ONLY_PROMPT
    assert user["images"] == [PNG_B64, PNG_B64]


def test_empty_text_and_no_image_sends_empty_content():
    payload = _adapter().build_payload("", "", None)

    assert payload["messages"] == [{"role": "user", "content": ""}]


@pytest.mark.asyncio
async def test_top_level_content_fallback(http_recorder):
    transport, _ = http_recorder(json_body={"content": "fallback text"})

    result = await _adapter(transport).run("", "Hello", None)

    assert result == Success(text="fallback text")


@pytest.mark.asyncio
async def test_no_content_anywhere_is_empty_string(http_recorder):
    transport, _ = http_recorder(json_body={"done": True})

    result = await _adapter(transport).run("", "Hello", None)

    assert result == Success(text="")


@pytest.mark.asyncio
async def test_http_error(http_recorder):
    transport, _ = http_recorder(status_code=404, text='{"error":"model \\"x\\" not found"}')

    result = await _adapter(transport).run("", "Hello", None)

    assert result.kind == FailureKind.UPSTREAM_HTTP_ERROR
    assert result.message == 'HTTP 404: {"error":"model \\"x\\" not found"}'


@pytest.mark.asyncio
async def test_connection_refused_is_caught(http_recorder):
    transport, _ = http_recorder(exc=httpx.ConnectError("All connection attempts failed"))

    result = await _adapter(transport).run("", "Hello", None)

    assert result.kind == FailureKind.TRANSPORT_ERROR
    assert result.message == "All connection attempts failed"


@pytest.mark.asyncio
async def test_probe_reports_pulled_model():
    listing = SimpleNamespace(models=[SimpleNamespace(model="llama3.1:8b"), SimpleNamespace(model="qwen2.5:3b")])
    with patch("echoclip.services.llm.ollama_adapter.AsyncClient") as client_cls:
        client_cls.return_value.list = AsyncMock(return_value=listing)
        client_cls.return_value.close = AsyncMock()

        result = await _adapter().probe()

    client_cls.assert_called_once()
    assert client_cls.call_args.kwargs["host"] == "http://localhost:11434"
    assert result.available
    assert result.detail == "reachable"
    assert result.models == ["llama3.1:8b", "qwen2.5:3b"]
    client_cls.return_value.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_probe_reports_missing_model():
    listing = SimpleNamespace(models=[SimpleNamespace(model="qwen2.5:3b")])
    with patch("echoclip.services.llm.ollama_adapter.AsyncClient") as client_cls:
        client_cls.return_value.list = AsyncMock(return_value=listing)
        client_cls.return_value.close = AsyncMock()

        result = await _adapter().probe()

    assert result.available
    assert "not pulled" in result.detail


@pytest.mark.asyncio
async def test_probe_unreachable_server():
    with patch("echoclip.services.llm.ollama_adapter.AsyncClient") as client_cls:
        client_cls.return_value.list = AsyncMock(side_effect=ConnectionError("Failed to connect to Ollama"))
        client_cls.return_value.close = AsyncMock()

        result = await _adapter().probe()

    assert not result.available
    assert "Failed to connect" in result.detail
    client_cls.return_value.close.assert_awaited_once()
