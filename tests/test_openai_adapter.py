"""Tests for the OpenAI-family adapter wire format and result mapping."""

import httpx
import pytest

from echoclip.schemas.run import Failure, FailureKind, Success
from echoclip.services.llm.openai_adapter import OpenAIAdapter

from tests.conftest import PNG_B64, PNG_DATA_URI


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _adapter(transport, **kwargs) -> OpenAIAdapter:
    return OpenAIAdapter("https://api.openai.com/v1", "sk-test", "gpt-4o-mini", transport=transport, **kwargs)


@pytest.mark.asyncio
async def test_posts_chat_completion_with_bearer_auth(http_recorder):
    transport, requests = http_recorder(json_body=_completion("  Fixed text.\n"))

    result = await _adapter(transport).run("SYSTEM", "fix this", None)

    assert result == Success(text="Fixed text.")
    request = requests.last
    assert request.method == "POST"
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert requests.last_json() == {
        "model": "gpt-4o-mini",
        "messages": [
            {"role": "system", "content": "SYSTEM"},
            {"role": "user", "content": [{"type": "text", "text": "fix this"}]},
        ],
        "temperature": 0.2,
    }


@pytest.mark.asyncio
async def test_image_parts_use_data_uri(http_recorder):
    transport, requests = http_recorder(json_body=_completion("ok"))

    await _adapter(transport).run("SYSTEM", "", PNG_DATA_URI)

    user = requests.last_json()["messages"][1]
    assert user["content"] == [{"type": "image_url", "image_url": {"url": PNG_DATA_URI}}]


@pytest.mark.asyncio
async def test_raw_base64_is_wrapped_as_data_uri(http_recorder):
    transport, requests = http_recorder(json_body=_completion("ok"))

    await _adapter(transport).run("SYSTEM", "read this", PNG_B64)

    parts = requests.last_json()["messages"][1]["content"]
    assert parts[0] == {"type": "text", "text": "read this"}
    assert parts[1]["image_url"]["url"] == PNG_DATA_URI


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403, 500])
async def test_http_error_surfaces_status_and_raw_body(http_recorder, status):
    body = '{"error": {"message": "Incorrect API key provided"}}'
    transport, _ = http_recorder(status_code=status, text=body)

    result = await _adapter(transport).run("SYSTEM", "hi", None)

    assert isinstance(result, Failure)
    assert result.kind == FailureKind.UPSTREAM_HTTP_ERROR
    assert result.message == f"HTTP {status}: {body}"


@pytest.mark.asyncio
async def test_missing_content_is_empty_success(http_recorder):
    transport, _ = http_recorder(json_body={"choices": []})

    result = await _adapter(transport).run("SYSTEM", "hi", None)

    assert result == Success(text="")


@pytest.mark.asyncio
async def test_connection_error_becomes_failure(http_recorder):
    transport, _ = http_recorder(exc=httpx.ConnectError("connection refused"))

    result = await _adapter(transport).run("SYSTEM", "hi", None)

    assert result.kind == FailureKind.TRANSPORT_ERROR
    assert "connection refused" in result.message


@pytest.mark.asyncio
async def test_timeout_becomes_timeout_failure(http_recorder):
    transport, _ = http_recorder(exc=httpx.ReadTimeout("read timed out"))

    result = await _adapter(transport, timeout=12).run("SYSTEM", "hi", None)

    assert result.kind == FailureKind.TIMEOUT
    assert result.message == "Request timed out after 12s"


@pytest.mark.asyncio
async def test_non_json_success_body_is_invalid_response(http_recorder):
    transport, _ = http_recorder(text="<html>gateway</html>")

    result = await _adapter(transport).run("SYSTEM", "hi", None)

    assert result.kind == FailureKind.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_probe_lists_models(http_recorder):
    transport, requests = http_recorder(json_body={"data": [{"id": "gpt-4o-mini"}, {"id": "gpt-4o"}]})

    result = await _adapter(transport).probe()

    assert result.available
    assert result.detail == "reachable"
    assert result.models == ["gpt-4o-mini", "gpt-4o"]
    assert str(requests.last.url) == "https://api.openai.com/v1/models"


@pytest.mark.asyncio
async def test_each_image_gets_its_own_part(http_recorder):
    transport, requests = http_recorder(json_body=_completion("ok"))

    await _adapter(transport).run("SYSTEM", "compare", [PNG_DATA_URI, "", PNG_B64])

    parts = requests.last_json()["messages"][1]["content"]
    assert parts == [
        {"type": "text", "text": "compare"},
        {"type": "image_url", "image_url": {"url": PNG_DATA_URI}},
        {"type": "image_url", "image_url": {"url": PNG_DATA_URI}},
    ]


@pytest.mark.asyncio
async def test_non_ascii_key_is_a_credential_failure(http_recorder):
    transport, requests = http_recorder(json_body=_completion("ok"))
    adapter = OpenAIAdapter("https://api.openai.com/v1", "sk-’abc", "gpt-4o-mini", transport=transport)

    result = await adapter.run("SYSTEM", "hi", None)
    probe = await adapter.probe()

    assert result.kind == FailureKind.MISSING_CREDENTIAL
    assert "non-ASCII" in result.message
    assert not probe.available
    assert requests == []
