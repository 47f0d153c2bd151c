import json

import httpx
import pytest

from app.settings import settings
from domain.errors import LlmTransportError
from infra.llm.client import chat_completion, extract_json

MESSAGES = [{"role": "user", "content": "hi"}]


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", None)


def _completion(content):
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


async def test_openai_request_and_reply(openai_key):
    seen = []

    def handler(request):
        seen.append(request)
        return _completion('{"ok": true}')

    reply = await chat_completion(MESSAGES, json_mode=True, transport=httpx.MockTransport(handler))
    assert reply == '{"ok": true}'
    assert len(seen) == 1
    assert seen[0].url.host == "api.openai.com"
    assert seen[0].headers["Authorization"] == "Bearer sk-test"
    body = json.loads(seen[0].content)
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"] == MESSAGES


async def test_openrouter_is_used_when_only_its_key_is_set(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "or-test")
    hosts = []

    def handler(request):
        hosts.append(request.url.host)
        return _completion("hello")

    assert await chat_completion(MESSAGES, transport=httpx.MockTransport(handler)) == "hello"
    assert hosts == ["openrouter.ai"]


async def test_no_provider_configured(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", None)
    with pytest.raises(LlmTransportError, match="No LLM provider"):
        await chat_completion(MESSAGES)


async def test_rate_limit_is_described_and_not_retried(openai_key):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, json={"error": "quota"})

    with pytest.raises(LlmTransportError, match="rate limit"):
        await chat_completion(MESSAGES, transport=httpx.MockTransport(handler))
    assert len(calls) == 1


async def test_timeout_is_a_transport_error(openai_key):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(LlmTransportError, match="timed out"):
        await chat_completion(MESSAGES, transport=httpx.MockTransport(handler))


async def test_connection_reset_is_a_transport_error(openai_key):
    def handler(request):
        raise httpx.ConnectError("reset", request=request)

    with pytest.raises(LlmTransportError, match="ConnectError"):
        await chat_completion(MESSAGES, transport=httpx.MockTransport(handler))


async def test_unexpected_payload(openai_key):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
    with pytest.raises(LlmTransportError, match="unexpected payload"):
        await chat_completion(MESSAGES, transport=transport)


@pytest.mark.parametrize("text", [
    '{"a": 1}',
    '```json\n{"a": 1}\n```',
    '```\n{"a": 1}\n```',
    '```json\n{"a": 1}',
])
def test_extract_json_variants(text):
    assert extract_json(text) == {"a": 1}


@pytest.mark.parametrize("text", [None, "", "   ", "not json", "```json\n{broken\n```"])
def test_extract_json_rejects_garbage(text):
    with pytest.raises(ValueError):
        extract_json(text)
