import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from app.settings import settings
from domain.errors import LlmTransportError

logger = logging.getLogger(__name__)

Messages = List[Dict[str, str]]
ChatFn = Callable[..., Awaitable[str]]

_FENCED = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.S | re.I)
_OPEN_FENCE = re.compile(r"^```(?:json)?", re.I)


def extract_json(text: Optional[str]) -> Any:
    """Decode the JSON object an LLM returned, with or without a ```json fence."""
    if not text or not text.strip():
        raise ValueError("LLM response was empty")
    candidate = text.strip()
    fenced = _FENCED.match(candidate)
    if fenced:
        candidate = fenced.group(1)
    elif candidate.startswith("```"):
        logger.warning("LLM response opened a code fence without closing it")
        candidate = _OPEN_FENCE.sub("", candidate).strip()
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ValueError(f"LLM response was not valid JSON: {exc.msg}") from exc


def _describe_status(status: int) -> str:
    if status == 429:
        return "rate limit or quota exceeded"
    if status in {401, 403}:
        return "API key rejected"
    if status in {408, 504}:
        return "request timed out"
    if status >= 500:
        return "provider unavailable"
    return "request rejected"


async def _post(
    url: str,
    headers: Dict[str, str],
    payload: Dict,
    *,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict:
    # single attempt; retrying is the caller's decision
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, headers=headers, json=payload)
        response.raise_for_status()
        return response.json()
    except httpx.TimeoutException as exc:
        raise LlmTransportError(f"LLM request timed out after {timeout:g}s") from exc
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise LlmTransportError(
            f"LLM provider error (HTTP {status}): {_describe_status(status)}") from exc
    except httpx.RequestError as exc:
        raise LlmTransportError(
            f"LLM connection failed: {exc.__class__.__name__}") from exc
    except ValueError as exc:
        raise LlmTransportError("LLM provider returned a non-JSON body") from exc


def _content(data: Dict) -> str:
    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise LlmTransportError("LLM provider returned an unexpected payload") from exc


async def _openai_chat(messages: Messages, model: str, *, json_mode: bool, transport=None) -> str:
    url = "https://api.openai.com/v1/chat/completions"
    headers = {"Authorization": f"Bearer {settings.OPENAI_API_KEY}"}
    payload = {"model": model, "messages": messages, "temperature": 0.2}
    if json_mode:
        payload["response_format"] = {"type": "json_object"}
    data = await _post(url, headers, payload, timeout=settings.LLM_TIMEOUT_S, transport=transport)
    return _content(data)


async def _openrouter_chat(messages: Messages, model: str, *, json_mode: bool, transport=None) -> str:
    url = "https://openrouter.ai/api/v1/chat/completions"
    headers = {
        "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
        "HTTP-Referer": "http://localhost",
        "X-Title": settings.APP_NAME,
    }
    payload = {"model": model, "messages": messages, "temperature": 0.2}
    if json_mode:
        payload["response_format"] = {"type": "json_object"}
    data = await _post(url, headers, payload, timeout=settings.LLM_TIMEOUT_S, transport=transport)
    return _content(data)


async def chat_completion(
    messages: Messages,
    *,
    json_mode: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    if settings.OPENAI_API_KEY:
        return await _openai_chat(messages, settings.OPENAI_MODEL, json_mode=json_mode, transport=transport)
    if settings.OPENROUTER_API_KEY:
        return await _openrouter_chat(messages, settings.OPENROUTER_MODEL, json_mode=json_mode, transport=transport)
    raise LlmTransportError("No LLM provider configured")
