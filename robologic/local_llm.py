"""Level and hint generation against an Ollama server.

Selected when ``LLMSettings.provider`` is ``ollama``. The puzzle prompts always
expect a JSON object back (a level or a hint), so requests ask Ollama for JSON
output by default. The server address comes from ``LLMSettings.base_url``.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any
from urllib import error, request

DEFAULT_OLLAMA_BASE_URL = "http://127.0.0.1:11434"
_CHAT_ENDPOINT = "/api/chat"


class LocalLLMError(RuntimeError):
    """The Ollama server could not produce a level or hint reply."""


def _chat_messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
    messages = []
    if system_prompt.strip():
        messages.append({"role": "system", "content": system_prompt.strip()})
    messages.append({"role": "user", "content": user_prompt})
    return messages


def _perform_ollama_request(
    payload: dict[str, Any],
    base_url: str,
    timeout: float,
) -> str:
    """POST one chat turn and return the reply text. Blocks; run it off the loop."""

    url = base_url + _CHAT_ENDPOINT
    req = request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )

    try:
        with request.urlopen(req, timeout=timeout) as resp:
            body = resp.read().decode("utf-8")
    except error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore") if exc.fp else ""
        raise LocalLLMError(f"Ollama answered HTTP {exc.code}: {detail or exc.reason}") from exc
    except error.URLError as exc:
        raise LocalLLMError(f"No Ollama server at {url}: {exc.reason}") from exc

    try:
        reply = json.loads(body)
    except json.JSONDecodeError as exc:
        raise LocalLLMError("Ollama reply was not a JSON document") from exc

    text = (reply.get("message") or {}).get("content")
    if not text:
        raise LocalLLMError("Ollama reply had no message content")
    return text


async def call_ollama_chat(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_model: str,
    base_url: str | None = None,
    timeout: float = 120.0,
    json_format: bool = True,
) -> str:
    """Send a level/hint prompt to Ollama and return the raw reply text.

    The reply is validated by the caller (``call_llm_with_retries``), which
    parses it into ``GeneratedLevel`` or ``HintResponse``.

    Raises:
        LocalLLMError: Empty prompt, unreachable server or an unusable reply
    """

    user_prompt = user_prompt.strip()
    if not user_prompt:
        raise LocalLLMError("Refusing to send an empty prompt to Ollama")

    payload: dict[str, Any] = {
        "model": llm_model,
        "messages": _chat_messages(system_prompt, user_prompt),
        "stream": False,
    }
    if json_format:
        payload["format"] = "json"

    server = (base_url or DEFAULT_OLLAMA_BASE_URL).rstrip("/")
    return await asyncio.to_thread(_perform_ollama_request, payload, server, timeout)


__all__ = ["LocalLLMError", "call_ollama_chat", "DEFAULT_OLLAMA_BASE_URL"]
