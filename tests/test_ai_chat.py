"""
tests.test_ai_chat

Tuto AI proxy: message shaping and upstream failure handling, with the upstream
replaced by an `httpx.MockTransport`.
"""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi import FastAPI

from cambright.api.deps import chat_client
from cambright.clients.openrouter import DEFAULT_INSTRUCTIONS, ChatMessage, OpenRouterClient, build_messages
from cambright.settings import Settings


def _install(app: FastAPI, settings: Settings, handler) -> list[httpx.Request]:
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(recording))
    app.dependency_overrides[chat_client] = lambda: OpenRouterClient(settings=settings, http=http)
    return seen


def _completion(content: str | None) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def test_first_message_carries_instructions() -> None:
    messages = build_messages("What is osmosis?", [], "Be brief.")
    assert messages == [{"role": "user", "content": "[INSTRUCTIONS: Be brief.]\n\nUser: What is osmosis?"}]


def test_history_roles_are_mapped() -> None:
    history = [
        ChatMessage(role="user", parts=[{"text": "Hi"}]),
        ChatMessage(role="model", parts=[{"text": "Hello"}, {"text": "!"}]),
    ]
    messages = build_messages("Next", history, "ignored")
    assert messages == [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "Next"},
    ]


@pytest.mark.asyncio
async def test_ai_chat_success(app: FastAPI, client: httpx.AsyncClient, settings: Settings) -> None:
    seen = _install(app, settings, lambda request: _completion("Osmosis is diffusion of water."))

    r = await client.post("/api/ai-chat", json={"userMessage": "What is osmosis?", "history": []})
    assert r.status_code == 200
    assert r.json() == {"response": "Osmosis is diffusion of water."}

    sent = json.loads(seen[0].content)
    assert seen[0].headers["authorization"] == "Bearer test-key"
    assert sent["model"] == settings.chat_default_model
    assert sent["temperature"] == settings.chat_default_temperature
    assert sent["max_tokens"] == settings.chat_max_tokens
    assert sent["messages"][0]["content"].startswith(f"[INSTRUCTIONS: {DEFAULT_INSTRUCTIONS}]")


@pytest.mark.asyncio
async def test_ai_chat_settings_override(app: FastAPI, client: httpx.AsyncClient, settings: Settings) -> None:
    seen = _install(app, settings, lambda request: _completion("ok"))

    r = await client.post(
        "/api/ai-chat",
        json={
            "userMessage": "Hi",
            "history": [],
            "settings": {"model": "custom/model", "sysTemInstructions": "Be terse.", "temperature": 0},
        },
    )
    assert r.status_code == 200
    sent = json.loads(seen[0].content)
    assert sent["model"] == "custom/model"
    assert sent["temperature"] == 0
    assert sent["messages"][0]["content"].startswith("[INSTRUCTIONS: Be terse.]")


@pytest.mark.asyncio
async def test_ai_chat_without_api_key(app: FastAPI, client: httpx.AsyncClient, settings: Settings) -> None:
    keyless = settings.model_copy(update={"openrouter_api_key": None})
    seen = _install(app, keyless, lambda request: _completion("unreachable"))

    r = await client.post("/api/ai-chat", json={"userMessage": "Hi", "history": []})
    assert r.status_code == 500
    assert r.json() == {"error": "API key not configured"}
    assert seen == []


@pytest.mark.asyncio
async def test_ai_chat_upstream_error(app: FastAPI, client: httpx.AsyncClient, settings: Settings) -> None:
    _install(app, settings, lambda request: httpx.Response(429, json={"error": {"message": "Rate limited"}}))

    r = await client.post("/api/ai-chat", json={"userMessage": "Hi", "history": []})
    assert r.status_code == 500
    assert r.json() == {"error": "OpenRouter API error: 429 - Rate limited"}


@pytest.mark.asyncio
async def test_ai_chat_empty_completion(app: FastAPI, client: httpx.AsyncClient, settings: Settings) -> None:
    _install(app, settings, lambda request: _completion(None))

    r = await client.post("/api/ai-chat", json={"userMessage": "Hi", "history": []})
    assert r.status_code == 500
    assert r.json() == {"error": "Invalid response from OpenRouter API"}


@pytest.mark.asyncio
async def test_ai_chat_transport_failure(app: FastAPI, client: httpx.AsyncClient, settings: Settings) -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _install(app, settings, boom)
    r = await client.post("/api/ai-chat", json={"userMessage": "Hi", "history": []})
    assert r.status_code == 500
    assert r.json()["error"].startswith("OpenRouter request failed")


@pytest.mark.asyncio
async def test_content_checks_are_left_to_upstream(
    app: FastAPI, client: httpx.AsyncClient, settings: Settings
) -> None:
    seen = _install(app, settings, lambda request: _completion("ok"))

    r = await client.post("/api/ai-chat", json={"userMessage": "", "history": []})
    assert r.status_code == 200
    assert r.json() == {"response": "ok"}

    r = await client.post("/api/ai-chat", json={"userMessage": "Hi", "settings": {"temperature": 3}})
    assert r.status_code == 200
    assert json.loads(seen[1].content)["temperature"] == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "request_kwargs",
    [
        {"content": b"not json", "headers": {"content-type": "application/json"}},
        {"json": {"history": []}},
        {"json": {"userMessage": "Hi", "history": [{"role": "system", "parts": []}]}},
    ],
)
async def test_malformed_bodies_are_500(
    app: FastAPI, client: httpx.AsyncClient, settings: Settings, request_kwargs: dict
) -> None:
    seen = _install(app, settings, lambda request: _completion("unreachable"))

    r = await client.post("/api/ai-chat", **request_kwargs)
    assert r.status_code == 500
    assert r.json() == {"error": "Invalid chat request"}
    assert seen == []
