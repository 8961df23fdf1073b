"""
cambright.clients.openrouter

HTTP client boundary for the Tuto AI chat assistant (OpenRouter chat completions).

Responsibilities:
- Convert the stored chat history into chat-completions messages.
- Prepend the system instruction to the first user message (the default model has
  no system role).
- Surface upstream failures as `UpstreamError`.
"""

from __future__ import annotations

from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field

from cambright.errors import UpstreamError
from cambright.observability.logging import get_logger
from cambright.settings import Settings

log = get_logger(__name__)

DEFAULT_INSTRUCTIONS = (
    "You are Tuto AI, a helpful assistant for students who do IGCSE and A-Levels Cambridge "
    "and Edexcel, to help them ace their exams. You are trained by Cambright. "
    "Your name is Tuto AI."
)


class ChatPart(BaseModel):
    text: str


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    parts: list[ChatPart] = Field(default_factory=list)


class ChatSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model: str | None = None
    system_instructions: str | None = Field(default=None, alias="sysTemInstructions")
    temperature: float | None = None


class ApiKeyMissingError(UpstreamError):
    pass


def build_messages(
    user_message: str, history: list[ChatMessage], instructions: str
) -> list[dict[str, str]]:
    messages = [
        {
            "role": "assistant" if msg.role == "model" else "user",
            "content": "".join(p.text for p in msg.parts),
        }
        for msg in history
    ]
    content = f"[INSTRUCTIONS: {instructions}]\n\nUser: {user_message}" if not history else user_message
    messages.append({"role": "user", "content": content})
    return messages


class OpenRouterClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.openrouter_api_key}",
            "HTTP-Referer": self._settings.chat_referer,
            "X-Title": self._settings.chat_title,
        }

    async def chat(
        self,
        user_message: str,
        history: list[ChatMessage],
        chat_settings: ChatSettings | None = None,
    ) -> str:
        if not self._settings.openrouter_api_key:
            raise ApiKeyMissingError("API key not configured")

        chat_settings = chat_settings or ChatSettings()
        temperature = chat_settings.temperature
        if temperature is None:
            temperature = self._settings.chat_default_temperature
        payload: dict[str, Any] = {
            "model": chat_settings.model or self._settings.chat_default_model,
            "messages": build_messages(
                user_message, history, chat_settings.system_instructions or DEFAULT_INSTRUCTIONS
            ),
            "temperature": temperature,
            "max_tokens": self._settings.chat_max_tokens,
        }

        try:
            r = await self._http.post(
                self._settings.openrouter_api_url,
                headers=self._headers(),
                json=payload,
                timeout=self._settings.chat_timeout_seconds,
            )
        except httpx.HTTPError as e:
            log.warning("openrouter_request_failed", error=str(e))
            raise UpstreamError(f"OpenRouter request failed: {e}") from e

        if r.is_error:
            detail = _error_message(r)
            log.warning("openrouter_error", status_code=r.status_code, detail=detail)
            raise UpstreamError(f"OpenRouter API error: {r.status_code} - {detail}")

        try:
            content = r.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError("Invalid response from OpenRouter API") from e
        if not content:
            raise UpstreamError("Invalid response from OpenRouter API")
        return str(content)


def _error_message(r: httpx.Response) -> str:
    try:
        return str(r.json()["error"]["message"])
    except (ValueError, KeyError, TypeError):
        return "Unknown error"


# --- Module Notes -----------------------------------------------------------
# A temperature of 0 is honoured; only a missing value falls back to the default.
