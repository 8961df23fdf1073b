"""
cambright.api.routers.ai_chat

Tuto AI chat proxy endpoint.

The request carries the whole conversation; nothing is stored server-side.
Upstream failures (including a missing API key) surface as `UpstreamError`, which
the exception handlers log and turn into `500 {"error": ...}`. Malformed request
bodies take the same path: this endpoint answers `{response}` or a 500, never a 422.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from pydantic import BaseModel, ConfigDict, Field

from cambright.api.deps import chat_client
from cambright.clients.openrouter import ChatMessage, ChatSettings, OpenRouterClient
from cambright.errors import UpstreamError
from cambright.observability.logging import get_logger

log = get_logger(__name__)

INVALID_REQUEST = "Invalid chat request"


class ChatRoute(APIRoute):
    def get_route_handler(self) -> Callable[[Request], Awaitable[Response]]:
        handler = super().get_route_handler()

        async def route_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except RequestValidationError as e:
                log.warning("ai_chat_invalid_request", errors=[err.get("type") for err in e.errors()])
                raise UpstreamError(INVALID_REQUEST) from e

        return route_handler


router = APIRouter(prefix="/api", tags=["ai-chat"], route_class=ChatRoute)


class AiChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Content checks (empty message, temperature range) are left to the upstream model API.
    user_message: str = Field(alias="userMessage")
    history: list[ChatMessage] = Field(default_factory=list)
    settings: ChatSettings | None = None


@router.post("/ai-chat")
async def ai_chat(
    body: AiChatRequest,
    client: OpenRouterClient = Depends(chat_client),
) -> dict[str, str]:
    response = await client.chat(body.user_message, body.history, body.settings)
    log.info("ai_chat_answered", history_len=len(body.history), response_len=len(response))
    return {"response": response}
