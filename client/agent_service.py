from __future__ import annotations

from pydantic import ValidationError

from chat.agents import AgentKind, endpoint_for
from chat.errors import TransportFailure
from chat.schemas import ChatRequest, ChatResponse
from telemetry.logging_utils import get_logger

from .api import ApiClient

logger = get_logger(__name__)


class AgentService:
    """Posts chat turns to the backend agent endpoints."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def post_chat(self, endpoint: str, request: ChatRequest) -> ChatResponse:
        body = await self.api.post_json(endpoint, request.to_payload())
        try:
            return ChatResponse.model_validate(body)
        except ValidationError as exc:
            logger.warning("agent_response_invalid", extra={"endpoint": endpoint, "error": str(exc)[:200]})
            raise TransportFailure("Malformed agent response") from exc

    async def send_message(self, kind: AgentKind, request: ChatRequest) -> ChatResponse:
        return await self.post_chat(endpoint_for(kind), request)
