"""
Message dispatch for a single conversation.

`send` is the only operation that talks to the backend. It suspends at the
agent call and assumes nobody else mutates the state meanwhile; callers gate
on `state.pending` instead of the dispatcher queueing or cancelling.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from telemetry.logging_utils import get_logger
from telemetry.metrics import start_timer

from .agents import AgentKind, endpoint_for
from .errors import (
    ChatError,
    FailureKind,
    describe_application_failure,
    describe_transport_failure,
)
from .schemas import ChatRequest, ChatResponse
from .state import ConversationEntry, ConversationState, Outcome

logger = get_logger(__name__)


class AgentTransport(Protocol):
    async def post_chat(self, endpoint: str, request: ChatRequest) -> ChatResponse:
        ...


class MessageDispatcher:
    """Drives send / change-agent / reset against one ConversationState."""

    def __init__(self, state: ConversationState, transport: AgentTransport) -> None:
        self.state = state
        self.transport = transport

    async def send(self, text: str) -> Optional[ConversationEntry]:
        """
        Send ``text`` to the active agent and record both sides of the exchange.

        Returns the agent entry, or None when the trimmed text is empty (nothing
        is recorded and no request goes out).
        """
        message = (text or "").strip()
        if not message:
            return None

        state = self.state
        state.append(ConversationEntry.from_user(message))
        state.begin_dispatch()
        kind = state.active_agent
        timer = start_timer("agent_chat", kind.value, state.session_id)
        try:
            endpoint = endpoint_for(kind)
            request = ChatRequest(message=message, session_id=state.session_id)
            try:
                response = await self.transport.post_chat(endpoint, request)
            except (ChatError, OSError, asyncio.TimeoutError) as exc:
                timer.success = False
                return self._record_transport_failure(kind, exc)
            timer.success = response.success
            return self._record_response(kind, response)
        finally:
            state.end_dispatch()
            timer.session_id = state.session_id
            timer.done()

    def _record_response(self, kind: AgentKind, response: ChatResponse) -> ConversationEntry:
        state = self.state
        if state.adopt_session_id(response.session_id):
            logger.info("chat_session_started", extra={"agent": kind.value, "session_id": state.session_id})
        elif response.session_id and response.session_id != state.session_id:
            logger.warning(
                "chat_session_id_mismatch",
                extra={"agent": kind.value, "session_id": state.session_id, "received": response.session_id},
            )

        if response.success:
            entry = ConversationEntry.from_agent(response.response or "", Outcome.success())
        else:
            detail = describe_application_failure(response)
            state.record_error(detail)
            entry = ConversationEntry.from_agent(
                response.response or detail,
                Outcome.failure(detail, FailureKind.APPLICATION),
            )
            logger.warning(
                "agent_reported_failure",
                extra={"agent": kind.value, "session_id": state.session_id, "error": detail},
            )
        state.append(entry)
        return entry

    def _record_transport_failure(self, kind: AgentKind, exc: BaseException) -> ConversationEntry:
        detail = describe_transport_failure(exc)
        self.state.record_error(detail)
        entry = ConversationEntry.from_agent(detail, Outcome.failure(detail, FailureKind.TRANSPORT))
        self.state.append(entry)
        logger.warning(
            "agent_request_failed",
            extra={
                "agent": kind.value,
                "session_id": self.state.session_id,
                "error": detail,
                "status_code": getattr(exc, "status_code", None),
            },
        )
        return entry

    def change_agent(self, kind: AgentKind) -> bool:
        """Switch agents, dropping the conversation. No-op when ``kind`` is already active."""
        if kind is self.state.active_agent:
            return False
        previous = self.state.active_agent
        self.state.switch_agent(kind)
        logger.info("chat_agent_changed", extra={"previous": previous.value, "agent": kind.value})
        return True

    def reset(self) -> None:
        self.state.clear()
        logger.info("chat_reset", extra={"agent": self.state.active_agent.value})
