"""Session wrapper owning one conversation for a chat front end."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from telemetry.logging_utils import get_logger

from .agents import AgentKind
from .dispatcher import AgentTransport, MessageDispatcher
from .state import ConversationEntry, ConversationState

logger = get_logger(__name__)


class ChatSession:
    """Owns a ConversationState plus the dispatcher that mutates it.

    This is the caller-side gate: a send issued while another one is still in
    flight is rejected here, never queued.
    """

    def __init__(self, transport: AgentTransport, agent: AgentKind = AgentKind.INMOBILIARIA) -> None:
        self.state = ConversationState(active_agent=agent)
        self.dispatcher = MessageDispatcher(self.state, transport)

    @property
    def transcript(self) -> Tuple[ConversationEntry, ...]:
        return self.state.transcript

    @property
    def session_id(self) -> Optional[str]:
        return self.state.session_id

    @property
    def active_agent(self) -> AgentKind:
        return self.state.active_agent

    @property
    def pending(self) -> bool:
        return self.state.pending

    @property
    def last_error(self) -> Optional[str]:
        return self.state.last_error

    async def send(self, text: str) -> Optional[ConversationEntry]:
        """Process a single user message and return the agent's transcript entry."""
        if self.state.pending:
            logger.info("chat_send_rejected_pending", extra={"agent": self.state.active_agent.value})
            return None
        if not (text or "").strip():
            return None

        logger.info(
            "chat_message_start",
            extra={"agent": self.state.active_agent.value, "session_id": self.state.session_id},
        )
        entry = await self.dispatcher.send(text)
        if entry is None:
            return None
        logger.info(
            "chat_message_complete",
            extra={
                "agent": self.state.active_agent.value,
                "session_id": self.state.session_id,
                "succeeded": entry.outcome.succeeded if entry.outcome else None,
                "reply_length": len(entry.text),
                "transcript_size": len(self.state.transcript),
            },
        )
        return entry

    def change_agent(self, kind: AgentKind) -> bool:
        return self.dispatcher.change_agent(kind)

    def reset(self) -> None:
        self.dispatcher.reset()

    def snapshot(self) -> Dict[str, Any]:
        return self.state.snapshot()
