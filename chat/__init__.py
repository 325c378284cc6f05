"""
Chat core for the back-office agents.

Tracks one conversation (transcript, backend session id, active agent) and
routes each user message to the agent endpoint selected by the user.
"""

from .agents import AGENT_PROFILES, AgentKind, AgentProfile, endpoint_for, parse_agent_kind
from .dispatcher import AgentTransport, MessageDispatcher
from .errors import AuthenticationRejected, ChatError, FailureKind, TransportFailure
from .schemas import ChatRequest, ChatResponse
from .session import ChatSession
from .state import Author, ConversationEntry, ConversationState, Outcome

__all__ = [
    "AGENT_PROFILES",
    "AgentKind",
    "AgentProfile",
    "AgentTransport",
    "Author",
    "AuthenticationRejected",
    "ChatError",
    "ChatRequest",
    "ChatResponse",
    "ChatSession",
    "ConversationEntry",
    "ConversationState",
    "FailureKind",
    "MessageDispatcher",
    "Outcome",
    "TransportFailure",
    "endpoint_for",
    "parse_agent_kind",
]
