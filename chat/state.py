"""In-memory conversation state for one chat view."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .agents import AgentKind
from .errors import FailureKind


class Author(str, Enum):
    USER = "user"
    AGENT = "agent"


@dataclass(frozen=True)
class Outcome:
    succeeded: bool
    error_detail: Optional[str] = None
    failure_kind: Optional[FailureKind] = None

    @classmethod
    def success(cls) -> "Outcome":
        return cls(succeeded=True)

    @classmethod
    def failure(cls, detail: str, kind: FailureKind) -> "Outcome":
        return cls(succeeded=False, error_detail=detail, failure_kind=kind)


def _new_entry_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ConversationEntry:
    authored_by: Author
    text: str
    outcome: Optional[Outcome] = None
    id: str = field(default_factory=_new_entry_id)
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if self.authored_by is Author.USER and self.outcome is not None:
            raise ValueError("User entries never carry an outcome.")
        if self.authored_by is Author.AGENT and self.outcome is None:
            raise ValueError("Agent entries require an outcome.")

    @classmethod
    def from_user(cls, text: str) -> "ConversationEntry":
        return cls(authored_by=Author.USER, text=text)

    @classmethod
    def from_agent(cls, text: str, outcome: Outcome) -> "ConversationEntry":
        return cls(authored_by=Author.AGENT, text=text, outcome=outcome)

    @property
    def failed(self) -> bool:
        return self.outcome is not None and not self.outcome.succeeded

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "authored_by": self.authored_by.value,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
            "outcome": None,
        }
        if self.outcome is not None:
            data["outcome"] = {
                "succeeded": self.outcome.succeeded,
                "error_detail": self.outcome.error_detail,
                "failure_kind": self.outcome.failure_kind.value if self.outcome.failure_kind else None,
            }
        return data


class ConversationState:
    """
    Transcript, backend session id, active agent and in-flight flag.

    The transcript is append-only and only ever emptied as a whole, together
    with the session id, by ``clear`` or ``switch_agent``.
    """

    def __init__(self, active_agent: AgentKind = AgentKind.INMOBILIARIA) -> None:
        self._transcript: List[ConversationEntry] = []
        self.session_id: Optional[str] = None
        self.active_agent = active_agent
        self.pending = False
        self.last_error: Optional[str] = None

    @property
    def transcript(self) -> Tuple[ConversationEntry, ...]:
        return tuple(self._transcript)

    def append(self, entry: ConversationEntry) -> None:
        self._transcript.append(entry)

    def adopt_session_id(self, candidate: Optional[str]) -> bool:
        """Keep the first session id the backend hands out; later ones are ignored."""
        if self.session_id is not None or not candidate:
            return False
        self.session_id = candidate
        return True

    def begin_dispatch(self) -> None:
        self.pending = True
        self.last_error = None

    def end_dispatch(self) -> None:
        self.pending = False

    def record_error(self, message: str) -> None:
        self.last_error = message

    def clear(self) -> None:
        # Rebind rather than mutate so earlier `transcript` snapshots stay intact.
        self._transcript = []
        self.session_id = None
        self.last_error = None

    def switch_agent(self, kind: AgentKind) -> None:
        self.active_agent = kind
        self.clear()

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe view of the state."""
        return {
            "transcript": [entry.to_dict() for entry in self._transcript],
            "session_id": self.session_id,
            "active_agent": self.active_agent.value,
            "pending": self.pending,
            "last_error": self.last_error,
        }
