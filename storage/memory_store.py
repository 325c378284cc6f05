from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from server.security import hash_password, issue_token


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryStore:
    """Backing store for the stub agent service: users, bearer sessions, agent sessions."""

    def __init__(self, admin_email: str, admin_password: str) -> None:
        self.users: Dict[int, Dict[str, Any]] = {}
        self.tokens: Dict[str, int] = {}
        self.agent_sessions: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._next_user_id = 1

        # Seed an administrator so the stub is usable out of the box.
        self.register_user(
            email=admin_email,
            full_name="Administrador",
            role="ADMIN",
            password_hash=hash_password(admin_password),
        )

    # Users/tokens ---------------------------------------------------------
    def register_user(self, *, email: str, full_name: str, role: str, password_hash: str) -> Dict[str, Any]:
        if self.find_user_by_email(email):
            raise ValueError("Email already registered.")
        user_id = self._next_user_id
        self._next_user_id += 1
        user = {
            "id": user_id,
            "email": email.lower(),
            "full_name": full_name,
            "role": role,
            "password_hash": password_hash,
            "created_at": _now_iso(),
        }
        self.users[user_id] = user
        return user

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        for user in self.users.values():
            if user["email"] == email.lower():
                return user
        return None

    def find_user_by_token(self, token: str) -> Optional[Dict[str, Any]]:
        user_id = self.tokens.get(token)
        return self.users.get(user_id) if user_id is not None else None

    def create_token(self, user_id: int) -> str:
        token = issue_token()
        self.tokens[token] = user_id
        return token

    def revoke_token(self, token: str) -> None:
        self.tokens.pop(token, None)

    # Agent sessions -------------------------------------------------------
    def resolve_agent_session(self, agent: str, session_id: Optional[str]) -> Dict[str, Any]:
        """Return the agent's session for ``session_id``, creating it (and an id) when unknown.

        Each agent keeps its own sessions; an id issued by one agent starts a
        fresh session on another.
        """
        if session_id and session_id.strip():
            key = session_id.strip()
        else:
            key = f"user-{uuid.uuid4()}"
        session = self.agent_sessions.get((agent, key))
        if session is None:
            session = {"id": key, "agent": agent, "messages": [], "created_at": _now_iso()}
            self.agent_sessions[(agent, key)] = session
        return session

    def append_agent_message(self, agent: str, session_id: str, *, role: str, content: str) -> None:
        session = self.agent_sessions.get((agent, session_id))
        if session is None:
            return
        session["messages"].append({"role": role, "content": content, "timestamp": _now_iso()})

    def list_agent_messages(self, agent: str, session_id: str) -> List[Dict[str, Any]]:
        session = self.agent_sessions.get((agent, session_id))
        return list(session["messages"]) if session else []
