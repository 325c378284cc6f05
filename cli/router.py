"""
Agent selection helpers for the terminal front end.

Kept apart from the REPL so other front ends can reuse the same codes.
"""

from __future__ import annotations

from typing import List

from chat.agents import AGENT_PROFILES, AgentKind, parse_agent_kind


def select_agent(code: str) -> AgentKind:
    """Return the agent for a menu code (1/2/3, `propiedad`, `contacts`, ...)."""
    try:
        return parse_agent_kind(code)
    except ValueError:
        raise ValueError("Unsupported agent selection") from None


def agent_menu() -> List[str]:
    lines = []
    for idx, profile in enumerate(AGENT_PROFILES, start=1):
        lines.append(f"  {idx}) {profile.name} ({profile.kind.value}): {profile.description}")
    return lines
