"""
Agent routing table.

Each backend agent specializes in one domain of the back office and lives
behind exactly one chat endpoint. Keep the table static: front ends read the
profiles, the dispatcher only ever asks for an endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class AgentKind(str, Enum):
    INMOBILIARIA = "inmobiliaria"  # real-estate agencies
    PROPIEDAD = "propiedad"  # properties
    PERSONA = "persona"  # contacts (owners, tenants, buyers)


@dataclass(frozen=True)
class AgentProfile:
    kind: AgentKind
    name: str
    description: str
    endpoint: str
    icon: str


AGENT_PROFILES: Tuple[AgentProfile, ...] = (
    AgentProfile(
        kind=AgentKind.INMOBILIARIA,
        name="Agencies",
        description="Create, list and update real-estate agencies.",
        endpoint="/agent/chat",
        icon="business",
    ),
    AgentProfile(
        kind=AgentKind.PROPIEDAD,
        name="Properties",
        description="Search and manage property listings.",
        endpoint="/agent/propiedades/chat",
        icon="homework",
    ),
    AgentProfile(
        kind=AgentKind.PERSONA,
        name="Contacts",
        description="Manage owners, tenants and other contacts.",
        endpoint="/agent/personas/chat",
        icon="person",
    ),
)

AGENT_ENDPOINTS: Dict[AgentKind, str] = {profile.kind: profile.endpoint for profile in AGENT_PROFILES}

_missing = set(AgentKind) - set(AGENT_ENDPOINTS)
if _missing:
    raise RuntimeError(f"No endpoint registered for agent kinds: {sorted(k.value for k in _missing)}")

AGENT_ALIASES: Dict[str, AgentKind] = {
    "1": AgentKind.INMOBILIARIA,
    "agency": AgentKind.INMOBILIARIA,
    "agencies": AgentKind.INMOBILIARIA,
    "2": AgentKind.PROPIEDAD,
    "property": AgentKind.PROPIEDAD,
    "properties": AgentKind.PROPIEDAD,
    "3": AgentKind.PERSONA,
    "contact": AgentKind.PERSONA,
    "contacts": AgentKind.PERSONA,
}


def endpoint_for(kind: AgentKind) -> str:
    """Return the backend path for ``kind``; unknown kinds raise KeyError."""
    return AGENT_ENDPOINTS[kind]


def profile_for(kind: AgentKind) -> AgentProfile:
    for profile in AGENT_PROFILES:
        if profile.kind is kind:
            return profile
    raise KeyError(kind)


def parse_agent_kind(code: str) -> AgentKind:
    """
    Resolve a user-typed agent code.

    Accepts the menu number, the enum value or an English alias; anything else
    raises ValueError.
    """
    normalized = (code or "").strip().lower()
    if normalized in AGENT_ALIASES:
        return AGENT_ALIASES[normalized]
    try:
        return AgentKind(normalized)
    except ValueError:
        raise ValueError(f"Unsupported agent: {code!r}") from None
