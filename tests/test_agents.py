import pytest

from chat.agents import AGENT_ENDPOINTS, AGENT_PROFILES, AgentKind, endpoint_for, parse_agent_kind, profile_for
from cli.router import agent_menu, select_agent


def test_every_agent_has_exactly_one_endpoint():
    assert set(AGENT_ENDPOINTS) == set(AgentKind)
    assert endpoint_for(AgentKind.INMOBILIARIA) == "/agent/chat"
    assert endpoint_for(AgentKind.PROPIEDAD) == "/agent/propiedades/chat"
    assert endpoint_for(AgentKind.PERSONA) == "/agent/personas/chat"
    assert len({profile.endpoint for profile in AGENT_PROFILES}) == len(AgentKind)


def test_endpoint_lookup_rejects_unknown_kind():
    with pytest.raises(KeyError):
        endpoint_for("propiedad-v2")


@pytest.mark.parametrize(
    "code,expected",
    [
        ("1", AgentKind.INMOBILIARIA),
        ("inmobiliaria", AgentKind.INMOBILIARIA),
        (" Agency ", AgentKind.INMOBILIARIA),
        ("2", AgentKind.PROPIEDAD),
        ("PROPIEDAD", AgentKind.PROPIEDAD),
        ("properties", AgentKind.PROPIEDAD),
        ("3", AgentKind.PERSONA),
        ("contact", AgentKind.PERSONA),
    ],
)
def test_parse_agent_kind(code, expected):
    assert parse_agent_kind(code) is expected
    assert select_agent(code) is expected


@pytest.mark.parametrize("code", ["", "4", "lebanon", None])
def test_unknown_agent_codes_raise(code):
    with pytest.raises(ValueError):
        parse_agent_kind(code)
    with pytest.raises(ValueError, match="Unsupported agent selection"):
        select_agent(code)


def test_profiles_and_menu():
    assert profile_for(AgentKind.PERSONA).icon == "person"
    menu = agent_menu()
    assert len(menu) == 3
    assert menu[1].startswith("  2) Properties (propiedad)")
