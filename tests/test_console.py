import asyncio

import httpx
import pytest

from chat.agents import AgentKind
from chat.schemas import ChatResponse
from chat.session import ChatSession
from cli import console
from client.settings import Settings
from server.app import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD, create_app

SETTINGS = Settings(base_url="http://testserver/api")


def _scripted(lines):
    remaining = iter(lines)

    async def read(prompt):
        return next(remaining, None)

    return read


def _run_console(lines, **kwargs):
    output = []
    kwargs.setdefault("email", DEFAULT_ADMIN_EMAIL)
    kwargs.setdefault("password", DEFAULT_ADMIN_PASSWORD)
    code = asyncio.run(
        console.run_console(
            SETTINGS,
            read=_scripted(lines),
            write=output.append,
            transport=httpx.ASGITransport(app=create_app()),
            **kwargs,
        )
    )
    return code, output


def test_scripted_conversation():
    code, output = _run_console(
        ["Hello", "/session", "/agent 2", "/session", "list properties", "/clear", "/quit", "never read"]
    )

    assert code == 0
    assert output[0] == "Logged in as Administrador (admin@inmobiliaria.com)."
    assert output[1].startswith("Talking to the Agencies agent.")
    assert "agent> [Agencies] turn 1: received 'Hello'." in output
    sessions = [line for line in output if line.startswith("Session: ")]
    assert len(sessions) == 1 and sessions[0].endswith("...") and len(sessions[0]) == len("Session: ") + 11
    assert "No session yet." in output
    assert any(line.startswith("Talking to the Properties agent.") for line in output)
    assert "agent> [Properties] turn 1: received 'list properties'." in output
    assert output[-1] == "Conversation cleared."


def test_failures_are_shown_as_errors():
    _, output = _run_console(["#unavailable", "#crash"], agent=AgentKind.PERSONA)

    assert "[error] Agent unavailable" in output
    assert "[error] Unexpected error: agent runner crashed" in output


class _ApologeticTransport:
    async def post_chat(self, endpoint, request):
        return ChatResponse(response="I could not finish that.", success=False, error="Agent unavailable")


def test_error_detail_is_shown_next_to_failed_reply():
    output = []
    chat = console.ConsoleChat(ChatSession(_ApologeticTransport()), output.append)

    keep_going = asyncio.run(chat.handle_line("Hello"))

    assert keep_going is True
    assert output == ["[error] I could not finish that.", "[error] Agent unavailable"]


def test_error_banner_is_not_repeated_when_reply_carries_it():
    _, output = _run_console(["#unavailable"])

    assert output.count("[error] Agent unavailable") == 1


def test_agent_command_handles_bad_and_repeated_codes():
    _, output = _run_console(["/agent", "/agent 9", "/agent 1", "/help"])

    assert "Choose an agent:" in output
    assert "Unsupported agent selection. Try 1, 2 or 3." in output
    assert "That agent is already active." in output
    assert "Anything else is sent to the active agent." in output


def test_bad_login_exits_with_error():
    code, output = _run_console(["Hello"], password="wrong")

    assert code == 1
    assert output == ["Login failed: Invalid credentials."]


def test_requires_credentials_when_nothing_is_stored():
    code, output = _run_console(["Hello"], email=None, password=None)

    assert code == 1
    assert output == ["Not logged in; pass --email and --password."]


def test_rejected_token_ends_the_chat(monkeypatch):
    app = create_app()
    store = app.state.store
    output = []

    def revoke_all_tokens(line):
        output.append(line)
        if line.startswith("Logged in as"):
            store.tokens.clear()

    code = asyncio.run(
        console.run_console(
            SETTINGS,
            email=DEFAULT_ADMIN_EMAIL,
            password=DEFAULT_ADMIN_PASSWORD,
            read=_scripted(["Hello", "should not be sent"]),
            write=revoke_all_tokens,
            transport=httpx.ASGITransport(app=app),
        )
    )

    assert code == 2
    assert "Your session expired or was rejected. Please log in again." in output
    assert "[error] Unauthorized" in output
    assert not any("should not be sent" in line for line in output)


def test_main_rejects_unknown_agent(capsys):
    assert console.main(["--agent", "lebanon"]) == 1

    printed = capsys.readouterr().out
    assert "Unsupported agent selection. Choose one of:" in printed
    assert "3) Contacts (persona)" in printed


def test_main_builds_settings_from_arguments(monkeypatch, tmp_path):
    captured = {}

    async def fake_run_console(settings, **kwargs):
        captured["settings"] = settings
        captured.update(kwargs)
        return 0

    monkeypatch.delenv("AGENT_API_BASE_URL", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(console, "run_console", fake_run_console)
    token_file = str(tmp_path / "auth.json")

    code = console.main(["-a", "persona", "--base-url", "http://api.local/api/", "--token-file", token_file])

    assert code == 0
    assert captured["agent"] is AgentKind.PERSONA
    assert captured["settings"].base_url == "http://api.local/api"
    assert captured["settings"].token_file == token_file
    assert captured["email"] is None


@pytest.mark.parametrize("line", ["/quit", "/exit"])
def test_quit_commands(line):
    code, output = _run_console([line, "Hello"])

    assert code == 0
    assert not any(text.startswith("agent>") for text in output)
