"""
Terminal chat with the back-office agents.

    python -m cli.console --agent propiedad --email admin@inmobiliaria.com --password ...

Commands inside the chat:
    /agent <code>   switch agent (drops the conversation)
    /clear          start over with the same agent
    /session        show the backend session id
    /help           list commands
    /quit           leave
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional

import httpx

from chat.agents import AgentKind, profile_for
from chat.errors import ChatError
from chat.session import ChatSession
from chat.state import ConversationEntry
from cli.router import agent_menu, select_agent
from client import create_client_stack, load_settings
from client.settings import Settings
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

ReadLine = Callable[[str], Awaitable[Optional[str]]]
WriteLine = Callable[[str], None]

HELP_TEXT = [
    "Commands: /agent <code>, /clear, /session, /help, /quit",
    "Anything else is sent to the active agent.",
]


async def _read_stdin(prompt: str) -> Optional[str]:
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return None


def _render_entry(entry: ConversationEntry) -> str:
    if entry.failed:
        return f"[error] {entry.text}"
    return f"agent> {entry.text}"


def _session_label(session_id: Optional[str]) -> str:
    if not session_id:
        return "No session yet."
    return f"Session: {session_id[:8]}..."


class ConsoleChat:
    def __init__(self, session: ChatSession, write: WriteLine) -> None:
        self.session = session
        self.write = write
        self.logged_out = False

    def handle_unauthenticated(self) -> None:
        self.logged_out = True
        self.write("Your session expired or was rejected. Please log in again.")

    def _announce_agent(self, kind: AgentKind) -> None:
        profile = profile_for(kind)
        self.write(f"Talking to the {profile.name} agent. {profile.description}")

    async def handle_line(self, line: str) -> bool:
        """Handle one input line; False means leave the chat."""
        text = line.strip()
        if text in ("/quit", "/exit"):
            return False
        if text == "/help":
            for help_line in HELP_TEXT:
                self.write(help_line)
            return True
        if text == "/clear":
            self.session.reset()
            self.write("Conversation cleared.")
            return True
        if text == "/session":
            self.write(_session_label(self.session.session_id))
            return True
        if text == "/agent" or text.startswith("/agent "):
            return self._switch_agent(text[len("/agent"):])

        entry = await self.session.send(text)
        if entry is not None:
            self.write(_render_entry(entry))
            last_error = self.session.last_error
            if last_error and last_error != entry.text:
                self.write(f"[error] {last_error}")
        return not self.logged_out

    def _switch_agent(self, code: str) -> bool:
        if not code.strip():
            self.write("Choose an agent:")
            for menu_line in agent_menu():
                self.write(menu_line)
            return True
        try:
            kind = select_agent(code)
        except ValueError as exc:
            self.write(f"{exc}. Try 1, 2 or 3.")
            return True
        if self.session.change_agent(kind):
            self._announce_agent(kind)
        else:
            self.write("That agent is already active.")
        return True

    async def run(self, read: ReadLine) -> None:
        self._announce_agent(self.session.active_agent)
        self.write(HELP_TEXT[0])
        while True:
            line = await read("you> ")
            if line is None:
                break
            if not await self.handle_line(line):
                break


async def run_console(
    settings: Settings,
    *,
    agent: AgentKind = AgentKind.INMOBILIARIA,
    email: Optional[str] = None,
    password: Optional[str] = None,
    read: ReadLine = _read_stdin,
    write: WriteLine = print,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Log in if credentials are given, then chat until /quit or end of input."""
    holder: List[ConsoleChat] = []

    def on_unauthenticated() -> None:
        if holder:
            holder[0].handle_unauthenticated()

    api, auth, agent_service = create_client_stack(
        settings, on_unauthenticated=on_unauthenticated, transport=transport
    )
    async with api:
        if email and password:
            try:
                result = await auth.login(email, password)
            except ChatError as exc:
                write(f"Login failed: {exc}")
                return 1
            write(f"Logged in as {result.user.full_name} ({result.user.email}).")
        elif not auth.is_authenticated():
            write("Not logged in; pass --email and --password.")
            return 1

        console = ConsoleChat(ChatSession(agent_service, agent=agent), write)
        holder.append(console)
        await console.run(read)
    logger.info("console_closed", extra={"logged_out": console.logged_out})
    return 2 if console.logged_out else 0


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with the back-office agents")
    parser.add_argument(
        "--agent",
        "-a",
        default="1",
        metavar="CODE",
        help="Agent to start with (1/inmobiliaria, 2/propiedad, 3/persona).",
    )
    parser.add_argument("--base-url", help="API base URL (defaults to AGENT_API_BASE_URL).")
    parser.add_argument("--email", help="Login email.")
    parser.add_argument("--password", help="Login password.")
    parser.add_argument("--token-file", help="Persist the auth token in this JSON file.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        agent = select_agent(args.agent)
    except ValueError as exc:
        print(f"{exc}. Choose one of:")
        for line in agent_menu():
            print(line)
        return 1
    settings = load_settings()
    if args.base_url or args.token_file:
        settings = replace(
            settings,
            base_url=(args.base_url or settings.base_url).rstrip("/"),
            token_file=args.token_file or settings.token_file,
        )
    return asyncio.run(run_console(settings, agent=agent, email=args.email, password=args.password))


if __name__ == "__main__":
    raise SystemExit(main())
