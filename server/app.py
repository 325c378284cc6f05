"""
Local stand-in for the back-office agent service.

Speaks the same contract as the real backend (login, bearer auth, one chat
endpoint per agent, `{message}` error bodies) so the chat client can be run
and tested without it. Replies are canned acknowledgements.

    uvicorn server.app:app --port 8080
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from chat.agents import AGENT_PROFILES, AgentKind, profile_for
from chat.schemas import ChatRequest, ChatResponse
from server.security import parse_bearer, verify_password
from storage.memory_store import InMemoryStore
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@inmobiliaria.com"
DEFAULT_ADMIN_PASSWORD = "admin123"

# Markers a test or demo can put in a message to force each failure path.
CRASH_MARKER = "#crash"
UNAVAILABLE_MARKER = "#unavailable"


class LoginPayload(BaseModel):
    email: str
    password: str


def _public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": user["id"],
        "email": user["email"],
        "fullName": user["full_name"],
        "role": user["role"],
    }


def _build_reply(kind: AgentKind, message: str, turn: int) -> str:
    profile = profile_for(kind)
    return f"[{profile.name}] turn {turn}: received '{message}'."


def create_app(store: Optional[InMemoryStore] = None) -> FastAPI:
    load_dotenv()
    if store is None:
        store = InMemoryStore(
            os.getenv("STUB_ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL),
            os.getenv("STUB_ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
        )

    app = FastAPI(title="Inmobiliaria agent service (stub)")
    app.state.store = store

    @app.exception_handler(StarletteHTTPException)
    async def _api_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": "Invalid request"})

    def get_current_user(request: Request) -> Dict[str, Any]:
        token = parse_bearer(request.headers.get("Authorization"))
        user = store.find_user_by_token(token) if token else None
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
        request.state.token = token
        return user

    @app.post("/api/auth/login")
    def login(payload: LoginPayload):
        user = store.find_user_by_email(payload.email.strip())
        if not user or not verify_password(payload.password, user["password_hash"]):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")
        token = store.create_token(user["id"])
        logger.info("stub_login", extra={"user_id": user["id"]})
        return {"token": token, "tokenType": "Bearer", "user": _public_user(user)}

    @app.post("/api/auth/logout")
    def logout(request: Request, user: Dict[str, Any] = Depends(get_current_user)):
        store.revoke_token(request.state.token)
        return {"ok": True}

    @app.get("/api/auth/me")
    def me(user: Dict[str, Any] = Depends(get_current_user)):
        return _public_user(user)

    def _run_agent(kind: AgentKind, message: str, session: Dict[str, Any]) -> ChatResponse:
        if CRASH_MARKER in message:
            raise RuntimeError("agent runner crashed")
        if UNAVAILABLE_MARKER in message:
            return ChatResponse.failed("Agent unavailable", session["id"])
        turn = sum(1 for m in store.list_agent_messages(kind.value, session["id"]) if m["role"] == "user")
        reply = _build_reply(kind, message, turn)
        store.append_agent_message(kind.value, session["id"], role="assistant", content=reply)
        return ChatResponse.ok(reply, session["id"])

    def _chat(kind: AgentKind, payload: ChatRequest) -> JSONResponse:
        message = payload.message.strip()
        if not message:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")
        session = store.resolve_agent_session(kind.value, payload.session_id)
        store.append_agent_message(kind.value, session["id"], role="user", content=message)
        try:
            result = _run_agent(kind, message, session)
        except RuntimeError as exc:
            logger.error("stub_agent_error", extra={"agent": kind.value, "error": str(exc)})
            body = ChatResponse.failed(f"Unexpected error: {exc}")
            return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))
        logger.info("stub_agent_reply", extra={"agent": kind.value, "session_id": session["id"]})
        return JSONResponse(content=result.model_dump(by_alias=True))

    for profile in AGENT_PROFILES:
        _register_chat_route(app, "/api" + profile.endpoint, profile.kind, _chat, get_current_user)

    return app


def _register_chat_route(app: FastAPI, path: str, kind: AgentKind, handler, auth_dependency) -> None:
    def chat(payload: ChatRequest, user: Dict[str, Any] = Depends(auth_dependency)):
        return handler(kind, payload)

    app.add_api_route(path, chat, methods=["POST"], name=f"chat_{kind.value}")


app = create_app()
