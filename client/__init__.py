"""
HTTP side of the chat client.

`create_client_stack` wires the API client, the auth service acting as its
credential provider, and the agent service used as the chat transport.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

import httpx

from storage.token_store import TokenStore

from .agent_service import AgentService
from .api import ApiClient, CredentialProvider
from .auth import AuthService, LoginResponse, User
from .settings import Settings, load_settings


def create_client_stack(
    settings: Settings,
    *,
    on_unauthenticated: Optional[Callable[[], None]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    store: Optional[TokenStore] = None,
) -> Tuple[ApiClient, AuthService, AgentService]:
    auth = AuthService(store or TokenStore(settings.token_file))
    api = ApiClient(
        settings.base_url,
        credentials=auth,
        on_unauthenticated=on_unauthenticated,
        timeout=settings.timeout,
        transport=transport,
    )
    auth.api = api
    return api, auth, AgentService(api)


__all__ = [
    "AgentService",
    "ApiClient",
    "AuthService",
    "CredentialProvider",
    "LoginResponse",
    "Settings",
    "User",
    "create_client_stack",
    "load_settings",
]
