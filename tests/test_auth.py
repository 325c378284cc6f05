import asyncio
import json

import httpx
import pytest

from chat.errors import AuthenticationRejected, TransportFailure
from client import create_client_stack
from client.auth import AuthService
from client.settings import Settings
from storage.token_store import TokenStore

LOGIN_BODY = {
    "token": "jwt-abc",
    "tokenType": "Bearer",
    "user": {"id": 4, "email": "laura@inmobiliaria.com", "fullName": "Laura Martinez", "role": "AGENT"},
}


def _stack(handler, store=None):
    settings = Settings(base_url="http://backend.test/api")
    return create_client_stack(settings, transport=httpx.MockTransport(handler), store=store or TokenStore())


def test_login_stores_token_and_user():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=LOGIN_BODY)

    api, auth, _ = _stack(handler)

    async def scenario():
        async with api:
            return await auth.login(" laura@inmobiliaria.com ", "Secr3t0!")

    result = asyncio.run(scenario())

    assert str(seen[0].url) == "http://backend.test/api/auth/login"
    assert json.loads(seen[0].content) == {"email": "laura@inmobiliaria.com", "password": "Secr3t0!"}
    assert result.token_type == "Bearer"
    assert auth.get_token() == "jwt-abc"
    assert auth.is_authenticated() is True
    user = auth.get_current_user()
    assert user.full_name == "Laura Martinez"
    assert user.role == "AGENT"


def test_token_is_sent_on_later_requests():
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.path.endswith("/auth/login"):
            return httpx.Response(200, json=LOGIN_BODY)
        return httpx.Response(200, json={"id": 4})

    api, auth, _ = _stack(handler)

    async def scenario():
        async with api:
            await auth.login("laura@inmobiliaria.com", "Secr3t0!")
            await api.get_json("/auth/me")

    asyncio.run(scenario())

    assert "Authorization" not in seen[0].headers
    assert seen[1].headers["Authorization"] == "Bearer jwt-abc"


def test_bad_credentials_raise_and_store_nothing():
    def handler(request):
        return httpx.Response(401, json={"message": "Invalid credentials."})

    api, auth, _ = _stack(handler)

    async def scenario():
        async with api:
            await auth.login("laura@inmobiliaria.com", "wrong")

    with pytest.raises(AuthenticationRejected, match="Invalid credentials."):
        asyncio.run(scenario())
    assert auth.is_authenticated() is False


def test_malformed_login_response():
    def handler(request):
        return httpx.Response(200, json={"token": "x"})

    api, auth, _ = _stack(handler)

    async def scenario():
        async with api:
            await auth.login("laura@inmobiliaria.com", "Secr3t0!")

    with pytest.raises(TransportFailure, match="Malformed login response"):
        asyncio.run(scenario())


def test_logout_clears_credentials():
    store = TokenStore()
    store.set("auth_token", "jwt-abc")
    store.set("user", LOGIN_BODY["user"])
    auth = AuthService(store)

    auth.logout()

    assert auth.get_token() is None
    assert auth.get_current_user() is None


def test_cached_user_with_wrong_shape_is_ignored():
    store = TokenStore()
    store.set("user", {"email": "no-id@inmobiliaria.com"})

    assert AuthService(store).get_current_user() is None


def test_login_without_api_client():
    with pytest.raises(RuntimeError):
        asyncio.run(AuthService(TokenStore()).login("a@b.com", "pw"))
