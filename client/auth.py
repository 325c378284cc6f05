from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chat.errors import TransportFailure
from storage.token_store import TokenStore
from telemetry.logging_utils import get_logger

from .api import ApiClient

logger = get_logger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "user"


class User(BaseModel):
    id: int
    email: str
    full_name: str = Field(alias="fullName")
    role: str

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    token_type: str = Field(default="Bearer", alias="tokenType")
    user: User

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AuthService:
    """Login/logout plus access to the stored credential.

    Also serves as the ApiClient's credential provider: ``invalidate`` is what
    the client calls when the backend rejects the token.
    """

    def __init__(self, store: TokenStore, api: Optional[ApiClient] = None) -> None:
        self.store = store
        self.api = api

    async def login(self, email: str, password: str) -> LoginResponse:
        if self.api is None:
            raise RuntimeError("AuthService.login requires an ApiClient.")
        payload = LoginRequest(email=email.strip(), password=password)
        body = await self.api.post_json("/auth/login", payload.model_dump())
        try:
            result = LoginResponse.model_validate(body)
        except ValidationError as exc:
            raise TransportFailure("Malformed login response") from exc
        self.store.set(TOKEN_KEY, result.token)
        self.store.set(USER_KEY, result.user.model_dump(by_alias=True))
        logger.info("auth_login", extra={"user_id": result.user.id, "role": result.user.role})
        return result

    def logout(self) -> None:
        self.invalidate()
        logger.info("auth_logout")

    def invalidate(self) -> None:
        self.store.remove(TOKEN_KEY)
        self.store.remove(USER_KEY)

    def get_token(self) -> Optional[str]:
        token = self.store.get(TOKEN_KEY)
        return str(token) if token is not None else None

    def get_current_user(self) -> Optional[User]:
        raw = self.store.get(USER_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return User.model_validate(raw)
        except ValidationError:
            logger.warning("auth_cached_user_invalid")
            return None

    def is_authenticated(self) -> bool:
        return bool(self.get_token())
