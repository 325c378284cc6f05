"""Failure taxonomy for agent calls and the messages shown for each kind."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .schemas import ChatResponse

GENERIC_NETWORK_ERROR = "Network error"
GENERIC_APPLICATION_ERROR = "Unknown error occurred"


class FailureKind(str, Enum):
    TRANSPORT = "transport"  # no usable response
    APPLICATION = "application"  # backend answered success=false


class ChatError(Exception):
    """Base class for errors raised at the agent transport boundary."""


class TransportFailure(ChatError):
    """The request did not produce a usable response."""

    def __init__(self, detail: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        super().__init__(detail or GENERIC_NETWORK_ERROR)
        self.detail = detail
        self.status_code = status_code


class AuthenticationRejected(TransportFailure):
    """The backend refused the stored credential (HTTP 401 or 403)."""


def _body_field(body: Any, key: str) -> Optional[str]:
    if isinstance(body, dict):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def extract_error_detail(body: Any) -> Optional[str]:
    """Best diagnostic string carried by an error response body."""
    return _body_field(body, "message") or _body_field(body, "error")


def describe_transport_failure(exc: BaseException) -> str:
    """Message for a request that never produced a usable response."""
    detail = getattr(exc, "detail", None)
    if isinstance(detail, str) and detail.strip():
        return detail
    text = str(exc).strip()
    return text or GENERIC_NETWORK_ERROR


def describe_application_failure(response: "ChatResponse") -> str:
    """Message for a response that explicitly reported ``success=false``."""
    if response.error and response.error.strip():
        return response.error
    return GENERIC_APPLICATION_ERROR
