"""
Async HTTP client for the back-office REST API.

Every request carries the stored bearer credential. A 401 or 403 from any
endpoint drops that credential and notifies the front end through the
``on_unauthenticated`` callback; both statuses are treated as "log in again".
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol

import httpx

from chat.errors import AuthenticationRejected, TransportFailure, extract_error_detail
from telemetry.logging_utils import get_logger

from .settings import DEFAULT_TIMEOUT_SECONDS

logger = get_logger(__name__)

AUTH_REJECTION_STATUSES = frozenset({401, 403})


class CredentialProvider(Protocol):
    def get_token(self) -> Optional[str]:
        ...

    def invalidate(self) -> None:
        ...


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        credentials: Optional[CredentialProvider] = None,
        on_unauthenticated: Optional[Callable[[], None]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.credentials = credentials
        self.on_unauthenticated = on_unauthenticated
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _auth_headers(self) -> Dict[str, str]:
        token = self.credentials.get_token() if self.credentials else None
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _handle_auth_rejection(self, response: httpx.Response, body: Any) -> None:
        logger.warning(
            "api_auth_rejected",
            extra={"status_code": response.status_code, "path": response.request.url.path},
        )
        if self.credentials is not None:
            self.credentials.invalidate()
        if self.on_unauthenticated is not None:
            self.on_unauthenticated()
        raise AuthenticationRejected(
            extract_error_detail(body) or f"Request failed with status code {response.status_code}",
            status_code=response.status_code,
        )

    async def request(self, method: str, path: str, *, json: Optional[Any] = None) -> Any:
        """Issue a request and return the decoded JSON body.

        Raises:
            AuthenticationRejected: the backend answered 401 or 403.
            TransportFailure: no response, a non-2xx status, or a body that is
                not JSON.
        """
        try:
            response = await self._client.request(method, path, json=json, headers=self._auth_headers())
        except httpx.TimeoutException as exc:
            logger.warning("api_request_timeout", extra={"path": path, "timeout": self.timeout})
            raise TransportFailure(f"Request timed out after {self.timeout:g}s") from exc
        except httpx.HTTPError as exc:
            logger.warning("api_request_error", extra={"path": path, "error": str(exc)})
            raise TransportFailure(str(exc) or None) from exc

        body = _parse_body(response)
        if response.status_code in AUTH_REJECTION_STATUSES:
            self._handle_auth_rejection(response, body)
        if response.is_error:
            detail = extract_error_detail(body) or f"Request failed with status code {response.status_code}"
            logger.warning("api_request_rejected", extra={"path": path, "status_code": response.status_code})
            raise TransportFailure(detail, status_code=response.status_code)
        if body is None:
            raise TransportFailure("Malformed response from server", status_code=response.status_code)
        return body

    async def get_json(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post_json(self, path: str, payload: Any) -> Any:
        return await self.request("POST", path, json=payload)
