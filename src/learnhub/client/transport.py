"""
HTTP transport for the API client.

Every call resolves to exactly one tagged outcome instead of raising:

- ``Ok``: the server answered with a 2xx status.
- ``AuthExpired``: the server answered 401. Only this outcome may start a
  silent refresh.
- ``OtherError``: any other status, or no response at all (``status`` is
  ``None`` for network failures and timeouts).
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from learnhub.client.settings import ClientSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    status: int
    body: Any = None

    @property
    def data(self) -> Any:
        return _envelope_field(self.body, "data")


@dataclass(frozen=True)
class AuthExpired:
    status: int
    body: Any = None

    @property
    def message(self) -> Optional[str]:
        return _envelope_field(self.body, "message")


@dataclass(frozen=True)
class OtherError:
    status: Optional[int]
    body: Any = None
    message: Optional[str] = None


Outcome = Union[Ok, AuthExpired, OtherError]


def _envelope_field(body: Any, field: str) -> Any:
    if isinstance(body, dict):
        return body.get(field)
    return None


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def classify_response(response: httpx.Response) -> Outcome:
    body = _parse_body(response)
    if response.is_success:
        return Ok(response.status_code, body)
    if response.status_code == 401:
        return AuthExpired(response.status_code, body)
    return OtherError(
        response.status_code, body, _envelope_field(body, "message")
    )


class Transport:
    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "Transport":
        return cls(
            httpx.AsyncClient(
                base_url=settings.api_url, timeout=settings.timeout_seconds
            )
        )

    async def send(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json: Any = None,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Outcome:
        request_headers = dict(headers or {})
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self.client.request(
                method, path, json=json, params=params, headers=request_headers
            )
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed without a response: {e}")
            return OtherError(None, None, str(e) or e.__class__.__name__)

        return classify_response(response)

    async def refresh(self) -> Outcome:
        # The refresh token travels in the http-only cookie held by the jar
        return await self.send("POST", "/auth/refresh")

    def clear_cookies(self) -> None:
        self.client.cookies.clear()

    async def aclose(self) -> None:
        await self.client.aclose()
