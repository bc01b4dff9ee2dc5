"""Thin httpx wrapper surfacing status, headers, body and Set-Cookie lines."""

import json as jsonlib
from dataclasses import dataclass, field
from http.cookiejar import CookieJar, DefaultCookiePolicy
from types import TracebackType
from typing import Any

import httpx

from helicon.constants import DEFAULT_USER_AGENT, SCRAPE_TIMEOUT_SECONDS
from helicon.errors import TransportError


@dataclass
class HttpResponse:
    """Response as seen by the authentication flow."""

    status: int
    url: str
    headers: httpx.Headers
    body: bytes
    set_cookies: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return jsonlib.loads(self.body)


class Transport:
    """Issues HTTP requests with a fixed User-Agent.

    Redirects are never followed, so a 3xx reaches the caller as a status.
    Scrape GETs default to a 10 second timeout; POSTs use the client default,
    which is no timeout for clients created here. The client never stores
    cookies; callers send them explicitly in a Cookie header.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=False,
            timeout=None,
            cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
        )
        self.user_agent = user_agent

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        return {"user-agent": self.user_agent, **(headers or {})}

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = SCRAPE_TIMEOUT_SECONDS,
    ) -> HttpResponse:
        """Issue a GET request."""
        return await self._send("GET", url, headers=self._headers(headers), timeout=timeout)

    async def post(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> HttpResponse:
        """Issue a POST request with an optional JSON body."""
        content = jsonlib.dumps(json).encode() if json is not None else None
        return await self._send(
            "POST",
            url,
            headers=self._headers(headers),
            content=content,
            params=params,
            timeout=httpx.USE_CLIENT_DEFAULT,
        )

    async def _send(self, method: str, url: str, **kwargs: Any) -> HttpResponse:
        # Cookies are replayed only through explicit Cookie headers
        self._client.cookies.clear()
        try:
            response = await self._client.request(method, url, follow_redirects=False, **kwargs)
        except httpx.TransportError as exc:
            raise TransportError(f"failed to {method} {url}: {exc}") from exc
        finally:
            self._client.cookies.clear()
        return HttpResponse(
            status=response.status_code,
            url=str(response.url),
            headers=response.headers,
            body=response.content,
            set_cookies=response.headers.get_list("set-cookie"),
        )
