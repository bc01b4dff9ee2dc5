"""Authenticated client for the Service's web API."""

from helicon.auth.cookies import SessionCookies
from helicon.client.transport import Transport
from helicon.errors import ApiError


class AuthenticatedClient:
    """Issues GET requests with the full session header and cookie set."""

    def __init__(self, transport: Transport, session: SessionCookies) -> None:
        """Initialize client with a transport and session credentials."""
        if not session.auth_token.value:
            raise ValueError("auth_token is required")
        if not session.csrf_token.value:
            raise ValueError("ct0 is required")
        if not session.bearer_token:
            raise ValueError("bearer_token is required")
        self._transport = transport
        self._session = session

    @property
    def session(self) -> SessionCookies:
        return self._session

    def get_base_headers(self) -> dict[str, str]:
        """Get HTTP headers for authenticated API requests."""
        ct0 = self._session.csrf_token.value
        return {
            "authorization": self._session.bearer_token,
            "x-csrf-token": ct0,
            "x-twitter-auth-type": "OAuth2Session",
            "x-twitter-active-user": "yes",
            "x-twitter-client-language": "en",
            "cookie": f"auth_token={self._session.auth_token.value}; ct0={ct0}",
            "accept": "*/*",
            "user-agent": self._transport.user_agent,
        }

    async def get(self, url: str) -> bytes:
        """GET an absolute API URL and return the raw body.

        The caller is responsible for URL-encoding query parameters.

        Raises:
            ApiError: If the response status is not 200.
        """
        response = await self._transport.get(url, headers=self.get_base_headers(), timeout=None)
        if response.status != 200:
            raise ApiError(response.status, response.text, url=url)
        return response.body
