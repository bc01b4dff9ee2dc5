"""Credential facade: load stored credentials or log in, then issue requests."""

from dataclasses import replace
from types import TracebackType
from typing import Any

from loguru import logger

from helicon.auth import flow
from helicon.auth.challenge import ChallengeSolver, PlaywrightChallengeSolver
from helicon.auth.cookies import Cookie, SessionCookies
from helicon.auth.keyring import (
    KeyringStore,
    SecretStore,
    decode_session_blob,
    encode_session_blob,
)
from helicon.auth.scraper import find_anonymous_bearer
from helicon.client.base import AuthenticatedClient
from helicon.client.retry import fetch_with_reauth
from helicon.client.transport import Transport
from helicon.client.tweet_detail import fetch_tweet_detail
from helicon.config import Settings
from helicon.constants import DEFAULT_USER_AGENT, SERVICE_NAME, TWEET_DETAIL_QUERY_ID
from helicon.errors import ConfigError, CookieParseError, CorruptBlobError, HeliconError, StoreError


class Helicon:
    """Owns one user's session credentials.

    Use as an async context manager so the HTTP client is closed:

        async with Helicon(load_settings()) as helicon:
            await helicon.authenticate()
            detail = await helicon.get_tweet_detail("20")

    Credentials are treated as immutable once `authenticate()` returns;
    `refresh_anonymous_bearer()` and `login()` replace them and should not run
    concurrently with each other.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Transport | None = None,
        store: SecretStore | None = None,
        solver: ChallengeSolver | None = None,
    ) -> None:
        if not settings.user_agent:
            settings.user_agent = DEFAULT_USER_AGENT
        self.settings = settings
        self._transport = transport or Transport(user_agent=settings.user_agent)
        self._transport.user_agent = settings.user_agent
        self._store: SecretStore = store or KeyringStore()
        self._solver: ChallengeSolver = solver or PlaywrightChallengeSolver()
        self._cookies: SessionCookies | None = None

    async def __aenter__(self) -> "Helicon":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._transport.aclose()

    @property
    def cookies(self) -> SessionCookies:
        """Session credentials; available after `authenticate()`."""
        if self._cookies is None:
            raise HeliconError("not authenticated, call authenticate() first")
        return self._cookies

    @property
    def is_authenticated(self) -> bool:
        return self._cookies is not None

    def _require_credentials(self) -> None:
        if not self.settings.username:
            raise ConfigError("username not set, cannot proceed")
        if not self.settings.password:
            raise ConfigError("password not set, cannot proceed")

    async def authenticate(self) -> SessionCookies:
        """Load stored credentials, logging in when there are none usable.

        With `force_login` set a fresh login always runs first. Any failure to
        load (missing entry, unavailable store, corrupt blob, unparsable
        cookie) falls through to a full login.
        """
        self._require_credentials()
        if self.settings.force_login:
            await self.login()
        try:
            self._cookies = self.load_tokens()
        except (StoreError, CookieParseError) as exc:
            logger.info("no usable stored tokens ({}), logging in", exc)
            await self.login()
            self._cookies = self.load_tokens()
        return self._cookies

    async def login(self) -> SessionCookies:
        """Run the full login flow and persist the resulting credentials."""
        self._require_credentials()
        bearer, lines = await flow.login(
            self._transport,
            self.settings.username,
            self.settings.password,
            self.settings.user_agent,
            self._solver,
        )
        session = SessionCookies(
            csrf_token=Cookie.parse(lines.csrf_token),
            auth_token=Cookie.parse(lines.auth_token),
            bearer_token=bearer,
        )
        self.save_tokens(session)
        self._cookies = session
        return session

    def save_tokens(self, session: SessionCookies) -> None:
        """Persist session credentials in the secret store."""
        self._store.save(SERVICE_NAME, self.settings.username, encode_session_blob(session))

    def load_tokens(self) -> SessionCookies:
        """Load session credentials from the secret store.

        Raises:
            StoreError: If the entry is missing, the store is unavailable or
                the blob is corrupt.
            CookieParseError: If a stored cookie line cannot be parsed.
        """
        blob = self._store.load(SERVICE_NAME, self.settings.username)
        csrf_raw, auth_raw, bearer = decode_session_blob(blob)
        session = SessionCookies(
            csrf_token=Cookie.parse(csrf_raw),
            auth_token=Cookie.parse(auth_raw),
            bearer_token=bearer,
        )
        if not session.is_complete():
            raise CorruptBlobError("stored tokens are incomplete")
        return session

    async def refresh_anonymous_bearer(self) -> str:
        """Re-scrape the anonymous bearer, keeping the session cookies.

        Use this when API calls start failing with 401 while the session
        cookies are still valid.
        """
        bearer = await find_anonymous_bearer(self._transport)
        self._cookies = replace(self.cookies, bearer_token=bearer)
        self.save_tokens(self._cookies)
        logger.info("refreshed anonymous bearer")
        return bearer

    def client(self) -> AuthenticatedClient:
        """Build an authenticated client for the current session."""
        return AuthenticatedClient(self._transport, self.cookies)

    async def get(self, url: str) -> bytes:
        """GET an absolute API URL with the session credentials."""
        return await self.client().get(url)

    async def get_with_recovery(self, url: str) -> bytes:
        """GET with bearer refresh, then re-login, on 401."""

        async def relogin() -> None:
            await self.login()

        async def refresh() -> None:
            await self.refresh_anonymous_bearer()

        return await fetch_with_reauth(self.get, url, refresh, relogin)

    async def get_tweet_detail(
        self, tweet_id: str, query_id: str = TWEET_DETAIL_QUERY_ID
    ) -> dict[str, Any]:
        """Fetch a tweet's detail page as decoded JSON."""
        return await fetch_tweet_detail(self.client(), tweet_id, query_id)
