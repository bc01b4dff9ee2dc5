"""Anonymous bearer and guest token discovery from the web client."""

import re
from dataclasses import dataclass

from loguru import logger

from helicon.client.transport import Transport
from helicon.constants import (
    BEARER_PATTERN,
    GUEST_TOKEN_PATTERN,
    LOGIN_PAGE_URL,
    LOOSE_BEARER_PATTERN,
    MAIN_SCRIPT_PATTERNS,
)
from helicon.errors import ScrapeError


@dataclass
class GuestCredentials:
    """Anonymous values needed before any user credentials exist."""

    anonymous_bearer: str
    guest_token: str


def extract_main_script_url(html: str) -> str:
    """Extract the main client bundle URL from the login page HTML.

    The legacy bundle is preferred; the current client-web bundle is used
    when the page no longer references a legacy one.
    """
    for pattern in MAIN_SCRIPT_PATTERNS:
        match = re.search(pattern, html)
        if match:
            return match.group(1)
    raise ScrapeError("main script not located")


def extract_anonymous_bearer(script: str) -> str:
    """Extract the static anonymous bearer literal from the main bundle.

    All candidates are collected and the last one wins; earlier matches are
    usually string constructions such as `"Bearer "+token`.
    """
    matches = re.findall(BEARER_PATTERN, script)
    if matches:
        return str(matches[-1])

    loose_matches = re.findall(LOOSE_BEARER_PATTERN, script)
    if not loose_matches:
        raise ScrapeError("no Bearer literal found in main script")
    token = str(loose_matches[-1]).strip('"')
    if not token.startswith("Bearer "):
        raise ScrapeError(f"unexpected Bearer literal in main script: {token[:40]!r}")
    return token


def extract_guest_token(html: str) -> str:
    """Extract the guest token the login page seeds through document.cookie."""
    match = re.search(GUEST_TOKEN_PATTERN, html)
    if not match:
        raise ScrapeError("guest token not found in login page")
    return match.group(1)


async def fetch_login_page(transport: Transport) -> str:
    """Fetch the login landing page HTML."""
    response = await transport.get(LOGIN_PAGE_URL)
    if response.status != 200:
        raise ScrapeError(f"failed to fetch {LOGIN_PAGE_URL}, status: {response.status}")
    return response.text


async def find_main_script_url(transport: Transport, html: str | None = None) -> str:
    """Locate the main client bundle URL, fetching the login page if needed."""
    if html is None:
        html = await fetch_login_page(transport)
    url = extract_main_script_url(html)
    logger.debug("located main script {}", url)
    return url


async def find_anonymous_bearer(transport: Transport, html: str | None = None) -> str:
    """Fetch the main client bundle and return its anonymous bearer token.

    The returned value already carries the "Bearer " prefix and can be used
    as an Authorization header as is.
    """
    script_url = await find_main_script_url(transport, html)
    response = await transport.get(script_url)
    if response.status != 200:
        raise ScrapeError(f"failed to fetch {script_url}, status: {response.status}")
    return extract_anonymous_bearer(response.text)


async def find_guest_token(transport: Transport, html: str | None = None) -> str:
    """Return the guest token from the login page."""
    if html is None:
        html = await fetch_login_page(transport)
    return extract_guest_token(html)


async def discover_guest_credentials(transport: Transport) -> GuestCredentials:
    """Fetch the login page once and derive both anonymous credentials from it."""
    html = await fetch_login_page(transport)
    anonymous_bearer = await find_anonymous_bearer(transport, html)
    guest_token = extract_guest_token(html)
    logger.debug("discovered anonymous bearer and guest token")
    return GuestCredentials(anonymous_bearer=anonymous_bearer, guest_token=guest_token)
