"""Opt-in recovery from 401 responses on authenticated requests."""

from collections.abc import Awaitable, Callable

from loguru import logger

from helicon.errors import ApiError


async def fetch_with_reauth(
    fetch: Callable[[str], Awaitable[bytes]],
    url: str,
    on_bearer_refresh: Callable[[], Awaitable[None]],
    on_relogin: Callable[[], Awaitable[None]],
) -> bytes:
    """Fetch URL, refreshing credentials on 401.

    A 401 first refreshes the anonymous bearer and retries. Only if the retry
    is also rejected with 401 are the session cookies replaced by a full
    re-login, followed by one last attempt.

    Args:
        fetch: Coroutine issuing the authenticated GET.
        url: The URL to fetch.
        on_bearer_refresh: Async callback that replaces the bearer token.
        on_relogin: Async callback that performs a full login.

    Returns:
        The raw response body.

    Raises:
        ApiError: If the request fails with anything other than 401, or still
            fails after re-login.
    """
    try:
        return await fetch(url)
    except ApiError as e:
        if e.status != 401:
            raise

    logger.info("request rejected with 401, refreshing anonymous bearer")
    await on_bearer_refresh()
    try:
        return await fetch(url)
    except ApiError as e:
        if e.status != 401:
            raise

    logger.info("still unauthorized after bearer refresh, logging in again")
    await on_relogin()
    return await fetch(url)
