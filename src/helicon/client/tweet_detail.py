"""TweetDetail GraphQL request, the demonstration authenticated consumer."""

import json
from typing import Any
from urllib.parse import urlencode

from helicon.client.base import AuthenticatedClient
from helicon.client.features import (
    build_tweet_detail_features,
    build_tweet_detail_field_toggles,
    build_tweet_detail_variables,
)
from helicon.constants import TWEET_DETAIL_QUERY_ID, TWITTER_API_BASE
from helicon.errors import ApiError


def build_tweet_detail_url(
    tweet_id: str,
    query_id: str = TWEET_DETAIL_QUERY_ID,
    variables: dict[str, Any] | None = None,
    features: dict[str, bool] | None = None,
    field_toggles: dict[str, bool] | None = None,
) -> str:
    """Build URL for fetching a tweet and its conversation from the GraphQL API.

    Args:
        tweet_id: ID of the focal tweet.
        query_id: The GraphQL query ID for the TweetDetail operation.
        variables: Overrides the default variables built for tweet_id.
        features: Overrides the default feature flags.
        field_toggles: Overrides the default field toggles.

    Returns:
        The complete URL with URL-encoded JSON query parameters.
    """
    if variables is None:
        variables = build_tweet_detail_variables(tweet_id)
    if features is None:
        features = build_tweet_detail_features()
    if field_toggles is None:
        field_toggles = build_tweet_detail_field_toggles()
    params = urlencode(
        {
            "variables": json.dumps(variables),
            "features": json.dumps(features),
            "fieldToggles": json.dumps(field_toggles),
        }
    )
    return f"{TWITTER_API_BASE}/{query_id}/TweetDetail?{params}"


async def fetch_tweet_detail(
    client: AuthenticatedClient,
    tweet_id: str,
    query_id: str = TWEET_DETAIL_QUERY_ID,
) -> dict[str, Any]:
    """Fetch a tweet's detail page and return the decoded JSON response."""
    url = build_tweet_detail_url(tweet_id, query_id)
    body = await client.get(url)
    try:
        result: dict[str, Any] = json.loads(body)
    except ValueError as exc:
        raise ApiError(200, body.decode("utf-8", errors="replace"), url=url) from exc
    return result
