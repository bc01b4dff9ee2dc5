"""GraphQL variables, feature flags and field toggles for TweetDetail requests."""

from typing import Any


def build_tweet_detail_variables(
    tweet_id: str,
    referrer: str = "",
    controller_data: str = "",
    ranking_mode: str = "Relevance",
) -> dict[str, Any]:
    """Build the variables object for a TweetDetail request.

    Args:
        tweet_id: ID of the focal tweet.
        referrer: Page the tweet was opened from (e.g. "home"); omitted when empty.
        controller_data: Opaque client controller data; omitted when empty.
        ranking_mode: Reply ordering: "Relevance", "Recency" or "Likes".

    Returns:
        The variables dictionary, ready for JSON serialization.
    """
    variables: dict[str, Any] = {"focalTweetId": tweet_id}
    if referrer:
        variables["referrer"] = referrer
    if controller_data:
        variables["controller_data"] = controller_data
    variables.update(
        {
            "with_rux_injections": False,
            "rankingMode": ranking_mode,
            "includePromotedContent": True,
            "withCommunity": True,
            "withQuickPromoteEligibilityTweetFields": True,
            "withBirdwatchNotes": True,
            "withVoice": True,
        }
    )
    return variables


def build_tweet_detail_features() -> dict[str, bool]:
    """Build feature flags for TweetDetail requests.

    Everything is enabled; adjust the returned dict to drop features.
    """
    return {
        "rweb_video_screen_enabled": True,
        "profile_label_improvements_pcf_label_in_post_enabled": True,
        "rweb_tipjar_consumption_enabled": True,
        "verified_phone_label_enabled": True,
        "creator_subscriptions_tweet_preview_api_enabled": True,
        "responsive_web_graphql_timeline_navigation_enabled": True,
        "responsive_web_graphql_skip_user_profile_image_extensions_enabled": True,
        "premium_content_api_read_enabled": True,
        "communities_web_enable_tweet_community_results_fetch": True,
        "c9s_tweet_anatomy_moderator_badge_enabled": True,
        "responsive_web_grok_analyze_button_fetch_trends_enabled": True,
        "responsive_web_grok_analyze_post_followups_enabled": True,
        "responsive_web_jetfuel_frame": True,
        "responsive_web_grok_share_attachment_enabled": True,
        "articles_preview_enabled": True,
        "responsive_web_edit_tweet_api_enabled": True,
        "graphql_is_translatable_rweb_tweet_is_translatable_enabled": True,
        "view_counts_everywhere_api_enabled": True,
        "longform_notetweets_consumption_enabled": True,
        "responsive_web_twitter_article_tweet_consumption_enabled": True,
        "tweet_awards_web_tipping_enabled": True,
        "responsive_web_grok_show_grok_translated_post": True,
        "responsive_web_grok_analysis_button_from_backend": True,
        "creator_subscriptions_quote_tweet_preview_enabled": True,
        "freedom_of_speech_not_reach_fetch_enabled": True,
        "standardized_nudges_misinfo": True,
        "tweet_with_visibility_results_prefer_gql_limited_actions_policy_enabled": True,
        "longform_notetweets_rich_text_read_enabled": True,
        "longform_notetweets_inline_media_enabled": True,
        "responsive_web_grok_image_annotation_enabled": True,
        "responsive_web_enhance_cards_enabled": True,
    }


def build_tweet_detail_field_toggles() -> dict[str, bool]:
    """Build field toggles for TweetDetail requests."""
    return {
        "withArticleRichContentState": True,
        "withArticlePlainText": False,
        "withGrokAnalyze": False,
        "withDisallowedReplyControls": False,
    }
