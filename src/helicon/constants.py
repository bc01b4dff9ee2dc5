"""Service endpoints and fixed values."""

SERVICE_NAME = "helicon"

LOGIN_PAGE_URL = "https://x.com/i/flow/login/"
ONBOARDING_TASK_URL = "https://api.x.com/1.1/onboarding/task.json"
TWITTER_API_BASE = "https://x.com/i/api/graphql"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/136.0.0.0 Safari/537.36"
)

SCRAPE_TIMEOUT_SECONDS = 10.0
CHALLENGE_TIMEOUT_SECONDS = 30.0
CHALLENGE_CAPTURE_TIMEOUT_MS = 5000

# Legacy bundle first, the current client-web bundle as fallback
MAIN_SCRIPT_PATTERNS = [
    r'src=["\'](https://abs\.twimg\.com/responsive-web/client-web-legacy/main\.[\w.-]+\.js)["\']',
    r'src=["\'](https://abs\.twimg\.com/responsive-web/client-web/main\.[\w.-]+\.js)["\']',
]

# Quoted literal with a bounded token; skips "Bearer "+e style constructions
BEARER_PATTERN = r'"(Bearer [^"\s\\]{1,256})"'
LOOSE_BEARER_PATTERN = r'Bearer.*?(?:"|\Z)'

GUEST_TOKEN_PATTERN = r'document\.cookie="gt=([0-9]+)'

TWEET_DETAIL_QUERY_ID = "1RFzrZSUoVSgHzVK4MHWlg"
