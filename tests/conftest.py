"""Shared test fixtures: a fake Service, challenge solver and secret store."""

import json
import os
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from helicon.client.transport import Transport
from helicon.errors import EntryNotFoundError

# Disable Rich color output for consistent test output across environments
os.environ["NO_COLOR"] = "1"

GUEST_TOKEN = "1926347120459637063"
MAIN_SCRIPT_URL = "https://abs.twimg.com/responsive-web/client-web-legacy/main.175fd69a.js"
CHALLENGE_URL = "https://x.com/i/js_inst?c_name=ui_metrics"
ANONYMOUS_BEARER = "Bearer AAAA"

LOGIN_HTML = f"""<!DOCTYPE html>
<html><head>
<script nonce="abc">document.cookie="gt={GUEST_TOKEN}; Max-Age=10800; Domain=.x.com; Path=/; Secure";</script>
<script type="text/javascript" charset="utf-8" nonce="abc" crossorigin="anonymous"
 src="{MAIN_SCRIPT_URL}"></script>
</head><body></body></html>
"""

MAIN_SCRIPT = (
    'const a=function(e){return"Bearer "+e};'
    'headers:{authorization:"Bearer "+t.token};'
    'const s="Bearer AAAA";'
)

CT0_LINE = "ct0=C; Max-Age=21600; Expires=Mon, 19 May 2025 00:42:35 GMT; Path=/; Domain=.x.com; Secure"
AUTH_TOKEN_LINE = (
    "auth_token=A; Max-Age=157680000; Expires=Sat, 17 May 2030 18:42:35 GMT; "
    "Path=/; Domain=.x.com; Secure; HttpOnly; SameSite=None"
)
FLOW_COOKIE_LINES = [
    "att=1-ATT; Max-Age=1800; Expires=Mon, 19 May 2025 00:12:35 GMT; Path=/; Domain=.x.com; Secure; HttpOnly",
    "guest_id=v1%3A174761295522412345; Max-Age=34214400; Expires=Wed, 17 Jun 2026 00:02:35 GMT; Path=/; Domain=.x.com; Secure; SameSite=None",
    "__cf_bm=CFBM; path=/; expires=Sun, 18-May-25 19:12:35 GMT; domain=.x.com; HttpOnly; Secure; SameSite=None",
]
CHALLENGE_PAYLOAD = '{"rf":{"a4fc":-41,"b2a1":87},"s":"Z4Z0ziwX2n8d"}'


def task_response(
    flow_token: str,
    set_cookies: list[str] | None = None,
    subtasks: list[dict[str, Any]] | None = None,
    status: int = 200,
    body: dict[str, Any] | None = None,
) -> httpx.Response:
    """Build an onboarding task response."""
    if body is None:
        body = {"flow_token": flow_token, "status": "success", "subtasks": subtasks or []}
    headers = [("set-cookie", line) for line in set_cookies or []]
    return httpx.Response(status, headers=headers, content=json.dumps(body).encode())


def login_responses(
    tokens: tuple[str, str, str, str] = ("T1", "T2", "T3", "T4"),
    session_cookies: list[str] | None = None,
) -> list[httpx.Response]:
    """Build the four onboarding responses of one successful login."""
    if session_cookies is None:
        session_cookies = [CT0_LINE, AUTH_TOKEN_LINE]
    challenge_subtask = {
        "subtask_id": "LoginJsInstrumentationSubtask",
        "js_instrumentation": {
            "url": CHALLENGE_URL,
            "timeout_ms": 2000,
            "next_link": {"link_type": "task", "link_id": "next_link"},
        },
    }
    return [
        task_response(tokens[0], set_cookies=FLOW_COOKIE_LINES, subtasks=[challenge_subtask]),
        task_response(tokens[1], subtasks=[{"subtask_id": "LoginEnterUserIdentifierSSO"}]),
        task_response(tokens[2], subtasks=[{"subtask_id": "LoginEnterPassword"}]),
        task_response(tokens[3], set_cookies=session_cookies),
    ]


class FakeService:
    """Routes requests for the login page, scripts, onboarding and API hosts."""

    def __init__(self) -> None:
        self.login_html = LOGIN_HTML
        self.main_script = MAIN_SCRIPT
        self.challenge_script = "document.getElementsByName('ui_metrics')[0].value = '{}';"
        self.task_responses: list[httpx.Response] = []
        self.api_responses: list[httpx.Response] = []
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = request.url.path
        if host == "x.com" and path == "/i/flow/login/":
            return httpx.Response(200, text=self.login_html)
        if host == "abs.twimg.com":
            return httpx.Response(200, text=self.main_script)
        if host == "x.com" and path == "/i/js_inst":
            return httpx.Response(200, text=self.challenge_script)
        if host == "api.x.com" and path == "/1.1/onboarding/task.json":
            if not self.task_responses:
                return httpx.Response(500, text="unexpected onboarding request")
            return self.task_responses.pop(0)
        if host == "x.com" and path.startswith("/i/api/graphql/"):
            if not self.api_responses:
                return httpx.Response(500, text="unexpected API request")
            return self.api_responses.pop(0)
        return httpx.Response(404, text="not found")

    def transport(self, user_agent: str = "test-agent/1.0") -> Transport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return Transport(client=client, user_agent=user_agent)

    @property
    def task_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == "api.x.com"]

    @property
    def login_page_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/i/flow/login/"]


class FakeSolver:
    """ChallengeSolver returning a fixed payload."""

    def __init__(self, payload: str = CHALLENGE_PAYLOAD) -> None:
        self.payload = payload
        self.calls: list[tuple[str, str, float]] = []

    async def evaluate(self, script_source: str, user_agent: str, timeout: float) -> str:
        self.calls.append((script_source, user_agent, timeout))
        return self.payload


class MemoryStore:
    """SecretStore keeping blobs in a dict."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], str] = {}
        self.save_count = 0

    def save(self, service: str, account: str, blob: str) -> None:
        self.items[(service, account)] = blob
        self.save_count += 1

    def load(self, service: str, account: str) -> str:
        try:
            return self.items[(service, account)]
        except KeyError:
            raise EntryNotFoundError(f"no tokens for {account}") from None


@pytest.fixture
def fake_service() -> FakeService:
    """Fixture providing a fake Service with no queued onboarding responses."""
    return FakeService()


@pytest.fixture
def fake_solver() -> FakeSolver:
    """Fixture providing a challenge solver with a fixed payload."""
    return FakeSolver()


@pytest.fixture
def memory_store() -> MemoryStore:
    """Fixture providing an empty in-memory secret store."""
    return MemoryStore()


@pytest.fixture
def make_login_responses() -> Callable[..., list[httpx.Response]]:
    """Fixture that provides the login_responses factory function."""
    return login_responses


@pytest.fixture
def make_task_response() -> Callable[..., httpx.Response]:
    """Fixture that provides the task_response factory function."""
    return task_response


@pytest.fixture
def service_constants() -> dict[str, str]:
    """Fixture exposing the fake Service's fixed values."""
    return {
        "guest_token": GUEST_TOKEN,
        "main_script_url": MAIN_SCRIPT_URL,
        "challenge_url": CHALLENGE_URL,
        "anonymous_bearer": ANONYMOUS_BEARER,
        "ct0_line": CT0_LINE,
        "auth_token_line": AUTH_TOKEN_LINE,
        "challenge_payload": CHALLENGE_PAYLOAD,
    }
