"""Onboarding login flow for the Service's web client.

Every step POSTs to the onboarding task endpoint and receives a new flow
token that must be sent with the next step:

    start -> JS instrumentation -> username -> password

The password step issues the session cookies (ct0 and auth_token).
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from loguru import logger

from helicon.auth.challenge import ChallengeSolver, solve_js_instrumentation
from helicon.auth.cookies import CookieJar, cookie_name, cookie_value
from helicon.auth.scraper import GuestCredentials, discover_guest_credentials
from helicon.client.transport import HttpResponse, Transport
from helicon.constants import ONBOARDING_TASK_URL
from helicon.errors import ChallengeError, HeliconError, LoginError

JS_INSTRUMENTATION_SUBTASK = "LoginJsInstrumentationSubtask"
ENTER_USERNAME_SUBTASK = "LoginEnterUserIdentifierSSO"
ENTER_PASSWORD_SUBTASK = "LoginEnterPassword"

# Flow cookies harvested from onboarding responses, in Cookie header order
FLOW_COOKIE_NAMES = ("att", "guest_id", "__cf_bm")

MAX_LOGIN_ATTEMPTS = 2

START_FLOW_BODY: dict[str, Any] = {
    "input_flow_data": {
        "flow_context": {
            "debug_overrides": {},
            "start_location": {"location": "manual_link"},
        }
    }
}


class FlowState(Enum):
    """Progress of a login flow."""

    INIT = "init"
    STARTED = "started"
    CHALLENGE_SOLVED = "challenge_solved"
    USERNAME_SUBMITTED = "username_submitted"
    PASSWORD_SUBMITTED = "password_submitted"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class Subtask:
    """A pending onboarding subtask."""

    subtask_id: str
    url: str = ""
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Subtask":
        js_instrumentation = data.get("js_instrumentation") or {}
        return cls(
            subtask_id=str(data.get("subtask_id", "")),
            url=str(js_instrumentation.get("url", "")),
            payload=data,
        )


@dataclass
class SessionLines:
    """Raw Set-Cookie lines issued by the password step."""

    csrf_token: str = ""
    auth_token: str = ""


@dataclass
class LoginFlow:
    """State of one login attempt. Never outlives the attempt."""

    anonymous_bearer: str
    guest_token: str
    user_agent: str
    flow_token: str = ""
    subtasks: list[Subtask] = field(default_factory=list)
    cookies: CookieJar = field(default_factory=CookieJar)
    state: FlowState = FlowState.INIT

    def __post_init__(self) -> None:
        if "gt" not in self.cookies:
            self.cookies.set("gt", self.guest_token)

    def harvest_cookies(self, set_cookies: list[str]) -> None:
        """Record att, guest_id and __cf_bm from Set-Cookie lines.

        guest_id is replayed under guest_id_ads and guest_id_marketing as well,
        matching what the web client sends.
        """
        found = {cookie_name(line): cookie_value(line) for line in set_cookies}
        for name in FLOW_COOKIE_NAMES:
            if name not in found:
                continue
            if name == "guest_id":
                for alias in ("guest_id_ads", "guest_id_marketing", "guest_id"):
                    self.cookies.set(alias, found[name])
            else:
                self.cookies.set(name, found[name])

    def headers(self) -> dict[str, str]:
        """Build the common onboarding request headers."""
        return {
            "authorization": self.anonymous_bearer,
            "user-agent": self.user_agent,
            "x-twitter-active-user": "yes",
            "x-twitter-client-language": "en",
            "x-guest-token": self.guest_token,
            "cookie": self.cookies.to_header(),
            "content-type": "application/json",
        }

    def challenge_subtask(self) -> Subtask:
        """Return the JS instrumentation subtask of the current step."""
        for subtask in self.subtasks:
            if subtask.subtask_id == JS_INSTRUMENTATION_SUBTASK and subtask.url:
                return subtask
        if self.subtasks and self.subtasks[0].url:
            return self.subtasks[0]
        raise LoginError("no JS instrumentation subtask in login flow", stage="start")


def _require_state(flow: LoginFlow, expected: FlowState, stage: str) -> None:
    if flow.state is not expected:
        raise LoginError(
            f"cannot run {stage} in state {flow.state.value}, expected {expected.value}",
            stage=stage,
        )


async def _post_task(
    transport: Transport,
    flow: LoginFlow,
    stage: str,
    body: dict[str, Any],
    params: dict[str, str] | None = None,
) -> HttpResponse:
    """POST one onboarding step and advance the flow token."""
    logger.debug("onboarding step {}", stage)
    response = await transport.post(
        ONBOARDING_TASK_URL, headers=flow.headers(), json=body, params=params
    )
    if response.status != 200:
        raise LoginError(
            f"unexpected status from {ONBOARDING_TASK_URL}",
            stage=stage,
            status=response.status,
            body=response.text,
        )
    try:
        data = response.json()
    except ValueError as exc:
        raise LoginError(
            f"failed to decode response: {exc}", stage=stage, status=response.status, body=response.text
        ) from exc
    flow_token = data.get("flow_token") if isinstance(data, dict) else None
    if not flow_token:
        raise LoginError(
            "response carries no flow_token", stage=stage, status=response.status, body=response.text
        )
    flow.flow_token = flow_token
    flow.subtasks = [Subtask.from_json(item) for item in data.get("subtasks") or []]
    flow.harvest_cookies(response.set_cookies)
    return response


async def start_login_flow(
    transport: Transport, guest: GuestCredentials, user_agent: str
) -> LoginFlow:
    """Open a login flow with the anonymous credentials."""
    flow = LoginFlow(
        anonymous_bearer=guest.anonymous_bearer,
        guest_token=guest.guest_token,
        user_agent=user_agent,
    )
    await _post_task(transport, flow, "start", START_FLOW_BODY, params={"flow_name": "login"})
    flow.state = FlowState.STARTED
    return flow


async def submit_js_challenge(
    transport: Transport, flow: LoginFlow, solver: ChallengeSolver
) -> None:
    """Solve the instrumentation challenge and submit the captured payload.

    The payload is sent as a JSON string, exactly as the script produced it.
    """
    _require_state(flow, FlowState.STARTED, "submit_challenge")
    subtask = flow.challenge_subtask()
    payload = await solve_js_instrumentation(transport, subtask.url, flow.user_agent, solver)
    try:
        json.loads(payload)
    except ValueError as exc:
        raise ChallengeError(f"failed to decode challenge solution: {exc}. raw body: {payload}") from exc

    body = {
        "flow_token": flow.flow_token,
        "subtask_inputs": [
            {
                "subtask_id": JS_INSTRUMENTATION_SUBTASK,
                "js_instrumentation": {"response": payload, "link": "next_link"},
            }
        ],
    }
    await _post_task(transport, flow, "submit_challenge", body)
    flow.state = FlowState.CHALLENGE_SOLVED


async def submit_username(transport: Transport, flow: LoginFlow, username: str) -> None:
    """Submit the user identifier."""
    _require_state(flow, FlowState.CHALLENGE_SOLVED, "submit_username")
    body = {
        "flow_token": flow.flow_token,
        "subtask_inputs": [
            {
                "subtask_id": ENTER_USERNAME_SUBTASK,
                "settings_list": {
                    "setting_responses": [
                        {
                            "key": "user_identifier",
                            "response_data": {"text_data": {"result": username}},
                        }
                    ],
                    "link": "next_link",
                },
            }
        ],
    }
    await _post_task(transport, flow, "submit_username", body)
    flow.state = FlowState.USERNAME_SUBMITTED


async def submit_password(transport: Transport, flow: LoginFlow, password: str) -> SessionLines:
    """Submit the password and capture the raw session cookie lines."""
    _require_state(flow, FlowState.USERNAME_SUBMITTED, "submit_password")
    body = {
        "flow_token": flow.flow_token,
        "subtask_inputs": [
            {
                "subtask_id": ENTER_PASSWORD_SUBTASK,
                "enter_password": {"password": password, "link": "next_link"},
            }
        ],
    }
    response = await _post_task(transport, flow, "submit_password", body)
    flow.state = FlowState.PASSWORD_SUBMITTED

    lines = SessionLines()
    for raw in response.set_cookies:
        name = cookie_name(raw)
        if name == "ct0":
            lines.csrf_token = raw
        elif name == "auth_token":
            lines.auth_token = raw
    return lines


async def run_login_flow(
    transport: Transport,
    username: str,
    password: str,
    user_agent: str,
    solver: ChallengeSolver,
) -> tuple[str, SessionLines]:
    """Run one full login attempt.

    Returns:
        The anonymous bearer used for the attempt and the session cookie
        lines issued by the password step (possibly empty).
    """
    guest = await discover_guest_credentials(transport)
    flow = await start_login_flow(transport, guest, user_agent)
    try:
        await submit_js_challenge(transport, flow, solver)
        await submit_username(transport, flow, username)
        lines = await submit_password(transport, flow, password)
    except HeliconError:
        flow.state = FlowState.FAILED
        raise
    flow.state = FlowState.COMPLETE
    return guest.anonymous_bearer, lines


async def login(
    transport: Transport,
    username: str,
    password: str,
    user_agent: str,
    solver: ChallengeSolver,
) -> tuple[str, SessionLines]:
    """Log in, restarting the flow once if no ct0 cookie was issued.

    The Service occasionally completes the password step but logs the new
    session out again; a fresh flow usually succeeds.

    Raises:
        LoginError: If any step fails or no session cookies are issued after
            the restart.
    """
    for attempt in range(1, MAX_LOGIN_ATTEMPTS + 1):
        bearer, lines = await run_login_flow(transport, username, password, user_agent, solver)
        if lines.csrf_token:
            if not lines.auth_token:
                raise LoginError("no auth_token cookie issued", stage="submit_password")
            logger.info("logged in as {}", username)
            return bearer, lines
        if attempt < MAX_LOGIN_ATTEMPTS:
            logger.warning("login flow completed without a ct0 cookie, restarting the flow")
    raise LoginError("no session cookies issued", stage="submit_password")
