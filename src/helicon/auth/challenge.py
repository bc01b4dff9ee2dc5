"""JS instrumentation challenge solving in a headless browser.

The Service answers the first login step with a `LoginJsInstrumentationSubtask`
pointing at a script. The script fingerprints the browser environment and
publishes the result by assigning it to the `value` of the hidden form field
named `ui_metrics`. We run the script in a throwaway headless Chromium and
intercept that assignment.
"""

import asyncio
from typing import Any, Protocol

from loguru import logger

from helicon.client.transport import Transport
from helicon.constants import CHALLENGE_CAPTURE_TIMEOUT_MS, CHALLENGE_TIMEOUT_SECONDS
from helicon.errors import ChallengeError

BLANK_DOCUMENT_SCRIPT = (
    'document.open(); document.write("<!DOCTYPE html><html><head></head><body></body></html>"); '
    "document.close();"
)

# getElementsByName is patched before the fetched source is evaluated, so the
# script's first lookup of ui_metrics already hits the synthetic element.
CAPTURE_SCRIPT = """
({ source, timeoutMs }) => new Promise((resolve, reject) => {
    let settled = false;
    const settle = (fn, value) => {
        if (!settled) {
            settled = true;
            fn(value);
        }
    };
    const originalGetElementsByName = document.getElementsByName;
    document.getElementsByName = function (name) {
        if (name === 'ui_metrics') {
            return [{
                set value(val) { settle(resolve, val); },
                get value() { return undefined; },
            }];
        }
        return originalGetElementsByName.apply(this, arguments);
    };
    try {
        (0, eval)(source);
    } catch (e) {
        settle(reject, new Error('Error during eval: ' + e + (e && e.stack ? '\\n' + e.stack : '')));
    }
    setTimeout(() => {
        settle(reject, new Error('Promise timed out waiting for ui_metrics.value to be set'));
    }, timeoutMs);
})
"""


class ChallengeSolver(Protocol):
    """Evaluates an instrumentation script and returns the captured payload."""

    async def evaluate(self, script_source: str, user_agent: str, timeout: float) -> str: ...


class PlaywrightChallengeSolver:
    """Challenge solver backed by a single-use headless Chromium."""

    def __init__(self, capture_timeout_ms: int = CHALLENGE_CAPTURE_TIMEOUT_MS) -> None:
        self.capture_timeout_ms = capture_timeout_ms

    async def evaluate(
        self,
        script_source: str,
        user_agent: str,
        timeout: float = CHALLENGE_TIMEOUT_SECONDS,
    ) -> str:
        """Run the script and return the value it writes to ui_metrics.

        Raises:
            ChallengeError: If the browser fails, the script throws, nothing is
                captured in time, or the captured value is not a non-empty string.
        """
        try:
            result = await asyncio.wait_for(self._run(script_source, user_agent), timeout)
        except TimeoutError as exc:
            raise ChallengeError(f"script evaluation timed out after {timeout}s") from exc
        return ensure_payload(result)

    async def _run(self, script_source: str, user_agent: str) -> Any:
        from playwright.async_api import Error as PlaywrightError
        from playwright.async_api import async_playwright

        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch(
                    headless=True,
                    args=["--disable-gpu", "--no-sandbox"],
                )
                try:
                    context = await browser.new_context(user_agent=user_agent)
                    page = await context.new_page()
                    await page.goto("about:blank")
                    await page.evaluate(BLANK_DOCUMENT_SCRIPT)
                    return await page.evaluate(
                        CAPTURE_SCRIPT,
                        {"source": script_source, "timeoutMs": self.capture_timeout_ms},
                    )
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            raise ChallengeError(f"script evaluation failed: {exc.message}") from exc


def ensure_payload(result: Any) -> str:
    """Validate the value captured from the challenge script."""
    if not isinstance(result, str):
        raise ChallengeError(
            f"script evaluation did not return a string, got {type(result).__name__}: {result!r}"
        )
    if not result:
        raise ChallengeError("script evaluation returned an empty string, expected non-empty JSON")
    return result


async def solve_js_instrumentation(
    transport: Transport,
    script_url: str,
    user_agent: str,
    solver: ChallengeSolver,
    timeout: float = CHALLENGE_TIMEOUT_SECONDS,
) -> str:
    """Fetch the instrumentation script and solve it with the given solver."""
    response = await transport.get(script_url)
    if response.status != 200:
        raise ChallengeError(f"unexpected status {response.status} from {script_url}")
    logger.debug("evaluating instrumentation script from {} ({} bytes)", script_url, len(response.body))
    return await solver.evaluate(response.text, user_agent, timeout)
