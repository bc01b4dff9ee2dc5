"""Tests for JS instrumentation challenge solving with a mocked browser."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest


def _mock_playwright(evaluate_result: Any) -> tuple[MagicMock, MagicMock, MagicMock]:
    """Build an async_playwright() context manager with a scripted page."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.evaluate = AsyncMock(side_effect=[None, evaluate_result])

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=playwright)
    manager.__aexit__ = AsyncMock(return_value=False)
    return manager, browser, page


@pytest.mark.asyncio
async def test_solver_returns_captured_payload() -> None:
    """The value captured from ui_metrics should be returned as is."""
    from helicon.auth.challenge import CAPTURE_SCRIPT, PlaywrightChallengeSolver

    manager, browser, page = _mock_playwright('{"rf":{"a":1},"s":"x"}')

    with patch("playwright.async_api.async_playwright", return_value=manager):
        payload = await PlaywrightChallengeSolver(capture_timeout_ms=1234).evaluate(
            "var x = 1;", "ua/1", timeout=5
        )

    assert payload == '{"rf":{"a":1},"s":"x"}'
    browser.new_context.assert_awaited_once_with(user_agent="ua/1")
    page.goto.assert_awaited_once_with("about:blank")
    script, argument = page.evaluate.await_args_list[1].args
    assert script == CAPTURE_SCRIPT
    assert argument == {"source": "var x = 1;", "timeoutMs": 1234}
    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_solver_launches_headless_chromium() -> None:
    """Chromium should be launched headless without GPU or sandbox."""
    from helicon.auth.challenge import PlaywrightChallengeSolver

    manager, _, _ = _mock_playwright("{}")

    with patch("playwright.async_api.async_playwright", return_value=manager):
        await PlaywrightChallengeSolver().evaluate("", "ua/1", timeout=5)

    playwright = manager.__aenter__.return_value
    playwright.chromium.launch.assert_awaited_once_with(
        headless=True, args=["--disable-gpu", "--no-sandbox"]
    )


@pytest.mark.asyncio
async def test_solver_wraps_browser_errors() -> None:
    """Errors thrown in the page should become ChallengeError."""
    from playwright.async_api import Error as PlaywrightError

    from helicon.auth.challenge import PlaywrightChallengeSolver
    from helicon.errors import ChallengeError

    manager, browser, page = _mock_playwright(None)
    page.evaluate.side_effect = [None, PlaywrightError("Error during eval: ReferenceError")]

    with (
        patch("playwright.async_api.async_playwright", return_value=manager),
        pytest.raises(ChallengeError, match="Error during eval"),
    ):
        await PlaywrightChallengeSolver().evaluate("boom()", "ua/1", timeout=5)

    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_solver_rejects_non_string_result() -> None:
    """A captured value that is not a string should be rejected."""
    from helicon.auth.challenge import PlaywrightChallengeSolver
    from helicon.errors import ChallengeError

    manager, _, _ = _mock_playwright(42)

    with (
        patch("playwright.async_api.async_playwright", return_value=manager),
        pytest.raises(ChallengeError, match="did not return a string"),
    ):
        await PlaywrightChallengeSolver().evaluate("", "ua/1", timeout=5)


@pytest.mark.asyncio
async def test_solver_times_out() -> None:
    """The overall deadline should surface as ChallengeError."""
    from helicon.auth.challenge import PlaywrightChallengeSolver
    from helicon.errors import ChallengeError

    async def never_finishes(script_source: str, user_agent: str) -> str:
        await asyncio.sleep(10)
        return "{}"

    solver = PlaywrightChallengeSolver()
    solver._run = never_finishes  # type: ignore[method-assign]

    with pytest.raises(ChallengeError, match="timed out"):
        await solver.evaluate("", "ua/1", timeout=0.01)


def test_ensure_payload() -> None:
    """Only non-empty strings should be accepted as payloads."""
    from helicon.auth.challenge import ensure_payload
    from helicon.errors import ChallengeError

    assert ensure_payload('{"a":1}') == '{"a":1}'
    with pytest.raises(ChallengeError, match="empty string"):
        ensure_payload("")
    with pytest.raises(ChallengeError, match="NoneType"):
        ensure_payload(None)


@pytest.mark.asyncio
async def test_solve_js_instrumentation_fetches_and_evaluates(
    fake_service: Any, fake_solver: Any
) -> None:
    """The script should be fetched and handed to the solver with the UA."""
    from helicon.auth.challenge import solve_js_instrumentation

    fake_service.challenge_script = "var metrics = 1;"

    async with fake_service.transport() as transport:
        payload = await solve_js_instrumentation(
            transport, "https://x.com/i/js_inst?c_name=ui_metrics", "ua/2", fake_solver
        )

    assert payload == fake_solver.payload
    assert fake_solver.calls == [("var metrics = 1;", "ua/2", 30.0)]


@pytest.mark.asyncio
async def test_solve_js_instrumentation_non_200_raises(fake_solver: Any) -> None:
    """A failed script fetch should not reach the solver."""
    from helicon.auth.challenge import solve_js_instrumentation
    from helicon.client.transport import Transport
    from helicon.errors import ChallengeError

    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(404, text="gone"))
    )

    async with Transport(client=client) as transport:
        with pytest.raises(ChallengeError, match="unexpected status 404"):
            await solve_js_instrumentation(
                transport, "https://x.com/i/js_inst", "ua/1", fake_solver
            )
    await client.aclose()

    assert fake_solver.calls == []


def test_capture_script_contract() -> None:
    """The page function should take the source as an argument and run it globally."""
    from helicon.auth.challenge import CAPTURE_SCRIPT

    assert CAPTURE_SCRIPT.strip().startswith("({ source, timeoutMs }) =>")
    assert "(0, eval)(source)" in CAPTURE_SCRIPT
    assert "name === 'ui_metrics'" in CAPTURE_SCRIPT
    assert "setTimeout(" in CAPTURE_SCRIPT and "}, timeoutMs);" in CAPTURE_SCRIPT
    assert "'Error during eval: ' + e" in CAPTURE_SCRIPT
    assert "Promise timed out waiting for ui_metrics.value to be set" in CAPTURE_SCRIPT
    assert "`" not in CAPTURE_SCRIPT
