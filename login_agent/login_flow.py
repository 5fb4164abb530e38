import sys
from pathlib import Path
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from browser import BrowserController
from config import (
    NAVIGATION_TIMEOUT_MS,
    SELECTOR_TIMEOUT_MS,
    SETTLE_DELAY_MS,
    SUBMIT_NAVIGATION_TIMEOUT_MS,
    TYPE_DELAY_RANGE_MS,
    RunContext,
)
from dom_parser import extract_error_text
from errors import FormInteractionError, LoginAgentError, NavigationError, SubmissionError
from locators import PASSWORD_SELECTORS, USERNAME_SELECTORS, click_submit, first_matching
from metrics import StageTracker
from outcome import FailureOutcome, Outcome, SuccessOutcome, classify_outcome
from turnstile import ChallengeResolver

SHOT_INITIAL = "login-initial.png"
SHOT_FILLED = "login-filled.png"
SHOT_CHALLENGE = "login-challenge.png"
SHOT_SUCCESS = "login-success.png"
SHOT_AMBIGUOUS = "login-ambiguous.png"
SHOT_FAILURE = "login-failure.png"


class LoginOrchestrator:
    """Runs one login attempt end to end and returns exactly one Outcome."""

    def __init__(self, browser: Optional[BrowserController] = None, tracker: Optional[StageTracker] = None, resolver_factory=None):
        self.browser = browser or BrowserController()
        self.tracker = tracker or StageTracker()
        self.resolver_factory = resolver_factory or ChallengeResolver
        self.artifacts: list[Path] = []

    async def run(self, context: RunContext) -> Outcome:
        """Acquire the browser, attempt the login, always release the browser."""
        try:
            await self.browser.start(headless=context.headless)
            outcome = await self._attempt(context)
        except Exception as exc:
            # Only browser launch can get here; _attempt converts its own errors.
            outcome = self._failure(exc, screenshot=None)
        finally:
            await self._close_browser()
            self.tracker.print_summary()

        if isinstance(outcome, SuccessOutcome):
            self.discard_artifacts()
        return outcome

    async def _attempt(self, context: RunContext) -> Outcome:
        stage = None
        try:
            stage = "open login page"
            self.tracker.start_stage(stage)
            await self._open_login_page(context)
            self.tracker.end_stage(stage, success=True)

            stage = "fill credentials"
            self.tracker.start_stage(stage)
            await self._fill_credentials(context)
            self.tracker.end_stage(stage, success=True)

            stage = "resolve challenge"
            self.tracker.start_stage(stage)
            resolver = self.resolver_factory(self.browser, mirror_field=context.token_mirror_field)
            await resolver.resolve()
            await self._checkpoint(context, SHOT_CHALLENGE)
            self.tracker.end_stage(stage, success=True)

            stage = "submit"
            self.tracker.start_stage(stage)
            await self._submit()
            self.tracker.end_stage(stage, success=True)

            stage = "classify"
            self.tracker.start_stage(stage)
            url = await self.browser.get_url()
            title = await self.browser.get_title()
            error_text = extract_error_text(await self.browser.get_html())
            print(f"  Current URL: {url}\n  Page title: {title}", flush=True)
            outcome = classify_outcome(url, title, error_text)
            self.tracker.end_stage(stage, success=True)
        except Exception as exc:
            if stage:
                self.tracker.end_stage(stage, success=False, error=str(exc))
            shot = await self._checkpoint(context, SHOT_FAILURE, full_page=True)
            return self._failure(exc, screenshot=shot)

        if isinstance(outcome, SuccessOutcome):
            await self._checkpoint(context, SHOT_SUCCESS)
            return outcome
        shot = await self._checkpoint(context, SHOT_AMBIGUOUS, full_page=True)
        return outcome.model_copy(update={"screenshot": shot})

    async def _open_login_page(self, context: RunContext) -> None:
        print(f"Opening login page: {context.target_url}", flush=True)
        try:
            await self.browser.goto(context.target_url, timeout_ms=NAVIGATION_TIMEOUT_MS)
        except PlaywrightError as exc:
            raise NavigationError(f"Could not load {context.target_url}: {exc}") from exc
        await self._checkpoint(context, SHOT_INITIAL)

    async def _fill_credentials(self, context: RunContext) -> None:
        print("Filling in credentials...", flush=True)
        username_sel = await first_matching(self.browser, "username", USERNAME_SELECTORS, timeout=SELECTOR_TIMEOUT_MS)
        await self._type_into("username", username_sel, context.username)
        password_sel = await first_matching(self.browser, "password", PASSWORD_SELECTORS, timeout=SELECTOR_TIMEOUT_MS)
        await self._type_into("password", password_sel, context.password)
        await self._checkpoint(context, SHOT_FILLED)

    async def _type_into(self, field: str, selector: str, text: str) -> None:
        try:
            await self.browser.type_text(selector, text, TYPE_DELAY_RANGE_MS, timeout=SELECTOR_TIMEOUT_MS)
        except PlaywrightError as exc:
            raise FormInteractionError(field, [selector]) from exc

    async def _submit(self) -> None:
        print("Submitting login form...", flush=True)
        try:
            clicked = await click_submit(self.browser)
        except PlaywrightError as exc:
            raise SubmissionError(f"Submit click failed: {exc}") from exc
        if clicked is None:
            raise SubmissionError("No submit control found on the login page")
        if clicked == "fallback":
            print("  WARNING: no labelled submit button, clicked first submit control", flush=True)

        print("Waiting for post-login navigation...", flush=True)
        navigated = await self.browser.wait_for_navigation(timeout=SUBMIT_NAVIGATION_TIMEOUT_MS)
        if not navigated:
            print("  WARNING: navigation timed out, login may still have succeeded", flush=True)
        await self.browser.wait(SETTLE_DELAY_MS)

    async def _checkpoint(self, context: RunContext, name: str, full_page: bool = False) -> Optional[str]:
        """Save a screenshot; failures are reported and never affect the run."""
        path = context.screenshot_path(name)
        try:
            await self.browser.screenshot(path, full_page=full_page)
        except Exception as exc:
            print(f"  WARNING: screenshot {name} not saved: {exc}", flush=True)
            return None
        self.artifacts.append(path)
        return str(path)

    def discard_artifacts(self) -> None:
        for path in self.artifacts:
            path.unlink(missing_ok=True)
        self.artifacts = []

    async def _close_browser(self) -> None:
        try:
            await self.browser.stop()
        except Exception as exc:
            print(f"  WARNING: browser did not close cleanly: {exc}", file=sys.stderr, flush=True)
        else:
            print("Browser closed.", flush=True)

    def _failure(self, exc: Exception, screenshot: Optional[str]) -> FailureOutcome:
        kind = exc.kind if isinstance(exc, LoginAgentError) else type(exc).__name__
        print(f"ERROR: login failed: {kind}: {exc}", file=sys.stderr, flush=True)
        return FailureOutcome(error_kind=kind, message=str(exc), screenshot=screenshot)
