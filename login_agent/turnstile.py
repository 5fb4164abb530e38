"""Cloudflare Turnstile handling: jittered click, then poll for the token."""

import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from playwright.async_api import Error as PlaywrightError

from config import (
    CLICK_JITTER_PX,
    CONTAINER_TIMEOUT_MS,
    MIN_TOKEN_LENGTH,
    TOKEN_POLL_ATTEMPTS,
    TOKEN_POLL_INTERVAL_MS,
)
from errors import ChallengeError, ChallengeFailure
from outcome import is_valid_token

if TYPE_CHECKING:
    from browser import BrowserController


CONTAINER_SELECTOR = '[class*="turnstile"], iframe[src*="challenges.cloudflare.com"]'

CONTAINER_BOX_JS = """
    () => {
        const frame = document.querySelector('iframe[src*="challenges.cloudflare.com"]');
        const container = document.querySelector('.cf-turnstile')
            || (frame && frame.parentElement)
            || document.querySelector('[class*="turnstile"]');
        if (!container) return null;
        const rect = container.getBoundingClientRect();
        return {x: rect.left, y: rect.top, width: rect.width, height: rect.height};
    }
"""

DISPATCH_CLICK_JS = """
    ({x, y}) => {
        const frame = document.querySelector('iframe[src*="challenges.cloudflare.com"]');
        const container = document.querySelector('.cf-turnstile')
            || (frame && frame.parentElement)
            || document.querySelector('[class*="turnstile"]');
        if (!container) return false;
        for (const type of ['mousedown', 'mouseup', 'click']) {
            container.dispatchEvent(new MouseEvent(type, {
                view: window, bubbles: true, cancelable: true, clientX: x, clientY: y,
            }));
        }
        return true;
    }
"""

TOKEN_PROBE_JS = """
    () => {
        const fields = [
            document.querySelector('textarea[name="cf-turnstile-response"]'),
            document.querySelector('input[name="cf-turnstile-response"]'),
        ].filter(Boolean);
        let best = '';
        for (const f of fields) {
            if (f.value && f.value.length > best.length) best = f.value;
        }
        return {token: best || null, field_exists: fields.length > 0, length: best.length};
    }
"""

INTERACTIVE_MARKERS_JS = """
    () => document.querySelector('#challenge-running') !== null
        || document.querySelector('.challenge-form') !== null
"""

MIRROR_TOKEN_JS = """
    ({name, token}) => {
        let field = document.querySelector(`[name="${name}"]`);
        if (!field) {
            const form = document.querySelector('form') || document.body;
            field = document.createElement('input');
            field.type = 'hidden';
            field.name = name;
            form.appendChild(field);
        }
        field.value = token;
        return true;
    }
"""


class ChallengeState(str, Enum):
    UNRESOLVED = "unresolved"
    TOKEN_ACQUIRED = "token_acquired"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass
class StepResult:
    """Result of a step whose failure is logged and skipped; terminal failures raise ChallengeError."""

    ok: bool
    message: Optional[str] = None


@dataclass(frozen=True)
class ClickPoint:
    x: float
    y: float


def pick_click_point(box: dict, jitter_px: float, rng: random.Random) -> ClickPoint:
    """Pick a point around the box center, offset by up to ``jitter_px`` each way."""
    center_x = box["x"] + box["width"] / 2
    center_y = box["y"] + box["height"] / 2
    return ClickPoint(
        x=center_x + rng.uniform(-jitter_px, jitter_px),
        y=center_y + rng.uniform(-jitter_px, jitter_px),
    )


class ChallengeResolver:
    def __init__(
        self,
        browser: "BrowserController",
        *,
        poll_attempts: int = TOKEN_POLL_ATTEMPTS,
        poll_interval_ms: int = TOKEN_POLL_INTERVAL_MS,
        min_token_length: int = MIN_TOKEN_LENGTH,
        jitter_px: float = CLICK_JITTER_PX,
        container_timeout_ms: int = CONTAINER_TIMEOUT_MS,
        mirror_field: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        self.browser = browser
        self.poll_attempts = poll_attempts
        self.poll_interval_ms = poll_interval_ms
        self.min_token_length = min_token_length
        self.jitter_px = jitter_px
        self.container_timeout_ms = container_timeout_ms
        self.mirror_field = mirror_field
        self.rng = rng or random.Random()

        self.state = ChallengeState.UNRESOLVED
        self.attempts = 0
        self.last_click: Optional[ClickPoint] = None
        self.notes: list[StepResult] = []

    async def resolve(self) -> str:
        """Drive the challenge and return the verification token.

        Raises ChallengeError when no valid token shows up within the poll
        bound. There is exactly one click and one polling pass per call.
        """
        print("Resolving Cloudflare Turnstile...", flush=True)
        try:
            self._note(await self._locate_container())
            self._note(await self._click_container())
            token, probe = await self._poll_token()
            if token is None:
                await self._raise_unsolved(probe)
            if self.mirror_field:
                await self.browser.execute_js(MIRROR_TOKEN_JS, {"name": self.mirror_field, "token": token})
        except PlaywrightError as exc:
            self.state = ChallengeState.FAILED
            raise ChallengeError(ChallengeFailure.UNRESOLVED, f"Challenge could not be driven: {exc}") from exc

        self.state = ChallengeState.TOKEN_ACQUIRED
        print(f"  Turnstile token acquired after {self.attempts} poll(s) ({len(token)} chars)", flush=True)
        return token

    def _note(self, result: StepResult) -> None:
        self.notes.append(result)
        if not result.ok:
            print(f"  WARNING: {result.message}, continuing", flush=True)

    async def _locate_container(self) -> StepResult:
        found = await self.browser.wait_for_selector(CONTAINER_SELECTOR, timeout=self.container_timeout_ms)
        if found:
            return StepResult(ok=True)
        return StepResult(ok=False, message=f"Turnstile container not found within {self.container_timeout_ms}ms")

    async def _click_container(self) -> StepResult:
        box = await self.browser.execute_js(CONTAINER_BOX_JS)
        if not box or not box.get("width") or not box.get("height"):
            return StepResult(ok=False, message="Turnstile container has no bounding box, click skipped")

        point = pick_click_point(box, self.jitter_px, self.rng)
        self.last_click = point
        dispatched = await self.browser.execute_js(DISPATCH_CLICK_JS, {"x": point.x, "y": point.y})
        print(f"  Simulated click at ({round(point.x)}, {round(point.y)})", flush=True)
        return StepResult(ok=bool(dispatched), message=None if dispatched else "Click dispatch found no container")

    async def _poll_token(self) -> tuple[Optional[str], dict]:
        probe: dict = {}
        for attempt in range(1, self.poll_attempts + 1):
            self.attempts = attempt
            probe = await self.browser.execute_js(TOKEN_PROBE_JS) or {}
            token = probe.get("token")
            if is_valid_token(token, self.min_token_length):
                return token, probe
            if attempt < self.poll_attempts:
                await self.browser.wait(self.poll_interval_ms)
        return None, probe

    async def _raise_unsolved(self, probe: dict) -> None:
        diagnostics = {
            "field_exists": bool(probe.get("field_exists")),
            "observed_length": int(probe.get("length") or 0),
            "attempts": self.attempts,
        }
        if await self.browser.execute_js(INTERACTIVE_MARKERS_JS):
            self.state = ChallengeState.FAILED
            raise ChallengeError(
                ChallengeFailure.INTERACTIVE_DETECTED,
                "Interactive challenge detected; no token was issued",
                **diagnostics,
            )
        self.state = ChallengeState.TIMED_OUT
        raise ChallengeError(
            ChallengeFailure.TIMED_OUT,
            "Turnstile token not issued in time; verification may have failed",
            **diagnostics,
        )
