"""Candidate selectors for the login form, tried in order."""

from typing import TYPE_CHECKING, Sequence

from errors import FormInteractionError

if TYPE_CHECKING:
    from browser import BrowserController


USERNAME_SELECTORS = [
    'input[name="email"]',
    "#email",
    'input[type="email"]',
    'input[name="username"]',
    "#username",
]

PASSWORD_SELECTORS = [
    'input[name="password"]',
    "#password",
    'input[type="password"]',
]

SUBMIT_PHRASES = ["Continue", "Sign in", "Log in", "Login"]

# Returns "phrase", "fallback" or null depending on what was clicked.
SUBMIT_CLICK_JS = """
    (phrases) => {
        const buttons = Array.from(document.querySelectorAll('button, input[type="submit"]'));
        const target = buttons.find(btn => {
            const text = (btn.textContent || '') + ' ' + (btn.value || '');
            return phrases.some(phrase => text.includes(phrase));
        });
        if (target) {
            target.click();
            return 'phrase';
        }
        const submit = document.querySelector('button[type="submit"], input[type="submit"]');
        if (submit) {
            submit.click();
            return 'fallback';
        }
        return null;
    }
"""


async def first_matching(
    browser: "BrowserController",
    field: str,
    selectors: Sequence[str],
    timeout: int,
) -> str:
    """Return the first selector in ``selectors`` visible on the page.

    A single bounded wait covers the whole list; once anything is visible, the
    candidates are checked in order so earlier visible entries win. Elements
    that exist but are hidden never count as a match.
    """
    appeared = await browser.wait_for_selector(", ".join(selectors), timeout=timeout)
    if appeared:
        for sel in selectors:
            if await browser.is_visible(sel):
                return sel
    raise FormInteractionError(field, selectors)


async def click_submit(browser: "BrowserController", phrases: Sequence[str] = SUBMIT_PHRASES) -> str | None:
    """Click the best submit control; None when there is nothing to click."""
    return await browser.execute_js(SUBMIT_CLICK_JS, list(phrases))
