import random
from pathlib import Path
from typing import Any

from playwright.async_api import async_playwright, Page, Browser

from config import USER_AGENT

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--window-size=1280,720",
]

# Superficial fingerprint tweaks only; nothing here defeats real bot detection.
STEALTH_INIT_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
    Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
    if (!window.chrome) { window.chrome = { runtime: {} }; }
"""


class BrowserController:
    def __init__(self, rng: random.Random | None = None):
        self.browser: Browser | None = None
        self.context = None
        self.page: Page | None = None
        self.playwright = None
        self.rng = rng or random.Random()

    async def start(self, headless: bool = True) -> None:
        """Launch Chromium and open a blank page."""
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(headless=headless, args=LAUNCH_ARGS)
        self.context = await self.browser.new_context(
            viewport={"width": 1280, "height": 720},
            user_agent=USER_AGENT,
        )
        self.page = await self.context.new_page()
        await self.page.add_init_script(STEALTH_INIT_SCRIPT)

    async def stop(self) -> None:
        """Close browser and stop Playwright."""
        if self.browser:
            await self.browser.close()
            self.browser = None
        if self.playwright:
            await self.playwright.stop()
            self.playwright = None
        self.context = None
        self.page = None

    async def goto(self, url: str, timeout_ms: int) -> None:
        """Navigate and wait for the network to go idle."""
        await self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)

    async def screenshot(self, path: Path | str, full_page: bool = False) -> bytes:
        """Take screenshot of current page and save it to path."""
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        return await self.page.screenshot(path=str(path), full_page=full_page, type="png")

    async def get_html(self) -> str:
        """Get page HTML."""
        return await self.page.content()

    async def get_url(self) -> str:
        """Get current URL."""
        return self.page.url

    async def get_title(self) -> str:
        return await self.page.title()

    async def is_visible(self, selector: str) -> bool:
        return await self.page.is_visible(selector)

    async def type_text(self, selector: str, text: str, delay_range_ms: tuple[int, int] = (40, 120), timeout: int = 5000) -> None:
        """Type one character at a time with a randomized pause between keys."""
        low, high = delay_range_ms
        await self.page.click(selector, timeout=timeout)
        for char in text:
            await self.page.keyboard.type(char)
            await self.page.wait_for_timeout(self.rng.uniform(low, high))

    async def wait_for_navigation(self, timeout: int = 5000) -> bool:
        """Wait for navigation to complete."""
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout)
            return True
        except Exception:
            return False

    async def wait(self, ms: int) -> None:
        await self.page.wait_for_timeout(ms)

    async def execute_js(self, script: str, arg: Any = None) -> Any:
        """Execute JavaScript on page."""
        if arg is None:
            return await self.page.evaluate(script)
        return await self.page.evaluate(script, arg)

    async def wait_for_selector(self, selector: str, timeout: int = 5000) -> bool:
        """Wait for element to appear."""
        try:
            await self.page.wait_for_selector(selector, timeout=timeout)
            return True
        except Exception:
            return False
