import asyncio
import random

import pytest
from unittest.mock import AsyncMock


def test_browser_controller_init():
    from browser import BrowserController
    controller = BrowserController()
    assert controller is not None
    assert controller.browser is None
    assert controller.page is None


def test_browser_controller_has_methods():
    from browser import BrowserController
    controller = BrowserController()
    for name in ('start', 'stop', 'goto', 'screenshot', 'get_html', 'get_url', 'get_title',
                 'is_visible', 'type_text', 'execute_js', 'wait_for_selector', 'wait_for_navigation', 'wait'):
        assert callable(getattr(controller, name))


def test_stop_without_start_is_safe():
    from browser import BrowserController
    controller = BrowserController()
    asyncio.run(controller.stop())
    assert controller.page is None


def test_type_text_pauses_within_range():
    from browser import BrowserController
    controller = BrowserController(rng=random.Random(3))
    controller.page = AsyncMock()

    asyncio.run(controller.type_text("#email", "abc", (40, 120)))

    typed = [c.args[0] for c in controller.page.keyboard.type.await_args_list]
    assert typed == ["a", "b", "c"]
    delays = [c.args[0] for c in controller.page.wait_for_timeout.await_args_list]
    assert len(delays) == 3
    assert all(40 <= d <= 120 for d in delays)
    controller.page.click.assert_awaited_once_with("#email", timeout=5000)


def test_wait_for_selector_returns_false_on_timeout():
    from browser import BrowserController
    controller = BrowserController()
    controller.page = AsyncMock()
    controller.page.wait_for_selector.side_effect = Exception("Timeout 10000ms exceeded")
    assert asyncio.run(controller.wait_for_selector("#missing", timeout=10)) is False


def test_wait_uses_page_timer():
    from browser import BrowserController
    controller = BrowserController()
    controller.page = AsyncMock()
    asyncio.run(controller.wait(1500))
    controller.page.wait_for_timeout.assert_awaited_once_with(1500)


def test_screenshot_creates_directory(tmp_path):
    from browser import BrowserController
    controller = BrowserController()
    controller.page = AsyncMock()
    target = tmp_path / "shots" / "login-initial.png"
    asyncio.run(controller.screenshot(target, full_page=True))
    assert target.parent.is_dir()
    controller.page.screenshot.assert_awaited_once_with(path=str(target), full_page=True, type="png")


def test_execute_js_passes_argument():
    from browser import BrowserController
    controller = BrowserController()
    controller.page = AsyncMock()
    controller.page.evaluate.return_value = 42
    assert asyncio.run(controller.execute_js("(x) => x * 2", 21)) == 42
    controller.page.evaluate.assert_awaited_once_with("(x) => x * 2", 21)
