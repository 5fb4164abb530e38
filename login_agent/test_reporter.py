import asyncio
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock

from errors import NotificationDeliveryError
from outcome import AmbiguousOutcome, FailureOutcome, SuccessOutcome
from reporter import OutcomeReporter, escape_markdown, redact_account

FIXED = datetime(2024, 5, 1, 16, 30, 0, tzinfo=timezone.utc)


def make_reporter(notifier=None, account="alice@example.com"):
    return OutcomeReporter(notifier or AsyncMock(), account=account, timezone="Asia/Shanghai", clock=lambda: FIXED)


@pytest.mark.parametrize("account,expected", [
    ("alice@example.com", "al***@example.com"),
    ("bob", "bo***"),
    ("al@example.com", "***@example.com"),
    ("", "***"),
])
def test_redact_account(account, expected):
    assert redact_account(account) == expected


def test_escape_markdown():
    assert escape_markdown("a_b*c`d[e") == "a\\_b\\*c\\`d\\[e"


def test_success_template_redacts_account_and_localizes_time():
    text = make_reporter().render(SuccessOutcome(url="https://site/dashboard", title="Dashboard"))
    assert text.startswith("*✅ Login succeeded*")
    assert "Time: 2024-05-02 00:30:00" in text
    assert "al\\*\\*\\*@example.com" in text
    assert "alice@example.com" not in text
    assert "Title: Dashboard" in text


def test_ambiguous_template_includes_diagnostics():
    outcome = AmbiguousOutcome(
        url="https://site/login", title="Sign In", error_text="Wrong password", screenshot="login-ambiguous.png"
    )
    text = make_reporter().render(outcome)
    assert "Login status unconfirmed" in text
    assert "Still on a login page" in text
    assert "Page error: Wrong password" in text
    assert "Screenshot: login-ambiguous.png" in text
    assert "alice@example.com" not in text


def test_failure_template_keeps_full_account():
    outcome = FailureOutcome(error_kind="NavigationError", message="Timeout 30000ms exceeded", screenshot="login-failure.png")
    text = make_reporter().render(outcome)
    assert "*❌ Login failed*" in text
    assert "Account: alice@example.com" in text
    assert "Error kind: NavigationError" in text
    assert "Screenshot saved: login-failure.png" in text


def test_report_delivers_once():
    notifier = AsyncMock()
    assert asyncio.run(make_reporter(notifier).report(SuccessOutcome(url="u", title="t"))) is True
    notifier.deliver.assert_awaited_once()


def test_report_swallows_delivery_errors():
    notifier = AsyncMock()
    notifier.deliver.side_effect = NotificationDeliveryError("Telegram down")
    outcome = FailureOutcome(error_kind="ChallengeError", message="no token")

    assert asyncio.run(make_reporter(notifier).report(outcome)) is False
    notifier.deliver.assert_awaited_once()
