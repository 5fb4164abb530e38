"""Turns a run's Outcome into a chat message and sends it."""

import re
import sys
from datetime import datetime, timezone as dt_timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from config import DEFAULT_TIMEZONE
from errors import NotificationDeliveryError
from outcome import AmbiguousOutcome, FailureOutcome, Outcome, SuccessOutcome

MARKDOWN_SPECIAL = re.compile(r'([_*`\[])')
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def escape_markdown(value: str) -> str:
    """Escape characters Telegram's legacy Markdown treats as markup."""
    return MARKDOWN_SPECIAL.sub(r'\\\1', value or "")


def redact_account(account: str) -> str:
    """Keep the first two characters and any email domain: al***@example.com."""
    local, sep, domain = (account or "").partition("@")
    if len(local) <= 2:
        masked = "*" * max(len(local), 3)
    else:
        masked = local[:2] + "***"
    return f"{masked}{sep}{domain}"


class OutcomeReporter:
    def __init__(
        self,
        notifier,
        account: str,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.notifier = notifier
        self.account = account
        self.zone = ZoneInfo(timezone)
        self.clock = clock or (lambda: datetime.now(dt_timezone.utc))

    def timestamp(self) -> str:
        return self.clock().astimezone(self.zone).strftime(TIMESTAMP_FORMAT)

    def render(self, outcome: Outcome) -> str:
        when = self.timestamp()
        if isinstance(outcome, SuccessOutcome):
            lines = [
                "*✅ Login succeeded*",
                "",
                f"Time: {when}",
                f"Account: {escape_markdown(redact_account(self.account))}",
                f"Page: {escape_markdown(outcome.url)}",
                f"Title: {escape_markdown(outcome.title)}",
            ]
        elif isinstance(outcome, AmbiguousOutcome):
            lines = [
                "*⚠️ Login status unconfirmed*",
                "",
                f"Time: {when}",
                f"Account: {escape_markdown(redact_account(self.account))}",
                "Still on a login page",
                f"URL: {escape_markdown(outcome.url)}",
                f"Title: {escape_markdown(outcome.title)}",
            ]
            if outcome.error_text:
                lines.append(f"Page error: {escape_markdown(outcome.error_text)}")
            if outcome.screenshot:
                lines.append(f"Screenshot: {escape_markdown(outcome.screenshot)}")
        elif isinstance(outcome, FailureOutcome):
            # Account is not redacted here; failure diagnostics always carried it in full.
            lines = [
                "*❌ Login failed*",
                "",
                f"Time: {when}",
                f"Account: {escape_markdown(self.account)}",
                f"Error kind: {escape_markdown(outcome.error_kind)}",
                f"Error: {escape_markdown(outcome.message)}",
            ]
            if outcome.screenshot:
                lines.append(f"Screenshot saved: {escape_markdown(outcome.screenshot)}")
        else:
            raise TypeError(f"Unknown outcome type: {type(outcome).__name__}")
        return "\n".join(lines)

    def summary_line(self, outcome: Outcome) -> str:
        if isinstance(outcome, SuccessOutcome):
            return f"RESULT: success - {outcome.url} ({outcome.title})"
        if isinstance(outcome, AmbiguousOutcome):
            extra = f" - page error: {outcome.error_text}" if outcome.error_text else ""
            return f"RESULT: ambiguous - still on login page {outcome.url} ({outcome.title}){extra}"
        return f"RESULT: failure - {outcome.error_kind}: {outcome.message}"

    async def report(self, outcome: Outcome) -> bool:
        """Print the result and make one delivery attempt. Never raises on delivery errors."""
        print(self.summary_line(outcome), flush=True)
        message = self.render(outcome)
        try:
            await self.notifier.deliver(message)
        except NotificationDeliveryError as exc:
            print(f"ERROR: notification not delivered: {exc}", file=sys.stderr, flush=True)
            return False
        print("Notification sent.", flush=True)
        return True
