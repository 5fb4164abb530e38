import asyncio
import argparse
import sys

from config import MAX_RUN_SECONDS, load_run_context
from errors import ConfigurationError
from login_flow import LoginOrchestrator
from notifier import TelegramNotifier
from outcome import AmbiguousOutcome, FailureOutcome, SuccessOutcome
from reporter import OutcomeReporter

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_AMBIGUOUS = 3


def exit_code_for(outcome) -> int:
    if isinstance(outcome, SuccessOutcome):
        return EXIT_SUCCESS
    if isinstance(outcome, AmbiguousOutcome):
        return EXIT_AMBIGUOUS
    return EXIT_FAILURE


async def main(headless: bool | None = None, orchestrator: LoginOrchestrator | None = None, notifier=None) -> int:
    try:
        context = load_run_context(headless=headless)
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr, flush=True)
        print("  Set them in the environment or in a .env file at the project root", file=sys.stderr, flush=True)
        return EXIT_CONFIG

    print("Turnstile login run", flush=True)
    print(f"Target: {context.target_url}", flush=True)
    print(f"Time limit: {MAX_RUN_SECONDS}s", flush=True)
    print(f"Headless: {context.headless}", flush=True)
    print("-" * 50, flush=True)

    orchestrator = orchestrator or LoginOrchestrator()
    try:
        outcome = await asyncio.wait_for(orchestrator.run(context), timeout=MAX_RUN_SECONDS)
    except asyncio.TimeoutError:
        print(f"\nTIMEOUT: Exceeded {MAX_RUN_SECONDS}s limit", file=sys.stderr, flush=True)
        outcome = FailureOutcome(
            error_kind="RunTimeoutError",
            message=f"Login run exceeded {MAX_RUN_SECONDS}s",
        )

    notifier = notifier or TelegramNotifier(context.telegram_bot_token, context.telegram_chat_id)
    reporter = OutcomeReporter(notifier, account=context.username, timezone=context.timezone)
    await reporter.report(outcome)
    return exit_code_for(outcome)


def cli() -> None:
    # Force unbuffered output
    sys.stdout.reconfigure(line_buffering=True)
    sys.stderr.reconfigure(line_buffering=True)

    parser = argparse.ArgumentParser(description="Log in through a Cloudflare Turnstile page and report the result")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        default=None,
        help="Run browser in headless mode (overrides HEADLESS)"
    )
    group.add_argument(
        "--headed",
        dest="headless",
        action="store_false",
        help="Show the browser window (overrides HEADLESS)"
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(main(headless=args.headless)))


if __name__ == "__main__":
    cli()
