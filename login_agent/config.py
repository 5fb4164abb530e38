import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from errors import ConfigurationError

# Load .env from project root (parent of login_agent/)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

NAVIGATION_TIMEOUT_MS = 30000
SELECTOR_TIMEOUT_MS = 10000
CONTAINER_TIMEOUT_MS = 10000
TOKEN_POLL_ATTEMPTS = 20
TOKEN_POLL_INTERVAL_MS = 1000
MIN_TOKEN_LENGTH = 10
CLICK_JITTER_PX = 80
TYPE_DELAY_RANGE_MS = (40, 120)
SUBMIT_NAVIGATION_TIMEOUT_MS = 15000
SETTLE_DELAY_MS = 2000
MAX_RUN_SECONDS = 180
DEFAULT_TIMEZONE = "Asia/Shanghai"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_FALSY = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class RunContext:
    """Everything one login run needs, fixed at process start."""

    target_url: str
    username: str
    password: str = field(repr=False)
    telegram_bot_token: str = field(repr=False)
    telegram_chat_id: str
    headless: bool = True
    screenshot_dir: Path = Path(".")
    timezone: str = DEFAULT_TIMEZONE
    token_mirror_field: Optional[str] = None

    def screenshot_path(self, name: str) -> Path:
        return self.screenshot_dir / name


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


def load_run_context(env_file: Optional[Path] = None, *, headless: Optional[bool] = None) -> RunContext:
    """Build the RunContext from the environment.

    Every required variable is checked before returning so a misconfigured
    run fails before a browser is launched. ``headless`` overrides the
    ``HEADLESS`` variable when given.
    """
    if env_file:
        load_dotenv(env_file, override=True)

    values = {
        "WEBSITE_URL": _first_env("WEBSITE_URL"),
        "LOGIN_USERNAME": _first_env("LOGIN_USERNAME", "USERNAME"),
        "LOGIN_PASSWORD": _first_env("LOGIN_PASSWORD", "PASSWORD"),
        "TELEGRAM_BOT_TOKEN": _first_env("TELEGRAM_BOT_TOKEN"),
        "TELEGRAM_CHAT_ID": _first_env("TELEGRAM_CHAT_ID"),
    }
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(missing)

    timezone = _first_env("REPORT_TIMEZONE") or DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(invalid={"REPORT_TIMEZONE": f"unknown time zone {timezone!r}"})

    if headless is None:
        headless = (os.getenv("HEADLESS") or "true").strip().lower() not in _FALSY

    return RunContext(
        target_url=values["WEBSITE_URL"],
        username=values["LOGIN_USERNAME"],
        password=values["LOGIN_PASSWORD"],
        telegram_bot_token=values["TELEGRAM_BOT_TOKEN"],
        telegram_chat_id=values["TELEGRAM_CHAT_ID"],
        headless=headless,
        screenshot_dir=Path(_first_env("SCREENSHOT_DIR") or "."),
        timezone=timezone,
        token_mirror_field=_first_env("TOKEN_MIRROR_FIELD"),
    )
