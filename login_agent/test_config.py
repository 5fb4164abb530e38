from pathlib import Path

import pytest

from config import DEFAULT_TIMEZONE, load_run_context
from errors import ConfigurationError

REQUIRED = {
    "WEBSITE_URL": "https://site/login",
    "LOGIN_USERNAME": "alice@example.com",
    "LOGIN_PASSWORD": "hunter22",
    "TELEGRAM_BOT_TOKEN": "123:abc",
    "TELEGRAM_CHAT_ID": "42",
}
OPTIONAL = ["USERNAME", "PASSWORD", "HEADLESS", "SCREENSHOT_DIR", "REPORT_TIMEZONE", "TOKEN_MIRROR_FIELD"]


@pytest.fixture
def env(monkeypatch):
    for name in OPTIONAL:
        monkeypatch.delenv(name, raising=False)
    for name, value in REQUIRED.items():
        monkeypatch.setenv(name, value)
    return monkeypatch


def test_loads_required_settings(env):
    context = load_run_context()
    assert context.target_url == "https://site/login"
    assert context.username == "alice@example.com"
    assert context.headless is True
    assert context.screenshot_dir == Path(".")
    assert context.timezone == DEFAULT_TIMEZONE
    assert context.token_mirror_field is None


def test_missing_settings_are_all_listed(env):
    env.delenv("WEBSITE_URL")
    env.setenv("TELEGRAM_CHAT_ID", "   ")
    with pytest.raises(ConfigurationError) as info:
        load_run_context()
    assert info.value.missing == ["WEBSITE_URL", "TELEGRAM_CHAT_ID"]


def test_falls_back_to_plain_username(env):
    env.delenv("LOGIN_USERNAME")
    env.setenv("USERNAME", "bob")
    assert load_run_context().username == "bob"


@pytest.mark.parametrize("value,expected", [("false", False), ("0", False), ("true", True), ("", True)])
def test_headless_from_env(env, value, expected):
    env.setenv("HEADLESS", value)
    assert load_run_context().headless is expected


def test_headless_argument_overrides_env(env):
    env.setenv("HEADLESS", "true")
    assert load_run_context(headless=False).headless is False


def test_context_is_immutable_and_hides_secrets(env):
    context = load_run_context()
    with pytest.raises(Exception):
        context.target_url = "https://elsewhere"
    assert "hunter22" not in repr(context)
    assert "123:abc" not in repr(context)


def test_screenshot_path_joins_directory(env):
    env.setenv("SCREENSHOT_DIR", "shots")
    assert load_run_context().screenshot_path("login-failure.png") == Path("shots") / "login-failure.png"


@pytest.mark.parametrize("zone", ["Asia/Shangai", "../etc/passwd"])
def test_unknown_timezone_is_rejected(env, zone):
    env.setenv("REPORT_TIMEZONE", zone)
    with pytest.raises(ConfigurationError) as info:
        load_run_context()
    assert info.value.missing == []
    assert "REPORT_TIMEZONE" in info.value.invalid
    assert "REPORT_TIMEZONE" in str(info.value)


def test_custom_timezone_is_kept(env):
    env.setenv("REPORT_TIMEZONE", "Europe/Berlin")
    assert load_run_context().timezone == "Europe/Berlin"
