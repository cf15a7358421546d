"""Shared configuration for the journey tests.

Everything comes from environment variables (optionally seeded from ``.env``):

- ``BASE_URL`` or ``ENVIRONMENT`` select the deployment under test.
- ``TEST_USERNAME`` / ``TEST_PASSWORD`` are the Azure AD test account.
- ``BROWSER_TARGET=browserstack`` runs against the remote grid and then needs
  ``BROWSERSTACK_USERNAME`` / ``BROWSERSTACK_KEY``.

The resulting :class:`SessionConfig` is built once per run and never mutated.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional
from urllib.parse import urljoin

from journey_tests.env_defaults import load_env_file

DEFAULT_BASE_URL = "http://localhost:3000"
ENVIRONMENT_URL_TEMPLATE = "https://assurance-frontend.{environment}.cdp-int.defra.cloud"
PROJECT_NAME = "assurance-journey-tests"

BROWSER_TARGETS = ("local", "browserstack")
BROWSER_NAMES = ("chromium", "firefox", "webkit")


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


class MissingCredentialError(RuntimeError):
    """Raised when a required credential variable is unset."""

    def __init__(self, missing: Iterable[str], hint: str = "") -> None:
        self.missing: List[str] = list(missing)
        message = f"Required environment variable(s) not set: {', '.join(self.missing)}"
        if hint:
            message += f"\n{hint}"
        super().__init__(message)


@dataclass(frozen=True)
class Credentials:
    """Azure AD account used by the signed-in journeys."""

    username: str
    password: str = field(repr=False)

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class SessionConfig:
    """Flat record of connection parameters for one test run."""

    environment: Optional[str]
    base_url: str
    browser_target: str = "local"
    browser_name: str = "chromium"
    headless: bool = True
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    browserstack_username: Optional[str] = None
    browserstack_key: Optional[str] = field(default=None, repr=False)
    build_name: str = f"{PROJECT_NAME}-local"
    project_name: str = PROJECT_NAME
    proxy_url: Optional[str] = None
    wait_timeout: float = 10.0
    wait_interval: float = 0.2
    connection_timeout: float = 120.0
    screenshot_dir: str = "screenshots"
    reports_dir: str = "reports"

    @property
    def is_remote(self) -> bool:
        return self.browser_target == "browserstack"

    def url(self, path: str) -> str:
        """Return an absolute URL for the provided path."""
        if path.startswith(("http://", "https://")):
            return path
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))

    def require_credentials(self) -> Credentials:
        """Return the test account or fail before any browser interaction."""
        missing = []
        if not self.username:
            missing.append("TEST_USERNAME")
        if not self.password:
            missing.append("TEST_PASSWORD")
        if missing:
            raise MissingCredentialError(
                missing,
                hint="Set them in the environment or in .env. NEVER hardcode credentials in test files.",
            )
        return Credentials(username=self.username, password=self.password)


def _clean(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _milliseconds(environ: Mapping[str, str], key: str, default: int) -> float:
    raw = _clean(environ, key)
    if raw is None:
        return default / 1000
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer number of milliseconds, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value / 1000


def resolve_base_url(environ: Mapping[str, str]) -> str:
    explicit = _clean(environ, "BASE_URL")
    if explicit:
        return explicit.rstrip("/")
    environment = _clean(environ, "ENVIRONMENT")
    if environment:
        return ENVIRONMENT_URL_TEMPLATE.format(environment=environment)
    return DEFAULT_BASE_URL


def load_config(environ: Optional[Mapping[str, str]] = None) -> SessionConfig:
    """Build the session configuration from ``environ`` (default: ``os.environ``)."""
    env = os.environ if environ is None else environ

    environment = _clean(env, "ENVIRONMENT")

    browser_target = (_clean(env, "BROWSER_TARGET") or "local").lower()
    if browser_target not in BROWSER_TARGETS:
        raise ConfigError(
            f"Invalid BROWSER_TARGET: {browser_target!r}\n"
            f"Must be one of: {', '.join(BROWSER_TARGETS)}"
        )

    browser_name = (_clean(env, "BROWSER") or "chromium").lower()
    if browser_name not in BROWSER_NAMES:
        raise ConfigError(
            f"Invalid BROWSER: {browser_name!r}\n"
            f"Must be one of: {', '.join(BROWSER_NAMES)}"
        )

    browserstack_username = _clean(env, "BROWSERSTACK_USERNAME")
    browserstack_key = _clean(env, "BROWSERSTACK_KEY")
    if browser_target == "browserstack":
        missing = [
            name
            for name, value in (
                ("BROWSERSTACK_USERNAME", browserstack_username),
                ("BROWSERSTACK_KEY", browserstack_key),
            )
            if not value
        ]
        if missing:
            raise MissingCredentialError(
                missing, hint="BROWSER_TARGET=browserstack needs the remote grid key and secret."
            )

    headless_str = _clean(env, "PLAYWRIGHT_HEADLESS") or "true"

    return SessionConfig(
        environment=environment,
        base_url=resolve_base_url(env),
        browser_target=browser_target,
        browser_name=browser_name,
        headless=headless_str.lower() in {"true", "1"},
        username=_clean(env, "TEST_USERNAME"),
        password=_clean(env, "TEST_PASSWORD"),
        browserstack_username=browserstack_username,
        browserstack_key=browserstack_key,
        build_name=_clean(env, "BUILD_NAME") or f"{PROJECT_NAME}-{environment or 'local'}",
        proxy_url=_clean(env, "PROXY_URL"),
        wait_timeout=_milliseconds(env, "WAIT_TIMEOUT_MS", 10000),
        wait_interval=_milliseconds(env, "WAIT_INTERVAL_MS", 200),
        connection_timeout=_milliseconds(env, "CONNECTION_TIMEOUT_MS", 120000),
        screenshot_dir=_clean(env, "SCREENSHOT_DIR") or "screenshots",
        reports_dir=_clean(env, "REPORTS_DIR") or "reports",
    )


load_env_file()

# Singleton instance - initialized on first import
settings = load_config()
print(
    f"[CONFIG] base_url={settings.base_url} target={settings.browser_target} "
    f"browser={settings.browser_name} build={settings.build_name}"
)
