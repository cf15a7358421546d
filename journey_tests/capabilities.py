"""BrowserStack capabilities for the Playwright CDP endpoint."""
from __future__ import annotations

import json
from importlib import metadata
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlparse

from journey_tests.config import ConfigError, SessionConfig

BROWSERSTACK_CDP_URL = "wss://cdp.browserstack.com/playwright"

LOCAL_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "host.docker.internal"}

BROWSERSTACK_CAPABILITIES: List[Dict[str, str]] = [
    {"browser": "chrome", "browser_version": "latest", "os": "Windows", "os_version": "11"},
    {"browser": "edge", "browser_version": "latest", "os": "Windows", "os_version": "11"},
    {"browser": "playwright-firefox", "browser_version": "latest", "os": "OS X", "os_version": "Sonoma"},
    {"browser": "playwright-webkit", "browser_version": "latest", "os": "OS X", "os_version": "Sonoma"},
]

# Playwright browser type that drives each BrowserStack browser.
BROWSER_TYPES = {
    "chrome": "chromium",
    "edge": "chromium",
    "playwright-firefox": "firefox",
    "playwright-webkit": "webkit",
}


def _playwright_version() -> str:
    try:
        return metadata.version("playwright")
    except metadata.PackageNotFoundError:
        return "latest"


def is_local_url(url: str) -> bool:
    return (urlparse(url).hostname or "") in LOCAL_HOSTS


def local_identifier(config: SessionConfig) -> str:
    return config.build_name


def needs_local_tunnel(config: SessionConfig) -> bool:
    """Remote sessions against a local deployment need a BrowserStack Local tunnel."""
    return config.is_remote and is_local_url(config.base_url)


def local_tunnel_options(config: SessionConfig) -> Dict[str, str]:
    """Arguments for ``browserstack.local.Local.start``."""
    return {
        "key": config.browserstack_key,
        "forcelocal": "true",
        "localIdentifier": local_identifier(config),
    }


def find_capability(browser: str) -> Dict[str, str]:
    for capability in BROWSERSTACK_CAPABILITIES:
        if capability["browser"] == browser:
            return dict(capability)
    known = ", ".join(c["browser"] for c in BROWSERSTACK_CAPABILITIES)
    raise ConfigError(f"Unknown BrowserStack browser: {browser!r}. Known: {known}")


def browserstack_capabilities(
    config: SessionConfig,
    browser: Optional[str] = None,
    session_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge a browser descriptor with the run's credentials and build info."""
    caps: Dict[str, Any] = find_capability(browser or "chrome")
    caps.update(
        {
            "browserstack.username": config.browserstack_username,
            "browserstack.accessKey": config.browserstack_key,
            "project": config.project_name,
            "build": config.build_name,
            "name": session_name or config.build_name,
            # Local deployments are only reachable through the BrowserStack Local tunnel
            "browserstack.local": "true" if is_local_url(config.base_url) else "false",
            "browserstack.debug": "true",
            "browserstack.console": "errors",
            "client.playwrightVersion": _playwright_version(),
        }
    )
    if caps["browserstack.local"] == "true":
        caps["browserstack.localIdentifier"] = local_identifier(config)
    return caps


def browserstack_endpoint(caps: Dict[str, Any]) -> str:
    return f"{BROWSERSTACK_CDP_URL}?caps={quote(json.dumps(caps))}"


def browser_type_for(caps: Dict[str, Any]) -> str:
    return BROWSER_TYPES.get(caps.get("browser", "chrome"), "chromium")


def session_status_script(status: str, reason: str = "") -> str:
    """Return the ``browserstack_executor`` payload that flags the remote session."""
    if status not in {"passed", "failed"}:
        raise ValueError(f"status must be 'passed' or 'failed', got {status!r}")
    payload = {"action": "setSessionStatus", "arguments": {"status": status, "reason": reason}}
    return f"browserstack_executor: {json.dumps(payload)}"
