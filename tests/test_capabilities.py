"""BrowserStack capability building."""

import json
from urllib.parse import parse_qs, urlparse

import pytest

from journey_tests.capabilities import (
    BROWSERSTACK_CDP_URL,
    browser_type_for,
    browserstack_capabilities,
    browserstack_endpoint,
    find_capability,
    is_local_url,
    session_status_script,
)
from journey_tests.config import ConfigError, load_config

REMOTE_ENV = {
    "BROWSER_TARGET": "browserstack",
    "BROWSERSTACK_USERNAME": "someone",
    "BROWSERSTACK_KEY": "grid-secret",
    "BUILD_NAME": "build-42",
}


def test_find_capability_returns_copy():
    capability = find_capability("edge")
    capability["os"] = "changed"

    assert find_capability("edge")["os"] == "Windows"


def test_find_capability_unknown_browser():
    with pytest.raises(ConfigError, match="Unknown BrowserStack browser"):
        find_capability("netscape")


def test_capabilities_for_local_deployment():
    caps = browserstack_capabilities(load_config(REMOTE_ENV), session_name="test_home")

    assert caps["browser"] == "chrome"
    assert caps["browserstack.username"] == "someone"
    assert caps["browserstack.accessKey"] == "grid-secret"
    assert caps["build"] == "build-42"
    assert caps["name"] == "test_home"
    assert caps["browserstack.local"] == "true"
    assert caps["browserstack.localIdentifier"] == "build-42"
    assert caps["client.playwrightVersion"]


def test_capabilities_for_hosted_environment():
    config = load_config(dict(REMOTE_ENV, ENVIRONMENT="test"))

    caps = browserstack_capabilities(config, browser="playwright-webkit")

    assert caps["browserstack.local"] == "false"
    assert "browserstack.localIdentifier" not in caps
    assert caps["os"] == "OS X"
    assert caps["name"] == "build-42"
    assert browser_type_for(caps) == "webkit"


def test_endpoint_carries_encoded_capabilities():
    caps = {"browser": "chrome", "name": "a b&c"}

    endpoint = browserstack_endpoint(caps)

    assert endpoint.startswith(f"{BROWSERSTACK_CDP_URL}?caps=")
    assert json.loads(parse_qs(urlparse(endpoint).query)["caps"][0]) == caps


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://localhost:3000", True),
        ("http://127.0.0.1:3000/projects", True),
        ("https://assurance-frontend.test.cdp-int.defra.cloud", False),
    ],
)
def test_is_local_url(url, expected):
    assert is_local_url(url) is expected


def test_session_status_script():
    script = session_status_script("failed", "Element not found")

    prefix = "browserstack_executor: "
    assert script.startswith(prefix)
    assert json.loads(script[len(prefix):]) == {
        "action": "setSessionStatus",
        "arguments": {"status": "failed", "reason": "Element not found"},
    }


def test_session_status_script_rejects_unknown_status():
    with pytest.raises(ValueError):
        session_status_script("broken")
