import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.dirname(__file__))

from fakes import APP_URL, FakeBrowser, Screen
from journey_tests.config import SessionConfig


@pytest.fixture
def config(tmp_path):
    return SessionConfig(
        environment=None,
        base_url=APP_URL,
        username="tester@example.test",
        password="s3cret",
        wait_timeout=0.2,
        wait_interval=0.01,
        screenshot_dir=str(tmp_path / "screenshots"),
        reports_dir=str(tmp_path / "reports"),
    )


@pytest.fixture
def make_browser(config):
    def factory(screens, routes=None, start="blank"):
        screens = dict(screens)
        screens.setdefault("blank", Screen(url="about:blank"))
        return FakeBrowser(config, screens, routes or {}, start)

    return factory
