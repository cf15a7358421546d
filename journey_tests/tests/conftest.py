import sys
from pathlib import Path

import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from journey_tests.accessibility import AccessibilityChecker, generate_report_index, generate_reports
from journey_tests.auth_state import auth_state_path, clear_auth_state, load_auth_state, save_auth_state
from journey_tests.browser import browser_session
from journey_tests.config import settings
from journey_tests.login import is_signed_in, sign_in
from journey_tests.reachability import application_unreachable_reason
from journey_tests.results import FAILURE_MARKER, failure_screenshot, summarise, write_failure_marker

_reachability = {}


def pytest_configure(config):
    config.addinivalue_line("markers", "e2e: drives a browser against the deployed assurance frontend")


def pytest_collection_modifyitems(config, items):
    """Check the application once when any ``e2e`` test was collected."""
    if any(item.get_closest_marker("e2e") for item in items):
        _reachability["reason"] = application_unreachable_reason(settings)


def pytest_runtest_setup(item):
    # An unreachable application is an error for every journey, never a skip.
    reason = _reachability.get("reason")
    if reason and item.get_closest_marker("e2e"):
        pytest.fail(reason, pytrace=False)


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item, call):
    """Expose each phase's report as ``item.rep_<phase>`` for fixture teardown."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


def pytest_sessionfinish(session, exitstatus):
    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter is None:
        return
    write_failure_marker(Path.cwd() / FAILURE_MARKER, summarise(reporter.stats))


@pytest.fixture()
def credentials():
    """Azure AD test account; errors out before any browser is launched when unset."""
    return settings.require_credentials()


@pytest_asyncio.fixture()
async def browser(request):
    """Create a Browser instance; on failure capture a screenshot and flag the remote session."""
    async with browser_session(settings, session_name=request.node.name) as browser:
        await browser.reset()
        yield browser

        report = getattr(request.node, "rep_call", None)
        if report is None:
            return
        if report.failed:
            await failure_screenshot(browser, request.node.nodeid)
            await browser.mark_session_status("failed", str(report.longrepr)[:250])
        else:
            await browser.mark_session_status("passed")


@pytest_asyncio.fixture()
async def signed_in_browser(credentials, browser):
    """Browser signed in as the test account, reusing saved cookies when they still work.

    ``credentials`` comes first so a missing account fails before the browser starts.
    """
    state_file = auth_state_path(settings, "user")
    context = browser.page.context

    if await load_auth_state(context, state_file):
        await browser.goto("/")
        if await is_signed_in(browser):
            print("✓ Using saved authentication state")
            return browser
        print("⚠️  Saved auth state invalid, performing fresh login")
        clear_auth_state(state_file)
        await browser.clear_cookies()

    await sign_in(browser, credentials)
    await save_auth_state(context, state_file)
    return browser


@pytest.fixture(scope="module")
def accessibility_checker(request):
    """Collect axe findings for a module and write its reports plus the index afterwards."""
    checker = AccessibilityChecker()
    checker.initialise()
    yield checker

    if not checker.findings:
        return
    name = getattr(request.module, "REPORT_NAME", "accessibility-tests")
    generate_reports(checker, name, settings.reports_dir)
    generate_report_index(settings.reports_dir)
