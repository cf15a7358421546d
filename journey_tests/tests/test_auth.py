"""
Azure AD sign-in journeys.

Credentials come from TEST_USERNAME / TEST_PASSWORD; the ``credentials``
fixture errors out before any navigation when they are missing.
"""
import pytest

from journey_tests import pages
from journey_tests.login import IDENTITY_PROVIDER_HOSTS, is_application_url, is_signed_in, sign_in, sign_out

pytestmark = [pytest.mark.asyncio, pytest.mark.e2e]


async def test_identity_provider_reachable(browser):
    """Isolates proxy/network problems from redirect problems."""
    await browser.goto(f"https://{IDENTITY_PROVIDER_HOSTS[0]}/")
    await browser.wait_for_ready(timeout=30.0, message="Microsoft login page did not load")
    assert IDENTITY_PROVIDER_HOSTS[0] in browser.url


async def test_full_sign_in(credentials, browser):
    await browser.clear_cookies()

    final_url = await sign_in(browser, credentials)

    assert is_application_url(final_url)
    assert await browser.is_visible(pages.ADMIN_TAB)
    assert await browser.is_visible(pages.SIGN_OUT_LINK)
    assert (await browser.wait_for_text(pages.SIGN_OUT_LINK, "Sign out")).strip() == "Sign out"


async def test_sign_in_returns_to_requested_page(credentials, browser):
    await browser.clear_cookies()

    final_url = await sign_in(browser, credentials, return_path=pages.PROJECTS_PATH)

    assert pages.PROJECTS_PATH in final_url
    assert await pages.is_user_authenticated(browser)


async def test_sign_out(signed_in_browser):
    assert await is_signed_in(signed_in_browser)

    await sign_out(signed_in_browser)
    await signed_in_browser.goto(pages.PROJECTS_PATH)

    assert not await pages.is_user_authenticated(signed_in_browser)
