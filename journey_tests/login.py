"""Azure AD sign-in for the assurance frontend.

The identity provider's page flow is outside our control and changes over
time, so every step polls: wait for the page, find the first matching
candidate element, submit, then wait for the next screen. The "Stay signed
in?" prompt and the consent screen only show up for some accounts and tenants;
their absence is not an error.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence
from urllib.parse import urlparse

from journey_tests.browser import Browser
from journey_tests.config import Credentials
from journey_tests.polling import WaitTimeout, optional_step, probe_in_order, wait_until

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
LOGOUT_PATH = "/auth/logout"

IDENTITY_PROVIDER_HOSTS = ("login.microsoftonline.com", "login.live.com")
IDENTITY_PROVIDER_DOMAINS = ("microsoft.com", "microsoftonline.com", "live.com")

# Ordered by how specific they are to the Microsoft sign-in page.
EMAIL_SELECTORS = (
    "#i0116",
    'input[type="email"]',
    'input[name="loginfmt"]',
    'input[data-bind*="email"]',
    'input[placeholder*="email" i]',
    'input[placeholder*="account" i]',
    'input[aria-label*="email" i]',
    'input[aria-label*="account" i]',
    'input[name="email"]',
    'input[id*="email"]',
    'input[id*="account"]',
    'input[type="text"]',
)

NEXT_BUTTON_SELECTORS = (
    "#idSIButton9",
    'input[type="submit"][value="Next"]',
    'input[type="submit"]',
    'button[type="submit"]',
    'button:has-text("Next")',
    'button:has-text("Sign in")',
)

PASSWORD_SELECTORS = ("#i0118", 'input[type="password"]', 'input[name="passwd"]')

SIGN_IN_BUTTON_SELECTORS = (
    "#idSIButton9",
    'input[type="submit"][value="Sign in"]',
    'input[type="submit"]',
    'button[type="submit"]',
)

STAY_SIGNED_IN_TEXT = "Stay signed in"
STAY_SIGNED_IN_YES_SELECTORS = ('input[type="submit"][value="Yes"]', "#idSIButton9")
CONSENT_CONTINUE_SELECTORS = ('input[type="submit"][value="Accept"]', 'input[type="submit"]')

SIGNED_IN_SELECTOR = f'a[href="{LOGOUT_PATH}"]'

PAGE_LOAD_TIMEOUT = 30.0
ELEMENT_TIMEOUT = 20.0
SCREEN_TIMEOUT = 15.0
OPTIONAL_SCREEN_TIMEOUT = 5.0
RETURN_TIMEOUT = 20.0


class LoginError(AssertionError):
    """A required sign-in element never appeared."""


def is_identity_provider_url(url: str) -> bool:
    host = (urlparse(url).hostname or "").lower()
    if host in IDENTITY_PROVIDER_HOSTS:
        return True
    return any(host == domain or host.endswith("." + domain) for domain in IDENTITY_PROVIDER_DOMAINS)


def is_login_path(url: str) -> bool:
    path = urlparse(url).path.lower()
    return "/login" in path


def is_application_url(url: str) -> bool:
    """True once the session is back on the application, past any login path."""
    return bool(url) and not is_identity_provider_url(url) and not is_login_path(url)


async def _usable(browser: Browser, selector: str) -> Optional[str]:
    if await browser.is_visible(selector) and await browser.is_enabled(selector):
        return selector
    return None


async def find_first_usable(
    browser: Browser,
    selectors: Sequence[str],
    timeout: float,
    description: str,
) -> str:
    """Return the first selector (in priority order) that is displayed and enabled."""
    probes = [lambda selector=selector: _usable(browser, selector) for selector in selectors]
    try:
        return await probe_in_order(
            probes,
            timeout=timeout,
            interval=browser.config.wait_interval,
            message=f"Could not find {description}",
        )
    except WaitTimeout as exc:
        await browser.screenshot(f"login-missing-{description.replace(' ', '-')}")
        raise LoginError(f"Could not find {description} on the sign-in page ({browser.url})") from exc


async def wait_for_identity_provider(browser: Browser, timeout: float = PAGE_LOAD_TIMEOUT) -> str:
    return await browser.wait_for_url(
        is_identity_provider_url,
        timeout=timeout,
        message="Not redirected to Microsoft login page",
    )


async def enter_username(browser: Browser, username: str) -> None:
    """Email screen: find the input, submit the account name, reach the password screen."""
    await browser.wait_for_ready(timeout=PAGE_LOAD_TIMEOUT)
    await wait_for_identity_provider(browser)

    async def has_inputs() -> bool:
        return await browser.count("input") > 0

    await wait_until(
        has_inputs,
        timeout=PAGE_LOAD_TIMEOUT,
        interval=browser.config.wait_interval,
        message="Page not interactive",
    )

    email_input = await find_first_usable(browser, EMAIL_SELECTORS, ELEMENT_TIMEOUT, "email input field")
    logger.debug("Email input matched %s", email_input)
    await browser.clear(email_input)
    await browser.fill(email_input, username)

    next_button = await find_first_usable(browser, NEXT_BUTTON_SELECTORS, ELEMENT_TIMEOUT, "Next button")
    await browser.click(next_button)

    await wait_until(
        lambda: browser.is_visible('input[type="password"]'),
        timeout=SCREEN_TIMEOUT,
        interval=browser.config.wait_interval,
        message="Expected to navigate to password screen",
    )


async def enter_password(browser: Browser, password: str) -> None:
    await browser.wait_for_ready(timeout=10.0)

    password_input = await find_first_usable(browser, PASSWORD_SELECTORS, ELEMENT_TIMEOUT, "password field")
    await browser.clear(password_input)
    await browser.fill(password_input, password, sensitive=True)

    sign_in_button = await find_first_usable(browser, SIGN_IN_BUTTON_SELECTORS, ELEMENT_TIMEOUT, "Sign in button")
    await browser.click(sign_in_button)


async def confirm_stay_signed_in(browser: Browser, timeout: float = OPTIONAL_SCREEN_TIMEOUT) -> None:
    """Answer "Yes" on the "Stay signed in?" prompt.

    Raises WaitTimeout when the prompt does not show up within ``timeout``.
    """

    async def prompt_shown() -> bool:
        if not is_identity_provider_url(browser.url):
            return False
        return STAY_SIGNED_IN_TEXT in await browser.body_text()

    await wait_until(prompt_shown, timeout=timeout, interval=browser.config.wait_interval,
                     message="'Stay signed in' prompt not shown")

    yes_button = await probe_in_order(
        [lambda selector=selector: _usable(browser, selector) for selector in STAY_SIGNED_IN_YES_SELECTORS],
        timeout=timeout,
        interval=browser.config.wait_interval,
        message="'Stay signed in' Yes button not found",
    )
    await browser.click(yes_button)
    logger.info("Answered 'Stay signed in' prompt")


async def accept_authorization(browser: Browser, timeout: float = 10.0) -> None:
    """Click through the permissions/consent screen if the tenant shows one."""
    if not is_identity_provider_url(browser.url):
        raise WaitTimeout("No authorization screen, already back on the application", 0)

    await browser.wait_for_ready(timeout=timeout)
    continue_button = await probe_in_order(
        [lambda selector=selector: _usable(browser, selector) for selector in CONSENT_CONTINUE_SELECTORS],
        timeout=OPTIONAL_SCREEN_TIMEOUT,
        interval=browser.config.wait_interval,
        message="Authorization continue button not found",
    )
    await browser.click(continue_button)
    await browser.wait_for_url(
        lambda url: not is_identity_provider_url(url),
        timeout=timeout,
        message="Expected to be redirected after authorization",
    )


async def sign_in(
    browser: Browser,
    credentials: Credentials,
    return_path: Optional[str] = None,
) -> str:
    """Run the full Azure AD sign-in and return the application URL reached."""
    logger.info("Signing in as %s", credentials.username)
    await browser.goto(LOGIN_PATH)
    await wait_for_identity_provider(browser)

    await enter_username(browser, credentials.username)
    await enter_password(browser, credentials.password)

    await optional_step(lambda: confirm_stay_signed_in(browser, OPTIONAL_SCREEN_TIMEOUT), "stay signed in")
    await optional_step(lambda: accept_authorization(browser), "authorization")

    final_url = await browser.wait_for_url(
        is_application_url,
        timeout=RETURN_TIMEOUT,
        message="Expected to be redirected back to application",
    )
    await browser.wait_for_ready(timeout=10.0, message="Expected page to be fully loaded")

    if return_path:
        await browser.goto(return_path)
        await browser.wait_for_ready(timeout=10.0)
        final_url = browser.url

    logger.info("Signed in, now at %s", final_url)
    return final_url


async def is_signed_in(browser: Browser) -> bool:
    return await browser.is_existing(SIGNED_IN_SELECTOR)


async def sign_out(browser: Browser) -> None:
    await browser.goto(LOGOUT_PATH)
    await browser.clear_cookies()
