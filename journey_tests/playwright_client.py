"""
Playwright client for the journey tests
=======================================

Launches a local browser, or connects to the BrowserStack Playwright grid when
``BROWSER_TARGET=browserstack``.

Usage:
    from journey_tests.config import settings
    from journey_tests.playwright_client import PlaywrightClient

    async with PlaywrightClient(settings) as client:
        await client.page.goto("/projects")
"""

import logging
import os
from typing import Any, Dict, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from journey_tests.capabilities import (
    browser_type_for,
    browserstack_capabilities,
    browserstack_endpoint,
    needs_local_tunnel,
)
from journey_tests.config import SessionConfig
from journey_tests.tunnel import LocalTunnel

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 1024}


class PlaywrightClient:
    """
    Owns one Playwright browser, one context and its default page.

    Example:
        async with PlaywrightClient(settings) as client:
            page = client.page
            await page.goto("/")
    """

    def __init__(
        self,
        config: SessionConfig,
        storage_state_path: Optional[str] = None,
        session_name: Optional[str] = None,
    ):
        """
        Args:
            config: Session configuration for this run
            storage_state_path: Saved cookies/localStorage to start from (optional)
            session_name: Name shown for the remote session (optional)
        """
        self.config = config
        self.storage_state_path = storage_state_path
        self.session_name = session_name

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._tunnel: Optional[LocalTunnel] = None

    async def __aenter__(self):
        try:
            await self.connect()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self):
        """Start Playwright and open the browser, context and default page."""
        self._playwright = await async_playwright().start()

        if self.config.is_remote:
            if needs_local_tunnel(self.config):
                self._tunnel = LocalTunnel(self.config)
                await self._tunnel.start()
            caps = browserstack_capabilities(
                self.config,
                browser=os.getenv("BROWSERSTACK_BROWSER"),
                session_name=self.session_name,
            )
            browser_type = getattr(self._playwright, browser_type_for(caps))
            logger.info("Connecting to BrowserStack (%s, build=%s)", caps["browser"], caps["build"])
            self._browser = await browser_type.connect(
                browserstack_endpoint(caps),
                timeout=self.config.connection_timeout * 1000,
            )
        else:
            browser_type = getattr(self._playwright, self.config.browser_name)
            launch_options: Dict[str, Any] = {"headless": self.config.headless}
            if self.config.proxy_url:
                launch_options["proxy"] = {"server": self.config.proxy_url}
            logger.info("Launching %s (headless=%s)", self.config.browser_name, self.config.headless)
            self._browser = await browser_type.launch(**launch_options)

        storage_state_path = self.storage_state_path
        if storage_state_path and not os.path.exists(storage_state_path):
            print(f"[CONFIG] WARNING: storage_state_path does not exist, ignoring: {storage_state_path}")
            storage_state_path = None

        self._context = await self.new_context(storage_state=storage_state_path)
        self._page = await self._context.new_page()

    async def new_context(self, **kwargs) -> BrowserContext:
        """Create a browser context carrying the run's base URL and timeouts."""
        if not self._browser:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")

        options: Dict[str, Any] = {
            "base_url": self.config.base_url,
            "ignore_https_errors": True,
            "viewport": DEFAULT_VIEWPORT,
        }
        if self.config.is_remote and self.config.proxy_url:
            options["proxy"] = {"server": self.config.proxy_url}
        options.update({key: value for key, value in kwargs.items() if value is not None})

        context = await self._browser.new_context(**options)
        context.set_default_timeout(self.config.wait_timeout * 1000)
        context.set_default_navigation_timeout(30000)
        return context

    async def new_page(self) -> Page:
        if not self._context:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")
        return await self._context.new_page()

    async def close(self):
        """Close all connections and cleanup resources."""
        if self._page:
            await self._page.close()
            self._page = None

        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        if self._tunnel:
            await self._tunnel.stop()
            self._tunnel = None

    @property
    def browser(self) -> Browser:
        if not self._browser:
            raise RuntimeError("Client not connected")
        return self._browser

    @property
    def context(self) -> BrowserContext:
        if not self._context:
            raise RuntimeError("Client not connected")
        return self._context

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Client not connected or page not created")
        return self._page
