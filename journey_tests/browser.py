"""Thin wrapper around a Playwright page for ergonomic journey steps."""
from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from playwright.async_api import Page, TimeoutError as PlaywrightTimeout

from journey_tests.capabilities import session_status_script
from journey_tests.config import SessionConfig, settings
from journey_tests.playwright_client import PlaywrightClient
from journey_tests.polling import wait_until

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class ToolError(Exception):
    """Raised when a browser operation fails."""

    name: str
    payload: Dict[str, Any]
    message: str

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


class Browser:
    """Convenience wrapper over a Playwright page."""

    def __init__(self, page: Page, config: SessionConfig = settings) -> None:
        self._page = page
        self.config = config

    @property
    def page(self) -> Page:
        return self._page

    @property
    def url(self) -> str:
        """Live URL of the page."""
        return self._page.url

    # ---- navigation -------------------------------------------------------------
    async def goto(self, path: str, wait_until: str = "load", timeout: int = 30000) -> Optional[int]:
        """Navigate to ``path`` (relative to the base URL) and return the HTTP status."""
        url = self.config.url(path)
        try:
            response = await self._page.goto(url, wait_until=wait_until, timeout=timeout)
        except PlaywrightTimeout as exc:
            if wait_until == "networkidle":
                try:
                    response = await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout)
                    return response.status if response else None
                except PlaywrightTimeout:
                    pass  # Fall through to original error
            raise ToolError(name="goto", payload={"url": url, "wait_until": wait_until}, message=str(exc))
        except Exception as exc:
            raise ToolError(name="goto", payload={"url": url}, message=str(exc))
        return response.status if response else None

    async def reset(self) -> None:
        await self._page.goto("about:blank")

    async def title(self) -> str:
        return await self._page.title()

    async def clear_cookies(self) -> None:
        await self._page.context.clear_cookies()

    async def ready_state(self) -> str:
        return await self.evaluate("() => document.readyState")

    # ---- queries ----------------------------------------------------------------
    async def count(self, selector: str) -> int:
        try:
            return await self._page.locator(selector).count()
        except Exception as exc:
            raise ToolError(name="count", payload={"selector": selector}, message=str(exc))

    async def is_existing(self, selector: str) -> bool:
        return await self.count(selector) > 0

    async def is_visible(self, selector: str) -> bool:
        try:
            return await self._page.locator(selector).first.is_visible()
        except Exception as exc:
            raise ToolError(name="is_visible", payload={"selector": selector}, message=str(exc))

    async def is_enabled(self, selector: str) -> bool:
        try:
            return await self._page.locator(selector).first.is_enabled(timeout=1000)
        except Exception as exc:
            raise ToolError(name="is_enabled", payload={"selector": selector}, message=str(exc))

    async def is_checked(self, selector: str) -> bool:
        try:
            return await self._page.locator(selector).first.is_checked()
        except Exception as exc:
            raise ToolError(name="is_checked", payload={"selector": selector}, message=str(exc))

    async def text(self, selector: str) -> str:
        """Rendered text of the first matching element."""
        try:
            text = await self._page.locator(selector).first.inner_text(timeout=5000)
            return text or ""
        except Exception as exc:
            raise ToolError(name="text", payload={"selector": selector}, message=str(exc))

    async def texts(self, selector: str) -> List[str]:
        try:
            return await self._page.locator(selector).all_inner_texts()
        except Exception as exc:
            raise ToolError(name="texts", payload={"selector": selector}, message=str(exc))

    async def body_text(self) -> str:
        return await self.evaluate("() => document.body ? document.body.textContent : ''") or ""

    async def get_attribute(self, selector: str, attribute: str) -> str:
        try:
            value = await self._page.locator(selector).first.get_attribute(attribute, timeout=5000)
            return value or ""
        except Exception as exc:
            raise ToolError(
                name="get_attribute",
                payload={"selector": selector, "attribute": attribute},
                message=str(exc),
            )

    async def attributes(self, selector: str, attribute: str) -> List[str]:
        """Attribute value of every matching element (missing ones as '')."""
        try:
            values = await self._page.locator(selector).evaluate_all(
                "(els, attr) => els.map(el => el.getAttribute(attr) || '')", attribute
            )
            return list(values)
        except Exception as exc:
            raise ToolError(
                name="attributes",
                payload={"selector": selector, "attribute": attribute},
                message=str(exc),
            )

    async def input_value(self, selector: str) -> str:
        try:
            return await self._page.locator(selector).first.input_value(timeout=5000)
        except Exception as exc:
            raise ToolError(name="input_value", payload={"selector": selector}, message=str(exc))

    async def options(self, selector: str) -> List[Dict[str, str]]:
        """``{"text", "value"}`` for each option of a select element."""
        try:
            return await self._page.locator(f"{selector} option").evaluate_all(
                "els => els.map(o => ({text: o.textContent.trim(), value: o.getAttribute('value') || ''}))"
            )
        except Exception as exc:
            raise ToolError(name="options", payload={"selector": selector}, message=str(exc))

    async def css_property(self, selector: str, name: str) -> str:
        try:
            return await self._page.locator(selector).first.evaluate(
                "(el, prop) => window.getComputedStyle(el).getPropertyValue(prop)", name
            )
        except Exception as exc:
            raise ToolError(name="css_property", payload={"selector": selector, "property": name}, message=str(exc))

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Execute JavaScript in the page context."""
        try:
            return await self._page.evaluate(script, arg)
        except Exception as exc:
            raise ToolError(name="evaluate", payload={"script": script}, message=str(exc))

    # ---- actions ----------------------------------------------------------------
    async def fill(self, selector: str, value: str, sensitive: bool = False) -> None:
        """Fill input field (``sensitive`` keeps the value out of error payloads)."""
        try:
            await self._page.locator(selector).first.fill(value)
        except Exception as exc:
            shown = "***" if sensitive else value
            raise ToolError(name="fill", payload={"selector": selector, "value": shown}, message=str(exc))

    async def clear(self, selector: str) -> None:
        await self.fill(selector, "")

    async def click(self, selector: str, force: bool = False) -> None:
        try:
            await self._page.locator(selector).first.click(force=force)
        except Exception as exc:
            raise ToolError(name="click", payload={"selector": selector}, message=str(exc))

    async def press(self, key: str) -> None:
        try:
            await self._page.keyboard.press(key)
        except Exception as exc:
            raise ToolError(name="press", payload={"key": key}, message=str(exc))

    async def select_index(self, selector: str, index: int) -> None:
        try:
            await self._page.locator(selector).first.select_option(index=index)
        except Exception as exc:
            raise ToolError(name="select_index", payload={"selector": selector, "index": index}, message=str(exc))

    async def select_value(self, selector: str, value: str) -> None:
        try:
            await self._page.locator(selector).first.select_option(value=value)
        except Exception as exc:
            raise ToolError(name="select_value", payload={"selector": selector, "value": value}, message=str(exc))

    async def select_label(self, selector: str, label: str) -> None:
        try:
            await self._page.locator(selector).first.select_option(label=label)
        except Exception as exc:
            raise ToolError(name="select_label", payload={"selector": selector, "label": label}, message=str(exc))

    # ---- waits ------------------------------------------------------------------
    async def wait_for_ready(self, timeout: float = 10.0, message: str = "Page did not load completely") -> None:
        async def complete() -> bool:
            return await self.ready_state() == "complete"

        await wait_until(complete, timeout=timeout, interval=self.config.wait_interval, message=message)

    async def wait_for_url(
        self,
        predicate: Callable[[str], bool],
        timeout: float = 10.0,
        message: str = "URL did not change as expected",
    ) -> str:
        async def matches() -> Optional[str]:
            url = self.url
            return url if predicate(url) else None

        return await wait_until(matches, timeout=timeout, interval=self.config.wait_interval, message=message)

    async def wait_for_visible(self, selector: str, timeout: float = 10.0, message: Optional[str] = None) -> None:
        async def visible() -> bool:
            return await self.is_visible(selector)

        await wait_until(
            visible,
            timeout=timeout,
            interval=self.config.wait_interval,
            message=message or f"Element {selector} not displayed",
        )

    async def wait_for_text(self, selector: str, expected: str, timeout: float = 10.0) -> str:
        """Poll for text content until it contains the expected substring."""

        async def contains() -> Optional[str]:
            content = await self.text(selector)
            return content if expected in content else None

        return await wait_until(
            contains,
            timeout=timeout,
            interval=self.config.wait_interval,
            message=f"Timed out waiting for '{expected}' in selector '{selector}'",
        )

    # ---- artefacts --------------------------------------------------------------
    async def screenshot(self, name: str) -> Path:
        """Full-page PNG under the configured screenshot directory."""
        directory = Path(self.config.screenshot_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{_UNSAFE_FILENAME.sub('_', name).strip('_') or 'screenshot'}.png"
        try:
            await self._page.screenshot(path=str(path), full_page=True)
        except Exception as exc:
            raise ToolError(name="screenshot", payload={"name": name}, message=str(exc))
        return path

    async def add_script_tag(self, url: str) -> None:
        try:
            await self._page.add_script_tag(url=url)
        except Exception as exc:
            raise ToolError(name="add_script_tag", payload={"url": url}, message=str(exc))

    async def mark_session_status(self, status: str, reason: str = "") -> None:
        """Flag the remote BrowserStack session (no-op for local browsers)."""
        if not self.config.is_remote:
            return
        await self.evaluate("_ => {}", session_status_script(status, reason))


@asynccontextmanager
async def browser_session(
    config: SessionConfig = settings,
    storage_state_path: Optional[str] = None,
    session_name: Optional[str] = None,
) -> AsyncIterator[Browser]:
    """Yield a Browser over a fresh Playwright client."""
    async with PlaywrightClient(
        config, storage_state_path=storage_state_path, session_name=session_name
    ) as client:
        yield Browser(client.page, config)
