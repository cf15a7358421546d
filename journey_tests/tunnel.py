"""BrowserStack Local tunnel for remote sessions against a local deployment.

The ``browserstack-local`` binary wrapper is synchronous, so start and stop run
in a worker thread.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional

import anyio
from browserstack.local import Local

from journey_tests.capabilities import local_tunnel_options
from journey_tests.config import SessionConfig

logger = logging.getLogger(__name__)


class LocalTunnel:
    """Start/stop wrapper around ``browserstack.local.Local``."""

    def __init__(self, config: SessionConfig, local_factory: Callable[[], Any] = Local) -> None:
        self.config = config
        self._local_factory = local_factory
        self._local: Optional[Any] = None

    @property
    def is_running(self) -> bool:
        return self._local is not None and bool(self._local.isRunning())

    async def start(self) -> None:
        if self._local is not None:
            return
        options = local_tunnel_options(self.config)
        local = self._local_factory()
        logger.info("Starting BrowserStack Local tunnel (%s)", options["localIdentifier"])
        await anyio.to_thread.run_sync(functools.partial(local.start, **options))
        self._local = local

    async def stop(self) -> None:
        local, self._local = self._local, None
        if local is None or not local.isRunning():
            return
        logger.info("Stopping BrowserStack Local tunnel")
        await anyio.to_thread.run_sync(local.stop)

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
