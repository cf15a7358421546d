"""Bounded polling used to synchronise against asynchronous page rendering.

Every wait has a fixed upper bound. There is no backoff and no retry layered on
top: when the budget is spent the step fails with :class:`WaitTimeout`.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

import anyio

logger = logging.getLogger(__name__)

T = TypeVar("T")

Condition = Callable[[], Awaitable[Any]]
Probe = Callable[[], Awaitable[Optional[T]]]


class WaitTimeout(AssertionError):
    """A bounded wait elapsed before its condition held."""

    def __init__(self, message: str, timeout: float) -> None:
        super().__init__(f"{message} (after {timeout:.1f}s)")
        self.timeout = timeout


async def wait_until(
    condition: Condition,
    timeout: float = 10.0,
    interval: float = 0.2,
    message: str = "Condition not met",
) -> Any:
    """Poll ``condition`` until it returns something truthy and return it.

    Exceptions raised by ``condition`` count as "not yet"; the last one is
    chained onto the :class:`WaitTimeout`.
    """
    deadline = anyio.current_time() + timeout
    last_error: Optional[BaseException] = None

    while True:
        try:
            value = await condition()
        except Exception as exc:
            last_error = exc
            value = None
        if value:
            return value
        if anyio.current_time() >= deadline:
            break
        await anyio.sleep(interval)

    if last_error is not None:
        raise WaitTimeout(message, timeout) from last_error
    raise WaitTimeout(message, timeout)


async def probe_in_order(
    probes: Sequence[Probe[T]],
    timeout: float = 20.0,
    interval: float = 0.2,
    message: str = "No probe matched",
) -> T:
    """Try ``probes`` in priority order until one yields a result.

    All probes share one timeout budget. A probe returns ``None`` when its
    target is absent; exceptions are treated the same way.
    """
    if not probes:
        raise ValueError("probe_in_order needs at least one probe")

    deadline = anyio.current_time() + timeout
    last_error: Optional[BaseException] = None

    while True:
        for index, probe in enumerate(probes):
            try:
                result = await probe()
            except Exception as exc:
                logger.debug("probe %d raised %r", index, exc)
                last_error = exc
                continue
            if result is not None:
                logger.debug("probe %d matched", index)
                return result
        if anyio.current_time() >= deadline:
            break
        await anyio.sleep(interval)

    if last_error is not None:
        raise WaitTimeout(message, timeout) from last_error
    raise WaitTimeout(message, timeout)


async def optional_step(step: Callable[[], Awaitable[Any]], name: str) -> bool:
    """Run a step whose screen may legitimately not appear.

    Returns ``True`` when the step ran and ``False`` when its screen was absent.
    Only timeouts and browser-tool failures are swallowed.
    """
    # browser imports this module
    from journey_tests.browser import ToolError

    try:
        await step()
    except (WaitTimeout, ToolError) as exc:
        logger.warning("Optional step '%s' skipped: %s", name, exc)
        return False
    return True
