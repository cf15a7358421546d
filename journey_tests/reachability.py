"""Pre-flight check that the application under test answers HTTP requests."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from journey_tests.config import SessionConfig

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 5.0


def application_unreachable_reason(
    config: SessionConfig,
    timeout: float = PROBE_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> Optional[str]:
    """None when ``config.base_url`` answers; otherwise why it could not be reached.

    Any HTTP status counts as reachable. The request goes through
    ``config.proxy_url`` when one is set, like the browser does.
    """
    try:
        with httpx.Client(
            proxy=config.proxy_url,
            transport=transport,
            timeout=timeout,
            follow_redirects=False,
            verify=False,
        ) as client:
            response = client.get(config.base_url)
    except httpx.HTTPError as exc:
        reason = f"Application not reachable at {config.base_url}: {exc}"
        logger.error(reason)
        return reason
    logger.info("Application at %s answered %s", config.base_url, response.status_code)
    return None
