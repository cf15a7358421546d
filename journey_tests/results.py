"""Run artefacts consumed by the CI pipeline: failure screenshots and the FAILED marker."""
from __future__ import annotations

import json
import logging
import re
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from journey_tests.browser import Browser, ToolError

logger = logging.getLogger(__name__)

# The CDP pipeline fails the run when this file exists in the working directory.
FAILURE_MARKER = "FAILED"
OUTCOMES = ("passed", "failed", "error", "skipped", "xfailed", "xpassed")

_NODEID_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def screenshot_name(nodeid: str) -> str:
    """``tests/test_home.py::test_title[chromium]`` -> ``test_home.py-test_title-chromium``."""
    name = nodeid.rsplit("/", 1)[-1].replace("::", "-")
    return _NODEID_UNSAFE.sub("-", name).strip("-") or "failure"


async def failure_screenshot(browser: Browser, nodeid: str) -> Optional[Path]:
    """Capture the page for a failed test; a dead page only logs a warning."""
    try:
        path = await browser.screenshot(f"failed-{screenshot_name(nodeid)}")
    except ToolError as exc:
        logger.warning("Could not capture failure screenshot for %s: %s", nodeid, exc)
        return None
    logger.info("Failure screenshot: %s", path)
    return path


def summarise(stats: Mapping[str, Iterable[Any]]) -> Dict[str, int]:
    """Counts per outcome from a ``{outcome: [reports]}`` mapping (pytest's terminal stats)."""
    counts = Counter({outcome: len(list(stats.get(outcome, ()))) for outcome in OUTCOMES})
    summary = {outcome: counts[outcome] for outcome in OUTCOMES}
    summary["total"] = sum(summary.values())
    return summary


def write_failure_marker(path: Union[str, Path], summary: Mapping[str, int]) -> Optional[Path]:
    """Write the JSON summary to ``path`` when anything failed; otherwise write nothing."""
    if not (summary.get("failed", 0) or summary.get("error", 0)):
        return None
    marker = Path(path)
    marker.write_text(json.dumps(dict(summary), indent=2), encoding="utf-8")
    logger.info("Wrote failure marker %s", marker)
    return marker
