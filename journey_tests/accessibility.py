"""axe-core accessibility scans and the HTML/JSON reports built from them."""
from __future__ import annotations

import json
import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jinja2 import Environment, PackageLoader, select_autoescape

from journey_tests.browser import Browser

logger = logging.getLogger(__name__)

AXE_SOURCE_URL = os.environ.get(
    "AXE_SOURCE_URL",
    "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.10.2/axe.min.js",
)
WCAG_TAGS = ["wcag2a", "wcag2aa", "wcag21a", "wcag21aa", "wcag22aa"]
IMPACTS = ("critical", "serious", "moderate", "minor")
INDEX_NAME = "index.html"

_env = Environment(
    loader=PackageLoader("journey_tests", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class PageFindings:
    label: str
    url: str
    violations: List[Dict[str, Any]] = field(default_factory=list)

    def impact_counts(self) -> Dict[str, int]:
        counts = Counter(v.get("impact") or "unknown" for v in self.violations)
        return {impact: counts.get(impact, 0) for impact in IMPACTS}


class AccessibilityChecker:
    """Accumulates axe findings per page label across a test module."""

    def __init__(self, source_url: str = AXE_SOURCE_URL, tags: Optional[List[str]] = None) -> None:
        self.source_url = source_url
        self.tags = list(tags or WCAG_TAGS)
        self._findings: Dict[str, PageFindings] = {}
        self.started_at = None

    def initialise(self) -> None:
        self._findings.clear()
        self.started_at = datetime.now(timezone.utc)

    @property
    def findings(self) -> Dict[str, PageFindings]:
        return dict(self._findings)

    async def _ensure_axe(self, browser: Browser) -> None:
        # Navigation drops injected scripts, so check the live document.
        if await browser.evaluate("() => typeof window.axe !== 'undefined'"):
            return
        await browser.add_script_tag(self.source_url)

    async def analyse(self, browser: Browser, label: str) -> List[Dict[str, Any]]:
        """Scan the current page and store its violations under ``label``."""
        if self.started_at is None:
            self.initialise()
        await self._ensure_axe(browser)
        results = await browser.evaluate(
            "tags => axe.run(document, { runOnly: { type: 'tag', values: tags } })",
            self.tags,
        )
        violations = list((results or {}).get("violations") or [])
        self._findings[label] = PageFindings(label=label, url=browser.url, violations=violations)
        logger.info("%s: %d accessibility violation(s)", label, len(violations))
        return violations


def _summary(findings: List[PageFindings]) -> Dict[str, Any]:
    totals = Counter()
    for page in findings:
        totals.update(page.impact_counts())
    return {
        "pages": len(findings),
        "violations": sum(len(page.violations) for page in findings),
        "by_impact": {impact: totals.get(impact, 0) for impact in IMPACTS},
    }


def generate_reports(checker: AccessibilityChecker, name: str, reports_dir: Union[str, Path]) -> List[Path]:
    """Write ``<name>.json`` and ``<name>.html`` for everything the checker saw."""
    directory = Path(reports_dir)
    directory.mkdir(parents=True, exist_ok=True)

    pages = list(checker.findings.values())
    generated_at = datetime.now(timezone.utc).isoformat()
    summary = _summary(pages)

    json_path = directory / f"{name}.json"
    payload = {
        "name": name,
        "generated_at": generated_at,
        "summary": summary,
        "pages": [
            {"label": p.label, "url": p.url, "impacts": p.impact_counts(), "violations": p.violations}
            for p in pages
        ],
    }
    json_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    html_path = directory / f"{name}.html"
    html_path.write_text(
        _env.get_template("report.html").render(
            name=name,
            generated_at=generated_at,
            summary=summary,
            pages=pages,
            impacts=IMPACTS,
        ),
        encoding="utf-8",
    )

    logger.info("Wrote accessibility reports %s and %s", json_path, html_path)
    return [json_path, html_path]


def generate_report_index(reports_dir: Union[str, Path]) -> Path:
    """(Re)write ``index.html`` linking every HTML report in ``reports_dir``."""
    directory = Path(reports_dir)
    directory.mkdir(parents=True, exist_ok=True)

    reports = []
    for html in sorted(directory.glob("*.html")):
        if html.name == INDEX_NAME:
            continue
        summary = None
        sibling = html.with_suffix(".json")
        if sibling.exists():
            try:
                summary = json.loads(sibling.read_text(encoding="utf-8")).get("summary")
            except ValueError:
                logger.warning("Unreadable report data %s", sibling)
        reports.append({"name": html.stem, "href": html.name, "summary": summary})

    index_path = directory / INDEX_NAME
    index_path.write_text(
        _env.get_template("index.html").render(
            reports=reports,
            generated_at=datetime.now(timezone.utc).isoformat(),
        ),
        encoding="utf-8",
    )
    return index_path
