import json

import pytest

from fakes import APP_URL, Screen
from journey_tests.accessibility import (
    INDEX_NAME,
    WCAG_TAGS,
    AccessibilityChecker,
    PageFindings,
    generate_report_index,
    generate_reports,
)

AXE_URL = "https://cdn.example.test/axe.min.js"

VIOLATIONS = [
    {
        "id": "color-contrast",
        "impact": "serious",
        "help": "Elements must meet minimum color contrast ratio thresholds",
        "helpUrl": "https://dequeuniversity.com/rules/axe/4.10/color-contrast",
        "nodes": [{"target": [".govuk-tag--yellow"]}],
    },
    {"id": "region", "impact": "moderate", "description": "All page content should be contained by landmarks"},
    {"id": "label", "impact": None, "nodes": []},
]


def scanned_browser(make_browser):
    screens = {
        "home": Screen(url=f"{APP_URL}/"),
        "projects": Screen(url=f"{APP_URL}/projects"),
    }
    return make_browser(screens, {"/": "home", "/projects": "projects"}, start="home")


def test_impact_counts():
    page = PageFindings(label="Home", url=f"{APP_URL}/", violations=VIOLATIONS)

    assert page.impact_counts() == {"critical": 0, "serious": 1, "moderate": 1, "minor": 0}


@pytest.mark.asyncio
async def test_analyse_injects_axe_once_per_document(make_browser):
    browser = scanned_browser(make_browser)
    browser.axe_results = {"violations": VIOLATIONS[:1]}
    checker = AccessibilityChecker(source_url=AXE_URL)

    violations = await checker.analyse(browser, "Home")
    await checker.analyse(browser, "Home again")
    await browser.goto("/projects")
    await checker.analyse(browser, "Projects")

    assert violations == VIOLATIONS[:1]
    assert browser.scripts == [AXE_URL, AXE_URL]
    assert list(checker.findings) == ["Home", "Home again", "Projects"]
    assert checker.findings["Projects"].url == f"{APP_URL}/projects"


@pytest.mark.asyncio
async def test_initialise_clears_findings(make_browser):
    browser = scanned_browser(make_browser)
    checker = AccessibilityChecker(source_url=AXE_URL)
    await checker.analyse(browser, "Home")

    checker.initialise()

    assert checker.findings == {}
    assert checker.started_at is not None


def test_findings_are_a_copy():
    checker = AccessibilityChecker()
    checker.findings["Home"] = PageFindings(label="Home", url="")

    assert checker.findings == {}


@pytest.mark.asyncio
async def test_generate_reports(make_browser, tmp_path):
    browser = scanned_browser(make_browser)
    browser.axe_results = {"violations": VIOLATIONS}
    checker = AccessibilityChecker(source_url=AXE_URL)
    await checker.analyse(browser, "Home")
    browser.axe_results = {"violations": []}
    await browser.goto("/projects")
    await checker.analyse(browser, "Projects")

    json_path, html_path = generate_reports(checker, "accessibility-tests", tmp_path / "reports")

    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert json_path.name == "accessibility-tests.json"
    assert data["name"] == "accessibility-tests"
    assert data["summary"] == {
        "pages": 2,
        "violations": 3,
        "by_impact": {"critical": 0, "serious": 1, "moderate": 1, "minor": 0},
    }
    assert [p["label"] for p in data["pages"]] == ["Home", "Projects"]

    html = html_path.read_text(encoding="utf-8")
    assert html_path.name == "accessibility-tests.html"
    assert "color-contrast" in html
    assert "No violations found." in html


def test_generate_report_index_lists_reports(tmp_path):
    checker = AccessibilityChecker()
    checker._findings["Home"] = PageFindings(label="Home", url=f"{APP_URL}/", violations=VIOLATIONS[:1])
    generate_reports(checker, "accessibility-tests", tmp_path)
    generate_reports(AccessibilityChecker(), "authenticated-accessibility-tests", tmp_path)

    generate_report_index(tmp_path)
    index_path = generate_report_index(tmp_path)

    html = index_path.read_text(encoding="utf-8")
    assert index_path.name == INDEX_NAME
    assert 'href="accessibility-tests.html"' in html
    assert 'href="authenticated-accessibility-tests.html"' in html
    assert f'href="{INDEX_NAME}"' not in html


def test_generate_report_index_without_reports(tmp_path):
    html = generate_report_index(tmp_path / "reports").read_text(encoding="utf-8")

    assert "No accessibility reports have been generated." in html


def test_checker_tags_default_to_wcag_set():
    assert AccessibilityChecker().tags == WCAG_TAGS
    assert AccessibilityChecker(tags=["best-practice"]).tags == ["best-practice"]
