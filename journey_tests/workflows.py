"""Reusable workflows for project management and assessment journeys."""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Dict, Optional

from journey_tests import pages
from journey_tests.browser import Browser, ToolError
from journey_tests.polling import wait_until

logger = logging.getLogger(__name__)

# Order of the phase <select>; index 0 is the "Choose phase" placeholder.
PHASES = ("Discovery", "Alpha", "Beta", "Live")

ASSESSMENT_STATUSES = ("RED", "AMBER", "GREEN")
ASSESSMENT_STATUS_LABELS = {"RED": "Red", "AMBER": "Amber", "GREEN": "Green"}

PROJECT_FORM_SUBMIT = 'form:not([method="GET"]) button[type="submit"]'
CONTINUE_BUTTON = 'button:text-is("Continue")'
SAVE_CHANGES_BUTTON = 'button.govuk-button:has-text("Save changes")'
ADD_ASSESSMENT_LINK = 'a:has-text("Add")'
SAVE_BUTTON = 'button:has-text("Save")'

STATUS_OPTION = "updateType"
DETAILS_OPTION = "updateType-2"


@dataclass
class ProjectFormData:
    name: str
    phase_index: int
    def_code: str
    status_index: int = 1
    commentary: str = "Initial project commentary for testing"


def phase_index(phase: str) -> int:
    try:
        return PHASES.index(phase) + 1
    except ValueError:
        raise ValueError(f"Unknown phase {phase!r}; expected one of {', '.join(PHASES)}") from None


def generate_project_data(phase: Optional[str] = None) -> ProjectFormData:
    suffix = secrets.token_hex(4)
    if phase is None:
        return ProjectFormData(
            name=f"Test Project {suffix}",
            phase_index=1,
            def_code=f"TEST-{suffix}",
        )
    return ProjectFormData(
        name=f"{phase} Test Project {suffix}",
        phase_index=phase_index(phase),
        def_code=f"{phase.upper()}-{suffix}",
        commentary=f"{phase} phase project for assessment testing",
    )


def assessment_commentary(status: str, phase: str) -> Dict[str, str]:
    """Commentary textareas shown for ``status``, keyed by field name."""
    status = status.upper()
    if status not in ASSESSMENT_STATUSES:
        raise ValueError(f"Unknown assessment status {status!r}")
    if status == "GREEN":
        return {
            "green-text": (
                f"This standard is being met in {phase} phase. "
                "We have proper processes and documentation in place."
            ),
        }
    return {
        "issue-text": (
            f"Issue identified in {phase} phase: "
            "Need to address gaps in this service standard area."
        ),
        "path-text": (
            "Action plan: Working with team to implement necessary changes "
            "and documentation to meet this standard."
        ),
    }


def _on_project_page(url: str) -> bool:
    return "/projects/" in url and "/manage" not in url and "/assessment" not in url


async def open_project(browser: Browser, project_id: str) -> None:
    await browser.goto(f"/projects/{project_id}")
    await browser.wait_for_visible(pages.HEADING, message="Project page did not load")


async def create_project(browser: Browser, data: ProjectFormData) -> str:
    """Add a project through the form and return the id it was given."""
    await browser.goto(pages.PROJECTS_PATH)
    await browser.wait_for_ready()
    await browser.wait_for_visible(pages.ADD_PROJECT_LINK)
    await browser.click(pages.ADD_PROJECT_LINK)
    await browser.wait_for_url(
        lambda url: pages.ADD_PROJECT_PATH in url,
        message="Expected to be on add project page",
    )

    await browser.fill('input[name="name"]', data.name)
    await browser.select_index('select[name="phase"]', data.phase_index)
    await browser.fill('input[name="defCode"]', data.def_code)
    await browser.select_index('select[name="status"]', data.status_index)
    await browser.fill('textarea[name="commentary"]', data.commentary)
    await browser.click(PROJECT_FORM_SUBMIT)

    await browser.wait_for_url(
        lambda url: pages.ADD_PROJECT_PATH not in url,
        message="Expected to leave the add project page after submitting",
    )

    # Where the app lands after saving has varied; the deliveries list is stable.
    await browser.goto(pages.PROJECTS_PATH)
    link = pages.project_link_by_name(data.name)
    await browser.wait_for_visible(link, message=f"Created project '{data.name}' not listed")
    await browser.click(link)
    await browser.wait_for_url(
        lambda url: pages.project_id_from_url(url) is not None,
        message="Expected to be on project detail page",
    )
    project_id = pages.project_id_from_url(browser.url)
    logger.info("Created project %s (%s)", data.name, project_id)
    return project_id


async def choose_manage_option(browser: Browser, project_id: str, option_id: str, expected_path: str) -> None:
    """Open "Manage project", pick one of its radios and continue to ``expected_path``."""
    await open_project(browser, project_id)
    await browser.wait_for_visible(pages.MANAGE_LINK)
    await browser.click(pages.MANAGE_LINK)
    await browser.wait_for_url(
        lambda url: "/manage" in url and "/status" not in url and "/details" not in url,
        message="Expected to be on manage project selection page",
    )

    async def radios_rendered() -> bool:
        return await browser.count('input[type="radio"]') >= 2

    await wait_until(radios_rendered, timeout=10.0, message="Radio buttons not found")

    radio = f"#{option_id}"

    async def radio_enabled() -> bool:
        return await browser.is_existing(radio) and await browser.is_enabled(radio)

    await wait_until(radio_enabled, timeout=10.0, message=f"Radio {radio} not found or not enabled")
    # GOV.UK radios are visually hidden behind their styled label.
    await browser.click(radio, force=True)
    if not await browser.is_checked(radio):
        raise AssertionError(f"Radio {radio} was clicked but is not selected")

    await browser.click(CONTINUE_BUTTON)
    await browser.wait_for_url(
        lambda url: expected_path in url,
        message=f"Expected to be on {expected_path}",
    )


async def _save_changes(browser: Browser, message: str) -> None:
    await browser.wait_for_visible(SAVE_CHANGES_BUTTON)
    await browser.click(SAVE_CHANGES_BUTTON)
    await browser.wait_for_url(_on_project_page, message=message)


async def update_project_status(browser: Browser, project_id: str, status_label: str, commentary: str) -> None:
    await choose_manage_option(browser, project_id, STATUS_OPTION, "/manage/status")

    options = await browser.options("#status")
    match = next((o for o in options if o["text"].strip().lower() == status_label.lower()), None)
    if match is None:
        raise AssertionError(f'Option with text "{status_label}" not found in status select')
    await browser.select_label("#status", match["text"])
    await browser.fill("#commentary", commentary)

    await _save_changes(browser, "Expected to be redirected back to project page")


async def update_project_details(
    browser: Browser,
    project_id: str,
    name: str,
    phase_index: int = 2,
    def_code: Optional[str] = None,
) -> None:
    await choose_manage_option(browser, project_id, DETAILS_OPTION, "/manage/details")

    await browser.fill('input[name="name"]', name)
    await browser.select_index('select[name="phase"]', phase_index)
    await browser.fill('input[name="defCode"]', def_code or f"UPDATED-{secrets.token_hex(4)}")

    await _save_changes(browser, "Expected to be redirected back to project page after details update")


async def _show_compliance(browser: Browser) -> bool:
    if not await browser.is_existing(pages.COMPLIANCE_TAB):
        return False
    await browser.click(pages.COMPLIANCE_TAB)
    await browser.wait_for_visible(pages.COMPLIANCE_PANEL, timeout=5.0, message="Compliance tab did not become visible")
    return True


async def _select_first_profession(browser: Browser) -> bool:
    select = 'select[name="professionId"]'
    if not await browser.is_existing(select):
        return True
    professions = [o for o in await browser.options(select) if o["value"]]
    if not professions:
        return False
    await browser.select_value(select, professions[0]["value"])
    return True


async def _select_standard(browser: Browser, expected_number: Optional[str]) -> bool:
    select = 'select[name="standardId"]'

    async def populated() -> bool:
        return await browser.is_existing(select) and len(await browser.options(select)) > 1

    await wait_until(populated, timeout=5.0, message="Standards dropdown not populated")

    standards = [
        o for o in await browser.options(select)
        if o["value"] and "No standards available" not in o["text"]
    ]
    if not standards:
        return False
    target = next(
        (o for o in standards if expected_number and f"{expected_number}." in o["text"]),
        standards[0],
    )
    await browser.select_value(select, target["value"])
    return True


async def _select_assessment_status(browser: Browser, status: str) -> None:
    select = 'select[name="status"]'
    if not await browser.is_existing(select):
        return
    try:
        await browser.select_value(select, status)
    except ToolError:
        await browser.select_label(select, ASSESSMENT_STATUS_LABELS[status])


async def _fill_commentary(browser: Browser, fields: Dict[str, str]) -> None:
    selectors = {f'textarea[name="{name}"]': text for name, text in fields.items()}

    async def all_displayed() -> bool:
        for selector in selectors:
            if not await browser.is_visible(selector):
                return False
        return True

    await wait_until(all_displayed, timeout=5.0, message="Commentary fields not displayed")
    for selector, text in selectors.items():
        await browser.fill(selector, text)


async def add_standard_assessments(browser: Browser, project_id: str, phase: str, limit: int = 2) -> int:
    """Assess the first ``limit`` standards of a project, cycling RED/AMBER/GREEN.

    Returns how many assessments were saved. Standards without an "Add" link,
    a profession or a selectable standard are skipped.
    """
    await open_project(browser, project_id)
    if not await _show_compliance(browser):
        logger.info("Project %s has no compliance tab", project_id)
        return 0

    standards = await browser.texts(pages.STANDARD_LINKS)
    saved = 0

    for index in range(min(limit, len(standards))):
        expected_number = pages.standard_number(standards[index])

        await browser.click(f"{pages.STANDARD_LINKS} >> nth={index}")
        await browser.wait_for_url(lambda url: "/standards/" in url, message="Standard page did not load")

        if await browser.is_existing(ADD_ASSESSMENT_LINK):
            await browser.click(ADD_ASSESSMENT_LINK)
            await browser.wait_for_url(lambda url: "/assessment" in url, message="Assessment form page did not load")

            if await _select_first_profession(browser) and await _select_standard(browser, expected_number):
                status = ASSESSMENT_STATUSES[index % len(ASSESSMENT_STATUSES)]
                await _select_assessment_status(browser, status)
                await _fill_commentary(browser, assessment_commentary(status, phase))

                if await browser.is_existing(SAVE_BUTTON):
                    await browser.click(SAVE_BUTTON)
                    await browser.wait_for_url(
                        lambda url: "/projects/" in url and "/assessment" not in url,
                        message="Did not redirect after saving assessment",
                    )
                    saved += 1
            else:
                logger.info("Skipping standard %r: nothing to select", standards[index])

        await open_project(browser, project_id)
        if index < limit - 1:
            await _show_compliance(browser)

    logger.info("Saved %d assessment(s) for project %s", saved, project_id)
    return saved
