"""Selectors and small DOM helpers for the assurance frontend pages."""
from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urlparse

from journey_tests.browser import Browser

SERVICE_NAME = "Defra Digital Assurance"
HOME_TITLE = SERVICE_NAME
PROJECTS_TITLE = f"Deliveries | {SERVICE_NAME}"
TITLE_SUFFIX = f"| {SERVICE_NAME}"

HOME_PATH = "/"
PROJECTS_PATH = "/projects"
ADD_PROJECT_PATH = "/projects/add"

HEADING = "h1.govuk-heading-xl"
SEARCH_INPUT = "#search"
SEARCH_FORM = 'form[method="GET"]'
SEARCH_SUBMIT = f'{SEARCH_FORM} button[type="submit"]'
SEARCH_ICON = "svg.gem-c-search__icon"
CLEAR_SEARCH_LINK = 'a.govuk-link:has-text("Clear search")'
AUTOCOMPLETE_WRAPPER = ".autocomplete__wrapper"
AUTOCOMPLETE_MENU = ".autocomplete__menu"
AUTOCOMPLETE_OPTION = ".autocomplete__option"
SERVICE_NAVIGATION = ".govuk-service-navigation"

ADD_PROJECT_LINK = f'a.govuk-link[href="{ADD_PROJECT_PATH}"]'
VIEW_ALL_DELIVERIES_LINK = f'a.govuk-link[href="{PROJECTS_PATH}"]'
ADMIN_TAB = 'a[href="/admin"]'
SIGN_OUT_LINK = 'a[href="/auth/logout"]'

PROJECT_TABLE = ".govuk-table"
PROJECT_ROWS = ".govuk-table tbody tr"
PROJECT_TABLE_HEADINGS = ".govuk-table thead th"
FIRST_PROJECT_LINK = ".govuk-table tbody tr:first-child td:first-child a.govuk-link"
FIRST_PROJECT_STATUS = ".govuk-table tbody tr:first-child td:nth-child(2)"
PROJECT_STATUS_CELLS = ".govuk-table tbody tr td:nth-child(2)"
PROJECT_LINKS = f'a[href*="/projects/"]:not([href="{ADD_PROJECT_PATH}"])'

DELIVERY_STATUS_TAG = (
    'div:has-text("Current delivery status:")'
    ':not(:has(div:has-text("Current delivery status:"))) .govuk-tag'
)
COMMENTARY = ".govuk-inset-text"
TABS = ".govuk-tabs"
COMPLIANCE_TAB = 'a[href="#compliance"]'
ENGAGEMENT_TAB = 'a[href="#engagement"]'
PROFESSIONS_TAB = 'a[href="#professions"]'
COMPLIANCE_PANEL = "#compliance"
ENGAGEMENT_PANEL = "#engagement"
COMPLIANCE_TABLE = "#compliance .govuk-table"
STANDARD_LINKS = "#compliance .govuk-table tbody tr .govuk-link"
TIMELINE_EVENT = ".timeline__event"
HISTORY_CHART = "#project-history-chart"

MANAGE_LINK = 'a.govuk-link[href*="/manage"]'

VALID_RAG_STATUSES = (
    "Red",
    "Amber",
    "Green",
    "Pending",
    "Excluded",
    "Red Amber",
    "Amber Green",
)
# Delivery status tag on the detail page never shows the dual-tag variants.
VALID_DELIVERY_STATUSES = VALID_RAG_STATUSES[:5]

_WHITESPACE = re.compile(r"\s+")
_STANDARD_NUMBER = re.compile(r"^\s*(\d+)\.\s*\S")


def normalize_status(text: str) -> str:
    """Collapse whitespace (dual tags render on two lines) and lowercase."""
    return _WHITESPACE.sub(" ", text or "").strip().lower()


def is_valid_rag_status(text: str) -> bool:
    return normalize_status(text) in {normalize_status(s) for s in VALID_RAG_STATUSES}


def project_id_from_href(href: str) -> str:
    """Last path segment of a project link (``/projects/abc123`` -> ``abc123``)."""
    path = urlparse(href or "").path.rstrip("/")
    return path.rsplit("/", 1)[-1]


def project_id_from_url(url: str) -> Optional[str]:
    """Project id from any URL under ``/projects/<id>``, ignoring ``/projects/add``."""
    segments = [s for s in urlparse(url or "").path.split("/") if s]
    if len(segments) < 2 or segments[0] != "projects" or segments[1] == "add":
        return None
    return segments[1]


def standard_number(text: str) -> Optional[str]:
    """Leading number of a standard label (``"3. Have a multidisciplinary team"`` -> ``"3"``)."""
    match = _STANDARD_NUMBER.match(text or "")
    return match.group(1) if match else None


def project_link_by_name(name: str) -> str:
    return f'a.govuk-link:has-text("{name}")'


async def is_user_authenticated(browser: Browser) -> bool:
    """Only signed-in users see the "Add new project" link."""
    return await browser.is_existing(ADD_PROJECT_LINK)


async def projects_exist(browser: Browser) -> bool:
    return await browser.count(PROJECT_ROWS) > 0


async def first_project_id(browser: Browser) -> Optional[str]:
    """Id of the first project in the deliveries table, or None when the table is empty."""
    if not await browser.is_existing(FIRST_PROJECT_LINK):
        return None
    return project_id_from_href(await browser.get_attribute(FIRST_PROJECT_LINK, "href"))


async def project_links(browser: Browser) -> List[str]:
    return [href for href in await browser.attributes(PROJECT_LINKS, "href") if href]
