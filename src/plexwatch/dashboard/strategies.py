"""Heuristic matchers for the dashboard markup.

The dashboard has no API and no stable markup contract. Everything that knows
about its DOM lives here, behind two small interfaces so that each matcher can
be exercised against fixture pages:

* :class:`StatusStrategy` reads a raw status string from a loaded page.
* :class:`ControlLocator` finds the clickable control for a :class:`ControlAction`.

Both are tried as ordered lists; the first non-``None`` answer wins.
"""

from __future__ import annotations

import re
from typing import Optional, Protocol, Sequence
from urllib.parse import urlsplit

from plexwatch.core.models import ControlAction, StatusText


POSITIVE_PATTERN = re.compile(r"\b(?:running|online|active)\b", re.IGNORECASE)
NEGATIVE_PATTERN = re.compile(r"\b(?:stopped|offline|inactive|down)\b", re.IGNORECASE)
LOGIN_PATH_PATTERN = re.compile(r"(?:^|/)(?:login|auth)(?:/|$)", re.IGNORECASE)

STATUS_INDICATOR_SELECTOR = (
    '[class*="bg-green"], [class*="bg-red"], [class*="badge"], [class*="status"]'
)
CONTROL_BUTTON_SELECTOR = "button.font-medium.items-center.border.shadow-sm.rounded-md"


def is_login_url(url: str) -> bool:
    """True when the dashboard bounced us to its login/auth screen.

    Only whole path segments count. Hash-routed SPAs put their route in the
    fragment, so that is checked too; the query string never is.
    """
    parts = urlsplit(url or "")
    return any(LOGIN_PATH_PATTERN.search(part) for part in (parts.path, parts.fragment))


def is_positive(text: str) -> bool:
    return bool(POSITIVE_PATTERN.search(text or ""))


def classify(reading: Optional[str]) -> StatusText:
    if not reading:
        return StatusText.UNKNOWN
    if POSITIVE_PATTERN.search(reading):
        return StatusText.ONLINE
    if NEGATIVE_PATTERN.search(reading):
        return StatusText.OFFLINE
    return StatusText.UNKNOWN


def verb_pattern(action: ControlAction) -> "re.Pattern[str]":
    # whole word, so "start" never hits a "Restart" button
    return re.compile(rf"\b{re.escape(action.label)}\b", re.IGNORECASE)


class StatusStrategy(Protocol):
    name: str

    async def detect(self, page) -> Optional[str]:
        ...


class ControlLocator(Protocol):
    name: str

    async def locate(self, page, action: ControlAction):
        ...


class IndicatorElementStrategy:
    """Reads the first element carrying a colour/badge/status class."""

    name = "indicator"

    def __init__(self, selector: str = STATUS_INDICATOR_SELECTOR) -> None:
        self.selector = selector

    async def detect(self, page) -> Optional[str]:
        element = await page.query_selector(self.selector)
        if element is None:
            return None
        text = await element.text_content()
        return (text or "").strip().lower()


class PageTextKeywordStrategy:
    """Scans the visible body text for status keywords."""

    name = "page-text"

    async def detect(self, page) -> Optional[str]:
        body = await page.text_content("body") or ""
        if POSITIVE_PATTERN.search(body):
            return StatusText.ONLINE.value
        if NEGATIVE_PATTERN.search(body):
            return StatusText.OFFLINE.value
        return None


class RoleButtonLocator:
    """Accessible-role lookup: a button named after the capitalized verb."""

    name = "role"

    async def locate(self, page, action: ControlAction):
        buttons = page.get_by_role("button", name=verb_pattern(action))
        if await buttons.count() > 0:
            return buttons.first
        return None


class SignatureButtonLocator:
    """Structural fallback: styled buttons whose text mentions the verb."""

    name = "signature"

    def __init__(self, selector: str = CONTROL_BUTTON_SELECTOR) -> None:
        self.selector = selector

    async def locate(self, page, action: ControlAction):
        pattern = verb_pattern(action)
        for button in await page.query_selector_all(self.selector):
            text = await button.text_content()
            if text and pattern.search(text.strip()):
                return button
        return None


DEFAULT_STATUS_STRATEGIES: Sequence[StatusStrategy] = (
    IndicatorElementStrategy(),
    PageTextKeywordStrategy(),
)

DEFAULT_CONTROL_LOCATORS: Sequence[ControlLocator] = (
    RoleButtonLocator(),
    SignatureButtonLocator(),
)
