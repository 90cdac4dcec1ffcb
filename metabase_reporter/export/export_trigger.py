"""
Export Trigger: Find and Click the Dashboard's PDF Export Control

Two passes over the page's clickable controls, in DOM order:
1. Text: normalized text contains both "export" and "pdf"
2. Icon: a document icon (.Icon-document) or "document" in the markup

The first match of the first pass that yields one is clicked. No retry: a
page without an export control cannot produce a PDF.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Tuple

from selenium.common.exceptions import StaleElementReferenceException
from selenium.webdriver.common.by import By

from ..errors import ControlNotFound

logger = logging.getLogger(__name__)

CONTROL_SELECTOR = "button, [role='button']"
ICON_CLASS = "Icon-document"
ICON_SELECTOR = f".{ICON_CLASS}"
TEXT_TOKENS = ("export", "pdf")
MARKUP_TOKEN = "document"

MATCH_TEXT = "text"
MATCH_ICON = "icon"

# JS click reaches controls hidden behind hover menus
CLICK_SCRIPT = "arguments[0].click();"

_WS = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    return _WS.sub(" ", (text or "")).strip().lower()


def matches_text(element) -> bool:
    text = normalize_text(element.get_attribute("textContent"))
    return all(token in text for token in TEXT_TOKENS)


def matches_icon(element) -> bool:
    classes = (element.get_attribute("class") or "").split()
    if ICON_CLASS in classes:
        return True
    if element.find_elements(By.CSS_SELECTOR, ICON_SELECTOR):
        return True
    return MARKUP_TOKEN in (element.get_attribute("innerHTML") or "")


def _first(elements: Iterable, predicate):
    for element in elements:
        try:
            if predicate(element):
                return element
        except StaleElementReferenceException:
            # Re-rendered while we were looking; its replacement is in the list too
            logger.debug("[EXPORT] Skipping detached control")
    return None


def select_export_control(elements) -> Optional[Tuple[object, str]]:
    """
    Pick the export control from `elements` (in DOM order).

    Returns:
        (element, "text" | "icon"), or None if nothing matches
    """
    elements = list(elements)
    element = _first(elements, matches_text)
    if element is not None:
        return element, MATCH_TEXT
    element = _first(elements, matches_icon)
    if element is not None:
        return element, MATCH_ICON
    return None


def activate_export(driver) -> str:
    """
    Click the page's PDF export control.

    Returns:
        How the control was matched ("text" or "icon")

    Raises:
        ControlNotFound: If neither pass finds a control
    """
    controls = driver.find_elements(By.CSS_SELECTOR, CONTROL_SELECTOR)
    logger.info(f"[EXPORT] Scanning {len(controls)} controls for export button")

    selected = select_export_control(controls)
    if selected is None:
        raise ControlNotFound("Export button not found")

    element, kind = selected
    driver.execute_script(CLICK_SCRIPT, element)
    logger.info(f"[EXPORT] Clicked export button (matched by {kind})")
    return kind
