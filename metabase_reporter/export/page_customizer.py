"""
Page Customizer: Swap the Dashboard Header for Report Branding

A MutationObserver is installed on document.body. The first inserted
DIV/HEADER that looks like the Metabase dashboard header (Lato font, the
themed bottom border, or "header" in its class/id) has its content replaced
with our title, date and optional logo, then the observer disconnects.

The observer runs in the page, not in the pipeline. Nothing waits on it;
the orchestrator's settle delay is the only synchronization point. A
dashboard that never renders a matching header just keeps its own.
"""

from __future__ import annotations

import html
import logging
from typing import Optional

logger = logging.getLogger(__name__)

HEADER_FONT = "Lato"
HEADER_BORDER_TOKEN = "var(--mb-color-border)"
REPLACED_FLAG = "__reportHeaderReplaced"

HEADER_STYLE = (
    "display:flex;justify-content:space-between;align-items:center;"
    "color:black;font-size:18px;font-weight:300;height:3rem;"
)
LOGO_STYLE = "height:80px;vertical-align:middle;"

# arguments[0] = header markup, [1] = font, [2] = border token, [3] = flag name
OBSERVER_SCRIPT = """
const markup = arguments[0], font = arguments[1], border = arguments[2], flag = arguments[3];
window[flag] = false;
const looksLikeHeader = (node) => {
  if (node.nodeType !== 1) return false;
  if (node.tagName !== 'DIV' && node.tagName !== 'HEADER') return false;
  const style = node.style || {};
  const cls = typeof node.className === 'string' ? node.className : '';
  return (style.fontFamily || '').includes(font) ||
         (style.borderBottom || '').includes(border) ||
         cls.includes('header') ||
         (node.id || '').includes('header');
};
const observer = new MutationObserver((mutations) => {
  for (const mutation of mutations) {
    for (const node of mutation.addedNodes) {
      if (!looksLikeHeader(node)) continue;
      node.style.borderBottom = 'none';
      node.innerHTML = markup;
      window[flag] = true;
      observer.disconnect();
      return;
    }
  }
});
observer.observe(document.body, { childList: true, subtree: true });
"""

REPLACED_SCRIPT = f"return window.{REPLACED_FLAG} === true;"


def build_header_html(title: str, date: str, logo_data: Optional[str] = None) -> str:
    """
    Markup for the custom header.

    Contains exactly one <img> when `logo_data` is given, none otherwise.
    """
    title_section = f"<div><h2>{html.escape(title)}</h2><span>{html.escape(date)}</span></div>"
    logo_section = "<div></div>"
    if logo_data:
        logo_section = (
            f'<div><img src="{html.escape(logo_data, quote=True)}" alt="Logo" '
            f'style="{LOGO_STYLE}"></div>'
        )
    return f'<div style="{HEADER_STYLE}">{title_section}{logo_section}</div>'


def install_header_replacer(driver, title: str, date: str, logo_data: Optional[str] = None) -> None:
    """Install the header observer in the currently loaded document."""
    markup = build_header_html(title, date, logo_data)
    driver.execute_script(OBSERVER_SCRIPT, markup, HEADER_FONT, HEADER_BORDER_TOKEN, REPLACED_FLAG)
    logger.info(f"[HEADER] Observer installed (logo={'yes' if logo_data else 'no'})")


def header_replaced(driver) -> bool:
    """Whether the observer has fired in the current document."""
    return bool(driver.execute_script(REPLACED_SCRIPT))
