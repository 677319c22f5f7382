"""Element capture: derive ElementDescriptor locator data from a live page."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from playwright.async_api import Page

from flowtest.compiler.types import LocatorKind
from flowtest.core.types import Node, NodeKind

logger = logging.getLogger(__name__)

# Most stable locator first
_KIND_PRIORITY: list[tuple[LocatorKind, str]] = [
    (LocatorKind.ID, "id"),
    (LocatorKind.NAME, "name"),
    (LocatorKind.CSS, "css"),
    (LocatorKind.LINK_TEXT, "linkText"),
    (LocatorKind.XPATH, "xpath"),
]

# Maps ARIA roles to HTML tag names for DOM lookup
_ROLE_TAG_MAP: dict[str, str] = {
    "button": "button,input[type=button],input[type=submit]",
    "textbox": "input,textarea",
    "checkbox": "input[type=checkbox]",
    "radio": "input[type=radio]",
    "combobox": "select",
    "listbox": "select",
    "link": "a",
    "heading": "h1,h2,h3,h4,h5,h6",
    "img": "img",
    "searchbox": "input",
}

_JS_LOCATE_ELEMENT = r"""
(args) => {
    const { role, name, value, roleTagMap } = args;

    function escapeAttr(s) {
        return s.replace(/\\/g, '\\\\').replace(/"/g, '\\"');
    }

    function escapeCSS(s) {
        return s.replace(/([!"#$%&'()*+,.\/;<=>?@[\\\]^`{|}~])/g, '\\$1');
    }

    let el = null;

    if (name) {
        el = document.querySelector('[aria-label="' + escapeAttr(name) + '"]')
            || document.querySelector('[placeholder="' + escapeAttr(name) + '"]')
            || document.querySelector('[name="' + escapeAttr(name) + '"]');
    }

    if (!el && role && roleTagMap[role]) {
        for (const c of document.querySelectorAll(roleTagMap[role])) {
            const label = c.getAttribute('aria-label') || c.getAttribute('placeholder') || c.textContent.trim();
            if (label === name || (value && c.value === value)) {
                el = c;
                break;
            }
        }
    }

    if (!el) {
        return null;
    }

    const result = {
        label: el.getAttribute('aria-label') || el.getAttribute('placeholder') || el.textContent.trim().slice(0, 60),
    };

    if (el.id && document.querySelectorAll('#' + escapeCSS(el.id)).length === 1) {
        result.id = el.id;
    }

    const nameAttr = el.getAttribute('name');
    if (nameAttr && document.getElementsByName(nameAttr).length === 1) {
        result.name = nameAttr;
    }

    // css path, up to 4 ancestors
    const parts = [];
    let node = el;
    let depth = 0;
    while (node && node !== document.body && depth < 4) {
        let part = node.tagName.toLowerCase();
        const classes = Array.from(node.classList).slice(0, 2);
        if (classes.length) {
            part += '.' + classes.map(c => escapeCSS(c)).join('.');
        }
        let nth = 1;
        let sib = node.previousElementSibling;
        while (sib) {
            if (sib.tagName === node.tagName) nth++;
            sib = sib.previousElementSibling;
        }
        if (nth > 1) {
            part += ':nth-of-type(' + nth + ')';
        }
        parts.unshift(part);
        node = node.parentElement;
        depth++;
    }
    const css = parts.join(' > ');
    if (css && document.querySelectorAll(css).length === 1) {
        result.css = css;
    }

    if (el.tagName.toLowerCase() === 'a') {
        const txt = el.textContent.trim();
        if (txt && txt.length <= 100) {
            result.linkText = txt;
        }
    }

    function getXPath(element) {
        const steps = [];
        let cur = element;
        while (cur && cur.nodeType === Node.ELEMENT_NODE) {
            let index = 1;
            let sib = cur.previousElementSibling;
            while (sib) {
                if (sib.tagName === cur.tagName) index++;
                sib = sib.previousElementSibling;
            }
            steps.unshift(cur.tagName.toLowerCase() + '[' + index + ']');
            cur = cur.parentElement;
        }
        return '/' + steps.join('/');
    }
    result.xpath = getXPath(el);

    return result;
}
"""


class ElementCapture:
    """Picks the most stable locator for an element in a running Playwright page."""

    async def capture(
        self,
        page: Page,
        *,
        role: str,
        name: str,
        value: str = "",
    ) -> dict[str, Any] | None:
        """
        Locate an element by role and accessible name and describe it.

        Returns ElementDescriptor data (``name``, ``selectorType``,
        ``selectorValue``) using the first available locator in the order
        ID, Name, CSS, Link Text, XPath, or None when nothing matches.
        """
        raw = await page.evaluate(
            _JS_LOCATE_ELEMENT,
            {"role": role, "name": name, "value": value, "roleTagMap": _ROLE_TAG_MAP},
        )
        if not raw:
            logger.info("No element matched role=%r name=%r on %s", role, name, page.url)
            return None

        for kind, key in _KIND_PRIORITY:
            selector = raw.get(key)
            if selector:
                logger.debug("Captured %r as %s=%r", name, kind.value, selector)
                return {
                    "name": name or raw.get("label") or "element",
                    "selectorType": kind.value,
                    "selectorValue": selector,
                }
        return None


def make_element_node(data: dict[str, Any], node_id: str | None = None) -> Node:
    """Wrap captured ElementDescriptor data in a graph Node."""
    return Node(
        id=node_id or f"element_{uuid.uuid4().hex[:8]}",
        kind=NodeKind.ELEMENT_DESCRIPTOR,
        data=dict(data),
    )
