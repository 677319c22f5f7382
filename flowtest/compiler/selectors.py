"""Selector translation: (locator kind, value) -> backend-native Locator."""

from __future__ import annotations

from abc import ABC, abstractmethod

from flowtest.compiler.expressions import (
    ExpressionTranslator,
    JavaScriptExpressions,
    PythonExpressions,
    bare_reference,
)
from flowtest.compiler.types import Locator, LocatorKind
from flowtest.core.types import Node


class SelectorTranslator(ABC):
    """
    Builds locators for one backend.

    A value that is exactly one ``${path}`` is resolved at runtime through the
    variable store; anything else is used as a literal.
    """

    def __init__(self, expressions: ExpressionTranslator) -> None:
        self.expressions = expressions

    def locate(self, kind: LocatorKind, value: object, name: str = "element") -> Locator:
        text = "" if value is None else str(value).strip()
        path = bare_reference(text)
        runtime = self.expressions.accessor(path) if path is not None else None
        return self.build(kind, text, runtime, name)

    def for_element(self, element: Node) -> Locator:
        """Locator for an ElementDescriptor node (unknown kinds fall back to ID)."""
        kind = LocatorKind.parse(element.get("selectorType"), LocatorKind.ID) or LocatorKind.ID
        return self.locate(kind, element.get("selectorValue", ""), element.text("name", "element"))

    def compose(self, prefix: str, literal: str, runtime: str | None, suffix: str = "") -> str:
        """String expression ``prefix + value + suffix`` for a literal or runtime value."""
        if runtime is None:
            return self.expressions.quote(prefix + literal + suffix)
        if not prefix and not suffix:
            return runtime
        pieces = [(False, prefix), (True, runtime), (False, suffix)]
        return self.expressions.render_interpolation([p for p in pieces if p[1]])

    @abstractmethod
    def build(self, kind: LocatorKind, literal: str, runtime: str | None, name: str) -> Locator:
        ...


class SeleniumSelectors(SelectorTranslator):
    """``By`` tuples; every kind goes through ``driver.find_element``."""

    _BY = {
        LocatorKind.ID: "By.ID",
        LocatorKind.CSS: "By.CSS_SELECTOR",
        LocatorKind.XPATH: "By.XPATH",
        LocatorKind.NAME: "By.NAME",
        LocatorKind.LINK_TEXT: "By.LINK_TEXT",
    }

    def __init__(self, expressions: PythonExpressions | None = None) -> None:
        super().__init__(expressions or PythonExpressions("self.vars"))

    def build(self, kind: LocatorKind, literal: str, runtime: str | None, name: str) -> Locator:
        query = f"{self._BY[kind]}, {self.compose('', literal, runtime)}"
        return Locator(kind=kind, base=f"driver.find_element({query})", query=query, name=name)


class PlaywrightSelectors(SelectorTranslator):
    """Playwright locators hanging off ``page``."""

    def __init__(self, expressions: PythonExpressions | None = None) -> None:
        super().__init__(expressions or PythonExpressions("store"))

    def build(self, kind: LocatorKind, literal: str, runtime: str | None, name: str) -> Locator:
        if kind == LocatorKind.LINK_TEXT:
            value = self.compose("", literal, runtime)
            base = f'page.get_by_role("link", name={value})'
            return Locator(kind=kind, base=base, query=None, name=name)

        if kind == LocatorKind.ID:
            query = self.compose("#", literal.lstrip("#"), runtime)
        elif kind == LocatorKind.NAME:
            query = self.compose('[name="', literal, runtime, '"]')
        elif kind == LocatorKind.XPATH:
            query = self.compose("xpath=", literal, runtime)
        else:
            query = self.compose("", literal, runtime)
        return Locator(kind=kind, base=f"page.locator({query})", query=query, name=name)


class CypressSelectors(SelectorTranslator):
    """
    ``cy.get`` selectors.

    XPath goes through ``cy.xpath`` (cypress-xpath plugin) and link text
    through ``cy.contains``; XPath therefore has no jQuery query form.
    """

    def __init__(self, expressions: JavaScriptExpressions | None = None) -> None:
        super().__init__(expressions or JavaScriptExpressions())

    def build(self, kind: LocatorKind, literal: str, runtime: str | None, name: str) -> Locator:
        if kind == LocatorKind.XPATH:
            value = self.compose("", literal, runtime)
            return Locator(kind=kind, base=f"cy.xpath({value})", query=None, name=name)

        if kind == LocatorKind.LINK_TEXT:
            text = self.compose("", literal, runtime)
            query = self.compose('a:contains("', literal, runtime, '")')
            return Locator(kind=kind, base=f'cy.contains("a", {text})', query=query, name=name)

        if kind == LocatorKind.ID:
            query = self.compose("#", literal.lstrip("#"), runtime)
        elif kind == LocatorKind.NAME:
            query = self.compose('[name="', literal, runtime, '"]')
        else:
            query = self.compose("", literal, runtime)
        return Locator(kind=kind, base=f"cy.get({query})", query=query, name=name)
