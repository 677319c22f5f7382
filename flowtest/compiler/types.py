"""Compiler type definitions: step vocabularies, locators and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


def _fold(text: str) -> str:
    return text.lower().replace(" ", "").replace("_", "")


class _LabelledEnum(str, Enum):
    """Enum valued by the label the editor shows; parses labels or member names."""

    @classmethod
    def parse(cls, raw: object, default=None):
        """Return the matching member, default when raw is blank, None if unknown."""
        text = str(raw or "").strip()
        if not text:
            return default
        folded = _fold(text)
        for member in cls:
            if folded in (_fold(member.value), _fold(member.name)):
                return member
        return None


class Action(_LabelledEnum):
    CLICK = "Click"
    TYPE = "Type"
    CLEAR = "Clear"
    HOVER = "Hover"
    CAPTURE_TEXT = "Get Text"


class Condition(_LabelledEnum):
    VISIBLE = "Is Visible"
    CONTAINS_TEXT = "Contains Text"
    URL_CONTAINS = "URL Contains"
    URL_MATCHES_PATTERN = "URL Matches Regex"
    HAS_CLASS = "Has Class"
    PROPERTY_EQUALS = "Property Equals"
    NETWORK_STATUS = "Network Status"

    @property
    def needs_element(self) -> bool:
        return self in (
            Condition.VISIBLE,
            Condition.CONTAINS_TEXT,
            Condition.HAS_CLASS,
            Condition.PROPERTY_EQUALS,
        )


class LocatorKind(_LabelledEnum):
    ID = "ID"
    CSS = "CSS"
    XPATH = "XPath"
    NAME = "Name"
    LINK_TEXT = "Link Text"


class RepeatMode(_LabelledEnum):
    COUNTER = "Counter"
    WHILE = "While"


class DelayMode(_LabelledEnum):
    TIME = "time"
    NETWORK = "network"


@dataclass(frozen=True)
class Locator:
    """
    A backend-native element locator.

    ``query`` is the locator argument text (e.g. ``By.ID, "go"`` or
    ``"#go"``); ``base`` is the expression that chained action calls hang off
    (e.g. ``driver.find_element(By.ID, "go")`` or ``cy.xpath("//a")``).
    ``query`` is None when the backend has no plain query form for the kind.
    """

    kind: LocatorKind
    base: str
    query: str | None
    name: str = "element"


@dataclass
class CompilationResult:
    backend: str
    source: str
    test_names: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class GeneratedFile:
    filename: str
    content: str
    backend: str
