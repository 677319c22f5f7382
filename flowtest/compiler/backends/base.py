"""Backend profile contract shared by every output format."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from flowtest.compiler.expressions import ExpressionTranslator
from flowtest.compiler.selectors import SelectorTranslator
from flowtest.compiler.types import Condition
from flowtest.config import CompilerSettings, get_settings
from flowtest.core.types import Node, NodeKind

# Node kind -> emitter method; every backend implements all of them
_HANDLERS: dict[NodeKind, str] = {
    NodeKind.ENTRY_POINT: "emit_entry_point",
    NodeKind.ELEMENT_DESCRIPTOR: "emit_element_descriptor",
    NodeKind.INTERACT: "emit_interact",
    NodeKind.ASSERT: "emit_assert",
    NodeKind.BRANCH: "emit_branch",
    NodeKind.REPEAT: "emit_repeat",
    NodeKind.DELAY: "emit_delay",
    NodeKind.CAPTURE: "emit_capture",
    NodeKind.SET_VARIABLE: "emit_set_variable",
    NodeKind.NETWORK_RULE: "emit_network_rule",
    NodeKind.LOAD_FIXTURE: "emit_load_fixture",
    NodeKind.CUSTOM_CALL: "emit_custom_call",
}

_unhandled = set(NodeKind) - set(_HANDLERS)
if _unhandled:
    raise RuntimeError(f"No emitter registered for node kinds: {sorted(k.value for k in _unhandled)}")


@dataclass(frozen=True)
class SuiteCase:
    """One EntryPoint, resolved into the fields the wrappers need."""

    node: Node
    index: int  # 1-based
    name: str  # identifier used for the wrapper
    title: str  # human-readable title
    browser: str
    url: str


_NON_WORD = re.compile(r"\W+")
_CALLABLE = re.compile(r"[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*")


class BackendProfile(ABC):
    """
    One target output format: translators, per-kind emitters and templates.

    Subclasses implement one ``emit_<kind>`` method per node kind; ``emit``
    dispatches on the node's kind and the FlowWalker handles traversal.
    """

    name: str = ""
    file_suffix: str = ""
    comment_prefix: str = "#"
    # indentation level of statements inside a test case wrapper
    body_indent: int = 0
    # Python backends need a test_ prefix for discovery
    test_prefix: str = ""

    def __init__(
        self,
        expressions: ExpressionTranslator,
        selectors: SelectorTranslator,
        settings: CompilerSettings | None = None,
    ) -> None:
        self.expressions = expressions
        self.selectors = selectors
        self.settings = settings or get_settings()
        self.indent_unit = " " * self.settings.indent_width

    def emit(self, node: Node, ctx) -> str:
        return getattr(self, _HANDLERS[node.kind])(node, ctx)

    # ------------------------------------------------------------------
    # Small syntax helpers
    # ------------------------------------------------------------------

    def comment(self, text: str) -> str:
        return f"{self.comment_prefix} {' '.join(str(text).split())}"

    def block(self, template: str, level: int = 0) -> str:
        """Re-indent a 4-space template to the configured unit, nested at level."""
        out = []
        for line in template.strip("\n").splitlines():
            stripped = line.lstrip(" ")
            if not stripped:
                out.append("")
                continue
            depth = (len(line) - len(stripped)) // 4
            out.append(self.indent_unit * (level + depth) + stripped)
        return "\n".join(out) + "\n"

    def quote(self, text: str) -> str:
        return self.expressions.quote(text)

    def translate(self, raw: object) -> str:
        return self.expressions.translate(raw)

    def case_name(self, raw: str, index: int, taken: set[str]) -> str:
        """Sanitize a free-text test name into a unique identifier."""
        name = _NON_WORD.sub("_", raw.strip()).strip("_")
        if not name:
            name = f"test_case_{index}"
        if name[0].isdigit():
            name = f"_{name}"
        if self.test_prefix and not name.startswith(self.test_prefix):
            name = f"{self.test_prefix}{name}"
        unique, suffix = name, 2
        while unique in taken:
            unique = f"{name}_{suffix}"
            suffix += 1
        taken.add(unique)
        return unique

    def filename(self, case: SuiteCase) -> str:
        return f"{case.name}{self.file_suffix}"

    @staticmethod
    def condition_of(node: Node) -> Condition | None:
        return Condition.parse(node.get("condition"), Condition.VISIBLE)

    @staticmethod
    def regex_pattern(raw: str) -> str:
        """Strip the surrounding slashes of a ``/pattern/`` literal."""
        if len(raw) >= 2 and raw.startswith("/") and raw.endswith("/"):
            return raw[1:-1]
        return raw

    @staticmethod
    def json_body(raw: object) -> str:
        """Compact JSON for a mocked response body; invalid JSON becomes {}."""
        if isinstance(raw, (dict, list)):
            return json.dumps(raw)
        try:
            return json.dumps(json.loads(str(raw or "{}")))
        except ValueError:
            return "{}"

    @staticmethod
    def int_field(node: Node, key: str, default: int) -> int:
        try:
            return int(float(node.get(key, default)))
        except (TypeError, ValueError):
            return default

    @staticmethod
    def split_arguments(raw: str) -> list[str]:
        return [arg.strip() for arg in raw.split(",") if arg.strip()]

    @staticmethod
    def command_name(node: Node) -> str | None:
        """The CustomCall routine name, or None when it is not a dotted identifier."""
        name = node.text("commandName", "my_command")
        return name if _CALLABLE.fullmatch(name) else None

    def call_arguments(self, node: Node) -> list[str]:
        return [self.translate(arg) for arg in self.split_arguments(node.text("arguments"))]

    # ------------------------------------------------------------------
    # Emitters
    # ------------------------------------------------------------------

    def emit_element_descriptor(self, node: Node, ctx) -> str:
        # data-only node; reachable by flow only through a miswired edge
        return ctx.proceed()

    @abstractmethod
    def emit_entry_point(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_interact(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_assert(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_branch(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_repeat(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_delay(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_capture(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_set_variable(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_network_rule(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_load_fixture(self, node: Node, ctx) -> str: ...

    @abstractmethod
    def emit_custom_call(self, node: Node, ctx) -> str: ...

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    @abstractmethod
    def noop_statement(self) -> str:
        """Explicit empty statement for a block with nothing connected."""

    @abstractmethod
    def warning_statement(self, message: str) -> str: ...

    @abstractmethod
    def file_header(self, cases: list[SuiteCase]) -> str: ...

    @abstractmethod
    def case_open(self, case: SuiteCase) -> str: ...

    @abstractmethod
    def case_close(self, case: SuiteCase) -> str: ...

    @abstractmethod
    def file_footer(self, cases: list[SuiteCase]) -> str: ...
