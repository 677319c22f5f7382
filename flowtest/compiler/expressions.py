"""Expression translation: free-text field values -> backend-native expressions.

Resolution order, first match wins:

1. ``=expr``       native expression source, ``${path}`` replaced by accessors
2. ``${path}``     raw variable-store accessor (keeps the stored value's type)
3. ``a ${x} b``    backend string interpolation
4. literal         decimal numbers unquoted, everything else a quoted string

``=${i}+1`` therefore resolves through rule 1, never rule 3.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod

_REFERENCE = re.compile(r"\$\{([^}]+)\}")
_DECIMAL = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?")
_INTEGER = re.compile(r"-?(?:0|[1-9]\d*)")
_JS_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")


def bare_reference(text: str) -> str | None:
    """Return the path if text (trimmed) is exactly one ``${path}``, else None."""
    match = _REFERENCE.fullmatch(text.strip())
    return match.group(1).strip() if match else None


def has_reference(text: str) -> bool:
    return _REFERENCE.search(text) is not None


def is_decimal(text: str) -> bool:
    return _DECIMAL.fullmatch(text) is not None


class ExpressionTranslator(ABC):
    """Base translator; subclasses supply the backend's syntax."""

    def translate(self, raw: object) -> str:
        if raw is None:
            return self.quote("")
        text = str(raw).strip()

        if text.startswith("="):
            source = text[1:].strip()
            if not source:
                return self.quote("")
            return _REFERENCE.sub(lambda m: self.accessor(m.group(1)), source)

        path = bare_reference(text)
        if path is not None:
            return self.accessor(path)

        if has_reference(text):
            return self.interpolate(text)

        if is_decimal(text):
            return text
        return self.quote(text)

    def accessor(self, path: str) -> str:
        """``a.b.0`` -> root lookup of ``a`` followed by member access per segment."""
        root, *rest = [part.strip() for part in path.strip().split(".")]
        expr = self.root_lookup(root)
        for segment in rest:
            expr += self.member(segment)
        return expr

    def interpolate(self, text: str) -> str:
        pieces: list[tuple[bool, str]] = []
        cursor = 0
        for match in _REFERENCE.finditer(text):
            if match.start() > cursor:
                pieces.append((False, text[cursor:match.start()]))
            pieces.append((True, self.accessor(match.group(1))))
            cursor = match.end()
        if cursor < len(text):
            pieces.append((False, text[cursor:]))
        return self.render_interpolation(pieces)

    def as_int(self, expr: str) -> str:
        """Integer-coerce a translated expression; integer literals pass through."""
        if _INTEGER.fullmatch(expr):
            return expr
        return self.int_cast(expr)

    def as_number(self, expr: str) -> str:
        if is_decimal(expr):
            return expr
        return self.float_cast(expr)

    @abstractmethod
    def root_lookup(self, name: str) -> str: ...

    @abstractmethod
    def member(self, segment: str) -> str: ...

    @abstractmethod
    def quote(self, text: str) -> str: ...

    @abstractmethod
    def render_interpolation(self, pieces: list[tuple[bool, str]]) -> str:
        """Render (is_expression, text) pieces as one interpolated string."""

    @abstractmethod
    def int_cast(self, expr: str) -> str: ...

    @abstractmethod
    def float_cast(self, expr: str) -> str: ...

    @abstractmethod
    def to_string(self, expr: str) -> str: ...


class PythonExpressions(ExpressionTranslator):
    """Python source: dict-backed variable store, f-string interpolation."""

    def __init__(self, store: str = "self.vars") -> None:
        self.store = store

    def root_lookup(self, name: str) -> str:
        return f"{self.store}.get({self.quote(name)})"

    def member(self, segment: str) -> str:
        if segment.isdigit():
            return f"[{int(segment)}]"
        return f"[{self.quote(segment)}]"

    def quote(self, text: str) -> str:
        return json.dumps(text, ensure_ascii=False)

    def render_interpolation(self, pieces: list[tuple[bool, str]]) -> str:
        # single-quoted so double-quoted accessor keys stay legal before 3.12
        if any(is_expr and ("'" in text or "\\" in text) for is_expr, text in pieces):
            return self.concatenate(pieces)
        out = []
        for is_expr, text in pieces:
            if is_expr:
                out.append("{" + text + "}")
            else:
                escaped = json.dumps(text, ensure_ascii=False)[1:-1]
                escaped = escaped.replace('\\"', '"').replace("'", "\\'")
                out.append(escaped.replace("{", "{{").replace("}", "}}"))
        return "f'" + "".join(out) + "'"

    def concatenate(self, pieces: list[tuple[bool, str]]) -> str:
        """``("a" + str(x) + "b")``; for expressions an f-string cannot hold."""
        parts = [f"str({text})" if is_expr else self.quote(text) for is_expr, text in pieces]
        return "(" + " + ".join(parts) + ")"

    def int_cast(self, expr: str) -> str:
        return f"int({expr})"

    def float_cast(self, expr: str) -> str:
        return f"float({expr})"

    def to_string(self, expr: str) -> str:
        if expr.startswith(('"', "f'")):
            return expr
        if is_decimal(expr):
            return self.quote(expr)
        return f"str({expr})"


class JavaScriptExpressions(ExpressionTranslator):
    """JavaScript source: Cypress.env() store, template-literal interpolation."""

    def __init__(self, store: str = "Cypress.env") -> None:
        self.store = store

    def root_lookup(self, name: str) -> str:
        return f"{self.store}({self.quote(name)})"

    def member(self, segment: str) -> str:
        if segment.isdigit():
            return f"[{int(segment)}]"
        if _JS_IDENTIFIER.fullmatch(segment):
            return f".{segment}"
        return f"[{self.quote(segment)}]"

    def quote(self, text: str) -> str:
        return json.dumps(text, ensure_ascii=False)

    def render_interpolation(self, pieces: list[tuple[bool, str]]) -> str:
        out = []
        for is_expr, text in pieces:
            if is_expr:
                out.append("${" + text + "}")
            else:
                escaped = text.replace("\\", "\\\\").replace("`", "\\`")
                out.append(escaped.replace("${", "\\${"))
        return "`" + "".join(out) + "`"

    def int_cast(self, expr: str) -> str:
        return f"Math.trunc(Number({expr}))"

    def float_cast(self, expr: str) -> str:
        return f"Number({expr})"

    def to_string(self, expr: str) -> str:
        if expr.startswith(('"', "`")):
            return expr
        if is_decimal(expr):
            return self.quote(expr)
        return f"String({expr})"
