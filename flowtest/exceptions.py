"""Exception types raised by flowtest."""

from __future__ import annotations


class FlowtestError(Exception):
    """Base class for all flowtest errors."""


class GraphFormatError(FlowtestError, ValueError):
    """The supplied graph payload does not have the expected shape."""


class UnknownBackendError(FlowtestError, KeyError):
    """No backend profile is registered under the requested name."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown backend {self.name!r} (available: {', '.join(self.available)})"


class DeliveryError(FlowtestError, OSError):
    """Generated files could not be written to their destination."""
