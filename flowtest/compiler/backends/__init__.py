"""Backend registry: identifier -> BackendProfile implementation."""

from __future__ import annotations

from flowtest.compiler.backends.base import BackendProfile, SuiteCase
from flowtest.compiler.backends.cypress import CypressBackend
from flowtest.compiler.backends.playwright import PlaywrightBackend
from flowtest.compiler.backends.selenium import SeleniumBackend
from flowtest.config import CompilerSettings
from flowtest.exceptions import UnknownBackendError

_BACKENDS: dict[str, type[BackendProfile]] = {
    SeleniumBackend.name: SeleniumBackend,
    CypressBackend.name: CypressBackend,
    PlaywrightBackend.name: PlaywrightBackend,
}


def available_backends() -> list[str]:
    return sorted(_BACKENDS)


def get_backend(name: str, settings: CompilerSettings | None = None) -> BackendProfile:
    """Instantiate the backend registered under ``name`` (case-insensitive)."""
    key = (name or "").strip().lower()
    try:
        backend_cls = _BACKENDS[key]
    except KeyError:
        raise UnknownBackendError(name, available_backends()) from None
    return backend_cls(settings)


__all__ = [
    "BackendProfile",
    "CypressBackend",
    "PlaywrightBackend",
    "SeleniumBackend",
    "SuiteCase",
    "available_backends",
    "get_backend",
]
