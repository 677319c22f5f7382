"""Compiler settings, overridable through FLOWTEST_* environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CompilerSettings(BaseSettings):
    """Defaults applied when a graph leaves a field empty."""

    model_config = SettingsConfigDict(env_prefix="FLOWTEST_", extra="ignore")

    default_backend: str = "selenium"
    indent_width: int = Field(default=4, ge=1, le=8)
    default_url: str = "https://example.com"
    default_browser: str = "Chrome"
    screenshot_dir: str = "./screenshots"
    while_max_iterations: int = Field(default=100, ge=1)
    # Selenium pause after each element action (seconds)
    interact_settle_seconds: float = Field(default=0.5, ge=0.0)

    @field_validator("default_backend")
    @classmethod
    def _lower_backend(cls, value: str) -> str:
        return value.strip().lower()


@lru_cache(maxsize=1)
def get_settings() -> CompilerSettings:
    """Return the process-wide settings instance."""
    return CompilerSettings()
