"""Tests for CompilerSettings and the cached settings accessor."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from flowtest.config import CompilerSettings, get_settings


class TestCompilerSettings:
    def test_defaults(self, monkeypatch):
        for name in ("DEFAULT_BACKEND", "INDENT_WIDTH", "WHILE_MAX_ITERATIONS"):
            monkeypatch.delenv(f"FLOWTEST_{name}", raising=False)
        settings = CompilerSettings()
        assert settings.default_backend == "selenium"
        assert settings.indent_width == 4
        assert settings.while_max_iterations == 100
        assert settings.default_browser == "Chrome"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("FLOWTEST_DEFAULT_BACKEND", " Cypress ")
        monkeypatch.setenv("FLOWTEST_INDENT_WIDTH", "2")
        settings = CompilerSettings()
        assert settings.default_backend == "cypress"
        assert settings.indent_width == 2

    @pytest.mark.parametrize("field, value", [("indent_width", 0), ("indent_width", 9), ("while_max_iterations", 0)])
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            CompilerSettings(**{field: value})


class TestGetSettings:
    def setup_method(self):
        get_settings.cache_clear()

    def teardown_method(self):
        get_settings.cache_clear()

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_reads_environment_once(self, monkeypatch):
        monkeypatch.setenv("FLOWTEST_SCREENSHOT_DIR", "/tmp/shots")
        assert get_settings().screenshot_dir == "/tmp/shots"
        monkeypatch.setenv("FLOWTEST_SCREENSHOT_DIR", "/elsewhere")
        assert get_settings().screenshot_dir == "/tmp/shots"
