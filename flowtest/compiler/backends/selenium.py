"""Selenium WebDriver backend: a Python ``unittest`` suite."""

from __future__ import annotations

from flowtest.compiler.backends.base import SuiteCase
from flowtest.compiler.backends.python_common import LOG_HELPERS_SOURCE, PythonBackend
from flowtest.compiler.expressions import PythonExpressions
from flowtest.compiler.selectors import SeleniumSelectors
from flowtest.compiler.types import Action, Condition, Locator
from flowtest.config import CompilerSettings
from flowtest.core.types import Node

_IMPORTS = '''\
import datetime
import json
import os
import re
import time
import unittest

from colorama import Fore, Style, init
from selenium import webdriver
from selenium.common.exceptions import NoSuchElementException
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
'''

_SUITE_CLASS = '''\
class TestSuite(unittest.TestCase):
    results = {"passed": 0, "failed": 0, "timings": {}}

    def setUp(self):
        self.vars = {}
        self.screenshot_counter = 0

    @classmethod
    def record_result(cls, name, passed, started):
        elapsed = time.time() - started
        cls.results["passed" if passed else "failed"] += 1
        cls.results["timings"][name] = elapsed
        if passed:
            log_pass(f"{name} passed in {elapsed:.2f}s")
        else:
            log_fail(f"{name} failed after {elapsed:.2f}s")
'''

_SUMMARY = '''\
    @classmethod
    def tearDownClass(cls):
        log_info("=" * 40)
        log_info(f"Summary: {cls.results['passed']} passed, {cls.results['failed']} failed")
        for name, seconds in cls.results["timings"].items():
            log_info(f"  {name}: {seconds:.2f}s")


if __name__ == "__main__":
    unittest.main()
'''

_DRIVERS = {
    "chrome": "Chrome",
    "firefox": "Firefox",
    "edge": "Edge",
    "safari": "Safari",
}


class SeleniumBackend(PythonBackend):
    name = "selenium"
    # class -> def -> try
    body_indent = 3
    shot_counter = "self.screenshot_counter"
    lookup_errors = ("NoSuchElementException",)

    def __init__(self, settings: CompilerSettings | None = None) -> None:
        expressions = PythonExpressions("self.vars")
        super().__init__(expressions, SeleniumSelectors(expressions), settings)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def action_lines(self, action: Action, node: Node, element: Locator) -> list[str]:
        if action == Action.CLICK:
            return [f"{element.base}.click()"]
        if action == Action.TYPE:
            return [f"{element.base}.send_keys({self.text_value(node.get('value', ''))})"]
        if action == Action.CLEAR:
            return [f"{element.base}.clear()"]
        if action == Action.HOVER:
            return [
                f"element = {element.base}",
                "webdriver.ActionChains(driver).move_to_element(element).perform()",
            ]
        return [f"txt_val = {element.base}.text"]

    def settle_lines(self) -> list[str]:
        seconds = self.settings.interact_settle_seconds
        return [f"time.sleep({seconds})"] if seconds > 0 else []

    def assert_check(self, condition: Condition, node: Node, element: Locator | None):
        value = self.text_value(node.get("value", ""))
        if condition == Condition.VISIBLE:
            return [], f"{element.base}.is_displayed()"
        if condition == Condition.CONTAINS_TEXT:
            return [
                f"el = {element.base}",
                'txt = el.text or el.get_attribute("value") or ""',
            ], f"{value} in txt"
        if condition == Condition.HAS_CLASS:
            return [
                f"el = {element.base}",
                'el_classes = el.get_attribute("class") or ""',
            ], f"{value} in el_classes.split()"
        if condition == Condition.PROPERTY_EQUALS:
            prop = self.quote(node.text("propertyName", "value"))
            return [
                f"el = {element.base}",
                f"prop_val = el.get_attribute({prop})",
            ], f"str(prop_val) == {value}"
        if condition == Condition.URL_CONTAINS:
            return [], f"{value} in driver.current_url"
        if condition == Condition.URL_MATCHES_PATTERN:
            pattern = self.text_value(self.regex_pattern(node.text("value")))
            return [], f"re.search({pattern}, driver.current_url)"
        return None

    def unsupported_assert_lines(self, condition: Condition, node: Node) -> list[str]:
        alias = node.text("networkAlias", "request")
        status = self.int_field(node, "expectedStatus", 200)
        return [
            self.comment(f"Assert Network Status: @{alias} == {status}"),
            self.comment("Note: Selenium does not support native network assertion."),
            self.comment("Consider using selenium-wire for network inspection."),
        ]

    def branch_guard(self, condition: Condition, node: Node, element: Locator | None):
        value = self.text_value(node.get("value", ""))
        if condition.needs_element:
            lookup = f"elements = driver.find_elements({element.query})"
            if condition == Condition.VISIBLE:
                return [lookup], "len(elements) > 0 and elements[0].is_displayed()"
            if condition == Condition.CONTAINS_TEXT:
                return [lookup, 'el_txt = elements[0].text if elements else ""'], f"{value} in el_txt"
            if condition == Condition.HAS_CLASS:
                return [
                    lookup,
                    'el_classes = (elements[0].get_attribute("class") or "") if elements else ""',
                ], f"{value} in el_classes.split()"
            prop = self.quote(node.text("propertyName", "value"))
            return [
                lookup,
                f"prop_val = elements[0].get_attribute({prop}) if elements else None",
            ], f"str(prop_val) == {value}"
        if condition == Condition.URL_CONTAINS:
            return [], f"{value} in driver.current_url"
        if condition == Condition.URL_MATCHES_PATTERN:
            pattern = self.text_value(self.regex_pattern(node.text("value")))
            return [], f"re.search({pattern}, driver.current_url)"
        return None

    def visible_expr(self, element: Locator) -> str:
        return f"{element.base}.is_displayed()"

    def sleep_statement(self, seconds: str) -> str:
        return f"time.sleep({seconds})"

    def network_wait_lines(self, alias: str) -> list[str]:
        return [
            self.comment(f"Wait for network request '@{alias}'"),
            self.comment("Note: Selenium does not support native network wait."),
            self.comment("Consider using selenium-wire or explicit waits instead."),
            "time.sleep(1)  # Fallback: wait 1 second",
        ]

    def screenshot_statement(self, path: str) -> str:
        return f"driver.save_screenshot({path})"

    # ------------------------------------------------------------------
    # Emitters
    # ------------------------------------------------------------------

    def emit_entry_point(self, node: Node, ctx) -> str:
        browser = node.text("browser", self.settings.default_browser)
        driver = _DRIVERS.get(browser.strip().lower())
        out = ""
        if driver is None:
            out += ctx.warn(f"Unknown browser {browser!r}; using Chrome")
            driver = "Chrome"
        url = self.translate(node.get("url", self.settings.default_url))

        out += ctx.lines(
            f"driver = webdriver.{driver}()",
            "driver.maximize_window()",
            f"driver.get({self.expressions.to_string(url)})",
            'WebDriverWait(driver, 10).until(lambda d: d.execute_script("return document.readyState") == "complete")',
        )
        if node.flag("clearCookies"):
            out += ctx.line("driver.delete_all_cookies()")
        if node.flag("clearLocalStorage"):
            out += ctx.line('driver.execute_script("window.localStorage.clear();")')
        if node.flag("clearSessionStorage"):
            out += ctx.line('driver.execute_script("window.sessionStorage.clear();")')
        return out + ctx.proceed()

    def emit_network_rule(self, node: Node, ctx) -> str:
        method = node.text("method", "GET")
        pattern = node.text("urlPattern", "**/api/*")
        alias = node.text("alias", "request")
        out = ctx.lines(
            self.comment(f"Network Intercept: {method} {pattern} (alias: {alias})"),
            self.comment("Note: Selenium does not support native network interception."),
            self.comment("Consider using selenium-wire or mitmproxy for request mocking."),
        )
        if node.flag("mockResponse"):
            out += ctx.line(self.comment(f"Mock Response: Status {self.int_field(node, 'statusCode', 200)}"))
        return out + ctx.proceed()

    def emit_custom_call(self, node: Node, ctx) -> str:
        name = self.command_name(node)
        if name is None:
            return ctx.warn(f"Invalid command name {node.text('commandName')!r}") + ctx.proceed()
        out = ctx.lines(
            self.comment(f"Custom command: {name}"),
            f"{name}({', '.join(self.call_arguments(node))})",
        )
        return out + ctx.proceed()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def file_header(self, cases: list[SuiteCase]) -> str:
        parts = [
            f'"""Generated by flowtest ({self.name} backend, {len(cases)} test cases)."""\n\n'
            + _IMPORTS.rstrip("\n"),
            self.block(LOG_HELPERS_SOURCE).rstrip("\n"),
            self.block(_SUITE_CLASS).rstrip("\n"),
        ]
        return "\n\n\n".join(parts) + "\n"

    def case_open(self, case: SuiteCase) -> str:
        return "\n" + self.block(
            f'''
def {case.name}(self):
    {self.log("info", f"Starting Test Case: {case.title}")}
    {self.log("info", f"Browser: {case.browser}, URL: {case.url}")}
    started = time.time()
    driver = None
    try:
''',
            level=1,
        )

    def case_close(self, case: SuiteCase) -> str:
        name = self.quote(case.name)
        return self.block(
            f'''
        self.record_result({name}, True, started)
    except Exception:
        self.record_result({name}, False, started)
        raise
    finally:
        if driver is not None:
            log_info("Test finished. Closing driver.")
            driver.quit()
''',
            level=1,
        )

    def file_footer(self, cases: list[SuiteCase]) -> str:
        return "\n" + self.block(_SUMMARY)
