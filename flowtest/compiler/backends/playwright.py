"""Playwright backend: a standalone async Python script, one coroutine per test case."""

from __future__ import annotations

from flowtest.compiler.backends.base import SuiteCase
from flowtest.compiler.backends.python_common import LOG_HELPERS_SOURCE, PythonBackend
from flowtest.compiler.expressions import PythonExpressions
from flowtest.compiler.selectors import PlaywrightSelectors
from flowtest.compiler.types import Action, Condition, Locator
from flowtest.config import CompilerSettings
from flowtest.core.types import Node

_IMPORTS = '''\
import asyncio
import datetime
import fnmatch
import json
import os
import re
import sys
import time

from colorama import Fore, Style, init
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
'''

_NETWORK_LOG_SOURCE = '''\
RESULTS = {"passed": 0, "failed": 0, "timings": {}}


class NetworkLog:
    """Routes registered on one page and the responses they matched, by alias."""

    def __init__(self, page):
        self.page = page
        self.rules = []
        self.responses = {}
        page.on("response", self.record)

    def record(self, response):
        for alias, method, pattern in self.rules:
            if response.request.method == method and fnmatch.fnmatch(response.url, pattern):
                self.responses.setdefault(alias, []).append(response)

    async def register(self, alias, method, pattern, status=None, body=None):
        method = method.upper()
        self.rules.append((alias, method, pattern))
        if status is None:
            return

        async def fulfill(route):
            if route.request.method != method:
                await route.fallback()
                return
            await route.fulfill(status=status, json=body)

        await self.page.route(pattern, fulfill)

    async def wait(self, alias, timeout=10.0):
        deadline = time.monotonic() + timeout
        while not self.responses.get(alias):
            if time.monotonic() > deadline:
                raise TimeoutError(f"No response recorded for @{alias}")
            await asyncio.sleep(0.1)
        return self.responses[alias][-1]
'''

_MAIN_SOURCE = '''\
async def main():
    async with async_playwright() as playwright:
        for test in TESTS:
            started = time.time()
            try:
                await test(playwright)
            except Exception as error:
                RESULTS["failed"] += 1
                log_fail(f"{test.__name__} failed: {error}")
            else:
                RESULTS["passed"] += 1
                log_pass(f"{test.__name__} passed")
            RESULTS["timings"][test.__name__] = time.time() - started

    log_info("=" * 40)
    log_info(f"Summary: {RESULTS['passed']} passed, {RESULTS['failed']} failed")
    for name, seconds in RESULTS["timings"].items():
        log_info(f"  {name}: {seconds:.2f}s")
    return RESULTS["failed"] == 0


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(main()) else 1)
'''

# browser label -> (browser type, launch arguments)
_BROWSERS = {
    "chrome": ("chromium", ""),
    "chromium": ("chromium", ""),
    "edge": ("chromium", 'channel="msedge"'),
    "firefox": ("firefox", ""),
    "safari": ("webkit", ""),
    "webkit": ("webkit", ""),
}


class PlaywrightBackend(PythonBackend):
    name = "playwright"
    # def -> try
    body_indent = 2
    shot_counter = "shot_counter"
    lookup_errors = ("PlaywrightError", "TimeoutError")

    def __init__(self, settings: CompilerSettings | None = None) -> None:
        expressions = PythonExpressions("store")
        super().__init__(expressions, PlaywrightSelectors(expressions), settings)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def action_lines(self, action: Action, node: Node, element: Locator) -> list[str]:
        if action == Action.CLICK:
            return [f"await {element.base}.click()"]
        if action == Action.TYPE:
            return [f"await {element.base}.fill({self.text_value(node.get('value', ''))})"]
        if action == Action.CLEAR:
            return [f"await {element.base}.clear()"]
        if action == Action.HOVER:
            return [f"await {element.base}.hover()"]
        return [f"txt_val = await {element.base}.inner_text()"]

    def assert_check(self, condition: Condition, node: Node, element: Locator | None):
        value = self.text_value(node.get("value", ""))
        if condition == Condition.VISIBLE:
            return [], f"await {element.base}.is_visible()"
        if condition == Condition.CONTAINS_TEXT:
            return [f"txt = await {element.base}.inner_text()"], f"{value} in txt"
        if condition == Condition.HAS_CLASS:
            return [
                f'el_classes = await {element.base}.get_attribute("class") or ""',
            ], f"{value} in el_classes.split()"
        if condition == Condition.PROPERTY_EQUALS:
            prop = self.quote(node.text("propertyName", "value"))
            return [
                f'prop_val = await {element.base}.evaluate("(el, name) => el[name]", {prop})',
            ], f"str(prop_val) == {value}"
        if condition == Condition.URL_CONTAINS:
            return [], f"{value} in page.url"
        if condition == Condition.URL_MATCHES_PATTERN:
            pattern = self.text_value(self.regex_pattern(node.text("value")))
            return [], f"re.search({pattern}, page.url)"
        alias = self.quote(node.text("networkAlias", "request"))
        status = self.int_field(node, "expectedStatus", 200)
        return [f"response = await network.wait({alias})"], f"response.status == {status}"

    def unsupported_assert_lines(self, condition: Condition, node: Node) -> list[str]:
        return [self.comment(f"{condition.value} cannot be asserted with Playwright")]

    def branch_guard(self, condition: Condition, node: Node, element: Locator | None):
        value = self.text_value(node.get("value", ""))
        if condition.needs_element:
            first = f"{element.base}.first"
            count = f"matches = await {element.base}.count()"
            if condition == Condition.VISIBLE:
                return [count], f"matches > 0 and await {first}.is_visible()"
            if condition == Condition.CONTAINS_TEXT:
                return [count, f'el_txt = await {first}.inner_text() if matches else ""'], f"{value} in el_txt"
            if condition == Condition.HAS_CLASS:
                return [
                    count,
                    f'el_classes = (await {first}.get_attribute("class") or "") if matches else ""',
                ], f"{value} in el_classes.split()"
            prop = self.quote(node.text("propertyName", "value"))
            return [
                count,
                f'prop_val = await {first}.evaluate("(el, name) => el[name]", {prop}) if matches else None',
            ], f"str(prop_val) == {value}"
        if condition == Condition.URL_CONTAINS:
            return [], f"{value} in page.url"
        if condition == Condition.URL_MATCHES_PATTERN:
            pattern = self.text_value(self.regex_pattern(node.text("value")))
            return [], f"re.search({pattern}, page.url)"
        alias = self.quote(node.text("networkAlias", "request"))
        status = self.int_field(node, "expectedStatus", 200)
        return [
            f"responses = network.responses.get({alias}, [])",
        ], f"bool(responses) and responses[-1].status == {status}"

    def visible_expr(self, element: Locator) -> str:
        return f"await {element.base}.is_visible()"

    def sleep_statement(self, seconds: str) -> str:
        return f"await asyncio.sleep({seconds})"

    def network_wait_lines(self, alias: str) -> list[str]:
        return [
            self.log("step", f"Waiting for network request '@{alias}'"),
            f"await network.wait({self.quote(alias)})",
        ]

    def screenshot_statement(self, path: str) -> str:
        return f"await page.screenshot(path={path})"

    # ------------------------------------------------------------------
    # Emitters
    # ------------------------------------------------------------------

    def emit_entry_point(self, node: Node, ctx) -> str:
        browser = node.text("browser", self.settings.default_browser)
        resolved = _BROWSERS.get(browser.strip().lower())
        out = ""
        if resolved is None:
            out += ctx.warn(f"Unknown browser {browser!r}; using chromium")
            resolved = _BROWSERS["chromium"]
        browser_type, launch_args = resolved
        url = self.expressions.to_string(self.translate(node.get("url", self.settings.default_url)))

        out += ctx.lines(
            f"browser = await playwright.{browser_type}.launch({launch_args})",
            "context = await browser.new_context()",
            "page = await context.new_page()",
            "network = NetworkLog(page)",
            f"await page.goto({url})",
        )
        if node.flag("clearCookies"):
            out += ctx.line("await context.clear_cookies()")
        if node.flag("clearLocalStorage"):
            out += ctx.line('await page.evaluate("window.localStorage.clear()")')
        if node.flag("clearSessionStorage"):
            out += ctx.line('await page.evaluate("window.sessionStorage.clear()")')
        return out + ctx.proceed()

    def emit_network_rule(self, node: Node, ctx) -> str:
        alias = self.quote(node.text("alias", "request"))
        method = self.quote(node.text("method", "GET").upper())
        pattern = self.quote(node.text("urlPattern", "**/api/*"))
        args = f"{alias}, {method}, {pattern}"
        if node.flag("mockResponse"):
            status = self.int_field(node, "statusCode", 200)
            body = self.quote(self.json_body(node.get("responseBody", "{}")))
            args += f", status={status}, body=json.loads({body})"
        return ctx.line(f"await network.register({args})") + ctx.proceed()

    def emit_custom_call(self, node: Node, ctx) -> str:
        name = self.command_name(node)
        if name is None:
            return ctx.warn(f"Invalid command name {node.text('commandName')!r}") + ctx.proceed()
        args = ", ".join(["page", *self.call_arguments(node)])
        out = ctx.lines(self.comment(f"Custom command: {name}"), f"await {name}({args})")
        return out + ctx.proceed()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def file_header(self, cases: list[SuiteCase]) -> str:
        parts = [
            f'"""Generated by flowtest ({self.name} backend, {len(cases)} test cases)."""\n\n'
            + _IMPORTS.rstrip("\n"),
            self.block(LOG_HELPERS_SOURCE).rstrip("\n"),
            self.block(_NETWORK_LOG_SOURCE).rstrip("\n"),
        ]
        return "\n\n\n".join(parts) + "\n"

    def case_open(self, case: SuiteCase) -> str:
        return "\n\n" + self.block(
            f'''
async def {case.name}(playwright):
    {self.log("info", f"Starting Test Case: {case.title}")}
    {self.log("info", f"Browser: {case.browser}, URL: {case.url}")}
    store = {{}}
    shot_counter = 0
    browser = None
    try:
'''
        )

    def case_close(self, case: SuiteCase) -> str:
        return self.block(
            '''
    finally:
        if browser is not None:
            log_info("Test finished. Closing browser.")
            await browser.close()
'''
        )

    def file_footer(self, cases: list[SuiteCase]) -> str:
        tests = ", ".join(case.name for case in cases)
        return f"\n\nTESTS = [{tests}]\n\n\n" + self.block(_MAIN_SOURCE)
