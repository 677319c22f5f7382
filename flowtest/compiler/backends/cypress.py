"""Cypress backend: a JavaScript ``describe``/``it`` spec file."""

from __future__ import annotations

import re
from decimal import Decimal

from flowtest.compiler.backends.base import BackendProfile, SuiteCase
from flowtest.compiler.expressions import JavaScriptExpressions, is_decimal
from flowtest.compiler.selectors import CypressSelectors
from flowtest.compiler.types import Action, Condition, DelayMode, Locator, RepeatMode
from flowtest.config import CompilerSettings
from flowtest.core.types import Node, SourceRole

_HEADER = '''\
/// <reference types="cypress" />
// Generated by flowtest (cypress backend, {count} test cases).
// XPath locators need the cypress-xpath plugin: require("cypress-xpath") in cypress/support/e2e.js

const results = {{ passed: 0, failed: 0, timings: {{}} }};

Cypress.on("fail", (error, runnable) => {{
    Cypress.log({{ name: "FAIL", message: `${{runnable.title}}: ${{error.message}}` }});
    throw error;
}});

describe("flowtest suite", () => {{
    let startedAt = 0;

    beforeEach(() => {{
        startedAt = Date.now();
    }});

    afterEach(function () {{
        const passed = this.currentTest.state === "passed";
        results[passed ? "passed" : "failed"] += 1;
        results.timings[this.currentTest.title] = Date.now() - startedAt;
    }});
'''

_FOOTER = '''\
    after(() => {
        cy.log(`Summary: ${results.passed} passed, ${results.failed} failed`);
        Object.entries(results.timings).forEach(([title, ms]) => {
            cy.log(`${title}: ${ms} ms`);
        });
    });
});
'''

_NON_WORD = re.compile(r"\W+")


class CypressBackend(BackendProfile):
    name = "cypress"
    file_suffix = ".cy.js"
    comment_prefix = "//"
    # describe -> it
    body_indent = 2

    def __init__(self, settings: CompilerSettings | None = None) -> None:
        expressions = JavaScriptExpressions("Cypress.env")
        super().__init__(expressions, CypressSelectors(expressions), settings)

    def log(self, message: str) -> str:
        return f"cy.log({self.quote(message)});"

    def text_value(self, raw: object) -> str:
        return self.expressions.to_string(self.translate(raw))

    def noop_statement(self) -> str:
        return "; // nothing connected"

    def warning_statement(self, message: str) -> str:
        return self.comment(f"Warning: {message}")

    # ------------------------------------------------------------------
    # Emitters
    # ------------------------------------------------------------------

    def emit_entry_point(self, node: Node, ctx) -> str:
        browser = node.text("browser", self.settings.default_browser)
        url = self.expressions.to_string(self.translate(node.get("url", self.settings.default_url)))
        out = ctx.line(self.comment(f"Browser: {browser} (select it with `cypress run --browser {browser.lower()}`)"))
        if node.flag("clearCookies"):
            out += ctx.line("cy.clearCookies();")
        if node.flag("clearLocalStorage"):
            out += ctx.line("cy.clearLocalStorage();")
        if node.flag("clearSessionStorage"):
            out += ctx.line("cy.window().then((win) => win.sessionStorage.clear());")
        out += ctx.line(f"cy.visit({url});")
        return out + ctx.proceed()

    def emit_interact(self, node: Node, ctx) -> str:
        element = ctx.element()
        if element is None:
            return ctx.warn("Interact node has no element connected") + ctx.proceed()

        action = Action.parse(node.get("action"), Action.CLICK)
        if action is None:
            return ctx.warn(f"Unknown action {node.text('action')!r}") + ctx.proceed()
        save_to = node.text("saveTo").strip()
        if action == Action.CAPTURE_TEXT and not save_to:
            return ctx.warn("Get Text has no variable to save to") + ctx.proceed()

        out = ctx.line(self.log(f"Action: {action.value} on '{element.name}'"))
        if action == Action.CLICK:
            out += ctx.line(f"{element.base}.click();")
        elif action == Action.TYPE:
            out += ctx.line(f"{element.base}.type({self.text_value(node.get('value', ''))});")
        elif action == Action.CLEAR:
            out += ctx.line(f"{element.base}.clear();")
        elif action == Action.HOVER:
            out += ctx.line(f'{element.base}.trigger("mouseover");')
        else:
            out += ctx.line(
                f'{element.base}.invoke("text").then((txt) => Cypress.env({self.quote(save_to)}, txt));'
            )
        return out + ctx.proceed()

    def emit_assert(self, node: Node, ctx) -> str:
        condition = self.condition_of(node)
        if condition is None:
            return ctx.warn(f"Unknown assert condition {node.text('condition')!r}") + ctx.proceed()
        element = ctx.element()
        if condition.needs_element and element is None:
            return ctx.warn(f"{condition.value} assertion has no element connected") + ctx.proceed()

        value = self.text_value(node.get("value", ""))
        if condition == Condition.VISIBLE:
            chain = f'{element.base}.should("be.visible")'
        elif condition == Condition.CONTAINS_TEXT:
            chain = f'{element.base}.should("contain.text", {value})'
        elif condition == Condition.HAS_CLASS:
            chain = f'{element.base}.should("have.class", {value})'
        elif condition == Condition.PROPERTY_EQUALS:
            prop = self.quote(node.text("propertyName", "value"))
            chain = f'{element.base}.should("have.prop", {prop}, {self.translate(node.get("value", ""))})'
        elif condition == Condition.URL_CONTAINS:
            chain = f'cy.url().should("include", {value})'
        elif condition == Condition.URL_MATCHES_PATTERN:
            pattern = self.text_value(self.regex_pattern(node.text("value")))
            chain = f'cy.url().should("match", new RegExp({pattern}))'
        else:
            alias = self.quote("@" + node.text("networkAlias", "request"))
            status = self.int_field(node, "expectedStatus", 200)
            chain = f'cy.wait({alias}).its("response.statusCode").should("eq", {status})'

        out = ctx.line(self.log(f"Asserting: {condition.value}"))
        if node.flag("printResults"):
            message = self.quote(f"[PASS] {condition.value}")
            out += ctx.line(f"{chain}.then(() => cy.log({message}));")
        else:
            out += ctx.line(f"{chain};")
        return out + ctx.proceed()

    def _branch_subject(self, condition: Condition, node: Node, element: Locator | None):
        """(subject command, callback parameter, predicate), or None when unsupported."""
        value = self.text_value(node.get("value", ""))
        if condition.needs_element:
            if element.query is None:
                return None
            found = f"$body.find({element.query})"
            if condition == Condition.VISIBLE:
                predicate = f'{found}.length > 0 && {found}.is(":visible")'
            elif condition == Condition.CONTAINS_TEXT:
                predicate = f"{found}.text().includes({value})"
            elif condition == Condition.HAS_CLASS:
                predicate = f"{found}.hasClass({value})"
            else:
                prop = self.quote(node.text("propertyName", "value"))
                predicate = f"String({found}.prop({prop})) === {value}"
            return 'cy.get("body")', "$body", predicate
        if condition == Condition.URL_CONTAINS:
            return "cy.url()", "url", f"url.includes({value})"
        if condition == Condition.URL_MATCHES_PATTERN:
            pattern = self.text_value(self.regex_pattern(node.text("value")))
            return "cy.url()", "url", f"new RegExp({pattern}).test(url)"
        alias = self.quote("@" + node.text("networkAlias", "request"))
        status = self.int_field(node, "expectedStatus", 200)
        return f"cy.wait({alias})", "interception", f"interception.response.statusCode === {status}"

    def emit_branch(self, node: Node, ctx) -> str:
        condition = self.condition_of(node)
        label = condition.value if condition is not None else node.text("condition")
        out = ctx.line(self.comment(f"Condition Check: {label}"))

        subject = None
        if condition is None:
            out += ctx.warn(f"Unknown branch condition {label!r}; taking the true block")
        else:
            element = ctx.element()
            if condition.needs_element and element is None:
                out += ctx.warn(f"{condition.value} condition has no element connected; taking the true block")
            else:
                subject = self._branch_subject(condition, node, element)
                if subject is None:
                    out += ctx.warn(
                        f"{condition.value} needs a CSS-style locator to inspect the page; taking the true block"
                    )
        if subject is None:
            subject = ("cy.wrap(true)", "matched", "matched")

        command, param, predicate = subject
        out += ctx.line(f"{command}.then(({param}) => {{")
        out += ctx.line(f"if ({predicate}) {{", 1)
        out += ctx.line(self.log(">> Condition matched (TRUE)"), 2)
        out += ctx.branch(SourceRole.TRUE, extra=2) or ctx.line(self.noop_statement(), 2)
        out += ctx.line("} else {", 1)
        out += ctx.line(self.log(">> Condition failed (FALSE)"), 2)
        out += ctx.branch(SourceRole.FALSE, extra=2) or ctx.line(self.noop_statement(), 2)
        out += ctx.line("}", 1)
        out += ctx.line("});")
        return out

    def emit_repeat(self, node: Node, ctx) -> str:
        out = ""
        mode = RepeatMode.parse(node.get("loopType"), RepeatMode.COUNTER)
        if mode is None:
            out += ctx.warn(f"Unknown loop type {node.text('loopType')!r}; counting instead")
            mode = RepeatMode.COUNTER

        if mode == RepeatMode.COUNTER:
            count = self.expressions.as_int(self.translate(node.get("count", 1)))
            if count.lstrip("-").isdigit():
                out += ctx.line(self.log(f"Starting Loop ({count} iterations)"))
            else:
                out += ctx.line(f"cy.log(`Starting Loop (${{{count}}} iterations)`);")
            out += ctx.line(f"Cypress._.times({count}, (i) => {{")
            out += ctx.line("cy.log(`Loop iteration ${i + 1}`);", 1)
            out += ctx.repeat_body() or ctx.line(self.noop_statement(), 1)
            out += ctx.line("});")
        else:
            out += self._while_loop(node, ctx)

        out += ctx.line(self.log("Loop Finished"))
        return out + ctx.repeat_done()

    def _while_loop(self, node: Node, ctx) -> str:
        """Bounded recursive command chain that re-checks visibility each pass."""
        out = ctx.line(self.log("Starting While Loop"))
        limit = self.settings.while_max_iterations
        element = ctx.element()
        condition = Condition.parse(node.get("condition"), Condition.VISIBLE)
        if element is not None and condition != Condition.VISIBLE:
            out += ctx.warn(f"While loops poll element visibility; ignoring {node.text('condition')!r}")
        if element is None:
            out += ctx.warn(f"While loop has no element connected; stopping after {limit} iterations")
        elif element.query is None:
            out += ctx.warn(f"While loop needs a CSS-style locator; stopping after {limit} iterations")

        fn = "repeat_" + _NON_WORD.sub("_", node.id)
        out += ctx.line(f"const {fn} = (iteration) => {{")
        out += ctx.line(f"if (iteration >= {limit}) {{", 1)
        out += ctx.line("return;", 2)
        out += ctx.line("}", 1)
        out += ctx.line('cy.get("body").then(($body) => {', 1)
        if element is not None and element.query is not None:
            found = f"$body.find({element.query})"
            out += ctx.line(f'if (!({found}.length > 0 && {found}.is(":visible"))) {{', 2)
            out += ctx.line("return;", 3)
            out += ctx.line("}", 2)
        out += ctx.line("cy.log(`While iteration ${iteration + 1}`);", 2)
        out += ctx.repeat_body(extra=2)
        out += ctx.line(f"{fn}(iteration + 1);", 2)
        out += ctx.line("});", 1)
        out += ctx.line("};")
        out += ctx.line(f"{fn}(0);")
        return out

    def emit_delay(self, node: Node, ctx) -> str:
        out = ""
        mode = DelayMode.parse(node.get("waitType"), DelayMode.TIME)
        if mode == DelayMode.NETWORK:
            alias = self.quote("@" + node.text("networkAlias", "request"))
            return ctx.line(f"cy.wait({alias});") + ctx.proceed()
        if mode is None:
            out += ctx.warn(f"Unknown wait type {node.text('waitType')!r}; sleeping instead")

        seconds = self.expressions.as_number(self.translate(node.get("duration", 1)))
        if is_decimal(seconds):
            millis = format((Decimal(seconds) * 1000).normalize(), "f")
        else:
            millis = f"{seconds} * 1000"
        out += ctx.line(f"cy.wait({millis});")
        return out + ctx.proceed()

    def emit_capture(self, node: Node, ctx) -> str:
        directory = node.text("directory", self.settings.screenshot_dir).rstrip("/")
        if directory.startswith("./"):
            directory = directory[2:]
        filename = node.text("filename", "screenshot")
        path = f"{directory}/{filename}" if directory and directory != "." else filename

        out = ctx.line(self.comment("Capture Screenshot"))
        if node.flag("autoIncrement"):
            numbered = self.expressions.render_interpolation([(False, f"{path}_"), (True, "shotCounter")])
            out += ctx.line("shotCounter += 1;")
            out += ctx.line(f"cy.screenshot({numbered});")
        else:
            out += ctx.line(f"cy.screenshot({self.quote(path)});")
        return out + ctx.proceed()

    def emit_set_variable(self, node: Node, ctx) -> str:
        name = self.quote(node.text("varName", "my_var"))
        value = self.translate(node.get("varValue", ""))
        return ctx.line(f"Cypress.env({name}, {value});") + ctx.proceed()

    def emit_network_rule(self, node: Node, ctx) -> str:
        method = self.quote(node.text("method", "GET").upper())
        pattern = self.quote(node.text("urlPattern", "**/api/*"))
        alias = self.quote(node.text("alias", "request"))
        if not node.flag("mockResponse"):
            return ctx.line(f"cy.intercept({method}, {pattern}).as({alias});") + ctx.proceed()

        out = ctx.line(f"cy.intercept({method}, {pattern}, {{")
        out += ctx.lines(
            f"statusCode: {self.int_field(node, 'statusCode', 200)},",
            f"body: {self.json_body(node.get('responseBody', '{}'))},",
            extra=1,
        )
        out += ctx.line(f"}}).as({alias});")
        return out + ctx.proceed()

    def emit_load_fixture(self, node: Node, ctx) -> str:
        path = self.quote(node.text("filePath", "data.json"))
        name = self.quote(node.text("varName", "fixtureData"))
        out = ctx.line(f"cy.fixture({path}).then((data) => {{")
        out += ctx.line(f"Cypress.env({name}, data);", 1)
        out += ctx.line("});")
        return out + ctx.proceed()

    def emit_custom_call(self, node: Node, ctx) -> str:
        name = self.command_name(node)
        if name is None:
            return ctx.warn(f"Invalid command name {node.text('commandName')!r}") + ctx.proceed()
        return ctx.line(f"cy.{name}({', '.join(self.call_arguments(node))});") + ctx.proceed()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def file_header(self, cases: list[SuiteCase]) -> str:
        return self.block(_HEADER.format(count=len(cases)))

    def case_open(self, case: SuiteCase) -> str:
        return "\n" + self.block(
            f"""
it({self.quote(case.title)}, () => {{
    {self.log(f"Browser: {case.browser}, URL: {case.url}")}
    let shotCounter = 0;
""",
            level=1,
        )

    def case_close(self, case: SuiteCase) -> str:
        return self.block("});", level=1)

    def file_footer(self, cases: list[SuiteCase]) -> str:
        return "\n" + self.block(_FOOTER)
