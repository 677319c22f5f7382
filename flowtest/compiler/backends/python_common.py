"""Emission shared by the Python backends (Selenium unittest, async Playwright)."""

from __future__ import annotations

from abc import abstractmethod

from flowtest.compiler.backends.base import BackendProfile
from flowtest.compiler.expressions import is_decimal
from flowtest.compiler.types import Action, Condition, DelayMode, Locator, RepeatMode
from flowtest.core.types import Node, SourceRole

# colorama log helpers pasted into every generated Python file
LOG_HELPERS_SOURCE = '''\
init(autoreset=True)


def log_step(message):
    timestamp = datetime.datetime.now().strftime("%H:%M:%S")
    print(f"{Fore.CYAN}[STEP {timestamp}] {message}")


def log_pass(message):
    print(f"{Fore.GREEN}[PASS] {message}")


def log_fail(message):
    print(f"{Fore.RED}[FAIL] {message}")


def log_info(message):
    print(f"{Style.DIM}[INFO] {message}")
'''


class PythonBackend(BackendProfile):
    """
    Python output with a dict variable store and colorama log helpers.

    Subclasses provide the automation calls (element checks, sleeps,
    screenshots, session bootstrap and network support) and the file
    templates; control flow, assertions wrappers and the variable store are
    emitted here.
    """

    file_suffix = ".py"
    comment_prefix = "#"
    test_prefix = "test_"

    # expression holding the per-test screenshot counter
    shot_counter: str = ""
    # exception types a failed element lookup raises in the generated code
    lookup_errors: tuple[str, ...] = ()

    @property
    def store(self) -> str:
        return self.expressions.store

    def except_clause(self, *names: str) -> str:
        caught = (*names, *self.lookup_errors)
        if len(caught) == 1:
            return f"except {caught[0]}:"
        return f"except ({', '.join(caught)}):"

    def log(self, level: str, message: str) -> str:
        return f"log_{level}({self.quote(message)})"

    def noop_statement(self) -> str:
        return "pass"

    def warning_statement(self, message: str) -> str:
        return self.log("info", f"Warning: {message}")

    def text_value(self, raw: object) -> str:
        """A translated field value coerced to a string expression."""
        return self.expressions.to_string(self.translate(raw))

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def action_lines(self, action: Action, node: Node, element: Locator) -> list[str]:
        """Statements performing ``action``; CAPTURE_TEXT must bind ``txt_val``."""

    def settle_lines(self) -> list[str]:
        return []

    @abstractmethod
    def assert_check(self, condition: Condition, node: Node, element: Locator | None) -> tuple[list[str], str] | None:
        """(setup lines, asserted expression), or None when unsupported."""

    @abstractmethod
    def branch_guard(self, condition: Condition, node: Node, element: Locator | None) -> tuple[list[str], str] | None:
        """(setup lines, guard expression) that never raise, or None when unsupported."""

    @abstractmethod
    def visible_expr(self, element: Locator) -> str: ...

    @abstractmethod
    def sleep_statement(self, seconds: str) -> str: ...

    @abstractmethod
    def network_wait_lines(self, alias: str) -> list[str]: ...

    @abstractmethod
    def screenshot_statement(self, path: str) -> str: ...

    @abstractmethod
    def unsupported_assert_lines(self, condition: Condition, node: Node) -> list[str]:
        """Comment lines emitted in place of an assertion the backend cannot check."""

    # ------------------------------------------------------------------
    # Emitters
    # ------------------------------------------------------------------

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

        out = ctx.line(self.log("step", f"Action: {action.value} on '{element.name}'"))
        out += ctx.lines(*self.action_lines(action, node, element))
        if action == Action.CAPTURE_TEXT:
            out += ctx.lines(
                f"{self.store}[{self.quote(save_to)}] = txt_val",
                f"log_info(f\"Saved text {{txt_val!r}} to variable \" + {self.quote(repr(save_to))})",
            )
        out += ctx.lines(*self.settle_lines())
        return out + ctx.proceed()

    def assert_message(self, condition: Condition, node: Node, element: Locator | None) -> str:
        name = element.name if element is not None else "element"
        value = node.text("value")
        if condition == Condition.VISIBLE:
            return f"Element '{name}' is visible"
        if condition == Condition.CONTAINS_TEXT:
            return f"Element '{name}' contains text '{value}'"
        if condition == Condition.HAS_CLASS:
            return f"Element '{name}' has class '{value}'"
        if condition == Condition.PROPERTY_EQUALS:
            prop = node.text("propertyName", "value")
            return f"Element '{name}' property '{prop}' equals '{value}'"
        if condition == Condition.URL_CONTAINS:
            return f"URL contains '{value}'"
        if condition == Condition.URL_MATCHES_PATTERN:
            return f"URL matches regex '{self.regex_pattern(value)}'"
        alias = node.text("networkAlias", "request")
        return f"Response '@{alias}' returned status {self.int_field(node, 'expectedStatus', 200)}"

    def emit_assert(self, node: Node, ctx) -> str:
        condition = self.condition_of(node)
        if condition is None:
            return ctx.warn(f"Unknown assert condition {node.text('condition')!r}") + ctx.proceed()
        element = ctx.element()
        if condition.needs_element and element is None:
            return ctx.warn(f"{condition.value} assertion has no element connected") + ctx.proceed()

        check = self.assert_check(condition, node, element)
        if check is None:
            return ctx.lines(*self.unsupported_assert_lines(condition, node)) + ctx.proceed()

        setup, expr = check
        message = self.assert_message(condition, node, element)
        out = ctx.line(self.log("step", f"Asserting: {condition.value}"))
        out += ctx.line("try:")
        out += ctx.lines(*setup, f"assert {expr}", extra=1)
        if node.flag("printResults"):
            out += ctx.line(self.log("pass", message), 1)
        out += ctx.line(self.except_clause("AssertionError"))
        out += ctx.lines(self.log("fail", message), "raise", extra=1)
        return out + ctx.proceed()

    def emit_branch(self, node: Node, ctx) -> str:
        condition = self.condition_of(node)
        label = condition.value if condition is not None else node.text("condition")
        out = ctx.line(self.log("info", f"Condition Check: {label}..."))

        guard = "True"
        if condition is None:
            out += ctx.warn(f"Unknown branch condition {label!r}; taking the true block")
        else:
            element = ctx.element()
            resolved = None
            if condition.needs_element and element is None:
                out += ctx.warn(f"{condition.value} condition has no element connected; taking the true block")
            else:
                resolved = self.branch_guard(condition, node, element)
                if resolved is None:
                    out += ctx.warn(f"{condition.value} is not supported as a branch condition here; taking the true block")
            if resolved is not None:
                setup, guard = resolved
                out += ctx.lines(*setup)

        out += ctx.line(f"if {guard}:")
        out += ctx.line(self.log("info", ">> Condition matched (TRUE)"), 1)
        out += ctx.branch(SourceRole.TRUE) or ctx.line(self.noop_statement(), 1)
        out += ctx.line("else:")
        out += ctx.line(self.log("info", ">> Condition failed (FALSE)"), 1)
        out += ctx.branch(SourceRole.FALSE) or ctx.line(self.noop_statement(), 1)
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
                out += ctx.line(self.log("info", f"Starting Loop ({count} iterations)"))
                out += ctx.line(f"for i in range({count}):")
            else:
                out += ctx.line(f"loop_count = {count}")
                out += ctx.line('log_info(f"Starting Loop ({loop_count} iterations)")')
                out += ctx.line("for i in range(loop_count):")
            out += ctx.line('log_info(f"--- Loop Iteration {i + 1} ---")', 1)
        else:
            out += ctx.line(self.log("info", "Starting While Loop"))
            element = ctx.element()
            condition = Condition.parse(node.get("condition"), Condition.VISIBLE)
            if element is not None and condition != Condition.VISIBLE:
                out += ctx.warn(f"While loops poll element visibility; ignoring {node.text('condition')!r}")
            limit = self.settings.while_max_iterations
            if element is None:
                out += ctx.warn(f"While loop has no element connected; stopping after {limit} iterations")
            out += ctx.line(f"for iteration in range({limit}):")
            if element is not None:
                out += ctx.lines("try:", extra=1)
                out += ctx.lines(f"if not {self.visible_expr(element)}:", extra=2)
                out += ctx.lines("break", extra=3)
                out += ctx.lines(self.except_clause(), extra=1)
                out += ctx.lines("break", extra=2)

        out += ctx.repeat_body() or ctx.line(self.noop_statement(), 1)
        out += ctx.line(self.log("info", "Loop Finished"))
        return out + ctx.repeat_done()

    def emit_delay(self, node: Node, ctx) -> str:
        out = ""
        mode = DelayMode.parse(node.get("waitType"), DelayMode.TIME)
        if mode == DelayMode.NETWORK:
            out += ctx.lines(*self.network_wait_lines(node.text("networkAlias", "request")))
            return out + ctx.proceed()
        if mode is None:
            out += ctx.warn(f"Unknown wait type {node.text('waitType')!r}; sleeping instead")

        seconds = self.expressions.as_number(self.translate(node.get("duration", 1)))
        if is_decimal(seconds):
            out += ctx.line(self.log("step", f"Waiting for {seconds} seconds..."))
            out += ctx.line(self.sleep_statement(seconds))
        else:
            out += ctx.line(f"delay_seconds = {seconds}")
            out += ctx.line('log_step(f"Waiting for {delay_seconds} seconds...")')
            out += ctx.line(self.sleep_statement("delay_seconds"))
        return out + ctx.proceed()

    def emit_capture(self, node: Node, ctx) -> str:
        directory = self.quote(node.text("directory", self.settings.screenshot_dir))
        filename = node.text("filename", "screenshot")

        out = ctx.line(self.comment("Capture Screenshot"))
        out += ctx.line(f"os.makedirs({directory}, exist_ok=True)")
        if node.flag("autoIncrement"):
            numbered = self.expressions.render_interpolation(
                [(False, f"{filename}_"), (True, self.shot_counter), (False, ".png")]
            )
            out += ctx.line(f"{self.shot_counter} += 1")
            out += ctx.line(f"save_path = os.path.join({directory}, {numbered})")
        else:
            out += ctx.line(f"save_path = os.path.join({directory}, {self.quote(filename + '.png')})")
        out += ctx.line(self.screenshot_statement("save_path"))
        out += ctx.line('log_info(f"Screenshot saved: {save_path}")')
        return out + ctx.proceed()

    def emit_set_variable(self, node: Node, ctx) -> str:
        name = node.text("varName", "my_var")
        value = self.translate(node.get("varValue", ""))
        return ctx.line(f"{self.store}[{self.quote(name)}] = {value}") + ctx.proceed()

    def emit_load_fixture(self, node: Node, ctx) -> str:
        path = node.text("filePath", "data.json")
        name = node.text("varName", "fixtureData")
        out = ctx.line(self.comment(f"Load fixture from {path}"))
        out += ctx.line(f'with open({self.quote(path)}, encoding="utf-8") as fixture_file:')
        out += ctx.line(f"{self.store}[{self.quote(name)}] = json.load(fixture_file)", 1)
        out += ctx.line(self.log("step", f"Loaded fixture '{path}' into variable '{name}'"))
        return out + ctx.proceed()
