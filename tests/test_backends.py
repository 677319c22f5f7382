"""Unit tests for backend profiles: registry, helpers and per-kind emission."""

from __future__ import annotations

import pytest

from flowtest.compiler.backends import (
    CypressBackend,
    PlaywrightBackend,
    SeleniumBackend,
    available_backends,
    get_backend,
)
from flowtest.compiler.compiler import compile_graph
from flowtest.config import CompilerSettings
from flowtest.core.types import Edge, Graph, Node, NodeKind, SourceRole, TargetRole
from flowtest.exceptions import UnknownBackendError


def make_node(node_id: str, kind: NodeKind, **data) -> Node:
    return Node(id=node_id, kind=kind, data=data)


def make_element(value="go", selector_type="ID") -> Node:
    return make_node("el", NodeKind.ELEMENT_DESCRIPTOR, name="Target", selectorType=selector_type, selectorValue=value)


def single_step(node: Node, element: Node | None = None, entry_data=None) -> Graph:
    """EntryPoint -> node, with element wired into the node's dataIn handle."""
    entry = make_node("start", NodeKind.ENTRY_POINT, url="https://shop.test", **(entry_data or {}))
    nodes = [entry, node]
    edges = [Edge(id="e_flow", source="start", target=node.id)]
    if element is not None:
        nodes.append(element)
        edges.append(Edge(id="e_data", source=element.id, target=node.id, target_role=TargetRole.DATA_IN))
    return Graph(nodes=tuple(nodes), edges=tuple(edges))


def render(graph: Graph, backend: str, **overrides):
    return compile_graph(graph, backend, CompilerSettings(**overrides))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_available_backends_sorted(self):
        assert available_backends() == ["cypress", "playwright", "selenium"]

    @pytest.mark.parametrize(
        "name, cls",
        [("selenium", SeleniumBackend), ("CYPRESS", CypressBackend), (" Playwright ", PlaywrightBackend)],
    )
    def test_lookup_is_case_insensitive(self, name, cls):
        assert isinstance(get_backend(name, CompilerSettings()), cls)

    def test_unknown_backend(self):
        with pytest.raises(UnknownBackendError) as excinfo:
            get_backend("watir")
        assert excinfo.value.available == ["cypress", "playwright", "selenium"]
        assert str(excinfo.value) == "Unknown backend 'watir' (available: cypress, playwright, selenium)"

    def test_unknown_backend_is_a_key_error(self):
        with pytest.raises(KeyError):
            get_backend("")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


class TestProfileHelpers:
    def setup_method(self):
        self.backend = SeleniumBackend(CompilerSettings(indent_width=2))

    def test_block_reindents_to_configured_width(self):
        assert self.backend.block("if x:\n    y()\n", level=1) == "  if x:\n    y()\n"

    def test_block_keeps_blank_lines(self):
        assert self.backend.block("a\n\nb") == "a\n\nb\n"

    def test_comment_collapses_whitespace(self):
        assert self.backend.comment("two\nlines  here") == "# two lines here"
        assert CypressBackend(CompilerSettings()).comment("x") == "// x"

    def test_regex_pattern_strips_slashes(self):
        assert self.backend.regex_pattern("/abc/") == "abc"
        assert self.backend.regex_pattern("abc") == "abc"
        assert self.backend.regex_pattern("/") == "/"

    def test_json_body(self):
        assert self.backend.json_body('{"a": [1, 2]}') == '{"a": [1, 2]}'
        assert self.backend.json_body({"a": 1}) == '{"a": 1}'
        assert self.backend.json_body("not json") == "{}"
        assert self.backend.json_body(None) == "{}"

    def test_int_field(self):
        node = make_node("n", NodeKind.ASSERT, expectedStatus="201.0", statusCode="abc")
        assert self.backend.int_field(node, "expectedStatus", 200) == 201
        assert self.backend.int_field(node, "statusCode", 200) == 200
        assert self.backend.int_field(node, "missing", 200) == 200

    def test_command_name(self):
        assert self.backend.command_name(make_node("c", NodeKind.CUSTOM_CALL)) == "my_command"
        assert self.backend.command_name(make_node("c", NodeKind.CUSTOM_CALL, commandName="helpers.login")) == (
            "helpers.login"
        )
        assert self.backend.command_name(make_node("c", NodeKind.CUSTOM_CALL, commandName="bad name!")) is None

    def test_case_name(self):
        taken: set[str] = set()
        assert self.backend.case_name("Add to cart!", 1, taken) == "test_Add_to_cart"
        assert self.backend.case_name("test_login", 2, taken) == "test_login"
        assert self.backend.case_name("   ", 3, taken) == "test_case_3"


# ---------------------------------------------------------------------------
# EntryPoint
# ---------------------------------------------------------------------------


class TestEntryPoint:
    def setup_method(self):
        self.graph = Graph(
            nodes=(
                make_node(
                    "start",
                    NodeKind.ENTRY_POINT,
                    browser="Edge",
                    clearCookies=True,
                    clearLocalStorage="true",
                    clearSessionStorage=False,
                ),
            )
        )

    def test_selenium(self):
        source = render(self.graph, "selenium").source
        assert "driver = webdriver.Edge()" in source
        assert 'driver.get("https://example.com")' in source
        assert "driver.delete_all_cookies()" in source
        assert "localStorage.clear()" in source
        assert "sessionStorage" not in source

    def test_playwright(self):
        source = render(self.graph, "playwright").source
        assert 'browser = await playwright.chromium.launch(channel="msedge")' in source
        assert "await context.clear_cookies()" in source
        assert 'await page.evaluate("window.localStorage.clear()")' in source

    def test_cypress(self):
        source = render(self.graph, "cypress").source
        assert "// Browser: Edge (select it with `cypress run --browser edge`)" in source
        assert source.index("cy.clearCookies();") < source.index('cy.visit("https://example.com");')
        assert "cy.clearLocalStorage();" in source


# ---------------------------------------------------------------------------
# Interact and Assert
# ---------------------------------------------------------------------------


class TestInteract:
    @pytest.mark.parametrize(
        "backend, action, expected",
        [
            ("selenium", "Clear", 'driver.find_element(By.ID, "go").clear()'),
            ("selenium", "Hover", "webdriver.ActionChains(driver).move_to_element(element).perform()"),
            ("playwright", "Hover", 'await page.locator("#go").hover()'),
            ("playwright", "Type", 'await page.locator("#go").fill("")'),
            ("cypress", "Hover", 'cy.get("#go").trigger("mouseover");'),
            ("cypress", "Clear", 'cy.get("#go").clear();'),
        ],
    )
    def test_actions(self, backend, action, expected):
        graph = single_step(make_node("act", NodeKind.INTERACT, action=action), make_element())
        assert expected in render(graph, backend).source

    def test_get_text_stores_variable(self):
        node = make_node("act", NodeKind.INTERACT, action="Get Text", saveTo="title")
        graph = single_step(node, make_element())
        selenium = render(graph, "selenium").source
        assert 'txt_val = driver.find_element(By.ID, "go").text' in selenium
        assert 'self.vars["title"] = txt_val' in selenium
        cypress = render(graph, "cypress").source
        assert 'cy.get("#go").invoke("text").then((txt) => Cypress.env("title", txt));' in cypress

    def test_unknown_action(self):
        graph = single_step(make_node("act", NodeKind.INTERACT, action="Juggle"), make_element())
        assert render(graph, "selenium").warnings == ["act: Unknown action 'Juggle'"]

    def test_no_settle_pause_when_disabled(self):
        graph = single_step(make_node("act", NodeKind.INTERACT), make_element())
        assert "time.sleep(" not in render(graph, "selenium", interact_settle_seconds=0).source


class TestAssert:
    def test_property_equals(self):
        node = make_node("a", NodeKind.ASSERT, condition="Property Equals", propertyName="checked", value="true")
        graph = single_step(node, make_element())
        selenium = render(graph, "selenium").source
        assert 'prop_val = el.get_attribute("checked")' in selenium
        assert 'assert str(prop_val) == "true"' in selenium
        assert '.should("have.prop", "checked", "true");' in render(graph, "cypress").source

    def test_has_class(self):
        node = make_node("a", NodeKind.ASSERT, condition="Has Class", value="active")
        graph = single_step(node, make_element())
        playwright = render(graph, "playwright").source
        assert 'el_classes = await page.locator("#go").get_attribute("class") or ""' in playwright
        assert 'assert "active" in el_classes.split()' in playwright
        assert 'cy.get("#go").should("have.class", "active");' in render(graph, "cypress").source

    def test_url_regex_strips_slashes(self):
        graph = single_step(make_node("a", NodeKind.ASSERT, condition="URL Matches Regex", value="/checkout$/"))
        assert 'assert re.search("checkout$", driver.current_url)' in render(graph, "selenium").source
        assert 'cy.url().should("match", new RegExp("checkout$"));' in render(graph, "cypress").source

    def test_failure_is_logged_then_reraised(self):
        graph = single_step(make_node("a", NodeKind.ASSERT, condition="URL Contains", value="cart"))
        source = render(graph, "selenium").source
        assert (
            "            except (AssertionError, NoSuchElementException):\n"
            "                log_fail(\"URL contains 'cart'\")\n"
            "                raise\n"
        ) in source

    def test_print_results(self):
        node = make_node("a", NodeKind.ASSERT, condition="Is Visible", printResults=True)
        graph = single_step(node, make_element())
        assert "log_pass(\"Element 'Target' is visible\")" in render(graph, "selenium").source
        cypress = render(graph, "cypress").source
        assert 'cy.get("#go").should("be.visible").then(() => cy.log("[PASS] Is Visible"));' in cypress

    def test_network_status(self):
        node = make_node("a", NodeKind.ASSERT, condition="Network Status", networkAlias="login", expectedStatus="404")
        graph = single_step(node)
        selenium = render(graph, "selenium").source
        assert "# Assert Network Status: @login == 404" in selenium
        assert "# Note: Selenium does not support native network assertion." in selenium
        playwright = render(graph, "playwright").source
        assert 'response = await network.wait("login")' in playwright
        assert "assert response.status == 404" in playwright
        cypress = render(graph, "cypress").source
        assert 'cy.wait("@login").its("response.statusCode").should("eq", 404);' in cypress

    def test_missing_element(self):
        graph = single_step(make_node("a", NodeKind.ASSERT, condition="Contains Text", value="x"))
        assert render(graph, "playwright").warnings == ["a: Contains Text assertion has no element connected"]


# ---------------------------------------------------------------------------
# Branch and Repeat
# ---------------------------------------------------------------------------


class TestBranchGuards:
    def test_cypress_xpath_degrades(self):
        graph = single_step(make_node("b", NodeKind.BRANCH), make_element("//button", "XPath"))
        result = render(graph, "cypress")
        assert "cy.wrap(true).then((matched) => {" in result.source
        assert result.warnings == [
            "b: Is Visible needs a CSS-style locator to inspect the page; taking the true block"
        ]

    def test_cypress_network_status(self):
        graph = single_step(make_node("b", NodeKind.BRANCH, condition="Network Status", networkAlias="cart"))
        source = render(graph, "cypress").source
        assert 'cy.wait("@cart").then((interception) => {' in source
        assert "if (interception.response.statusCode === 200) {" in source

    def test_playwright_network_status(self):
        graph = single_step(make_node("b", NodeKind.BRANCH, condition="Network Status", networkAlias="cart"))
        source = render(graph, "playwright").source
        assert 'responses = network.responses.get("cart", [])' in source
        assert "if bool(responses) and responses[-1].status == 200:" in source

    def test_selenium_network_status_is_unsupported(self):
        graph = single_step(make_node("b", NodeKind.BRANCH, condition="Network Status"))
        result = render(graph, "selenium")
        assert "if True:" in result.source
        assert result.warnings == ["b: Network Status is not supported as a branch condition here; taking the true block"]

    def test_contains_text_guard_never_raises(self):
        graph = single_step(make_node("b", NodeKind.BRANCH, condition="Contains Text", value="Sale"), make_element())
        source = render(graph, "selenium").source
        assert 'el_txt = elements[0].text if elements else ""' in source
        assert 'if "Sale" in el_txt:' in source


class TestRepeat:
    def test_selenium_while_polls_visibility(self):
        graph = single_step(make_node("poll", NodeKind.REPEAT, loopType="While"), make_element("more"))
        source = render(graph, "selenium", while_max_iterations=7).source
        assert (
            "            for iteration in range(7):\n"
            "                try:\n"
            '                    if not driver.find_element(By.ID, "more").is_displayed():\n'
            "                        break\n"
            "                except NoSuchElementException:\n"
            "                    break\n"
        ) in source

    def test_while_ignores_other_conditions(self):
        node = make_node("poll", NodeKind.REPEAT, loopType="While", condition="Contains Text")
        result = render(single_step(node, make_element("more")), "playwright")
        assert result.warnings == ["poll: While loops poll element visibility; ignoring 'Contains Text'"]

    def test_cypress_while_is_recursive(self):
        graph = single_step(make_node("poll", NodeKind.REPEAT, loopType="While"), make_element("more"))
        source = render(graph, "cypress", while_max_iterations=5).source
        assert "const repeat_poll = (iteration) => {" in source
        assert "if (iteration >= 5) {" in source
        assert 'if (!($body.find("#more").length > 0 && $body.find("#more").is(":visible"))) {' in source
        assert "repeat_poll(iteration + 1);" in source
        assert "repeat_poll(0);" in source

    def test_cypress_while_with_xpath_warns(self):
        graph = single_step(make_node("poll", NodeKind.REPEAT, loopType="While"), make_element("//li", "XPath"))
        result = render(graph, "cypress")
        assert result.warnings == ["poll: While loop needs a CSS-style locator; stopping after 100 iterations"]
        assert "$body.find" not in result.source

    def test_unknown_loop_type_counts(self):
        graph = single_step(make_node("loop", NodeKind.REPEAT, loopType="Forever", count="2"))
        result = render(graph, "selenium")
        assert "for i in range(2):" in result.source
        assert result.warnings == ["loop: Unknown loop type 'Forever'; counting instead"]


# ---------------------------------------------------------------------------
# Delay, Capture, data and network steps
# ---------------------------------------------------------------------------


class TestDelay:
    def test_network_wait(self):
        graph = single_step(make_node("d", NodeKind.DELAY, waitType="network", networkAlias="login"))
        assert 'cy.wait("@login");' in render(graph, "cypress").source
        assert 'await network.wait("login")' in render(graph, "playwright").source
        selenium = render(graph, "selenium").source
        assert "# Note: Selenium does not support native network wait." in selenium
        assert "time.sleep(1)  # Fallback: wait 1 second" in selenium

    def test_fractional_seconds(self):
        graph = single_step(make_node("d", NodeKind.DELAY, duration="0.5"))
        assert "cy.wait(500);" in render(graph, "cypress").source
        assert "time.sleep(0.5)" in render(graph, "selenium").source

    def test_precise_seconds(self):
        graph = single_step(make_node("d", NodeKind.DELAY, duration="1234.5678"))
        assert "cy.wait(1234567.8);" in render(graph, "cypress").source
        assert "time.sleep(1234.5678)" in render(graph, "selenium").source

    def test_runtime_duration(self):
        graph = single_step(make_node("d", NodeKind.DELAY, duration="${pause}"))
        assert 'cy.wait(Number(Cypress.env("pause")) * 1000);' in render(graph, "cypress").source
        playwright = render(graph, "playwright").source
        assert 'delay_seconds = float(store.get("pause"))' in playwright
        assert "await asyncio.sleep(delay_seconds)" in playwright


class TestCapture:
    def test_auto_increment(self):
        node = make_node("c", NodeKind.CAPTURE, filename="cart", autoIncrement=True)
        graph = single_step(node)
        selenium = render(graph, "selenium").source
        assert "self.screenshot_counter += 1" in selenium
        assert "save_path = os.path.join(\"./screenshots\", f'cart_{self.screenshot_counter}.png')" in selenium
        cypress = render(graph, "cypress").source
        assert "shotCounter += 1;" in cypress
        assert "cy.screenshot(`screenshots/cart_${shotCounter}`);" in cypress

    def test_custom_directory(self):
        graph = single_step(make_node("c", NodeKind.CAPTURE, directory="out/", filename="home"))
        assert 'cy.screenshot("out/home");' in render(graph, "cypress").source
        assert 'os.makedirs("out/", exist_ok=True)' in render(graph, "playwright").source


class TestNetworkRule:
    def test_cypress_intercept(self):
        node = make_node("n", NodeKind.NETWORK_RULE, method="post", urlPattern="**/api/login", alias="login")
        assert 'cy.intercept("POST", "**/api/login").as("login");' in render(single_step(node), "cypress").source

    def test_cypress_mock_with_invalid_body(self):
        node = make_node("n", NodeKind.NETWORK_RULE, mockResponse=True, statusCode="404", responseBody="nope")
        source = render(single_step(node), "cypress").source
        assert (
            '        cy.intercept("GET", "**/api/*", {\n'
            "            statusCode: 404,\n"
            "            body: {},\n"
            '        }).as("request");\n'
        ) in source

    def test_playwright_register(self):
        node = make_node("n", NodeKind.NETWORK_RULE, mockResponse=True, responseBody='{"id": 1}')
        source = render(single_step(node), "playwright").source
        assert 'await network.register("request", "GET", "**/api/*", status=200, body=json.loads("{\\"id\\": 1}"))' in (
            source
        )

    def test_playwright_observe_only(self):
        node = make_node("n", NodeKind.NETWORK_RULE, alias="cart")
        assert 'await network.register("cart", "GET", "**/api/*")\n' in render(single_step(node), "playwright").source

    def test_selenium_comments(self):
        node = make_node("n", NodeKind.NETWORK_RULE, mockResponse=True, statusCode=503)
        source = render(single_step(node), "selenium").source
        assert "# Network Intercept: GET **/api/* (alias: request)" in source
        assert "# Mock Response: Status 503" in source


class TestDataSteps:
    def test_load_fixture(self):
        graph = single_step(make_node("f", NodeKind.LOAD_FIXTURE, filePath="users.json", varName="users"))
        selenium = render(graph, "selenium").source
        assert 'with open("users.json", encoding="utf-8") as fixture_file:' in selenium
        assert 'self.vars["users"] = json.load(fixture_file)' in selenium
        cypress = render(graph, "cypress").source
        assert 'cy.fixture("users.json").then((data) => {' in cypress
        assert 'Cypress.env("users", data);' in cypress

    def test_set_variable_defaults(self):
        graph = single_step(make_node("v", NodeKind.SET_VARIABLE))
        assert 'store["my_var"] = ""' in render(graph, "playwright").source

    def test_set_variable_number(self):
        graph = single_step(make_node("v", NodeKind.SET_VARIABLE, varName="n", varValue="3"))
        assert 'Cypress.env("n", 3);' in render(graph, "cypress").source


class TestCustomCall:
    def setup_method(self):
        self.graph = single_step(
            make_node("c", NodeKind.CUSTOM_CALL, commandName="login", arguments=" admin , ${pw} ,, ")
        )

    def test_cypress(self):
        assert 'cy.login("admin", Cypress.env("pw"));' in render(self.graph, "cypress").source

    def test_selenium(self):
        source = render(self.graph, "selenium").source
        assert "# Custom command: login" in source
        assert 'login("admin", self.vars.get("pw"))' in source

    def test_playwright_passes_page(self):
        assert 'await login(page, "admin", store.get("pw"))' in render(self.graph, "playwright").source

    def test_invalid_name(self):
        graph = single_step(make_node("c", NodeKind.CUSTOM_CALL, commandName="drop table;"))
        result = render(graph, "cypress")
        assert result.warnings == ["c: Invalid command name 'drop table;'"]
        assert "cy.drop" not in result.source
