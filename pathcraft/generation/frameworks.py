"""
Supported target frameworks.

Each framework contributes a ``Dialect`` (file shape: imports, suite and test
wrappers, setup) and registers its step/assertion emitters. Adding a framework
means adding one dialect plus its emitters here; the generator is untouched.
"""

from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Tuple

from pathcraft.core.errors import UnsupportedFrameworkError
from pathcraft.core.models import AssertionType, InteractionStep, StepType, UserPath
from pathcraft.generation.emitters import (
    EmitContext,
    assertion_emitter,
    expects_checked,
    is_partial,
    step_emitter,
)


class Dialect(ABC):
    name: str = ""
    file_suffix: str = "test"
    dependencies: Tuple[str, ...] = ()
    helper_template: str = ""
    # Module exporting the page type used by page objects, if the framework has one
    page_module: Optional[str] = None
    page_type: str = "Page"

    def imports(self, ctx: EmitContext) -> List[str]:
        return []

    def suite_open(self, ctx: EmitContext, name: str) -> str:
        return f"describe({ctx.quote(name)}, () => {{"

    def test_open(self, ctx: EmitContext, name: str) -> str:
        return f"it({ctx.quote(name)}, async () => {{"

    def setup(self, ctx: EmitContext, path: UserPath) -> List[str]:
        """Lines of the shared setup block, indented relative to the suite body."""
        return []

    @property
    def uses_page(self) -> bool:
        return self.page_module is not None

    # Page object statements. ``ctx.page`` is the page receiver expression.

    def navigate(self, ctx: EmitContext) -> str:
        return f"await {ctx.page}.goto(this.url)"

    @abstractmethod
    def wait_for_load(self, ctx: EmitContext) -> str:
        """Statement that waits for the page to settle."""
        pass

    @abstractmethod
    def locate(self, ctx: EmitContext, selector: str) -> str:
        """Expression resolving ``selector`` to an element handle."""
        pass


DIALECTS: Dict[str, Dialect] = {}


def register_dialect(cls):
    DIALECTS[cls.name] = cls()
    return cls


def get_dialect(framework: str) -> Dialect:
    try:
        return DIALECTS[framework]
    except KeyError:
        raise UnsupportedFrameworkError(framework) from None


def _screenshot_reference(step: InteractionStep) -> str:
    return step.screenshot or f"screenshot-{step.id[:8]}.png"


# Playwright: locator driven, the default style


@register_dialect
class PlaywrightDialect(Dialect):
    name = "playwright"
    file_suffix = "spec"
    dependencies = ("@playwright/test",)
    helper_template = "helpers_playwright.jinja"
    page_module = "@playwright/test"

    def imports(self, ctx):
        return [ctx.finish(f"import {{ test, expect }} from {ctx.quote('@playwright/test')}")]

    def suite_open(self, ctx, name):
        return f"test.describe({ctx.quote(name)}, () => {{"

    def test_open(self, ctx, name):
        return f"test({ctx.quote(name)}, async ({{ page }}) => {{"

    def setup(self, ctx, path):
        viewport = path.metadata.viewport
        return [
            "test.beforeEach(async ({ page }) => {",
            ctx.formatting.indent + ctx.finish(
                f"await page.setViewportSize({{ width: {viewport.width}, height: {viewport.height} }})"
            ),
            ctx.close(),
        ]

    def wait_for_load(self, ctx):
        return f"await {ctx.page}.waitForLoadState({ctx.quote('networkidle')})"

    def locate(self, ctx, selector):
        return f"{ctx.page}.locator({selector})"


@step_emitter("playwright", StepType.NAVIGATION)
def _pw_navigate(step, ctx):
    return f"await {ctx.page}.goto({ctx.value(step)})"


@step_emitter("playwright", StepType.CLICK)
def _pw_click(step, ctx):
    return f"await {ctx.page}.click({ctx.selector(step)})"


@step_emitter("playwright", StepType.TYPE)
def _pw_type(step, ctx):
    return f"await {ctx.page}.fill({ctx.selector(step)}, {ctx.value(step)})"


@step_emitter("playwright", StepType.SELECT)
def _pw_select(step, ctx):
    return f"await {ctx.page}.selectOption({ctx.selector(step)}, {ctx.value(step)})"


@step_emitter("playwright", StepType.CHECK)
def _pw_check(step, ctx):
    method = "check" if step.value else "uncheck"
    return f"await {ctx.page}.{method}({ctx.selector(step)})"


@step_emitter("playwright", StepType.WAIT)
def _pw_wait(step, ctx):
    return f"await {ctx.page}.waitForTimeout({ctx.number(step)})"


@step_emitter("playwright", StepType.SCREENSHOT)
def _pw_screenshot(step, ctx):
    return f"await {ctx.page}.screenshot({{ path: {ctx.quote(_screenshot_reference(step))} }})"


@assertion_emitter("playwright", AssertionType.URL, AssertionType.NAVIGATION)
def _pw_assert_url(assertion, ctx):
    expected = ctx.regex(assertion.expected) if is_partial(assertion) else ctx.quote(assertion.expected)
    return f"await expect({ctx.page}).toHaveURL({expected})"


@assertion_emitter("playwright", AssertionType.TITLE)
def _pw_assert_title(assertion, ctx):
    expected = ctx.regex(assertion.expected) if is_partial(assertion) else ctx.quote(assertion.expected)
    return f"await expect({ctx.page}).toHaveTitle({expected})"


@assertion_emitter("playwright", AssertionType.VISIBLE)
def _pw_assert_visible(assertion, ctx):
    matcher = "toBeVisible" if assertion.expected is not False else "toBeHidden"
    return f"await expect({ctx.page}.locator({ctx.target(assertion)})).{matcher}()"


@assertion_emitter("playwright", AssertionType.TEXT)
def _pw_assert_text(assertion, ctx):
    matcher = "toContainText" if is_partial(assertion) else "toHaveText"
    return f"await expect({ctx.page}.locator({ctx.target(assertion)})).{matcher}({ctx.quote(assertion.expected)})"


@assertion_emitter("playwright", AssertionType.VALUE)
def _pw_assert_value(assertion, ctx):
    return f"await expect({ctx.page}.locator({ctx.target(assertion)})).toHaveValue({ctx.quote(assertion.expected)})"


@assertion_emitter("playwright", AssertionType.ATTRIBUTE, AssertionType.CHECKED)
def _pw_assert_attribute(assertion, ctx):
    locator = f"expect({ctx.page}.locator({ctx.target(assertion)}))"
    checked = expects_checked(assertion)
    if checked is not None:
        return f"await {locator}.{'' if checked else 'not.'}toBeChecked()"
    negate = "not." if assertion.operator.value == "not-exists" else ""
    return f"await {locator}.{negate}toHaveAttribute({ctx.quote(assertion.expected)})"


# Cypress: command chains on the global cy object


@register_dialect
class CypressDialect(Dialect):
    name = "cypress"
    dependencies = ("cypress",)
    helper_template = "helpers_cypress.jinja"

    def imports(self, ctx):
        if ctx.typed:
            return ['/// <reference types="cypress" />']
        return []

    def test_open(self, ctx, name):
        return f"it({ctx.quote(name)}, () => {{"

    def setup(self, ctx, path):
        viewport = path.metadata.viewport
        return [
            "beforeEach(() => {",
            ctx.formatting.indent + ctx.finish(f"cy.viewport({viewport.width}, {viewport.height})"),
            ctx.close(),
        ]

    def navigate(self, ctx):
        return "cy.visit(this.url)"

    def wait_for_load(self, ctx):
        return f"cy.document().its({ctx.quote('readyState')}).should({ctx.quote('eq')}, {ctx.quote('complete')})"

    def locate(self, ctx, selector):
        return f"cy.get({selector})"


@step_emitter("cypress", StepType.NAVIGATION)
def _cy_visit(step, ctx):
    return f"cy.visit({ctx.value(step)})"


@step_emitter("cypress", StepType.CLICK)
def _cy_click(step, ctx):
    return f"cy.get({ctx.selector(step)}).click()"


@step_emitter("cypress", StepType.TYPE)
def _cy_type(step, ctx):
    return f"cy.get({ctx.selector(step)}).type({ctx.value(step)})"


@step_emitter("cypress", StepType.SELECT)
def _cy_select(step, ctx):
    return f"cy.get({ctx.selector(step)}).select({ctx.value(step)})"


@step_emitter("cypress", StepType.CHECK)
def _cy_check(step, ctx):
    method = "check" if step.value else "uncheck"
    return f"cy.get({ctx.selector(step)}).{method}()"


@step_emitter("cypress", StepType.WAIT)
def _cy_wait(step, ctx):
    return f"cy.wait({ctx.number(step)})"


@step_emitter("cypress", StepType.SCREENSHOT)
def _cy_screenshot(step, ctx):
    # cy.screenshot appends its own extension
    return f"cy.screenshot({ctx.quote(PurePosixPath(_screenshot_reference(step)).stem)})"


@assertion_emitter("cypress", AssertionType.URL, AssertionType.NAVIGATION)
def _cy_assert_url(assertion, ctx):
    chainer = "include" if is_partial(assertion) else "eq"
    return f"cy.url().should({ctx.quote(chainer)}, {ctx.quote(assertion.expected)})"


@assertion_emitter("cypress", AssertionType.TITLE)
def _cy_assert_title(assertion, ctx):
    chainer = "include" if is_partial(assertion) else "eq"
    return f"cy.title().should({ctx.quote(chainer)}, {ctx.quote(assertion.expected)})"


@assertion_emitter("cypress", AssertionType.VISIBLE)
def _cy_assert_visible(assertion, ctx):
    chainer = "be.visible" if assertion.expected is not False else "not.be.visible"
    return f"cy.get({ctx.target(assertion)}).should({ctx.quote(chainer)})"


@assertion_emitter("cypress", AssertionType.TEXT)
def _cy_assert_text(assertion, ctx):
    chainer = "contain" if is_partial(assertion) else "have.text"
    return f"cy.get({ctx.target(assertion)}).should({ctx.quote(chainer)}, {ctx.quote(assertion.expected)})"


@assertion_emitter("cypress", AssertionType.VALUE)
def _cy_assert_value(assertion, ctx):
    return f"cy.get({ctx.target(assertion)}).should({ctx.quote('have.value')}, {ctx.quote(assertion.expected)})"


@assertion_emitter("cypress", AssertionType.ATTRIBUTE, AssertionType.CHECKED)
def _cy_assert_attribute(assertion, ctx):
    checked = expects_checked(assertion)
    if checked is not None:
        chainer = "be.checked" if checked else "not.be.checked"
        return f"cy.get({ctx.target(assertion)}).should({ctx.quote(chainer)})"
    chainer = "not.have.attr" if assertion.operator.value == "not-exists" else "have.attr"
    return f"cy.get({ctx.target(assertion)}).should({ctx.quote(chainer)}, {ctx.quote(assertion.expected)})"


# Puppeteer: low level driver calls, run under Jest


@register_dialect
class PuppeteerDialect(Dialect):
    name = "puppeteer"
    dependencies = ("puppeteer", "jest")
    helper_template = "helpers_puppeteer.jinja"
    page_module = "puppeteer"

    def imports(self, ctx):
        lines = [ctx.finish(f"import puppeteer from {ctx.quote('puppeteer')}")]
        if ctx.typed:
            lines.append(ctx.finish(f"import type {{ Browser, Page }} from {ctx.quote('puppeteer')}"))
        return lines

    def setup(self, ctx, path):
        i = ctx.formatting.indent
        viewport = path.metadata.viewport
        return [
            ctx.finish("let browser: Browser" if ctx.typed else "let browser"),
            ctx.finish("let page: Page" if ctx.typed else "let page"),
            "",
            "beforeAll(async () => {",
            i + ctx.finish("browser = await puppeteer.launch()"),
            i + ctx.finish("page = await browser.newPage()"),
            i + ctx.finish(f"await page.setViewport({{ width: {viewport.width}, height: {viewport.height} }})"),
            ctx.close(),
            "",
            "afterAll(async () => {",
            i + ctx.finish("await browser.close()"),
            ctx.close(),
        ]

    def wait_for_load(self, ctx):
        return f"await {ctx.page}.waitForNetworkIdle()"

    def locate(self, ctx, selector):
        return f"{ctx.page}.$({selector})"


@step_emitter("puppeteer", StepType.NAVIGATION)
def _pp_navigate(step, ctx):
    return f"await {ctx.page}.goto({ctx.value(step)})"


@step_emitter("puppeteer", StepType.CLICK)
def _pp_click(step, ctx):
    return f"await {ctx.page}.click({ctx.selector(step)})"


@step_emitter("puppeteer", StepType.TYPE)
def _pp_type(step, ctx):
    return f"await {ctx.page}.type({ctx.selector(step)}, {ctx.value(step)})"


@step_emitter("puppeteer", StepType.SELECT)
def _pp_select(step, ctx):
    return f"await {ctx.page}.select({ctx.selector(step)}, {ctx.value(step)})"


@step_emitter("puppeteer", StepType.CHECK)
def _pp_check(step, ctx):
    state = "true" if step.value else "false"
    return f"await {ctx.page}.$eval({ctx.selector(step)}, (el) => ({ctx.input_element()}.checked = {state}))"


@step_emitter("puppeteer", StepType.WAIT)
def _pp_wait(step, ctx):
    return f"await new Promise((resolve) => setTimeout(resolve, {ctx.number(step)}))"


@step_emitter("puppeteer", StepType.SCREENSHOT)
def _pp_screenshot(step, ctx):
    return f"await {ctx.page}.screenshot({{ path: {ctx.quote(_screenshot_reference(step))} }})"


@assertion_emitter("puppeteer", AssertionType.URL, AssertionType.NAVIGATION)
def _pp_assert_url(assertion, ctx):
    matcher = "toContain" if is_partial(assertion) else "toBe"
    return f"expect({ctx.page}.url()).{matcher}({ctx.quote(assertion.expected)})"


@assertion_emitter("puppeteer", AssertionType.TITLE)
def _pp_assert_title(assertion, ctx):
    matcher = "toContain" if is_partial(assertion) else "toBe"
    return f"expect(await {ctx.page}.title()).{matcher}({ctx.quote(assertion.expected)})"


@assertion_emitter("puppeteer", AssertionType.VISIBLE)
def _pp_assert_visible(assertion, ctx):
    option = "visible" if assertion.expected is not False else "hidden"
    return f"await {ctx.page}.waitForSelector({ctx.target(assertion)}, {{ {option}: true }})"


@assertion_emitter("puppeteer", AssertionType.TEXT)
def _pp_assert_text(assertion, ctx):
    matcher = "toContain" if is_partial(assertion) else "toBe"
    return (
        f"expect(await {ctx.page}.$eval({ctx.target(assertion)}, (el) => el.textContent))"
        f".{matcher}({ctx.quote(assertion.expected)})"
    )


@assertion_emitter("puppeteer", AssertionType.VALUE)
def _pp_assert_value(assertion, ctx):
    return (
        f"expect(await {ctx.page}.$eval({ctx.target(assertion)}, (el) => {ctx.input_element()}.value))"
        f".toBe({ctx.quote(assertion.expected)})"
    )


@assertion_emitter("puppeteer", AssertionType.ATTRIBUTE, AssertionType.CHECKED)
def _pp_assert_attribute(assertion, ctx):
    checked = expects_checked(assertion)
    if checked is not None:
        return (
            f"expect(await {ctx.page}.$eval({ctx.target(assertion)}, (el) => {ctx.input_element()}.checked))"
            f".toBe({'true' if checked else 'false'})"
        )
    present = "false" if assertion.operator.value == "not-exists" else "true"
    return (
        f"expect(await {ctx.page}.$eval({ctx.target(assertion)}, "
        f"(el) => el.hasAttribute({ctx.quote(assertion.expected)}))).toBe({present})"
    )
