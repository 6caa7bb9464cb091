from typing import Dict, List, Optional, Tuple

from pathcraft.core.constants import TYPED_EXTENSION, UNTYPED_EXTENSION
from pathcraft.core.logging import log
from pathcraft.core.models import InteractionStep, StepType, UserPath
from pathcraft.generation.emitters import EmitContext, emit_step
from pathcraft.generation.frameworks import Dialect
from pathcraft.generation.models import (
    GenerationOptions,
    PageAction,
    PageObject,
    PageSelector,
    TestFile,
    TestFileMetadata,
)
from pathcraft.generation.naming import parameter_name, pascal_page_name, selector_name, unique_name

FORM_STEP_TYPES = {StepType.TYPE, StepType.SELECT, StepType.CHECK}
PARAMETER_STEP_TYPES = {StepType.TYPE, StepType.SELECT}
LOGIN_INPUT_TYPES = {"text-input", "email-input", "password-input"}


def as_input(step: InteractionStep) -> InteractionStep:
    """Password fields are recorded as clicks; in page objects they are filled from a parameter."""
    if step.type == StepType.CLICK and step.element is not None and step.element.type == "password-input":
        return step.model_copy(update={"type": StepType.TYPE})
    return step


class PageObjectContext(EmitContext):
    """Renders steps as page object statements: named selectors and method parameters."""

    def __init__(self, base: EmitContext, selectors: Dict[str, str], parameters: Dict[str, str]):
        super().__init__(base.formatting, base.language, page="this.page")
        self.selectors = selectors
        self.parameters = parameters

    def selector(self, step: InteractionStep) -> str:
        name = self.selectors.get(step.selector or "")
        if name is None:
            return super().selector(step)
        return f"this.selectors.{name}"

    def value(self, step: InteractionStep) -> str:
        if step.id in self.parameters:
            return self.parameters[step.id]
        return super().value(step)


class PageObjectGenerator:
    """
    Builds one page object class per visited page. Steps are attributed to the
    page most recently navigated to.
    """

    def __init__(self, options: GenerationOptions, dialect: Dialect):
        self.options = options
        self.dialect = dialect
        self.ctx = EmitContext(options.formatting, options.language)

    def generate(self, path: UserPath) -> List[TestFile]:
        log("Generating page objects", path_id=path.id, steps=len(path.steps))
        files = []
        names: Dict[str, object] = {}
        for url, steps in self.group_by_page(path).items():
            page = self.build_page_object(url, steps)
            page.name = unique_name(page.name, names)
            names[page.name] = page
            files.append(self.build_file(page, path))
        return files

    def group_by_page(self, path: UserPath) -> Dict[str, List[InteractionStep]]:
        groups: Dict[str, List[InteractionStep]] = {}
        current = path.start_url
        for step in path.steps:
            if step.type == StepType.NAVIGATION and step.value:
                current = str(step.value)
            groups.setdefault(current, []).append(step)
        return groups

    def build_page_object(self, url: str, steps: List[InteractionStep]) -> PageObject:
        selectors: Dict[str, PageSelector] = {}
        by_selector: Dict[str, str] = {}
        for step in steps:
            element = step.element
            if element is None or element.selector in by_selector:
                continue
            name = unique_name(selector_name(element), selectors)
            selectors[name] = PageSelector(
                name=name,
                selector=element.selector,
                description=element.text or f"{element.type} element",
                type=element.type,
            )
            by_selector[element.selector] = name

        page = PageObject(name=pascal_page_name(url), url=url, selectors=list(selectors.values()))
        inputs = [as_input(step) for step in steps]
        page.actions = [self.build_action(name, action_steps) for name, action_steps in self.action_patterns(inputs)]
        page.actions.append(PageAction(
            name="navigate",
            description="Navigate to the page",
            body=[self.dialect.navigate(self._page_ctx(by_selector, {}))],
        ))
        page.actions.append(PageAction(
            name="waitForLoad",
            description="Wait for the page to finish loading",
            body=[self.dialect.wait_for_load(self._page_ctx(by_selector, {}))],
        ))
        page.selector_names = by_selector
        return page

    def action_patterns(self, steps: List[InteractionStep]) -> List[Tuple[str, List[InteractionStep]]]:
        patterns: List[Tuple[str, List[InteractionStep]]] = []

        form: List[InteractionStep] = []
        last_form: Optional[List[InteractionStep]] = None
        for step in steps:
            if step.type in FORM_STEP_TYPES and step.element is not None:
                form.append(step)
            elif form and step.element is not None and step.element.type == "button":
                last_form = form + [step]
                form = []
        if last_form:
            patterns.append(("fillAndSubmitForm", last_form))

        if any(s.element is not None and s.element.type == "password-input" for s in steps):
            login = [
                s for s in steps
                if s.element is not None and (
                    s.element.type in LOGIN_INPUT_TYPES
                    or (s.element.type == "button" and "login" in (s.element.text or "").lower())
                )
            ]
            patterns.append(("login", login))
        return patterns

    def build_action(self, name: str, steps: List[InteractionStep]) -> PageAction:
        parameters: Dict[str, str] = {}
        taken: Dict[str, object] = {}
        for step in steps:
            if step.type in PARAMETER_STEP_TYPES and step.element is not None:
                param = unique_name(parameter_name(step.element), taken)
                taken[param] = step
                parameters[step.id] = param
        actions = ", ".join(s.action for s in steps if s.action)
        return PageAction(
            name=name,
            description=f"{name}: {actions}",
            parameters=list(parameters.values()),
            steps=steps,
        )

    def _page_ctx(self, selectors: Dict[str, str], parameters: Dict[str, str]) -> PageObjectContext:
        return PageObjectContext(self.ctx, selectors, parameters)

    def render(self, page: PageObject) -> str:
        ctx = self.ctx
        fmt = self.options.formatting
        i = fmt.indent
        typed = ctx.typed
        uses_page = self.dialect.uses_page
        field = "readonly " if typed else ""
        lines: List[str] = []

        if typed and uses_page:
            lines.append(ctx.finish(f"import type {{ {self.dialect.page_type} }} from {ctx.quote(self.dialect.page_module)}"))
            lines.append("")

        lines.append(f"export class {page.class_name} {{")
        if typed and uses_page:
            lines.append(i + ctx.finish(f"readonly page: {self.dialect.page_type}"))
        lines.append(i + ctx.finish(f"{field}url = {ctx.quote(page.url)}"))
        lines.append(i + f"{field}selectors = {{")
        for n, sel in enumerate(page.selectors):
            last = n == len(page.selectors) - 1
            comma = "," if not last or fmt.trailing_comma else ""
            lines.append(i * 2 + f"{sel.name}: {ctx.quote(sel.selector)}{comma}")
        lines.append(i + ctx.finish("}"))

        if uses_page:
            lines.append("")
            param = f"page: {self.dialect.page_type}" if typed else "page"
            lines.append(i + f"constructor({param}) {{")
            lines.append(i * 2 + ctx.finish("this.page = page"))
            lines.append(i + "}")

        for action in page.actions:
            lines.append("")
            if self.options.add_comments and action.description:
                lines.append(i + ctx.comment(action.description, depth=1))
            params = ", ".join(f"{p}: string" if typed else p for p in action.parameters)
            lines.append(i + f"{'async ' if uses_page else ''}{action.name}({params}) {{")
            for statement in self.action_body(page, action):
                lines.append(i * 2 + statement)
            lines.append(i + "}")

        if page.selectors:
            lines.append("")
            if self.options.add_comments:
                lines.append(i + "// Element getters")
            for n, sel in enumerate(page.selectors):
                if n > 0:
                    lines.append("")
                lines.append(i + f"get {sel.name}() {{")
                locate = self.dialect.locate(self._page_ctx({}, {}), f"this.selectors.{sel.name}")
                lines.append(i * 2 + ctx.finish(f"return {locate}"))
                lines.append(i + "}")

        lines.append("}")
        return "\n".join(lines) + "\n"

    def action_body(self, page: PageObject, action: PageAction) -> List[str]:
        if action.body:
            return [self.ctx.finish(statement) for statement in action.body]
        parameters = dict(zip(
            [s.id for s in action.steps if s.type in PARAMETER_STEP_TYPES and s.element is not None],
            action.parameters,
        ))
        ctx = self._page_ctx(page.selector_names, parameters)
        return [emit_step(self.dialect.name, step, ctx) for step in action.steps]

    def build_file(self, page: PageObject, path: UserPath) -> TestFile:
        extension = TYPED_EXTENSION if self.options.language == "typescript" else UNTYPED_EXTENSION
        return TestFile(
            filename=f"{page.class_name}.{extension}",
            path=f"{self.options.output_directory}/pages",
            content=self.render(page),
            type="page-object",
            metadata=TestFileMetadata(
                framework=self.dialect.name,
                language=self.options.language,
                dependencies=list(self.dialect.dependencies),
                source_path_id=path.id,
            ),
        )
