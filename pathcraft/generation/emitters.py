"""
Registries mapping ``(framework, step type)`` and ``(framework, assertion type)``
to the functions that render one statement of test source.

Framework modules register their emitters with the ``step_emitter`` and
``assertion_emitter`` decorators; the generator only ever calls
``emit_step`` / ``emit_assertion``.
"""

import re
from typing import Any, Callable, Dict, Optional, Tuple

from pathcraft.core.errors import EmitterError
from pathcraft.core.models import Assertion, AssertionOperator, AssertionType, InteractionStep, StepType
from pathcraft.generation.models import CodeFormatting, Language

_REGEX_SPECIALS = re.compile(r"[.*+?^${}()|\[\]\\/]")


class EmitContext:
    """Formatting and naming rules shared by every emitter call.

    ``page`` is the expression that refers to the browser page in the
    rendered code (``page`` in a test, ``this.page`` in a page object).
    """

    def __init__(self, formatting: CodeFormatting, language: Language, page: str = "page"):
        self.formatting = formatting
        self.language = language
        self.page = page

    @property
    def typed(self) -> bool:
        return self.language == "typescript"

    def quote(self, value: Any) -> str:
        q = self.formatting.quote_char
        text = "" if value is None else str(value)
        text = text.replace("\\", "\\\\").replace(q, f"\\{q}").replace("\n", "\\n")
        return f"{q}{text}{q}"

    def regex(self, value: Any) -> str:
        text = "" if value is None else str(value)
        return "/" + _REGEX_SPECIALS.sub(lambda m: "\\" + m.group(0), text) + "/"

    def selector(self, step: InteractionStep) -> str:
        if step.element is None or not step.element.selector:
            raise EmitterError(
                f"Step {step.id} ({step.type.value}) has no element selector",
                step=step,
            )
        return self.quote(step.element.selector)

    def target(self, assertion: Assertion) -> str:
        return self.quote(assertion.target)

    def value(self, step: InteractionStep) -> str:
        return self.quote(step.value)

    def number(self, step: InteractionStep) -> str:
        try:
            number = float(step.value or 0)
        except (TypeError, ValueError):
            raise EmitterError(f"Step {step.id} has a non-numeric value {step.value!r}", step=step)
        return str(int(number)) if number.is_integer() else str(number)

    def input_element(self, name: str = "el") -> str:
        return f"({name} as HTMLInputElement)" if self.typed else name

    def finish(self, code: str) -> str:
        """Terminate a statement according to the formatting rules."""
        if code.startswith("//") or not self.formatting.semicolons or code.endswith(";"):
            return code
        return f"{code};"

    def close(self) -> str:
        return self.finish("})")

    def comment(self, text: str, depth: int = 0) -> str:
        prefix = "// "
        width = self.formatting.line_width - len(self.formatting.indent) * depth - len(prefix)
        text = " ".join(text.split())
        if len(text) > width:
            text = text[: max(width - 3, 1)] + "..."
        return prefix + text


StepEmitter = Callable[[InteractionStep, EmitContext], str]
AssertionEmitter = Callable[[Assertion, EmitContext], str]

STEP_EMITTERS: Dict[Tuple[str, StepType], StepEmitter] = {}
ASSERTION_EMITTERS: Dict[Tuple[str, AssertionType], AssertionEmitter] = {}


def step_emitter(framework: str, *step_types: StepType):
    def register(func: StepEmitter) -> StepEmitter:
        for step_type in step_types:
            STEP_EMITTERS[(framework, step_type)] = func
        return func
    return register


def assertion_emitter(framework: str, *assertion_types: AssertionType):
    def register(func: AssertionEmitter) -> AssertionEmitter:
        for assertion_type in assertion_types:
            ASSERTION_EMITTERS[(framework, assertion_type)] = func
        return func
    return register


def emit_step(framework: str, step: InteractionStep, ctx: EmitContext) -> str:
    emitter: Optional[StepEmitter] = STEP_EMITTERS.get((framework, step.type))
    if emitter is None:
        return f"// TODO: {step.action or step.type.value}"
    return ctx.finish(emitter(step, ctx))


def emit_assertion(framework: str, assertion: Assertion, ctx: EmitContext) -> str:
    emitter: Optional[AssertionEmitter] = ASSERTION_EMITTERS.get((framework, assertion.type))
    if emitter is None:
        return f"// TODO: Assert {assertion.type.value}"
    return ctx.finish(emitter(assertion, ctx))


def expects_checked(assertion: Assertion) -> Optional[bool]:
    """Whether an attribute/checked assertion is about checkbox state.

    Returns the expected checked state, or ``None`` for a plain attribute check.
    """
    if assertion.type == AssertionType.CHECKED:
        return bool(assertion.expected) and assertion.operator != AssertionOperator.NOT_EXISTS
    if assertion.expected in ("checked", None):
        return assertion.operator != AssertionOperator.NOT_EXISTS
    return None


def is_partial(assertion: Assertion) -> bool:
    return assertion.operator == AssertionOperator.CONTAINS
