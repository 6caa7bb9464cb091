from typing import List, Optional

from pathcraft.core.constants import TYPED_EXTENSION, UNTYPED_EXTENSION
from pathcraft.core.errors import EmptyPathError, GenerationFailure
from pathcraft.core.logging import log
from pathcraft.core.models import Assertion, AssertionType, InteractionStep, StepType, UserPath
from pathcraft.generation.artifacts import build_fixture, build_helpers
from pathcraft.generation.emitters import EmitContext, emit_assertion, emit_step
from pathcraft.generation.frameworks import Dialect, get_dialect
from pathcraft.generation.models import (
    GenerationError,
    GenerationOptions,
    GenerationResult,
    TestCase,
    TestFile,
    TestFileMetadata,
    summarize,
)
from pathcraft.generation.naming import DEFAULT_SUITE_NAME, page_name, slugify
from pathcraft.generation.page_objects import PageObjectGenerator
from pathcraft.recording.optimizer import PathOptimizer


def is_submission(step: InteractionStep) -> bool:
    element = step.element
    return (
        element is not None
        and element.type == "button"
        and "submit" in (element.text or "").lower()
    )


class TestGenerator:
    """
    Renders an optimized user path into test source for one framework.
    ``generate`` always returns a result; failures end up in ``result.errors``.
    """
    __test__ = False

    def __init__(self, options: Optional[GenerationOptions] = None):
        self.options = options or GenerationOptions()
        self.optimizer = PathOptimizer()

    @property
    def extension(self) -> str:
        return TYPED_EXTENSION if self.options.language == "typescript" else UNTYPED_EXTENSION

    def context(self) -> EmitContext:
        return EmitContext(self.options.formatting, self.options.language)

    def generate(self, path: UserPath) -> GenerationResult:
        log(
            "Generating tests from user path",
            path_id=path.id,
            steps=len(path.steps),
            framework=self.options.framework,
        )
        files: List[TestFile] = []
        errors: List[GenerationError] = []
        total_tests = 0
        summary_path = path

        try:
            if not path.steps:
                raise EmptyPathError()
            dialect = get_dialect(self.options.framework)

            summary_path = self.optimizer.optimize(path)
            cases = self.build_test_cases(summary_path)
            total_tests = len(cases)
            files.append(self.build_test_file(summary_path, dialect, cases))

            if self.options.generate_page_objects:
                files.extend(PageObjectGenerator(self.options, dialect).generate(summary_path))
            if self.options.generate_fixtures:
                files.append(build_fixture(summary_path, self.options, self.metadata(summary_path, dialect)))
            if self.options.generate_helpers:
                files.append(build_helpers(dialect, self.options, self.metadata(summary_path, dialect)))
        except GenerationFailure as e:
            step_id = e.step.id if e.step is not None else None
            log(f"Test generation failed: {e}", level="error", step_id=step_id)
            errors.append(GenerationError(error=str(e), step_id=step_id))
        except Exception as e:
            log(f"Unexpected test generation error: {e}", level="error", error_type=e.__class__.__name__)
            errors.append(GenerationError(error=str(e) or e.__class__.__name__))

        summary = summarize(
            files,
            total_tests=total_tests,
            total_assertions=len(summary_path.assertions),
            estimated_duration=summary_path.duration,
        )
        log(
            "Test generation finished",
            files=summary.total_files,
            tests=summary.total_tests,
            errors=len(errors),
        )
        return GenerationResult(files=files, summary=summary, errors=errors)

    def build_test_cases(self, path: UserPath) -> List[TestCase]:
        groups = self.optimizer.group_steps(path)
        return [
            TestCase(
                name=self.test_name(group, index),
                steps=group,
                assertions=self.relevant_assertions(path.assertions, group),
                tags=path.metadata.tags,
            )
            for index, group in enumerate(groups)
        ]

    def test_name(self, steps: List[InteractionStep], index: int) -> str:
        navigation = next((s for s in steps if s.type == StepType.NAVIGATION), None)
        submitted = any(is_submission(s) for s in steps)
        if navigation is not None and submitted:
            return f"should complete flow from {page_name(navigation.value)} to submission"
        if navigation is not None:
            return f"should navigate to {page_name(navigation.value)}"
        return f"should complete interaction sequence {index + 1}"

    def relevant_assertions(self, assertions: List[Assertion], steps: List[InteractionStep]) -> List[Assertion]:
        selectors = {s.selector for s in steps if s.element is not None}
        return [a for a in assertions if a.type == AssertionType.URL or a.target in selectors]

    def metadata(self, path: UserPath, dialect: Dialect) -> TestFileMetadata:
        return TestFileMetadata(
            framework=dialect.name,
            language=self.options.language,
            dependencies=list(dialect.dependencies),
            source_path_id=path.id,
        )

    def build_test_file(self, path: UserPath, dialect: Dialect, cases: List[TestCase]) -> TestFile:
        suite = path.name or DEFAULT_SUITE_NAME
        return TestFile(
            filename=f"{slugify(suite)}.{dialect.file_suffix}.{self.extension}",
            path=f"{self.options.output_directory}/tests",
            content=self.render(path, dialect, cases),
            type="test",
            metadata=self.metadata(path, dialect),
        )

    def render(self, path: UserPath, dialect: Dialect, cases: List[TestCase]) -> str:
        ctx = self.context()
        indent = self.options.formatting.indent
        framework = dialect.name
        lines: List[str] = []

        imports = dialect.imports(ctx)
        if imports:
            lines.extend(imports)
            lines.append("")

        lines.append(dialect.suite_open(ctx, path.name or DEFAULT_SUITE_NAME))

        setup = dialect.setup(ctx, path)
        if setup:
            lines.extend(indent + line if line else "" for line in setup)
            lines.append("")

        body = indent * 2
        for index, case in enumerate(cases):
            if index > 0:
                lines.append("")
            lines.append(indent + dialect.test_open(ctx, case.name))
            for step in case.steps:
                if self.options.add_comments and step.action:
                    lines.append(body + ctx.comment(step.action, depth=2))
                lines.append(body + emit_step(framework, step, ctx))
            if case.assertions:
                lines.append("")
                if self.options.add_comments:
                    lines.append(body + "// Assertions")
                for assertion in case.assertions:
                    lines.append(body + emit_assertion(framework, assertion, ctx))
            lines.append(indent + ctx.close())

        lines.append(ctx.close())
        return "\n".join(lines) + "\n"


def generate(path: UserPath, options: Optional[GenerationOptions] = None) -> GenerationResult:
    return TestGenerator(options).generate(path)
