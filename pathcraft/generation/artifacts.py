"""Optional support files: JSON fixtures and per-framework helper modules."""

import json
from pathlib import Path
from typing import Any, Dict

import jinja2

from pathcraft.core.constants import TYPED_EXTENSION, UNTYPED_EXTENSION
from pathcraft.core.logging import log
from pathcraft.core.models import StepType, UserPath
from pathcraft.generation.frameworks import Dialect
from pathcraft.generation.models import GenerationOptions, TestFile, TestFileMetadata
from pathcraft.generation.naming import DEFAULT_SUITE_NAME, parameter_name, slugify

FIXTURE_STEP_TYPES = {StepType.TYPE, StepType.SELECT, StepType.CHECK}

env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(Path(__file__).parent / "templates"),
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


def fixture_data(path: UserPath) -> Dict[str, Any]:
    """Test data captured on the path, keyed by field name."""
    values: Dict[str, Any] = {}
    for step in path.steps:
        if step.type in FIXTURE_STEP_TYPES and step.element is not None:
            values[parameter_name(step.element)] = step.value
    viewport = path.metadata.viewport
    return {
        "name": path.name,
        "startUrl": path.start_url,
        "viewport": {"width": viewport.width, "height": viewport.height},
        "values": values,
    }


def build_fixture(path: UserPath, options: GenerationOptions, metadata: TestFileMetadata) -> TestFile:
    slug = slugify(path.name or DEFAULT_SUITE_NAME)
    log("Generating fixture", path_id=path.id, fixture=slug)
    return TestFile(
        filename=f"{slug}.fixture.json",
        path=f"{options.output_directory}/fixtures",
        content=json.dumps(fixture_data(path), indent=2, default=str) + "\n",
        type="fixture",
        metadata=metadata.model_copy(update={"dependencies": []}),
    )


def render_helpers(dialect: Dialect, options: GenerationOptions) -> str:
    fmt = options.formatting
    template = env.get_template(dialect.helper_template)
    return template.render(
        typed=options.language == "typescript",
        q=fmt.quote_char,
        s=";" if fmt.semicolons else "",
        i=fmt.indent,
    )


def build_helpers(dialect: Dialect, options: GenerationOptions, metadata: TestFileMetadata) -> TestFile:
    log("Generating helpers", framework=dialect.name)
    extension = TYPED_EXTENSION if options.language == "typescript" else UNTYPED_EXTENSION
    return TestFile(
        filename=f"helpers.{extension}",
        path=f"{options.output_directory}/helpers",
        content=render_helpers(dialect, options),
        type="helper",
        metadata=metadata,
    )
