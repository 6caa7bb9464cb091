from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from pathcraft.core.models import Assertion, InteractionStep

Language = Literal["typescript", "javascript"]
TestFileType = Literal["test", "page-object", "fixture", "helper"]


class CodeFormatting(BaseModel):
    model_config = ConfigDict(frozen=True)

    indent: str = "  "
    quote_char: Literal["'", '"'] = "'"
    semicolons: bool = True
    trailing_comma: bool = True
    line_width: int = Field(default=100, ge=20)


class GenerationOptions(BaseModel):
    """Settings fixed for the lifetime of one ``TestGenerator``.

    ``framework`` stays a plain string: an unknown name is reported by
    ``generate()`` as a generation error instead of failing here.
    """
    model_config = ConfigDict(frozen=True)

    framework: str = "playwright"
    language: Language = "typescript"
    output_directory: str = "generated-tests"
    generate_page_objects: bool = False
    generate_fixtures: bool = False
    generate_helpers: bool = False
    add_comments: bool = True
    formatting: CodeFormatting = Field(default_factory=CodeFormatting)


class TestFileMetadata(BaseModel):
    __test__ = False

    generated_at: datetime = Field(default_factory=datetime.now)
    framework: str
    language: Language
    dependencies: List[str] = Field(default_factory=list)
    source_path_id: Optional[str] = None


class TestFile(BaseModel):
    __test__ = False

    filename: str
    path: str
    content: str
    type: TestFileType
    metadata: TestFileMetadata


class GenerationSummary(BaseModel):
    total_files: int = 0
    test_files: int = 0
    page_objects: int = 0
    fixtures: int = 0
    helpers: int = 0
    total_tests: int = 0
    total_assertions: int = 0
    estimated_duration: float = 0


class GenerationError(BaseModel):
    error: str
    severity: Literal["warning", "error"] = "error"
    file: Optional[str] = None
    step_id: Optional[str] = None


class GenerationResult(BaseModel):
    files: List[TestFile] = Field(default_factory=list)
    summary: GenerationSummary = Field(default_factory=GenerationSummary)
    errors: List[GenerationError] = Field(default_factory=list)


class TestCase(BaseModel):
    __test__ = False

    name: str
    steps: List[InteractionStep]
    assertions: List[Assertion] = Field(default_factory=list)
    tags: Optional[List[str]] = None


class PageSelector(BaseModel):
    name: str
    selector: str
    description: str
    type: str


class PageAction(BaseModel):
    name: str
    description: str
    parameters: List[str] = Field(default_factory=list)
    steps: List[InteractionStep] = Field(default_factory=list)
    # Raw statements for the built-in actions (navigate, waitForLoad)
    body: List[str] = Field(default_factory=list)


class PageObject(BaseModel):
    name: str
    url: str
    selectors: List[PageSelector] = Field(default_factory=list)
    actions: List[PageAction] = Field(default_factory=list)
    selector_names: Dict[str, str] = Field(default_factory=dict)

    @property
    def class_name(self) -> str:
        return f"{self.name}Page"


def summarize(files: List[TestFile], **counts: Any) -> GenerationSummary:
    """Build a summary from whatever files exist, even after a partial failure."""
    by_type: Dict[str, int] = {}
    for f in files:
        by_type[f.type] = by_type.get(f.type, 0) + 1
    return GenerationSummary(
        total_files=len(files),
        test_files=by_type.get("test", 0),
        page_objects=by_type.get("page-object", 0),
        fixtures=by_type.get("fixture", 0),
        helpers=by_type.get("helper", 0),
        **counts,
    )
