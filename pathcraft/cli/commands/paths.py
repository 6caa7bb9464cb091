from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from pathcraft.core.config import ConfigManager
from pathcraft.core.logging import Logger, log
from pathcraft.core.models import UserPath
from pathcraft.generation.generator import TestGenerator
from pathcraft.generation.writer import TestFileWriter
from pathcraft.recording.optimizer import PathOptimizer
from pathcraft.utils.file_io import safe_read_json, safe_write_json
from pathcraft.utils.ux import UX

console = Console()


def load_path(source: Path) -> UserPath:
    data = safe_read_json(source, default={})
    if not data:
        UX.print_error(f"{source} does not contain a recorded path")
        raise typer.Exit(code=1)
    try:
        return UserPath.model_validate(data)
    except ValidationError as e:
        UX.print_error(f"{source} is not a valid recorded path")
        log(str(e), level="debug")
        raise typer.Exit(code=1)


def optimize(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Recorded path JSON"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output file (default: <name>.optimized.json)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """
    Remove redundant steps and duplicate assertions from a recorded path.
    """
    Logger.setup_logging(verbose=verbose)
    user_path = load_path(path)
    optimized = PathOptimizer().optimize(user_path)

    out = out or path.with_name(f"{path.stem}.optimized.json")
    if not safe_write_json(out, optimized.model_dump(mode="json")):
        UX.print_error(f"Could not write {out}")
        raise typer.Exit(code=1)

    UX.print_success(
        f"{len(user_path.steps)} -> {len(optimized.steps)} steps, "
        f"{len(user_path.assertions)} -> {len(optimized.assertions)} assertions. Saved to {out}"
    )


def generate(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Recorded path JSON"),
    framework: Optional[str] = typer.Option(None, "--framework", "-f", help="playwright, cypress or puppeteer"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="typescript or javascript"),
    out_dir: Optional[str] = typer.Option(None, "--out-dir", "-o", help="Output directory"),
    page_objects: Optional[bool] = typer.Option(None, "--page-objects/--no-page-objects", help="Generate page objects"),
    fixtures: Optional[bool] = typer.Option(None, "--fixtures/--no-fixtures", help="Generate JSON fixtures"),
    helpers: Optional[bool] = typer.Option(None, "--helpers/--no-helpers", help="Generate helper functions"),
    comments: Optional[bool] = typer.Option(None, "--comments/--no-comments", help="Comment each generated step"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """
    Generate test files from a recorded path.
    """
    Logger.setup_logging(verbose=verbose)
    try:
        options = ConfigManager.generation_options(
            framework=framework,
            language=language,
            output_directory=out_dir,
            generate_page_objects=page_objects,
            generate_fixtures=fixtures,
            generate_helpers=helpers,
            add_comments=comments,
        )
    except ValueError as e:
        UX.print_error(str(e))
        raise typer.Exit(code=1)

    user_path = load_path(path)
    with UX.spinner(f"Generating {options.framework} tests..."):
        result = TestGenerator(options).generate(user_path)
        written = TestFileWriter(Path(".")).write(result, options.output_directory)

    console.print(UX.summary_table(result.summary))
    for destination in written:
        console.print(f"[dim]{destination}[/dim]")
    UX.print_errors(result.errors)

    if result.errors and not result.files:
        raise typer.Exit(code=1)
    UX.print_success(f"Generated {len(result.files)} files in {options.output_directory}")
