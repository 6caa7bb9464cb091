from typing import List

from rich.console import Console
from rich.table import Table
from yaspin import yaspin

from pathcraft.generation.models import GenerationError, GenerationSummary

console = Console()


class UX:
    """
    Centralized terminal output for the CLI.
    Wraps yaspin for spinners and consolidates rich output.
    """

    @staticmethod
    def spinner(text: str):
        """Returns a configured yaspin spinner."""
        return yaspin(text=text, color="cyan", spinner="dots")

    @staticmethod
    def print_success(message: str):
        console.print(f"[green]✓ {message}[/green]")

    @staticmethod
    def print_error(message: str):
        console.print(f"[red]✗ {message}[/red]")

    @staticmethod
    def print_warning(message: str):
        console.print(f"[yellow]⚠️  {message}[/yellow]")

    @staticmethod
    def summary_table(summary: GenerationSummary) -> Table:
        table = Table(show_header=True, header_style="bold magenta", title="Generation summary")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Files", str(summary.total_files))
        table.add_row("Test files", str(summary.test_files))
        table.add_row("Page objects", str(summary.page_objects))
        table.add_row("Fixtures", str(summary.fixtures))
        table.add_row("Helpers", str(summary.helpers))
        table.add_row("Tests", str(summary.total_tests))
        table.add_row("Assertions", str(summary.total_assertions))
        table.add_row("Estimated duration", f"{summary.estimated_duration / 1000:.1f}s")
        return table

    @staticmethod
    def print_errors(errors: List[GenerationError]):
        for error in errors:
            location = f" (step {error.step_id})" if error.step_id else ""
            if error.severity == "warning":
                UX.print_warning(f"{error.error}{location}")
            else:
                UX.print_error(f"{error.error}{location}")
