import typer

from pathcraft.cli.commands import paths, record

app = typer.Typer(
    name="pathcraft",
    help="Record browser user paths and turn them into automated tests",
    add_completion=False
)

# Register commands
app.command()(record.record)
app.command()(paths.optimize)
app.command()(paths.generate)

VERSION = "0.3.0"


@app.command()
def version():
    """Show the pathcraft version."""
    typer.echo(f"pathcraft {VERSION}")


def version_callback(value: bool):
    if value:
        typer.echo(f"pathcraft {VERSION}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", callback=version_callback, is_eager=True),
):
    """
    pathcraft CLI - record, optimize and generate browser tests.
    """
    pass


if __name__ == "__main__":
    app()
