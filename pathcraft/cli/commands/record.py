import asyncio
import traceback
from pathlib import Path
from typing import Dict, Optional, Tuple

import typer
from rich.console import Console

from pathcraft.core.config import ConfigManager
from pathcraft.core.logging import Logger, log
from pathcraft.core.models import UserPath
from pathcraft.recording.analysis import analyze_path
from pathcraft.recording.browser import BrowserManager
from pathcraft.recording.recorder import RecordingOptions, UserPathRecorder
from pathcraft.utils.file_io import safe_write_json
from pathcraft.utils.ux import UX

console = Console()


async def capture(
    url: str,
    options: RecordingOptions,
    headless: bool,
    name: Optional[str] = None,
) -> Tuple[UserPath, Dict[str, bytes]]:
    """Record one session: the initial navigation plus, when headed, whatever the user does."""
    async with BrowserManager(headless=headless) as browser:
        async with UserPathRecorder(options) as recorder:
            await recorder.start_recording(browser.page, name=name)
            if not headless:
                await browser.start_interactive_recording(recorder)
            await recorder.record_navigation(url)
            if not headless:
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, input, "Interact with the page, then press Enter to stop recording...")
            path = await recorder.stop_recording()
            return path, dict(recorder.screenshots)


def record(
    url: str = typer.Argument(..., help="URL to start recording from"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Name of the recorded path"),
    out: Path = typer.Option(Path("recording.json"), "--out", "-o", help="Where to save the recorded path"),
    headless: Optional[bool] = typer.Option(None, "--headless/--headed", help="Run the browser without a window"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """
    Record a user path starting at URL.
    """
    Logger.setup_logging(log_dir=out.parent / "logs", verbose=verbose)
    try:
        url = ConfigManager.validate_url(url)
        config = ConfigManager.load_config()
        options = ConfigManager.recording_options(config)
    except ValueError as e:
        log(str(e), level="error")
        raise typer.Exit(code=1)

    if headless is None:
        headless = bool(config.get("browser", {}).get("headless", False))

    try:
        path, screenshots = asyncio.run(capture(url, options, headless, name))
    except KeyboardInterrupt:
        log("Recording interrupted by user.", level="warning")
        raise typer.Exit(code=0)
    except Exception as e:
        log(f"Recording failed: {e}", level="error")
        log(f"Fatal Traceback: {traceback.format_exc()}", level="debug")
        raise typer.Exit(code=1)

    if not safe_write_json(out, path.model_dump(mode="json")):
        UX.print_error(f"Could not save recording to {out}")
        raise typer.Exit(code=1)

    shot_dir = out.parent / "screenshots"
    for reference, data in screenshots.items():
        shot_dir.mkdir(parents=True, exist_ok=True)
        (shot_dir / reference).write_bytes(data)

    analysis = analyze_path(path)
    UX.print_success(f"Recorded {len(path.steps)} steps and {len(path.assertions)} assertions to {out}")
    console.print(f"[dim]Complexity: {analysis.complexity}, {analysis.interaction_count} interactions[/dim]")
