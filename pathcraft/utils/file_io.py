"""JSON and text persistence. Ordinary I/O failures are logged and reported, not raised."""

import json
from pathlib import Path
from typing import Any

from pathcraft.core.logging import log


def safe_read_json(path: Path, default: Any = None) -> Any:
    """
    Parsed JSON from ``path``, or ``default`` (an empty dict unless given) when
    the file is missing, blank, corrupt or unreadable.
    """
    fallback = {} if default is None else default
    if not path.is_file():
        return fallback

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        log(f"Could not read {path.name}: {e}", level="warning", file_path=str(path))
        return fallback

    if not content.strip():
        return fallback
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        log(f"Corrupted JSON in {path.name}: {e}", level="error", file_path=str(path))
        return fallback


def safe_write_json(path: Path, data: Any) -> bool:
    # datetimes and other non-JSON values are written as strings
    return safe_write_text(path, json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n")


def safe_write_text(path: Path, content: str) -> bool:
    """Write ``content``, creating parent directories. False when the OS refuses."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        log(f"Could not write {path.name}: {e}", level="error", file_path=str(path))
        return False
    return True
