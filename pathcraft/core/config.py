import copy
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import ValidationError

from pathcraft.core.logging import log
from pathcraft.generation.models import GenerationOptions
from pathcraft.recording.recorder import RecordingOptions
from pathcraft.utils.file_io import safe_read_json, safe_write_json


class ConfigManager:
    """
    Layered configuration: defaults, then the global config file, then a
    project file in the working directory. CLI flags are applied last by the
    callers through ``overrides``.
    """

    APP_NAME = "pathcraft"
    CONFIG_DIR = Path.home() / f".{APP_NAME}"
    CONFIG_FILE = CONFIG_DIR / "config.json"
    LOCAL_FILES = (".pathcraftrc", "pathcraft.json")

    DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
        "recording": {
            "capture_screenshots": True,
            "capture_network": True,
            "capture_console": True,
            "generate_assertions": True,
        },
        "generation": {
            "framework": "playwright",
            "language": "typescript",
            "output_directory": "generated-tests",
            "generate_page_objects": False,
            "generate_fixtures": False,
            "generate_helpers": False,
            "add_comments": True,
        },
        "browser": {
            "headless": False,
        },
    }

    @classmethod
    def ensure_config_dir(cls):
        cls.CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load_config(cls, cwd: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
        """Merged configuration. Each section is merged key by key."""
        config = copy.deepcopy(cls.DEFAULT_CONFIG)
        cls._merge(config, safe_read_json(cls.CONFIG_FILE), cls.CONFIG_FILE)

        local = cls.find_local_config(cwd or Path.cwd())
        if local is not None:
            cls._merge(config, safe_read_json(local), local)
        return config

    @classmethod
    def find_local_config(cls, directory: Path) -> Optional[Path]:
        for name in cls.LOCAL_FILES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None

    @classmethod
    def save_config(cls, config: Dict[str, Any]):
        cls.ensure_config_dir()
        safe_write_json(cls.CONFIG_FILE, config)

    @staticmethod
    def _merge(config: Dict[str, Dict[str, Any]], overrides: Any, source: Path):
        if not isinstance(overrides, dict):
            log(f"Ignoring {source.name}: expected a JSON object", level="warning")
            return
        for section, values in overrides.items():
            if isinstance(values, dict) and isinstance(config.get(section), dict):
                config[section].update(values)
            else:
                config[section] = values

    @classmethod
    def recording_options(cls, config: Optional[Dict[str, Any]] = None, **overrides: Any) -> RecordingOptions:
        section = cls._section(config, "recording", overrides)
        try:
            return RecordingOptions(**section)
        except ValidationError as e:
            raise ValueError(f"Invalid recording configuration: {e}") from e

    @classmethod
    def generation_options(cls, config: Optional[Dict[str, Any]] = None, **overrides: Any) -> GenerationOptions:
        section = cls._section(config, "generation", overrides)
        try:
            return GenerationOptions(**section)
        except ValidationError as e:
            raise ValueError(f"Invalid generation configuration: {e}") from e

    @classmethod
    def _section(cls, config: Optional[Dict[str, Any]], name: str, overrides: Dict[str, Any]) -> Dict[str, Any]:
        config = config if config is not None else cls.load_config()
        section = dict(config.get(name) or {})
        section.update({k: v for k, v in overrides.items() if v is not None})
        return section

    @staticmethod
    def validate_url(url: str) -> str:
        """Accept only absolute http(s) URLs."""
        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise ValueError(f"URL parsing failed: {e}") from e
        if not (parsed.scheme in ("http", "https") and parsed.netloc):
            raise ValueError(f"Invalid URL: '{url}' - Must be http/https with a valid domain.")
        return url
