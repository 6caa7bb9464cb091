from typing import Dict, Tuple

# Timeouts (in seconds)
DEFAULT_BROWSER_TIMEOUT = 60

# Optimizer
TYPE_MERGE_WINDOW_MS = 1000

# Recording
DEFAULT_VIEWPORT: Dict[str, int] = {"width": 1920, "height": 1080}
DEFAULT_BROWSER = "chromium"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
USER_AGENT_SCRIPT = "() => navigator.userAgent"
SCREENSHOT_ATTEMPTS = 2

# Checked for visibility when a recording stops
SALIENT_SELECTORS: Tuple[str, ...] = ("h1", "h2", "[data-testid]", "form", ".error", ".success")

# Element type -> recorded step type
ELEMENT_STEP_TYPES: Dict[str, str] = {
    "button": "click",
    "link": "click",
    "text-input": "type",
    "textarea": "type",
    "select": "select",
    "checkbox": "check",
    "radio": "check",
}

# Path analysis thresholds (interaction counts)
MODERATE_PATH_INTERACTIONS = 5
COMPLEX_PATH_INTERACTIONS = 15

# Resource Limits
MAX_LOG_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5

# File naming
TYPED_EXTENSION = "ts"
UNTYPED_EXTENSION = "js"
REPORT_FILENAME = "test-generation-report.json"
