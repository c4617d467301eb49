"""Configuration singleton for the live preview app."""

import json
import os
from pathlib import Path
from typing import Optional


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Singleton configuration class."""

    _instance: Optional["Config"] = None
    _CONFIG_FILE_PATH = Path.home() / ".config" / "livepreview" / "livepreview.json"

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize all configuration values."""
        # Runtime flags - read from environment variables with defaults
        self._debug = _env_flag("PREVIEW_DEBUG", False)
        self._log_file = os.environ.get("PREVIEW_LOG_FILE") or None

        raw_debounce = os.environ.get("PREVIEW_DEBOUNCE_MS", "300")
        try:
            debounce_ms = int(raw_debounce)
        except ValueError as e:
            raise ValueError(
                f"PREVIEW_DEBOUNCE_MS must be an integer, got {raw_debounce!r}"
            ) from e
        if debounce_ms < 0:
            raise ValueError("PREVIEW_DEBOUNCE_MS cannot be negative")

        # Synchronization
        self.DEBOUNCE_MS: int = debounce_ms

        # Resource resolution
        self.INLINE_SCRIPTS: bool = _env_flag("PREVIEW_INLINE_SCRIPTS", True)
        self.HTML_EXTENSIONS = [".html", ".htm", ".xhtml"]

        # Sandbox
        # Without allow-same-origin previewed scripts cannot reach the host page or its js_api
        self.SANDBOX_POLICY = os.environ.get("PREVIEW_SANDBOX_POLICY", "allow-scripts")

        # Tabs
        self.TAB_TITLE_PREFIX = "Tab"
        self.TAB_ID_PREFIX = "tab"

        # GUI settings
        self.WINDOW_TITLE = "Live Preview"
        self.GUI_WINDOW_WIDTH: int = 1100
        self.GUI_WINDOW_HEIGHT: int = 800
        self.GUI_MIN_WIDTH: int = 480
        self.GUI_MIN_HEIGHT: int = 320
        self.FILE_DIALOG_TYPES = ("HTML Files (*.html;*.htm)", "All Files (*.*)")

    def save(self) -> None:
        """Save configuration to JSON file."""
        self._CONFIG_FILE_PATH.parent.mkdir(parents=True, exist_ok=True)

        data = {}
        for key, value in vars(self).items():
            if key.startswith("_"):
                continue
            data[key] = value

        with open(self._CONFIG_FILE_PATH, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def load(self) -> None:
        """Load configuration from JSON file."""
        if not self._CONFIG_FILE_PATH.exists():
            return

        with open(self._CONFIG_FILE_PATH, "r", encoding="utf-8") as f:
            data = json.load(f)

        for key, value in data.items():
            if hasattr(self, key) and not key.startswith("_"):
                setattr(self, key, value)

    @property
    def DEBUG(self) -> bool:
        """Whether debug logging and webview devtools are enabled."""
        return self._debug

    @DEBUG.setter
    def DEBUG(self, value: bool) -> None:
        self._debug = bool(value)

    @property
    def LOG_FILE(self) -> Optional[str]:
        """Optional path that log output is written to."""
        return self._log_file

    @LOG_FILE.setter
    def LOG_FILE(self, value: Optional[str]) -> None:
        self._log_file = value or None

    @property
    def DEBOUNCE_SECONDS(self) -> float:
        """Quiet period of the change debounce, in seconds."""
        return self.DEBOUNCE_MS / 1000.0
