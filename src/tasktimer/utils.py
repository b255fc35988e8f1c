from __future__ import annotations

import os
import sys
from pathlib import Path

APP_DIRNAME = "tasktimer"
HOME_ENV_VAR = "TASKTIMER_HOME"


def _platform_data_root() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return Path.home() / ".local" / "share"


def default_data_dir() -> Path:
    """Where the config, the default task log and the app log live.

    $TASKTIMER_HOME wins when set; otherwise the per-OS user data directory
    (%APPDATA%, $XDG_DATA_HOME, ~/Library/Application Support, ~/.local/share)
    gets a ``tasktimer`` subdirectory.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return _platform_data_root() / APP_DIRNAME


def ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(round(max(0.0, float(seconds)))), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def shorten(text: str, max_len: int = 48) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + "…"
