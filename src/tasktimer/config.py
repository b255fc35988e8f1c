from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigError
from .utils import default_data_dir, ensure_dir

DEFAULT_LOG_FILENAME = "tasks.csv"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class TimerConfig:
    output_file: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL

    def log_path(self, data_dir: Optional[Path] = None) -> Path:
        if self.output_file:
            return Path(self.output_file).expanduser()
        return (data_dir or default_data_dir()) / DEFAULT_LOG_FILENAME


def config_path(data_dir: Optional[Path] = None) -> Path:
    return (data_dir or default_data_dir()) / "config.json"


def load_config(data_dir: Optional[Path] = None) -> TimerConfig:
    p = config_path(data_dir)
    if not p.exists():
        return TimerConfig()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {p} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read config file {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {p} must contain a JSON object.")

    cfg = TimerConfig()
    if isinstance(data.get("output_file"), str) and data["output_file"].strip():
        cfg.output_file = data["output_file"]
    if isinstance(data.get("log_level"), str):
        cfg.log_level = data["log_level"].upper()
    return cfg


def save_config(cfg: TimerConfig, data_dir: Optional[Path] = None) -> Path:
    p = config_path(data_dir)
    payload = {
        "output_file": cfg.output_file,
        "log_level": cfg.log_level,
    }
    try:
        ensure_dir(p.parent)
        p.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not write config file {p}: {exc}") from exc
    return p
