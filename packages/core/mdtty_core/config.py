"""Persistent user settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 1

COLOUR_CHOICES = ("auto", "yes", "no")
THEME_CHOICES = ("solarized-dark", "solarized-light")


@dataclass
class OutputConfig:
    colour: str = "auto"
    columns: int | None = None


@dataclass
class ResourcesConfig:
    local_only: bool = False
    fetch_timeout_s: int = 30


@dataclass
class HighlightConfig:
    enabled: bool = True
    theme: str = "solarized-dark"


@dataclass
class LoggingConfig:
    keep_log_files: int = 7
    file_logging: bool = True


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    output: OutputConfig = field(default_factory=OutputConfig)
    resources: ResourcesConfig = field(default_factory=ResourcesConfig)
    highlight: HighlightConfig = field(default_factory=HighlightConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "mdtty"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "mdtty"
    return Path.home() / ".config" / "mdtty"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_output(cfg: AppConfig) -> None:
    if cfg.output.colour not in COLOUR_CHOICES:
        cfg.output.colour = "auto"
    if cfg.output.columns is not None:
        try:
            cfg.output.columns = max(1, int(cfg.output.columns))
        except (TypeError, ValueError):
            cfg.output.columns = None


def _normalize_resources(cfg: AppConfig) -> None:
    cfg.resources.local_only = bool(cfg.resources.local_only)
    try:
        timeout = int(cfg.resources.fetch_timeout_s)
    except (TypeError, ValueError):
        timeout = ResourcesConfig.fetch_timeout_s
    cfg.resources.fetch_timeout_s = max(1, min(300, timeout))


def _normalize_highlight(cfg: AppConfig) -> None:
    cfg.highlight.enabled = bool(cfg.highlight.enabled)
    if cfg.highlight.theme not in THEME_CHOICES:
        cfg.highlight.theme = "solarized-dark"


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    cfg = AppConfig(
        config_version=CONFIG_VERSION,
        output=_merge(OutputConfig, raw.get("output", {})),
        resources=_merge(ResourcesConfig, raw.get("resources", {})),
        highlight=_merge(HighlightConfig, raw.get("highlight", {})),
        logging=_merge(LoggingConfig, raw.get("logging", {})),
    )

    _normalize_output(cfg)
    _normalize_resources(cfg)
    _normalize_highlight(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
