"""Diagnostics payload describing the detected terminal and effective settings."""

from __future__ import annotations

import os
import platform
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Mapping

from mdtty_terminal import Terminal, TerminalSize

from .config import AppConfig, config_path


ENV_SIGNALS = ("TERM", "TERM_PROGRAM", "TERM_PROGRAM_VERSION", "COLORTERM", "NO_COLOR")


def build_doctor_payload(
    cfg: AppConfig,
    terminal: Terminal,
    size: TerminalSize,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    env = os.environ if environ is None else environ
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "terminal": terminal.name,
        "capabilities": asdict(terminal.capabilities),
        "size": asdict(size),
        "environment": {name: env.get(name) for name in ENV_SIGNALS},
        "config_path": str(config_path()),
        "config": asdict(cfg),
    }
