# -*- coding: utf-8 -*-

"""Paths and process-level knobs, read once from environment variables.

User-facing preferences (durations, sounds, import/export format) live in
the database, not here.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "POMOTREE"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    tasks_path: Path
    log_dir: Path
    log_level: str
    tick_ms: int

    @property
    def console_level(self) -> int:
        level = logging.getLevelName(self.log_level.strip().upper())
        return level if isinstance(level, int) else logging.INFO

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pomotree"))
        return Settings(
            data_dir=data_dir,
            db_path=_env_path(_k("DB_PATH"), data_dir / "pomotree.db"),
            tasks_path=_env_path(_k("TASKS_PATH"), data_dir / "tasks.json"),
            log_dir=_env_path(_k("LOG_DIR"), data_dir / "logs"),
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            tick_ms=max(100, _env_int(_k("TICK_MS"), 1000)),
        )
