# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Union

APP_LOGGERS = ("core.", "domain.", "services.", "storage.", "ui.", "__main__", "app")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - our own loggers pass at the handler level
    - storage is quiet below WARNING (checkpoints every 30 s)
    - Python warnings and third party (tkinterweb, markdown) only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("storage."):
            return record.levelno >= logging.WARNING
        if name.startswith(APP_LOGGERS):
            return True

        if name == "py.warnings":
            return record.levelno >= logging.ERROR

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: Union[str, Path] = ".local/pomotree/logs",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console handler (filtered) plus a full UTF-8 log file.
    Call once, before the first log line. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "pomotree.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # warnings.warn(...) -> 'py.warnings'
    logging.captureWarnings(True)

    # tkhtml parser chatter
    logging.getLogger("tkinterweb").setLevel(logging.INFO)
    logging.getLogger("MARKDOWN").setLevel(logging.WARNING)
    return log_file
