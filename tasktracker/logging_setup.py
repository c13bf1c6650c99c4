from __future__ import annotations

import logging
import sys
from pathlib import Path

from .config import LOG_FILE, LOG_LEVEL

_configured = False


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - tasktracker logs pass at the configured level
    - uvicorn access/error logs pass at INFO+
    - any other third-party logger (sqlalchemy, jose, ...) only at WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith("tasktracker"):
            return True
        if name.startswith("uvicorn"):
            return record.levelno >= logging.INFO
        return record.levelno >= logging.WARNING


def setup_logging(
    *,
    level: str | int = LOG_LEVEL,
    log_file: str | Path | None = LOG_FILE,
) -> None:
    """
    Configure the root logger with a stderr handler and, when ``log_file`` is
    set, a file handler. Safe to call more than once; only the first call
    installs handlers.
    """
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(ch)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
    _configured = True
