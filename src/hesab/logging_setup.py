# src/hesab/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "hesab.log"

# Minimum console level per logger prefix; the longest matching prefix wins.
# Snapshot deliveries fire on every write, so the document store stays quiet.
CONSOLE_LEVELS: dict[str, int] = {
    "hesab.": logging.NOTSET,
    "hesab.storage.": logging.WARNING,
    "py.warnings": logging.ERROR,
}
THIRD_PARTY_CONSOLE_LEVEL = logging.ERROR


class ConsoleLevelFilter(logging.Filter):
    """Per-prefix minimum levels for the interactive console."""

    def __init__(self, levels: dict[str, int] | None = None, default: int = THIRD_PARTY_CONSOLE_LEVEL) -> None:
        super().__init__()
        # Longest prefixes first.
        self._levels = sorted((levels or CONSOLE_LEVELS).items(), key=lambda kv: len(kv[0]), reverse=True)
        self._default = default

    def min_level(self, name: str) -> int:
        for prefix, level in self._levels:
            if name.startswith(prefix):
                return level
        return self._default

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.min_level(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/hesab",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route everything to <log_dir>/hesab.log and a filtered view to stderr.

    Replaces handlers already on the root logger. Returns the log file path.
    """
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(ConsoleLevelFilter())

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(file_level)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in (console, file_handler):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.captureWarnings(True)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    return log_file
