from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .util.files import ensure_private_dir, open_private


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

# Browser driver and HTML parser chatter; never more verbose than WARNING.
_CHATTY_LOGGERS = ("playwright", "asyncio", "bs4")


class PrivateFileHandler(logging.FileHandler):
    """
    Append-mode file handler whose log file is readable by the owner only.

    Log lines name accounts and the statement months fetched for them.
    """

    def _open(self):
        return open_private(self.baseFilename, "a", encoding=self.encoding)


def configure_logging(level: str = "INFO", file_path: Optional[str] = None) -> Optional[Path]:
    """
    Route log records to stderr and, when `file_path` is set, to a private log file.

    Safe to call again: the CLI reconfigures once the config file is loaded.
    Returns the log file path, if any.
    """
    numeric_level = logging.getLevelName((level or "INFO").upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_path: Optional[Path] = None
    if file_path:
        log_path = Path(file_path).expanduser()
        ensure_private_dir(log_path.parent)
        handlers.append(PrivateFileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, handlers=handlers, force=True)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
    return log_path
