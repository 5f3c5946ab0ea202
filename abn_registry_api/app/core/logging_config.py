"""
Logging setup for the ABN Registry API.

``setup_logging`` is called once from ``create_app``.  It installs a
console handler (and a file handler when ``LOG_FILE`` is set) on the
root logger; service and store modules log through
``logging.getLogger(__name__)`` and need no configuration of their own.
Uvicorn's loggers are pointed at the same handlers so request and
application lines share one format.
"""

import logging
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _handlers(logfile: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        path = Path(logfile).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger unless something already did.

    ``level`` is a level name such as ``"DEBUG"``; unknown names mean
    ``INFO``.  ``logfile`` adds a UTF-8 file handler next to the
    console one.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    root.setLevel(numeric_level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _handlers(logfile):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    logging.getLogger(__name__).debug("Logging configured at %s", logging.getLevelName(numeric_level))
