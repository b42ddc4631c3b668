"""
Process-wide logging for the service desk.

Records go to stderr and, when ``LOG_FILE`` is set, to that file as
well.  Client libraries log every request (``httpx``/``httpcore``) and
every font subset written into a PDF (``fontTools``); those loggers are
held at WARNING unless the service itself runs quieter than that.

``setup_logging`` tags the handlers it installs, so calling it again
(the app factory runs once per test) replaces them instead of stacking
duplicates, and handlers installed by someone else are left alone.
"""

import logging
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("httpx", "httpcore", "fontTools")

_OWNED = "_service_desk_handler"


def _level(name: str) -> int:
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else logging.INFO


def _build_handlers(logfile: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        path = Path(logfile).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _OWNED, True)
    return handlers


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> logging.Logger:
    """Install the service's handlers on the root logger.

    Parameters
    ----------
    level : str
        Level name such as ``"DEBUG"``; unknown names mean ``INFO``.
    logfile : Optional[str]
        Also write records to this file.  Missing parent directories
        are created.

    Returns
    -------
    logging.Logger
        The root logger.
    """
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(handler)
        handler.close()

    numeric_level = _level(level)
    root.setLevel(numeric_level)
    for handler in _build_handlers(logfile):
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
    return root
