"""Logging setup shared by the reader, the OCR collaborators and the CLI.

The extraction engine only ever asks for named loggers; handlers and levels
are configured once by whichever entry point runs first.
"""

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# pdfminer (under pdfplumber) and PIL log every parsed object at DEBUG.
_NOISY_LOGGERS: tuple[str, ...] = ("pdfminer", "PIL")


def setup_logging(level: str = "INFO", fmt: str = DEFAULT_FORMAT) -> None:
    """Configure the root logger for document reading runs.

    Calling this more than once is a no-op so that the CLI and library users
    can both call it safely.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        fmt: Log record format string.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
