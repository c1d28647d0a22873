"""
Logging setup shared by the server and the CLI.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_log_level(name: str | None, default: int = logging.INFO) -> int:
    """Numeric level for a name like ``debug``; unknown names give the default."""
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else default


def setup_logger(logger: logging.Logger, log_level: int) -> None:
    """Attach one formatted stream handler to the logger.

    Called again on an already configured logger, only the levels change.
    """
    logger.setLevel(log_level)
    for handler in logger.handlers:
        handler.setLevel(log_level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
