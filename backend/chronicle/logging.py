"""
Logging configuration for the Chronicle API.
"""

import logging
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that flood DEBUG output; aiosqlite logs every statement.
QUIET_LOGGERS = ("aiosqlite", "httpx", "multipart")


def resolve_level(level: str, debug: bool = False) -> int:
    """
    Map a configured level name to a logging level.

    :param level: Level name such as ``"INFO"``; unknown names fall back to INFO
    :type level: str
    :param debug: Force DEBUG regardless of ``level``
    :type debug: bool
    :return: Numeric logging level
    :rtype: int
    """
    if debug:
        return logging.DEBUG
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: str = "INFO", debug: bool = False) -> logging.Logger:
    """
    Configure application logging.

    :param level: Log level name from settings
    :type level: str
    :param debug: Debug mode from settings; turns on DEBUG for the chronicle loggers
    :type debug: bool
    :return: Root logger for the chronicle application
    :rtype: logging.Logger
    """
    app_level = resolve_level(level, debug)
    logging.basicConfig(
        level=app_level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(app_level, logging.INFO))

    app_logger = logging.getLogger('chronicle')
    app_logger.setLevel(app_level)
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    :param name: The module name for the logger
    :type name: str
    :return: Logger instance for the specified module
    :rtype: logging.Logger
    """
    return logging.getLogger(f'chronicle.{name}')
