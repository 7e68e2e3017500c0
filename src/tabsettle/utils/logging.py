"""Logging helpers.

Library modules only ask for loggers; handlers are attached once by the CLI.
"""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
ROOT_LOGGER = "tabsettle"


def get_logger(name: str) -> logging.Logger:
    """Get logger instance.

    Args:
        name: Logger name (usually module name)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a stream handler to the package logger.

    Calling this more than once only updates the level.

    Args:
        level: Level name such as "DEBUG" or "INFO"

    Returns:
        The configured package logger

    Raises:
        ValueError: If the level name is unknown
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level}'")

    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(numeric_level)
    return logger
