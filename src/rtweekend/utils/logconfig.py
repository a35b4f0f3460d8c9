"""Logging configuration for scripts that drive the renderer.

Library modules only create module-level loggers; handlers are attached here
by the application.
"""

import logging

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    name: str = "rtweekend",
    level: int = logging.WARNING,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: str | None = None,
) -> logging.Logger:
    """Configure a named logger with a stream handler and optional file handler.

    Existing handlers on the logger are replaced, so calling this twice does
    not duplicate output.

    Args:
        name: Logger name. "rtweekend" covers every library module.
        level: Logging level.
        log_format: Format string for all handlers.
        log_file: Optional path of a file to log to as well.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(log_format)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False

    return logger
