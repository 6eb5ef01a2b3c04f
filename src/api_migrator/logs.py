"""Logging setup for the api-migrator CLI."""

import logging

LOGGER_NAME = "api_migrator"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a single console handler to the package logger."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[api-migrator] %(levelname)s %(message)s"))
    logger.addHandler(handler)
    return logger
