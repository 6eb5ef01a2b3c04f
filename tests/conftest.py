import logging

import pytest

from api_migrator.logs import LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """CLI invocations attach a handler bound to CliRunner's streams; drop it afterwards."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
