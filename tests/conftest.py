import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """setup_logging() binds handlers to the captured streams of one test; drop them afterwards."""
    yield
    logger = logging.getLogger("voxclust")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
