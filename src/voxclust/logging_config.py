"""Logger setup shared by the voxclust CLI and library users."""
import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.WARNING, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route the 'voxclust' loggers to stderr and, optionally, a log file.

    Calling it again replaces the handlers of the previous call.
    """
    logger = logging.getLogger("voxclust")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers = [logging.StreamHandler(sys.stderr)]  # stdout carries the JSON summary
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("voxclust logging at level %s", logging.getLevelName(level))
    return logger


def verbosity_to_level(verbose: int = 0, quiet: bool = False) -> int:
    """Map -v / -q counts to a level: WARNING by default, -v INFO, -vv DEBUG, -q ERROR."""
    if quiet:
        return logging.ERROR
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING
