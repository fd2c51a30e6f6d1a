"""
Logging helper.

Library modules log diagnostics at DEBUG level through module loggers
created here; the command-line runner prints its own progress report.
"""

import logging
import os


def get_logger(name: str) -> logging.Logger:
    """Return a logger with a timestamped stream handler attached once.

    The level defaults to WARNING and can be raised with the
    ``HOMOVISION_LOG_LEVEL`` environment variable (e.g. ``DEBUG``).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt='[%(asctime)s] [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        level = os.environ.get("HOMOVISION_LOG_LEVEL", "WARNING").upper()
        logger.setLevel(getattr(logging, level, logging.WARNING))
    return logger
