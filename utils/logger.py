
# utils/logger.py

import logging
from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "stellaris"


def setup_logging(level=logging.INFO, console: Console = None):
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    if not logger.handlers:  # Prevent duplicate handlers
        handler = RichHandler(console=console, rich_tracebacks=True, markup=True)
        formatter = logging.Formatter("%(message)s", datefmt="[%X]")
        handler.setFormatter(formatter)

        logger.addHandler(handler)
        logger.propagate = False

    return logger


def get_logger(name=None):
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
