"""
Console logging setup for applications that embed inventory_balance.

Package modules only log through logging.getLogger(__name__) and never
configure handlers; a script or service calls setup_logger() once at start-up
(for example setup_logger("inventory_balance")) to see run summaries and
data warnings.
"""

import logging
import sys

from . import settings


def setup_logger(name: str | None = None, log_level: int | str | None = None) -> logging.Logger:
    """
    Sets up a logger with console output.

    Idempotent: a logger that already has handlers keeps them.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level or settings.LOG_LEVEL)

    # Prevent adding handlers multiple times if logger is already set up
    if logger.hasHandlers():
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(console_handler)

    return logger
