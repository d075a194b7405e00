"""
Application logger.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from classswitcher.config import default_log_level


def setup_logger() -> logging.Logger:
    """
    Configure and return the 'classswitcher' logger.

    Log records go to stderr so they never mix with command output on stdout.
    """
    logger = logging.getLogger("classswitcher")
    logger.setLevel(default_log_level())

    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(module)s: %(message)s"))

    if not logger.handlers:
        logger.addHandler(handler)

    return logger


# Single logger instance imported by the other modules
log = setup_logger()
