"""Logging setup for the gallery service."""

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger.

    Call once at startup from `main.py`; modules log through
    `logging.getLogger(__name__)`.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        stream=sys.stdout,
    )
    # Silence noisy libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
