"""Logging setup for applications embedding the estimator."""

import logging

from .config import get_settings


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging with the project format.

    Args:
        level: Log level name; defaults to the configured ``log_level``
    """
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
