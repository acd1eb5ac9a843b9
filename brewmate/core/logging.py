"""Process-wide logging setup shared by entrypoints and scripts."""

from __future__ import annotations

import logging

from brewmate.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install the root handler using the configured log level."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT, force=True)
