"""
Logging setup shared by the API and the worker.
"""

import logging
from typing import Optional

from marketplace.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stream handler at LOG_LEVEL (or the given level)."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
        force=True,
    )
