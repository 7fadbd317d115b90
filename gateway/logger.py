"""
Loguru sink configuration.

Every record carries a ``correlation_id`` extra; request-scoped code binds it
through ``RequestContext.log`` and everything else falls back to ``-``.
"""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "correlationId={extra[correlation_id]} - <level>{message}</level>"
)


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with the gateway format."""
    logger.remove()
    logger.configure(extra={"correlation_id": "-"})
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT, backtrace=False)
    logger.debug(f"Logging configured at level {level.upper()}")
