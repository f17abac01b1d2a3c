import sys
import os
from loguru import logger

# Flag to track if logging has been configured
_logging_configured = False


def setup_logging(level=None, force=False):
    """
    Configures the global logger with a single stderr sink.

    Args:
        level: Logging level. If None, read TABLESTORE_LOG_LEVEL (default: INFO).
        force: Reconfigure even if logging was already set up.
    """
    global _logging_configured

    # Only configure once to avoid duplicate handlers
    if _logging_configured and not force:
        return
    _logging_configured = True

    if level is None:
        level = os.getenv("TABLESTORE_LOG_LEVEL", "INFO")

    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        colorize=True
    )
