"""
Logging for storefront_query.

Everything logs under the "storefront_query" hierarchy: the Redis and Mongo
repositories, the cache front, handlers and the API each take a child via
get_logger("redis"), get_logger("cache") and so on. The level comes from
Settings.log_level (LOG_LEVEL), records go to stdout only, and the hierarchy
does not propagate so uvicorn's root handlers do not print them twice.
"""
import logging
import sys

from storefront_query.config import settings

logger = logging.getLogger("storefront_query")
logger.setLevel(settings.log_level)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(settings.log_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

# Prevent propagation to root logger (avoid duplicate logs)
logger.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Optional name for the logger (appended to 'storefront_query')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"storefront_query.{name}")
    return logger
