"""Logger setup shared by every module of the pipeline."""

import logging
import sys

from newsweb.config import get_settings

ROOT_LOGGER_NAME = "newsweb"


def configure_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Configure and return the application root logger."""
    logger = logging.getLogger(name)
    log_level = getattr(logging, get_settings().log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    # Only add handler if it doesn't already exist (avoid duplicate handlers)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(handler)

    return logger


def create_logger(module_name: str) -> logging.Logger:
    """Get a child logger under the newsweb namespace.

    Child loggers propagate to the configured root logger, so records are
    emitted once and remain visible to pytest's ``caplog``.
    """
    if module_name.startswith(f"{ROOT_LOGGER_NAME}."):
        module_name = module_name[len(ROOT_LOGGER_NAME) + 1 :]
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{module_name}")


# Initialize the main logger
logger = configure_logger()

__all__ = ["logger", "configure_logger", "create_logger"]
