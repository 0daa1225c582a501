"""
Application logger.
Usage:
    from solar_portal.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Payment requested")
"""
import logging
import os
import sys

from solar_portal.config import get_settings

settings = get_settings()

_logger = logging.getLogger("solar_portal")

# Prevent duplicate handlers on uvicorn reload
if not _logger.handlers:
    _logger.setLevel(settings.LOG_LEVEL.upper())

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    _logger.addHandler(console_handler)

    try:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(settings.LOG_DIR, "server.log"))
        file_handler.setFormatter(formatter)
        _logger.addHandler(file_handler)
    except OSError as e:
        _logger.warning(f"File logging disabled, cannot write to {settings.LOG_DIR}: {e}")

    _logger.propagate = False

logger = _logger


def get_logger(name: str) -> logging.Logger:
    """Child logger under the application logger (e.g. solar_portal.services.payment_service)."""
    if name.startswith("solar_portal."):
        name = name[len("solar_portal."):]
    return _logger.getChild(name)
