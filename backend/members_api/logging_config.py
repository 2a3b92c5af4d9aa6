"""
Console plus a server.log file under LOG_DIR.
"""
import logging
import os

from members_api.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> logging.Logger:
    """Point the package logger at this app's LOG_DIR, replacing earlier handlers."""
    logger = logging.getLogger("members_api")
    logger.setLevel(settings.LOG_LEVEL.upper())

    for handler in getattr(logger, "_app_handlers", []):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)

    os.makedirs(settings.LOG_DIR, exist_ok=True)
    file_handler = logging.FileHandler(os.path.join(settings.LOG_DIR, "server.log"), encoding="utf-8")
    file_handler.setFormatter(formatter)

    logger._app_handlers = [console, file_handler]
    for handler in logger._app_handlers:
        logger.addHandler(handler)
    return logger
