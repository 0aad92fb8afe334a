"""Logging setup shared by the web app and the CLI."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the root ``family_archive`` logger.

    Safe to call more than once; the handler is only attached the first time.

    Args:
        level: Log level name or number
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("family_archive")
    logger.setLevel(level)

    if not any(getattr(h, "_family_archive", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler._family_archive = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
