"""Logging setup for the ``crewsched`` package loggers."""

from __future__ import annotations

import logging

from crewsched.common.settings import Settings

PACKAGE_LOGGER = "crewsched"
_HANDLER_NAME = "crewsched-stream"


def configure_logging(settings: Settings) -> logging.Logger:
    """Set the package logger's level and give it a stream handler if nothing else logs.

    Modules keep using ``logging.getLogger(__name__)`` and inherit from here.
    Under uvicorn (root already has handlers) records just propagate. Calling
    this again only updates the level.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(settings.log_level)

    has_own = any(h.get_name() == _HANDLER_NAME for h in logger.handlers)
    if not has_own and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(
            logging.Formatter(
                f"%(asctime)s %(levelname)s [{settings.app_env}] %(name)s: %(message)s"
            )
        )
        logger.addHandler(handler)
    return logger
