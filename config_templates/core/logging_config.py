"""Centralized logging configuration for the engine.

Engine modules log through plain ``logging`` loggers; the handlers
installed here render those records with structlog so console and file
output share one format. Handlers:
- console (stderr): ``log_format`` renderer at the configured level
- info.log: JSON lines, INFO and above (only when ``log_dir`` is set)
- error.log: JSON lines, ERROR and above (only when ``log_dir`` is set)
"""

import logging
import sys
from pathlib import Path

import structlog

from config_templates.core.config import SHARED_PROCESSORS, Settings, get_settings


def _formatter(renderer) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Install console and optional file handlers on the root logger.

    Meant for entry points such as the command line; library callers keep
    their own handlers.

    Args:
        settings: Settings to use. If None, uses global settings.

    Returns:
        The configured root logger.
    """
    settings = settings or get_settings()
    settings.configure_logging()

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.level)
    root_logger.handlers.clear()

    if settings.log_dir is not None:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        json_formatter = _formatter(structlog.processors.JSONRenderer())

        for filename, level in (("info.log", logging.INFO), ("error.log", logging.ERROR)):
            handler = logging.FileHandler(log_dir / filename, encoding="utf-8")
            handler.setLevel(level)
            handler.setFormatter(json_formatter)
            root_logger.addHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(settings.level)
    console_handler.setFormatter(_formatter(settings.renderer()))
    root_logger.addHandler(console_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Records go through the handlers installed by ``setup_logging``.

    Args:
        name: The name for the logger (typically __name__ of the module).

    Returns:
        A standard library logger.
    """
    return logging.getLogger(name)
