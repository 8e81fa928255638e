"""
Logger setup for the CLI and the ingestion server.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by whichever entry point runs.
"""

import logging
import sys
from pathlib import Path

from recon_health.utils.parameters import LoggingConfig

NOISY_LOGGERS = ("urllib3", "multipart", "httpx")


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def _attach(
    target: logging.Logger, handler: logging.Handler, level: int, fmt: logging.Formatter
) -> None:
    handler.setLevel(level)
    handler.setFormatter(fmt)
    target.addHandler(handler)


def setup_logging(
    config: LoggingConfig,
    logger_name: str | None = "recon_health",
    level_override: str | None = None,
) -> logging.Logger:
    """
    Attach console and file handlers described by ``config``.

    Calling it again replaces the handlers instead of stacking them.

    Args:
        config: Logging section of the configuration.
        logger_name: Logger to configure; None means the root logger.
        level_override: Level used instead of ``config.level`` (``--verbose``).

    Returns:
        The configured logger.
    """
    level = _resolve_level(level_override or config.level)
    fmt = logging.Formatter(config.format)

    target = logging.getLogger(logger_name)
    target.setLevel(level)
    target.handlers.clear()

    # stdout is reserved for command output such as dashboard JSON.
    if config.console:
        _attach(target, logging.StreamHandler(sys.stderr), level, fmt)

    if config.file:
        path = Path(config.file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _attach(target, logging.FileHandler(path, encoding="utf-8"), level, fmt)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return target


def get_logger(name: str) -> logging.Logger:
    """Module logger; same as ``logging.getLogger``."""
    return logging.getLogger(name)
