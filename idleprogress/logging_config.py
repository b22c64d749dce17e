from __future__ import annotations

import logging
import os
from typing import Iterable

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
LEVEL_ENV_VAR = "IDLEPROGRESS_LOG_LEVEL"


def configure_logging(
    *,
    level: str | None = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
    include_mcp: bool = False,
    extra_loggers: Iterable[str] | None = None,
) -> logging.Logger:
    """Configure engine logging.

    Args:
        level: Optional explicit log level. Falls back to the
            ``IDLEPROGRESS_LOG_LEVEL`` env var or INFO when not provided.
        format: Log format string.
        datefmt: Date format string.
        include_mcp: Whether to align the ``mcp`` SDK loggers with the engine level.
        extra_loggers: Additional logger names to align with the configured level.

    Returns:
        The package logger (``idleprogress``).

    Records go to stderr, which keeps stdout free for the MCP stdio transport.
    """

    raw_level = level if level is not None else os.getenv(LEVEL_ENV_VAR)
    resolved_level = (raw_level or "INFO").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    app_logger = logging.getLogger("idleprogress")
    app_logger.setLevel(resolved_level)

    if include_mcp:
        logging.getLogger("mcp").setLevel(resolved_level)

    if extra_loggers:
        for logger_name in extra_loggers:
            logging.getLogger(logger_name).setLevel(resolved_level)

    app_logger.debug("Logging configured", extra={"level": resolved_level, "format": format})
    return app_logger
