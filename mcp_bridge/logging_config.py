"""Logging configuration for the MCP bridge."""

import sys
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Union

from mcp_bridge.core.config import BridgeSettings


def setup_logging(level: Optional[Union[int, str]] = None, log_dir: Optional[str] = None) -> None:
    """Configure logging for the MCP bridge.

    Args:
        level: Optional logging level (e.g., logging.DEBUG or "DEBUG"). If None,
            uses the ``MCP_BRIDGE_LOG_LEVEL`` setting.
        log_dir: Optional directory for log files. If None, uses the
            ``MCP_BRIDGE_LOG_DIR`` setting, and only console logging when unset.
    """
    if level is None or log_dir is None:
        settings = BridgeSettings()
        level = level if level is not None else settings.log_level
        log_dir = log_dir if log_dir is not None else settings.log_dir
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    # Define a structured log format
    formatter = logging.Formatter(
        fmt='%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Add console handler if none exists
    if not root_logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        main_handler = logging.handlers.RotatingFileHandler(
            log_dir / "mcp_bridge.log",
            maxBytes=10_000_000,  # 10MB
            backupCount=5
        )
        main_handler.setFormatter(formatter)
        root_logger.addHandler(main_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / "error.log",
            maxBytes=10_000_000,  # 10MB
            backupCount=5
        )
        error_handler.setFormatter(formatter)
        error_handler.setLevel(logging.ERROR)
        root_logger.addHandler(error_handler)

    # Configure package loggers
    logging.getLogger('mcp_bridge').setLevel(level)
    logging.getLogger('mcp').setLevel(level)

    # Quieter third-party loggers
    if level != logging.DEBUG:
        for logger_name in ['asyncio', 'backoff', 'httpx']:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Logging initialized", extra={
        "level": logging.getLevelName(level),
        "log_dir": str(log_dir) if log_dir else None
    })
