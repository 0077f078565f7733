"""
Utility Functions
Logging setup and small numeric helpers shared by the analyzers
"""

import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from pathlib import Path
from typing import Optional
import numpy as np

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "superkiwi"


def setup_logging(config) -> Optional[str]:
    """
    Setup structured logging for a host application

    Args:
        config: Configuration object

    Returns:
        Path to log file, or None when file logging is disabled
    """
    logging_config = config.logging

    # Get log level
    log_level = getattr(logging, logging_config.level.upper(), logging.INFO)
    if config.debug:
        log_level = logging.DEBUG

    # Formatter
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    log_file = None
    session_time = datetime.now().strftime("%Y%m%d_%H%M%S")

    # File handler
    if logging_config.file.enabled:
        log_dir = Path(logging_config.file.directory)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"superkiwi_session_{session_time}.log"

        max_bytes = logging_config.file.max_size_mb * 1024 * 1024
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=logging_config.file.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Console handler
    console_formatter = logging.Formatter("%(levelname)-8s | %(name)-28s | %(message)s")
    console_handler = logging.StreamHandler()

    if logging_config.console.enabled:
        console_handler.setLevel(log_level)
    else:
        console_handler.setLevel(logging.WARNING)

    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    set_debug(config.debug)

    logging.info("=" * 80)
    logging.info(f"SuperKiwi session started - Session: {session_time}")
    if log_file is not None:
        logging.info(f"Log file: {log_file}")
    logging.info(f"Log level: {logging.getLevelName(log_level)}")
    logging.info("=" * 80)

    return str(log_file) if log_file is not None else None


def set_debug(enabled: bool):
    """Switch diagnostic logging for the package logger"""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG if enabled else logging.NOTSET)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]"""
    return max(low, min(high, value))


def euclidean_distance(p1, p2) -> float:
    """Planar distance between two points, using x and y only"""
    return float(np.hypot(p2[0] - p1[0], p2[1] - p1[1]))
