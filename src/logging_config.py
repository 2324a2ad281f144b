"""
Centralized logging configuration for the map asset builder.

Log levels:
    DEBUG: Cache lookups, per-tile progress, HTTP client request lines
    INFO: Normal workflow progress (feeds fetched, map built, bundle written)
    WARNING: Non-fatal issues (skipped map groups)
    ERROR: Build failures

Usage:
    from logging_config import setup_logging

    setup_logging("", level=logging.INFO, log_file=Path("assets/fetch_maps.log"))
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# httpx logs one INFO line per request
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console_output: bool = True,
    noisy_loggers: Iterable[str] = NOISY_LOGGERS
) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        name: Logger name ("" for the root logger)
        level: Logging level (default: INFO)
        log_file: Optional path to append logs to
        console_output: Whether to output to stdout (default: True)
        noisy_loggers: Loggers held at WARNING unless ``level`` is DEBUG

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for noisy in noisy_loggers:
        logging.getLogger(noisy).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    return logger
