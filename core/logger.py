#!/usr/bin/env python3
"""
Service logger setup

Configures stdlib logging for a service process: console handler plus an
optional file handler, level and format taken from LoggingConfig.
"""
import logging
import sys
from typing import Optional

from .config import get_settings


def setup_service_logger(
    service_name: str,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure root logging for a service and return its named logger.

    Args:
        service_name: Logger name, usually the service package name
        level: Overrides LOG_LEVEL when given
        log_file: Overrides LOG_FILE when given

    Returns:
        The service logger
    """
    log_config = get_settings().logging
    level_name = (level or log_config.log_level).upper()
    formatter = logging.Formatter(log_config.log_format)

    root = logging.getLogger()
    root.setLevel(level_name)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if log_config.enable_console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        root.addHandler(console)

    target_file = log_file or log_config.log_file
    if target_file:
        file_handler = logging.FileHandler(target_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Quiet chatty client libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logger = logging.getLogger(service_name)
    logger.debug(f"Logging configured for {service_name} at {level_name}")
    return logger
