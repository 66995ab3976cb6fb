#!/usr/bin/env python3
"""
Core Module for the festival engine

Shared components used by the services in this repository.

COMPONENTS:
    - config/: dataclass configuration loaded from the environment (.env aware)
    - logger.py: service logger setup

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger("festival_service")
"""
