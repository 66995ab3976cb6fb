#!/usr/bin/env python3
"""Modular configuration system for the festival engine

Configuration hierarchy:
- festival_config: storage, credentials, mail and lifecycle tuning
- model_config: text and image generation endpoints
- logging_config: logging configuration
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig
from .model_config import ModelConfig
from .festival_config import FestivalConfig, LifecycleConfig, MailConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = FestivalConfig.from_env()

def get_settings() -> FestivalConfig:
    """Get global settings instance"""
    return settings

def reload_settings() -> FestivalConfig:
    """Reload settings from environment"""
    global settings
    settings = FestivalConfig.from_env()
    return settings

__all__ = [
    # Main config
    'FestivalConfig',
    'get_settings',
    'reload_settings',
    'settings',
    # Sub-configs
    'LoggingConfig',
    'ModelConfig',
    'MailConfig',
    'LifecycleConfig',
]
