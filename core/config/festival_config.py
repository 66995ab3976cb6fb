#!/usr/bin/env python3
"""Festival engine main configuration

Combines the sub-configs and adds storage, mail, credential and
campaign-lifecycle tuning.
"""
import os
from dataclasses import dataclass, field

from .logging_config import LoggingConfig
from .model_config import ModelConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class MailConfig:
    """Outbound mail transport (Resend)"""
    resend_base_url: str = "https://api.resend.com"
    resend_api_key: str = ""
    default_from_email: str = ""
    default_from_name: str = "Festival Offers"
    send_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> 'MailConfig':
        return cls(
            resend_base_url=os.getenv("RESEND_BASE_URL", "https://api.resend.com"),
            resend_api_key=os.getenv("RESEND_API_KEY", ""),
            default_from_email=os.getenv("DEFAULT_FROM_EMAIL", ""),
            default_from_name=os.getenv("DEFAULT_FROM_NAME", "Festival Offers"),
            send_timeout=_float(os.getenv("MAIL_TIMEOUT_SECONDS", "30"), 30.0),
        )


@dataclass
class LifecycleConfig:
    """Campaign lifecycle tuning"""
    duplicate_window_minutes: int = 10
    newsletter_reset_days: int = 7
    infinite_period_days: int = 7
    activation_sweep_minutes: int = 60
    reset_cron_hour: int = 1
    reset_cron_minute: int = 0

    @classmethod
    def from_env(cls) -> 'LifecycleConfig':
        return cls(
            duplicate_window_minutes=_int(os.getenv("DUPLICATE_WINDOW_MINUTES", "10"), 10),
            newsletter_reset_days=_int(os.getenv("NEWSLETTER_RESET_DAYS", "7"), 7),
            infinite_period_days=_int(os.getenv("INFINITE_PERIOD_DAYS", "7"), 7),
            activation_sweep_minutes=_int(os.getenv("ACTIVATION_SWEEP_MINUTES", "60"), 60),
            reset_cron_hour=_int(os.getenv("RESET_CRON_HOUR", "1"), 1),
            reset_cron_minute=_int(os.getenv("RESET_CRON_MINUTE", "0"), 0),
        )


@dataclass
class FestivalConfig:
    """Festival engine configuration"""

    # ===========================================
    # Environment
    # ===========================================
    environment: str = "development"
    debug: bool = False

    # ===========================================
    # Storage
    # ===========================================
    storage_backend: str = "file"
    data_dir: str = "data"

    # ===========================================
    # Credentials
    # ===========================================
    encryption_key: str = ""

    # ===========================================
    # Collaborator timeouts
    # ===========================================
    scrape_timeout: float = 10.0
    palette_timeout: float = 30.0

    # ===========================================
    # Sub-configurations
    # ===========================================
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    mail: MailConfig = field(default_factory=MailConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> 'FestivalConfig':
        """Load full configuration from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "false")),
            storage_backend=os.getenv("STORAGE_BACKEND", "file"),
            data_dir=os.getenv("FESTIVAL_DATA_DIR", "data"),
            encryption_key=os.getenv("ENCRYPTION_KEY", ""),
            scrape_timeout=_float(os.getenv("SCRAPE_TIMEOUT_SECONDS", "10"), 10.0),
            palette_timeout=_float(os.getenv("PALETTE_TIMEOUT_SECONDS", "30"), 30.0),
            logging=LoggingConfig.from_env(),
            model=ModelConfig.from_env(),
            mail=MailConfig.from_env(),
            lifecycle=LifecycleConfig.from_env(),
        )
