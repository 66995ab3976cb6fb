#!/usr/bin/env python3
"""Generation model configuration

Text generation (OpenRouter chat completions) and image generation
(Pollinations) endpoints used to name campaigns, write newsletter copy
and paint popup backgrounds.
"""
import os
from dataclasses import dataclass

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
class ModelConfig:
    """Text and image generation settings"""

    # ===========================================
    # Text generation (OpenRouter)
    # ===========================================
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_api_key: str = ""
    text_model: str = "deepseek/deepseek-chat"
    text_timeout: float = 15.0
    text_max_attempts: int = 2

    # Model parameters
    name_max_tokens: int = 50
    name_temperature: float = 0.8
    newsletter_max_tokens: int = 800
    newsletter_temperature: float = 0.7

    # ===========================================
    # Image generation (Pollinations)
    # ===========================================
    image_base_url: str = "https://image.pollinations.ai"
    image_model: str = "flux"
    image_width: int = 815
    image_height: int = 593
    image_timeout: float = 30.0
    image_check_timeout: float = 5.0

    @property
    def text_enabled(self) -> bool:
        return bool(self.openrouter_api_key)

    @classmethod
    def from_env(cls) -> 'ModelConfig':
        """Load model configuration from environment variables"""
        return cls(
            # Text generation
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY") or os.getenv("DEEPSEEK_API_KEY", ""),
            text_model=os.getenv("TEXT_MODEL", "deepseek/deepseek-chat"),
            text_timeout=_float(os.getenv("TEXT_TIMEOUT_SECONDS", "15"), 15.0),
            text_max_attempts=_int(os.getenv("TEXT_MAX_ATTEMPTS", "2"), 2),

            # Model parameters
            name_max_tokens=_int(os.getenv("NAME_MAX_TOKENS", "50"), 50),
            name_temperature=_float(os.getenv("NAME_TEMPERATURE", "0.8"), 0.8),
            newsletter_max_tokens=_int(os.getenv("NEWSLETTER_MAX_TOKENS", "800"), 800),
            newsletter_temperature=_float(os.getenv("NEWSLETTER_TEMPERATURE", "0.7"), 0.7),

            # Image generation
            image_base_url=os.getenv("POLLINATIONS_BASE_URL", "https://image.pollinations.ai"),
            image_model=os.getenv("IMAGE_MODEL", "flux"),
            image_width=_int(os.getenv("IMAGE_WIDTH", "815"), 815),
            image_height=_int(os.getenv("IMAGE_HEIGHT", "593"), 593),
            image_timeout=_float(os.getenv("IMAGE_TIMEOUT_SECONDS", "30"), 30.0),
            image_check_timeout=_float(os.getenv("IMAGE_CHECK_TIMEOUT_SECONDS", "5"), 5.0),
        )
