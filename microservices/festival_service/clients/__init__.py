"""
Festival Service Clients

Adapters for the external collaborators the engine depends on.
"""

from .color_client import PillowColorExtractor
from .image_client import PollinationsImageClient
from .mail_client import ResendMailClient, ShopMailSenderProvider
from .site_client import StorefrontColorScraper
from .text_client import OpenRouterTextClient

__all__ = [
    "OpenRouterTextClient",
    "PollinationsImageClient",
    "PillowColorExtractor",
    "StorefrontColorScraper",
    "ResendMailClient",
    "ShopMailSenderProvider",
]
