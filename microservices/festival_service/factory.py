"""
Festival Service Factory

Factory for creating festival service instances with proper dependency injection.
This is the ONLY module that imports concrete implementations.
"""

import logging
from typing import Optional

from core.config import FestivalConfig

from .campaign_synthesizer import CampaignSynthesizer
from .clients import (
    OpenRouterTextClient,
    PillowColorExtractor,
    PollinationsImageClient,
    ShopMailSenderProvider,
    StorefrontColorScraper,
)
from .encryption import CredentialCipher
from .festival_repository import FestivalRepository
from .festival_service import FestivalService
from .key_value_store import FileKeyValueStore, InMemoryKeyValueStore
from .newsletter_dispatcher import NewsletterDispatcher
from .protocols import KeyValueStoreProtocol
from .scheduler import FestivalScheduler
from .subscriber_service import SubscriberService

logger = logging.getLogger(__name__)


def create_store(config: FestivalConfig) -> KeyValueStoreProtocol:
    if config.storage_backend == "memory":
        logger.warning("⚠️ Using in-memory storage, data is lost on restart")
        return InMemoryKeyValueStore()
    if config.storage_backend != "file":
        raise ValueError(f"Unknown storage backend: {config.storage_backend}")
    return FileKeyValueStore(config.data_dir)


class FestivalServiceFactory:
    """Factory for creating festival service components"""

    def __init__(self, config: Optional[FestivalConfig] = None):
        self.config = config or FestivalConfig.from_env()
        self._repository: Optional[FestivalRepository] = None
        self._service: Optional[FestivalService] = None
        self._subscriber_service: Optional[SubscriberService] = None
        self._scheduler: Optional[FestivalScheduler] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Festival Service components...")

        self._repository = FestivalRepository(create_store(self.config))
        cipher = CredentialCipher(self.config.encryption_key or None)
        mail_provider = ShopMailSenderProvider(self._repository, cipher, self.config.mail)

        text_client = None
        if self.config.model.text_enabled:
            text_client = OpenRouterTextClient(self.config.model)
        else:
            logger.warning("⚠️ No text model API key, names and newsletters use fallbacks")

        synthesizer = CampaignSynthesizer(
            text_generator=text_client,
            image_generator=PollinationsImageClient(self.config.model),
            color_extractor=PillowColorExtractor(timeout=self.config.palette_timeout),
            site_scraper=StorefrontColorScraper(timeout=self.config.scrape_timeout),
            model_config=self.config.model,
            infinite_period_days=self.config.lifecycle.infinite_period_days,
        )
        dispatcher = NewsletterDispatcher(
            repository=self._repository,
            mail_provider=mail_provider,
            text_generator=text_client,
            model_config=self.config.model,
        )

        self._service = FestivalService(
            repository=self._repository,
            synthesizer=synthesizer,
            dispatcher=dispatcher,
            cipher=cipher,
            duplicate_window_minutes=self.config.lifecycle.duplicate_window_minutes,
            newsletter_reset_days=self.config.lifecycle.newsletter_reset_days,
        )
        self._subscriber_service = SubscriberService(self._repository, mail_provider)
        self._scheduler = FestivalScheduler(self._service, self.config.lifecycle)

        logger.info("Festival Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Festival Service components...")

        if self._scheduler:
            self._scheduler.shutdown()

        logger.info("Festival Service components closed")

    @property
    def repository(self) -> FestivalRepository:
        """Get festival repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def service(self) -> FestivalService:
        """Get festival service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service

    @property
    def subscriber_service(self) -> SubscriberService:
        """Get subscriber service"""
        if not self._subscriber_service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._subscriber_service

    @property
    def scheduler(self) -> FestivalScheduler:
        """Get lifecycle scheduler"""
        if not self._scheduler:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._scheduler


# Global factory instance
_factory: Optional[FestivalServiceFactory] = None


async def get_factory() -> FestivalServiceFactory:
    """Get or create factory instance"""
    global _factory
    if _factory is None:
        _factory = FestivalServiceFactory()
        await _factory.initialize()
    return _factory


async def close_factory() -> None:
    """Close factory instance"""
    global _factory
    if _factory:
        await _factory.close()
        _factory = None


__all__ = [
    "FestivalServiceFactory",
    "create_store",
    "get_factory",
    "close_factory",
]
