"""
Festival Service Mocks

Mock implementations of the collaborator protocols in protocols.py.
"""

import asyncio
import os
import sys
from typing import Dict, List, Optional, Set
from unittest.mock import AsyncMock, MagicMock

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.festival_service.encryption import CredentialCipher
from microservices.festival_service.festival_repository import FestivalRepository
from microservices.festival_service.models import MailMessage, SendReceipt
from microservices.festival_service.protocols import (
    CollaboratorUnavailableError,
    ImageGenerationError,
    MailDeliveryError,
    SiteColorsUnavailableError,
)
from tests.contracts.festival.data_contract import FestivalTestDataFactory

SHOP = "shop.test"


class MockMailSender:
    """Records sent messages; fails for the configured recipients"""

    def __init__(self, failing: Optional[Set[str]] = None):
        self.failing = failing or set()
        self.sent: List[MailMessage] = []

    async def send(self, message: MailMessage) -> SendReceipt:
        if message.to in self.failing:
            raise MailDeliveryError(message.to, "mailbox unavailable")
        self.sent.append(message)
        return SendReceipt(message_id=f"msg_{len(self.sent)}")

    @property
    def recipients(self) -> List[str]:
        return [message.to for message in self.sent]


class BarrierMailSender(MockMailSender):
    """Holds every send until `expected` sends are in flight at once"""

    def __init__(self, expected: int):
        super().__init__()
        self.expected = expected
        self.in_flight = 0
        self.peak = 0
        self._all_started = asyncio.Event()

    async def send(self, message: MailMessage) -> SendReceipt:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        if self.in_flight >= self.expected:
            self._all_started.set()
        await self._all_started.wait()
        self.in_flight -= 1
        return await super().send(message)


class MockMailSenderProvider:
    """Hands out one sender per shop, or None for unconfigured shops"""

    def __init__(self, senders: Optional[Dict[str, MockMailSender]] = None):
        self.senders = senders or {}
        self.requests: List[str] = []

    async def get_sender(self, shop_domain: str) -> Optional[MockMailSender]:
        self.requests.append(shop_domain)
        return self.senders.get(shop_domain)


def failing_text_generator() -> AsyncMock:
    generator = AsyncMock()
    generator.generate.side_effect = CollaboratorUnavailableError("text generator", "rate limit exceeded")
    return generator


def text_generator_replying(*replies: str) -> AsyncMock:
    generator = AsyncMock()
    generator.generate.side_effect = list(replies)
    return generator


def failing_image_generator() -> MagicMock:
    generator = MagicMock()
    generator.generate = AsyncMock(side_effect=ImageGenerationError("timeout"))
    generator.fallback_url = MagicMock(side_effect=ImageGenerationError("no url"))
    return generator


def failing_color_extractor() -> AsyncMock:
    extractor = AsyncMock()
    extractor.extract_palette.side_effect = CollaboratorUnavailableError("color extractor", "timeout")
    return extractor


def failing_site_scraper() -> AsyncMock:
    scraper = AsyncMock()
    scraper.scrape_colors.side_effect = SiteColorsUnavailableError(SHOP, "connection refused")
    return scraper


async def configure_shop_mail(
    repository: FestivalRepository,
    cipher: CredentialCipher,
    shop: str = SHOP,
    store_name: str = "",
):
    """Store enabled Resend settings for a shop"""
    config = FestivalTestDataFactory.make_merchant_config(
        shop_domain=shop,
        store_name=store_name,
        email=FestivalTestDataFactory.make_email_settings(cipher.encrypt("re_test_key")),
    )
    await repository.save_merchant_config(config)
    return config


__all__ = [
    "SHOP",
    "MockMailSender",
    "BarrierMailSender",
    "MockMailSenderProvider",
    "failing_text_generator",
    "text_generator_replying",
    "failing_image_generator",
    "failing_color_extractor",
    "failing_site_scraper",
    "configure_shop_mail",
]
