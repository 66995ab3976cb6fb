"""
Component Test Fixtures for Festival Service

Provides the in-memory store, a repository over it, and services wired
to mock collaborators.
"""

import random

import pytest
from unittest.mock import AsyncMock, MagicMock

from microservices.festival_service.campaign_synthesizer import CampaignSynthesizer, ImageRequestGate
from microservices.festival_service.encryption import CredentialCipher
from microservices.festival_service.festival_repository import FestivalRepository
from microservices.festival_service.festival_service import FestivalService
from microservices.festival_service.key_value_store import InMemoryKeyValueStore
from microservices.festival_service.newsletter_dispatcher import NewsletterDispatcher
from microservices.festival_service.subscriber_service import SubscriberService
from tests.contracts.festival.data_contract import FestivalTestDataFactory

from .mocks import (
    SHOP,
    MockMailSender,
    MockMailSenderProvider,
    failing_color_extractor,
    failing_image_generator,
    failing_site_scraper,
    failing_text_generator,
)


@pytest.fixture
def factory():
    """Provide test data factory"""
    return FestivalTestDataFactory()


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def repository(store):
    return FestivalRepository(store)


@pytest.fixture
def cipher():
    return CredentialCipher("component-test-secret")


@pytest.fixture
def mail_sender():
    return MockMailSender()


@pytest.fixture
def mail_provider(mail_sender):
    return MockMailSenderProvider({SHOP: mail_sender})


@pytest.fixture
def image_generator():
    generator = MagicMock()
    generator.generate = AsyncMock(return_value="https://images.test/festival.png")
    generator.fallback_url = MagicMock(return_value="https://images.test/fallback.png")
    return generator


@pytest.fixture
def synthesizer(clock):
    """Synthesizer whose collaborators all fail"""
    return CampaignSynthesizer(
        text_generator=failing_text_generator(),
        image_generator=failing_image_generator(),
        color_extractor=failing_color_extractor(),
        site_scraper=failing_site_scraper(),
        image_gate=ImageRequestGate(),
        rng=random.Random(1),
        clock=clock,
    )


@pytest.fixture
def dispatcher(repository, mail_provider, clock):
    return NewsletterDispatcher(repository=repository, mail_provider=mail_provider, clock=clock)


@pytest.fixture
def festival_service(repository, synthesizer, dispatcher, cipher, clock):
    return FestivalService(
        repository=repository,
        synthesizer=synthesizer,
        dispatcher=dispatcher,
        cipher=cipher,
        clock=clock,
    )


@pytest.fixture
def subscriber_service(repository, mail_provider, clock):
    return SubscriberService(repository, mail_provider, clock=clock)
