"""
Subscriber management

Subscriptions are unique per (email, shop, type) and never deleted;
unsubscribing deactivates the record and subscribing again reactivates it.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from .activation import find_active
from .festival_repository import FestivalRepository
from .models import (
    MailMessage,
    SubscribeResult,
    SubscribeStatus,
    Subscriber,
    SubscriberPreferences,
    SubscriptionType,
    utc_now,
)
from .newsletter_templates import render_welcome_email, welcome_subject
from .protocols import InvalidSubscriptionTypeError, MailSenderProviderProtocol

logger = logging.getLogger(__name__)


def parse_subscription_type(value: Union[str, SubscriptionType]) -> SubscriptionType:
    try:
        return SubscriptionType(value)
    except ValueError:
        raise InvalidSubscriptionTypeError(str(value))


class SubscriberService:
    """Subscribe, unsubscribe and list newsletter subscribers"""

    def __init__(
        self,
        repository: FestivalRepository,
        mail_provider: Optional[MailSenderProviderProtocol] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.mail_provider = mail_provider
        self.clock = clock

    async def subscribe(
        self,
        shop_domain: str,
        email: str,
        subscription_type: Union[str, SubscriptionType] = SubscriptionType.FESTIVAL,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> SubscribeResult:
        """
        Subscribe an email to a shop's festival or blog newsletter.

        Args:
            shop_domain: Shop domain
            email: Subscriber email
            subscription_type: "festival" or "blog"
            preferences: Overrides for the type's default preference flags

        Returns:
            SubscribeResult; already-subscribed is a normal outcome

        Raises:
            InvalidSubscriptionTypeError: Unknown subscription type
        """
        sub_type = parse_subscription_type(subscription_type)
        defaults = SubscriberPreferences.for_type(sub_type).model_dump()
        merged = SubscriberPreferences.model_validate({**defaults, **(preferences or {})})

        candidate = Subscriber(
            email=email,
            shop_domain=shop_domain,
            subscription_type=sub_type,
            preferences=merged,
            subscribed_at=self.clock(),
        )

        subscribers = await self.repository.get_subscribers(shop_domain)
        for index, existing in enumerate(subscribers):
            if existing.identity() != candidate.identity():
                continue
            if existing.is_active:
                return SubscribeResult(
                    status=SubscribeStatus.ALREADY_SUBSCRIBED,
                    subscriber=existing,
                    message=f"Email already subscribed to {sub_type.value} updates",
                )
            reactivated = existing.model_copy(update={
                "is_active": True,
                "preferences": merged,
                "subscribed_at": self.clock(),
                "unsubscribed_at": None,
            })
            subscribers[index] = reactivated
            await self.repository.save_subscribers(shop_domain, subscribers)
            logger.info(f"Reactivated {sub_type.value} subscriber {reactivated.email} for {shop_domain}")
            welcomed = await self._send_welcome(shop_domain, reactivated)
            return SubscribeResult(
                status=SubscribeStatus.REACTIVATED,
                subscriber=reactivated,
                message=f"Resubscribed to {sub_type.value} updates",
                welcome_email_sent=welcomed,
            )

        subscribers.append(candidate)
        await self.repository.save_subscribers(shop_domain, subscribers)
        logger.info(f"New {sub_type.value} subscriber {candidate.email} for {shop_domain}")
        welcomed = await self._send_welcome(shop_domain, candidate)
        return SubscribeResult(
            status=SubscribeStatus.SUBSCRIBED,
            subscriber=candidate,
            message=f"Successfully subscribed to {sub_type.value} updates",
            welcome_email_sent=welcomed,
        )

    async def unsubscribe(
        self,
        shop_domain: str,
        email: str,
        subscription_type: Union[str, SubscriptionType] = SubscriptionType.FESTIVAL,
    ) -> SubscribeResult:
        sub_type = parse_subscription_type(subscription_type)
        normalized = email.strip().lower()
        subscribers = await self.repository.get_subscribers(shop_domain)

        for index, existing in enumerate(subscribers):
            if existing.email != normalized or existing.subscription_type != sub_type:
                continue
            if not existing.is_active:
                return SubscribeResult(
                    status=SubscribeStatus.UNSUBSCRIBED,
                    subscriber=existing,
                    message="Already unsubscribed",
                )
            subscribers[index] = existing.model_copy(
                update={"is_active": False, "unsubscribed_at": self.clock()}
            )
            await self.repository.save_subscribers(shop_domain, subscribers)
            logger.info(f"Unsubscribed {normalized} from {sub_type.value} updates for {shop_domain}")
            return SubscribeResult(
                status=SubscribeStatus.UNSUBSCRIBED,
                subscriber=subscribers[index],
                message=f"Unsubscribed from {sub_type.value} updates",
            )

        return SubscribeResult(status=SubscribeStatus.NOT_FOUND, message="Subscriber not found")

    async def list_subscribers(
        self,
        shop_domain: str,
        subscription_type: Optional[Union[str, SubscriptionType]] = None,
        active_only: bool = True,
    ) -> List[Subscriber]:
        sub_type = parse_subscription_type(subscription_type) if subscription_type else None
        return [
            s for s in await self.repository.get_subscribers(shop_domain)
            if (not active_only or s.is_active)
            and (sub_type is None or s.subscription_type == sub_type)
        ]

    async def _send_welcome(self, shop_domain: str, subscriber: Subscriber) -> bool:
        """Best-effort welcome email; never fails the subscription"""
        if self.mail_provider is None:
            return False
        try:
            sender = await self.mail_provider.get_sender(shop_domain)
            if sender is None:
                logger.info(f"Shop email not configured for {shop_domain}, no welcome email")
                return False

            config = await self.repository.get_merchant_config(shop_domain)
            campaign = None
            if subscriber.subscription_type == SubscriptionType.FESTIVAL:
                campaign = find_active(await self.repository.get_campaigns(shop_domain), self.clock())

            await sender.send(MailMessage(
                from_email=config.email.from_email,
                from_name=config.email.from_name or config.display_name,
                to=subscriber.email,
                subject=welcome_subject(config.display_name, subscriber.subscription_type),
                html=render_welcome_email(config.display_name, subscriber.subscription_type, campaign),
            ))
            return True
        except Exception as e:
            logger.warning(f"Welcome email to {subscriber.email} failed: {e}")
            return False
