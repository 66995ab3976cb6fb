"""
Festival Service Data Repository

Typed access to the per-shop documents held in a key/value store.
"""

import logging
from datetime import datetime
from typing import List, Optional, Type, TypeVar

from pydantic import ValidationError

from .models import (
    Campaign,
    MerchantConfig,
    NewsletterRecord,
    StoredModel,
    Subscriber,
    utc_now,
)
from .protocols import KeyValueStoreProtocol

logger = logging.getLogger(__name__)

CAMPAIGNS_KEY = "campaigns"
SUBSCRIBERS_KEY = "subscribers"
NEWSLETTERS_KEY = "newsletters"
MERCHANT_CONFIG_KEY = "merchant_config"

M = TypeVar("M", bound=StoredModel)


class FestivalRepository:
    """Festival service data repository over a key/value store"""

    def __init__(self, store: KeyValueStoreProtocol):
        self.store = store

    async def _load_list(self, shop_domain: str, key: str, model: Type[M]) -> List[M]:
        raw = await self.store.get(shop_domain, key) or []
        items = []
        for record in raw:
            try:
                items.append(model.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping invalid {key} record for {shop_domain}: {e}")
        return items

    async def _save_list(self, shop_domain: str, key: str, items: List[StoredModel]) -> None:
        await self.store.set(shop_domain, key, [item.to_record() for item in items])

    async def list_shops(self) -> List[str]:
        return await self.store.list_shops()

    # ====================
    # Campaigns
    # ====================

    async def get_campaigns(self, shop_domain: str) -> List[Campaign]:
        """
        Load a shop's campaigns in stored order.

        Records saved before campaigns carried ids are assigned one here and
        written back so later lookups by id succeed.
        """
        raw = await self.store.get(shop_domain, CAMPAIGNS_KEY) or []
        campaigns = []
        migrated = False
        for record in raw:
            if isinstance(record, dict) and not (record.get("campaign_id") or record.get("campaignId")):
                migrated = True
            try:
                campaigns.append(Campaign.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping invalid campaign record for {shop_domain}: {e}")

        if migrated:
            logger.info(f"Assigned ids to legacy campaigns for {shop_domain}")
            await self.save_campaigns(shop_domain, campaigns)
        return campaigns

    async def save_campaigns(self, shop_domain: str, campaigns: List[Campaign]) -> None:
        await self._save_list(shop_domain, CAMPAIGNS_KEY, campaigns)

    async def mark_newsletter_sent(
        self,
        shop_domain: str,
        campaign: Campaign,
        sent_at: Optional[datetime] = None,
    ) -> bool:
        """
        Set the sent flag on the persisted copy of a campaign.

        Re-reads the stored list first so unrelated concurrent edits are not
        clobbered. Matches by id, then by (name, discount_code) for records
        that predate ids.

        Returns:
            True if a stored campaign was updated
        """
        sent_at = sent_at or utc_now()
        campaigns = await self.get_campaigns(shop_domain)

        index = _find_campaign_index(campaigns, campaign)
        if index is None:
            logger.warning(
                f"Campaign {campaign.campaign_id} ({campaign.name}) no longer stored for {shop_domain}"
            )
            return False

        campaigns[index] = campaigns[index].model_copy(
            update={"auto_newsletter_sent": True, "newsletter_sent_at": sent_at}
        )
        await self.save_campaigns(shop_domain, campaigns)
        return True

    # ====================
    # Subscribers
    # ====================

    async def get_subscribers(self, shop_domain: str) -> List[Subscriber]:
        return await self._load_list(shop_domain, SUBSCRIBERS_KEY, Subscriber)

    async def save_subscribers(self, shop_domain: str, subscribers: List[Subscriber]) -> None:
        await self._save_list(shop_domain, SUBSCRIBERS_KEY, subscribers)

    # ====================
    # Newsletter history
    # ====================

    async def get_newsletters(self, shop_domain: str) -> List[NewsletterRecord]:
        return await self._load_list(shop_domain, NEWSLETTERS_KEY, NewsletterRecord)

    async def append_newsletter(self, shop_domain: str, record: NewsletterRecord) -> None:
        records = await self.get_newsletters(shop_domain)
        records.append(record)
        await self._save_list(shop_domain, NEWSLETTERS_KEY, records)

    # ====================
    # Merchant configuration
    # ====================

    async def get_merchant_config(self, shop_domain: str) -> MerchantConfig:
        raw = await self.store.get(shop_domain, MERCHANT_CONFIG_KEY)
        if not raw:
            return MerchantConfig(shop_domain=shop_domain)
        try:
            return MerchantConfig.model_validate({"shop_domain": shop_domain, **raw})
        except ValidationError as e:
            logger.warning(f"Invalid merchant config for {shop_domain}, using defaults: {e}")
            return MerchantConfig(shop_domain=shop_domain)

    async def save_merchant_config(self, config: MerchantConfig) -> None:
        await self.store.set(config.shop_domain, MERCHANT_CONFIG_KEY, config.to_record())


def _find_campaign_index(campaigns: List[Campaign], target: Campaign) -> Optional[int]:
    for index, stored in enumerate(campaigns):
        if stored.campaign_id == target.campaign_id:
            return index
    for index, stored in enumerate(campaigns):
        if stored.name == target.name and stored.discount_code == target.discount_code:
            return index
    return None
