"""
Festival Service - Business logic layer

Campaign creation, persistence, activation sweeps, infinite-campaign
resets, duplicate cleanup, blog newsletters and merchant mail settings.

Every write that adds or updates campaigns is followed by an activation
check, so a campaign that is already running gets its newsletter without
waiting for the hourly sweep.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .activation import find_active, find_needing_notification, reset_newsletter_flags
from .campaign_synthesizer import CampaignSynthesizer
from .duplicate_suppressor import DUPLICATE_WINDOW_MINUTES, dedupe, find_near_duplicate
from .festival_repository import FestivalRepository
from .models import (
    BlogPost,
    Campaign,
    CreateCampaignResult,
    CreateStatus,
    DispatchResult,
    EmailSettings,
    EmailSettingsUpdate,
    MerchantConfig,
    PopupSettings,
    utc_now,
)
from .newsletter_dispatcher import NewsletterDispatcher
from .protocols import CredentialCipherProtocol

logger = logging.getLogger(__name__)

NEWSLETTER_RESET_DAYS = 7


class FestivalService:
    """Festival campaign lifecycle operations"""

    def __init__(
        self,
        repository: FestivalRepository,
        synthesizer: CampaignSynthesizer,
        dispatcher: NewsletterDispatcher,
        cipher: Optional[CredentialCipherProtocol] = None,
        clock: Callable[[], datetime] = utc_now,
        duplicate_window_minutes: int = DUPLICATE_WINDOW_MINUTES,
        newsletter_reset_days: int = NEWSLETTER_RESET_DAYS,
    ):
        self.repository = repository
        self.synthesizer = synthesizer
        self.dispatcher = dispatcher
        self.cipher = cipher
        self.clock = clock
        self.duplicate_window_minutes = duplicate_window_minutes
        self.newsletter_reset_days = newsletter_reset_days

    # ====================
    # Campaign writes
    # ====================

    async def create_campaign(
        self,
        shop_domain: str,
        offer: str,
        start_date,
        end_date=None,
        *,
        text_color: Optional[str] = None,
        is_infinite: bool = False,
        original_start_date=None,
    ) -> CreateCampaignResult:
        """
        Synthesize and store a campaign unless it would duplicate an existing one.

        Args:
            shop_domain: Shop domain
            offer: Merchant offer text, kept verbatim
            start_date: First day
            end_date: Last day; omitted for rolling campaigns
            text_color: Text colour used when no image palette is available
            is_infinite: Rolling campaign
            original_start_date: First start of a rolling campaign being re-dated

        Returns:
            CreateCampaignResult; a duplicate is a normal outcome
        """
        infinite = is_infinite or not end_date
        end_date = end_date or None

        blocked = self._duplicate_result(
            shop_domain,
            await self.repository.get_campaigns(shop_domain),
            offer, start_date, end_date, infinite,
        )
        if blocked is not None:
            return blocked

        campaign = await self.synthesizer.synthesize(
            shop_domain,
            offer,
            start_date,
            end_date,
            text_color=text_color,
            is_infinite=infinite,
            original_start_date=original_start_date,
        )

        # Synthesis awaits several collaborators; a concurrent request may have stored a match meanwhile
        current = await self.repository.get_campaigns(shop_domain)
        blocked = self._duplicate_result(shop_domain, current, offer, start_date, end_date, infinite)
        if blocked is not None:
            return blocked

        dispatches = await self.save_campaigns(shop_domain, current + [campaign])

        message = (
            "Infinite rolling festival generated and saved successfully!"
            if campaign.is_infinite
            else "Festival generated and saved successfully!"
        )
        return CreateCampaignResult(
            status=CreateStatus.CREATED,
            campaign=campaign,
            message=message,
            dispatches=[result for _, result in dispatches],
        )

    def _duplicate_result(
        self,
        shop_domain: str,
        existing: List[Campaign],
        offer: str,
        start_date,
        end_date,
        infinite: bool,
    ) -> Optional[CreateCampaignResult]:
        blocker = find_near_duplicate(
            existing,
            offer,
            start_date,
            end_date,
            self.clock(),
            window_minutes=self.duplicate_window_minutes,
            is_infinite=infinite,
        )
        if blocker is None:
            return None
        logger.info(
            f"Duplicate campaign request for {shop_domain} blocked by {blocker.name!r} ({blocker.campaign_id})"
        )
        return CreateCampaignResult(
            status=CreateStatus.DUPLICATE,
            campaign=blocker,
            message="Festival already exists",
        )

    async def save_campaigns(
        self, shop_domain: str, campaigns: List[Campaign]
    ) -> List[Tuple[str, DispatchResult]]:
        """Dedupe and store a shop's campaign list, then notify anything newly active"""
        unique = dedupe(campaigns)
        if len(unique) != len(campaigns):
            logger.info(f"Dropped {len(campaigns) - len(unique)} duplicate campaigns for {shop_domain}")
        await self.repository.save_campaigns(shop_domain, unique)
        return await self.notify_active_campaigns(shop_domain)

    async def remove_campaign(self, shop_domain: str, campaign_id: str) -> bool:
        campaigns = await self.repository.get_campaigns(shop_domain)
        remaining = [c for c in campaigns if c.campaign_id != campaign_id]
        if len(remaining) == len(campaigns):
            return False
        await self.repository.save_campaigns(shop_domain, remaining)
        logger.info(f"Removed campaign {campaign_id} for {shop_domain}")
        return True

    async def cleanup_duplicates(self, shop_domain: str) -> int:
        """
        Remove stored duplicates; safe to run repeatedly.

        Returns:
            Number of campaigns removed
        """
        campaigns = await self.repository.get_campaigns(shop_domain)
        unique = dedupe(campaigns)
        removed = len(campaigns) - len(unique)
        if removed:
            await self.repository.save_campaigns(shop_domain, unique)
            logger.info(f"Cleaned up {removed} duplicate campaigns for {shop_domain}")
        return removed

    # ====================
    # Activation
    # ====================

    async def notify_active_campaigns(
        self, shop_domain: str, now: Optional[datetime] = None
    ) -> List[Tuple[str, DispatchResult]]:
        """Dispatch newsletters for active campaigns that have not been notified"""
        now = now or self.clock()
        campaigns = await self.repository.get_campaigns(shop_domain)
        due = find_needing_notification(campaigns, now, self.newsletter_reset_days)
        if due:
            logger.info(f"Shop {shop_domain}: {len(due)} campaign(s) need a newsletter")

        results = []
        for campaign in due:
            try:
                result = await self.dispatcher.dispatch(shop_domain, campaign)
            except Exception as e:
                logger.error(f"Error sending newsletter for {campaign.name!r} ({shop_domain}): {e}")
                continue
            if not result.success:
                logger.warning(f"Newsletter for {campaign.name!r} not sent: {result.message}")
            results.append((campaign.campaign_id, result))
        return results

    async def send_blog_newsletter(self, shop_domain: str, title: str, content: str) -> DispatchResult:
        """Mail a blog post to the shop's blog subscribers"""
        return await self.dispatcher.dispatch_blog(shop_domain, BlogPost(title=title, content=content), self.clock())

    async def run_activation_sweep(self) -> int:
        """
        Hourly check across every shop for campaigns that became active.

        Returns:
            Number of dispatches attempted
        """
        logger.info("Checking for newly active festivals...")
        attempted = 0
        for shop_domain in await self.repository.list_shops():
            try:
                attempted += len(await self.notify_active_campaigns(shop_domain))
            except Exception as e:
                logger.error(f"Activation sweep failed for {shop_domain}: {e}")
        logger.info(f"Completed activation sweep, {attempted} dispatch(es)")
        return attempted

    async def reset_infinite_campaigns(self, shop_domain: str, now: Optional[datetime] = None) -> List[str]:
        """Clear the sent flag on rolling campaigns due for another newsletter"""
        now = now or self.clock()
        campaigns = await self.repository.get_campaigns(shop_domain)
        updated, reset_ids = reset_newsletter_flags(campaigns, now, self.newsletter_reset_days)
        if reset_ids:
            await self.repository.save_campaigns(shop_domain, updated)
            logger.info(f"Reset newsletter flags for {len(reset_ids)} rolling campaign(s) in {shop_domain}")
        return reset_ids

    async def run_infinite_reset(self) -> int:
        """
        Daily reset of rolling campaigns across every shop.

        Returns:
            Number of campaigns reset
        """
        logger.info("Checking for rolling festivals due for another newsletter...")
        total = 0
        for shop_domain in await self.repository.list_shops():
            try:
                total += len(await self.reset_infinite_campaigns(shop_domain))
            except Exception as e:
                logger.error(f"Infinite reset failed for {shop_domain}: {e}")
        return total

    async def get_current_campaign(
        self, shop_domain: str, now: Optional[datetime] = None
    ) -> Optional[Campaign]:
        """Campaign to show in the storefront popup, None when the popup is off"""
        config = await self.repository.get_merchant_config(shop_domain)
        if not config.popup.is_active:
            return None
        return find_active(await self.repository.get_campaigns(shop_domain), now or self.clock())

    # ====================
    # Merchant configuration
    # ====================

    async def get_merchant_config(self, shop_domain: str) -> MerchantConfig:
        return await self.repository.get_merchant_config(shop_domain)

    async def save_popup_settings(self, shop_domain: str, popup: PopupSettings) -> MerchantConfig:
        config = await self.repository.get_merchant_config(shop_domain)
        config = config.model_copy(update={"popup": popup})
        await self.repository.save_merchant_config(config)
        return config

    async def save_mail_settings(self, shop_domain: str, update: EmailSettingsUpdate) -> MerchantConfig:
        """Store mail settings with the credential encrypted"""
        if self.cipher is None:
            raise RuntimeError("Credential cipher not configured")

        config = await self.repository.get_merchant_config(shop_domain)
        email = EmailSettings(
            enabled=True,
            provider=update.provider,
            from_email=update.from_email,
            from_name=update.from_name,
            encrypted_credential=self.cipher.encrypt(update.credential),
        )
        config = config.model_copy(update={"email": email})
        await self.repository.save_merchant_config(config)
        logger.info(f"Saved {update.provider.value} mail settings for {shop_domain}")
        return config

    async def disable_mail(self, shop_domain: str) -> MerchantConfig:
        config = await self.repository.get_merchant_config(shop_domain)
        email = config.email.model_copy(update={"enabled": False})
        config = config.model_copy(update={"email": email})
        await self.repository.save_merchant_config(config)
        return config
