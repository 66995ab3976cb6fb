"""
Newsletter Dispatcher

Sends an activated campaign's newsletter to the shop's festival
subscribers, and merchant blog posts to the shop's blog subscribers.
Content generation, individual sends and the history record may each fail
without aborting the dispatch; the caller always receives a DispatchResult
describing what happened.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from core.config import ModelConfig

from .activation import find_active
from .festival_repository import FestivalRepository
from .models import (
    BlogPost,
    Campaign,
    DispatchResult,
    DispatchStatus,
    MailMessage,
    NewsletterContent,
    NewsletterRecord,
    RecipientFailure,
    Subscriber,
    SubscriptionType,
    utc_now,
)
from .newsletter_templates import (
    blog_title,
    fallback_content,
    newsletter_prompt,
    parse_newsletter_reply,
    render_blog_email,
    render_festival_email,
    slugify,
    unparsed_reply_content,
)
from .protocols import (
    MailSenderProtocol,
    MailSenderProviderProtocol,
    MalformedCollaboratorResponseError,
    TextGeneratorProtocol,
)

logger = logging.getLogger(__name__)


def festival_audience(subscribers: List[Subscriber]) -> List[Subscriber]:
    """Active festival subscribers who opted into festival mail"""
    return [
        s for s in subscribers
        if s.is_active
        and s.subscription_type == SubscriptionType.FESTIVAL
        and s.preferences is not None
        and s.preferences.festivals
    ]


def blog_audience(subscribers: List[Subscriber]) -> List[Subscriber]:
    """Active blog subscribers who opted into blog updates"""
    return [
        s for s in subscribers
        if s.is_active
        and s.subscription_type == SubscriptionType.BLOG
        and s.preferences is not None
        and s.preferences.blog_updates
    ]


class NewsletterDispatcher:
    """Generates, sends and records festival and blog newsletters"""

    def __init__(
        self,
        repository: FestivalRepository,
        mail_provider: MailSenderProviderProtocol,
        text_generator: Optional[TextGeneratorProtocol] = None,
        model_config: Optional[ModelConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.mail_provider = mail_provider
        self.text_generator = text_generator
        self.model_config = model_config or ModelConfig()
        self.clock = clock

    async def generate_content(self, campaign: Campaign) -> Tuple[NewsletterContent, bool]:
        """
        Newsletter copy for a campaign.

        Returns:
            (content, used_fallback)
        """
        if self.text_generator is None:
            return fallback_content(campaign), True

        try:
            reply = await self.text_generator.generate(
                newsletter_prompt(campaign),
                max_tokens=self.model_config.newsletter_max_tokens,
                temperature=self.model_config.newsletter_temperature,
            )
        except Exception as e:
            logger.warning(f"Newsletter generation failed for {campaign.name!r}: {e}")
            return fallback_content(campaign), True

        try:
            return parse_newsletter_reply(reply), False
        except MalformedCollaboratorResponseError as e:
            logger.warning(f"Unusable newsletter reply for {campaign.name!r}: {e}")
            return unparsed_reply_content(campaign), True

    async def dispatch(
        self,
        shop_domain: str,
        campaign: Campaign,
        mark_sent: bool = True,
    ) -> DispatchResult:
        """
        Send a campaign newsletter to the shop's festival audience.

        Args:
            shop_domain: Shop whose subscribers receive the newsletter
            campaign: Activated campaign
            mark_sent: Set the campaign's sent flag in storage on success

        Returns:
            DispatchResult with per-recipient failures
        """
        content, used_fallback = await self.generate_content(campaign)

        audience = festival_audience(await self.repository.get_subscribers(shop_domain))
        logger.info(f"Found {len(audience)} festival subscribers for {shop_domain}")

        if not audience:
            result = DispatchResult(
                success=True,
                status=DispatchStatus.NO_SUBSCRIBERS,
                message="No subscribers to send to",
                title=content.title,
                used_fallback_content=used_fallback,
            )
            await self._finish(shop_domain, campaign, result, mark_sent)
            return result

        sender = await self.mail_provider.get_sender(shop_domain)
        if sender is None:
            logger.warning(f"Shop email not configured for {shop_domain}, skipping newsletter")
            return DispatchResult(
                success=False,
                status=DispatchStatus.NOT_CONFIGURED,
                message="Shop email not configured",
                title=content.title,
                used_fallback_content=used_fallback,
            )

        html = render_festival_email(campaign, content)
        result = await self._send_all(
            shop_domain, sender, audience, content.title, html, label="Festival newsletter"
        )
        result.used_fallback_content = used_fallback
        logger.info(f"{result.message} ({shop_domain}, {campaign.name!r})")

        await self._record(
            shop_domain,
            result,
            NewsletterRecord(
                shop_domain=shop_domain,
                campaign_id=campaign.campaign_id,
                title=f"{campaign.name} Auto-Newsletter",
                content=content.content,
                tags=["auto-generated", "festival", slugify(campaign.name)],
            ),
        )
        await self._finish(shop_domain, campaign, result, mark_sent)
        return result

    async def dispatch_blog(
        self,
        shop_domain: str,
        post: BlogPost,
        now: Optional[datetime] = None,
    ) -> DispatchResult:
        """
        Send a merchant blog post to the shop's blog audience.

        The subject names the running festival, and the email carries its
        offer, when a campaign is active.

        Args:
            shop_domain: Shop whose subscribers receive the post
            post: Blog post title and body
            now: Time used to find the running campaign

        Returns:
            DispatchResult with per-recipient failures
        """
        campaign = find_active(await self.repository.get_campaigns(shop_domain), now or self.clock())
        title = blog_title(post.content, campaign)

        audience = blog_audience(await self.repository.get_subscribers(shop_domain))
        logger.info(f"Found {len(audience)} blog subscribers for {shop_domain}")

        if not audience:
            return DispatchResult(
                success=True,
                status=DispatchStatus.NO_SUBSCRIBERS,
                message="No subscribers to send to",
                title=title,
            )

        sender = await self.mail_provider.get_sender(shop_domain)
        if sender is None:
            logger.warning(f"Shop email not configured for {shop_domain}, skipping blog newsletter")
            return DispatchResult(
                success=False,
                status=DispatchStatus.NOT_CONFIGURED,
                message="Shop email not configured",
                title=title,
            )

        html = render_blog_email(title, post, campaign)
        result = await self._send_all(shop_domain, sender, audience, title, html, label="Blog newsletter")
        logger.info(f"{result.message} ({shop_domain}, {post.title!r})")

        tags = ["blog"]
        if campaign is not None:
            tags += ["festival", slugify(campaign.name)]
        await self._record(
            shop_domain,
            result,
            NewsletterRecord(
                shop_domain=shop_domain,
                campaign_id=campaign.campaign_id if campaign else None,
                title=post.title,
                content=post.content,
                tags=tags,
            ),
        )
        return result

    async def _send_all(
        self,
        shop_domain: str,
        sender: MailSenderProtocol,
        audience: List[Subscriber],
        subject: str,
        html: str,
        label: str,
    ) -> DispatchResult:
        """Send one rendered email to every recipient concurrently"""
        config = await self.repository.get_merchant_config(shop_domain)
        messages = [
            MailMessage(
                from_email=config.email.from_email,
                from_name=config.email.from_name or config.display_name,
                to=subscriber.email,
                subject=subject,
                html=html,
            )
            for subscriber in audience
        ]

        outcomes = await asyncio.gather(
            *(sender.send(message) for message in messages),
            return_exceptions=True,
        )

        failures = []
        for message, outcome in zip(messages, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Failed to send {label.lower()} to {message.to}: {outcome}")
                failures.append(RecipientFailure(email=message.to, error=str(outcome) or type(outcome).__name__))
        sent = len(messages) - len(failures)

        if not failures:
            status = DispatchStatus.SENT
            summary = f"{label} sent to {sent} subscribers"
        elif sent:
            status = DispatchStatus.PARTIAL
            summary = f"{label} sent to {sent} subscribers, {len(failures)} failed"
        else:
            status = DispatchStatus.FAILED
            summary = f"{label} failed for all {len(failures)} subscribers"

        return DispatchResult(
            success=sent > 0,
            status=status,
            emails_sent=sent,
            emails_failed=len(failures),
            message=summary,
            title=subject,
            failures=failures,
        )

    async def _record(self, shop_domain: str, result: DispatchResult, record: NewsletterRecord) -> None:
        record = record.model_copy(update={
            "published_at": self.clock(),
            "sent_newsletter": result.emails_sent > 0,
            "emails_sent": result.emails_sent,
            "emails_failed": result.emails_failed,
        })
        try:
            await self.repository.append_newsletter(shop_domain, record)
        except Exception as e:
            logger.error(f"Failed to record newsletter for {shop_domain}: {e}")

    async def _finish(
        self,
        shop_domain: str,
        campaign: Campaign,
        result: DispatchResult,
        mark_sent: bool,
    ) -> None:
        if not (mark_sent and result.success):
            return
        try:
            await self.repository.mark_newsletter_sent(shop_domain, campaign, self.clock())
        except Exception as e:
            logger.error(f"Failed to mark newsletter sent for {campaign.campaign_id}: {e}")
