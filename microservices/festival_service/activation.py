"""
Campaign activation detection

Campaign windows are whole days: start, end and "now" are truncated to
YYYY-MM-DD before comparison, so a campaign ending on the 27th is active
until the end of that day regardless of stored time components.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple, Union

from .models import Campaign, as_utc

NEWSLETTER_RESET_DAYS = 7


def day_key(value: Union[str, date, datetime]) -> str:
    """YYYY-MM-DD form of a date, datetime or ISO string"""
    if isinstance(value, datetime):
        return as_utc(value).date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def is_active(campaign: Campaign, now: Union[date, datetime]) -> bool:
    today = day_key(now)
    return day_key(campaign.start_date) <= today <= day_key(campaign.end_date)


def find_active(campaigns: Iterable[Campaign], now: Union[date, datetime]) -> Optional[Campaign]:
    """First campaign in list order whose window contains now"""
    for campaign in campaigns:
        if is_active(campaign, now):
            return campaign
    return None


def has_required_fields(campaign: Campaign) -> bool:
    return bool(campaign.name and campaign.offer and campaign.discount_code)


def needs_newsletter_reset(
    campaign: Campaign,
    now: datetime,
    reset_days: int = NEWSLETTER_RESET_DAYS,
) -> bool:
    """
    Infinite campaign, already notified, active again and the last send is over reset_days old.

    "Again" means the current period began after the last send; a period
    that was never re-dated keeps its single newsletter even on its final day.
    """
    if not (campaign.is_infinite and campaign.auto_newsletter_sent and campaign.newsletter_sent_at):
        return False
    if not is_active(campaign, now):
        return False
    period_start = campaign.current_period_start or campaign.start_date
    if day_key(period_start) <= day_key(campaign.newsletter_sent_at):
        return False
    return as_utc(now) - campaign.newsletter_sent_at > timedelta(days=reset_days)


def find_needing_notification(
    campaigns: Iterable[Campaign],
    now: datetime,
    reset_days: int = NEWSLETTER_RESET_DAYS,
) -> List[Campaign]:
    """Active, complete campaigns not yet notified or due for an infinite re-send"""
    due = []
    for campaign in campaigns:
        if not is_active(campaign, now) or not has_required_fields(campaign):
            continue
        if not campaign.auto_newsletter_sent or needs_newsletter_reset(campaign, now, reset_days):
            due.append(campaign)
    return due


def reset_newsletter_flags(
    campaigns: Iterable[Campaign],
    now: datetime,
    reset_days: int = NEWSLETTER_RESET_DAYS,
) -> Tuple[List[Campaign], List[str]]:
    """
    Clear the sent flag on infinite campaigns due for another cycle.

    Returns:
        (campaigns with resets applied, ids of the reset campaigns)
    """
    updated = []
    reset_ids = []
    for campaign in campaigns:
        if needs_newsletter_reset(campaign, now, reset_days):
            campaign = campaign.model_copy(
                update={"auto_newsletter_sent": False, "newsletter_sent_at": None}
            )
            reset_ids.append(campaign.campaign_id)
        updated.append(campaign)
    return updated, reset_ids
