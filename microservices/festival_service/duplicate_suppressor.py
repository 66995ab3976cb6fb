"""
Duplicate suppression

Two rules:

- stored uniqueness: offer + start + end + name, first occurrence wins
- creation guard: a new request is refused when any existing campaign has
  the same offer, the same start and end day, or was created within the
  last few minutes
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from .activation import day_key
from .models import Campaign, as_utc

logger = logging.getLogger(__name__)

DUPLICATE_WINDOW_MINUTES = 10


def campaign_identity_key(campaign: Campaign) -> str:
    return (
        f"{campaign.offer}_{day_key(campaign.start_date)}_"
        f"{day_key(campaign.end_date)}_{campaign.name}"
    )


def dedupe(campaigns: Iterable[Campaign]) -> List[Campaign]:
    """Drop campaigns whose identity key was already seen"""
    seen = set()
    unique = []
    for campaign in campaigns:
        key = campaign_identity_key(campaign)
        if key in seen:
            logger.info(f"Dropping duplicate campaign {campaign.name!r} ({key})")
            continue
        seen.add(key)
        unique.append(campaign)
    return unique


def find_near_duplicate(
    existing: Iterable[Campaign],
    offer: str,
    start_date,
    end_date,
    now: datetime,
    window_minutes: int = DUPLICATE_WINDOW_MINUTES,
    is_infinite: bool = False,
) -> Optional[Campaign]:
    """
    First existing campaign that blocks a new creation request, if any.

    Infinite requests are rolling and skip the offer and date checks; the
    recent-creation guard applies to every request.
    """
    start = day_key(as_utc(start_date))
    end = day_key(as_utc(end_date)) if end_date else None
    cutoff = as_utc(now) - timedelta(minutes=window_minutes)

    for campaign in existing:
        if not is_infinite:
            if campaign.offer == offer:
                return campaign
            if end and day_key(campaign.start_date) == start and day_key(campaign.end_date) == end:
                return campaign
        if campaign.created_at > cutoff:
            return campaign
    return None


def is_near_duplicate(
    existing: Iterable[Campaign],
    offer: str,
    start_date,
    end_date,
    now: datetime,
    window_minutes: int = DUPLICATE_WINDOW_MINUTES,
    is_infinite: bool = False,
) -> bool:
    return find_near_duplicate(
        existing, offer, start_date, end_date, now, window_minutes, is_infinite
    ) is not None
