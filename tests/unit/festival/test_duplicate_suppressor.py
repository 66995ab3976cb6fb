"""
Unit Tests for Duplicate Suppression
"""

from datetime import timedelta

import pytest

from microservices.festival_service.duplicate_suppressor import (
    campaign_identity_key,
    dedupe,
    find_near_duplicate,
    is_near_duplicate,
)
from tests.contracts.festival.data_contract import utc

pytestmark = pytest.mark.unit

NOW = utc(2025, 10, 2, 12)


class TestDedupe:
    """Stored uniqueness by offer, dates and name"""

    def test_identity_key(self, factory):
        campaign = factory.make_campaign()
        assert campaign_identity_key(campaign) == "50% OFF_2025-01-20_2025-01-27_Festival of Lights"

    def test_keeps_first_occurrence(self, factory):
        first = factory.make_campaign()
        copy = factory.make_campaign()
        other = factory.make_campaign(offer="10% OFF")

        result = dedupe([first, other, copy])

        assert [c.campaign_id for c in result] == [first.campaign_id, other.campaign_id]

    def test_idempotent(self, factory):
        campaigns = [factory.make_campaign(), factory.make_campaign(), factory.make_campaign(offer="5% OFF")]
        once = dedupe(campaigns)
        assert dedupe(once) == once

    def test_time_of_day_does_not_matter(self, factory):
        morning = factory.make_campaign(start_date=utc(2025, 1, 20, 8))
        evening = factory.make_campaign(start_date=utc(2025, 1, 20, 20))
        assert len(dedupe([morning, evening])) == 1


class TestNearDuplicate:
    """Creation guard"""

    def test_same_offer_blocks(self, factory):
        existing = factory.make_campaign(offer="50% OFF")
        found = find_near_duplicate([existing], "50% OFF", "2025-11-01", "2025-11-05", NOW)
        assert found is existing

    def test_same_dates_block(self, factory):
        existing = factory.make_campaign(start_date="2025-11-01", end_date="2025-11-05")
        assert is_near_duplicate([existing], "30% OFF", "2025-11-01", "2025-11-05", NOW)

    def test_same_start_only_does_not_block(self, factory):
        existing = factory.make_campaign(start_date="2025-11-01", end_date="2025-11-05")
        assert not is_near_duplicate([existing], "30% OFF", "2025-11-01", "2025-11-09", NOW)

    def test_recent_creation_blocks(self, factory):
        existing = factory.make_campaign(created_at=NOW - timedelta(minutes=3))
        assert is_near_duplicate([existing], "30% OFF", "2025-11-01", "2025-11-05", NOW)

    def test_window_is_exclusive(self, factory):
        existing = factory.make_campaign(created_at=NOW - timedelta(minutes=10))
        assert not is_near_duplicate([existing], "30% OFF", "2025-11-01", "2025-11-05", NOW)

    def test_custom_window(self, factory):
        existing = factory.make_campaign(created_at=NOW - timedelta(minutes=20))
        assert is_near_duplicate(
            [existing], "30% OFF", "2025-11-01", "2025-11-05", NOW, window_minutes=30
        )

    def test_unrelated_campaign_does_not_block(self, factory):
        existing = factory.make_campaign()
        assert find_near_duplicate([existing], "30% OFF", "2025-11-01", "2025-11-05", NOW) is None

    def test_infinite_request_skips_offer_and_dates(self, factory):
        existing = factory.make_campaign(offer="50% OFF", start_date="2025-11-01", end_date="2025-11-08")
        assert not is_near_duplicate(
            [existing], "50% OFF", "2025-11-01", None, NOW, is_infinite=True
        )

    def test_infinite_request_keeps_recent_guard(self, factory):
        existing = factory.make_campaign(created_at=NOW - timedelta(minutes=1))
        assert is_near_duplicate([existing], "30% OFF", "2025-11-01", None, NOW, is_infinite=True)
