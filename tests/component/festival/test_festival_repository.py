"""
Component Tests for the Festival Repository and Key/Value Stores
"""

import json
import os

import pytest

from microservices.festival_service.festival_repository import (
    CAMPAIGNS_KEY,
    MERCHANT_CONFIG_KEY,
    FestivalRepository,
)
from microservices.festival_service.key_value_store import FileKeyValueStore, InMemoryKeyValueStore
from microservices.festival_service.models import NewsletterRecord
from tests.contracts.festival.data_contract import utc

from .mocks import SHOP

pytestmark = pytest.mark.component


class TestCampaignStorage:

    @pytest.mark.asyncio
    async def test_round_trip_preserves_order(self, repository, factory):
        campaigns = [
            factory.make_campaign(),
            factory.make_campaign(name="Holi Fest", offer="10% OFF", discount_code="HOLI10"),
        ]

        await repository.save_campaigns(SHOP, campaigns)

        assert await repository.get_campaigns(SHOP) == campaigns

    @pytest.mark.asyncio
    async def test_unknown_shop_is_empty(self, repository):
        assert await repository.get_campaigns("nobody.test") == []

    @pytest.mark.asyncio
    async def test_legacy_records_get_persistent_ids(self, repository, store, factory):
        # Given: camelCase records written before campaigns had ids
        await store.set(SHOP, CAMPAIGNS_KEY, [factory.make_legacy_campaign_record()])

        # When
        first = await repository.get_campaigns(SHOP)
        second = await repository.get_campaigns(SHOP)

        # Then: the assigned id was written back
        assert first[0].campaign_id == second[0].campaign_id
        raw = await store.get(SHOP, CAMPAIGNS_KEY)
        assert raw[0]["campaign_id"] == first[0].campaign_id
        assert raw[0]["discount_code"] == "FELI50"

    @pytest.mark.asyncio
    async def test_invalid_records_skipped(self, repository, store, factory):
        good = factory.make_campaign()
        await store.set(SHOP, CAMPAIGNS_KEY, [{"name": "Broken", "campaign_id": "fst_x"}, good.to_record()])

        assert await repository.get_campaigns(SHOP) == [good]


class TestMarkNewsletterSent:

    @pytest.mark.asyncio
    async def test_marks_by_id(self, repository, factory):
        campaign = factory.make_campaign()
        await repository.save_campaigns(SHOP, [campaign])

        assert await repository.mark_newsletter_sent(SHOP, campaign, utc(2025, 1, 21)) is True

        stored = (await repository.get_campaigns(SHOP))[0]
        assert stored.auto_newsletter_sent is True
        assert stored.newsletter_sent_at == utc(2025, 1, 21)

    @pytest.mark.asyncio
    async def test_falls_back_to_name_and_code(self, repository, factory):
        stored = factory.make_campaign()
        await repository.save_campaigns(SHOP, [stored])
        same_campaign_other_id = factory.make_campaign()

        assert await repository.mark_newsletter_sent(SHOP, same_campaign_other_id) is True
        assert (await repository.get_campaigns(SHOP))[0].auto_newsletter_sent is True

    @pytest.mark.asyncio
    async def test_missing_campaign(self, repository, factory):
        await repository.save_campaigns(SHOP, [factory.make_campaign()])
        other = factory.make_campaign(name="Holi Fest", discount_code="HOLI10")

        assert await repository.mark_newsletter_sent(SHOP, other) is False

    @pytest.mark.asyncio
    async def test_keeps_concurrent_additions(self, repository, factory):
        # Given: a campaign loaded, then another added by a second writer
        campaign = factory.make_campaign()
        await repository.save_campaigns(SHOP, [campaign])
        added = factory.make_campaign(name="Holi Fest", offer="10% OFF", discount_code="HOLI10")
        await repository.save_campaigns(SHOP, [campaign, added])

        # When
        await repository.mark_newsletter_sent(SHOP, campaign)

        # Then
        stored = await repository.get_campaigns(SHOP)
        assert [c.campaign_id for c in stored] == [campaign.campaign_id, added.campaign_id]
        assert stored[1].auto_newsletter_sent is False


class TestOtherDocuments:

    @pytest.mark.asyncio
    async def test_merchant_config_defaults(self, repository):
        config = await repository.get_merchant_config(SHOP)

        assert config.shop_domain == SHOP
        assert config.popup.is_active is True
        assert config.email.enabled is False

    @pytest.mark.asyncio
    async def test_invalid_merchant_config_uses_defaults(self, repository, store):
        await store.set(SHOP, MERCHANT_CONFIG_KEY, {"popup": {"show_delay_ms": -5}})

        config = await repository.get_merchant_config(SHOP)

        assert config.popup.show_delay_ms == 3000

    @pytest.mark.asyncio
    async def test_merchant_config_round_trip(self, repository, factory):
        config = factory.make_merchant_config(popup_active=False, store_name="Acme")

        await repository.save_merchant_config(config)

        assert await repository.get_merchant_config(SHOP) == config

    @pytest.mark.asyncio
    async def test_append_newsletter(self, repository):
        for title in ("First", "Second"):
            await repository.append_newsletter(
                SHOP, NewsletterRecord(shop_domain=SHOP, title=title, content="<p>x</p>")
            )

        assert [r.title for r in await repository.get_newsletters(SHOP)] == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_subscribers_round_trip(self, repository, factory):
        subscribers = factory.make_subscribers(2)

        await repository.save_subscribers(SHOP, subscribers)

        assert await repository.get_subscribers(SHOP) == subscribers


class TestInMemoryStore:

    @pytest.mark.asyncio
    async def test_values_are_copied(self):
        store = InMemoryKeyValueStore()
        value = {"items": [1, 2]}

        await store.set(SHOP, "doc", value)
        value["items"].append(3)
        loaded = await store.get(SHOP, "doc")
        loaded["items"].append(4)

        assert await store.get(SHOP, "doc") == {"items": [1, 2]}

    @pytest.mark.asyncio
    async def test_list_shops(self):
        store = InMemoryKeyValueStore()
        await store.set("b.test", "doc", 1)
        await store.set("a.test", "doc", 1)

        assert await store.list_shops() == ["a.test", "b.test"]
        assert await store.get("c.test", "doc") is None


class TestFileStore:

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        store = FileKeyValueStore(str(tmp_path))

        await store.set(SHOP, "campaigns", [{"name": "Diwali Düsseldorf"}])

        assert await store.get(SHOP, "campaigns") == [{"name": "Diwali Düsseldorf"}]
        assert (tmp_path / SHOP / "campaigns.json").exists()

    @pytest.mark.asyncio
    async def test_missing_key(self, tmp_path):
        store = FileKeyValueStore(str(tmp_path))

        assert await store.get(SHOP, "campaigns") is None
        assert await store.list_shops() == []

    @pytest.mark.asyncio
    async def test_shop_names_quoted(self, tmp_path):
        store = FileKeyValueStore(str(tmp_path))

        await store.set("../escape", "doc", {"ok": True})

        assert os.listdir(tmp_path) == ["..%2Fescape"]
        assert await store.list_shops() == ["../escape"]
        assert await store.get("../escape", "doc") == {"ok": True}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("shop_domain", ["", ".", ".."])
    async def test_rejects_shop_names_outside_data_dir(self, tmp_path, shop_domain):
        data_dir = tmp_path / "data"
        store = FileKeyValueStore(str(data_dir))

        with pytest.raises(ValueError):
            await store.set(shop_domain, "campaigns", [{"ok": True}])
        with pytest.raises(ValueError):
            await store.get(shop_domain, "campaigns")

        assert not (tmp_path / "campaigns.json").exists()
        assert os.listdir(tmp_path) == []

    @pytest.mark.asyncio
    async def test_overwrite_leaves_no_temp_files(self, tmp_path):
        store = FileKeyValueStore(str(tmp_path))

        await store.set(SHOP, "doc", {"v": 1})
        await store.set(SHOP, "doc", {"v": 2})

        assert os.listdir(tmp_path / SHOP) == ["doc.json"]
        assert await store.get(SHOP, "doc") == {"v": 2}

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, tmp_path):
        store = FileKeyValueStore(str(tmp_path))
        (tmp_path / SHOP).mkdir()
        (tmp_path / SHOP / "doc.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(json.JSONDecodeError):
            await store.get(SHOP, "doc")

    @pytest.mark.asyncio
    async def test_repository_over_file_store(self, tmp_path, factory):
        repository = FestivalRepository(FileKeyValueStore(str(tmp_path)))
        campaign = factory.make_campaign()

        await repository.save_campaigns(SHOP, [campaign])

        reopened = FestivalRepository(FileKeyValueStore(str(tmp_path)))
        assert await reopened.get_campaigns(SHOP) == [campaign]
        assert await reopened.list_shops() == [SHOP]
