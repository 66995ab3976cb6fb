"""
Campaign Synthesizer

Builds a complete campaign from a shop, an offer and a date range:
festival name, discount code, colour scheme and background image. Every
external step has a local fallback, so synthesis always produces a
campaign.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from core.config import ModelConfig

from .color_utils import domain_colors, optimal_text_color
from .discount_codes import generate_discount_code
from .festival_calendar import is_specific_festival, resolve_name, seasonal_name
from .models import Campaign, ImagePalette, SiteColors, as_utc, strip_special, utc_now
from .protocols import (
    ColorExtractorProtocol,
    ImageGeneratorProtocol,
    SiteScraperProtocol,
    TextGeneratorProtocol,
)

logger = logging.getLogger(__name__)

INFINITE_PERIOD_DAYS = 7
DEFAULT_TEXT_COLOR = "#FFFFFF"

# Accepted refined-name length, exclusive bounds
MIN_REFINED_NAME = 3
MAX_REFINED_NAME = 50

_LABEL_PREFIXES = ("festival name:", "answer:", "name:", "response:")


class ImageRequestGate:
    """Single-flight admission for image generation; callers never wait"""

    def __init__(self, max_in_flight: int = 1):
        self.max_in_flight = max_in_flight
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def try_acquire(self) -> bool:
        if self._in_flight >= self.max_in_flight:
            return False
        self._in_flight += 1
        return True

    def release(self) -> None:
        self._in_flight = max(0, self._in_flight - 1)

    def reset(self) -> None:
        self._in_flight = 0


def ordinal_date(value: datetime) -> str:
    """October 1st, 2025"""
    day = value.day
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{value:%B} {day}{suffix}, {value.year}"


def clean_refined_name(text: str) -> str:
    """Strip quotes, keep the first line and drop a leading label"""
    cleaned = text.strip().replace('"', "").replace("'", "").split("\n")[0].strip()
    lowered = cleaned.lower()
    for prefix in _LABEL_PREFIXES:
        if lowered.startswith(prefix):
            return cleaned[len(prefix):].strip()
    return cleaned


def image_prompt_for(name: str) -> str:
    return f"{name.lower()} celebration background with decorative elements"


class CampaignSynthesizer:
    """Assembles campaigns from the festival calendar and generation collaborators"""

    def __init__(
        self,
        text_generator: Optional[TextGeneratorProtocol] = None,
        image_generator: Optional[ImageGeneratorProtocol] = None,
        color_extractor: Optional[ColorExtractorProtocol] = None,
        site_scraper: Optional[SiteScraperProtocol] = None,
        image_gate: Optional[ImageRequestGate] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
        model_config: Optional[ModelConfig] = None,
        infinite_period_days: int = INFINITE_PERIOD_DAYS,
    ):
        self.text_generator = text_generator
        self.image_generator = image_generator
        self.color_extractor = color_extractor
        self.site_scraper = site_scraper
        self.image_gate = image_gate or ImageRequestGate()
        self.rng = rng or random.Random()
        self.clock = clock
        self.model_config = model_config or ModelConfig()
        self.infinite_period_days = infinite_period_days

    # ====================
    # Name
    # ====================

    async def resolve_festival_name(self, start_date: datetime) -> str:
        """Calendar name, refined by the text generator when it is generic"""
        base_name = resolve_name(start_date, self.rng)
        name = base_name

        if is_specific_festival(base_name):
            logger.debug(f"Using calendar festival {base_name!r} as-is")
        elif self.text_generator is not None:
            name = await self._refine_name(base_name, start_date)

        name = strip_special(name) or strip_special(base_name)
        if not name:
            name = strip_special(seasonal_name(start_date, self.rng)) or "Festival Celebration"
        return name

    async def _refine_name(self, base_name: str, start_date: datetime) -> str:
        prompt = (
            f'Given that our database suggests "{base_name}" for {ordinal_date(start_date)}, '
            "please suggest a more natural, human-sounding festival name. Keep cultural "
            "accuracy but make it sound more appealing for shopping.\n\n"
            "Examples of good refinements:\n"
            '- "Monsoon Vibes" → "Monsoon Magic Festival"\n'
            '- "Summer Celebration" → "Summer Sunshine Sale"\n'
            '- "Autumn Festival" → "Golden Autumn Celebration"\n\n'
            "Only respond with the refined festival name, nothing else."
        )
        try:
            reply = await self.text_generator.generate(
                prompt,
                max_tokens=self.model_config.name_max_tokens,
                temperature=self.model_config.name_temperature,
            )
        except Exception as e:
            logger.warning(f"Name refinement failed, keeping {base_name!r}: {e}")
            return base_name

        refined = clean_refined_name(reply or "")
        if MIN_REFINED_NAME < len(refined) < MAX_REFINED_NAME:
            logger.info(f"Refined festival name {base_name!r} -> {refined!r}")
            return refined
        logger.info(f"Refined name {refined!r} rejected, keeping {base_name!r}")
        return base_name

    # ====================
    # Colours and imagery
    # ====================

    async def site_colors(self, shop_domain: str) -> SiteColors:
        if self.site_scraper is not None:
            try:
                return await self.site_scraper.scrape_colors(shop_domain)
            except Exception as e:
                logger.warning(f"Site colour scrape failed for {shop_domain}: {e}")
        return domain_colors(shop_domain)

    async def background_image(self, prompt: str) -> Tuple[str, Optional[ImagePalette]]:
        """Generated image URL and its palette; ("", None) when unavailable"""
        if self.image_generator is None:
            return "", None

        if not self.image_gate.try_acquire():
            simplified = " ".join(prompt.split()[:3])
            logger.info("Image generation busy, returning simplified fallback")
            try:
                return self.image_generator.fallback_url(simplified), None
            except Exception as e:
                logger.warning(f"Image fallback URL failed: {e}")
                return "", None

        try:
            image_url = await self.image_generator.generate(prompt)
        except Exception as e:
            logger.warning(f"Image generation failed: {e}")
            return "", None
        finally:
            self.image_gate.release()

        if not image_url:
            logger.warning("Image generator returned an empty URL")
            return "", None

        palette = None
        if self.color_extractor is not None:
            try:
                palette = await self.color_extractor.extract_palette(image_url)
            except Exception as e:
                logger.warning(f"Palette extraction failed for {image_url}: {e}")
        return image_url, palette

    # ====================
    # Synthesis
    # ====================

    async def synthesize(
        self,
        shop_domain: str,
        offer: str,
        start_date,
        end_date=None,
        *,
        text_color: Optional[str] = None,
        is_infinite: bool = False,
        original_start_date=None,
    ) -> Campaign:
        """
        Build a campaign for a shop and offer.

        Args:
            shop_domain: Merchant storefront domain
            offer: Offer text shown to shoppers, e.g. "50% OFF"
            start_date: First day of the campaign
            end_date: Last day; missing or blank means a rolling (infinite) campaign
            text_color: Text colour used when no image palette is available
            is_infinite: Rolling campaign that is re-dated rather than expiring
            original_start_date: First start of a rolling campaign being re-dated

        Returns:
            Unsaved campaign
        """
        start = as_utc(start_date)
        infinite = is_infinite or not end_date
        if infinite:
            end = start + timedelta(days=self.infinite_period_days)
        else:
            end = as_utc(end_date)

        name = await self.resolve_festival_name(start)
        discount_code = generate_discount_code(name, offer, self.rng, start.date())
        site = await self.site_colors(shop_domain)

        prompt = image_prompt_for(name)
        image_url, palette = await self.background_image(prompt)

        if palette is not None:
            background = palette.background or palette.primary
            text = optimal_text_color(palette)
            header = palette.primary
        else:
            background = site.primary
            text = text_color or DEFAULT_TEXT_COLOR
            header = site.header

        campaign = Campaign(
            name=name,
            offer=offer,
            discount_code=discount_code,
            start_date=start,
            end_date=end,
            background_color=background,
            text_color=text,
            header_color=header,
            background_image_url=image_url,
            background_image_prompt=prompt,
            image_colors=palette,
            is_infinite=infinite,
            original_start_date=(as_utc(original_start_date) if original_start_date else start) if infinite else None,
            current_period_start=start if infinite else None,
            created_at=self.clock(),
        )
        logger.info(
            f"Synthesized campaign {campaign.name!r} ({campaign.discount_code}) for {shop_domain}"
        )
        return campaign
