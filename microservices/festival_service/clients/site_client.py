"""
Storefront Colour Scraper

Fetches a shop's home page and collects hex colours from inline styles
and <style> blocks.
"""

import logging
import re
from typing import List

import httpx
from bs4 import BeautifulSoup

from ..color_utils import adjust_color_brightness, is_hex_color
from ..models import SiteColors
from ..protocols import SiteColorsUnavailableError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
HEADER_DARKEN = -20

_COLOR_DECLARATION = re.compile(r"(?:background-color|border-color|color)\s*:\s*([^;}\"']+)", re.IGNORECASE)


def extract_colors_from_html(html: str) -> List[str]:
    """Distinct #rrggbb colours in inline styles, then style blocks, in document order"""
    soup = BeautifulSoup(html, "html.parser")
    colors: List[str] = []

    def collect(css: str) -> None:
        for match in _COLOR_DECLARATION.finditer(css):
            value = match.group(1).strip()
            if is_hex_color(value) and value.lower() not in colors:
                colors.append(value.lower())

    for element in soup.find_all(style=True):
        collect(element["style"])
    for style in soup.find_all("style"):
        collect(style.get_text())
    return colors


class StorefrontColorScraper:
    """Site scraper for merchant storefronts"""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    async def scrape_colors(self, shop_domain: str) -> SiteColors:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            ) as client:
                response = await client.get(f"https://{shop_domain}")
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Could not fetch storefront {shop_domain}: {e}")
            raise SiteColorsUnavailableError(shop_domain, str(e) or type(e).__name__)

        colors = extract_colors_from_html(response.text)
        if not colors:
            raise SiteColorsUnavailableError(shop_domain, "no colours found")

        primary = colors[0]
        logger.info(f"Extracted storefront colours for {shop_domain}: {primary}")
        return SiteColors(primary=primary, header=adjust_color_brightness(primary, HEADER_DARKEN))
