"""
Image Generation Client

Pollinations text-to-image. Images are addressed by URL; generation is
triggered and verified by fetching that URL.
"""

import logging
import random
from typing import Optional
from urllib.parse import quote

import httpx

from core.config import ModelConfig

from ..protocols import ImageGenerationError

logger = logging.getLogger(__name__)

SIMPLIFIED_PROMPT_WORDS = 5


def enhance_prompt(prompt: str) -> str:
    return (
        f"beautiful festive {prompt}, vibrant colors, celebration, festive atmosphere, "
        "high quality, professional photography, detailed"
    )


class PollinationsImageClient:
    """Client for image.pollinations.ai"""

    def __init__(self, config: Optional[ModelConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or ModelConfig.from_env()
        self.base_url = self.config.image_base_url.rstrip("/")
        self.rng = rng or random.Random()

    def build_url(self, prompt: str, seed: Optional[int] = None) -> str:
        url = (
            f"{self.base_url}/prompt/{quote(prompt, safe='')}"
            f"?width={self.config.image_width}&height={self.config.image_height}"
        )
        if seed is not None:
            url += f"&seed={seed}"
        return url + f"&model={self.config.image_model}&enhance=true&nologo=true"

    def fallback_url(self, prompt: str) -> str:
        """Unverified URL for a simplified prompt"""
        return self.build_url(enhance_prompt(prompt))

    async def generate(self, prompt: str) -> str:
        """
        Generate a background image.

        Fetches the full prompt's image; if that fails, checks a simplified
        prompt with a short HEAD request.

        Returns:
            Image URL

        Raises:
            ImageGenerationError: Neither the full nor the simplified image is available
        """
        seed = self.rng.randint(0, 999999)
        image_url = self.build_url(enhance_prompt(prompt), seed)

        try:
            async with httpx.AsyncClient(timeout=self.config.image_timeout, follow_redirects=True) as client:
                response = await client.get(image_url)
                response.raise_for_status()
            logger.info(f"Generated festival image (seed {seed})")
            return image_url
        except httpx.HTTPError as e:
            logger.warning(f"Image generation failed, trying simplified prompt: {e}")

        simplified = " ".join(prompt.split()[:SIMPLIFIED_PROMPT_WORDS])
        fallback_url = self.build_url(enhance_prompt(simplified), seed)
        try:
            async with httpx.AsyncClient(timeout=self.config.image_check_timeout, follow_redirects=True) as client:
                response = await client.head(fallback_url)
                response.raise_for_status()
            return fallback_url
        except httpx.HTTPError as e:
            logger.error(f"Simplified image generation failed: {e}")
            raise ImageGenerationError(str(e) or type(e).__name__)
