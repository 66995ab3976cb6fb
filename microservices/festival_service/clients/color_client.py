"""
Palette Extraction Client

Downloads an image and derives its dominant colour and a small palette
with Pillow's median-cut quantizer.
"""

import asyncio
import io
import logging
from typing import List, Optional, Tuple

import httpx
from PIL import Image, UnidentifiedImageError

from ..color_utils import adjust_color_brightness, contrasting_text_color, rgb_to_hex
from ..models import ImagePalette
from ..protocols import CollaboratorUnavailableError, MalformedCollaboratorResponseError

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (200, 200)
PALETTE_SIZE = 5
BACKGROUND_LIGHTEN = 10


def extract_colors(image_bytes: bytes, palette_size: int = PALETTE_SIZE) -> List[Tuple[int, int, int]]:
    """Palette colours ordered by pixel count, most common first"""
    with Image.open(io.BytesIO(image_bytes)) as image:
        thumb = image.convert("RGB").resize(THUMBNAIL_SIZE)
    quantized = thumb.quantize(colors=palette_size, method=Image.Quantize.MEDIANCUT)
    flat = quantized.getpalette() or []
    counts = sorted(quantized.getcolors() or [], reverse=True)
    colors = []
    for _, index in counts:
        rgb = tuple(flat[index * 3:index * 3 + 3])
        if len(rgb) == 3 and rgb not in colors:
            colors.append(rgb)
    return colors


def palette_from_colors(colors: List[Tuple[int, int, int]]) -> ImagePalette:
    hex_colors = [rgb_to_hex(*rgb) for rgb in colors]
    primary = hex_colors[0]
    background = hex_colors[1] if len(hex_colors) > 1 else adjust_color_brightness(primary, BACKGROUND_LIGHTEN)
    return ImagePalette(
        primary=primary,
        background=background,
        text=contrasting_text_color(primary),
        palette=hex_colors,
    )


class PillowColorExtractor:
    """Palette extractor for generated images"""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    async def extract_palette(self, image_url: str) -> ImagePalette:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(image_url)
                response.raise_for_status()
                content = response.content
        except httpx.HTTPError as e:
            logger.error(f"Image download failed for palette extraction: {e}")
            raise CollaboratorUnavailableError("color extractor", str(e) or type(e).__name__)

        try:
            colors = await asyncio.to_thread(extract_colors, content)
        except (UnidentifiedImageError, OSError) as e:
            raise MalformedCollaboratorResponseError("color extractor", f"unreadable image: {e}")
        if not colors:
            raise MalformedCollaboratorResponseError("color extractor", "no colours found")
        return palette_from_colors(colors)
