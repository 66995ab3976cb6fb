"""
Colour helpers

Hex/RGB/HSL conversion, brightness adjustment, domain-derived colours and
text-colour selection by perceived luminance and WCAG contrast.
"""

import math
import re
from typing import Iterable, Optional, Tuple

from .models import ImagePalette, SiteColors

WHITE = "#ffffff"
BLACK = "#000000"

# Perceived luminance below this gets white text
LIGHT_BACKGROUND_THRESHOLD = 0.6
# WCAG AA for normal text
MIN_CONTRAST_RATIO = 4.5

DOMAIN_SATURATION = 70
DOMAIN_LIGHTNESS = 50
HEADER_DARKEN = 15

_HEX6 = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_hex_color(value: Optional[str]) -> bool:
    return bool(value) and bool(_HEX6.match(value))


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    value = int(hex_color.lstrip("#"), 16)
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return "#{:02x}{:02x}{:02x}".format(r, g, b)


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    """HSL (degrees, percent, percent) to #rrggbb"""
    lightness /= 100
    a = saturation * min(lightness, 1 - lightness) / 100

    def channel(n: int) -> str:
        k = (n + hue / 30) % 12
        color = lightness - a * max(min(k - 3, 9 - k, 1), -1)
        return "{:02x}".format(_round_half_up(255 * color))

    return f"#{channel(0)}{channel(8)}{channel(4)}"


def adjust_color_brightness(hex_color: str, percent: float) -> str:
    """Shift every channel by a fixed amount (percent of 255), clamped"""
    amount = _round_half_up(2.55 * percent)
    r, g, b = (max(0, min(255, c + amount)) for c in hex_to_rgb(hex_color))
    return rgb_to_hex(r, g, b)


def scale_brightness(hex_color: str, percent: float) -> str:
    """Scale every channel proportionally by percent, clamped"""
    r, g, b = (
        _round_half_up(max(0.0, min(255.0, c + c * percent / 100)))
        for c in hex_to_rgb(hex_color)
    )
    return rgb_to_hex(r, g, b)


def domain_hash(domain: str) -> int:
    """32-bit signed string hash (h * 31 + code point, wrapped)"""
    value = 0
    for char in domain:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def domain_colors(domain: str) -> SiteColors:
    """Deterministic primary/header pair derived from the shop domain"""
    hue = abs(domain_hash(domain)) % 360
    return SiteColors(
        primary=hsl_to_hex(hue, DOMAIN_SATURATION, DOMAIN_LIGHTNESS),
        header=hsl_to_hex(hue, DOMAIN_SATURATION, DOMAIN_LIGHTNESS - HEADER_DARKEN),
    )


def perceived_luminance(hex_color: str) -> float:
    r, g, b = hex_to_rgb(hex_color)
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def contrasting_text_color(background: str) -> str:
    """Pure white on dark backgrounds, pure black on light ones"""
    if perceived_luminance(background) < LIGHT_BACKGROUND_THRESHOLD:
        return WHITE
    return BLACK


def relative_luminance(hex_color: str) -> float:
    """WCAG relative luminance"""
    def linear(channel: int) -> float:
        c = channel / 255
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    r, g, b = (linear(c) for c in hex_to_rgb(hex_color))
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(foreground: str, background: str) -> float:
    first = relative_luminance(foreground)
    second = relative_luminance(background)
    return (max(first, second) + 0.05) / (min(first, second) + 0.05)


def has_good_contrast(foreground: str, background: str) -> bool:
    return contrast_ratio(foreground, background) >= MIN_CONTRAST_RATIO


def _average_passing_contrast(candidate: str, palette: Iterable[str]) -> float:
    ratios = [
        contrast_ratio(candidate, color)
        for color in palette
        if is_hex_color(color) and has_good_contrast(candidate, color)
    ]
    return sum(ratios) / len(ratios) if ratios else 0.0


def optimal_text_color(colors: Optional[ImagePalette]) -> str:
    """
    Pick a text colour for an image background.

    White and black are scored by their average contrast ratio over the
    palette entries they pass AA against; the higher score wins. Without a
    palette, or when neither passes anywhere, the primary colour's
    contrasting colour is used.
    """
    if colors is None or not is_hex_color(colors.primary):
        return WHITE

    best = contrasting_text_color(colors.primary)
    if not colors.palette:
        return best

    best_score = 0.0
    for candidate in (WHITE, BLACK):
        score = _average_passing_contrast(candidate, colors.palette)
        if score > best_score:
            best, best_score = candidate, score
    return best
