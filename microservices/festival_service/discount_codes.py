"""
Discount code derivation

Codes are six uppercase alphanumerics: up to four letters taken from the
first two words of the festival name, followed by the offer's number.
"Festival of Lights" with "50% OFF" gives FELI50.
"""

import logging
import math
import random
import re
import string
from datetime import date
from typing import Optional

from .festival_calendar import season_for_month

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
CODE_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_NUMBER = "25"
MAX_NUMBER_DIGITS = 2

_PERCENT = re.compile(r"([0-9]+)%")
_AMOUNT = re.compile(r"\$([0-9]+)")
_NUMBER = re.compile(r"([0-9]+)")


def random_code(rng: Optional[random.Random] = None, length: int = CODE_LENGTH) -> str:
    rng = rng or random
    return "".join(rng.choice(CODE_ALPHABET) for _ in range(length))


def offer_number(offer: str) -> str:
    """Percentage, else dollar amount, else any number in the offer; two digits max"""
    for pattern in (_PERCENT, _AMOUNT, _NUMBER):
        match = pattern.search(offer)
        if match:
            return match.group(1)[:MAX_NUMBER_DIGITS]
    return DEFAULT_NUMBER


def name_words(name: str):
    letters_only = re.sub(r"[^a-zA-Z\s]", "", name)
    return [word.upper() for word in letters_only.split(" ") if len(word) > 2]


def generate_discount_code(
    name: str,
    offer: str,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
) -> str:
    """
    Derive a six character discount code from a festival name and offer.

    Args:
        name: Festival name
        offer: Merchant offer text, e.g. "50% OFF"
        rng: Random source for padding
        today: Date used for the season when the name has no usable words

    Returns:
        Code matching [A-Z0-9]{6}
    """
    try:
        number = offer_number(offer)
        budget = CODE_LENGTH - len(number)
        words = name_words(name)

        if len(words) >= 2:
            first = words[0][:math.ceil(budget / 2)]
            second = words[1][:budget - len(first)]
            text = first + second
        elif len(words) == 1:
            text = words[0][:budget]
        else:
            month = (today or date.today()).month
            text = season_for_month(month).upper()[:budget]

        code = re.sub(r"[^A-Z0-9]", "", text + number)[:CODE_LENGTH]
        if len(code) < CODE_LENGTH:
            code += random_code(rng, CODE_LENGTH - len(code))
        return code

    except Exception as e:
        logger.warning(f"Discount code derivation failed for {name!r}/{offer!r}: {e}")
        return random_code(rng)
