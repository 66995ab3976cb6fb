"""
Festival Calendar

Maps a calendar date to a human festival name using, in priority order:

1. lunar-calendar festivals tabulated per year (exact day, then a short
   proximity window for the big seasonal festivals)
2. fixed month/day observances
3. fixed observances within three days either side
4. a random seasonal name
"""

import logging
import random
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

# =============================================================================
# Lunar-calendar festivals, month-day per year
# =============================================================================

YEAR_FESTIVAL_KEYS: Tuple[str, ...] = (
    "holi", "ram_navami", "raksha_bandhan", "janmashtami", "ganesh_chaturthi",
    "navratri_start", "dussehra", "dhanteras", "diwali", "bhai_dooj",
    "karva_chauth", "guru_nanak_jayanti", "eid_al_fitr", "eid_al_adha",
    "muharram", "milad_un_nabi", "buddha_purnima", "guru_purnima",
    "vasant_panchami",
)

_YEAR_DATES: Dict[int, Tuple[str, ...]] = {
    2025: ("3-14", "4-6", "8-9", "8-16", "8-27", "9-22", "10-2", "10-29", "11-1", "11-3",
           "10-20", "11-15", "3-30", "6-6", "7-6", "9-5", "5-12", "7-13", "2-3"),
    2026: ("3-3", "3-26", "8-28", "9-4", "9-16", "10-11", "10-21", "10-18", "10-21", "10-23",
           "10-9", "11-4", "3-20", "5-27", "6-25", "8-25", "5-1", "7-2", "1-22"),
    2027: ("3-22", "4-14", "8-17", "8-24", "9-5", "9-30", "10-10", "11-7", "11-9", "11-11",
           "10-28", "11-24", "3-9", "5-16", "6-14", "8-14", "5-19", "7-21", "2-11"),
    2028: ("3-11", "4-2", "8-5", "8-12", "8-25", "9-19", "9-29", "10-27", "10-29", "10-31",
           "10-17", "11-12", "2-26", "5-4", "6-3", "8-3", "5-7", "7-9", "1-31"),
    2029: ("3-30", "4-21", "8-24", "8-31", "9-13", "10-8", "10-18", "10-15", "10-17", "10-19",
           "10-6", "11-1", "2-14", "4-24", "5-23", "7-23", "5-26", "7-28", "2-20"),
}

YEAR_SPECIFIC_FESTIVALS: Dict[int, Dict[str, str]] = {
    year: dict(zip(YEAR_FESTIVAL_KEYS, dates)) for year, dates in _YEAR_DATES.items()
}

YEAR_FESTIVAL_NAMES: Dict[str, str] = {
    "holi": "Festival of Colors",
    "diwali": "Festival of Lights",
    "ganesh_chaturthi": "Elephant God Festival",
    "dussehra": "Dussehra",
    "janmashtami": "Lord Krishna Festival",
    "raksha_bandhan": "Raksha Bandhan",
    "eid_al_fitr": "Eid al-Fitr",
    "eid_al_adha": "Eid al-Adha",
    "dhanteras": "Dhanteras",
    "bhai_dooj": "Bhai Dooj",
    "karva_chauth": "Karva Chauth",
    "guru_nanak_jayanti": "Guru Nanak Jayanti",
    "ram_navami": "Ram Navami",
    "buddha_purnima": "Buddha Purnima",
    "guru_purnima": "Guru Purnima",
    "vasant_panchami": "Vasant Panchami",
    "navratri_start": "Sharad Navratri",
    "muharram": "Muharram",
    "milad_un_nabi": "Milad un-Nabi",
}

# Only these festivals claim the days around them
YEAR_SEASON_NAMES: Dict[str, str] = {
    "holi": "Festival of Colors",
    "diwali": "Festival of Lights",
    "ganesh_chaturthi": "Elephant God Festival",
    "navratri_start": "Sharad Navratri",
    "eid_al_fitr": "Eid Celebration",
    "eid_al_adha": "Eid Celebration",
}

YEAR_PROXIMITY_DAYS = 3
FIXED_PROXIMITY_DAYS = 3

# =============================================================================
# Fixed month-day observances
#
# Regional variants repeat month-day keys. dict() keeps the last name for a
# key at the position the key was first seen.
# =============================================================================

_FIXED_ENTRIES: List[Tuple[str, str]] = [
    # January
    ("1-1", "New Year Celebration"),
    ("1-14", "Makar Sankranti"),
    ("1-15", "Pongal"),
    ("1-16", "Uzhavar Thirunal"),
    ("1-26", "Republic Day"),
    ("1-5", "Guru Gobind Singh Jayanti"),
    ("1-12", "Swami Vivekananda Jayanti"),
    ("1-13", "Lohri"),
    ("1-23", "Netaji Subhas Chandra Bose Jayanti"),
    # February
    ("2-14", "Valentine's Day"),
    ("2-19", "Shivaji Jayanti"),
    ("2-20", "Shivaji Jayanti"),
    # March
    ("3-8", "International Women's Day"),
    ("3-14", "Hola Mohalla"),
    ("3-15", "Gudi Padwa"),
    ("3-17", "St. Patrick's Day"),
    ("3-20", "International Day of Happiness"),
    ("3-21", "Navroz"),
    ("3-22", "Navroz"),
    # April
    ("4-1", "April Fool's Day"),
    ("4-13", "Baisakhi"),
    ("4-14", "Baisakhi"),
    ("4-15", "Bengali New Year"),
    ("4-16", "Vishu"),
    ("4-22", "Earth Day"),
    ("4-23", "World Book Day"),
    # May
    ("5-1", "Labour Day"),
    ("5-4", "Star Wars Day"),
    ("5-5", "Cinco de Mayo"),
    ("5-8", "Mother's Day"),
    ("5-15", "International Day of Families"),
    # June
    ("6-19", "Father's Day"),
    ("6-21", "International Day of Yoga"),
    ("6-23", "International Olympic Day"),
    ("6-26", "Rath Yatra"),
    ("6-27", "Rath Yatra"),
    ("6-28", "Rath Yatra"),
    ("6-29", "Rath Yatra"),
    # July
    ("7-1", "Rath Yatra"),
    ("7-2", "Rath Yatra"),
    ("7-4", "Independence Day (USA)"),
    ("7-26", "Kargil Vijay Diwas"),
    ("7-30", "International Day of Friendship"),
    # August
    ("8-9", "Quit India Day"),
    ("8-12", "International Youth Day"),
    ("8-15", "Independence Day"),
    ("8-20", "Onam"),
    ("8-21", "Onam"),
    ("8-22", "Onam"),
    ("8-23", "Onam"),
    ("8-24", "Onam"),
    ("8-25", "Onam"),
    ("8-26", "Onam"),
    ("8-27", "Onam"),
    ("8-28", "Onam"),
    ("8-29", "Onam"),
    ("8-30", "Thiruvonam"),
    ("8-31", "Gowri Ganesha"),
    # September
    ("9-5", "Teachers Day"),
    ("9-8", "International Literacy Day"),
    ("9-21", "International Day of Peace"),
    ("9-27", "World Tourism Day"),
    # October
    ("10-2", "Gandhi Jayanti"),
    ("10-5", "World Teachers Day"),
    ("10-31", "Halloween"),
    # November
    ("11-11", "Singles Day"),
    ("11-14", "Children's Day"),
    ("11-26", "Constitution Day"),
    ("11-27", "Black Friday Sale"),
    ("11-28", "Thanksgiving"),
    ("11-29", "Cyber Monday"),
    # December
    ("12-20", "Christmas Joy"),
    ("12-21", "Christmas Joy"),
    ("12-22", "Christmas Joy"),
    ("12-23", "Christmas Joy"),
    ("12-24", "Christmas Eve"),
    ("12-25", "Christmas Joy"),
    ("12-26", "Boxing Day"),
    ("12-27", "Christmas Joy"),
    ("12-28", "Christmas Joy"),
    ("12-29", "Christmas Joy"),
    ("12-30", "New Year's Eve"),
    ("12-31", "New Year's Eve"),
    # Tamil Nadu
    ("4-14", "Tamil New Year"),
    ("4-15", "Tamil New Year"),
    ("10-17", "Ayudha Puja"),
    ("11-6", "Karthigai Deepam"),
    # Punjab
    ("1-14", "Lohri"),
    ("4-14", "Vaisakhi"),
    ("11-4", "Guru Tegh Bahadur Martyrdom Day"),
    # Gujarat
    ("3-13", "Dhuleti"),
    ("10-30", "Gujarati New Year"),
    ("11-1", "Gujarati New Year"),
    ("11-2", "Gujarati New Year"),
    # Maharashtra
    ("7-11", "Guru Purnima"),
    ("8-15", "Nag Panchami"),
    # Karnataka
    ("4-14", "Ugadi"),
    ("4-15", "Ugadi"),
    ("10-15", "Mysore Dasara"),
    ("10-16", "Mysore Dasara"),
    ("11-1", "Rajyotsava Day"),
    # Andhra Pradesh / Telangana
    ("4-13", "Ugadi"),
    ("8-22", "Varalakshmi Vratam"),
    ("10-13", "Bathukamma"),
    ("10-14", "Bathukamma"),
    # Assam
    ("4-14", "Bihu"),
    ("4-15", "Bihu"),
    ("4-16", "Bihu"),
    ("10-15", "Kati Bihu"),
    # Odisha
    ("4-14", "Pana Sankranti"),
    ("10-15", "Kumar Purnima"),
    # Jain
    ("4-6", "Mahavir Jayanti"),
    ("4-7", "Mahavir Jayanti"),
    ("8-24", "Paryushan Parva"),
    ("8-25", "Paryushan Parva"),
    ("8-26", "Paryushan Parva"),
    ("8-27", "Paryushan Parva"),
    ("8-28", "Paryushan Parva"),
    ("8-29", "Paryushan Parva"),
    ("8-30", "Paryushan Parva"),
    ("8-31", "Paryushan Parva"),
    ("9-1", "Samvatsari"),
    # Christian
    ("3-30", "Palm Sunday"),
    ("4-4", "Good Friday"),
    ("4-6", "Easter Sunday"),
    ("5-15", "Ascension Day"),
    ("5-25", "Pentecost"),
    ("8-15", "Assumption of Mary"),
    ("11-1", "All Saints Day"),
    ("12-8", "Immaculate Conception"),
    # Tribal
    ("1-15", "Tusu Parab"),
    ("4-13", "Poila Boishakh"),
    ("4-14", "Sohrai"),
    ("10-15", "Karam Festival"),
    ("11-15", "Sohrai Festival"),
    # North-East
    ("1-15", "Magh Bihu"),
    ("2-12", "Lui-ngai-ni"),
    ("4-13", "Cheiraoba"),
    ("4-13", "Chapchar Kut"),
    ("11-1", "Ningol Chakkouba"),
    ("11-1", "Pawl Kut"),
    ("12-1", "Sekrenyi"),
    # Seasonal and harvest
    ("1-13", "Bhogali Bihu"),
    ("1-15", "Makaravilakku"),
    ("6-21", "Summer Solstice"),
    ("9-22", "Autumnal Equinox"),
    ("12-21", "Winter Solstice"),
    ("3-20", "Vernal Equinox"),
    # Modern
    ("2-29", "Leap Day"),
    ("9-11", "Patriot Day"),
    ("11-11", "Veterans Day"),
    ("12-26", "Boxing Day"),
]

FIXED_DATE_FESTIVALS: Dict[str, str] = dict(_FIXED_ENTRIES)

# =============================================================================
# Random fallbacks
# =============================================================================

MONSOON_MONTHS = range(6, 10)

MONSOON_NAMES: Tuple[str, ...] = (
    "Monsoon Magic",
    "Rainy Day Celebration",
    "Petrichor Festival",
    "Monsoon Melody",
    "Rain Dance Festival",
    "Cloudy Skies Festival",
    "Monsoon Vibes",
    "Seasonal Celebration",
)

SEASONAL_NAMES: Dict[str, Tuple[str, ...]] = {
    "Spring": (
        "Spring Bloom Festival", "Blossom Celebration", "Fresh Start Festival",
        "Spring Awakening", "Garden Festival", "Flower Power Festival",
        "Spring Harvest", "Nature Revival Festival",
    ),
    "Summer": (
        "Summer Sunshine Festival", "Beach Vibes Celebration", "Tropical Festival",
        "Summer Solstice", "Heat Wave Sale", "Sunny Days Festival",
        "Summer Carnival", "Vacation Festival",
    ),
    "Autumn": (
        "Autumn Harvest Festival", "Golden Leaves Celebration", "Cozy Fall Festival",
        "Autumn Breeze", "Harvest Moon Festival", "Apple Festival",
        "Fall Colors Festival", "Thanksgiving Season",
    ),
    "Winter": (
        "Winter Wonderland", "Cozy Winter Festival", "Frost Festival",
        "Winter Magic", "Snow Day Celebration", "Winter Solstice Festival",
        "Holiday Season", "Winter Carnival",
    ),
}

# Names recognised as well-known festivals that need no AI refinement
SPECIFIC_FESTIVALS: Tuple[str, ...] = (
    "Rath Yatra",
    "Father's Day",
    "Mother's Day",
    "Diwali",
    "Holi",
    "Dussehra",
    "Christmas",
    "Eid",
    "Raksha Bandhan",
    "Independence Day",
    "Republic Day",
)


def season_for_month(month: int) -> str:
    """Meteorological season for a month number"""
    if 3 <= month <= 5:
        return "Spring"
    if 6 <= month <= 8:
        return "Summer"
    if 9 <= month <= 11:
        return "Autumn"
    return "Winter"


def month_day_key(value: DateLike) -> str:
    return f"{value.month}-{value.day}"


def _year_specific_name(value: DateLike) -> Optional[str]:
    festivals = YEAR_SPECIFIC_FESTIVALS.get(value.year)
    if not festivals:
        return None

    key = month_day_key(value)
    for festival_key, festival_date in festivals.items():
        if festival_date == key:
            return YEAR_FESTIVAL_NAMES[festival_key]

    # Month*31+day distance, not calendar aware
    position = value.month * 31 + value.day
    for festival_key, festival_date in festivals.items():
        month, day = (int(part) for part in festival_date.split("-"))
        distance = abs(position - (month * 31 + day))
        if 0 < distance <= YEAR_PROXIMITY_DAYS and festival_key in YEAR_SEASON_NAMES:
            return YEAR_SEASON_NAMES[festival_key]
    return None


def _fixed_name(value: DateLike) -> Optional[str]:
    exact = FIXED_DATE_FESTIVALS.get(month_day_key(value))
    if exact:
        return exact

    day = value.date() if isinstance(value, datetime) else value
    for offset in range(-FIXED_PROXIMITY_DAYS, FIXED_PROXIMITY_DAYS + 1):
        nearby = FIXED_DATE_FESTIVALS.get(month_day_key(day + timedelta(days=offset)))
        if nearby:
            return nearby
    return None


def lookup_name(value: DateLike) -> Optional[str]:
    """Table-driven name for a date, None when only the random fallback applies"""
    return _year_specific_name(value) or _fixed_name(value)


def seasonal_name(value: DateLike, rng: Optional[random.Random] = None) -> str:
    """Random themed name for the date's monsoon or meteorological season"""
    rng = rng or random
    if value.month in MONSOON_MONTHS:
        return rng.choice(MONSOON_NAMES)
    return rng.choice(SEASONAL_NAMES[season_for_month(value.month)])


def resolve_name(value: DateLike, rng: Optional[random.Random] = None) -> str:
    """
    Resolve a festival name for a date.

    Args:
        value: Date to name
        rng: Random source used only by the seasonal fallback

    Returns:
        Festival name, never empty
    """
    name = lookup_name(value)
    if name:
        return name
    fallback = seasonal_name(value, rng)
    logger.debug(f"No festival on {value:%Y-%m-%d}, using seasonal name {fallback}")
    return fallback


def is_specific_festival(name: str) -> bool:
    """True when a well-known festival's first word appears in the name"""
    lowered = name.lower()
    return any(festival.lower().split(" ")[0] in lowered for festival in SPECIFIC_FESTIVALS)
