"""
Field Normalizer Module
=======================

Converts the heterogeneous string representations found in pasted
spreadsheets (durations, prices, ratings, dates, page counts, languages)
into canonical numeric and ISO forms.

Every parser accepts ``str | int | float | None`` and returns ``None`` for
input it cannot make sense of. None of them raise on malformed input.
"""

from __future__ import annotations

import json
import math
import re
from datetime import date, datetime
from typing import Any

from media_tracker.core.enums import EntryStatus, Medium

# Duration patterns, tried in priority order
CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
HOURS_MINUTES_PATTERN = re.compile(
    r"(\d+)\s*h(?:ours?|rs?|r)?\s*(?:(\d+)\s*m(?:ins?|inutes?)?)?"
)
MINUTES_PATTERN = re.compile(r"(\d+)\s*(?:mins?|minutes?)")
HOURS_ONLY_PATTERN = re.compile(r"^(\d+)\s*(?:h|hrs?|hours?)$")
PLAIN_NUMBER_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)$")

PAGES_PATTERN = re.compile(r"(\d+)\s*(?:pages?|pg|p)?")

CURRENCY_PATTERN = re.compile(r"[$€£¥₹\s]")
FLOAT_PREFIX_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

FRACTION_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*/\s*(\d+)")
PERCENT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*%")

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SLASH_DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")

# Textual date formats accepted before the day/month heuristic.
# Slash dates are read month-first here; day-first dates fail and
# fall through to the heuristic.
GENERIC_DATE_FORMATS = [
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%d-%b-%Y",
    "%Y.%m.%d",
    "%a %b %d %Y",
]

# Language code / native name -> English name
LANGUAGE_ALIASES: dict[str, str] = {
    # ISO codes
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "zh-cn": "Mandarin",
    "zh-tw": "Mandarin",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "hi": "Hindi",
    "th": "Thai",
    "vi": "Vietnamese",
    "id": "Indonesian",
    "tl": "Filipino",
    "fil": "Filipino",
    "ar": "Arabic",
    "pl": "Polish",
    "nl": "Dutch",
    "sv": "Swedish",
    "da": "Danish",
    "no": "Norwegian",
    "fi": "Finnish",
    "tr": "Turkish",
    "he": "Hebrew",
    "ms": "Malay",
    "ta": "Tamil",
    "te": "Telugu",
    "bn": "Bengali",
    "cs": "Czech",
    "el": "Greek",
    "hu": "Hungarian",
    "ro": "Romanian",
    "uk": "Ukrainian",
    "fa": "Persian",
    "ur": "Urdu",

    # Native script names
    "한국어": "Korean",
    "조선어": "Korean",
    "일본어": "Japanese",
    "日本語": "Japanese",
    "にほんご": "Japanese",
    "中文": "Chinese",
    "中国語": "Chinese",
    "普通话": "Mandarin",
    "國語": "Mandarin",
    "ภาษาไทย": "Thai",
    "ไทย": "Thai",
    "tiếng việt": "Vietnamese",
    "việt": "Vietnamese",
    "bahasa indonesia": "Indonesian",
    "bahasa melayu": "Malay",
    "español": "Spanish",
    "français": "French",
    "deutsch": "German",
    "italiano": "Italian",
    "português": "Portuguese",
    "русский": "Russian",
    "العربية": "Arabic",
    "עברית": "Hebrew",
    "हिन्दी": "Hindi",
    "हिंदी": "Hindi",
    "tagalog": "Filipino",
    "polski": "Polish",
    "nederlands": "Dutch",
    "svenska": "Swedish",
    "dansk": "Danish",
    "norsk": "Norwegian",
    "suomi": "Finnish",
    "türkçe": "Turkish",

    # Common variations and abbreviations
    "eng": "English",
    "jpn": "Japanese",
    "jap": "Japanese",
    "jp": "Japanese",
    "kor": "Korean",
    "kr": "Korean",
    "chi": "Chinese",
    "chn": "Chinese",
    "cn": "Chinese",
    "spa": "Spanish",
    "esp": "Spanish",
    "fre": "French",
    "fra": "French",
    "ger": "German",
    "deu": "German",
    "ita": "Italian",
    "por": "Portuguese",
    "rus": "Russian",
    "ara": "Arabic",
    "hin": "Hindi",
    "tha": "Thai",
    "vie": "Vietnamese",
    "ind": "Indonesian",
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _parse_float_prefix(text: str) -> float | None:
    """Parse the leading float of a string ("19.99abc" -> 19.99)."""
    match = FLOAT_PREFIX_PATTERN.match(text.strip())
    if not match:
        return None
    try:
        return float(match.group())
    except ValueError:
        return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_duration_to_minutes(duration: str | int | float | None) -> int | None:
    """
    Parse a duration into whole minutes.

    Recognized, first match wins:
    - "1:30", "02:30:00" (clock form)
    - "2h 30m", "1 hr 30 min", "2 hours"
    - "120 min", "120 minutes"
    - "2h", "2 hrs"
    - "90" (assumed minutes)

    Args:
        duration: Raw duration value.

    Returns:
        Minutes as int, or None if no pattern matches.
    """
    if duration is None:
        return None
    if _is_number(duration):
        return _round_half_up(float(duration))
    if not isinstance(duration, str):
        return None

    s = duration.strip().lower()
    if not s:
        return None

    match = CLOCK_PATTERN.match(s)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2))
        seconds = int(match.group(3)) if match.group(3) else 0
        return hours * 60 + minutes + _round_half_up(seconds / 60)

    match = HOURS_MINUTES_PATTERN.search(s)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2)) if match.group(2) else 0
        return hours * 60 + minutes

    match = MINUTES_PATTERN.search(s)
    if match:
        return int(match.group(1))

    match = HOURS_ONLY_PATTERN.match(s)
    if match:
        return int(match.group(1)) * 60

    match = PLAIN_NUMBER_PATTERN.match(s)
    if match:
        return _round_half_up(float(match.group(1)))

    return None


def parse_pages(pages: str | int | None) -> int | None:
    """
    Parse a page count from "350 pages", "350 pg", "350p" or "350".

    Args:
        pages: Raw page count.

    Returns:
        Page count as int, or None.
    """
    if pages is None:
        return None
    if _is_number(pages):
        return int(pages)
    if not isinstance(pages, str):
        return None

    match = PAGES_PATTERN.search(pages.strip().lower())
    if match:
        return int(match.group(1))
    return None


def parse_price(price: str | int | float | None) -> float | None:
    """
    Parse a price string to a float.

    Handles "$19.99", "€15", "£10.50", "19,99" and "Free" (-> 0).
    An empty string is also treated as free.

    Args:
        price: Raw price value.

    Returns:
        Price as float, or None if unparsable.
    """
    if price is None:
        return None
    if _is_number(price):
        return float(price)
    if not isinstance(price, str):
        return None

    s = price.strip().lower()
    if s in ("free", ""):
        return 0.0

    cleaned = CURRENCY_PATTERN.sub("", s).replace(",", ".", 1)
    return _parse_float_prefix(cleaned)


def parse_rating(rating: str | int | float | None) -> float | None:
    """
    Normalize a rating onto a 10-point scale.

    - "8/10", "4/5": rescaled proportionally, (X/Y) * 10
    - "85%": divided by 10
    - "8.5", "8,5": parsed as-is

    Args:
        rating: Raw rating value.

    Returns:
        Rating as float, or None.
    """
    if rating is None:
        return None
    if _is_number(rating):
        return float(rating)
    if not isinstance(rating, str):
        return None

    s = rating.strip()

    match = FRACTION_PATTERN.search(s)
    if match:
        numerator = float(match.group(1))
        denominator = float(match.group(2))
        if denominator == 0:
            return None
        return numerator * 10 / denominator

    match = PERCENT_PATTERN.search(s)
    if match:
        # Divides by 10, not 100/10 of the stated maximum; kept for
        # compatibility with previously imported data.
        return float(match.group(1)) / 10

    return _parse_float_prefix(s.replace(",", ".", 1))


def parse_date(value: str | None) -> str | None:
    """
    Parse a date into YYYY-MM-DD.

    ISO dates pass through untouched. Other inputs are tried against a
    fixed list of textual formats, then against D/M/Y vs M/D/Y where a
    first component greater than 12 must be the day.

    Args:
        value: Raw date string.

    Returns:
        ISO date string, or None.
    """
    if not value or not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None

    if ISO_DATE_PATTERN.match(s):
        return s

    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        pass

    for fmt in GENERIC_DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue

    match = SLASH_DATE_PATTERN.search(s)
    if match:
        a, b, year = match.groups()
        if int(a) > 12:
            day, month = a, b
        else:
            day, month = b, a
        try:
            return date(int(year), int(month), int(day)).isoformat()
        except ValueError:
            return None

    return None


def parse_iso_date(value: str | None) -> date | None:
    """Parse a strict ISO date, returning None when invalid."""
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def format_duration(minutes: int) -> str:
    """Render minutes compactly: "45m", "2h", "2h 30m"."""
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_runtime(minutes: int) -> str:
    """Render a provider runtime: "45 min", "2h", "2h 5m"."""
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"


def normalize_language_code(code: str) -> str:
    """
    Normalize one language token to its English name.

    "en" -> "English", "日本語" -> "Japanese". Unknown tokens are
    returned with the first letter capitalized.
    """
    if not code:
        return ""
    clean = code.strip()
    if not clean:
        return ""
    canonical = LANGUAGE_ALIASES.get(clean.lower())
    if canonical:
        return canonical
    return clean[0].upper() + clean[1:]


def normalize_language(value: str | list[str] | None) -> list[str]:
    """
    Normalize any language input into a sorted, de-duplicated list.

    Accepts a list, a comma-separated string or a JSON array string.

    Examples:
        ["en", "English"] -> ["English"]
        "en, ja" -> ["English", "Japanese"]
    """
    if not value:
        return []

    raw_list: list[Any]
    if isinstance(value, list):
        raw_list = value
    elif isinstance(value, str):
        trimmed = value.strip()
        if trimmed.startswith("[") and trimmed.endswith("]"):
            try:
                parsed = json.loads(trimmed)
                raw_list = parsed if isinstance(parsed, list) else [str(parsed)]
            except json.JSONDecodeError:
                raw_list = [trimmed]
        else:
            raw_list = trimmed.split(",")
    else:
        return []

    normalized = {normalize_language_code(str(item)) for item in raw_list}
    normalized.discard("")
    return sorted(normalized)


def split_list(value: Any) -> list[str] | None:
    """Accept an already-split list or split a comma-separated string."""
    if value is None:
        return None
    if isinstance(value, list):
        items = [str(item).strip() for item in value]
    elif isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    else:
        return None
    items = [item for item in items if item]
    return items or None


def sanitize_medium(value: str) -> str:
    """Map free-form medium text to a Medium value, passing unknowns through."""
    normalized = value.lower().strip()

    if "movie" in normalized or "film" in normalized:
        return Medium.MOVIE.value
    if "tv" in normalized or "show" in normalized or "series" in normalized:
        return Medium.TV_SHOW.value
    if "book" in normalized:
        return Medium.BOOK.value
    if any(v in normalized for v in ("live theatre", "live theater", "live play")):
        return Medium.LIVE_THEATRE.value
    if any(v in normalized for v in ("theatre", "theater", "play")):
        return Medium.THEATRE.value
    if "podcast" in normalized or "audio" in normalized:
        return Medium.PODCAST.value
    if "game" in normalized:
        return Medium.GAME.value

    return value.strip()


def sanitize_status(value: str) -> str:
    """Map free-form status text to an EntryStatus value, passing unknowns through."""
    normalized = value.lower().strip()

    if "progress" in normalized or normalized in ("watching", "reading"):
        return EntryStatus.WATCHING.value
    if "finish" in normalized or normalized in ("complete", "completed", "done"):
        return EntryStatus.FINISHED.value
    if "hold" in normalized or normalized == "paused":
        return EntryStatus.ON_HOLD.value
    if "drop" in normalized or normalized == "abandoned":
        return EntryStatus.DROPPED.value
    if "plan" in normalized:
        return EntryStatus.PLAN_TO_WATCH.value

    return value.strip()

