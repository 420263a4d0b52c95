"""
Transform Stage
===============

Maps AI-cleaned (or directly pasted) rows into CleanedEntry records,
resolving header aliases and computing derived fields.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from media_tracker.core.schema import CleanedEntry, RawRow, is_blank
from media_tracker.importing.normalizer import (
    parse_iso_date,
    parse_price,
    parse_rating,
    split_list,
)

logger = logging.getLogger(__name__)

# Historical spellings of the personal rating column, first non-null wins
MY_RATING_ALIASES = [
    "my_rating",
    "my rating",
    "My Rating",
    "MY_RATING",
    "my_score",
    "personal_rating",
]

STRING_FIELDS = [
    "medium", "type", "status", "platform", "length",
    "start_date", "finish_date", "poster_url", "imdb_id",
]


def resolve_alias(row: RawRow, aliases: list[str]) -> Any:
    """Return the first non-null value among the candidate keys."""
    for key in aliases:
        value = row.get(key)
        if value is not None:
            return value
    return None


def normalize_season(season: Any) -> str | None:
    """
    Normalize a season value.

    A bare integer becomes "Season <n>", "n/a", "-" and empty become
    None, anything else is passed through trimmed.
    """
    if season is None:
        return None
    season_str = str(season).strip()
    if season_str.lower() in ("n/a", "-", ""):
        return None
    if season_str.isdigit():
        return f"Season {int(season_str)}"
    return season_str


def calculate_time_taken(start: str | None, finish: str | None) -> str | None:
    """
    Inclusive day count between two ISO dates ("1 day", "12 days").

    Returns None when either date is missing or invalid, or when the
    finish date precedes the start date.
    """
    start_date = parse_iso_date(start)
    finish_date = parse_iso_date(finish)
    if start_date is None or finish_date is None:
        return None

    days = (finish_date - start_date).days
    if days < 0:
        return None
    total = days + 1
    return "1 day" if total == 1 else f"{total} days"


def _parse_int(value: Any) -> int | None:
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    digits = str(value).strip()
    sign = ""
    if digits[:1] in "+-":
        sign, digits = digits[0], digits[1:]
    end = 0
    while end < len(digits) and digits[end].isdigit():
        end += 1
    if end == 0:
        return None
    return int(sign + digits[:end])


def transform_row(row: RawRow) -> CleanedEntry | None:
    """
    Transform a single loosely-typed row.

    Returns:
        CleanedEntry, or None when the row has no title.
    """
    title = row.get("title")
    if is_blank(title):
        return None

    data: dict[str, Any] = {"title": str(title).strip()}
    for key in STRING_FIELDS:
        value = row.get(key)
        data[key] = None if is_blank(value) else str(value).strip()

    my_rating = resolve_alias(row, MY_RATING_ALIASES)
    data["my_rating"] = parse_rating(my_rating) if not is_blank(my_rating) else None
    average_rating = row.get("average_rating")
    data["average_rating"] = (
        parse_rating(average_rating) if not is_blank(average_rating) else None
    )

    data["season"] = normalize_season(row.get("season"))
    data["genre"] = split_list(row.get("genre"))
    data["language"] = split_list(row.get("language"))
    data["episodes"] = _parse_int(row.get("episodes"))

    price = row.get("price")
    data["price"] = None if price is None or price == "" else parse_price(price)

    time_taken = row.get("time_taken")
    if is_blank(time_taken):
        data["time_taken"] = calculate_time_taken(data["start_date"], data["finish_date"])
    else:
        data["time_taken"] = str(time_taken).strip()

    return CleanedEntry.model_validate(data)


def transform_cleaned_data(rows: list[RawRow]) -> list[CleanedEntry]:
    """
    Transform rows into CleanedEntry records.

    Rows without a title are dropped. A row that still fails validation
    is logged and dropped rather than failing the whole batch.

    Args:
        rows: AI-cleaned or pasted-and-split rows.

    Returns:
        List of CleanedEntry in input order.
    """
    entries: list[CleanedEntry] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning(f"Skipping non-object row {index + 1}: {row!r}")
            continue
        try:
            entry = transform_row(row)
        except ValidationError as e:
            logger.warning(f"Row {index + 1} failed validation: {e}")
            continue
        if entry is not None:
            entries.append(entry)

    logger.info(f"Transformed {len(entries)} of {len(rows)} rows")
    return entries
