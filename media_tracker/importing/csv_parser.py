"""
Pasted Text Parser Module
=========================

Splits user-pasted spreadsheet text (CSV, TSV, semicolon or pipe
separated, header row first) into RawRows and maps arbitrary header
spellings onto canonical entry fields.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from media_tracker.core.schema import RawRow, is_blank
from media_tracker.importing.normalizer import (
    parse_date,
    parse_price,
    parse_rating,
    sanitize_medium,
    sanitize_status,
    split_list,
)
from media_tracker.importing.transform import calculate_time_taken

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = "\t,;|"

# Canonical field -> header spellings, checked in order
COLUMN_MAPPINGS: dict[str, list[str]] = {
    "title": ["title", "name", "movie", "book", "show"],
    "medium": ["medium", "media_type", "category"],
    "type": ["type", "genre_type"],
    "season": ["season", "seasons", "season_number"],
    "episodes": ["episodes", "episode", "ep", "episode_count"],
    "length": ["length", "duration", "runtime", "pages"],
    "price": ["price", "cost", "amount", "spent"],
    "language": ["language", "lang", "languages"],
    "platform": ["platform", "service", "streaming", "where"],
    "status": ["status", "state", "progress"],
    "my_rating": ["my_rating", "personal_rating", "my_score", "user_rating"],
    "average_rating": ["average_rating", "imdb_rating", "rating", "score"],
    "start_date": ["start_date", "started", "start", "date_started"],
    "finish_date": ["finish_date", "finished", "end_date", "date_finished", "completed"],
    "time_taken": ["time_taken", "duration_taken", "time_spent"],
    "genre": ["genre", "genres"],
    "poster_url": ["poster_url", "poster", "image", "cover"],
    "imdb_id": ["imdb_id", "imdb", "isbn"],
}

UNITS_PATTERN = re.compile(r"\d+\s*(min|mins|minutes|hrs?|hours|pages?|pp?)\b", re.I)


@dataclass
class ParseResult:
    """Result of splitting pasted text."""

    rows: list[RawRow] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    header_mappings: dict[str, str] = field(default_factory=dict)


def normalize_header(header: str) -> str:
    """Normalize a header to lower_snake_case."""
    return re.sub(r"\s+", "_", header.strip().lower())


def map_header(header: str) -> str | None:
    """
    Map a normalized header to its canonical field.

    Exact alias matches win over partial matches so that e.g. "my_rating"
    is not claimed by "rating".
    """
    for canonical, aliases in COLUMN_MAPPINGS.items():
        if header in aliases:
            return canonical
    for canonical, aliases in COLUMN_MAPPINGS.items():
        if any(alias in header for alias in aliases):
            return canonical
    return None


def detect_delimiter(text: str) -> str:
    """Guess the delimiter from the header line."""
    sample = "\n".join(text.splitlines()[:5])
    try:
        return csv.Sniffer().sniff(sample, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        first_line = text.splitlines()[0] if text.splitlines() else ""
        return "\t" if "\t" in first_line else ","


def split_rows(text: str) -> list[RawRow]:
    """Split pasted text into header-keyed rows, skipping empty lines."""
    if not text or not text.strip():
        return []

    delimiter = detect_delimiter(text)
    reader = csv.DictReader(io.StringIO(text.strip()), delimiter=delimiter)
    if reader.fieldnames:
        reader.fieldnames = [normalize_header(h) for h in reader.fieldnames]

    rows: list[RawRow] = []
    for row in reader:
        cleaned = {k: v for k, v in row.items() if k is not None}
        if all(is_blank(v) for v in cleaned.values()):
            continue
        rows.append(cleaned)
    return rows


def parse_pasted_text(text: str) -> ParseResult:
    """
    Parse pasted tabular text without AI cleaning.

    Args:
        text: Raw pasted text with a header row.

    Returns:
        ParseResult with sanitized rows, per-row errors and the header
        mapping that was applied.
    """
    result = ParseResult()
    raw_rows = split_rows(text)
    if not raw_rows:
        return result

    for header in raw_rows[0].keys():
        canonical = map_header(header)
        if canonical and canonical not in result.header_mappings.values():
            result.header_mappings[header] = canonical

    logger.info(
        f"Parsed {len(raw_rows)} pasted rows, mapped headers: {result.header_mappings}"
    )

    for index, raw in enumerate(raw_rows):
        try:
            row = sanitize_row(raw, result.header_mappings)
        except ValueError as e:
            result.errors.append(f"Row {index + 1}: {e}")
            continue
        problems = validate_entry(row)
        if problems:
            result.errors.append(f"Row {index + 1}: {'; '.join(problems)}")
            continue
        result.rows.append(row)

    return result


def _get_value(raw: RawRow, key: str, mappings: dict[str, str]) -> Any:
    for header, canonical in mappings.items():
        if canonical == key and header in raw:
            return raw[header]
    return raw.get(key)


def sanitize_length(value: str) -> str:
    """Add units to a bare length: large numbers are pages, others minutes."""
    trimmed = value.strip()
    if UNITS_PATTERN.search(trimmed):
        return trimmed
    digits = re.sub(r"\D", "", trimmed)
    if digits:
        num = int(digits)
        return f"{num} pages" if num > 500 else f"{num} min"
    return trimmed


def sanitize_row(raw: RawRow, mappings: dict[str, str] | None = None) -> RawRow:
    """
    Convert one raw row into a loosely-typed entry row.

    Args:
        raw: Header-keyed raw row.
        mappings: Header -> canonical field mapping.

    Returns:
        Row keyed by canonical field names.

    Raises:
        ValueError: If the row has no title.
    """
    mappings = mappings or {}

    def get(key: str) -> Any:
        value = _get_value(raw, key, mappings)
        return None if is_blank(value) else value

    title = get("title")
    if title is None:
        raise ValueError("Title is required")

    entry: RawRow = {"title": str(title).strip()}

    medium = get("medium")
    if medium:
        entry["medium"] = sanitize_medium(str(medium))

    for key in ("type", "season", "platform", "poster_url", "imdb_id"):
        value = get(key)
        if value:
            entry[key] = str(value).strip()

    episodes = get("episodes")
    if episodes:
        digits = re.sub(r"\D", "", str(episodes))
        if digits:
            entry["episodes"] = int(digits)

    length = get("length")
    if length:
        entry["length"] = sanitize_length(str(length))

    price = parse_price(get("price"))
    if price is not None:
        entry["price"] = price

    for key in ("language", "genre"):
        items = split_list(get(key))
        if items:
            entry[key] = items

    status = get("status")
    if status:
        entry["status"] = sanitize_status(str(status))

    for key in ("average_rating", "my_rating"):
        rating = parse_rating(get(key))
        if rating is not None:
            entry[key] = min(10.0, rating)

    for key in ("start_date", "finish_date"):
        parsed = parse_date(get(key))
        if parsed:
            entry[key] = parsed

    time_taken = get("time_taken")
    if time_taken:
        entry["time_taken"] = str(time_taken).strip()
    else:
        calculated = calculate_time_taken(
            entry.get("start_date"), entry.get("finish_date")
        )
        if calculated:
            entry["time_taken"] = calculated

    return entry


def rows_to_csv(rows: list[RawRow]) -> str:
    """Serialize rows back to CSV text, union of keys as header."""
    headers: list[str] = []
    for row in rows:
        for key in row:
            if key not in headers:
                headers.append(key)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(
            {k: ", ".join(v) if isinstance(v, list) else v for k, v in row.items()}
        )
    return buffer.getvalue()


def validate_entry(entry: RawRow) -> list[str]:
    """Return human-readable validation problems for a sanitized row."""
    errors: list[str] = []

    if not entry.get("title") or not str(entry["title"]).strip():
        errors.append("Title is required")

    my_rating = entry.get("my_rating")
    if my_rating is not None and not 0 <= my_rating <= 10:
        errors.append("My rating must be between 0 and 10")

    average_rating = entry.get("average_rating")
    if average_rating is not None and not 0 <= average_rating <= 10:
        errors.append("Average rating must be between 0 and 10")

    episodes = entry.get("episodes")
    if episodes is not None and episodes < 0:
        errors.append("Episodes cannot be negative")

    price = entry.get("price")
    if price is not None and price < 0:
        errors.append("Price cannot be negative")

    return errors
