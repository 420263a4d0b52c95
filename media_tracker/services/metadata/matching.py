"""
Title Matching
==============

ISBN detection and heuristic scoring used to choose the best candidate
among provider search results.
"""

import re
from datetime import date
from typing import Any

ISBN_13_PATTERN = re.compile(r"^(978|979)\d{10}$")
ISBN_10_PATTERN = re.compile(r"^\d{9}[\dX]$")

NUMBER_PATTERN = re.compile(r"\b(\d+)\b")
YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")
FOUR_DIGITS_PATTERN = re.compile(r"\d{4}")

SEQUEL_INDICATORS = ["ii", "iii", "iv", "v", "2", "3", "4", "5"]
SEQUEL_WORDS = ["multiverse", "madness", "sequel", "returns", "reborn", "awakening"]

EXACT_TITLE_SCORE = 1000
TYPE_MATCH_SCORE = 100
WORD_MATCH_SCORE = 50
NUMBER_MATCH_SCORE = 200
SEQUEL_INDICATOR_SCORE = 150
SEQUEL_WORD_SCORE = 100
RECENT_SCORE = 10
RECENT_YEARS = 20

BOOK_YEAR_SCORE = 200
BOOK_IMAGE_SCORE = 20
BOOK_RATING_SCORE = 10
BOOK_DESCRIPTION_SCORE = 10


def detect_isbn(value: str | None) -> str | None:
    """
    Detect an ISBN-10 or ISBN-13 and return it as digits (plus X).

    Punctuation and spaces are ignored: "978-0-14-303943-3" is an ISBN.
    """
    if not value:
        return None
    cleaned = re.sub(r"[^0-9X]", "", value)
    if ISBN_13_PATTERN.match(cleaned) or ISBN_10_PATTERN.match(cleaned):
        return cleaned
    return None


def _words(text: str) -> list[str]:
    return [w for w in text.split() if w]


def _matching_words(query_words: list[str], title_words: list[str]) -> int:
    return sum(
        1
        for q in query_words
        if any(t in q or q in t for t in title_words)
    )


def score_title_match(
    query: str,
    result: dict[str, Any],
    requested_type: str | None = None,
    current_year: int | None = None,
) -> int:
    """Score one OMDB search result against the query."""
    current_year = current_year or date.today().year
    query_lower = query.lower()
    title_lower = str(result.get("Title", "")).lower()
    score = 0

    if requested_type and requested_type.lower() == str(result.get("Type", "")).lower():
        score += TYPE_MATCH_SCORE

    if title_lower == query_lower:
        score += EXACT_TITLE_SCORE

    score += _matching_words(_words(query_lower), _words(title_lower)) * WORD_MATCH_SCORE

    query_number = NUMBER_PATTERN.search(query_lower)
    if query_number:
        title_number = NUMBER_PATTERN.search(title_lower)
        if title_number and title_number.group(1) == query_number.group(1):
            score += NUMBER_MATCH_SCORE
        if any(ind in query_lower for ind in SEQUEL_INDICATORS):
            if any(ind in title_lower for ind in SEQUEL_INDICATORS):
                score += SEQUEL_INDICATOR_SCORE

    if "2" in query_lower or "ii" in query_lower:
        score += sum(SEQUEL_WORD_SCORE for word in SEQUEL_WORDS if word in title_lower)

    year_match = FOUR_DIGITS_PATTERN.match(str(result.get("Year", "")))
    if year_match and int(year_match.group()) >= current_year - RECENT_YEARS:
        score += RECENT_SCORE

    return score


def find_best_match(
    query: str,
    results: list[dict[str, Any]],
    requested_type: str | None = None,
    current_year: int | None = None,
) -> dict[str, Any] | None:
    """
    Pick the highest-scoring OMDB search result.

    Ties keep provider order.
    """
    if not results:
        return None
    return max(
        results,
        key=lambda r: score_title_match(query, r, requested_type, current_year),
    )


def score_book_match(query: str, volume: dict[str, Any], year: str | None = None) -> int:
    """Score one Google Books volume against the query."""
    info = volume.get("volumeInfo") or {}
    query_lower = query.lower()
    title_lower = str(info.get("title", "")).lower()
    score = 0

    if title_lower == query_lower:
        score += EXACT_TITLE_SCORE

    score += _matching_words(_words(query_lower), _words(title_lower)) * WORD_MATCH_SCORE

    if year is None:
        year_match = YEAR_PATTERN.search(query_lower)
        year = year_match.group() if year_match else None
    published = info.get("publishedDate")
    if year and published:
        published_year = FOUR_DIGITS_PATTERN.search(published)
        if published_year and published_year.group() == year:
            score += BOOK_YEAR_SCORE

    if info.get("imageLinks"):
        score += BOOK_IMAGE_SCORE
    if info.get("averageRating"):
        score += BOOK_RATING_SCORE
    if info.get("description"):
        score += BOOK_DESCRIPTION_SCORE

    return score


def find_best_book_match(
    query: str,
    volumes: list[dict[str, Any]],
    year: str | None = None,
) -> dict[str, Any] | None:
    """Pick the highest-scoring Google Books volume."""
    if not volumes:
        return None
    return max(volumes, key=lambda v: score_book_match(query, v, year))
