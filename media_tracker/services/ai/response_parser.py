"""
Model Output Parser
===================

Turns free text returned by a generative model into an ImportBatchResult.
The output is treated as untrusted: each stage below is a pure function
and the chain only moves to the next stage when the previous one fails.

    extract_json_candidate -> json.loads
        -> repair_json -> json.loads
        -> extract_entries_array -> json.loads
        -> ResponseParseError

``validate_batch`` then checks the structure and converts each entry.
"""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from media_tracker.core.schema import CleanedEntry, ImportBatchResult
from media_tracker.importing.transform import transform_row
from media_tracker.services.ai.errors import ResponseParseError, ResponseSchemaError

logger = logging.getLogger(__name__)

FENCED_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
TRAILING_COMMA_PATTERN = re.compile(r",(\s*[}\]])")
ENTRIES_KEY_PATTERN = re.compile(r'"entries"\s*:\s*\[')

LOG_PREVIEW_CHARS = 500


def extract_json_candidate(text: str) -> str:
    """
    Locate the JSON payload inside model output.

    Prefers the interior of a fenced code block, then the span from the
    first "{" to the last "}". Falls back to the trimmed text.
    """
    match = FENCED_BLOCK_PATTERN.search(text)
    if match:
        return match.group(1).strip()

    candidate = text.strip()
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start != -1 and end != -1 and end > start:
        return candidate[start : end + 1]
    return candidate


def repair_json(candidate: str) -> str:
    """Remove trailing commas before a closing brace or bracket."""
    return TRAILING_COMMA_PATTERN.sub(r"\1", candidate)


def _scan_array(candidate: str, start: int) -> tuple[int | None, int | None]:
    """
    Scan the JSON array opening at ``candidate[start]``.

    Brackets inside string literals are ignored.

    Returns:
        (end, last_element_end): the index just past the closing "]"
        (None if the array never closes) and the index just past the
        last complete object or array element.
    """
    depth = 0
    in_string = False
    escaped = False
    last_element_end = None

    for index in range(start, len(candidate)):
        char = candidate[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in "[{":
            depth += 1
        elif char in "]}":
            depth -= 1
            if depth == 0:
                return index + 1, last_element_end
            if depth == 1:
                last_element_end = index + 1

    return None, last_element_end


def extract_entries_array(candidate: str) -> list[Any] | None:
    """
    Salvage just the ``entries`` array from otherwise broken JSON.

    The array is located by bracket matching from ``"entries": [``, so
    nested arrays such as ``genre`` stay intact. When the output stops
    before the array closes, the complete elements seen so far are kept.

    Returns:
        The parsed list, or None if the array cannot be found or parsed.
    """
    match = ENTRIES_KEY_PATTERN.search(candidate)
    if not match:
        return None

    start = match.end() - 1
    end, last_element_end = _scan_array(candidate, start)
    if end is not None:
        array_text = candidate[start:end]
    elif last_element_end is not None:
        array_text = candidate[start:last_element_end] + "]"
    else:
        return None

    try:
        entries = json.loads(repair_json(array_text))
    except json.JSONDecodeError:
        return None
    return entries if isinstance(entries, list) else None


def parse_model_output(text: str) -> Any:
    """
    Run the extraction and repair chain over raw model output.

    Args:
        text: Raw text returned by the model.

    Returns:
        The parsed JSON value (normally a dict).

    Raises:
        ResponseParseError: If every stage fails. Carries the error from
            the first direct parse attempt.
    """
    candidate = extract_json_candidate(text)

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        original_error = str(e)
        logger.warning(f"Direct JSON parse failed: {original_error}")

    try:
        return json.loads(repair_json(candidate))
    except json.JSONDecodeError:
        logger.warning("JSON parse failed after trailing-comma repair")

    logger.debug(
        f"Unparseable model output ({len(candidate)} chars), "
        f"head: {candidate[:LOG_PREVIEW_CHARS]!r}, "
        f"tail: {candidate[-LOG_PREVIEW_CHARS:]!r}"
    )

    entries = extract_entries_array(candidate)
    if entries is not None:
        logger.warning(f"Recovered {len(entries)} entries from partial output")
        return {"entries": entries, "errors": []}

    raise ResponseParseError(original_error)


def validate_batch(parsed: Any) -> ImportBatchResult:
    """
    Check the parsed structure and convert its entries.

    Entries that have no title or fail validation are dropped and
    reported in ``errors``; only a missing ``entries`` array fails the
    whole batch.

    Args:
        parsed: Output of parse_model_output.

    Returns:
        ImportBatchResult with converted entries and row-level errors.

    Raises:
        ResponseSchemaError: If ``entries`` is missing or not a list.
    """
    if not isinstance(parsed, dict) or not isinstance(parsed.get("entries"), list):
        raise ResponseSchemaError(
            "Invalid response structure from AI: missing entries array"
        )

    raw_errors = parsed.get("errors") or []
    if not isinstance(raw_errors, list):
        raw_errors = [raw_errors]
    errors = [str(error) for error in raw_errors]

    entries: list[CleanedEntry] = []
    for index, raw in enumerate(parsed["entries"]):
        if not isinstance(raw, dict):
            errors.append(f"Entry {index + 1}: not an object")
            continue
        try:
            entry = transform_row(raw)
        except ValidationError as e:
            errors.append(f"Entry {index + 1}: {e.errors()[0]['msg']}")
            continue
        if entry is None:
            errors.append(f"Entry {index + 1}: Title is required")
            continue
        entries.append(entry)

    return ImportBatchResult(
        entries=entries,
        errors=errors,
        raw_count=len(parsed["entries"]),
    )


def parse_batch(text: str) -> ImportBatchResult:
    """Parse and validate raw model output in one step."""
    return validate_batch(parse_model_output(text))
