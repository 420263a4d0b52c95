"""Exception taxonomy for the import pipeline and provider error normalization."""

import math
import re
from dataclasses import dataclass


class ImportPipelineError(Exception):
    """Base class for import and enrichment failures."""


class InvalidInputError(ImportPipelineError):
    """Raised when caller input is missing or malformed."""


class ConfigurationError(ImportPipelineError):
    """Raised when a required credential or setting is absent."""


class ProviderError(ImportPipelineError):
    """Raised when an AI or metadata provider call fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after_seconds: int | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after_seconds = retry_after_seconds


class ResponseParseError(ImportPipelineError):
    """Raised when model output cannot be turned into JSON by any repair step."""

    def __init__(self, original_error: str):
        super().__init__(
            f"Failed to parse JSON response. Original error: {original_error}"
        )
        self.original_error = original_error


class ResponseSchemaError(ImportPipelineError):
    """Raised when parsed model output lacks an ``entries`` array."""


class MetadataNotFoundError(ImportPipelineError):
    """Raised when no provider returns metadata for a lookup."""


@dataclass
class NormalizedProviderError:
    """Short user-facing description of a provider failure."""

    message: str
    retry_after_seconds: int | None = None
    status_code: int | None = None


RETRY_PATTERNS = [
    re.compile(r"retry in ([\d.]+)s", re.I),
    re.compile(r"RetryInfo.*retryDelay[\"\s:]+(\d+)", re.I),
]

RATE_LIMIT_MARKERS = ("429", "Too Many Requests", "quota", "Quota exceeded", "free_tier")
AUTH_MARKERS = ("401", "403", "API key", "invalid api key", "permission denied")
UNAVAILABLE_MARKERS = ("500", "503", "unavailable", "overloaded")
BLOCKED_MARKERS = ("blocked", "safety", "content")


def normalize_provider_error(error: BaseException | str) -> NormalizedProviderError:
    """
    Map a raw AI provider error onto a short message.

    Raw SDK errors carry quota details, retry metadata and URLs that
    should not reach end users.

    Args:
        error: The exception raised by the SDK, or its message.

    Returns:
        NormalizedProviderError with message and optional status/retry hints.
    """
    raw = str(error)

    if any(marker in raw for marker in RATE_LIMIT_MARKERS):
        retry_after = None
        for pattern in RETRY_PATTERNS:
            match = pattern.search(raw)
            if match:
                retry_after = math.ceil(float(match.group(1)))
                break
        return NormalizedProviderError(
            message=(
                "AI rate limit reached. Please try again in a minute "
                "or check your API quota and billing."
            ),
            retry_after_seconds=retry_after,
            status_code=429,
        )

    if any(marker in raw for marker in AUTH_MARKERS):
        return NormalizedProviderError(
            message="Invalid or missing AI API key. Check your configuration.",
            status_code=401 if "401" in raw else 403,
        )

    if any(marker in raw for marker in UNAVAILABLE_MARKERS):
        return NormalizedProviderError(
            message="The AI service is temporarily unavailable. Please try again later.",
            status_code=503 if "503" in raw else 500,
        )

    if any(marker in raw for marker in BLOCKED_MARKERS):
        return NormalizedProviderError(
            message="The request was blocked by the AI service. Try rephrasing your input.",
        )

    return NormalizedProviderError(
        message="Something went wrong with the AI service. Please try again.",
    )
