"""AI cleaning services for Media Tracker."""

from media_tracker.services.ai.cleaning import CleaningService
from media_tracker.services.ai.client import AIClient, AIProvider, get_ai_client
from media_tracker.services.ai.errors import (
    ConfigurationError,
    ImportPipelineError,
    InvalidInputError,
    MetadataNotFoundError,
    ProviderError,
    ResponseParseError,
    ResponseSchemaError,
)

__all__ = [
    "AIClient",
    "AIProvider",
    "CleaningService",
    "ConfigurationError",
    "ImportPipelineError",
    "InvalidInputError",
    "MetadataNotFoundError",
    "ProviderError",
    "ResponseParseError",
    "ResponseSchemaError",
    "get_ai_client",
]
