"""Cleaning service for AI-assisted normalization of pasted data."""

import logging

from media_tracker.config import Settings, get_settings
from media_tracker.core.schema import ImportBatchResult
from media_tracker.importing.csv_parser import rows_to_csv, split_rows
from media_tracker.services.ai.client import AIClient, AIProvider, get_ai_client
from media_tracker.services.ai.errors import (
    ConfigurationError,
    InvalidInputError,
    ProviderError,
    normalize_provider_error,
)
from media_tracker.services.ai.prompts import (
    PROMPT_VERSION,
    SYSTEM_INSTRUCTION,
    build_cleaning_prompt,
)
from media_tracker.services.ai.response_parser import parse_model_output, validate_batch

logger = logging.getLogger(__name__)


class CleaningService:
    """Service for turning messy pasted rows into structured entries."""

    def __init__(
        self,
        settings: Settings | None = None,
        ai_client: AIClient | None = None,
    ):
        """
        Initialize the cleaning service.

        Args:
            settings: Runtime settings. Loaded from the environment if omitted.
            ai_client: Optional pre-configured AI client. If not provided,
                      one is created from settings on first use.
        """
        self.settings = settings or get_settings()
        self._ai_client = ai_client

    @property
    def ai_client(self) -> AIClient:
        """Get or create the AI client from settings."""
        if self._ai_client is None:
            self._ai_client = self._create_client_from_settings()
        return self._ai_client

    def _create_client_from_settings(self) -> AIClient:
        """Create an AI client from settings."""
        try:
            provider = AIProvider(self.settings.ai_provider)
        except ValueError:
            raise ConfigurationError(
                f"Unsupported AI provider: {self.settings.ai_provider}"
            )

        api_key = self.settings.ai_api_key()
        if not api_key:
            raise ConfigurationError(
                f"{self.settings.ai_key_env_var} environment variable is required"
            )

        return get_ai_client(provider=provider, api_key=api_key, model=self.settings.ai_model)

    async def clean(self, raw_text: str) -> ImportBatchResult:
        """
        Clean pasted tabular text with the configured model.

        Args:
            raw_text: Raw CSV/TSV text with a header row.

        Returns:
            ImportBatchResult with cleaned entries and row-level errors.

        Raises:
            InvalidInputError: If raw_text is empty or not a string.
            ConfigurationError: If the AI provider key is missing.
            ProviderError: If the model call fails.
            ResponseParseError: If the output cannot be parsed as JSON.
            ResponseSchemaError: If the output lacks an entries array.
        """
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise InvalidInputError("Missing or invalid csvData field")

        client = self.ai_client

        # The model gets the parsed rows as comma CSV; text without data
        # rows is sent as-is.
        rows = split_rows(raw_text)
        payload = rows_to_csv(rows) if rows else raw_text

        logger.info(
            f"Cleaning {len(rows)} rows ({len(payload)} chars) with "
            f"{client.provider.value}/{client.model} (prompt v{PROMPT_VERSION})"
        )

        try:
            text = await client.generate_text(
                system=SYSTEM_INSTRUCTION,
                prompt=build_cleaning_prompt(payload),
            )
        except Exception as e:
            logger.error(f"AI cleaning call failed: {e}")
            normalized = normalize_provider_error(e)
            raise ProviderError(
                normalized.message,
                status_code=normalized.status_code,
                retry_after_seconds=normalized.retry_after_seconds,
            ) from e

        logger.debug(f"Raw AI response: {text[:1000]}...")

        result = validate_batch(parse_model_output(text))
        logger.info(
            f"AI cleaning produced {len(result.entries)} entries "
            f"from {result.raw_count} rows, {len(result.errors)} errors"
        )
        return result
