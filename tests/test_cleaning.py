"""Tests for the AI cleaning service."""

import json
from unittest.mock import MagicMock, patch

import pytest

from media_tracker.config import Settings
from media_tracker.services.ai.cleaning import CleaningService
from media_tracker.services.ai.client import AIClient, AIProvider, get_ai_client
from media_tracker.services.ai.errors import (
    ConfigurationError,
    InvalidInputError,
    ProviderError,
    ResponseParseError,
    ResponseSchemaError,
)
from media_tracker.services.ai.prompts import SYSTEM_INSTRUCTION, build_cleaning_prompt

RAW_CSV = "Title,Rating\nDune,4/5\nArrival,9/10\n"

CLEAN_RESPONSE = {
    "entries": [
        {"title": "Dune", "my_rating": 8.0},
        {"title": "Arrival", "my_rating": 9.0},
    ],
    "errors": [],
}


class FakeAIClient(AIClient):
    """AI client returning a canned response and recording its calls."""

    provider = AIProvider.GEMINI
    model = "fake-model"

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def generate_text(self, system: str, prompt: str) -> str:
        self.calls.append((system, prompt))
        if self.error is not None:
            raise self.error
        return self.response


class TestCleaningService:
    """Tests for CleaningService.clean."""

    @pytest.mark.asyncio
    async def test_clean_success(self) -> None:
        """Test a well-formed model response."""
        client = FakeAIClient(json.dumps(CLEAN_RESPONSE))
        service = CleaningService(settings=Settings(), ai_client=client)

        result = await service.clean(RAW_CSV)

        assert [e.title for e in result.entries] == ["Dune", "Arrival"]
        assert result.entries[0].my_rating == 8.0
        assert result.raw_count == 2
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_prompt_contains_canonical_csv(self) -> None:
        """Test the system instruction and the re-serialized rows sent to the model."""
        client = FakeAIClient(json.dumps(CLEAN_RESPONSE))
        service = CleaningService(settings=Settings(), ai_client=client)

        await service.clean(RAW_CSV)

        system, prompt = client.calls[0]
        assert system == SYSTEM_INSTRUCTION
        assert prompt == build_cleaning_prompt("title,rating\nDune,4/5\nArrival,9/10\n")

    @pytest.mark.asyncio
    async def test_tab_separated_paste_sent_as_csv(self) -> None:
        """Test spreadsheet pastes reach the model comma separated, blank rows dropped."""
        client = FakeAIClient(json.dumps(CLEAN_RESPONSE))
        service = CleaningService(settings=Settings(), ai_client=client)

        await service.clean("Title\tStatus\nDune\tdone\n\t\nArrival\twatching\n")

        _, prompt = client.calls[0]
        assert "title,status\nDune,done\nArrival,watching\n" in prompt

    @pytest.mark.asyncio
    async def test_text_without_rows_sent_as_is(self) -> None:
        """Test free text with no data rows is passed through untouched."""
        client = FakeAIClient(json.dumps(CLEAN_RESPONSE))
        service = CleaningService(settings=Settings(), ai_client=client)

        await service.clean("watched dune last week")

        _, prompt = client.calls[0]
        assert prompt == build_cleaning_prompt("watched dune last week")

    @pytest.mark.asyncio
    async def test_fenced_response_with_trailing_commas(self) -> None:
        """Test sloppy model output is repaired."""
        client = FakeAIClient('```json\n{"entries": [{"title": "Dune",},],}\n```')
        service = CleaningService(settings=Settings(), ai_client=client)

        result = await service.clean(RAW_CSV)

        assert [e.title for e in result.entries] == ["Dune"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "   ", None, 42])
    async def test_invalid_input(self, raw) -> None:
        """Test empty or non-string input is rejected before any model call."""
        client = FakeAIClient("{}")
        service = CleaningService(settings=Settings(), ai_client=client)

        with pytest.raises(InvalidInputError, match="Missing or invalid csvData field"):
            await service.clean(raw)
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_missing_api_key(self) -> None:
        """Test a missing key names the env var to set."""
        service = CleaningService(settings=Settings(ai_provider="anthropic"))

        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY environment variable"):
            await service.clean(RAW_CSV)

    @pytest.mark.asyncio
    async def test_unsupported_provider(self) -> None:
        """Test an unknown provider is a configuration error."""
        service = CleaningService(settings=Settings(ai_provider="cohere"))

        with pytest.raises(ConfigurationError, match="Unsupported AI provider"):
            await service.clean(RAW_CSV)

    @pytest.mark.asyncio
    async def test_provider_error_normalized(self) -> None:
        """Test SDK errors become ProviderError with a short message."""
        client = FakeAIClient(error=Exception("429 Quota exceeded. Please retry in 4.2s"))
        service = CleaningService(settings=Settings(), ai_client=client)

        with pytest.raises(ProviderError) as exc_info:
            await service.clean(RAW_CSV)

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after_seconds == 5
        assert "Quota exceeded" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unparseable_response(self) -> None:
        """Test prose-only output raises ResponseParseError."""
        client = FakeAIClient("Sorry, I cannot help with that.")
        service = CleaningService(settings=Settings(), ai_client=client)

        with pytest.raises(ResponseParseError):
            await service.clean(RAW_CSV)

    @pytest.mark.asyncio
    async def test_missing_entries(self) -> None:
        """Test a JSON object without entries raises ResponseSchemaError."""
        client = FakeAIClient('{"rows": []}')
        service = CleaningService(settings=Settings(), ai_client=client)

        with pytest.raises(ResponseSchemaError):
            await service.clean(RAW_CSV)


class TestGetAIClient:
    """Tests for the provider factory."""

    def test_builds_configured_provider(self) -> None:
        """Test the settings provider and model are passed through."""
        with patch("media_tracker.services.ai.cleaning.get_ai_client") as factory:
            factory.return_value = MagicMock(spec=AIClient)
            service = CleaningService(
                settings=Settings(ai_provider="openai", openai_api_key="sk-test", ai_model="gpt-x")
            )
            assert service.ai_client is factory.return_value

        factory.assert_called_once_with(
            provider=AIProvider.OPENAI, api_key="sk-test", model="gpt-x"
        )

    def test_unknown_provider_string(self) -> None:
        """Test an unknown provider name raises ValueError."""
        with pytest.raises(ValueError):
            get_ai_client("cohere", api_key="x")
