"""AI client interface and provider abstraction."""

from abc import ABC, abstractmethod
from enum import Enum


class AIProvider(str, Enum):
    """Supported AI providers."""

    GEMINI = "gemini"
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


class AIClient(ABC):
    """Abstract base class for AI providers."""

    provider: AIProvider
    model: str

    @abstractmethod
    async def generate_text(self, system: str, prompt: str) -> str:
        """
        Run one completion and return the model's raw text.

        Args:
            system: System instruction.
            prompt: User prompt.

        Returns:
            The raw text of the first candidate.

        Raises:
            Exception: Whatever the vendor SDK raises; callers normalize it.
        """
        pass


def get_ai_client(
    provider: AIProvider | str,
    api_key: str,
    model: str | None = None,
) -> AIClient:
    """
    Factory function to get an AI client for the specified provider.

    Args:
        provider: The AI provider to use.
        api_key: The API key for the provider.
        model: Optional model name override.

    Returns:
        An AIClient instance for the specified provider.

    Raises:
        ValueError: If the provider is not supported.
    """
    if isinstance(provider, str):
        provider = AIProvider(provider.lower())

    if provider == AIProvider.GEMINI:
        from media_tracker.services.ai.providers.gemini import GeminiClient

        return GeminiClient(api_key=api_key, model=model)
    elif provider == AIProvider.ANTHROPIC:
        from media_tracker.services.ai.providers.anthropic import AnthropicClient

        return AnthropicClient(api_key=api_key, model=model)
    elif provider == AIProvider.OPENAI:
        from media_tracker.services.ai.providers.openai import OpenAIClient

        return OpenAIClient(api_key=api_key, model=model)
    else:
        raise ValueError(f"Unsupported AI provider: {provider}")
